"""
Sync actions produced by the differ and consumed by the task pool
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .entry import Entry


class SyncDirection(Enum):
    """Direction of a sync: which side is the source."""
    UPLOAD = "upload"
    DOWNLOAD = "download"


class ActionKind(Enum):
    """Kind of work a single action performs."""
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE_REMOTE = "delete-remote"
    DELETE_LOCAL = "delete-local"
    SKIP = "skip"
    COPY = "copy"
    MOVE = "move"


TRANSFER_KINDS = frozenset({ActionKind.UPLOAD, ActionKind.DOWNLOAD,
                            ActionKind.COPY, ActionKind.MOVE})
DELETE_KINDS = frozenset({ActionKind.DELETE_REMOTE, ActionKind.DELETE_LOCAL})


@dataclass(frozen=True)
class SyncAction:
    """One unit of work for a single relative key.

    Attributes:
        kind: What to do
        entry: The entry the action operates on (source side for transfers)
        target: Explicit destination (object key, or local path for a
            download); ``None`` lets the key resolver decide
        bucket: Explicit destination bucket for UPLOAD/COPY/MOVE
    """

    kind: ActionKind
    entry: Entry
    target: Optional[str] = None
    bucket: Optional[str] = None

    @property
    def key(self):
        return self.entry.relative_key

    @property
    def is_transfer(self):
        return self.kind in TRANSFER_KINDS

    @property
    def is_delete(self):
        return self.kind in DELETE_KINDS

    @property
    def byte_size(self):
        """Bytes this action will move, 0 for skips and deletions."""
        if self.is_transfer and self.entry.size:
            return self.entry.size
        return 0

    @classmethod
    def upload(cls, entry):
        return cls(ActionKind.UPLOAD, entry)

    @classmethod
    def download(cls, entry):
        return cls(ActionKind.DOWNLOAD, entry)

    @classmethod
    def delete_remote(cls, entry):
        return cls(ActionKind.DELETE_REMOTE, entry)

    @classmethod
    def delete_local(cls, entry):
        return cls(ActionKind.DELETE_LOCAL, entry)

    @classmethod
    def skip(cls, entry):
        return cls(ActionKind.SKIP, entry)

    def __str__(self):
        return f"{self.kind.value}({self.key})"
