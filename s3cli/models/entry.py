"""
Entry model for discovered files and objects
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Origin(Enum):
    """Which side of the sync an entry was discovered on."""
    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class Entry:
    """
    A discovered item, local or remote.

    Local and remote entries with the same ``relative_key`` describe the
    same logical file. ``content_hash`` is filled lazily; for remote entries
    it starts out as the listing ETag (quotes stripped) when there is one.
    """

    relative_key: str
    origin: Origin
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    content_hash: Optional[str] = None
    path: Optional[str] = None
    key: Optional[str] = None
    bucket: Optional[str] = None

    @property
    def is_local(self):
        return self.origin is Origin.LOCAL

    @classmethod
    def local(cls, relative_key, path, size=None, mtime=None):
        """Build a local entry from walker output."""
        last_modified = datetime.fromtimestamp(mtime) if mtime is not None else None
        return cls(relative_key, Origin.LOCAL, size=size,
                   last_modified=last_modified, path=path)

    @classmethod
    def remote(cls, relative_key, key, size=None, last_modified=None, etag=None,
               bucket=None):
        """Build a remote entry from a listing record."""
        content_hash = etag.strip('"') if etag else None
        return cls(relative_key, Origin.REMOTE, size=size,
                   last_modified=last_modified, content_hash=content_hash, key=key,
                   bucket=bucket)
