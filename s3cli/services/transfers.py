"""
Execution of individual sync actions against the store client.

Each call runs inside a task-pool worker. Transferred bytes are reported
to the aggregator as the store client's callbacks fire, so the status line
shows live throughput rather than per-file jumps.
"""
import logging
import time
from typing import Callable, Dict, Optional

from ..errors import TransferTimeout
from ..models.action import ActionKind, SyncAction
from ..models.entry import Entry
from ..utils.file_utils import remove_file
from .progress import BYTES_TRANSFERRED, OBJECTS_DELETED

log = logging.getLogger(__name__)


class ActionExecutor:
    """Callable that performs one SyncAction.

    Args:
        store: Remote store client (S3StoreClient or compatible)
        resolver: KeyResolver for actions without an explicit destination
        aggregator: ProgressAggregator receiving byte and deletion counts
        config: Optional ClientConfig (``action_timeout`` is honoured)
        upload_params: Callable returning ExtraArgs for an uploaded entry
        copy_params: ExtraArgs for server-side copies
    """

    def __init__(self, store, resolver=None, aggregator=None, config=None,
                 upload_params: Optional[Callable[[Entry], Dict]] = None,
                 copy_params: Optional[Dict] = None):
        self.store = store
        self.resolver = resolver
        self.aggregator = aggregator
        self.config = config
        self.upload_params = upload_params
        self.copy_params = copy_params or {}
        self._handlers = {
            ActionKind.UPLOAD: self._upload,
            ActionKind.DOWNLOAD: self._download,
            ActionKind.DELETE_REMOTE: self._delete_remote,
            ActionKind.DELETE_LOCAL: self._delete_local,
            ActionKind.COPY: self._copy,
            ActionKind.MOVE: self._move,
        }

    def __call__(self, action: SyncAction) -> None:
        handler = self._handlers.get(action.kind)
        if handler is None:
            return
        handler(action)

    # ── Helpers ────────────────────────────────────────────────────────

    def _progress_callback(self, action: SyncAction):
        """Byte callback for one transfer, enforcing the per-action deadline."""
        timeout = self.config.action_timeout if self.config is not None else None
        deadline = time.monotonic() + timeout if timeout else None
        aggregator = self.aggregator

        def callback(nbytes):
            if aggregator is not None:
                aggregator.report(BYTES_TRANSFERRED, nbytes)
            if deadline is not None and time.monotonic() > deadline:
                raise TransferTimeout(f"{action.key} exceeded {timeout}s")

        return callback

    def _remote_bucket(self, entry: Entry, action: SyncAction = None):
        if action is not None and action.bucket:
            return action.bucket
        if entry.bucket:
            return entry.bucket
        return self.resolver.bucket

    def _remote_key(self, action: SyncAction):
        if action.target:
            return action.target
        return self.resolver.key_to_remote(action.key)

    def _local_path(self, action: SyncAction):
        if action.target:
            return action.target
        return self.resolver.key_to_local(action.key)

    def _deleted(self):
        if self.aggregator is not None:
            self.aggregator.report(OBJECTS_DELETED, 1)

    # ── Action kinds ───────────────────────────────────────────────────

    def _upload(self, action: SyncAction):
        entry = action.entry
        bucket = action.bucket or self.resolver.bucket
        key = self._remote_key(action)
        extra_args = self.upload_params(entry) if self.upload_params else None
        log.info("Uploading %s", entry.path)
        self.store.upload_file(entry.path, bucket, key, extra_args=extra_args,
                               callback=self._progress_callback(action))

    def _download(self, action: SyncAction):
        entry = action.entry
        local_path = self._local_path(action)
        log.info("Downloading %s", local_path)
        self.store.download_file(self._remote_bucket(entry), entry.key, local_path,
                                 callback=self._progress_callback(action))

    def _copy(self, action: SyncAction):
        entry = action.entry
        source_bucket = entry.bucket or self.resolver.bucket
        log.info("Copying s3://%s/%s to s3://%s/%s", source_bucket, entry.key,
                 action.bucket, action.target)
        self.store.copy_object(source_bucket, entry.key, action.bucket, action.target,
                               extra_args=self.copy_params,
                               callback=self._progress_callback(action))

    def _move(self, action: SyncAction):
        self._copy(action)
        entry = action.entry
        source_bucket = entry.bucket or self.resolver.bucket
        # Never delete the source when it is also the destination
        if (source_bucket, entry.key) == (action.bucket, action.target):
            return
        self.store.delete_object(source_bucket, entry.key)
        self._deleted()

    def _delete_remote(self, action: SyncAction):
        entry = action.entry
        bucket = self._remote_bucket(entry)
        log.info("Deleting s3://%s/%s", bucket, entry.key)
        self.store.delete_object(bucket, entry.key)
        self._deleted()

    def _delete_local(self, action: SyncAction):
        entry = action.entry
        log.info("Deleting %s", entry.path)
        stop_at = self.resolver.local_root if self.resolver is not None else None
        remove_file(entry.path, stop_at=stop_at)
        self._deleted()
