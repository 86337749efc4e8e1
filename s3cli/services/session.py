"""
Sessions: one command invocation's worth of discovery, transfer and deletion.

A session owns exactly one ProgressAggregator and one TransferTaskPool. It
runs on a background thread (``start()``) or inline (``run()``) and exposes
the handle the CLI needs: ``progress`` for the status renderer, ``cancel()``
for SIGINT, ``wait()`` and the final ``outcome``.
"""
import logging
import threading
from typing import Callable, Dict, Iterator, List, Optional

from ..errors import Cancelled, InvalidAddress, S3CliError
from ..models.action import SyncAction, SyncDirection
from ..models.entry import Entry
from ..models.outcome import OutcomeKind, SyncOutcome
from ..utils.config_loader import ClientConfig
from .differ import TreeDiffer
from .hasher import ContentHasher
from .progress import (BYTES_TRANSFERRED, OBJECTS_DELETED, OBJECTS_FOUND,
                       ProgressAggregator, SessionPhase)
from .resolver import KeyResolver, RemoteAddress
from .task_pool import TransferTaskPool
from .transfers import ActionExecutor
from .walker import walk_local_files

log = logging.getLogger(__name__)


class SyncRequest:
    """What to synchronize and how.

    Args:
        direction: SyncDirection.UPLOAD (local -> remote) or DOWNLOAD
        local_dir: Local root directory
        remote: RemoteAddress of the bucket prefix
        delete_removed: Delete destination entries with no source
        compare_hash: Compare content hashes as well as sizes
        stream_transfers: Start transfers while the listing is still
            running instead of after it completes
        upload_params: Callable returning upload ExtraArgs for an entry
    """

    def __init__(self, direction: SyncDirection, local_dir, remote: RemoteAddress,
                 delete_removed=False, compare_hash=True, stream_transfers=False,
                 upload_params: Optional[Callable[[Entry], Dict]] = None):
        self.direction = direction
        self.local_dir = local_dir
        self.remote = remote
        self.delete_removed = delete_removed
        self.compare_hash = compare_hash
        self.stream_transfers = stream_transfers
        self.upload_params = upload_params

    def __repr__(self):
        if self.direction is SyncDirection.UPLOAD:
            return f"SyncRequest({self.local_dir} -> {self.remote})"
        return f"SyncRequest({self.remote} -> {self.local_dir})"


class BaseSession:
    """Lifecycle shared by every session type.

    Subclasses implement :meth:`_execute`, which returns the outcome for
    a completed run and raises S3CliError for a fatal one.
    """

    name = "session"

    def __init__(self, store, config: Optional[ClientConfig] = None,
                 aggregator: Optional[ProgressAggregator] = None):
        self.store = store
        self.config = config or ClientConfig()
        self.progress = aggregator or ProgressAggregator()
        self.outcome: Optional[SyncOutcome] = None
        self._pool: Optional[TransferTaskPool] = None
        self._thread: Optional[threading.Thread] = None
        self._cancel_requested = threading.Event()

    # ── Handle ─────────────────────────────────────────────────────────

    def start(self) -> 'BaseSession':
        """Run the session on a background thread."""
        if self._thread is not None:
            raise RuntimeError(f"{self.name} already started")
        self._thread = threading.Thread(target=self.run, name=f"s3cli-{self.name}",
                                        daemon=True)
        self._thread.start()
        return self

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the session is terminal. Returns False on timeout."""
        return self.progress.wait(timeout)

    def cancel(self) -> None:
        """Request a stop. In-flight actions are allowed to finish."""
        if self._cancel_requested.is_set() or self.progress.is_terminal:
            return
        self._cancel_requested.set()
        log.debug("Cancellation requested for %s", self.name)
        pool = self._pool
        if pool is not None:
            pool.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested.is_set()

    # ── Run ────────────────────────────────────────────────────────────

    def run(self) -> SyncOutcome:
        """Execute the session to completion and fire the terminal signal."""
        try:
            outcome = self._execute()
        except S3CliError as e:
            self._abort_pool()
            outcome = SyncOutcome.fatal_failure(e)
        except Exception as e:
            log.debug("%s aborted by unexpected error", self.name, exc_info=True)
            self._abort_pool()
            outcome = SyncOutcome.fatal_failure(e)
        finally:
            if self._pool is not None:
                self._pool.shutdown()

        if self.cancelled and outcome.kind is not OutcomeKind.FATAL_FAILURE:
            outcome = SyncOutcome.fatal_failure(Cancelled())

        self.outcome = outcome
        if outcome.kind is OutcomeKind.FATAL_FAILURE:
            self.progress.mark_failed(outcome.error)
        else:
            self.progress.mark_done()
        return outcome

    def _execute(self) -> SyncOutcome:
        raise NotImplementedError

    # ── Helpers for subclasses ─────────────────────────────────────────

    def _open_pool(self, executor) -> TransferTaskPool:
        self._pool = TransferTaskPool(executor, aggregator=self.progress, config=self.config)
        if self.cancelled:
            self._pool.cancel()
        return self._pool

    def _abort_pool(self):
        """Stop submissions and wait for whatever is already running."""
        if self._pool is None:
            return
        self._pool.cancel()
        self._pool.drain()

    def _check_cancelled(self):
        if self.cancelled:
            raise Cancelled()

    def _submit_all(self, actions):
        for action in actions:
            self._check_cancelled()
            self._pool.submit(action)

    @staticmethod
    def _finish(errors: List[Exception]) -> SyncOutcome:
        if errors:
            return SyncOutcome.partial_failure(errors)
        return SyncOutcome.success()


class SyncSession(BaseSession):
    """Synchronize a local tree with a bucket prefix in one direction.

    Args:
        store: Remote store client
        request: SyncRequest describing both sides
        config: ClientConfig
        aggregator: Optional ProgressAggregator (one is created otherwise)
    """

    name = "sync"

    def __init__(self, store, request: SyncRequest, config=None, aggregator=None):
        super().__init__(store, config, aggregator)
        self.request = request
        self.hasher = ContentHasher(self.progress)
        self.local_errors = []

    def _remote_pages(self, resolver: KeyResolver) -> Iterator[List[Entry]]:
        for page in self.store.list_prefix(resolver.bucket, resolver.prefix):
            entries = []
            for obj in page.objects:
                relative_key = resolver.remote_to_key(obj.key)
                if relative_key is None:
                    continue
                entries.append(Entry.remote(relative_key, obj.key, size=obj.size,
                                            last_modified=obj.last_modified,
                                            etag=obj.etag, bucket=resolver.bucket))
            yield entries

    def _remote_digest(self, entry: Entry) -> str:
        return self.hasher.stream_digest(self.store.iter_object_chunks(entry.bucket, entry.key))

    def _set_totals(self, actions: List[SyncAction]):
        self.progress.set_total(BYTES_TRANSFERRED, sum(a.byte_size for a in actions))
        self.progress.set_total(OBJECTS_DELETED, sum(1 for a in actions if a.is_delete))

    def _execute(self) -> SyncOutcome:
        request = self.request
        resolver = KeyResolver(request.local_dir, request.remote, self.config)
        if request.direction is SyncDirection.UPLOAD and not resolver.local_exists():
            raise InvalidAddress(f"{request.local_dir} is not a directory")

        differ = TreeDiffer(request.direction, delete_removed=request.delete_removed,
                            compare_hash=request.compare_hash, hasher=self.hasher,
                            aggregator=self.progress, remote_digest=self._remote_digest)
        executor = ActionExecutor(self.store, resolver, self.progress, self.config,
                                  upload_params=request.upload_params)
        pool = self._open_pool(executor)

        local_entries = walk_local_files(resolver, on_error=self.local_errors.append)
        actions = differ.diff(local_entries, self._remote_pages(resolver))
        log.debug("Starting %r", request)

        if request.stream_transfers:
            submitted = []
            for action in actions:
                self._check_cancelled()
                if differ.listing_complete:
                    self.progress.set_phase(SessionPhase.TRANSFERRING)
                pool.submit(action)
                submitted.append(action)
            self._set_totals(submitted)
        else:
            buffered = []
            for action in actions:
                self._check_cancelled()
                buffered.append(action)
            self._set_totals(buffered)
            self.progress.set_phase(SessionPhase.TRANSFERRING)
            self._submit_all(buffered)

        self.progress.set_phase(SessionPhase.TRANSFERRING)
        pool.drain()
        self._check_cancelled()

        return self._finish(self.local_errors + differ.errors + pool.errors)


class DeleteSession(BaseSession):
    """Delete one object, or every object under a prefix.

    Args:
        store: Remote store client
        remote: RemoteAddress naming the object or prefix
        recursive: Delete everything under the prefix
    """

    name = "delete"

    def __init__(self, store, remote: RemoteAddress, recursive=False, config=None,
                 aggregator=None):
        super().__init__(store, config, aggregator)
        self.remote = remote
        self.recursive = recursive

    def _list_actions(self) -> List[SyncAction]:
        bucket = self.remote.bucket
        if not self.recursive:
            if not self.remote.prefix:
                raise InvalidAddress(f"{self.remote} does not name an object")
            entry = Entry.remote(self.remote.prefix, self.remote.prefix, bucket=bucket)
            return [SyncAction.delete_remote(entry)]

        actions = []
        for page in self.store.list_prefix(bucket, self.remote.prefix):
            for obj in page.objects:
                self._check_cancelled()
                self.progress.report(OBJECTS_FOUND)
                actions.append(SyncAction.delete_remote(
                    Entry.remote(obj.key, obj.key, size=obj.size, bucket=bucket)))
        self.progress.set_total(OBJECTS_FOUND, len(actions))
        return actions

    def _execute(self) -> SyncOutcome:
        actions = self._list_actions()
        self.progress.set_total(OBJECTS_DELETED, len(actions))

        pool = self._open_pool(ActionExecutor(self.store, aggregator=self.progress,
                                              config=self.config))
        # Nothing to transfer, so deletions may run as soon as they arrive
        pool.start_deletions()
        self.progress.set_phase(SessionPhase.DELETING)
        self._submit_all(actions)
        pool.drain()
        self._check_cancelled()
        return self._finish(pool.errors)


class TransferSession(BaseSession):
    """Run a single put/get/cp/mv action with progress reporting.

    Args:
        store: Remote store client
        action: Fully specified SyncAction (explicit bucket and target)
        size: Bytes expected to move, if known
    """

    name = "transfer"

    def __init__(self, store, action: SyncAction, size=None, config=None,
                 aggregator=None, upload_params: Optional[Callable[[Entry], Dict]] = None,
                 copy_params: Optional[Dict] = None):
        super().__init__(store, config, aggregator)
        if not action.is_transfer:
            raise ValueError(f"{action.kind.value} is not a single-object transfer")
        self.action = action
        self.size = size if size is not None else action.entry.size
        self.upload_params = upload_params
        self.copy_params = copy_params

    def _execute(self) -> SyncOutcome:
        executor = ActionExecutor(self.store, aggregator=self.progress, config=self.config,
                                  upload_params=self.upload_params,
                                  copy_params=self.copy_params)
        pool = self._open_pool(executor)
        if self.size is not None:
            self.progress.set_total(BYTES_TRANSFERRED, self.size)
        self.progress.set_phase(SessionPhase.TRANSFERRING)
        self._submit_all([self.action])
        pool.drain()
        self._check_cancelled()
        return self._finish(pool.errors)
