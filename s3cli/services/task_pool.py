"""
Bounded-concurrency execution of sync actions.

Transfers run as soon as a slot is free. Deletions are held back until
:meth:`TransferTaskPool.drain` has seen every transfer finish, so a
destination object is never removed while its replacement is in flight.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from ..errors import Cancelled, PerItemTransferError
from ..models.action import ActionKind, SyncAction
from .progress import SessionPhase

log = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 20


class Task:
    """Handle for one submitted action.

    Completes exactly once, with ``error`` None on success.
    """

    def __init__(self, action: SyncAction):
        self.action = action
        self.error: Optional[Exception] = None
        self._done = threading.Event()

    def _complete(self, error=None):
        self.error = error
        self._done.set()

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout=None) -> bool:
        return self._done.wait(timeout)

    @property
    def succeeded(self) -> bool:
        return self.done() and self.error is None

    def __repr__(self):
        state = "pending" if not self.done() else ("ok" if self.error is None else "failed")
        return f"<Task {self.action} {state}>"


class TransferTaskPool:
    """Executes SyncActions with at most ``max_concurrency`` in flight.

    Args:
        executor: Callable ``executor(action)`` doing the actual work;
            raising marks that action as failed
        max_concurrency: Maximum concurrently running actions (defaults to
            ``config.concurrency`` when a config is given)
        aggregator: Optional ProgressAggregator; moved to DELETING when the
            deferred deletions start
        config: Optional ClientConfig
    """

    def __init__(self, executor: Callable[[SyncAction], None],
                 max_concurrency: Optional[int] = None, aggregator=None, config=None):
        if max_concurrency is None:
            max_concurrency = config.concurrency if config is not None else DEFAULT_CONCURRENCY
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.max_concurrency = max_concurrency
        self.aggregator = aggregator
        self.config = config
        self._execute = executor
        self._threads = ThreadPoolExecutor(max_workers=max_concurrency,
                                           thread_name_prefix="s3cli-transfer")
        self._slots = threading.BoundedSemaphore(max_concurrency)
        self._lock = threading.Lock()
        self._pending_keys = set()
        self._transfers: List[Task] = []
        self._deletions: List[Task] = []
        self._deferred: List[Task] = []
        self._errors: List[Exception] = []
        self._deleting = False
        self._cancelled = threading.Event()
        self._closed = False

    # ── Submission ─────────────────────────────────────────────────────

    def submit(self, action: SyncAction) -> Task:
        """
        Queue an action for execution.

        Blocks while the pool is at capacity. Deletions are deferred until
        :meth:`drain` unless the transfer phase is already over.

        Raises:
            Cancelled: If the pool has been cancelled
            ValueError: If an action for the same key is still pending
        """
        if self._cancelled.is_set():
            raise Cancelled()
        if self._closed:
            raise RuntimeError("pool has been shut down")

        task = Task(action)
        if action.kind is ActionKind.SKIP:
            task._complete()
            return task

        with self._lock:
            if action.key in self._pending_keys:
                raise ValueError(f"an action for {action.key} is already pending")
            self._pending_keys.add(action.key)

            if action.is_delete and not self._deleting:
                self._deferred.append(task)
                return task

        self._dispatch(task)
        return task

    def _dispatch(self, task: Task):
        self._slots.acquire()
        if self._cancelled.is_set():
            self._slots.release()
            self._finish(task, Cancelled())
            return

        with self._lock:
            (self._deletions if task.action.is_delete else self._transfers).append(task)
        self._threads.submit(self._run, task)

    def _run(self, task: Task):
        error = None
        try:
            if self._cancelled.is_set():
                error = Cancelled()
            else:
                self._execute(task.action)
        except Cancelled as e:
            error = e
        except PerItemTransferError as e:
            error = e
        except Exception as e:
            error = PerItemTransferError(task.action.key, task.action.kind, e)
        finally:
            self._slots.release()
            self._finish(task, error)

    def _finish(self, task: Task, error):
        with self._lock:
            self._pending_keys.discard(task.action.key)
            if error is not None and not isinstance(error, Cancelled):
                self._errors.append(error)
        if error is not None and not isinstance(error, Cancelled):
            log.error("%s", error)
        task._complete(error)

    # ── Barrier & lifecycle ────────────────────────────────────────────

    def wait_transfers(self, timeout=None) -> bool:
        """Wait for every dispatched transfer. Returns False on timeout."""
        with self._lock:
            pending = list(self._transfers)
        return all(task.wait(timeout) for task in pending)

    def start_deletions(self) -> None:
        """
        Barrier: wait until no transfer is outstanding, then release the
        deferred deletions. Deletions submitted afterwards run immediately.
        """
        while True:
            self.wait_transfers()
            with self._lock:
                if all(task.done() for task in self._transfers):
                    self._deleting = True
                    deferred, self._deferred = self._deferred, []
                    break

        if not deferred:
            return
        if self._cancelled.is_set():
            for task in deferred:
                self._finish(task, Cancelled())
            return

        if self.aggregator is not None:
            self.aggregator.set_phase(SessionPhase.DELETING)
        log.debug("Transfers complete, dispatching %d deletion(s)", len(deferred))
        for task in deferred:
            self._dispatch(task)

    def drain(self) -> List[Task]:
        """
        Run the transfer -> deletion barrier and wait for everything.

        Returns:
            All dispatched tasks, transfers first
        """
        self.start_deletions()

        with self._lock:
            everything = list(self._transfers) + list(self._deletions)
        for task in everything:
            task.wait()
        return everything

    def cancel(self) -> None:
        """Stop accepting work and drop deferred deletions.

        In-flight actions are left to finish (or time out) on their own.
        """
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        with self._lock:
            deferred, self._deferred = self._deferred, []
        for task in deferred:
            self._finish(task, Cancelled())
        log.debug("Task pool cancelled, %d deferred deletion(s) dropped", len(deferred))

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def errors(self) -> List[Exception]:
        """Per-item errors recorded so far (cancellations excluded)."""
        with self._lock:
            return list(self._errors)

    def shutdown(self, wait=True) -> None:
        self._closed = True
        self._threads.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False
