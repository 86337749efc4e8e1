"""
Thread-safe progress aggregation for one session.

Producers (differ, transfer tasks, deletion tasks) add deltas to named
metrics; a poller reads consistent snapshots on its own schedule. The
aggregator also carries the session phase and the one-shot terminal signal.
"""
import logging
import threading
import time
from enum import Enum
from typing import Dict, NamedTuple, Optional

log = logging.getLogger(__name__)

FILES_FOUND = "files_found"
OBJECTS_FOUND = "objects_found"
BYTES_TRANSFERRED = "bytes_transferred"
BYTES_HASHED = "bytes_hashed"
OBJECTS_DELETED = "objects_deleted"

STANDARD_METRICS = (FILES_FOUND, OBJECTS_FOUND, BYTES_TRANSFERRED,
                    BYTES_HASHED, OBJECTS_DELETED)


class SessionPhase(Enum):
    DISCOVERING = 0
    TRANSFERRING = 1
    DELETING = 2
    DONE = 3
    FAILED = 4

    @property
    def is_terminal(self):
        return self in (SessionPhase.DONE, SessionPhase.FAILED)


class ProgressMetric(NamedTuple):
    """Point-in-time value of one metric. ``total`` is None while unknown."""
    amount: int = 0
    total: Optional[int] = None

    @property
    def discovering(self):
        return self.total is None


class ProgressSnapshot:
    """Consistent read of every metric plus phase and elapsed time."""

    def __init__(self, metrics: Dict[str, ProgressMetric], phase: SessionPhase,
                 elapsed: float, error: Optional[Exception] = None):
        self.metrics = metrics
        self.phase = phase
        self.elapsed = elapsed
        self.error = error

    def __getitem__(self, name) -> ProgressMetric:
        return self.metrics.get(name, ProgressMetric())

    def __contains__(self, name):
        return name in self.metrics

    def amount(self, name) -> int:
        return self[name].amount

    def total(self, name) -> Optional[int]:
        return self[name].total

    def as_dict(self):
        return {name: (m.amount, m.total) for name, m in self.metrics.items()}


class ProgressAggregator:
    """Accumulator of named progress metrics.

    All mutation happens under a single lock held only for the duration of
    a dictionary update, so producers are never blocked for long.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._amounts: Dict[str, int] = {}
        self._totals: Dict[str, Optional[int]] = {}
        self._phase = SessionPhase.DISCOVERING
        self._error: Optional[Exception] = None
        self._terminal = threading.Event()
        self.started_at = clock()

    # ── Producers ──────────────────────────────────────────────────────

    def report(self, name: str, delta: int = 1) -> None:
        """Add *delta* to a metric. Safe to call from any thread.

        Negative deltas are ignored so amounts never go backwards. When the
        metric's total is known, the amount is capped at it.
        """
        if delta <= 0:
            if delta < 0:
                log.debug("Ignoring negative delta %d for %s", delta, name)
            return

        with self._lock:
            amount = self._amounts.get(name, 0) + delta
            total = self._totals.get(name)
            if total is not None and amount > total:
                amount = total
            self._amounts[name] = amount

    def set_total(self, name: str, total: int) -> None:
        """Record the final total for a metric once its discovery completes.

        The total never ends up below what was already reported.
        """
        if total < 0:
            raise ValueError(f"total for {name} must be non-negative")
        with self._lock:
            amount = self._amounts.setdefault(name, 0)
            self._totals[name] = max(total, amount)

    def add_total(self, name: str, delta: int) -> None:
        """Grow a known total (e.g. one more object queued for deletion)."""
        with self._lock:
            amount = self._amounts.setdefault(name, 0)
            current = self._totals.get(name) or 0
            self._totals[name] = max(current + delta, amount)

    # ── Phase & terminal signal ────────────────────────────────────────

    def set_phase(self, phase: SessionPhase) -> bool:
        """Advance the session phase. Moving backwards is a no-op.

        Terminal phases are only reached through mark_done/mark_failed.

        Returns:
            True if the phase changed
        """
        if phase.is_terminal:
            raise ValueError("use mark_done() or mark_failed() for terminal phases")
        with self._lock:
            if self._phase.is_terminal or phase.value <= self._phase.value:
                return False
            log.debug("Session phase %s -> %s", self._phase.name, phase.name)
            self._phase = phase
            return True

    def mark_done(self) -> bool:
        """Fire the terminal signal as Done. Returns False if already fired."""
        return self._terminate(SessionPhase.DONE, None)

    def mark_failed(self, error: Exception) -> bool:
        """Fire the terminal signal as Failed. Returns False if already fired."""
        return self._terminate(SessionPhase.FAILED, error)

    def _terminate(self, phase, error):
        with self._lock:
            if self._phase.is_terminal:
                return False
            self._phase = phase
            self._error = error
        self._terminal.set()
        return True

    # ── Consumers ──────────────────────────────────────────────────────

    @property
    def phase(self) -> SessionPhase:
        with self._lock:
            return self._phase

    @property
    def error(self) -> Optional[Exception]:
        with self._lock:
            return self._error

    @property
    def is_terminal(self) -> bool:
        return self._terminal.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the terminal signal fires. Returns False on timeout."""
        return self._terminal.wait(timeout)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            names = set(self._amounts) | set(self._totals)
            metrics = {
                name: ProgressMetric(self._amounts.get(name, 0), self._totals.get(name))
                for name in names
            }
            return ProgressSnapshot(metrics, self._phase,
                                    self._clock() - self.started_at, self._error)


# ── Derived values (computed by consumers, never stored) ───────────────

def percent_complete(metric: ProgressMetric) -> Optional[int]:
    """Whole-number percentage, or None while the total is unknown."""
    if metric.total is None:
        return None
    if metric.total == 0:
        return 100
    return int(metric.amount * 100 // metric.total)


def throughput(previous: Optional[ProgressSnapshot], current: ProgressSnapshot,
               name: str = BYTES_TRANSFERRED) -> float:
    """Units per second between two snapshots.

    With no previous snapshot the rate is averaged since the session
    started.
    """
    if previous is None:
        elapsed = current.elapsed
        delta = current.amount(name)
    else:
        elapsed = current.elapsed - previous.elapsed
        delta = current.amount(name) - previous.amount(name)
    if elapsed <= 0:
        return 0.0
    return delta / elapsed
