"""
Single-line status display driven by aggregator snapshots.

The renderer never receives events. It wakes up on an interval, takes a
snapshot and rewrites one stderr line, so producers are never slowed down by
terminal output.
"""
import sys
import threading
from typing import Optional

from colorama import Fore, Style
from colorama.ansi import clear_line

from ...services.progress import (BYTES_TRANSFERRED, OBJECTS_FOUND, ProgressSnapshot,
                                  SessionPhase, percent_complete, throughput)
from .display_utils import format_bytes

DEFAULT_INTERVAL = 0.5


def render_line(snapshot: ProgressSnapshot, previous: Optional[ProgressSnapshot] = None,
                metric: str = BYTES_TRANSFERRED, show_bytes: bool = True) -> str:
    """
    Build the status text for one snapshot.

    Args:
        snapshot: Current snapshot
        previous: Snapshot from the previous tick, used for the speed
        metric: Metric whose progress is shown
        show_bytes: Format amounts as sizes and append a speed. Off for
            object-count progress such as a recursive delete

    Returns:
        Status line without terminal control characters
    """
    if snapshot.phase is SessionPhase.DISCOVERING:
        return f"Listing objects... {snapshot.amount(OBJECTS_FOUND)} objects found"

    current = snapshot[metric]
    fmt = format_bytes if show_bytes else str
    total = fmt(current.total) if current.total is not None else "?"
    line = f"Progress: {fmt(current.amount)}/{total}"

    pct = percent_complete(current)
    if pct is not None:
        line += f" {pct}%"
    if show_bytes:
        line += f" {format_bytes(throughput(previous, snapshot, metric))}/s"
    return line


class StatusRenderer:
    """Background poller that redraws the status line until the session ends.

    Args:
        aggregator: ProgressAggregator to poll
        stream: Output stream (stderr by default)
        interval: Seconds between redraws
        metric: Metric shown once discovery is over
        show_bytes: See :func:`render_line`
    """

    def __init__(self, aggregator, stream=None, interval=DEFAULT_INTERVAL,
                 metric=BYTES_TRANSFERRED, show_bytes=True):
        self.aggregator = aggregator
        self.stream = stream or sys.stderr
        self.interval = interval
        self.metric = metric
        self.show_bytes = show_bytes
        self._previous: Optional[ProgressSnapshot] = None
        self._drawn = False
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def render(self) -> str:
        """Draw one frame and return its text."""
        snapshot = self.aggregator.snapshot()
        line = render_line(snapshot, self._previous, self.metric, self.show_bytes)
        self._previous = snapshot

        self.stream.write(f"{clear_line()}\r{Fore.CYAN}{line}{Style.RESET_ALL}")
        self.stream.flush()
        self._drawn = True
        return line

    def _loop(self):
        while not self._stop.is_set():
            if self.aggregator.wait(self.interval):
                break
            self.render()
        self._finish()

    def _finish(self):
        # Final frame so the line shows the last amounts, then release it
        if self._drawn:
            self.render()
            self.stream.write("\n")
            self.stream.flush()

    def start(self) -> 'StatusRenderer':
        self._thread = threading.Thread(target=self._loop, name="s3cli-status", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout=None):
        """Stop polling and wait for the final frame."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
