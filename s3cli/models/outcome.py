"""
Final outcome of a session.
"""
from enum import Enum
from typing import List, Optional

from ..errors import Cancelled


class OutcomeKind(Enum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FATAL_FAILURE = "fatal_failure"


class SyncOutcome:
    """Standardized outcome for sync, delete and copy sessions.

    Attributes:
        kind: SUCCESS, PARTIAL_FAILURE or FATAL_FAILURE
        errors: Per-item errors (PARTIAL_FAILURE only)
        error: The fatal error (FATAL_FAILURE only)
    """

    def __init__(self, kind: OutcomeKind, errors: Optional[List[Exception]] = None,
                 error: Optional[Exception] = None):
        self.kind = kind
        self.errors = errors or []
        self.error = error

    @classmethod
    def success(cls) -> 'SyncOutcome':
        return cls(OutcomeKind.SUCCESS)

    @classmethod
    def partial_failure(cls, errors: List[Exception]) -> 'SyncOutcome':
        """Create an outcome for a session where some items failed.

        Args:
            errors: Per-item errors, in the order they were recorded

        Returns:
            SyncOutcome with kind PARTIAL_FAILURE
        """
        return cls(OutcomeKind.PARTIAL_FAILURE, errors=list(errors))

    @classmethod
    def fatal_failure(cls, error: Exception) -> 'SyncOutcome':
        return cls(OutcomeKind.FATAL_FAILURE, error=error)

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def cancelled(self) -> bool:
        return self.kind is OutcomeKind.FATAL_FAILURE and isinstance(self.error, Cancelled)

    def __repr__(self):
        if self.kind is OutcomeKind.PARTIAL_FAILURE:
            return f"SyncOutcome(partial_failure, {len(self.errors)} error(s))"
        if self.kind is OutcomeKind.FATAL_FAILURE:
            return f"SyncOutcome(fatal_failure, {self.error!r})"
        return "SyncOutcome(success)"
