"""
Exception hierarchy for s3cli.

Resolution and listing errors are fatal for a session; per-item errors are
collected by the task pool and surfaced at the end as a partial failure.
"""


class S3CliError(Exception):
    """Base class for all s3cli errors."""

    default_message = "s3cli operation failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigError(S3CliError):
    """Raised when the credentials file is missing or incomplete."""

    default_message = "Invalid configuration"


class InvalidAddress(S3CliError):
    """Raised for a malformed remote address or an empty local root."""

    default_message = "Invalid address"


class ListingFailed(S3CliError):
    """Raised when the remote enumeration cannot be completed."""

    default_message = "Remote listing failed"

    def __init__(self, message=None, cause=None):
        self.cause = cause
        super().__init__(message)


class Cancelled(S3CliError):
    """Raised when an external stop was requested."""

    default_message = "Operation cancelled"


class TransferTimeout(S3CliError):
    """Raised when a single transfer exceeds its deadline."""

    default_message = "Transfer timed out"


class LocalReadError(S3CliError):
    """A local file could not be read during discovery."""

    def __init__(self, path, cause=None):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot read {path}: {cause}" if cause else f"Cannot read {path}")


class PerItemTransferError(S3CliError):
    """One action (single file or object) failed.

    Attributes:
        key: Relative key (or object key) the action was working on
        kind: ActionKind of the failed action
        cause: Underlying exception
    """

    def __init__(self, key, kind=None, cause=None):
        self.key = key
        self.kind = kind
        self.cause = cause
        label = kind.value if kind is not None else "transfer"
        super().__init__(f"{label} {key} failed: {cause}")
