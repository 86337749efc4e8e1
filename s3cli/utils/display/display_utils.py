"""
Display and report utilities for s3cli
"""
from colorama import Fore, Style

from ...errors import Cancelled
from ...models.outcome import OutcomeKind

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2
EXIT_CANCELLED = 130


def format_bytes(num_bytes):
    """Convert bytes to human-readable string.

    Args:
        num_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g. '1.5 MB').
    """
    num_bytes = float(num_bytes or 0)
    for unit in ('B', 'KB', 'MB', 'GB'):
        if num_bytes < 1024:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024
    return f"{num_bytes:.1f} TB"


def print_error(message):
    print(f"{Fore.RED}[ERROR] {message}{Style.RESET_ALL}")


def print_warning(message):
    print(f"{Fore.YELLOW}[WARNING] {message}{Style.RESET_ALL}")


def print_outcome(outcome, label="Sync"):
    """
    Print the final report for a session and return its exit code.

    Args:
        outcome: SyncOutcome of the finished session
        label: Operation name used in the messages

    Returns:
        Exit code: 0 success, 2 partial failure, 1 fatal, 130 cancelled
    """
    if outcome.kind is OutcomeKind.SUCCESS:
        print(f"{Fore.GREEN}[SUCCESS] {label} complete{Style.RESET_ALL}")
        return EXIT_SUCCESS

    if outcome.kind is OutcomeKind.PARTIAL_FAILURE:
        count = len(outcome.errors)
        print(f"{Fore.YELLOW}[WARNING] {label} finished, {count} item(s) failed:{Style.RESET_ALL}")
        for error in outcome.errors:
            print(f"  {Fore.RED}✗{Style.RESET_ALL} {error}")
        return EXIT_PARTIAL

    if isinstance(outcome.error, Cancelled):
        print(f"{Fore.YELLOW}[CANCELLED] {label} cancelled{Style.RESET_ALL}")
        return EXIT_CANCELLED

    print_error(f"{label} aborted: {outcome.error}")
    return EXIT_FATAL
