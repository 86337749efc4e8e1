"""Logging setup for s3cli.

Log lines go to stderr next to the status line, so ``ls`` output on stdout
stays machine-readable. Per-file messages ("Uploading ...", "Deleting ...")
are INFO; listing pages, pool and hashing internals are DEBUG.
"""
import logging
import sys

from colorama import Fore, Style
from colorama.ansi import clear_line

__all__ = ["setup_logging"]

PACKAGE_LOGGER = "s3cli"

# boto3 and friends log every request at DEBUG
NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")

_TAG_COLOURS = {
    logging.DEBUG: Fore.WHITE,
    logging.INFO: Fore.CYAN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}


class ColouredFormatter(logging.Formatter):
    """Prefix each record with a coloured ``[LEVEL]`` tag.

    The status line is written without a newline, so it is wiped first and
    redrawn by the renderer on its next tick.
    """

    def format(self, record: logging.LogRecord) -> str:
        tag = f"{_TAG_COLOURS.get(record.levelno, '')}[{record.levelname}]{Style.RESET_ALL}"
        return f"{clear_line()}\r{tag} {super().format(record)}"


def _level_for(verbose, quiet):
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def setup_logging(verbose: bool = False, quiet: bool = False, stream=None) -> logging.Logger:
    """Configure the *s3cli* logger from ``--verbose`` / ``--quiet``.

    Safe to call more than once; the existing handler is reused.

    Args:
        verbose: Show DEBUG records, including the AWS libraries' own
        quiet: Only warnings and errors (wins over *verbose*)
        stream: Output stream, stderr by default

    Returns:
        The package logger
    """
    level = _level_for(verbose, quiet)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(ColouredFormatter("%(message)s"))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(level)

    library_level = logging.DEBUG if verbose and not quiet else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    return logger
