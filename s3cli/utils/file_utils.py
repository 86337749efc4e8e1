"""
File system utilities
"""
import logging
import mimetypes
import os

log = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def ensure_dir(directory):
    """
    Ensure directory exists, create if it doesn't.

    Args:
        directory: Directory path
    """
    os.makedirs(directory, exist_ok=True)


def guess_content_type(filename, default_type=None, guess=True):
    """
    Content type for an upload.

    Args:
        filename: File name or path used for the lookup
        default_type: Type used when guessing is off or finds nothing
        guess: If False, always return the default type

    Returns:
        MIME type string
    """
    default_type = default_type or DEFAULT_MIME_TYPE
    if not guess:
        return default_type
    content_type, _ = mimetypes.guess_type(str(filename))
    return content_type or default_type


def remove_file(path, stop_at=None):
    """
    Delete a file and prune directories left empty, up to *stop_at*.

    Args:
        path: File to delete
        stop_at: Directory that is never removed (the sync root)
    """
    os.remove(path)
    if not stop_at:
        return

    stop_at = os.path.abspath(stop_at)
    parent = os.path.dirname(os.path.abspath(path))
    while parent != stop_at and parent.startswith(stop_at + os.sep):
        try:
            os.rmdir(parent)
        except OSError:
            # Not empty (or not ours to remove)
            break
        log.debug("Removed empty directory %s", parent)
        parent = os.path.dirname(parent)
