"""
Recursive local filesystem enumeration
"""
import logging
import os
from typing import Callable, Iterator, Optional

from ..errors import LocalReadError
from ..models.entry import Entry

log = logging.getLogger(__name__)


def walk_local_files(resolver, on_error: Optional[Callable[[LocalReadError], None]] = None
                     ) -> Iterator[Entry]:
    """
    Yield a local Entry for every regular file under the resolver's root.

    Each directory yields its own files in name order before descending into
    its subdirectories, also in name order. Files or directories
    that cannot be read are passed to *on_error* as LocalReadError and left
    out; the walk itself continues. A missing root yields nothing.

    Args:
        resolver: KeyResolver providing the root and key mapping
        on_error: Callback receiving per-entry LocalReadError instances

    Yields:
        Entry objects with size and modification time filled in
    """
    root = resolver.local_root

    def _report(error):
        log.warning("%s", error)
        if on_error:
            on_error(error)

    def _walk_error(exc):
        if getattr(exc, "filename", None) == root and not os.path.exists(root):
            log.debug("Local root %s does not exist", root)
            return
        _report(LocalReadError(getattr(exc, "filename", root), exc))

    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            try:
                st = os.stat(path)
            except OSError as e:
                _report(LocalReadError(path, e))
                continue

            if not os.path.isfile(path):
                continue
            if not os.access(path, os.R_OK):
                _report(LocalReadError(path, "permission denied"))
                continue

            yield Entry.local(resolver.local_to_key(path), path,
                              size=st.st_size, mtime=st.st_mtime)
