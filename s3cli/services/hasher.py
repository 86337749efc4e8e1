"""
Content hashing compatible with S3 ETags.

Single-part uploads have an ETag equal to the MD5 of the content.
Multipart uploads have ``md5(concat(md5(part_i)))-N``; to compare against
those the local file is hashed with the same part size.
"""
import hashlib
import logging
import math
import os
import re
from typing import Iterable, Optional

from ..errors import LocalReadError
from .progress import BYTES_HASHED

log = logging.getLogger(__name__)

MULTIPART_ETAG_RE = re.compile(r'^([0-9a-fA-F]{32})-(\d+)$')
DEFAULT_CHUNK_SIZE = 1024 * 1024
# Matches boto3's TransferConfig.multipart_chunksize default
DEFAULT_PART_SIZE = 8 * 1024 * 1024
_MIB = 1024 * 1024


def parse_multipart_etag(etag) -> Optional[int]:
    """Return the part count of a multipart ETag, or None for plain MD5."""
    if not etag:
        return None
    match = MULTIPART_ETAG_RE.match(etag.strip('"'))
    return int(match.group(2)) if match else None


def guess_part_size(size: int, parts: int, preferred: int = DEFAULT_PART_SIZE) -> int:
    """
    Pick the part size an uploader most likely used for *parts* parts.

    The preferred size wins when it produces the right count; otherwise the
    smallest whole number of MiB that does.
    """
    if parts <= 1 or size <= 0:
        return max(size, 1)
    if math.ceil(size / preferred) == parts:
        return preferred
    return max(_MIB, int(math.ceil(size / parts / _MIB)) * _MIB)


class ContentHasher:
    """Computes content digests and reports ``bytes_hashed`` progress.

    Args:
        aggregator: Optional ProgressAggregator to report into
        chunk_size: Read size for local files
        part_size: Preferred multipart part size
    """

    def __init__(self, aggregator=None, chunk_size=DEFAULT_CHUNK_SIZE,
                 part_size=DEFAULT_PART_SIZE):
        self.aggregator = aggregator
        self.chunk_size = chunk_size
        self.part_size = part_size

    def _report(self, nbytes):
        if self.aggregator is not None and nbytes:
            self.aggregator.report(BYTES_HASHED, nbytes)

    def file_digest(self, path, etag_hint=None, size=None) -> str:
        """
        Digest of a local file in the same form as *etag_hint*.

        Args:
            path: Local file path
            etag_hint: Remote ETag; a multipart ETag selects multipart hashing
            size: File size, used to pick the multipart part size

        Returns:
            Lowercase hex digest (``<hex>-<N>`` for multipart)

        Raises:
            LocalReadError: If the file cannot be read
        """
        parts = parse_multipart_etag(etag_hint)
        try:
            if parts:
                if size is None:
                    size = os.path.getsize(path)
                return self._multipart_digest(path, guess_part_size(size, parts, self.part_size))
            return self._md5_digest(path)
        except OSError as e:
            raise LocalReadError(path, e) from e

    def _md5_digest(self, path):
        h = hashlib.md5()
        with open(path, "rb") as f:
            while True:
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                h.update(chunk)
                self._report(len(chunk))
        return h.hexdigest()

    def _multipart_digest(self, path, part_size):
        digests = []
        with open(path, "rb") as f:
            while True:
                part = hashlib.md5()
                remaining = part_size
                read_any = False
                while remaining > 0:
                    chunk = f.read(min(self.chunk_size, remaining))
                    if not chunk:
                        break
                    read_any = True
                    part.update(chunk)
                    remaining -= len(chunk)
                    self._report(len(chunk))
                if not read_any:
                    break
                digests.append(part.digest())
        combined = hashlib.md5(b"".join(digests)).hexdigest()
        log.debug("Multipart digest of %s: %d part(s) of %d bytes", path, len(digests), part_size)
        return f"{combined}-{len(digests)}"

    def stream_digest(self, chunks: Iterable[bytes]) -> str:
        """MD5 of a stream of byte chunks (e.g. a remote object body)."""
        h = hashlib.md5()
        for chunk in chunks:
            h.update(chunk)
            self._report(len(chunk))
        return h.hexdigest()
