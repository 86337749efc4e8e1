"""
Path/key resolution between the local tree and a bucket prefix.

Both sides are mapped into one key space of ``/``-delimited relative keys
with no leading slash, so that equal keys denote the same logical file.
Case is preserved on both sides.
"""
import logging
import os
import re
from typing import NamedTuple, Optional

from ..errors import InvalidAddress

log = logging.getLogger(__name__)

S3_URL_RE = re.compile(r'^[sS]3://([^/]*)(?:/(.*))?$')
UNMAPPABLE_SEGMENTS = ("", ".", "..")


class RemoteAddress(NamedTuple):
    bucket: str
    prefix: str = ""

    def __str__(self):
        return f"s3://{self.bucket}/{self.prefix}"


def is_s3_url(value) -> bool:
    """Return True if *value* looks like an ``s3://`` URL."""
    return bool(value) and S3_URL_RE.match(value) is not None


def parse_s3_url(value) -> RemoteAddress:
    """
    Split an ``s3://bucket/prefix`` URL into bucket and prefix.

    Args:
        value: URL string

    Returns:
        RemoteAddress

    Raises:
        InvalidAddress: If the value is empty, not an S3 URL, or has no bucket
    """
    if not value:
        raise InvalidAddress("Expected S3 URL argument")

    match = S3_URL_RE.match(value)
    if not match:
        raise InvalidAddress(f"Not a valid S3 URL: {value}")

    bucket = match.group(1)
    if not bucket:
        raise InvalidAddress(f"S3 URL is missing a bucket name: {value}")

    return RemoteAddress(bucket, match.group(2) or "")


def normalize_key(path: str) -> str:
    """Convert local path separators to ``/`` and strip a single leading one.

    Only the local side is normalized. Object keys are opaque, so a ``\\``
    in a remote key stays part of the name.
    """
    key = path.replace(os.sep, "/")
    if os.altsep:
        key = key.replace(os.altsep, "/")
    if key.startswith("/"):
        key = key[1:]
    return key


class KeyResolver:
    """Maps local paths and remote object keys to relative keys and back.

    Args:
        local_root: Root directory of the local tree
        remote: RemoteAddress of the bucket prefix
        config: Optional ClientConfig (kept for the session that owns it)

    Raises:
        InvalidAddress: For an empty local root or a remote with no bucket
    """

    def __init__(self, local_root, remote: RemoteAddress, config=None):
        if not local_root or not str(local_root).strip():
            raise InvalidAddress("Local root must not be empty")
        if not remote or not remote.bucket:
            raise InvalidAddress("Remote address is missing a bucket name")

        self.local_root = os.path.abspath(os.path.expanduser(str(local_root)))
        self.remote = remote
        self.config = config

        prefix = remote.prefix
        # A non-empty prefix always names a "directory"
        if prefix and not prefix.endswith("/"):
            prefix += "/"
        self.prefix = prefix

    @property
    def bucket(self):
        return self.remote.bucket

    def local_exists(self) -> bool:
        return os.path.isdir(self.local_root)

    def local_to_key(self, path) -> str:
        """Relative key for an absolute (or root-relative) local path."""
        absolute = os.path.abspath(os.path.join(self.local_root, str(path)))
        relative = os.path.relpath(absolute, self.local_root)
        if relative == os.curdir or relative.startswith(os.pardir + os.sep) or relative == os.pardir:
            raise InvalidAddress(f"{path} is not inside {self.local_root}")
        return normalize_key(relative)

    def key_to_local(self, relative_key) -> str:
        """Absolute local path for a relative key."""
        parts = [p for p in relative_key.split("/") if p]
        return os.path.join(self.local_root, *parts)

    def remote_to_key(self, object_key) -> Optional[str]:
        """
        Relative key for a full object key.

        Returns:
            The relative key with a single leading ``/`` stripped, or None
            for keys outside the prefix, for directory markers and for keys
            with empty, ``.`` or ``..`` segments, which have no place in a
            local tree
        """
        if not object_key.startswith(self.prefix) or object_key.endswith("/"):
            return None
        relative = object_key[len(self.prefix):]
        if relative.startswith("/"):
            relative = relative[1:]
        if not relative:
            return None
        if any(part in UNMAPPABLE_SEGMENTS for part in relative.split("/")):
            log.warning("Skipping object %s: key cannot be mapped to a local path", object_key)
            return None
        return relative

    def key_to_remote(self, relative_key) -> str:
        """Full object key for a relative key."""
        return self.prefix + relative_key
