# tests/conftest.py
import hashlib
import logging
import os
import threading
from datetime import datetime, timezone

import pytest

from s3cli.errors import ListingFailed
from s3cli.models.remote import ListingPage, RemoteObject
from s3cli.utils.config_loader import ClientConfig

BUCKET = "test-bucket"
LAST_MODIFIED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class InjectedFailure(IOError):
    """Raised by FakeStore for keys listed in ``fail_keys``."""


class FakeStore:
    """In-memory stand-in for S3StoreClient.

    Args:
        page_size: Objects per listing page
        fail_on_page: 1-based listing page that raises ListingFailed
        fail_keys: Object keys whose transfer or deletion raises
    """

    def __init__(self, page_size=1000, fail_on_page=None, fail_keys=()):
        self.page_size = page_size
        self.fail_on_page = fail_on_page
        self.fail_keys = set(fail_keys)
        self.objects = {}
        self.extra_args = {}
        self.uploads = []
        self.downloads = []
        self.copies = []
        self.deletes = []
        self.events = []
        self.pages_served = 0
        self._lock = threading.Lock()

    def put(self, key, data, bucket=BUCKET):
        if isinstance(data, str):
            data = data.encode()
        self.objects[(bucket, key)] = data

    def data(self, key, bucket=BUCKET):
        return self.objects[(bucket, key)]

    def keys(self, bucket=BUCKET):
        return sorted(k for b, k in self.objects if b == bucket)

    def _check(self, key):
        if key in self.fail_keys:
            raise InjectedFailure(f"injected failure for {key}")

    def _record(self, key, data):
        return RemoteObject(key, len(data), LAST_MODIFIED, hashlib.md5(data).hexdigest())

    # ── Store client interface ─────────────────────────────────────────

    def list_prefix(self, bucket, prefix="", delimiter=None, page_size=None):
        keys = [k for k in self.keys(bucket) if k.startswith(prefix or "")]
        prefixes = []
        if delimiter:
            direct = []
            for key in keys:
                rest = key[len(prefix or ""):]
                if delimiter in rest:
                    common = (prefix or "") + rest.split(delimiter, 1)[0] + delimiter
                    if common not in prefixes:
                        prefixes.append(common)
                else:
                    direct.append(key)
            keys = direct

        size = page_size or self.page_size
        chunks = [keys[i:i + size] for i in range(0, len(keys), size)] or [[]]
        for page_no, chunk in enumerate(chunks, start=1):
            if self.fail_on_page == page_no:
                raise ListingFailed(f"page {page_no} failed")
            self.pages_served += 1
            objects = [self._record(k, self.objects[(bucket, k)]) for k in chunk]
            yield ListingPage(objects, prefixes if page_no == 1 else [])

    def head_object(self, bucket, key):
        data = self.objects.get((bucket, key))
        if data is None:
            return None
        return self._record(key, data)

    def upload_file(self, local_path, bucket, key, extra_args=None, callback=None):
        self._check(key)
        with open(local_path, "rb") as f:
            data = f.read()
        if callback:
            callback(len(data))
        with self._lock:
            self.objects[(bucket, key)] = data
            self.extra_args[key] = extra_args
            self.uploads.append(key)
            self.events.append(("upload", key))

    def download_file(self, bucket, key, local_path, callback=None):
        self._check(key)
        data = self.objects[(bucket, key)]
        parent = os.path.dirname(str(local_path))
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(local_path, "wb") as f:
            f.write(data)
        if callback:
            callback(len(data))
        with self._lock:
            self.downloads.append(key)
            self.events.append(("download", key))

    def copy_object(self, source_bucket, source_key, bucket, key, extra_args=None, callback=None):
        self._check(source_key)
        data = self.objects[(source_bucket, source_key)]
        if callback:
            callback(len(data))
        with self._lock:
            self.objects[(bucket, key)] = data
            self.extra_args[key] = extra_args
            self.copies.append((source_key, key))
            self.events.append(("copy", key))

    def iter_object_chunks(self, bucket, key, chunk_size=1024 * 1024):
        data = self.objects[(bucket, key)]
        for i in range(0, len(data), chunk_size):
            yield data[i:i + chunk_size]

    def delete_object(self, bucket, key):
        self._check(key)
        with self._lock:
            self.objects.pop((bucket, key), None)
            self.deletes.append(key)
            self.events.append(("delete", key))


def write_tree(root, files):
    """Create ``{relative path: content}`` under *root*."""
    for relative, content in files.items():
        path = os.path.join(str(root), *relative.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content.encode() if isinstance(content, str) else content)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client_config():
    return ClientConfig(concurrency=4)


@pytest.fixture
def local_tree(tmp_path):
    root = tmp_path / "local"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers bound to a captured stream once the test is over."""
    yield
    logger = logging.getLogger("s3cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
