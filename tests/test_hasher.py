"""
Tests for content hashing.
"""
import hashlib

import pytest

from s3cli.errors import LocalReadError
from s3cli.services.hasher import ContentHasher, guess_part_size, parse_multipart_etag
from s3cli.services.progress import BYTES_HASHED, ProgressAggregator

MIB = 1024 * 1024


class TestEtagHelpers:

    def test_parse_multipart_etag(self):
        assert parse_multipart_etag("d41d8cd98f00b204e9800998ecf8427e-12") == 12
        assert parse_multipart_etag('"d41d8cd98f00b204e9800998ecf8427e-2"') == 2
        assert parse_multipart_etag("d41d8cd98f00b204e9800998ecf8427e") is None
        assert parse_multipart_etag(None) is None

    def test_guess_part_size(self):
        assert guess_part_size(20 * MIB, 3) == 8 * MIB
        assert guess_part_size(20 * MIB, 4) == 5 * MIB
        assert guess_part_size(100, 1) == 100


class TestContentHasher:
    """Test digests and bytes_hashed reporting."""

    def test_md5_digest_reports_bytes(self, tmp_path):
        path = tmp_path / "f.bin"
        path.write_bytes(b"hello world")
        aggregator = ProgressAggregator()

        digest = ContentHasher(aggregator, chunk_size=4).file_digest(str(path))
        assert digest == hashlib.md5(b"hello world").hexdigest()
        assert aggregator.snapshot().amount(BYTES_HASHED) == 11

    def test_multipart_digest(self, tmp_path):
        data = b"a" * 10 + b"b" * 10 + b"c" * 5
        path = tmp_path / "f.bin"
        path.write_bytes(data)
        parts = [data[0:10], data[10:20], data[20:25]]
        expected = hashlib.md5(b"".join(hashlib.md5(p).digest() for p in parts)).hexdigest()

        hasher = ContentHasher(chunk_size=4, part_size=10)
        digest = hasher.file_digest(str(path), etag_hint="0" * 32 + "-3", size=len(data))
        assert digest == f"{expected}-3"

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(LocalReadError):
            ContentHasher().file_digest(str(tmp_path / "missing"))

    def test_stream_digest(self):
        assert ContentHasher().stream_digest([b"ab", b"c"]) == hashlib.md5(b"abc").hexdigest()
