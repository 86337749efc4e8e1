"""
Tests for S3 URL parsing and path/key resolution.
"""
import os

import pytest

from s3cli.errors import InvalidAddress
from s3cli.services.resolver import (KeyResolver, RemoteAddress, is_s3_url,
                                     normalize_key, parse_s3_url)


class TestParseS3Url:
    """Test s3:// URL parsing."""

    def test_bucket_and_prefix(self):
        assert parse_s3_url("s3://bucket/some/prefix") == RemoteAddress("bucket", "some/prefix")

    def test_uppercase_scheme(self):
        assert parse_s3_url("S3://bucket/key.txt") == RemoteAddress("bucket", "key.txt")

    def test_bucket_only(self):
        assert parse_s3_url("s3://bucket") == RemoteAddress("bucket", "")
        assert parse_s3_url("s3://bucket/") == RemoteAddress("bucket", "")

    @pytest.mark.parametrize("value", ["", None, "bucket/key", "http://bucket/key", "s3://", "s3:///key"])
    def test_invalid_addresses(self, value):
        with pytest.raises(InvalidAddress):
            parse_s3_url(value)

    def test_is_s3_url(self):
        assert is_s3_url("s3://b/k")
        assert not is_s3_url("./local/dir")
        assert not is_s3_url("")

    def test_str_round_trip(self):
        assert str(RemoteAddress("b", "p/")) == "s3://b/p/"


class TestKeyResolver:
    """Test mapping between local paths, relative keys and object keys."""

    def test_empty_local_root_rejected(self):
        with pytest.raises(InvalidAddress):
            KeyResolver("", RemoteAddress("b", ""))

    def test_missing_bucket_rejected(self, tmp_path):
        with pytest.raises(InvalidAddress):
            KeyResolver(str(tmp_path), RemoteAddress("", "p"))

    def test_prefix_is_treated_as_directory(self, tmp_path):
        resolver = KeyResolver(str(tmp_path), RemoteAddress("b", "photos"))
        assert resolver.prefix == "photos/"
        assert resolver.key_to_remote("a/b.jpg") == "photos/a/b.jpg"

    def test_local_round_trip(self, tmp_path):
        resolver = KeyResolver(str(tmp_path), RemoteAddress("b", ""))
        path = os.path.join(str(tmp_path), "dir", "file.txt")
        key = resolver.local_to_key(path)
        assert key == "dir/file.txt"
        assert resolver.key_to_local(key) == path

    def test_remote_round_trip(self, tmp_path):
        resolver = KeyResolver(str(tmp_path), RemoteAddress("b", "root/"))
        assert resolver.remote_to_key("root/x/y.txt") == "x/y.txt"
        assert resolver.key_to_remote("x/y.txt") == "root/x/y.txt"

    def test_keys_outside_prefix_and_markers_are_ignored(self, tmp_path):
        resolver = KeyResolver(str(tmp_path), RemoteAddress("b", "root"))
        assert resolver.remote_to_key("rootless/file") is None
        assert resolver.remote_to_key("root/dir/") is None
        assert resolver.remote_to_key("root/") is None

    def test_case_is_preserved(self, tmp_path):
        resolver = KeyResolver(str(tmp_path), RemoteAddress("b", "Mixed"))
        assert resolver.remote_to_key("Mixed/ReadMe.TXT") == "ReadMe.TXT"
        assert resolver.remote_to_key("mixed/ReadMe.TXT") is None

    def test_path_outside_root_rejected(self, tmp_path):
        resolver = KeyResolver(str(tmp_path / "inner"), RemoteAddress("b", ""))
        with pytest.raises(InvalidAddress):
            resolver.local_to_key(str(tmp_path / "other.txt"))

    def test_normalize_key(self):
        assert normalize_key("/a/b") == "a/b"
        assert normalize_key(os.path.join("a", "b", "c")) == "a/b/c"

    def test_remote_keys_are_not_rewritten(self, tmp_path):
        resolver = KeyResolver(str(tmp_path), RemoteAddress("b", "p"))
        assert resolver.remote_to_key("p/a\\b.txt") == "a\\b.txt"
        assert resolver.remote_to_key("p/a/b.txt") == "a/b.txt"

    def test_unmappable_remote_keys_are_ignored(self, tmp_path):
        resolver = KeyResolver(str(tmp_path), RemoteAddress("b", ""))
        assert resolver.remote_to_key("/x") == "x"
        assert resolver.remote_to_key("a//b") is None
        assert resolver.remote_to_key("a/../b") is None
        assert resolver.remote_to_key("x") == "x"
