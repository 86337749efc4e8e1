"""
Tests for argument parsing, command handlers and CLI routing.
"""
import signal
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

from conftest import BUCKET, FakeStore, write_tree
from s3cli import cli as cli_module
from s3cli.cli import S3Cli, create_argument_parser, main
from s3cli.models.entry import Entry
from s3cli.modes.base_handler import destination_key
from s3cli.modes.copy_handler import CopyHandler
from s3cli.modes.delete_handler import DeleteHandler
from s3cli.modes.get_handler import GetHandler
from s3cli.modes.list_handler import ListHandler
from s3cli.modes.put_handler import PutHandler
from s3cli.modes.sync_handler import SyncHandler
from s3cli.services.resolver import RemoteAddress
from s3cli.utils.config_loader import ClientConfig


def parse(*argv):
    return create_argument_parser().parse_args(list(argv))


def make_cli(store):
    return SimpleNamespace(config=ClientConfig(concurrency=2), store=store, session=None)


@pytest.fixture(autouse=True)
def keep_sigint(monkeypatch):
    monkeypatch.setattr(signal, "signal", Mock())


class TestArgumentParser:
    """Test subcommands and flags."""

    def test_sync_flags(self):
        args = parse("sync", "./site", "s3://b/www/", "--delete-removed", "-P",
                     "--add-header", "Cache-Control: max-age=60", "--max-sockets", "10",
                     "--insecure", "--no-checksum")
        assert args.command == "sync"
        assert args.delete_removed and args.acl_public and args.insecure and args.no_checksum
        assert args.add_header == ["Cache-Control: max-age=60"]
        assert args.max_sockets == 10

    def test_defaults_leave_config_untouched(self):
        args = parse("ls", "s3://b/")
        assert args.max_sockets is None
        assert args.insecure is None
        assert args.timeout is None
        assert not args.recursive

    def test_acl_flags_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse("put", "f", "s3://b/k", "--acl-public", "--acl-private")


class TestMain:
    """Test top-level routing."""

    def test_help(self, capsys):
        assert main(["help"]) == 0
        out = capsys.readouterr().out
        assert "Usage: s3cli (command) (command arguments)" in out
        assert "sync" in out

    def test_no_command(self):
        assert main([]) == 1

    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["ls", "s3://b/", "--config", str(tmp_path / "none")]) == 1
        assert "formatted the same as for s3cmd" in capsys.readouterr().out

    def test_routes_to_handler_with_store(self, capsys):
        store = FakeStore()
        store.put("top.txt", "t")
        creds = {"access_key": "a", "secret_key": "b", "endpoint_url": None,
                 "use_https": True, "region": None}
        with patch.object(cli_module.ConfigLoader, "load_s3cfg", return_value=creds), \
                patch.object(cli_module, "S3StoreClient", return_value=store) as client_cls:
            assert main(["ls", f"s3://{BUCKET}/", "--max-sockets", "5", "--quiet"]) == 0

        config = client_cls.call_args[0][0]
        assert config.max_sockets == 5
        assert config.access_key == "a"
        assert "top.txt" in capsys.readouterr().out


class TestSignalHandler:
    """Test Ctrl+C handling."""

    def test_first_interrupt_cancels_second_exits(self):
        app = S3Cli()
        app.session = Mock()
        app.signal_handler(signal.SIGINT, None)
        app.session.cancel.assert_called_once_with()
        with pytest.raises(SystemExit) as exc_info:
            app.signal_handler(signal.SIGINT, None)
        assert exc_info.value.code == 130


class TestSyncHandler:
    """Test the sync command end to end against the fake store."""

    def test_requires_exactly_one_remote_side(self, capsys):
        args = parse("sync", "a", "b")
        assert SyncHandler(make_cli(FakeStore()), args).execute() == 1
        assert "one target must be from S3" in capsys.readouterr().out

        args = parse("sync", "s3://b/x", "s3://b/y")
        assert SyncHandler(make_cli(FakeStore()), args).execute() == 1

    def test_upload_with_headers_and_acl(self, local_tree):
        write_tree(local_tree, {"index.html": "<html/>"})
        store = FakeStore()
        args = parse("sync", str(local_tree), f"s3://{BUCKET}/www", "--quiet", "-P",
                     "--add-header", "Cache-Control: max-age=60")

        assert SyncHandler(make_cli(store), args).execute() == 0
        assert store.extra_args["www/index.html"] == {
            "ACL": "public-read",
            "CacheControl": "max-age=60",
            "ContentType": "text/html",
        }

    def test_download_direction(self, tmp_path):
        store = FakeStore()
        store.put("www/a.txt", "a")
        args = parse("sync", f"s3://{BUCKET}/www/", str(tmp_path / "out"), "--quiet")
        assert SyncHandler(make_cli(store), args).execute() == 0
        assert (tmp_path / "out" / "a.txt").read_bytes() == b"a"

    def test_partial_failure_exit_code(self, local_tree):
        write_tree(local_tree, {"ok.txt": "1", "bad.txt": "2"})
        store = FakeStore(fail_keys={"bad.txt"})
        args = parse("sync", str(local_tree), f"s3://{BUCKET}/", "--quiet")
        assert SyncHandler(make_cli(store), args).execute() == 2

    def test_bad_header(self, local_tree, capsys):
        args = parse("sync", str(local_tree), f"s3://{BUCKET}/", "--add-header", "NoColon")
        assert SyncHandler(make_cli(FakeStore()), args).execute() == 1
        assert "Improperly formatted header" in capsys.readouterr().out

    def test_unsupported_header(self, local_tree):
        args = parse("sync", str(local_tree), f"s3://{BUCKET}/", "--add-header", "X-Bogus: 1")
        assert SyncHandler(make_cli(FakeStore()), args).execute() == 1

    def test_mime_type_flags(self, local_tree):
        write_tree(local_tree, {"data.unknownext": "x", "page.html": "y"})
        store = FakeStore()
        args = parse("sync", str(local_tree), f"s3://{BUCKET}/", "--quiet",
                     "--default-mime-type", "text/plain", "--no-guess-mime-type")
        assert SyncHandler(make_cli(store), args).execute() == 0
        assert store.extra_args["page.html"]["ContentType"] == "text/plain"
        assert store.extra_args["data.unknownext"]["ContentType"] == "text/plain"


class TestListHandler:

    def test_lists_prefixes_and_objects(self, capsys):
        store = FakeStore()
        store.put("logs/a.log", "aa")
        store.put("root.txt", "rrr")
        args = parse("ls", f"s3://{BUCKET}/")
        assert ListHandler(make_cli(store), args).execute() == 0

        lines = capsys.readouterr().out.splitlines()
        assert "DIR logs/" in lines
        assert any(line.endswith(" 3 root.txt") for line in lines)

    def test_recursive(self, capsys):
        store = FakeStore()
        store.put("logs/a.log", "aa")
        args = parse("ls", "--recursive", f"s3://{BUCKET}/")
        assert ListHandler(make_cli(store), args).execute() == 0
        out = capsys.readouterr().out
        assert "DIR" not in out
        assert " 2 logs/a.log" in out

    def test_invalid_url(self, capsys):
        args = parse("ls", "not-a-url")
        assert ListHandler(make_cli(FakeStore()), args).execute() == 1
        assert "Not a valid S3 URL" in capsys.readouterr().out


class TestSingleObjectHandlers:
    """Test put, get, cp, mv and del."""

    def test_put_into_directory_key(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("notes")
        store = FakeStore()
        args = parse("put", str(path), f"s3://{BUCKET}/docs/", "--quiet")
        assert PutHandler(make_cli(store), args).execute() == 0
        assert store.data("docs/notes.txt") == b"notes"
        assert store.extra_args["docs/notes.txt"] == {"ContentType": "text/plain"}

    def test_put_missing_file(self, tmp_path):
        args = parse("put", str(tmp_path / "missing"), f"s3://{BUCKET}/k", "--quiet")
        assert PutHandler(make_cli(FakeStore()), args).execute() == 1

    def test_get_default_destination(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        store = FakeStore()
        store.put("docs/readme.md", "# hi")
        args = parse("get", f"s3://{BUCKET}/docs/readme.md", "--quiet")
        assert GetHandler(make_cli(store), args).execute() == 0
        assert (tmp_path / "readme.md").read_text() == "# hi"

    def test_get_missing_object(self, tmp_path, capsys):
        args = parse("get", f"s3://{BUCKET}/nope.txt", str(tmp_path / "x"), "--quiet")
        assert GetHandler(make_cli(FakeStore()), args).execute() == 1
        assert "No such object" in capsys.readouterr().out

    def test_cp_and_mv(self):
        store = FakeStore()
        store.put("a/one.txt", "1")
        args = parse("cp", f"s3://{BUCKET}/a/one.txt", f"s3://{BUCKET}/b/", "--quiet")
        assert CopyHandler(make_cli(store), args).execute() == 0
        assert store.keys() == ["a/one.txt", "b/one.txt"]

        args = parse("mv", f"s3://{BUCKET}/b/one.txt", f"s3://{BUCKET}/c/renamed.txt", "--quiet")
        assert CopyHandler(make_cli(store), args, move=True).execute() == 0
        assert store.keys() == ["a/one.txt", "c/renamed.txt"]

    def test_cp_requires_remote_urls(self, tmp_path):
        args = parse("cp", str(tmp_path), f"s3://{BUCKET}/b/")
        assert CopyHandler(make_cli(FakeStore()), args).execute() == 1

    def test_del_recursive(self):
        store = FakeStore()
        store.put("tmp/1", "x")
        store.put("tmp/2", "x")
        args = parse("del", "--recursive", f"s3://{BUCKET}/tmp/", "--quiet")
        assert DeleteHandler(make_cli(store), args).execute() == 0
        assert store.keys() == []

    def test_destination_key(self):
        assert destination_key(RemoteAddress("b", ""), "f") == "f"
        assert destination_key(RemoteAddress("b", "dir/"), "f") == "dir/f"
        assert destination_key(RemoteAddress("b", "exact.txt"), "f") == "exact.txt"

    def test_upload_params_without_flags(self, tmp_path):
        args = parse("put", "x.json", f"s3://{BUCKET}/k")
        params = PutHandler(make_cli(FakeStore()), args).upload_params()
        assert params(Entry.local("x.json", str(tmp_path / "x.json"))) == {
            "ContentType": "application/json"}
