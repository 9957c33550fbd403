"""
Tests for the command-line interface.

Tests cover:
- KEY=VALUE argument parsing
- Each subcommand run against the in-memory daemon
- Exit status for failures
"""
import io
import orjson
import pytest

from mock_daemon import COLLECTION_ROOT
from secret_service import DuplicateAttributeError, NoResultError
from secret_service.__main__ import main, parse_pairs, run, set_args


def parse(*argv):
    return set_args().parse_args(list(argv))


class TestParsePairs:
    """Tests for parse_pairs."""

    def test_pairs(self):
        assert parse_pairs(["a=1", "b=x=y"]) == [("a", "1"), ("b", "x=y")]

    def test_empty_value(self):
        assert parse_pairs(["a="]) == [("a", "")]

    @pytest.mark.parametrize("value", ["novalue", "=1"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_pairs([value])


class TestCommands:
    """Tests for run() with each subcommand."""

    async def test_collections(self, service, capsys):
        assert await run(parse("collections"), service) == 0
        data = orjson.loads(capsys.readouterr().out)
        assert data == [{
            "path": COLLECTION_ROOT + "login", "label": "Login", "locked": False,
        }]

    async def test_search(self, daemon, service, capsys):
        path = daemon.add_item(COLLECTION_ROOT + "login", "GitHub",
                               {"service": "github", "user": "alice"}, b"pw")
        await run(parse("search", "service=github"), service)
        (found,) = orjson.loads(capsys.readouterr().out)
        assert found["path"] == path
        assert found["label"] == "GitHub"
        assert found["attributes"] == {"service": "github", "user": "alice"}

    async def test_lookup(self, daemon, service, capsysbinary):
        daemon.add_item(COLLECTION_ROOT + "login", "GitHub", {"service": "github"}, b"s3cret")
        await run(parse("lookup", "service=github"), service)
        assert capsysbinary.readouterr().out == b"s3cret"

    async def test_lookup_no_match(self, service):
        with pytest.raises(NoResultError):
            await run(parse("lookup", "service=none"), service)

    async def test_store(self, daemon, service, capsys):
        args = parse("store", "--label", "GitHub", "service=github")
        await run(args, service, stdin=io.BytesIO(b"from stdin"))
        path = orjson.loads(capsys.readouterr().out)["path"]
        assert daemon.items[path].secret == b"from stdin"
        assert daemon.items[path].label == "GitHub"

    async def test_store_unlocks_default(self, daemon, service, capsys):
        daemon.collections[COLLECTION_ROOT + "login"].locked = True
        args = parse("store", "--label", "x", "k=v")
        await run(args, service, stdin=io.BytesIO(b"v"))
        assert daemon.methods_called("Prompt")
        assert not daemon.collections[COLLECTION_ROOT + "login"].locked

    async def test_store_duplicate_keys(self, service):
        args = parse("store", "--label", "x", "k=1", "k=2")
        with pytest.raises(DuplicateAttributeError):
            await run(args, service, stdin=io.BytesIO(b"v"))

    async def test_clear(self, daemon, service, capsys):
        first = await service.create_collection("Test")
        second = await service.create_collection("Test")
        capsys.readouterr()
        await run(parse("clear", "--label", "Test"), service)
        deleted = orjson.loads(capsys.readouterr().out)["deleted"]
        assert sorted(deleted) == sorted([first.path, second.path])
        assert list(daemon.collections) == [COLLECTION_ROOT + "login"]


class TestMain:
    """Tests for the main() entry point."""

    def test_missing_command(self):
        with pytest.raises(SystemExit):
            main([])

    def test_bad_pair_exit_status(self, monkeypatch, capsys):
        async def fake_amain(args):
            parse_pairs(args.attributes)
            return 0
        monkeypatch.setattr("secret_service.__main__.amain", fake_amain)
        assert main(["search", "broken"]) == 1
        assert "Expected KEY=VALUE" in capsys.readouterr().err
