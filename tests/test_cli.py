"""Tests for the click CLI and the JSON-RPC unwrapping of tool results."""
import json

import pytest
from click.testing import CliRunner

from doc_lock.cli import commands
from doc_lock.client.mcp_client import _unwrap


@pytest.fixture
def cli_transport(monkeypatch, transport):
    """Remplace MCPClient par le transport en mémoire."""
    monkeypatch.setattr(commands, "MCPClient", lambda url, token: transport)
    return transport


def invoke(*args):
    return CliRunner().invoke(commands.cli, ["--url", "http://test", "--token", "t", *args])


class TestLockCommands:

    def test_acquire_then_conflict(self, cli_transport):
        first = invoke("lock", "acquire", "doc1", "--user", "Ana", "--session", "s1")
        assert first.exit_code == 0
        assert "Ana" in first.output

        second = invoke("lock", "acquire", "doc1", "--user", "Beto")
        assert second.exit_code == 0
        assert "verrouillé par Ana" in second.output

    def test_acquire_generates_session(self, cli_transport):
        invoke("lock", "acquire", "doc1", "--user", "Ana")
        name, arguments = cli_transport.calls[-1]
        assert name == "lock_acquire"
        assert arguments["session_id"].startswith("session_")

    def test_check_json(self, cli_transport):
        result = invoke("lock", "check", "doc1", "--json")
        assert json.loads(result.output) == {"status": "ok", "locked": False}

    def test_renew_wrong_session_shows_error(self, cli_transport):
        invoke("lock", "acquire", "doc1", "--user", "Ana", "--session", "s1")
        result = invoke("lock", "renew", "doc1", "--session", "s2")
        assert "another session" in result.output

    def test_release_and_list(self, cli_transport, storage):
        invoke("lock", "acquire", "doc1", "--user", "Ana", "--session", "s1")
        assert "doc1" in invoke("lock", "list").output
        invoke("lock", "release", "doc1", "--session", "s1")
        assert storage.data == {}

    def test_transport_failure(self, monkeypatch):
        class Down:
            async def call_tool(self, name, arguments):
                raise ConnectionError("refused")

        monkeypatch.setattr(commands, "MCPClient", lambda url, token: Down())
        result = invoke("lock", "check", "doc1")
        assert result.exit_code == 0
        assert "Connexion impossible" in result.output


class TestUnwrap:

    def test_text_content_is_decoded(self):
        response = {"result": {"content": [{"type": "text", "text": '{"status": "ok", "locked": false}'}]}}
        assert _unwrap(response) == {"status": "ok", "locked": False}

    def test_jsonrpc_error(self):
        assert _unwrap({"error": {"code": -32602, "message": "bad params"}}) == {
            "status": "error", "message": "bad params",
        }

    def test_non_json_text(self):
        response = {"result": {"content": [{"type": "text", "text": "boom"}], "isError": True}}
        assert _unwrap(response) == {"status": "error", "raw": "boom"}
