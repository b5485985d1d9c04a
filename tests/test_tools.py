"""Tests for the MCP tool layer, called the way FastMCP dispatches them."""
import asyncio

import pytest
from mcp.server.fastmcp import FastMCP

from doc_lock.auth.context import current_token_info
from doc_lock.tools import register_all_tools


@pytest.fixture
def tools(global_storage):
    mcp = FastMCP(name="doc-lock-test")
    register_all_tools(mcp)

    def call(name, **arguments):
        fn = mcp._tool_manager.get_tool(name).fn
        return asyncio.run(fn(**arguments))

    return call


@pytest.fixture
def as_admin():
    tok = current_token_info.set({"client_name": "admin", "permissions": ["admin"]})
    yield
    current_token_info.reset(tok)


def test_all_tools_registered(global_storage):
    mcp = FastMCP(name="doc-lock-test")
    assert register_all_tools(mcp) == 9
    names = {tool.name for tool in mcp._tool_manager.list_tools()}
    assert names == {
        "system_health", "system_about",
        "lock_check", "lock_acquire", "lock_renew", "lock_release", "lock_list",
        "admin_clear_locks", "admin_debug_store",
    }


def test_lock_lifecycle(tools, global_storage):
    acquired = tools("lock_acquire", document_id="doc1", user_name="Ana", session_id="s1")
    assert acquired["ok"] is True

    conflict = tools("lock_acquire", document_id="doc1", user_name="Beto", session_id="s2")
    assert conflict["status"] == "locked"
    assert conflict["userName"] == "Ana"

    assert tools("lock_check", document_id="doc1")["locked"] is True
    assert tools("lock_renew", document_id="doc1", session_id="s1")["ok"] is True
    assert tools("lock_list")["count"] == 1
    assert tools("lock_release", document_id="doc1", session_id="s1")["ok"] is True
    assert global_storage.data == {}


def test_storage_failure_becomes_error_dict(tools, global_storage, monkeypatch):
    async def broken(key):
        raise ConnectionError("store unavailable")

    monkeypatch.setattr(global_storage, "get_json", broken)
    result = tools("lock_check", document_id="doc1")
    assert result == {"status": "error", "message": "store unavailable"}


def test_admin_tools_require_operator_key(tools, global_storage):
    tools("lock_acquire", document_id="doc1", user_name="Ana", session_id="s1")
    assert tools("admin_clear_locks", confirm=True)["status"] == "error"
    assert tools("admin_debug_store")["status"] == "error"
    assert len(global_storage.data) == 1


def test_admin_clear_dry_run_then_confirm(tools, global_storage, as_admin):
    tools("lock_acquire", document_id="doc1", user_name="Ana", session_id="s1")
    tools("lock_acquire", document_id="doc2", user_name="Beto", session_id="s2")

    dry = tools("admin_clear_locks")
    assert dry["mode"] == "dry-run"
    assert dry["locksFound"] == 2
    assert len(global_storage.data) == 2

    done = tools("admin_clear_locks", confirm=True)
    assert done["ok"] is True
    assert done["locksRemoved"] == 2
    assert tools("lock_check", document_id="doc1") == {"status": "ok", "locked": False}


def test_admin_debug_store(tools, as_admin):
    tools("lock_acquire", document_id="doc1", user_name="Ana", session_id="s1")
    dump = tools("admin_debug_store")
    assert dump["summary"]["lockKeysFound"] == 1


def test_system_health_with_memory_backend(tools):
    tools("lock_acquire", document_id="doc1", user_name="Ana", session_id="s1")
    health = tools("system_health")
    assert health["status"] == "ok"
    assert health["locks_count"] == 1
    assert health["services"]["storage"]["backend"] == "memory"
