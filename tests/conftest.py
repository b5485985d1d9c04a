"""Shared fixtures: in-memory storage, controllable clock, in-process transport."""
from datetime import datetime, timedelta, timezone

import pytest

from doc_lock.core import directory as directory_module
from doc_lock.core import locks as locks_module
from doc_lock.core import storage as storage_module
from doc_lock.core.directory import LockDirectory
from doc_lock.core.lock_store import LockStore
from doc_lock.core.locks import LockService
from doc_lock.core.memory import MemoryStorage

TTL = timedelta(minutes=5)


class FakeClock:
    """Callable UTC clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class LocalTransport:
    """Routes lock tool calls straight to a LockService, like the MCP tools do."""

    def __init__(self, service, directory=None):
        self.service = service
        self.directory = directory
        self.calls = []

    async def call_tool(self, name, arguments):
        self.calls.append((name, dict(arguments)))
        if name == "lock_check":
            return await self.service.inspect(arguments["document_id"])
        if name == "lock_acquire":
            return await self.service.acquire(
                arguments["document_id"], arguments["user_name"], arguments["session_id"],
            )
        if name == "lock_renew":
            return await self.service.renew(arguments["document_id"], arguments["session_id"])
        if name == "lock_release":
            return await self.service.release(arguments["document_id"], arguments["session_id"])
        if name == "lock_list":
            return await self.directory.list_locks()
        raise ValueError(f"unknown tool {name}")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemoryStorage(page_size=2)


@pytest.fixture
def store(storage):
    return LockStore(storage)


@pytest.fixture
def service(store, clock):
    return LockService(store=store, ttl=TTL, clock=clock)


@pytest.fixture
def directory(store):
    return LockDirectory(store)


@pytest.fixture
def transport(service, directory):
    return LocalTransport(service, directory)


@pytest.fixture
def global_storage(monkeypatch):
    """Points the module singletons used by the MCP tools at a fresh MemoryStorage."""
    mem = MemoryStorage()
    monkeypatch.setattr(storage_module, "_storage", mem)
    monkeypatch.setattr(locks_module, "_lock_service", None)
    monkeypatch.setattr(directory_module, "_directory", None)
    return mem
