"""Tests for the lease protocol: inspect, acquire, renew, release."""
import asyncio

import pytest

from doc_lock.core.lock_store import LockStore, key_for
from doc_lock.core.locks import LockService
from doc_lock.core.memory import MemoryStorage
from doc_lock.core.models import parse_timestamp

from conftest import FakeClock, TTL


def run(coro):
    return asyncio.run(coro)


class TestInspect:
    """Inspect reports state and reaps expired leases."""

    def test_absent(self, service):
        assert run(service.inspect("doc1")) == {"status": "ok", "locked": False}

    def test_live_lock_reports_holder(self, service):
        run(service.acquire("doc1", "Ana", "s1"))
        result = run(service.inspect("doc1"))
        assert result["locked"] is True
        assert result["userName"] == "Ana"
        assert result["timestamp"] == result["lastHeartbeat"]
        assert "sessionId" not in result

    def test_expired_lock_is_reaped(self, service, clock, storage):
        run(service.acquire("doc1", "Ana", "s1"))
        clock.advance(minutes=6)
        result = run(service.inspect("doc1"))
        assert result == {"status": "ok", "locked": False, "wasExpired": True}
        assert key_for("doc1") not in storage.data

    def test_expiry_boundary_is_exclusive(self, service, clock):
        """A lease is live only while now - lastHeartbeat < TTL."""
        run(service.acquire("doc1", "Ana", "s1"))
        clock.advance(seconds=TTL.total_seconds() - 1)
        assert run(service.inspect("doc1"))["locked"] is True
        clock.advance(seconds=1)
        assert run(service.inspect("doc1")).get("wasExpired") is True

    def test_missing_document_id(self, service):
        assert run(service.inspect(""))["status"] == "invalid"


class TestAcquire:
    """Acquire creates, refuses, or replaces an expired lease."""

    def test_second_user_gets_conflict(self, service):
        first = run(service.acquire("doc1", "Ana", "s1"))
        assert first["ok"] is True
        assert first["lock"]["userName"] == "Ana"
        assert first["lock"]["sessionId"] == "s1"

        second = run(service.acquire("doc1", "Beto", "s2"))
        assert second["status"] == "locked"
        assert second["locked"] is True
        assert second["userName"] == "Ana"
        assert second["timestamp"] == first["lock"]["timestamp"]

    def test_expired_lease_can_be_taken(self, service, clock):
        run(service.acquire("doc1", "Ana", "s1"))
        clock.advance(minutes=6)
        assert run(service.inspect("doc1")) == {"status": "ok", "locked": False, "wasExpired": True}
        result = run(service.acquire("doc1", "Beto", "s2"))
        assert result["ok"] is True
        assert result["lock"]["userName"] == "Beto"

    def test_acquire_overwrites_expired_without_inspect(self, service, clock, storage):
        run(service.acquire("doc1", "Ana", "s1"))
        clock.advance(minutes=5)
        result = run(service.acquire("doc1", "Beto", "s2"))
        assert result["ok"] is True
        assert storage.data[key_for("doc1")]["sessionId"] == "s2"

    def test_same_session_cannot_reacquire_live_lease(self, service):
        run(service.acquire("doc1", "Ana", "s1"))
        assert run(service.acquire("doc1", "Ana", "s1"))["status"] == "locked"

    def test_different_documents_are_independent(self, service):
        assert run(service.acquire("doc1", "Ana", "s1"))["ok"] is True
        assert run(service.acquire("doc2", "Beto", "s2"))["ok"] is True

    def test_sequential_acquires_have_single_owner(self, service):
        results = [run(service.acquire("doc1", f"user{i}", f"s{i}")) for i in range(5)]
        assert sum(1 for r in results if r.get("ok")) == 1

    @pytest.mark.parametrize("user_name,session_id", [("", "s1"), ("Ana", ""), ("", "")])
    def test_validation(self, service, storage, user_name, session_id):
        result = run(service.acquire("doc1", user_name, session_id))
        assert result["status"] == "invalid"
        assert storage.data == {}

    def test_corrupt_record_is_replaced(self, service, storage):
        storage.data[key_for("doc1")] = {"userName": "Ana"}
        assert run(service.acquire("doc1", "Beto", "s2"))["ok"] is True

    def test_timestamps_are_iso8601(self, service, clock):
        lock = run(service.acquire("doc1", "Ana", "s1"))["lock"]
        assert lock["timestamp"].endswith("Z")
        assert parse_timestamp(lock["timestamp"]) == clock.now


class TestRenew:
    """Renew extends the lease for the owner only."""

    def test_wrong_session_then_owner(self, service, clock, storage):
        acquired = run(service.acquire("doc1", "Ana", "s1"))["lock"]
        clock.advance(seconds=30)

        forbidden = run(service.renew("doc1", "s2"))
        assert forbidden["status"] == "forbidden"
        assert storage.data[key_for("doc1")] == acquired

        renewed = run(service.renew("doc1", "s1"))
        assert renewed["ok"] is True
        assert parse_timestamp(renewed["lock"]["lastHeartbeat"]) > parse_timestamp(acquired["lastHeartbeat"])
        assert renewed["lock"]["timestamp"] == acquired["timestamp"]
        assert renewed["lock"]["userName"] == "Ana"

    def test_renew_extends_liveness(self, service, clock):
        run(service.acquire("doc1", "Ana", "s1"))
        clock.advance(minutes=4)
        run(service.renew("doc1", "s1"))
        clock.advance(minutes=4)
        assert run(service.inspect("doc1"))["locked"] is True

    def test_renew_in_same_millisecond_still_advances(self, service):
        acquired = run(service.acquire("doc1", "Ana", "s1"))["lock"]
        first = run(service.renew("doc1", "s1"))["lock"]["lastHeartbeat"]
        second = run(service.renew("doc1", "s1"))["lock"]["lastHeartbeat"]
        assert parse_timestamp(acquired["lastHeartbeat"]) < parse_timestamp(first) < parse_timestamp(second)

    def test_renew_without_lock(self, service):
        result = run(service.renew("doc1", "s1"))
        assert result["status"] == "not_found"
        assert result["ok"] is False

    def test_renew_after_takeover_is_forbidden(self, service, clock):
        run(service.acquire("doc1", "Ana", "s1"))
        clock.advance(minutes=6)
        run(service.acquire("doc1", "Beto", "s2"))
        assert run(service.renew("doc1", "s1"))["status"] == "forbidden"

    def test_renew_after_reap_is_not_found(self, service, clock):
        run(service.acquire("doc1", "Ana", "s1"))
        clock.advance(minutes=6)
        run(service.inspect("doc1"))
        assert run(service.renew("doc1", "s1"))["status"] == "not_found"

    def test_owner_revives_expired_unreaped_lease(self, service, clock):
        run(service.acquire("doc1", "Ana", "s1"))
        clock.advance(minutes=6)
        assert run(service.renew("doc1", "s1"))["ok"] is True
        assert run(service.inspect("doc1"))["locked"] is True

    def test_missing_session(self, service):
        assert run(service.renew("doc1", ""))["status"] == "invalid"


class TestRelease:
    """Release deletes the owner's lease and is idempotent."""

    def test_release_by_owner(self, service, storage):
        run(service.acquire("doc1", "Ana", "s1"))
        assert run(service.release("doc1", "s1"))["ok"] is True
        assert storage.data == {}
        assert run(service.inspect("doc1"))["locked"] is False

    def test_release_absent_is_noop(self, service):
        result = run(service.release("doc1", "s1"))
        assert result["ok"] is True
        assert result["status"] == "ok"

    def test_release_twice(self, service):
        run(service.acquire("doc1", "Ana", "s1"))
        run(service.release("doc1", "s1"))
        assert run(service.release("doc1", "s1"))["ok"] is True

    def test_release_by_other_session_is_forbidden(self, service, storage):
        run(service.acquire("doc1", "Ana", "s1"))
        before = dict(storage.data)
        result = run(service.release("doc1", "s2"))
        assert result["status"] == "forbidden"
        assert storage.data == before

    def test_same_user_name_does_not_grant_ownership(self, service):
        run(service.acquire("doc1", "Ana", "s1"))
        assert run(service.release("doc1", "s2"))["status"] == "forbidden"

    def test_release_then_other_user_acquires(self, service):
        run(service.acquire("doc1", "Ana", "s1"))
        run(service.release("doc1", "s1"))
        assert run(service.acquire("doc1", "Beto", "s2"))["ok"] is True


class ReadBarrierStorage(MemoryStorage):
    """Holds every read until `readers` reads are in flight, like a lagging replica."""

    def __init__(self, readers):
        super().__init__()
        self._readers = readers
        self._arrived = 0
        self._all_read = None

    async def get_json(self, key):
        if self._all_read is None:
            self._all_read = asyncio.Event()
        value = await super().get_json(key)
        self._arrived += 1
        if self._arrived >= self._readers:
            self._all_read.set()
        await self._all_read.wait()
        return value


class TestAcquireRace:
    """Without compare-and-swap, two interleaved acquires both succeed."""

    def test_interleaved_acquires_both_succeed_and_loser_finds_out_on_renew(self):
        storage = ReadBarrierStorage(readers=2)
        service = LockService(store=LockStore(storage), ttl=TTL, clock=FakeClock())

        async def scenario():
            return await asyncio.gather(
                service.acquire("doc1", "Ana", "s1"),
                service.acquire("doc1", "Beto", "s2"),
            )

        first, second = run(scenario())
        assert first["ok"] is True
        assert second["ok"] is True

        winner = storage.data[key_for("doc1")]["sessionId"]
        loser = "s1" if winner == "s2" else "s2"
        assert run(service.renew("doc1", loser))["status"] == "forbidden"
        assert run(service.renew("doc1", winner))["ok"] is True
