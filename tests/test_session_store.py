import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from models.session_store import (
    MemorySessionStore,
    RedisSessionStore,
    access_key,
    build_session_store,
    refresh_key,
)
from services.errors import StorageFailure


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class RecordingRedis:
    """Stands in for redis.Redis; records calls, optionally failing."""

    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []
        self.data = {}

    def _maybe_fail(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    def set(self, key, value, ex=None):
        self._maybe_fail()
        self.calls.append(("set", key, value, ex))
        self.data[key] = value
        return True

    def get(self, key):
        self._maybe_fail()
        return self.data.get(key)

    def delete(self, *keys):
        self._maybe_fail()
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

    def ping(self):
        self._maybe_fail()
        return True


def test_keys_are_namespaced():
    assert access_key("u1") == "access_token:u1"
    assert refresh_key("u1") == "refresh_token:u1"


class TestMemorySessionStore:
    def test_set_overwrites(self):
        store = MemorySessionStore()
        store.set("k", "old", 60)
        store.set("k", "new", 60)
        assert store.get("k") == "new"

    def test_entry_expires(self):
        clock = FakeClock()
        store = MemorySessionStore(clock=clock)
        store.set("k", "v", 10)
        clock.now += 9
        assert store.get("k") == "v"
        clock.now += 1
        assert store.get("k") is None

    def test_overwrite_resets_ttl(self):
        clock = FakeClock()
        store = MemorySessionStore(clock=clock)
        store.set("k", "v1", 10)
        clock.now += 8
        store.set("k", "v2", 10)
        clock.now += 8
        assert store.get("k") == "v2"

    def test_set_sweeps_expired_entries(self):
        clock = FakeClock()
        store = MemorySessionStore(clock=clock, sweep_interval=60)
        for i in range(5):
            store.set(f"access_token:u{i}", "tok", 10)
        assert store.size() == 5
        clock.now += 61
        store.set("access_token:fresh", "tok", 10)
        assert store.size() == 1
        assert store.get("access_token:fresh") == "tok"

    def test_no_sweep_before_interval(self):
        clock = FakeClock()
        store = MemorySessionStore(clock=clock, sweep_interval=60)
        store.set("a", "1", 10)
        clock.now += 30
        store.set("b", "2", 10)
        assert store.size() == 2

    def test_delete(self):
        store = MemorySessionStore()
        store.set("a", "1", 60)
        store.set("b", "2", 60)
        assert store.delete("a", "b", "c") == 2
        assert store.get("a") is None


class TestRedisSessionStore:
    def test_set_uses_expiry(self):
        client = RecordingRedis()
        store = RedisSessionStore("redis://unused", client=client)
        store.set("access_token:u1", "tok", 900)
        assert client.calls == [("set", "access_token:u1", "tok", 900)]
        assert store.get("access_token:u1") == "tok"

    def test_errors_become_storage_failure(self):
        store = RedisSessionStore("redis://unused", client=RecordingRedis(fail=True))
        with pytest.raises(StorageFailure):
            store.set("k", "v", 10)
        with pytest.raises(StorageFailure):
            store.get("k")
        with pytest.raises(StorageFailure):
            store.delete("k")
        assert store.ping() is False


def test_build_session_store_memory():
    assert isinstance(build_session_store({"SESSION_STORE": "memory"}), MemorySessionStore)


def test_build_session_store_unknown():
    with pytest.raises(ValueError):
        build_session_store({"SESSION_STORE": "carrier-pigeon"})
