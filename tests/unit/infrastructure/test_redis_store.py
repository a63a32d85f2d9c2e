from __future__ import annotations

import sys
from pathlib import Path

import pytest
import redis

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from cuemaster.application.ports.gateway import PersistenceError
from cuemaster.infrastructure.kv import redis_store
from cuemaster.infrastructure.kv.redis_store import RedisKeyValueStore


class FakeRedis:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.fail = False

    def get(self, name: str):
        if self.fail:
            raise redis.ConnectionError("connection refused")
        return self.values.get(name)

    def set(self, name: str, value: str) -> None:
        if self.fail:
            raise redis.ConnectionError("connection refused")
        self.values[name] = value

    def ping(self) -> bool:
        if self.fail:
            raise redis.ConnectionError("connection refused")
        return True


def test_values_are_stored_as_json_under_prefix() -> None:
    client = FakeRedis()
    store = RedisKeyValueStore(client=client)

    store.set("cuemaster_rates", {"Pool": 60000, "billingBlock": 15})

    assert client.values["cuemaster:cuemaster_rates"] == '{"Pool": 60000, "billingBlock": 15}'
    assert store.get("cuemaster_rates") == {"Pool": 60000, "billingBlock": 15}
    assert store.get("missing") is None


def test_bytes_values_are_decoded() -> None:
    client = FakeRedis()
    client.values["cuemaster:k"] = b'["a"]'

    assert RedisKeyValueStore(client=client).get("k") == ["a"]


def test_redis_errors_become_persistence_errors() -> None:
    client = FakeRedis()
    client.fail = True
    store = RedisKeyValueStore(client=client)

    with pytest.raises(PersistenceError):
        store.get("k")
    with pytest.raises(PersistenceError):
        store.set("k", [])


def test_invalid_json_is_reported() -> None:
    client = FakeRedis()
    client.values["cuemaster:k"] = "{not json"

    with pytest.raises(PersistenceError):
        RedisKeyValueStore(client=client).get("k")


def test_ping_redis_reports_failures(monkeypatch) -> None:
    client = FakeRedis()
    monkeypatch.setattr(redis_store, "get_redis_client", lambda timeout_seconds=1.0: client)

    assert redis_store.ping_redis() is True
    client.fail = True
    assert redis_store.ping_redis() is False


def test_missing_redis_url_is_reported(monkeypatch) -> None:
    monkeypatch.delenv("REDIS_URL", raising=False)

    with pytest.raises(RuntimeError):
        RedisKeyValueStore().get("k")
