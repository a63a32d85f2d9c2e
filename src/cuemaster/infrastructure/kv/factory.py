from __future__ import annotations

import os

from cuemaster.application.ports.gateway import KeyValueStore
from cuemaster.infrastructure.db.session import ping_database
from cuemaster.infrastructure.kv.redis_store import RedisKeyValueStore, ping_redis
from cuemaster.infrastructure.kv.sql_store import SqlAlchemyKeyValueStore

SUPPORTED_BACKENDS = {"sql", "redis"}


def kv_backend() -> str:
    backend = os.getenv("KV_BACKEND", "sql").lower()
    if backend not in SUPPORTED_BACKENDS:
        raise RuntimeError(f"KV_BACKEND must be one of {sorted(SUPPORTED_BACKENDS)}, got {backend!r}")
    return backend


def build_store() -> KeyValueStore:
    if kv_backend() == "redis":
        return RedisKeyValueStore()
    return SqlAlchemyKeyValueStore()


def ping_store(timeout_seconds: float = 1.0) -> dict[str, bool]:
    if kv_backend() == "redis":
        return {"redis": ping_redis(timeout_seconds=timeout_seconds)}
    return {"database": ping_database(timeout_seconds=timeout_seconds)}
