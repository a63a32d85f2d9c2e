from __future__ import annotations

import json
import os
from functools import lru_cache
from typing import Any

import redis

from cuemaster.application.ports.gateway import KeyValueStore, PersistenceError

DEFAULT_PREFIX = "cuemaster:"


def _redis_url() -> str:
    url = os.getenv("REDIS_URL")
    if not url:
        raise RuntimeError("REDIS_URL is not set")
    return url


@lru_cache(maxsize=8)
def _build_client(redis_url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        redis_url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        decode_responses=True,
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    return _build_client(_redis_url(), timeout_seconds)


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except Exception:
        return False


class RedisKeyValueStore(KeyValueStore):
    """JSON blobs stored as plain Redis strings under a key prefix."""

    def __init__(
        self,
        client: redis.Redis | None = None,
        timeout_seconds: float = 1.0,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._prefix = prefix

    def _redis(self) -> redis.Redis:
        if self._client is None:
            self._client = get_redis_client(timeout_seconds=self._timeout_seconds)
        return self._client

    def get(self, key: str) -> Any | None:
        try:
            value = self._redis().get(self._prefix + key)
        except redis.RedisError as exc:
            raise PersistenceError(f"failed to read {key}") from exc

        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"stored value for {key} is not valid JSON") from exc

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        try:
            self._redis().set(name=self._prefix + key, value=payload)
        except redis.RedisError as exc:
            raise PersistenceError(f"failed to write {key}") from exc
