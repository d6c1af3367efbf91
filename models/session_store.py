"""
Session stores: key -> value caches with per-key expiry.

They hold the currently valid access and refresh token of every user under
`access_token:<user_id>` and `refresh_token:<user_id>`. Writing a key
overwrites the previous token and resets its TTL; an expired or missing key
means the token has been revoked.

RedisSessionStore is the production backend. MemorySessionStore keeps the
same contract inside the process for development and tests.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

from redis import Redis
from redis.exceptions import RedisError

from services.errors import StorageFailure

logger = logging.getLogger(__name__)

ACCESS_TOKEN_PREFIX = "access_token"
REFRESH_TOKEN_PREFIX = "refresh_token"


def access_key(user_id: str) -> str:
    return f"{ACCESS_TOKEN_PREFIX}:{user_id}"


def refresh_key(user_id: str) -> str:
    return f"{REFRESH_TOKEN_PREFIX}:{user_id}"


class SessionStore(Protocol):
    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def get(self, key: str) -> Optional[str]: ...

    def delete(self, *keys: str) -> int: ...

    def ping(self) -> bool: ...


class RedisSessionStore:
    """Redis-backed session store. Redis errors surface as StorageFailure."""

    def __init__(self, redis_url: str, *, socket_timeout: float = 5.0, client: Redis | None = None):
        self.redis_url = redis_url
        self.client = client or Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.client.set(key, value, ex=max(1, int(ttl_seconds)))
        except RedisError as exc:
            logger.error("session store write failed for %s: %s", key, exc)
            raise StorageFailure("Session store unavailable") from exc

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except RedisError as exc:
            logger.error("session store read failed for %s: %s", key, exc)
            raise StorageFailure("Session store unavailable") from exc

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(self.client.delete(*keys))
        except RedisError as exc:
            logger.error("session store delete failed: %s", exc)
            raise StorageFailure("Session store unavailable") from exc

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except RedisError:
            return False


class MemorySessionStore:
    """
    In-process session store for development and tests.

    Expired keys are dropped when read, and all of them are swept from
    set() at most once every `sweep_interval` seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_interval: float = 60.0):
        self._clock = clock
        self._lock = threading.Lock()
        self._data: Dict[str, Tuple[str, float]] = {}
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        expires_at = now + max(1, int(ttl_seconds))
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            self._data[key] = (value, expires_at)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._data.items() if now >= expires_at]
        for k in expired:
            del self._data[k]
        self._next_sweep = now + self._sweep_interval

    def size(self) -> int:
        """Number of entries held, expired or not."""
        with self._lock:
            return len(self._data)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._data.pop(key, None) is not None:
                    removed += 1
        return removed

    def ping(self) -> bool:
        return True


def build_session_store(config) -> SessionStore:
    """Construct the session store selected by SESSION_STORE."""
    kind = (config.get("SESSION_STORE") or "redis").lower()
    if kind == "memory":
        logger.warning("using in-memory session store; sessions are lost on restart")
        return MemorySessionStore()
    if kind == "redis":
        return RedisSessionStore(
            config["REDIS_URL"],
            socket_timeout=float(config.get("REDIS_SOCKET_TIMEOUT", 5.0)),
        )
    raise ValueError(f"Unknown SESSION_STORE: {kind}")
