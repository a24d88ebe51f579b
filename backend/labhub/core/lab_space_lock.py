"""
Named locks guarding lab-space and per-user critical sections.

Booking creation holds ``lab_user:<user_id>`` then ``lab_space:<space_id>``
for the whole transaction, so the quota read, the conflict check and the
insert are serialized against concurrent writers. Keys are always acquired in
the order given and released in reverse. Lifecycle transitions take
``lab_booking:<booking_id>`` last, after any space key.

The ``local`` backend keeps one ``threading.Lock`` per key while a thread
holds or waits for it, and only protects a single process. The ``redis``
backend uses ``SET NX EX`` polling so several workers share the same keys;
when Redis is unreachable it fails open and the database row lock remains the
authority.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, List, Optional

from redis import Redis
from redis.exceptions import RedisError

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import LockTimeoutException
from .ulid_helper import generate_ulid

logger = logging.getLogger(__name__)

_POLL_INTERVAL_S = 0.05


def lab_space_key(lab_space_id: str) -> str:
    return f"lab_space:{lab_space_id}"


def lab_user_key(user_id: str) -> str:
    return f"lab_user:{user_id}"


def lab_booking_key(booking_id: str) -> str:
    return f"lab_booking:{booking_id}"


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        # Holders plus waiters; the entry is dropped when this reaches zero
        self.users = 0


class _LocalBackend:
    name = "local"

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, _KeyLock] = {}

    def _checkout(self, key: str) -> _KeyLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _KeyLock()
                self._locks[key] = entry
            entry.users += 1
            return entry

    def _checkin(self, key: str, entry: _KeyLock) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    def acquire(self, key: str, timeout_s: float) -> Optional[str]:
        entry = self._checkout(key)
        if entry.lock.acquire(timeout=timeout_s):
            return key
        self._checkin(key, entry)
        return None

    def release(self, key: str, token: str) -> bool:
        with self._guard:
            entry = self._locks.get(key)
        if entry is None or not entry.lock.locked():
            return False
        entry.lock.release()
        self._checkin(key, entry)
        return True


class _RedisBackend:
    name = "redis"

    # Only delete the key if we still own it
    _RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""

    def __init__(self, redis_url: str, ttl_s: int) -> None:
        self._redis_url = redis_url
        self._ttl_s = ttl_s
        self._client: Optional[Redis] = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> Optional[Redis]:
        if self._client is not None:
            return self._client
        with self._client_lock:
            if self._client is not None:
                return self._client
            try:
                client = Redis.from_url(self._redis_url, encoding="utf-8", decode_responses=True)
                client.ping()
            except RedisError as exc:
                logger.warning("lab_lock_redis_unavailable: %s", exc)
                return None
            self._client = client
            return self._client

    @staticmethod
    def _namespaced(key: str) -> str:
        return f"labhub:lock:{key}"

    def acquire(self, key: str, timeout_s: float) -> Optional[str]:
        client = self._get_client()
        if client is None:
            prometheus_metrics.record_lab_lock(self.name, "acquire", "redis_unavailable")
            return ""
        token = generate_ulid()
        deadline = time.monotonic() + timeout_s
        try:
            while True:
                if client.set(self._namespaced(key), token, nx=True, ex=self._ttl_s):
                    return token
                if time.monotonic() >= deadline:
                    return None
                time.sleep(_POLL_INTERVAL_S)
        except RedisError as exc:
            prometheus_metrics.record_lab_lock(self.name, "acquire", "error")
            logger.warning(
                "lab_lock_redis_acquire_failed",
                extra={"key": key, "error": str(exc), "error_type": type(exc).__name__},
            )
            return ""

    def release(self, key: str, token: str) -> bool:
        if not token:
            # Acquired fail-open, nothing to release
            return False
        client = self._get_client()
        if client is None:
            return False
        try:
            return bool(client.eval(self._RELEASE_SCRIPT, 1, self._namespaced(key), token))
        except RedisError as exc:
            logger.warning(
                "lab_lock_redis_release_failed",
                extra={"key": key, "error": str(exc), "error_type": type(exc).__name__},
            )
            return False


class NamedLockManager:
    """Acquire named locks in a fixed order for the span of a ``with`` block."""

    def __init__(
        self,
        backend: str = "local",
        *,
        timeout_s: float = 10.0,
        ttl_s: int = 30,
        redis_url: Optional[str] = None,
    ) -> None:
        if backend == "redis":
            self._backend: _LocalBackend | _RedisBackend = _RedisBackend(
                redis_url or settings.redis_url, ttl_s
            )
        elif backend == "local":
            self._backend = _LocalBackend()
        else:
            raise ValueError(f"Unknown lock backend: {backend}")
        self.timeout_s = timeout_s

    @property
    def backend_name(self) -> str:
        return self._backend.name

    @contextmanager
    def hold(self, *keys: str, timeout_s: Optional[float] = None) -> Iterator[None]:
        """
        Hold every key until the block exits.

        Raises:
            LockTimeoutException: If any key cannot be acquired within the timeout.
        """
        wait = self.timeout_s if timeout_s is None else timeout_s
        held: List[tuple[str, str]] = []
        try:
            for key in keys:
                started = time.monotonic()
                token = self._backend.acquire(key, wait)
                waited = time.monotonic() - started
                if token is None:
                    prometheus_metrics.record_lab_lock(
                        self.backend_name, "acquire", "timeout", waited
                    )
                    logger.warning(
                        "lab_lock_timeout",
                        extra={"key": key, "timeout_s": wait, "backend": self.backend_name},
                    )
                    raise LockTimeoutException(key, wait)
                prometheus_metrics.record_lab_lock(self.backend_name, "acquire", "success", waited)
                held.append((key, token))
            yield
        finally:
            for key, token in reversed(held):
                released = self._backend.release(key, token)
                prometheus_metrics.record_lab_lock(
                    self.backend_name, "release", "success" if released else "not_found"
                )


_manager: Optional[NamedLockManager] = None
_manager_lock = threading.Lock()


def get_lock_manager() -> NamedLockManager:
    """Process-wide lock manager built from settings."""
    global _manager
    if _manager is not None:
        return _manager
    with _manager_lock:
        if _manager is None:
            _manager = NamedLockManager(
                settings.lab_lock_backend,
                timeout_s=settings.lab_lock_timeout_s,
                ttl_s=settings.lab_lock_ttl_s,
                redis_url=settings.redis_url,
            )
        return _manager
