import logging
import threading
import time
import uuid
from typing import Optional

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# Delete the lock only while it still holds the caller's token
RELEASE_LOCK_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class StateManager:
    """
    Small key/value store for cross-request state: the courier auth token and
    per-order dispatch locks. Redis is the primary store; when it is missing or
    fails, process memory takes over so a single instance keeps working.
    """

    def __init__(self, redis_url: Optional[str] = None):
        self.redis = None
        self._release_script = None
        self.redis_available = False

        # 1. Primary Memory (Redis)
        if redis_url:
            try:
                self.redis = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=1  # Fail fast if Redis is down
                )
                self.redis.ping()
                self._release_script = self.redis.register_script(RELEASE_LOCK_SCRIPT)
                self.redis_available = True
                logger.info("✅ StateManager: Connected to Redis.")
            except RedisError as e:
                logger.warning(f"⚠️ StateManager: Redis unreachable ({e}). Using RAM fallback.")
                self.redis_available = False

        # 2. Fallback Memory (RAM): key -> (value, expires_at)
        self._memory_store = {}
        self._memory_lock = threading.Lock()

    def get_value(self, key: str) -> Optional[str]:
        if self.redis_available:
            try:
                return self.redis.get(key)
            except RedisError as e:
                self._handle_redis_error(e)

        with self._memory_lock:
            entry = self._memory_store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._memory_store[key]
                return None
            return value

    def set_value(self, key: str, value: str, ttl: int) -> None:
        if self.redis_available:
            try:
                self.redis.setex(key, ttl, value)
                return
            except RedisError as e:
                self._handle_redis_error(e)

        with self._memory_lock:
            self._memory_store[key] = (value, time.monotonic() + ttl)

    def delete_value(self, key: str) -> None:
        if self.redis_available:
            try:
                self.redis.delete(key)
            except RedisError as e:
                self._handle_redis_error(e)

        with self._memory_lock:
            self._memory_store.pop(key, None)

    def acquire_lock(self, key: str, ttl: int) -> Optional[str]:
        """
        SET NX with expiry. Returns the owner token when this caller now holds
        the key, None when someone else does.
        """
        token = uuid.uuid4().hex
        if self.redis_available:
            try:
                return token if self.redis.set(key, token, nx=True, ex=ttl) else None
            except RedisError as e:
                self._handle_redis_error(e)

        with self._memory_lock:
            entry = self._memory_store.get(key)
            if entry is not None and entry[1] > time.monotonic():
                return None
            self._memory_store[key] = (token, time.monotonic() + ttl)
            return token

    def release_lock(self, key: str, token: str) -> bool:
        """Release only if `token` still owns the key; an expired holder must not free a newer lock."""
        if self.redis_available:
            try:
                return bool(self._release_script(keys=[key], args=[token]))
            except RedisError as e:
                self._handle_redis_error(e)

        with self._memory_lock:
            entry = self._memory_store.get(key)
            if entry is None or entry[0] != token:
                return False
            del self._memory_store[key]
            return True

    def _handle_redis_error(self, e):
        """Log error and switch flag to False to stop trying Redis."""
        logger.error(f"❌ Redis Error: {e}. Switching to RAM mode.")
        self.redis_available = False
