"""Redis implementation of KeyValueStore.

Plain string keys with per-key expiry. Quota counters and cached
translations both live here under the configured key prefix.
"""

import redis

from cron_translator.config import get_redis_client
from cron_translator.errors import StoreError


class RedisKeyValueStore:
    """Redis-backed key-value store.

    This class satisfies the KeyValueStore protocol through structural
    typing - no explicit inheritance needed. redis-py errors are wrapped in
    StoreError so callers never depend on the client library.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize the Redis store.

        Args:
            redis_client: Redis client instance (``decode_responses=True``).
                If None, creates default.
        """
        self._client = redis_client or get_redis_client()

    @classmethod
    def create(cls) -> "RedisKeyValueStore":
        """Factory method to create RedisKeyValueStore from settings."""
        return cls()

    def get(self, key: str) -> str | None:
        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            raise StoreError(f"Redis GET {key} failed: {e}") from e
        if isinstance(value, bytes):
            return value.decode()
        return value  # type: ignore[return-value]

    def set(self, key: str, value: str, ttl: int) -> None:
        try:
            self._client.set(key, value, ex=ttl)
        except redis.RedisError as e:
            raise StoreError(f"Redis SET {key} failed: {e}") from e

    def delete(self, key: str) -> bool:
        try:
            result: int = self._client.delete(key)  # type: ignore[assignment]
        except redis.RedisError as e:
            raise StoreError(f"Redis DEL {key} failed: {e}") from e
        return result > 0

    def ping(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def close(self) -> None:
        self._client.close()

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
