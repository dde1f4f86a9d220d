"""Key-value store protocol.

Defines the interface for the durable store behind quota counters and the
translation cache. Values are strings; every write carries a time-to-live
so stale keys expire on their own.

Implementations can include:
- Redis (default)
- DynamoDB with a TTL attribute
- Cloudflare-style KV namespaces
- An in-memory dict (tests)
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for key-value storage backends.

    Implementations raise ``StoreError`` on I/O failure; callers decide
    whether a failure is fatal.
    """

    def get(self, key: str) -> str | None:
        """Read a value.

        Args:
            key: The storage key

        Returns:
            The stored value, or None if absent or expired
        """
        ...

    def set(self, key: str, value: str, ttl: int) -> None:
        """Write a value with a time-to-live.

        Args:
            key: The storage key
            value: The value to store
            ttl: Time-to-live in seconds
        """
        ...

    def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if a key was removed, False otherwise
        """
        ...

    def ping(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
