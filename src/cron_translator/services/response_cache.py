"""Cache of successful translations.

Keys combine a cache-version tag with a hash of the normalized input, so
bumping the version (new prompt, new model roster, new validation rules)
orphans every old entry without a sweep; they expire through their TTL.
"""

import json
import logging
from hashlib import sha256

from cron_translator.entities import TranslationResult
from cron_translator.errors import StoreError
from cron_translator.protocols import KeyValueStore

logger = logging.getLogger(__name__)


class ResponseCache:
    """Content-addressed translation cache over a KeyValueStore.

    Reads and writes are best-effort: a store failure is logged and
    reported as a miss (``get``) or ignored (``put``).
    """

    def __init__(
        self,
        store: KeyValueStore,
        version: str = "v4",
        ttl: int = 1814400,
        key_prefix: str = "cron_translator",
    ) -> None:
        """Initialize the response cache.

        Args:
            store: Backing key-value store.
            version: Cache-version tag; bump to invalidate all entries.
            ttl: Entry time-to-live in seconds.
            key_prefix: Namespace for cache keys.
        """
        self._store = store
        self._version = version
        self._ttl = ttl
        self._key_prefix = key_prefix

    @property
    def version(self) -> str:
        return self._version

    def make_key(self, normalized_input: str) -> str:
        """Build the cache key for a normalized input."""
        digest = sha256(normalized_input.encode("utf-8")).hexdigest()
        return f"{self._key_prefix}:translate:{self._version}:{digest}"

    def get(self, normalized_input: str) -> TranslationResult | None:
        """Look up a previous translation.

        Returns:
            The cached TranslationResult, or None on miss or store failure
        """
        key = self.make_key(normalized_input)
        try:
            raw = self._store.get(key)
        except StoreError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None

        try:
            result = TranslationResult.from_payload(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry %s: %s", key, e)
            return None

        # Keys are hashes; guard against a collision returning another phrase
        if result.input != normalized_input:
            return None
        return result

    def put(self, result: TranslationResult) -> None:
        """Store a translation. Never raises on store failure."""
        key = self.make_key(result.input)
        try:
            self._store.set(key, json.dumps(result.to_payload()), ttl=self._ttl)
        except StoreError as e:
            logger.warning("Cache write failed for %s: %s", key, e)
