"""Repository layer for data access.

This layer abstracts external dependencies (Redis, the model provider API)
behind protocol-based interfaces. The repositories are protocol-based
(structural typing), not inheritance-based.
"""

from cron_translator.protocols import ChatCompletionProvider, KeyValueStore

from .openai_compatible_provider import OpenAICompatibleChatProvider
from .redis_store import RedisKeyValueStore

__all__ = [
    "ChatCompletionProvider",
    "KeyValueStore",
    "OpenAICompatibleChatProvider",
    "RedisKeyValueStore",
]
