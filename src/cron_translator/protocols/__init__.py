"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis → DynamoDB, OpenRouter → OpenAI, etc.)
- Unit testing with in-memory implementations
- Clear separation of concerns
"""

from .chat_provider import ChatCompletionProvider
from .kv_store import KeyValueStore

__all__ = [
    "ChatCompletionProvider",
    "KeyValueStore",
]
