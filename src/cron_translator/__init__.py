"""Cron Translator - plain-English schedules to Unix cron expressions.

This package provides a layered architecture around an external language
model, treated as an untrusted and flaky dependency:

Layers:
    - protocols: Interface contracts (KeyValueStore, ChatCompletionProvider)
    - repositories: Data access implementations (Redis, OpenAI-compatible API)
    - services: Business logic (normalizer, validator, quota, cache, orchestrator)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from cron_translator.services import normalize, validate

    normalize("  Every Day at 3 PM ")  # "every day at 3 pm"
    validate("0 15 * * *").is_valid    # True
    ```

For HTTP API:
    ```python
    from cron_translator.api.app import app
    ```
"""

__version__ = "0.1.0"

from cron_translator.config import Settings, get_settings  # noqa: E402
from cron_translator.entities import QuotaUsage, TranslationResult, ValidationResult  # noqa: E402
from cron_translator.handlers import TranslateHandler  # noqa: E402
from cron_translator.protocols import ChatCompletionProvider, KeyValueStore  # noqa: E402
from cron_translator.repositories import OpenAICompatibleChatProvider, RedisKeyValueStore  # noqa: E402
from cron_translator.services import (  # noqa: E402
    QuotaTracker,
    ResponseCache,
    TranslationOrchestrator,
    normalize,
    validate,
)

__all__ = [
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Protocols (interfaces)
    "ChatCompletionProvider",
    "KeyValueStore",
    # Services (business logic)
    "QuotaTracker",
    "ResponseCache",
    "TranslationOrchestrator",
    "normalize",
    "validate",
    # Handlers (HTTP)
    "TranslateHandler",
    # Repositories (data access)
    "OpenAICompatibleChatProvider",
    "RedisKeyValueStore",
    # Entities (domain models)
    "QuotaUsage",
    "TranslationResult",
    "ValidationResult",
]
