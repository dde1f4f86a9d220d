"""Service layer for business logic.

Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Pipeline:
    normalize -> QuotaTracker.admit -> ResponseCache.get
    -> TranslationOrchestrator.translate (validate) -> ResponseCache.put
"""

from .normalizer import MAX_INPUT_LENGTH, normalize, sanitize
from .quota_service import DailyCounterCache, QuotaTracker
from .response_cache import ResponseCache
from .translation_service import TranslationOrchestrator
from .validator import validate

__all__ = [
    "MAX_INPUT_LENGTH",
    "DailyCounterCache",
    "QuotaTracker",
    "ResponseCache",
    "TranslationOrchestrator",
    "normalize",
    "sanitize",
    "validate",
]
