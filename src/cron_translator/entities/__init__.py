"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .metrics import PerformanceMetrics, RequestMetrics
from .quota import Admission, DenialKind, QuotaUsage
from .translation import TranslationResult, ValidationResult

__all__ = [
    "Admission",
    "DenialKind",
    "PerformanceMetrics",
    "QuotaUsage",
    "RequestMetrics",
    "TranslationResult",
    "ValidationResult",
]
