"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import TranslateRequest
from .responses import (
    DailyLimitInfo,
    ErrorResponse,
    HealthResponse,
    PerUserLimitInfo,
    RateLimitInfo,
    StatsResponse,
    TranslateResponse,
)

__all__ = [
    "TranslateRequest",
    "TranslateResponse",
    "ErrorResponse",
    "DailyLimitInfo",
    "PerUserLimitInfo",
    "RateLimitInfo",
    "HealthResponse",
    "StatsResponse",
]
