"""Response DTOs for API endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from cron_translator.entities import QuotaUsage


class TranslateResponse(BaseModel):
    """Response DTO for a successful translation."""

    cron: str = Field(..., description="5-field Unix cron expression")
    model: str = Field(..., description="Identifier of the model that produced it")
    input: str = Field(..., description="The normalized input phrase")


class ErrorResponse(BaseModel):
    """Error body shared by every non-2xx response."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = Field(..., description="Human-readable error message")
    rate_limit_type: Literal["daily", "perUser"] | None = Field(
        None,
        alias="rateLimitType",
        description="Which limit was hit (429 only)",
    )
    details: dict[str, Any] | None = Field(None, description="Whitelisted diagnostic detail")


class PerUserLimitInfo(BaseModel):
    """Per-caller limit configuration."""

    model_config = ConfigDict(populate_by_name=True)

    max: int = Field(..., description="Requests allowed per caller per window")
    window_ms: int = Field(..., alias="windowMs")
    burst_max: int = Field(..., alias="burstMax")
    burst_window_ms: int = Field(..., alias="burstWindowMs")


class DailyLimitInfo(BaseModel):
    """Global daily limit usage."""

    limit: int
    used: int = Field(..., ge=0)
    remaining: int = Field(..., ge=0)
    date: str = Field(..., description="UTC calendar day (YYYY-MM-DD)")


class RateLimitInfo(BaseModel):
    """Rate limit configuration and usage."""

    model_config = ConfigDict(populate_by_name=True)

    per_user: PerUserLimitInfo = Field(..., alias="perUser")
    daily: DailyLimitInfo

    @classmethod
    def from_usage(cls, usage: QuotaUsage) -> "RateLimitInfo":
        return cls(
            per_user=PerUserLimitInfo(
                max=usage.per_caller_max,
                window_ms=usage.per_caller_window_ms,
                burst_max=usage.burst_max,
                burst_window_ms=usage.burst_window_ms,
            ),
            daily=DailyLimitInfo(
                limit=usage.daily_limit,
                used=usage.daily_used,
                remaining=usage.daily_remaining,
                date=usage.date,
            ),
        )


class HealthResponse(BaseModel):
    """Response DTO for health check."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok", "degraded"] = Field(..., description="'ok' when the store is reachable")
    store_healthy: bool = Field(..., alias="storeHealthy")
    rate_limit: RateLimitInfo = Field(..., alias="rateLimit")


class StatsResponse(BaseModel):
    """Response DTO for in-process request statistics."""

    total_requests: int
    cache_hits: int
    cache_misses: int
    hit_rate: float
    model_calls: int
    avg_model_time_ms: float
    rate_limited: int
    failures: int
    timeouts: int
