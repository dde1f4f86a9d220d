"""Request metrics entities."""

import time
from dataclasses import dataclass, field


@dataclass
class RequestMetrics:
    """Metrics collected while serving a single translate request."""

    start: float = field(default_factory=time.perf_counter)
    cache_hit: bool = False
    model: str | None = None
    attempts: int = 0
    error: str | None = None
    rate_limited: bool = False
    timeout: bool = False

    @property
    def duration_ms(self) -> float:
        return (time.perf_counter() - self.start) * 1000

    def to_dict(self) -> dict[str, float | int | str | bool | None]:
        return {
            "duration_ms": round(self.duration_ms, 1),
            "cache_hit": self.cache_hit,
            "model": self.model,
            "attempts": self.attempts,
            "error": self.error,
            "rate_limited": self.rate_limited,
            "timeout": self.timeout,
        }


@dataclass
class PerformanceMetrics:
    """Track aggregate metrics for translate requests in this process."""

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    model_calls: int = 0
    total_model_time_ms: float = 0.0
    rate_limited: int = 0
    failures: int = 0
    timeouts: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate over requests that reached the cache."""
        looked_up = self.cache_hits + self.cache_misses
        if looked_up == 0:
            return 0.0
        return self.cache_hits / looked_up

    @property
    def avg_model_time_ms(self) -> float:
        """Calculate average time spent translating a cache miss."""
        if self.model_calls == 0:
            return 0.0
        return self.total_model_time_ms / self.model_calls

    def record(self, request: RequestMetrics) -> None:
        """Fold one request's metrics into the totals."""
        self.total_requests += 1
        if request.rate_limited:
            self.rate_limited += 1
            return
        if request.cache_hit:
            self.cache_hits += 1
        elif request.attempts:
            self.cache_misses += 1
            self.model_calls += request.attempts
            self.total_model_time_ms += request.duration_ms
        if request.error is not None:
            self.failures += 1
        if request.timeout:
            self.timeouts += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": self.hit_rate,
            "model_calls": self.model_calls,
            "avg_model_time_ms": self.avg_model_time_ms,
            "rate_limited": self.rate_limited,
            "failures": self.failures,
            "timeouts": self.timeouts,
        }
