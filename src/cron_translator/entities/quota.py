"""Quota domain entities."""

from dataclasses import dataclass
from enum import Enum


class DenialKind(str, Enum):
    """Which quota rule rejected a request."""

    DAILY_LIMIT_REACHED = "daily"
    PER_CALLER_LIMIT_REACHED = "per_caller"
    BURST_LIMIT_REACHED = "burst"

    @property
    def rate_limit_type(self) -> str:
        """Discriminator exposed to API clients: ``daily`` or ``perUser``."""
        return "daily" if self is DenialKind.DAILY_LIMIT_REACHED else "perUser"

    @property
    def message(self) -> str:
        if self is DenialKind.DAILY_LIMIT_REACHED:
            return "Daily API limit reached. Please try again tomorrow."
        if self is DenialKind.BURST_LIMIT_REACHED:
            return "Too many requests in a short time. Please slow down."
        return "Rate limit exceeded. Please try again later."


@dataclass(frozen=True)
class QuotaUsage:
    """Read-only snapshot of quota state.

    Attributes:
        daily_used: Admissions counted for the current day
        daily_limit: Configured daily cap
        date: Calendar day (UTC, ISO format) the counter belongs to
        per_caller_max: Admissions allowed per caller per window
        per_caller_window_ms: Sliding window length in milliseconds
        burst_max: Admissions allowed per caller per burst window
        burst_window_ms: Burst window length in milliseconds
    """

    daily_used: int
    daily_limit: int
    date: str
    per_caller_max: int
    per_caller_window_ms: int
    burst_max: int
    burst_window_ms: int

    @property
    def daily_remaining(self) -> int:
        return max(0, self.daily_limit - self.daily_used)


@dataclass(frozen=True)
class Admission:
    """Result of a quota admission check."""

    admitted: bool
    denial: DenialKind | None = None

    @classmethod
    def allow(cls) -> "Admission":
        return cls(admitted=True)

    @classmethod
    def deny(cls, kind: DenialKind) -> "Admission":
        return cls(admitted=False, denial=kind)
