"""Exception taxonomy for the translation pipeline.

Client errors (bad input, rate limits, untranslatable phrases) and internal
errors (model attempt failures, store I/O, configuration) share one base
class so the API layer can render them uniformly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cron_translator.entities import DenialKind, QuotaUsage


class TranslatorError(Exception):
    """Base class for all errors raised by the translator."""


class InputMissingError(TranslatorError):
    """Raised when the input is empty after normalization."""

    def __init__(self) -> None:
        super().__init__("Missing input field")


class InputTooLongError(TranslatorError):
    """Raised when the normalized input exceeds the maximum length."""

    def __init__(self, max_length: int) -> None:
        super().__init__(f"Input too long (max {max_length} characters)")
        self.max_length = max_length


class RateLimitExceededError(TranslatorError):
    """Raised when the quota tracker denies admission.

    Attributes:
        kind: Which limit was hit
        usage: Quota usage snapshot taken at denial time
    """

    def __init__(self, kind: DenialKind, usage: QuotaUsage) -> None:
        super().__init__(kind.message)
        self.kind = kind
        self.usage = usage


class ModelCallError(TranslatorError):
    """A single model attempt failed.

    Only ``timeout`` and ``transport`` failures may be retried on the same
    model; every other kind (including validation) moves on to the next model.
    """

    RETRYABLE_KINDS = frozenset({"timeout", "transport"})

    def __init__(self, message: str, *, failure_kind: str, model: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.failure_kind = failure_kind
        self.model = model
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.failure_kind in self.RETRYABLE_KINDS

    @property
    def is_timeout(self) -> bool:
        return self.failure_kind == "timeout"


class TranslationFailedError(TranslatorError):
    """Raised when no model in the roster produced a valid cron expression."""

    def __init__(self, input_text: str, attempts: int, last_error: Exception | None, model: str) -> None:
        super().__init__("Could not translate input to a valid cron expression after retrying")
        self.input_text = input_text
        self.attempts = attempts
        self.last_error = last_error
        self.model = model

    @property
    def timed_out(self) -> bool:
        return isinstance(self.last_error, ModelCallError) and self.last_error.is_timeout


class ConfigurationError(TranslatorError):
    """Raised when required configuration is missing."""


class StoreError(TranslatorError):
    """Raised by key-value store implementations on I/O failure."""
