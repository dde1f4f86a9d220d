"""Translation domain entities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TranslationResult:
    """A validated translation of a phrase into a cron expression.

    Attributes:
        cron: The 5-field cron expression
        model: Identifier of the model that produced it
        input: The normalized input phrase
        attempts: Number of model attempts it took (1 for cached results)
    """

    cron: str
    model: str
    input: str
    attempts: int = 1

    def to_payload(self) -> dict[str, Any]:
        """Serializable form stored in the response cache."""
        return {"cron": self.cron, "model": self.model, "input": self.input}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TranslationResult":
        return cls(cron=payload["cron"], model=payload["model"], input=payload["input"])


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating raw model output."""

    is_valid: bool
    reason: str | None = None

    @classmethod
    def valid(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, reason: str) -> "ValidationResult":
        return cls(is_valid=False, reason=reason)
