"""Validation of raw model output.

The model is an untrusted dependency: it may explain itself, wrap the answer
in a code fence, or emit something that only looks like cron. Output is
checked in two layers:

1. Prose rejection - conversational lead-ins, code fences, explanatory
   vocabulary and multi-line output are refused outright.
2. Grammar - exactly five whitespace-separated fields, each matching
   ``*``, ``N``, ``N,N,...``, ``N-M``, ``*/S`` or ``N/S`` within the
   field's numeric range.

Calendar feasibility (e.g. February 30th) is not checked.
"""

import re
from dataclasses import dataclass

from cron_translator.entities import ValidationResult

PROSE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(here|the|this|that|it|expression|cron)", re.IGNORECASE),
    re.compile(r"^(```|`)"),
    re.compile(r"explanation|description|means|represents", re.IGNORECASE),
    re.compile(r"\n"),
)

_NUMBER = r"\d{1,2}"
_FIELD_RE = re.compile(
    rf"^(?:"
    rf"(?P<any>\*)"
    rf"|(?P<list>{_NUMBER}(?:,{_NUMBER})*)"
    rf"|(?P<range>{_NUMBER})-(?P<range_end>{_NUMBER})"
    rf"|(?P<step_base>\*|{_NUMBER})/(?P<step>{_NUMBER})"
    rf")$"
)


@dataclass(frozen=True)
class CronField:
    """Legal numeric range of one cron field."""

    name: str
    low: int
    high: int

    def check(self, token: str) -> str | None:
        """Return a failure reason for ``token``, or None if it is legal."""
        match = _FIELD_RE.match(token)
        if match is None:
            return f"Invalid {self.name} field: {token}"

        if match.group("any"):
            return None

        if match.group("list"):
            values = [int(v) for v in match.group("list").split(",")]
        elif match.group("range"):
            start, end = int(match.group("range")), int(match.group("range_end"))
            if start > end:
                return f"Invalid {self.name} range: {token}"
            values = [start, end]
        else:
            step = int(match.group("step"))
            if not 1 <= step <= self.high:
                return f"Invalid {self.name} step: {token}"
            base = match.group("step_base")
            values = [] if base == "*" else [int(base)]

        for value in values:
            if not self.low <= value <= self.high:
                return f"{self.name.capitalize()} out of range ({self.low}-{self.high}): {token}"
        return None


CRON_FIELDS: tuple[CronField, ...] = (
    CronField("minute", 0, 59),
    CronField("hour", 0, 23),
    CronField("day-of-month", 1, 31),
    CronField("month", 1, 12),
    CronField("day-of-week", 0, 6),
)


def check_cron(expression: str) -> ValidationResult:
    """Check the five-field structural grammar of a cron expression."""
    parts = expression.split()
    if len(parts) != len(CRON_FIELDS):
        return ValidationResult.invalid(f"Expected 5 fields, got {len(parts)}: {expression}")

    for field, token in zip(CRON_FIELDS, parts):
        reason = field.check(token)
        if reason is not None:
            return ValidationResult.invalid(reason)
    return ValidationResult.valid()


def validate(response_text: str) -> ValidationResult:
    """Validate raw model output as a bare cron expression.

    Args:
        response_text: Text returned by the model

    Returns:
        ValidationResult with the first failing reason, if any
    """
    if not response_text or not response_text.strip():
        return ValidationResult.invalid("Empty response")

    trimmed = response_text.strip()
    for pattern in PROSE_PATTERNS:
        if pattern.search(trimmed):
            return ValidationResult.invalid(f"Response contains invalid pattern: {trimmed}")

    result = check_cron(trimmed)
    if not result.is_valid:
        return ValidationResult.invalid(f"Invalid cron format: {result.reason}")
    return result
