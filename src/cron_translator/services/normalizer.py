"""Input normalization for scheduling phrases.

The normalized form is both what the model sees and the cache key, so the
same phrase typed with different casing or spacing must map to one string.
"""

import re

from cron_translator.errors import InputMissingError, InputTooLongError

MAX_INPUT_LENGTH = 200

WHITESPACE_RE = re.compile(r"\s+")

# Characters that could act as markup or prompt-injection delimiters
DENYLIST = frozenset("<>\"'`")


def sanitize(text: str) -> str:
    """Remove non-printable and control characters.

    Keeps everything from space upwards except DEL; relative order of the
    remaining characters is preserved.
    """
    return "".join(ch for ch in text if ch >= " " and ch != "\x7f")


def normalize(raw: str) -> str:
    """Canonicalize a raw scheduling phrase.

    Steps: strip control characters, drop denylisted characters, trim,
    lowercase, collapse whitespace runs to single spaces. Denylisted
    characters are removed before collapsing so the result is a fixed point:
    ``normalize(normalize(x)) == normalize(x)``.

    Args:
        raw: User-supplied text

    Returns:
        The normalized phrase

    Raises:
        InputTooLongError: If the result exceeds MAX_INPUT_LENGTH characters
        InputMissingError: If the result is empty
    """
    cleaned = "".join(ch for ch in sanitize(raw) if ch not in DENYLIST)
    normalized = WHITESPACE_RE.sub(" ", cleaned.strip().lower())

    if len(normalized) > MAX_INPUT_LENGTH:
        raise InputTooLongError(MAX_INPUT_LENGTH)
    if not normalized:
        raise InputMissingError()
    return normalized
