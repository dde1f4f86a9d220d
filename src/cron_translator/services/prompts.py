"""Prompt templates for the translation model."""

INVALID_SENTINEL = "invalid"

SYSTEM_PROMPT = f"""
You are a strict utility that converts plain English into a valid 5-field Unix cron expression.

Only output a single line in this format:
* * * * *

If the input is invalid or untranslatable, respond with:
{INVALID_SENTINEL}

Do not explain, comment, or include any extra text.
""".strip()


def build_messages(text: str, system_prompt: str = SYSTEM_PROMPT) -> list[dict[str, str]]:
    """Build the chat messages for one translation request."""
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": text},
    ]
