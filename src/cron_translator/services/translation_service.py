"""Translation orchestration across a roster of models.

Retry policy:

- The primary model gets up to ``primary_attempts`` tries. The first uses
  temperature 0; a retry uses ``retry_temperature`` and happens only after a
  timeout or transport failure, following a short backoff.
- Any other failure of the primary (bad output, the ``invalid`` sentinel,
  an HTTP error) skips straight to the next model without waiting.
- Every fallback model gets exactly one try.

Model output that fails validation is treated exactly like a failed call.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from cron_translator.entities import TranslationResult
from cron_translator.errors import ModelCallError, TranslationFailedError
from cron_translator.protocols import ChatCompletionProvider
from cron_translator.services.prompts import INVALID_SENTINEL, SYSTEM_PROMPT, build_messages
from cron_translator.services.validator import validate

logger = logging.getLogger(__name__)


class TranslationOrchestrator:
    """Turns a normalized phrase into a validated cron expression.

    Example:
        ```python
        orchestrator = TranslationOrchestrator(
            provider=OpenAICompatibleChatProvider.create(api_key=key),
            models=["google/gemma-3-27b-it:free", "qwen/qwen3-14b:free"],
        )
        result = await orchestrator.translate("every day at 3 pm")
        print(result.cron)  # 0 15 * * *
        ```
    """

    def __init__(
        self,
        provider: ChatCompletionProvider,
        models: Sequence[str],
        system_prompt: str = SYSTEM_PROMPT,
        timeout_seconds: float = 7.0,
        primary_attempts: int = 2,
        retry_backoff_seconds: float = 0.25,
        retry_temperature: float = 0.1,
        max_tokens: int = 50,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            provider: Chat completion backend.
            models: Ordered roster; the first entry is the primary.
            system_prompt: Instructions sent ahead of every phrase.
            timeout_seconds: Hard bound on each model call.
            primary_attempts: Tries allowed on the primary for timeouts.
            retry_backoff_seconds: Delay before retrying the primary.
            retry_temperature: Sampling temperature for retries.
            max_tokens: Completion token cap.
            sleeper: Awaitable sleep, replaceable in tests.
        """
        if not models:
            raise ValueError("At least one model is required")
        self._provider = provider
        self._models = tuple(models)
        self._system_prompt = system_prompt
        self._timeout = timeout_seconds
        self._primary_attempts = primary_attempts
        self._backoff = retry_backoff_seconds
        self._retry_temperature = retry_temperature
        self._max_tokens = max_tokens
        self._sleep = sleeper

    @property
    def models(self) -> tuple[str, ...]:
        return self._models

    @property
    def primary_model(self) -> str:
        return self._models[0]

    async def _attempt(self, model: str, text: str, temperature: float) -> str:
        """Run one model call and return its validated output."""
        try:
            raw = await asyncio.wait_for(
                self._provider.complete(
                    model=model,
                    messages=build_messages(text, self._system_prompt),
                    temperature=temperature,
                    max_tokens=self._max_tokens,
                    timeout=self._timeout,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise ModelCallError(
                f"{model} timed out after {self._timeout:g}s",
                failure_kind="timeout",
                model=model,
            ) from e

        output = (raw or "").strip()
        if output.lower() == INVALID_SENTINEL:
            raise ModelCallError(
                f"{model} reported the input as untranslatable",
                failure_kind="untranslatable",
                model=model,
            )

        result = validate(output)
        if not result.is_valid:
            raise ModelCallError(result.reason or "Invalid response format", failure_kind="validation", model=model)
        return output

    async def translate(self, text: str) -> TranslationResult:
        """Translate a normalized phrase.

        Args:
            text: Normalized input

        Returns:
            The first valid TranslationResult, with the total attempt count

        Raises:
            TranslationFailedError: If every model in the roster failed
        """
        attempts = 0
        last_error: ModelCallError | None = None

        for index, model in enumerate(self._models):
            tries = self._primary_attempts if index == 0 else 1
            for attempt in range(1, tries + 1):
                attempts += 1
                temperature = 0.0 if attempt == 1 else self._retry_temperature
                try:
                    cron = await self._attempt(model, text, temperature)
                except ModelCallError as e:
                    last_error = e
                    logger.warning(
                        "Model %s attempt %d failed (%s): %s", model, attempt, e.failure_kind, e
                    )
                    if e.retryable and attempt < tries:
                        await self._sleep(self._backoff)
                        continue
                    break

                return TranslationResult(cron=cron, model=model, input=text, attempts=attempts)

        raise TranslationFailedError(
            input_text=text,
            attempts=attempts,
            last_error=last_error,
            model=self._models[-1],
        )
