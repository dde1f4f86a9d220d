"""Chat completion provider protocol.

The translation orchestrator depends only on this contract: a list of chat
messages in, the assistant's text out. Where the model runs is the
implementation's business.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChatCompletionProvider(Protocol):
    """Protocol for chat completion backends."""

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        """Run one chat completion.

        Args:
            model: Model identifier
            messages: Chat messages (``role``/``content`` dicts)
            temperature: Sampling temperature
            max_tokens: Completion token cap
            timeout: Per-call timeout in seconds

        Returns:
            The assistant message text (may be empty)

        Raises:
            ModelCallError: classified by ``failure_kind``
        """
        ...

    async def close(self) -> None:
        """Release any network resources."""
        ...
