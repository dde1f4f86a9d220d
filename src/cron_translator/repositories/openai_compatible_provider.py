"""OpenAI-compatible chat completion provider.

Talks to any endpoint implementing ``POST {base_url}/chat/completions`` with
bearer authentication. The default base URL is OpenRouter, which fronts the
free-tier models in the translation roster.

Failures are classified so the orchestrator can tell a timeout (worth one
more try on the same model) from everything else (move to the next model):

- timeout: client-side timeout, or HTTP 408/504
- transport: connection-level failure
- invalid_api_key: HTTP 401/403
- rate_limited: HTTP 429
- http_error: any other non-2xx status
- malformed_response: body without ``choices[0].message.content``
"""

import re

import httpx

from cron_translator.config import settings
from cron_translator.errors import ModelCallError


class OpenAICompatibleChatProvider:
    """httpx-based implementation of the ChatCompletionProvider protocol.

    This class satisfies the ChatCompletionProvider protocol through
    structural typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OpenAICompatibleChatProvider.create(api_key="sk-or-...")
        text = await provider.complete(
            model="google/gemma-3-27b-it:free",
            messages=[{"role": "user", "content": "every day at 3 pm"}],
            temperature=0,
            max_tokens=50,
            timeout=7.0,
        )
        ```
    """

    _MAX_ERROR_CHARS = 180

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        referer: str | None = None,
        title: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Bearer credential for the endpoint.
            base_url: API base URL. Defaults to settings.openrouter_base_url.
            referer: Value for the ``HTTP-Referer`` attribution header.
            title: Value for the ``X-Title`` attribution header.
            transport: Optional httpx transport (used by tests).
        """
        self._api_key = api_key
        self._base_url = (base_url or settings.openrouter_base_url).rstrip("/")
        self._referer = referer or settings.app_referer
        self._title = title or settings.app_title
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "HTTP-Referer": self._referer,
                    "X-Title": self._title,
                },
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                transport=self._transport,
            )
        return self._client

    @classmethod
    def create(cls, api_key: str, base_url: str | None = None) -> "OpenAICompatibleChatProvider":
        """Factory method to create the provider with defaults from settings."""
        return cls(api_key=api_key, base_url=base_url)

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        """Run one chat completion and return the assistant text.

        Raises:
            ModelCallError: On any transport, HTTP or payload failure
        """
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            response = await self.client.post(
                f"{self._base_url}/chat/completions",
                json=payload,
                timeout=timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise ModelCallError(
                f"{model} timed out after {timeout:g}s",
                failure_kind="timeout",
                model=model,
            ) from e
        except httpx.HTTPStatusError as e:
            raise self._status_error(e, model) from e
        except httpx.DecodingError as e:
            raise ModelCallError(
                f"{model} sent an undecodable body: {self._short_message(str(e))}",
                failure_kind="malformed_response",
                model=model,
            ) from e
        except httpx.HTTPError as e:
            # TransportError, TooManyRedirects and any other request failure
            raise ModelCallError(
                f"{model} transport error: {self._short_message(str(e))}",
                failure_kind="transport",
                model=model,
            ) from e
        except ValueError as e:
            raise ModelCallError(
                f"{model} returned a non-JSON body",
                failure_kind="malformed_response",
                model=model,
            ) from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ModelCallError(
                f"{model} response has no message content",
                failure_kind="malformed_response",
                model=model,
            ) from e

        return (content or "").strip()

    def _status_error(self, exc: httpx.HTTPStatusError, model: str) -> ModelCallError:
        """Convert an HTTP error status into a classified ModelCallError."""
        status_code = exc.response.status_code
        if status_code in (408, 504):
            kind = "timeout"
        elif status_code in (401, 403):
            kind = "invalid_api_key"
        elif status_code == 429:
            kind = "rate_limited"
        else:
            kind = "http_error"

        body = self._short_message(self._redact(exc.response.text))
        message = f"{model} returned HTTP {status_code}"
        if body:
            message = f"{message}: {body}"
        return ModelCallError(message, failure_kind=kind, model=model, status_code=status_code)

    @staticmethod
    def _redact(text: str) -> str:
        """Redact API-key-like tokens from provider error content."""
        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        return re.sub(r"(?i)bearer\s+[A-Za-z0-9._-]{12,}", "Bearer [redacted-token]", redacted)

    @classmethod
    def _short_message(cls, text: str) -> str:
        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_ERROR_CHARS:
            return compact
        return f"{compact[: cls._MAX_ERROR_CHARS - 3]}..."

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
