"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services built once in lifespan and stored in app.state
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress
from typing import Annotated, Awaitable, Callable

from fastapi import Depends, FastAPI, Request

from cron_translator.config import Settings, get_settings
from cron_translator.entities import PerformanceMetrics
from cron_translator.handlers import TranslateHandler
from cron_translator.protocols import ChatCompletionProvider, KeyValueStore
from cron_translator.repositories import OpenAICompatibleChatProvider, RedisKeyValueStore
from cron_translator.services import QuotaTracker, ResponseCache, TranslationOrchestrator

logger = logging.getLogger(__name__)

UNKNOWN_CALLER = "unknown"


def get_handler(request: Request) -> TranslateHandler:
    """Dependency injection for TranslateHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The TranslateHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "translate_handler", None)
    if handler is None:
        raise RuntimeError("TranslateHandler not initialized. Check lifespan setup.")
    return handler


def get_caller_id(request: Request) -> str:
    """Derive the caller identity used for per-caller quotas.

    Order: the trusted proxy header ``CF-Connecting-IP``, then the first
    address in ``X-Forwarded-For``, then the literal ``"unknown"``. All
    callers without either header share the ``"unknown"`` bucket.
    """
    connecting_ip = request.headers.get("cf-connecting-ip", "").strip()
    if connecting_ip:
        return connecting_ip

    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded

    return UNKNOWN_CALLER


def build_handler(
    settings: Settings,
    store: KeyValueStore,
    provider: ChatCompletionProvider | None,
    clock: Callable[[], float] = time.time,
    sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TranslateHandler:
    """Wire quota, cache and orchestrator into a TranslateHandler.

    Args:
        settings: Application settings.
        store: Key-value store shared by quota and cache.
        provider: Chat completion provider; None leaves translation
            unconfigured (requests get a 500).
        clock: Wall clock for the quota tracker.
        sleeper: Backoff sleep for the orchestrator.

    Returns:
        Configured TranslateHandler
    """
    quota = QuotaTracker(
        store=store,
        key_prefix=settings.key_prefix,
        daily_limit=settings.daily_limit,
        per_caller_max=settings.per_caller_max,
        per_caller_window_seconds=settings.per_caller_window_seconds,
        burst_max=settings.burst_max,
        burst_window_seconds=settings.burst_window_seconds,
        flush_interval=settings.counter_flush_seconds,
        clock=clock,
    )
    cache = ResponseCache(
        store=store,
        version=settings.cache_version,
        ttl=settings.cache_ttl,
        key_prefix=settings.key_prefix,
    )

    orchestrator = None
    if provider is not None:
        orchestrator = TranslationOrchestrator(
            provider=provider,
            models=settings.translation_models,
            timeout_seconds=settings.model_timeout_seconds,
            primary_attempts=settings.primary_attempts,
            retry_backoff_seconds=settings.retry_backoff_seconds,
            retry_temperature=settings.retry_temperature,
            max_tokens=settings.model_max_tokens,
            sleeper=sleeper,
        )

    return TranslateHandler(
        quota=quota,
        cache=cache,
        orchestrator=orchestrator,
        store=store,
        metrics=PerformanceMetrics(),
    )


async def flush_periodically(
    quota: QuotaTracker,
    interval: float,
    sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Write debounced quota counters every ``interval`` seconds until cancelled."""
    while True:
        await sleeper(interval)
        quota.flush()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Repositories (Redis store, model provider) - created explicitly
    2. Handler (pipeline) - stored in app.state.translate_handler

    A background task flushes debounced quota counters periodically.

    Cleanup:
        Stops the flush task, flushes pending quota counters, closes
        clients and removes everything from app.state on shutdown
    """
    settings = get_settings()
    store = RedisKeyValueStore.create()

    provider: OpenAICompatibleChatProvider | None = None
    if settings.openrouter_api_key:
        provider = OpenAICompatibleChatProvider.create(api_key=settings.openrouter_api_key)
    else:
        logger.error("OPENROUTER_API_KEY is not set; /api/translate will return 500")

    app.state.translate_handler = build_handler(settings, store, provider)
    app.state.store = store
    app.state.provider = provider

    logger.info("Translation service initialized")
    logger.info("Model roster: %s", ", ".join(settings.translation_models))
    logger.info("Cache version: %s", settings.cache_version)
    logger.info("Store healthy: %s", store.ping())

    flusher = asyncio.create_task(
        flush_periodically(app.state.translate_handler.quota, settings.counter_flush_seconds)
    )

    yield

    flusher.cancel()
    with suppress(asyncio.CancelledError):
        await flusher
    app.state.translate_handler.quota.flush()
    if provider is not None:
        await provider.close()
    store.close()

    del app.state.translate_handler
    del app.state.store
    del app.state.provider
    logger.info("Translation service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[TranslateHandler, Depends(get_handler)]
CallerDep = Annotated[str, Depends(get_caller_id)]
