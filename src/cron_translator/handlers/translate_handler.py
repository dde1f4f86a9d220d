"""HTTP handlers for translation.

Handlers convert between DTOs (API contracts) and service calls. Domain
errors (TranslatorError subclasses) propagate to the app's exception
handlers, which render them; anything unexpected becomes a bare 500.
"""

import logging

from fastapi import BackgroundTasks, HTTPException, status

from cron_translator.dto import (
    HealthResponse,
    RateLimitInfo,
    StatsResponse,
    TranslateRequest,
    TranslateResponse,
)
from cron_translator.entities import PerformanceMetrics, RequestMetrics
from cron_translator.errors import (
    ConfigurationError,
    RateLimitExceededError,
    TranslationFailedError,
    TranslatorError,
)
from cron_translator.protocols import KeyValueStore
from cron_translator.services import QuotaTracker, ResponseCache, TranslationOrchestrator, normalize

logger = logging.getLogger(__name__)


class TranslateHandler:
    """HTTP handlers for the translate pipeline.

    Pipeline for POST /api/translate:
        normalize -> admit -> cache lookup -> translate -> cache store

    The cache store is scheduled as a background task so the response never
    waits on it.
    """

    def __init__(
        self,
        quota: QuotaTracker,
        cache: ResponseCache,
        orchestrator: TranslationOrchestrator | None,
        store: KeyValueStore,
        metrics: PerformanceMetrics | None = None,
    ) -> None:
        """Initialize the translate handler.

        Args:
            quota: Admission control.
            cache: Translation cache.
            orchestrator: Model orchestrator; None when the provider
                credential is not configured.
            store: Key-value store, pinged by the health check.
            metrics: Aggregate metrics sink. A fresh one if None.
        """
        self._quota = quota
        self._cache = cache
        self._orchestrator = orchestrator
        self._store = store
        self._metrics = metrics or PerformanceMetrics()

    async def translate(
        self,
        request: TranslateRequest,
        caller_id: str,
        background_tasks: BackgroundTasks,
    ) -> TranslateResponse:
        """Handle POST /api/translate requests.

        Raises:
            TranslatorError: Rendered by the app's exception handlers
            HTTPException: On unexpected internal failure
        """
        metrics = RequestMetrics()
        try:
            if self._orchestrator is None:
                raise ConfigurationError("Missing OPENROUTER_API_KEY environment variable")

            text = normalize(request.input)

            admission = self._quota.admit(caller_id)
            if admission.denial is not None:
                metrics.rate_limited = True
                raise RateLimitExceededError(admission.denial, self._quota.current_usage())

            cached = self._cache.get(text)
            if cached is not None:
                metrics.cache_hit = True
                metrics.model = cached.model
                return TranslateResponse(**cached.to_payload())

            result = await self._orchestrator.translate(text)
            metrics.model = result.model
            metrics.attempts = result.attempts

            background_tasks.add_task(self._cache.put, result)
            return TranslateResponse(**result.to_payload())

        except TranslationFailedError as e:
            metrics.attempts = e.attempts
            metrics.error = str(e.last_error or e)
            metrics.timeout = e.timed_out
            raise
        except TranslatorError as e:
            metrics.error = str(e)
            raise
        except Exception as e:
            metrics.error = type(e).__name__
            logger.exception("Unexpected error in /api/translate")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error",
            ) from e
        finally:
            self._metrics.record(metrics)
            logger.info("translate caller=%s %s", caller_id, metrics.to_dict())

    async def health_check(self) -> tuple[HealthResponse, bool]:
        """Handle GET /health requests.

        Returns:
            The health payload and whether the store is reachable
        """
        store_healthy = self._store.ping()
        response = HealthResponse(
            status="ok" if store_healthy else "degraded",
            store_healthy=store_healthy,
            rate_limit=RateLimitInfo.from_usage(self._quota.current_usage()),
        )
        return response, store_healthy

    async def get_stats(self) -> StatsResponse:
        """Handle GET /stats requests."""
        return StatsResponse(**self._metrics.to_dict())

    @property
    def quota(self) -> QuotaTracker:
        """Get the quota tracker (for shutdown flushing and tests)."""
        return self._quota
