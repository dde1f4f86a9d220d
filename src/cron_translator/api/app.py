import logging
from typing import Any

from fastapi import BackgroundTasks, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cron_translator import __version__
from cron_translator.api.dependencies import CallerDep, HandlerDep, lifespan
from cron_translator.api.middleware import (
    StrictJSONResponse,
    apply_security_headers,
    request_logging_middleware,
    security_headers_middleware,
)
from cron_translator.config import configure_logging, settings
from cron_translator.dto import (
    ErrorResponse,
    HealthResponse,
    RateLimitInfo,
    StatsResponse,
    TranslateRequest,
    TranslateResponse,
)
from cron_translator.errors import (
    ConfigurationError,
    InputMissingError,
    InputTooLongError,
    RateLimitExceededError,
    TranslationFailedError,
    TranslatorError,
)

configure_logging()
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Cron Translator API",
    description="Translate plain-English schedules into 5-field Unix cron expressions",
    version=__version__,
    lifespan=lifespan,
    docs_url="/ui",
    openapi_url="/doc",
    redoc_url=None,
    default_response_class=StrictJSONResponse,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=list(settings.cors_origins),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)
app.middleware("http")(request_logging_middleware)
app.middleware("http")(security_headers_middleware)


def error_response(
    status_code: int,
    error: str,
    details: dict[str, Any] | None = None,
    rate_limit_type: str | None = None,
) -> StrictJSONResponse:
    """Render the JSON error body shared by every non-2xx response."""
    body = ErrorResponse(error=error, details=details, rate_limit_type=rate_limit_type)
    return StrictJSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@app.exception_handler(TranslatorError)
async def translator_error_handler(request: Request, exc: TranslatorError) -> StrictJSONResponse:
    """Map domain errors to HTTP responses."""
    if isinstance(exc, InputMissingError):
        return error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    if isinstance(exc, InputTooLongError):
        return error_response(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, str(exc))

    if isinstance(exc, RateLimitExceededError):
        details = RateLimitInfo.from_usage(exc.usage).model_dump(by_alias=True)
        details["reason"] = exc.kind.value
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            str(exc),
            details=details,
            rate_limit_type=exc.kind.rate_limit_type,
        )

    if isinstance(exc, TranslationFailedError):
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            str(exc),
            details={
                "input": exc.input_text,
                "model": exc.model,
                "attempts": exc.attempts,
                "lastError": str(exc.last_error) if exc.last_error else None,
            },
        )

    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error: %s", exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    logger.error("Unhandled translator error: %s", exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> StrictJSONResponse:
    """Reject malformed request bodies without echoing their content."""
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request body",
        details={"fields": fields},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> StrictJSONResponse:
    """Render HTTP errors (404, 405, handler 500s) in the shared error format."""
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> StrictJSONResponse:
    """Last resort. Runs outside the middleware stack, so headers are set here."""
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    response = error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
    apply_security_headers(response, request.url.path)
    return response


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def root() -> str:
    """Landing page."""
    return "<!doctype html><title>Cron Translator</title><h1>Cron Translator</h1>"


@app.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
@app.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health(handler: HandlerDep) -> StrictJSONResponse:
    """Health check with rate limit configuration and daily usage."""
    response, healthy = await handler.health_check()
    return StrictJSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(by_alias=True),
    )


@app.get("/stats", response_model=StatsResponse)
async def get_stats(handler: HandlerDep) -> StatsResponse:
    """In-process request statistics."""
    return await handler.get_stats()


@app.post(
    "/api/translate",
    response_model=TranslateResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or untranslatable input"},
        413: {"model": ErrorResponse, "description": "Input too long"},
        429: {"model": ErrorResponse, "description": "Rate limited"},
        500: {"model": ErrorResponse, "description": "Missing configuration or internal error"},
    },
)
async def translate(
    request: TranslateRequest,
    handler: HandlerDep,
    caller_id: CallerDep,
    background_tasks: BackgroundTasks,
) -> TranslateResponse:
    """Translate a plain-English schedule into a cron expression."""
    return await handler.translate(request, caller_id, background_tasks)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cron_translator.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
