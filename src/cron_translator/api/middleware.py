"""HTTP middleware: security headers and request logging."""

import logging
from typing import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from cron_translator.api.dependencies import get_caller_id

logger = logging.getLogger(__name__)

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Referrer-Policy": "no-referrer",
}

# Swagger UI pulls its scripts and styles from a CDN
DOCS_CSP = (
    "default-src 'none'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https://fastapi.tiangolo.com; "
    "connect-src 'self'; "
    "frame-ancestors 'none'"
)

DOCS_PATHS = frozenset({"/ui", "/ui/oauth2-redirect"})


class StrictJSONResponse(JSONResponse):
    """JSON response with an explicit charset."""

    media_type = "application/json; charset=utf-8"


def apply_security_headers(response: Response, path: str) -> Response:
    """Set the security headers on a response in place."""
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    if path in DOCS_PATHS:
        response.headers["Content-Security-Policy"] = DOCS_CSP
    return response


async def security_headers_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Attach security headers to every response, including errors."""
    response = await call_next(request)
    return apply_security_headers(response, request.url.path)


async def request_logging_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Log method, path and caller identity of every request."""
    logger.info("%s %s from %s", request.method, request.url.path, get_caller_id(request))
    return await call_next(request)
