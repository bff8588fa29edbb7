"""
Request and response logging middleware.

Logs method, path, timing and status for every request. EventSub
signature headers and other credentials never reach the logs.
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from twitch_notifier.core.config.settings import settings
from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.webhooks.messages import MESSAGE_SIGNATURE_HEADER

SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        MESSAGE_SIGNATURE_HEADER,
    }
)


def sanitize_headers(headers) -> dict[str, str]:
    """Copy of ``headers`` without credentials or signatures."""
    return {k: v for k, v in headers.items() if k.lower() not in SENSITIVE_HEADERS}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, log_requests: bool = True, log_responses: bool = True):
        super().__init__(app)
        self.log_requests = log_requests
        self.log_responses = log_responses

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()
        logger = get_logger(__name__)
        skip = self._should_skip_logging(request.url.path)

        if self.log_requests and not skip:
            logger.info(
                f"Incoming {request.method} {request.url.path}",
                extra={
                    "request": {
                        "headers": sanitize_headers(request.headers),
                        "client_host": request.client.host if request.client else "unknown",
                    }
                },
            )

        response = await call_next(request)
        process_time_ms = round((time.time() - start_time) * 1000, 2)

        if settings.is_development:
            response.headers["X-Process-Time"] = str(process_time_ms)

        if self.log_responses and not skip:
            status_code = response.status_code
            if status_code >= 500:
                log_level = "error"
            elif status_code >= 400:
                log_level = "warning"
            else:
                log_level = "info"
            getattr(logger, log_level)(
                f"Response {status_code} for {request.method} {request.url.path} "
                f"({process_time_ms}ms)"
            )

        return response

    def _should_skip_logging(self, path: str) -> bool:
        skip_paths = ["/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"]
        return any(path.startswith(skip_path) for skip_path in skip_paths)
