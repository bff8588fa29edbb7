"""
Global error handling middleware.

Last line of defence: anything a route lets escape is logged with its
traceback and rendered as 500 ``{"message": ...}``, the one error shape
the service uses.
"""

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from twitch_notifier.core.errors import NotifierError
from twitch_notifier.core.logging.logger import get_logger


def error_message(exc: Exception) -> str:
    """Message for an error body; NotifierError messages are shown as-is."""
    if isinstance(exc, NotifierError):
        return exc.message
    return str(exc) or type(exc).__name__


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catches unhandled exceptions and returns a structured error response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)

        except HTTPException as http_exc:
            logger = get_logger(__name__)
            logger.warning(
                f"HTTP {http_exc.status_code} - {request.method} {request.url.path} - "
                f"Detail: {http_exc.detail}"
            )
            raise

        except Exception as exc:
            return self._handle_unexpected_exception(request, exc)

    def _handle_unexpected_exception(
        self, request: Request, exc: Exception
    ) -> JSONResponse:
        logger = get_logger(__name__)
        logger.error(
            f"Unhandled exception in {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"message": error_message(exc)})
