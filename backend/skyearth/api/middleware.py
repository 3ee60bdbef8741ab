"""
Request middleware: access logging and the last-resort error boundary.
"""
import logging
import time
from fastapi import FastAPI, Request, status
from skyearth.errors import InternalError, error_response

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI) -> None:
    """Attach app-level middleware."""

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Handled here so the server does not log the same failure again
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                InternalError.default_message,
            )

        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        level = logging.WARNING if response.status_code >= 500 else logging.DEBUG
        logger.log(
            level,
            "%s %s %s -> %s in %.1fms",
            request.client.host if request.client else "-",
            request.method,
            request.url.path,
            response.status_code,
            elapsed * 1000,
        )
        return response
