"""
Error envelope for the HTTP API.

Every failure leaves the API as ``{"detail", "code", "timestamp"}``. Analysis
backend failures (unavailable, empty or malformed result) are logged with
their code so outages show up in the server log; client mistakes are not.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from microphenom.core.exceptions import MicroPhenomError

logger = logging.getLogger(__name__)


def error_envelope(status_code: int, detail: str, code: str, timestamp: str | None = None) -> JSONResponse:
    """Build the JSON error response shared by all handlers."""
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the domain, validation and catch-all handlers to ``app``."""

    @app.exception_handler(MicroPhenomError)
    async def microphenom_error_handler(request: Request, exc: MicroPhenomError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(
                "%s %s failed with %s (%d): %s",
                request.method,
                request.url.path,
                exc.code,
                exc.status_code,
                exc.detail,
            )
        else:
            logger.debug("%s %s rejected with %s", request.method, request.url.path, exc.code)
        return error_envelope(exc.status_code, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Field locations only; raw input may contain a whole transcript
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        return error_envelope(422, f"Invalid request: {fields}", "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def unexpected_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error: %s", exc, exc_info=exc)
        return error_envelope(500, "Internal server error", "INTERNAL_ERROR")
