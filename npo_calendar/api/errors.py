"""Map domain errors to HTTP responses.

Status code mapping:
- ``ValidationError`` → 422
- ``Unauthenticated`` → 401
- ``Forbidden`` → 403
- ``NotFound`` → 404
- ``ConflictError`` → 409
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from npo_calendar.errors import (
    CalendarError,
    ConflictError,
    Forbidden,
    NotFound,
    Unauthenticated,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[CalendarError], int] = {
    ValidationError: 422,
    Unauthenticated: 401,
    Forbidden: 403,
    NotFound: 404,
    ConflictError: 409,
}


async def _handle_calendar_error(request: Request, exc: CalendarError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in STATUS_CODES.items() if isinstance(exc, error_type)),
        400,
    )
    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    """Attach the domain exception handler to the application."""
    app.add_exception_handler(CalendarError, _handle_calendar_error)  # type: ignore[arg-type]
