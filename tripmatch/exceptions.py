"""
Domain exceptions and the handlers that turn them into HTTP responses.
"""
from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TripMatchError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500


class InvalidInput(TripMatchError, ValueError):
    """A precondition on caller-supplied values was violated."""

    status_code = 422


class TripNotFound(TripMatchError):
    status_code = 404


class TripFull(TripMatchError):
    status_code = 400


class TripClosed(TripMatchError):
    status_code = 400


class AlreadyParticipant(TripMatchError):
    status_code = 400


class EmailTaken(TripMatchError):
    status_code = 400


class NotTripOwner(TripMatchError):
    status_code = 403


class QuotaExceeded(TripMatchError):
    status_code = 403


async def tripmatch_error_handler(request: Request, exc: TripMatchError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Service error in %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error in %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
