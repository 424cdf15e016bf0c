"""Error translation for FastAPI route handlers."""

import functools
import logging
from collections.abc import Callable

from fastapi import HTTPException, status

from core.exceptions import (
    DuplicateResourceError,
    ExternalServiceError,
    FieldTrackError,
    RateLimitError,
    ResourceNotFoundError,
    ValidationError,
)

# Checked in order, so subclasses must precede their bases.
_ERROR_STATUS: tuple[tuple[type[FieldTrackError], int, int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST, logging.WARNING),
    (ResourceNotFoundError, status.HTTP_404_NOT_FOUND, logging.INFO),
    (DuplicateResourceError, status.HTTP_409_CONFLICT, logging.WARNING),
    (RateLimitError, status.HTTP_429_TOO_MANY_REQUESTS, logging.WARNING),
    (ExternalServiceError, status.HTTP_502_BAD_GATEWAY, logging.ERROR),
)


def _to_http(error: FieldTrackError) -> tuple[int, int, str]:
    for error_type, status_code, level in _ERROR_STATUS:
        if isinstance(error, error_type):
            detail = error.message
            if status_code == status.HTTP_502_BAD_GATEWAY:
                detail = f"External service error: {detail}"
            return status_code, level, detail
    return status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR, error.message


def api_route(logger: logging.Logger):
    """
    Wrap an async endpoint so application errors become HTTP responses.

    ``HTTPException`` passes through, :class:`FieldTrackError` subclasses get
    their mapped status (400/404/409/429/502, else 500), and anything else is
    logged with its traceback and returned as a 500.

    Usage:
        @router.get("/api/activity/{engineer_id}/history")
        @api_route(logger)
        async def get_activity_history(engineer_id: int): ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except FieldTrackError as e:
                status_code, level, detail = _to_http(e)
                logger.log(
                    level,
                    "%s failed with %d: %s",
                    func.__name__,
                    status_code,
                    e.message,
                    exc_info=level >= logging.ERROR,
                )
                raise HTTPException(status_code=status_code, detail=detail) from e
            except Exception as e:
                logger.exception("Unexpected error in %s", func.__name__)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=str(e),
                ) from e

        return wrapper

    return decorator
