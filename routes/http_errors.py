# routes/http_errors.py
import logging

from fastapi import HTTPException, status

from services.analytics.errors import (
    InvalidFilterError, InvalidRangeError, StorageError, UnauthorizedScopeError,
)

logger = logging.getLogger(__name__)

_STATUS_FOR = {
    InvalidFilterError: status.HTTP_400_BAD_REQUEST,
    InvalidRangeError: status.HTTP_400_BAD_REQUEST,
    UnauthorizedScopeError: status.HTTP_403_FORBIDDEN,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_error(exc: Exception) -> HTTPException:
    """Map an engine failure onto the HTTP status the API reports for it."""
    if isinstance(exc, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc).strip("'\""))
    code = _STATUS_FOR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code >= 500:
        logger.error(f"Analytics request failed: {exc}")
        detail = "Analytics storage unavailable" if isinstance(exc, StorageError) else "Analytics error"
        return HTTPException(status_code=code, detail=detail)
    logger.warning(f"Rejected analytics request: {exc}")
    return HTTPException(status_code=code, detail=str(exc))
