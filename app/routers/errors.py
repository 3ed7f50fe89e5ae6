"""Translation of service exceptions into HTTP errors."""
from fastapi import HTTPException, status

from app.exceptions import (
    AccessDenied,
    InvalidPledgeTransition,
    NotFoundError,
    RDMHealthError,
    ValidationError,
)


def to_http_exception(error: RDMHealthError) -> HTTPException:
    """
    Map a service exception to an HTTPException carrying its public message.

    NotFoundError becomes 404, AccessDenied 403, ValidationError and
    InvalidPledgeTransition 400, anything else 500.
    """
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, AccessDenied):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, (ValidationError, InvalidPledgeTransition)):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=error.public_message)
