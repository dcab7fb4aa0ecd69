from fastapi import HTTPException

from crm_app.services.exceptions import (
    DownstreamServiceError,
    DuplicateSubmission,
    ServiceError,
    ValidationFailure,
)


def to_http_exception(exc: ServiceError) -> HTTPException:
    """Map a service failure onto the status code shown to the caller."""

    if isinstance(exc, ValidationFailure):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, DuplicateSubmission):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, DownstreamServiceError) and exc.status_code in (404, 409):
        return HTTPException(status_code=exc.status_code, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))
