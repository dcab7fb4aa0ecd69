class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DownstreamServiceError(ServiceError):
    """Raised when the CRM API fails or reports ``success: false`` for a write."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class ValidationFailure(ServiceError):
    """Raised when a request is rejected before it reaches the CRM API."""


class DuplicateSubmission(ServiceError):
    """Raised when the same write operation is already in flight."""
