class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class NotFoundError(ServiceError):
    """Raised when a row is missing or belongs to another owner."""


class ValidationError(ServiceError):
    """Raised when a request breaks a billing rule."""


class DownstreamServiceError(ServiceError):
    """Raised when an external service returns an error response or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code
