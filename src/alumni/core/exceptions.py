"""
Service Errors

Base exception hierarchy shared by all service layers. Each error carries a
client-safe message, a stable error code and the HTTP status it maps to.
Routers convert these to `HTTPException(detail={"error", "message"})`.
"""

from fastapi import HTTPException


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class BadRequestError(ServiceError):
    """Raised when the input or the current state does not allow the operation."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="BAD_REQUEST", status_code=400)


class UnauthorizedError(ServiceError):
    """Raised when credentials are missing or invalid."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message, error_code="UNAUTHORIZED", status_code=401)


class ForbiddenError(ServiceError):
    """Raised when the caller may not act on the target resource."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message=message, error_code="FORBIDDEN", status_code=403)


class NotFoundError(ServiceError):
    """Raised when a referenced record does not exist."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="NOT_FOUND", status_code=404)


class ConflictError(ServiceError):
    """Raised when a uniqueness constraint would be violated."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="CONFLICT", status_code=409)


class RateLimitExceededError(ServiceError):
    """Raised when a caller exceeds a rate limit."""

    def __init__(self, retry_after_seconds: int = 60):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            message=f"Too many requests. Please try again in {retry_after_seconds} seconds.",
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
        )


def to_http_exception(error: ServiceError) -> HTTPException:
    """Convert a service error to an HTTPException with the standard envelope."""
    headers = None
    if isinstance(error, RateLimitExceededError):
        headers = {"Retry-After": str(error.retry_after_seconds)}
    elif isinstance(error, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}

    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.error_code, "message": error.message},
        headers=headers,
    )


def internal_error(message: str) -> HTTPException:
    """Generic 500 for unexpected failures. Never leaks the underlying error."""
    return HTTPException(
        status_code=500,
        detail={"error": "INTERNAL_ERROR", "message": message},
    )
