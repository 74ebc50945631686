"""
Application error classes for consistent error handling.

Every error raised by the stores, services and code generator derives from
AppError so the web layer can map it to a status code and a stable error code
without inspecting messages.
"""

from typing import Optional, Dict, Any


class AppError(Exception):
    """
    Base application error.

    Attributes:
        status_code: HTTP status code (default: 500)
        code: Stable machine-readable error code
        message: Human readable error message
        details: Optional additional error details
    """
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """
        Initialize application error.

        Args:
            message: Error message (overrides default)
            details: Optional additional error details
        """
        self.message = message or self.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class BadRequestError(AppError):
    """400 Bad Request error."""
    status_code = 400
    code = "BAD_REQUEST"
    message = "bad request"


class NotFoundError(AppError):
    """404 Not Found error."""
    status_code = 404
    code = "NOT_FOUND"
    message = "not found"


class ConflictError(AppError):
    """409 Conflict error."""
    status_code = 409
    code = "CONFLICT"
    message = "conflict"


class RateLimitedError(AppError):
    """429 Too Many Requests error."""
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    message = "rate limit exceeded"


class UnauthorizedError(AppError):
    """401 Unauthorized error."""
    status_code = 401
    code = "UNAUTHORIZED"
    message = "unauthorized"


class ForbiddenError(AppError):
    """403 Forbidden error."""
    status_code = 403
    code = "FORBIDDEN"
    message = "forbidden"


class InternalError(AppError):
    """500 error for storage, filesystem and generation failures."""
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "internal server error"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        details = {"cause": str(cause)} if cause is not None else None
        super().__init__(message, details)
        self.cause = cause


class DuplicateKeyError(InternalError):
    """A unique constraint rejected an insert."""
    message = "duplicate key"


class CodeGenerationExhaustedError(InternalError):
    """No unique identifier could be produced within the retry budget."""
    message = "failed to generate unique code after retries"


class FileTooLargeError(AppError):
    """400 error for uploads above the configured size limit."""
    status_code = 400
    code = "FILE_TOO_LARGE"

    def __init__(self, max_size: int):
        super().__init__(
            f"file size exceeds {max_size // (1024 * 1024)}MB limit",
            {"max_size": max_size},
        )
        self.max_size = max_size


class FileTypeNotAllowedError(AppError):
    """400 error for uploads with a disallowed extension."""
    status_code = 400
    code = "FILE_TYPE_NOT_ALLOWED"
    message = "file type not allowed"


class ContentTooLargeError(AppError):
    """400 error for note bodies above the size limit."""
    status_code = 400
    code = "CONTENT_TOO_LARGE"
    message = "content too large"
