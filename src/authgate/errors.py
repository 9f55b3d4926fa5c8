"""Domain errors surfaced through the GraphQL API.

Learn: Resolvers and services raise these instead of HTTP exceptions.
A GraphQL response is always HTTP 200, so the failure kind travels in
the error's `extensions.code` instead of the status line. The error
formatter in authgate.gql.errors turns them into that shape.
"""

from enum import StrEnum
from typing import Optional


class ErrorCode(StrEnum):
    """Machine-readable error codes placed in GraphQL error extensions."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NO_DATA = "NO_DATA"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    UPLOAD_TOO_LARGE = "UPLOAD_TOO_LARGE"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class AuthGateError(Exception):
    """Base class for errors that are safe to show to API callers."""

    code: ErrorCode = ErrorCode.BAD_REQUEST
    default_message = "Bad request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def extensions(self) -> dict:
        return {"code": str(self.code)}


class ValidationError(AuthGateError):
    """Malformed or mismatched input. Carries per-field messages."""

    code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation error"

    def __init__(self, fields: dict[str, str], message: Optional[str] = None):
        self.fields = fields
        super().__init__(message)

    @property
    def extensions(self) -> dict:
        return {"code": str(self.code), "fields": self.fields}


class ConflictError(AuthGateError):
    code = ErrorCode.CONFLICT
    default_message = "Email already registered"


class UnauthorizedError(AuthGateError):
    """Missing/invalid/expired token or bad credentials."""

    code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class BadRequestError(AuthGateError):
    code = ErrorCode.BAD_REQUEST
    default_message = "Bad request"


class NoDataError(AuthGateError):
    code = ErrorCode.NO_DATA
    default_message = "No data provided for update"


class PersistenceError(AuthGateError):
    """The store rejected or failed a write. Reported, never retried."""

    code = ErrorCode.PERSISTENCE_ERROR
    default_message = "Failed to persist changes"


class UploadTooLargeError(AuthGateError):
    code = ErrorCode.UPLOAD_TOO_LARGE
    default_message = "Uploaded file is too large"


class RateLimitedError(AuthGateError):
    code = ErrorCode.RATE_LIMITED
    default_message = "Rate limit exceeded. Try again later."
