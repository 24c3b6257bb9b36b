"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
Services raise these; exception handlers in switchboard.responses render them.
"""

from enum import Enum
from typing import Any


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Authentication errors (401)
    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"
    E_INVALID_CREDENTIALS = "E_INVALID_CREDENTIALS"

    # Authorization errors (403)
    E_FORBIDDEN = "E_FORBIDDEN"
    E_NOT_GROUP_MEMBER = "E_NOT_GROUP_MEMBER"
    E_CONTACT_NOT_ALLOWED = "E_CONTACT_NOT_ALLOWED"

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"
    E_GROUP_NOT_FOUND = "E_GROUP_NOT_FOUND"
    E_MESSAGE_NOT_FOUND = "E_MESSAGE_NOT_FOUND"
    E_NOTIFICATION_NOT_FOUND = "E_NOTIFICATION_NOT_FOUND"
    E_CONTACT_NOT_FOUND = "E_CONTACT_NOT_FOUND"

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_TARGET = "E_INVALID_TARGET"
    E_CONTENT_INVALID = "E_CONTENT_INVALID"
    E_NAME_INVALID = "E_NAME_INVALID"
    E_PASSWORD_INVALID = "E_PASSWORD_INVALID"

    # Conflict errors (409)
    E_CONFLICT = "E_CONFLICT"
    E_ALREADY_MEMBER = "E_ALREADY_MEMBER"
    E_NOT_MEMBER = "E_NOT_MEMBER"
    E_CONTACT_EXISTS = "E_CONTACT_EXISTS"
    E_EMAIL_TAKEN = "E_EMAIL_TAKEN"

    # Server errors
    E_INTERNAL = "E_INTERNAL"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_UNAUTHENTICATED: 401,
    ApiErrorCode.E_INVALID_CREDENTIALS: 401,
    ApiErrorCode.E_FORBIDDEN: 403,
    ApiErrorCode.E_NOT_GROUP_MEMBER: 403,
    ApiErrorCode.E_CONTACT_NOT_ALLOWED: 403,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_USER_NOT_FOUND: 404,
    ApiErrorCode.E_GROUP_NOT_FOUND: 404,
    ApiErrorCode.E_MESSAGE_NOT_FOUND: 404,
    ApiErrorCode.E_NOTIFICATION_NOT_FOUND: 404,
    ApiErrorCode.E_CONTACT_NOT_FOUND: 404,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_INVALID_TARGET: 400,
    ApiErrorCode.E_CONTENT_INVALID: 400,
    ApiErrorCode.E_NAME_INVALID: 400,
    ApiErrorCode.E_PASSWORD_INVALID: 400,
    ApiErrorCode.E_CONFLICT: 409,
    ApiErrorCode.E_ALREADY_MEMBER: 409,
    ApiErrorCode.E_NOT_MEMBER: 409,
    ApiErrorCode.E_CONTACT_EXISTS: 409,
    ApiErrorCode.E_EMAIL_TAKEN: 409,
    ApiErrorCode.E_INTERNAL: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
        details: Optional field-level detail (validation errors only)
    """

    def __init__(
        self,
        code: ApiErrorCode,
        message: str,
        details: list[dict[str, Any]] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class UnauthenticatedError(ApiError):
    """Missing, invalid, or revoked bearer token."""

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_UNAUTHENTICATED,
        message: str = "Authentication required",
    ):
        super().__init__(code, message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class ForbiddenError(ApiError):
    """Authorization failure error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_FORBIDDEN, message: str = "Forbidden"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST,
        message: str = "Invalid request",
        details: list[dict[str, Any]] | None = None,
    ):
        super().__init__(code, message, details)


class ConflictError(ApiError):
    """Duplicate or state-conflicting write."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_CONFLICT, message: str = "Conflict"):
        super().__init__(code, message)
