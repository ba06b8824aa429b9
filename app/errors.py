"""Error kinds raised by the auth services and the request gate.

Every error renders to the same JSON envelope::

    {"success": false, "message": "...", "error": "...", "errors": {"field": ["..."]}}

``error`` and ``errors`` are omitted when empty. Handlers in ``main.py`` turn
these into responses; nothing below knows about HTTP beyond the status code.
"""

from datetime import datetime
from typing import Any


class AuthError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = 400
    kind: str = "auth_error"
    message: str = "Request failed"
    error: str | None = None

    def __init__(
        self,
        message: str | None = None,
        error: str | None = None,
        errors: dict[str, list[str]] | None = None,
        **extra: Any,
    ) -> None:
        if message is not None:
            self.message = message
        if error is not None:
            self.error = error
        self.errors = errors or {}
        self.extra = extra
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": False, "message": self.message}
        if self.error:
            payload["error"] = self.error
        if self.errors:
            payload["errors"] = self.errors
        payload.update(self.extra)
        return payload


class ValidationFailed(AuthError):
    status_code = 422
    kind = "validation_error"
    message = "Validation failed"


class DuplicateEmail(ValidationFailed):
    kind = "duplicate_email"

    def __init__(self) -> None:
        super().__init__(errors={"email": ["The email has already been taken."]})


class InvalidCredentials(AuthError):
    status_code = 401
    kind = "invalid_credentials"
    message = "Invalid credentials"


class MissingCredentials(AuthError):
    status_code = 401
    kind = "missing_credentials"
    message = "Authorization header is missing"
    error = "Please provide a valid Bearer token in the Authorization header"


class MalformedCredentials(AuthError):
    status_code = 401
    kind = "malformed_credentials"
    message = "Invalid authorization format"
    error = "Authorization header must be in the format: Bearer {token}"


class InvalidToken(AuthError):
    status_code = 401
    kind = "invalid_token"
    message = "Invalid token"
    error = "The provided authentication token is invalid or has been revoked"


class ExpiredToken(AuthError):
    status_code = 401
    kind = "expired_token"
    message = "Token has expired"
    error = "Your authentication token has expired. Please login again to get a new token."

    def __init__(self, expired_at: datetime) -> None:
        self.expired_at = expired_at
        super().__init__(expired_at=expired_at.strftime("%Y-%m-%d %H:%M:%S"))


class OtpExpiredOrMissing(AuthError):
    status_code = 400
    kind = "otp_expired_or_missing"
    message = "OTP has expired or does not exist"
    error = "Please request a new password reset code."


class InvalidOtp(AuthError):
    status_code = 400
    kind = "invalid_otp"
    message = "Invalid OTP"
    error = "The code you entered is incorrect."


class EndpointNotFound(AuthError):
    status_code = 404
    kind = "not_found"
    message = "Endpoint not found"
    error = "The requested resource does not exist"


class MethodNotSupported(AuthError):
    status_code = 405
    kind = "method_not_supported"
    message = "Method not allowed"
    error = "The HTTP method used is not supported for this endpoint"


class RateLimited(AuthError):
    status_code = 429
    kind = "rate_limited"
    message = "Rate limit exceeded. Try again later."


class InternalError(AuthError):
    status_code = 500
    kind = "internal"
    message = "Internal server error"
