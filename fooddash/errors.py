"""Exception taxonomy for Fooddash.

Each exception carries the HTTP status the API layer responds with.
"""

from fooddash.models.result import Failure, FailureReason


class FooddashError(Exception):
    """Base class for all application errors."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(FooddashError):
    """Missing or invalid caller input."""

    status_code = 400
    public_message = "Invalid request"


class AuthError(FooddashError):
    """No authenticated user where one is required."""

    status_code = 401
    public_message = "Not authenticated"


class UpstreamError(FooddashError):
    """External service returned a non-success status or a malformed payload."""

    status_code = 500
    public_message = "External service request failed"

    def __init__(
        self,
        message: str | None = None,
        reason: FailureReason = FailureReason.UPSTREAM_ERROR,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.upstream_status = upstream_status

    @classmethod
    def from_failure(cls, failure: Failure) -> "UpstreamError":
        return cls(
            failure.message,
            reason=failure.reason,
            upstream_status=failure.status_code,
        )


class PersistenceError(FooddashError):
    """Relational store read or write failure."""

    status_code = 500
    public_message = "Database query failed"
