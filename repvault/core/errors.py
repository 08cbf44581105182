"""Governance error taxonomy.

Every error the governance layer surfaces to a caller derives from
GovernanceError and carries an HTTP status, a stable machine-readable code
and an optional details mapping:

- INVALID_INPUT: caller-correctable request shape problems
- VALIDATION_ERROR: structured multi-field validation failure
- UNAUTHORIZED / USER_MISMATCH: authentication or ownership problems
- FORBIDDEN: authorization failure
- RATE_LIMIT_EXCEEDED: quota exhausted for the current window
- INTERNAL_ERROR: store or transport failure not attributable to the caller
"""

from typing import Any


class GovernanceError(Exception):
    """Base class for errors returned to the caller.

    Attributes:
        code: Stable error code (e.g. "RATE_LIMIT_EXCEEDED")
        message: Human-readable message
        details: Structured details (field -> reason for validation errors)
    """

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(f"{self.code}: {message}")

    def to_payload(self) -> dict[str, Any]:
        return {
            "ok": False,
            "error": {"code": self.code, "message": self.message, "details": self.details},
        }


class InvalidInput(GovernanceError):
    status_code = 400
    default_code = "INVALID_INPUT"


class ValidationError(GovernanceError):
    """Aggregated validation failure; details enumerate every failing field."""

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(self, details: dict[str, str], message: str = "Request validation failed."):
        super().__init__(message, details=details)


class Unauthorized(GovernanceError):
    status_code = 401
    default_code = "UNAUTHORIZED"


class IdentityMismatch(GovernanceError):
    status_code = 403
    default_code = "USER_MISMATCH"


class Forbidden(GovernanceError):
    status_code = 403
    default_code = "FORBIDDEN"


class RateLimitExceeded(GovernanceError):
    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"


class InternalError(GovernanceError):
    status_code = 500
    default_code = "INTERNAL_ERROR"


class ConditionalCheckFailed(Exception):
    """Raised by a store when a conditional write's precondition does not hold."""
