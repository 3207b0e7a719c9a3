"""
Custom exceptions for the Optimizer Dashboard HTTP layer.

The credential resolver itself never raises for configuration problems; it
returns a CredentialFailure. Route handlers that cannot proceed without
credentials wrap that failure in CredentialsUnavailableError, which the
global exception handler renders with the full remediation list.

Design pattern: Base exception -> Specific exceptions
- DashboardError: Base with machine-readable error code and HTTP status
- Specific exceptions inherit from base with predefined error codes
"""

from enum import Enum
from typing import Any

from optimizer_dashboard.credentials.models import CredentialErrorKind, CredentialFailure


class ErrorCode(str, Enum):
    """
    Standardized error codes for API responses.

    Naming convention: <DOMAIN>_<NUMBER>
    - AUTH_xxx: Webhook authentication errors
    - CRED_xxx: Service account credential errors
    - PAYLOAD_xxx: Optimizer payload errors
    """

    UNAUTHORIZED = "AUTH_001"
    API_KEY_NOT_CONFIGURED = "AUTH_002"

    CREDENTIALS_MISSING = "CRED_001"
    CREDENTIALS_INVALID = "CRED_002"

    INVALID_PAYLOAD = "PAYLOAD_001"


class DashboardError(Exception):
    """
    Base exception for dashboard errors surfaced over HTTP.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status code
        error_code: Machine-readable error identifier
        details: Additional context
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: ErrorCode = ErrorCode.CREDENTIALS_INVALID,
        details: Any = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class CredentialsUnavailableError(DashboardError):
    """
    Raised when an endpoint needs explicit credentials and none resolved.

    Carries the resolver's failure so message, details and every
    remediation step reach the response body unchanged.

    HTTP Status: 500 Internal Server Error
    """

    def __init__(self, failure: CredentialFailure):
        self.failure = failure
        code = (
            ErrorCode.CREDENTIALS_MISSING
            if failure.kind == CredentialErrorKind.MISSING
            else ErrorCode.CREDENTIALS_INVALID
        )
        super().__init__(
            message=failure.message,
            status_code=500,
            error_code=code,
            details=failure.details,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code.value,
            "type": self.failure.kind.value,
            "message": self.failure.message,
            "details": self.failure.details,
            "troubleshooting": list(self.failure.remediation),
            "quickLinks": {
                "configCheck": "/api/config-check",
                "credentialsDebug": "/api/credentials-debug",
                "setupGuide": "/api/setup-guide",
            },
        }


class UnauthorizedError(DashboardError):
    """
    Raised when a webhook call does not present the dashboard API key.

    HTTP Status: 401 Unauthorized
    """

    def __init__(self, message: str = "Unauthorized", error_code: ErrorCode = ErrorCode.UNAUTHORIZED):
        super().__init__(message=message, status_code=401, error_code=error_code)
