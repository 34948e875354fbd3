"""
Domain exceptions

Routes translate these into HTTP status codes:
    ValidationError        -> 400
    AuthenticationError    -> 401
    PermissionDeniedError  -> 403
    NotFoundError          -> 404
    InvalidStateError      -> 409
    ConfigurationError     -> 500
    RecordStoreError       -> 500
"""
from typing import Any, Optional


class ClinicError(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str = "Application error occurred", details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ValidationError(ClinicError):
    """Raised when a request is missing a required field or carries a bad value"""


class AuthenticationError(ClinicError):
    """Raised when the acting user cannot be identified"""


class PermissionDeniedError(ClinicError):
    """Raised when the acting user's role does not allow the operation"""


class NotFoundError(ClinicError):
    """Raised when a record does not exist"""


class InvalidStateError(ClinicError):
    """Raised when a record is not in a state that allows the operation"""


class ConfigurationError(ClinicError):
    """Raised when a required setting (API key, database id) is missing"""


class RecordStoreError(ClinicError):
    """Raised when the records service cannot be reached or rejects a call"""

    def __init__(
        self,
        message: str = "Records service request failed",
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)


class DeserializationError(ClinicError):
    """Raised when a stored face embedding cannot be decoded"""
