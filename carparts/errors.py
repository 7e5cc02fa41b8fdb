# carparts/errors.py
from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    '''
    Structured classification of failures surfaced by the API.

    VALIDATION_ERROR: missing or malformed input (empty items, bad status, bad year/month)
    AUTHENTICATION_REQUIRED: no logged-in user, or bad credentials
    PERMISSION_DENIED: role or account-status check failed
    NOT_FOUND: entity absent under the requesting owner
    CONFLICT: uniqueness rule violated (partNumber, barcode, category name, username, email)
    RECEIPT_ERROR: receipt could not be rendered
    SYSTEM_ERROR: datastore failure or unclassified exception
    '''
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RECEIPT_ERROR = "RECEIPT_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"


class PosError(Exception):
    """Base class for errors that map onto an HTTP response."""

    error_type: ErrorType = ErrorType.SYSTEM_ERROR
    status_code: int = 500

    def __init__(self, message: str, *, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "message": self.message,
            "errorType": self.error_type.value,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PosError):
    error_type = ErrorType.VALIDATION_ERROR
    status_code = 400


class ConflictError(PosError):
    error_type = ErrorType.CONFLICT
    status_code = 400


class AuthenticationError(PosError):
    error_type = ErrorType.AUTHENTICATION_REQUIRED
    status_code = 401


class AuthorizationError(PosError):
    error_type = ErrorType.PERMISSION_DENIED
    status_code = 403


class NotFoundError(PosError):
    error_type = ErrorType.NOT_FOUND
    status_code = 404


class ReceiptRenderError(PosError):
    error_type = ErrorType.RECEIPT_ERROR
    status_code = 500
