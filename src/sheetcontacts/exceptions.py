"""Custom exceptions for sheet-contacts."""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failed operation, reported in structured results."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    CONFIGURATION = "configuration"
    STORAGE = "storage"


class ContactSheetError(Exception):
    """Base exception for all sheet-contacts errors."""

    kind: ErrorKind = ErrorKind.STORAGE


class ValidationError(ContactSheetError):
    """Missing required field or malformed email."""

    kind = ErrorKind.VALIDATION


class ConflictError(ContactSheetError):
    """Email already belongs to another contact."""

    kind = ErrorKind.CONFLICT


class NotFoundError(ContactSheetError):
    """No row matches the given contact id."""

    kind = ErrorKind.NOT_FOUND


class ConfigurationError(ContactSheetError):
    """Configuration or environment variable error."""

    kind = ErrorKind.CONFIGURATION


class StorageError(ContactSheetError):
    """Failure in the underlying row-table storage."""

    kind = ErrorKind.STORAGE


class SheetsAPIError(StorageError):
    """Error from Google Sheets API."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"Google Sheets API error ({status_code}): {message}")


class GoogleAuthError(StorageError):
    """Google OAuth authentication error."""
