"""Error kinds raised by the directory backend and mapped to HTTP statuses."""

from __future__ import annotations

from typing import Dict, Optional


GENERIC_ERROR_MESSAGE = "An unexpected error occurred on the server."


class DirectoryError(Exception):
    """Base class for failures the HTTP boundary knows how to report."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(DirectoryError):
    """Raised when the record store credentials or table are not configured."""


class ValidationError(DirectoryError):
    """Raised when a submission fails field checks; no store call was made."""

    status_code = 400

    def __init__(self, message: str, details: Dict[str, str]) -> None:
        super().__init__(message)
        self.details = dict(details)


class NotFoundError(DirectoryError):
    """Raised when the store does not know the requested record id."""

    status_code = 404

    def __init__(self, message: str, *, record_id: str) -> None:
        super().__init__(message)
        self.record_id = record_id


class UpstreamError(DirectoryError):
    """Raised when the record store call fails for any other reason."""

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE, *, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation
