"""Domain error taxonomy mapped onto HTTP status codes by the error handler."""
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors raised by the media library services."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(AppError):
    """Required input is missing or unusable (no file, no name, no trackId)."""

    status_code = 400


class PayloadTooLargeError(ValidationError):
    """Upload exceeds the configured size ceiling."""

    status_code = 413


class NotFoundError(AppError):
    """An identifier does not resolve to an existing row."""

    status_code = 404


class StorageError(AppError):
    """Relational store or file system failure during an operation."""

    status_code = 500
