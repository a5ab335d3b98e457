"""Error types shared by the services and mapped to JSON responses by the app."""
from __future__ import annotations

from typing import Any, Dict, Optional


class JobReadyError(Exception):
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.detail:
            body["detail"] = self.detail
        return body


class ValidationError(JobReadyError):
    """Malformed or missing input, reported per field."""

    status_code = 400

    def __init__(self, errors: Dict[str, str], message: str = "Invalid input"):
        super().__init__(message)
        self.errors = dict(errors)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "fields": self.errors}


class InvalidIndexError(JobReadyError):
    status_code = 400


class NotFoundError(JobReadyError):
    status_code = 404


class ConflictError(JobReadyError):
    status_code = 409


class GenerationError(JobReadyError):
    """The completion service failed or returned something unusable."""

    status_code = 502


class StorageError(JobReadyError):
    status_code = 503
