"""Error kinds raised by services and converted to JSON responses in dealtracker.app."""

from __future__ import annotations

from typing import Optional


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, fields: Optional[dict] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class StorageError(ApiError):
    status_code = 500
    default_message = "Storage operation failed"


class RecalculationFailed(StorageError):
    default_message = "Failed to recalculate ranks"

    def __init__(self, message: Optional[str] = None, duration_seconds: float = 0.0):
        super().__init__(message)
        self.duration_seconds = duration_seconds

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "durationSeconds": round(self.duration_seconds, 3),
        }


class GenerationFailed(ApiError):
    """Text-generation capability failed or returned unusable output."""

    status_code = 502
    default_message = "Text generation failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
