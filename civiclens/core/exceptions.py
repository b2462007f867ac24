"""
CivicLens - Domain Errors
Raised by the report pipeline and mapped to HTTP responses by the API.
"""

from typing import Optional


class CivicLensError(Exception):
    """Base class for all CivicLens errors."""

    status_code = 500
    message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InputError(CivicLensError):
    """Request is missing required data. No external calls are made."""

    status_code = 400
    message = "Missing required fields"


class ImageValidationError(InputError):
    """Image is missing, empty or not valid base64."""

    message = "Image is required"


class MissingFieldError(InputError):
    pass


class RetakeRequiredError(InputError):
    """Classification asked for a new photo; the report cannot be stored."""

    status_code = 422
    message = "Photo could not be classified. Please retake the photo."


class AuthorizationError(CivicLensError):
    """Unknown user or inactive session. Both look the same to callers."""

    status_code = 401
    message = "Unauthorized"


class UserNotFoundError(CivicLensError):
    status_code = 404
    message = "User not found"


class ReportNotFoundError(CivicLensError):
    status_code = 404
    message = "Report not found"


class InvalidPeriodError(InputError):
    message = "Invalid period. Use one of: 7days, 30days, 90days, all"


class PersistenceError(CivicLensError):
    """Database write failed. Single-row inserts leave nothing behind."""

    message = "Failed to save report"
