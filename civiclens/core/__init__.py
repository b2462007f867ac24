"""
CivicLens - Core Utilities
Central configuration, logging, constants and error types.
"""

from civiclens.core.config import settings, get_settings
from civiclens.core.constants import (
    PROBLEM_TYPES,
    PARKING_SUBTYPES,
    INFRASTRUCTURE_SUBTYPES,
    LEADERBOARD_SIZE,
)
from civiclens.core.exceptions import (
    CivicLensError,
    InputError,
    ImageValidationError,
    MissingFieldError,
    RetakeRequiredError,
    AuthorizationError,
    UserNotFoundError,
    ReportNotFoundError,
    InvalidPeriodError,
    PersistenceError,
)

__all__ = [
    "settings",
    "get_settings",
    "PROBLEM_TYPES",
    "PARKING_SUBTYPES",
    "INFRASTRUCTURE_SUBTYPES",
    "LEADERBOARD_SIZE",
    "CivicLensError",
    "InputError",
    "ImageValidationError",
    "MissingFieldError",
    "RetakeRequiredError",
    "AuthorizationError",
    "UserNotFoundError",
    "ReportNotFoundError",
    "InvalidPeriodError",
    "PersistenceError",
]
