"""
Database module for CivicLens
SQLAlchemy models and connection management
"""

from .connection import DatabaseConnection, get_db, get_session
from .models import (
    Base,
    User,
    Report,
    ReportStatus,
    ProblemType,
)

__all__ = [
    "DatabaseConnection",
    "get_db",
    "get_session",
    "Base",
    "User",
    "Report",
    "ReportStatus",
    "ProblemType",
]
