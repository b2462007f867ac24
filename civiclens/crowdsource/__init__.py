"""
CivicLens - Crowdsource Module
Handles user report submission, photo storage and sessions.
"""

from civiclens.crowdsource.report_handler import ReportHandler
from civiclens.crowdsource.report_store import ReportStore, derive_status
from civiclens.crowdsource.object_storage import ObjectStorage
from civiclens.crowdsource.session import SessionContext, SessionRegistry

__all__ = [
    # Report Handler
    "ReportHandler",
    # Report Store
    "ReportStore",
    "derive_status",
    # Object Storage
    "ObjectStorage",
    # Sessions
    "SessionContext",
    "SessionRegistry",
]
