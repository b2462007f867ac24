"""
Report store for classified civic-issue reports
Persists one row per submitted photo
"""

import json
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from civiclens.core.config import settings
from civiclens.core.exceptions import (
    AuthorizationError,
    MissingFieldError,
    PersistenceError,
    RetakeRequiredError,
    InputError,
)
from civiclens.classification.vision_client import ClassificationResult
from civiclens.database.models import ProblemType, Report, ReportStatus, User

logger = logging.getLogger(__name__)


def derive_status(confidence: float, threshold: Optional[float] = None) -> ReportStatus:
    """
    Initial status of a report.

    Approved at or above the threshold, pending below it. Rejected only
    comes from moderation and is never derived here.
    """
    if threshold is None:
        threshold = settings.approval_threshold
    return ReportStatus.APPROVED if confidence >= threshold else ReportStatus.PENDING


class ReportStore:
    """
    Reads and writes reports through a SQLAlchemy session.

    Each submit is a single-row insert committed on its own.
    """

    def __init__(self, session: Session, approval_threshold: Optional[float] = None):
        self.session = session
        self.approval_threshold = (
            approval_threshold if approval_threshold is not None else settings.approval_threshold
        )

    def get_user(self, user_id: str) -> Optional[User]:
        """Point lookup of a user by id."""
        return self.session.get(User, user_id)

    def require_user(self, user_id: Optional[str]) -> User:
        """
        Get a user or fail with an authorization error.

        Missing and unknown users look the same to the caller.
        """
        user = self.get_user(user_id) if user_id else None
        if user is None:
            logger.warning(f"Submission for unknown user {user_id!r}")
            raise AuthorizationError()
        return user

    def get_report(self, report_id: str) -> Optional[Report]:
        return self.session.get(Report, report_id)

    def submit(
        self,
        user_id: str,
        image_ref: str,
        classification: ClassificationResult,
        location: Optional[str] = None
    ) -> Report:
        """
        Persist a classified report.

        Args:
            user_id: Submitting user
            image_ref: Public URL or inline data URL, stored verbatim
            classification: Classifier output the user accepted
            location: Free-text location

        Returns:
            The inserted row, with generated id and timestamps

        Raises:
            MissingFieldError: No user id or image reference
            RetakeRequiredError: Classification asked for a new photo
            AuthorizationError: User does not exist
            PersistenceError: Insert failed
        """
        if not user_id:
            raise MissingFieldError("User ID is required")
        if not image_ref:
            raise MissingFieldError("Image is required")
        if classification.requires_retake:
            raise RetakeRequiredError()

        try:
            problem_type = ProblemType(classification.problem_type)
        except ValueError:
            raise InputError(f"Invalid problemType: {classification.problem_type}")

        self.require_user(user_id)

        status = derive_status(classification.confidence, self.approval_threshold)

        report = Report(
            user_id=user_id,
            image_url=image_ref,
            problem_type=problem_type,
            problem_subtype=classification.problem_subtype,
            license_plate=classification.license_plate,
            location=location,
            description=classification.description,
            ai_analysis=json.dumps(classification.to_dict()),
            confidence_score=classification.confidence,
            status=status,
        )

        try:
            self.session.add(report)
            self.session.commit()
            self.session.refresh(report)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database insert error: {e}")
            raise PersistenceError() from e

        logger.info(
            f"Report {report.id} saved for user {user_id}: "
            f"{report.problem_type.value}/{report.problem_subtype} -> {report.status.value}"
        )
        return report
