"""
Report handler for crowdsourced civic-issue photos
Runs the analyze and submit flows end to end
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from civiclens.core.exceptions import MissingFieldError, RetakeRequiredError, InputError
from civiclens.classification.image_intake import normalize_location, parse_image
from civiclens.classification.vision_client import ClassificationResult, VisionClassifier
from civiclens.crowdsource.object_storage import ObjectStorage
from civiclens.crowdsource.report_store import ReportStore
from civiclens.crowdsource.session import SessionContext
from civiclens.database.models import Report

logger = logging.getLogger(__name__)


class ReportHandler:
    """
    Handles report photos from users.

    analyze: photo -> classification, shown to the user for review.
    submit:  photo + accepted classification -> stored report.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        classifier: Optional[VisionClassifier] = None,
        storage: Optional[ObjectStorage] = None
    ):
        """
        Initialize report handler.

        Args:
            session: SQLAlchemy session for the request (needed to submit)
            classifier: Vision model client
            storage: Photo storage backend
        """
        self.store = ReportStore(session) if session is not None else None
        self.classifier = classifier
        self.storage = storage

    def analyze(self, image: Optional[str]) -> ClassificationResult:
        """
        Classify a photo.

        Raises:
            ImageValidationError: If the image is missing (no upstream call)
        """
        intake = parse_image(image)
        classifier = self.classifier or VisionClassifier()
        return classifier.classify(intake.data_url)

    def submit(
        self,
        user_id: Optional[str],
        image: Optional[str],
        analysis: Any,
        location: Optional[str] = None,
        session_context: Optional[SessionContext] = None
    ) -> Report:
        """
        Store a reviewed report.

        Args:
            user_id: Submitting user
            image: Base64 data URL of the photo
            analysis: ClassificationResult or its camelCase dict
            location: Free-text location
            session_context: Caller's session, checked when given

        Returns:
            Persisted Report
        """
        if self.store is None:
            raise RuntimeError("ReportHandler needs a database session to submit reports")

        if not image or not analysis or not user_id:
            raise MissingFieldError("Missing required fields")

        intake = parse_image(image)
        classification = self._to_classification(analysis)
        if classification.requires_retake:
            raise RetakeRequiredError()

        if session_context is not None:
            session_context.require_active(user_id)

        logger.info(f"Submitting report for user {user_id}")
        self.store.require_user(user_id)

        image_ref = self.storage.store(intake) if self.storage else intake.data_url

        return self.store.submit(
            user_id=user_id,
            image_ref=image_ref,
            classification=classification,
            location=normalize_location(location),
        )

    def _to_classification(self, analysis: Any) -> ClassificationResult:
        if isinstance(analysis, ClassificationResult):
            return analysis
        if not isinstance(analysis, dict):
            raise InputError("Invalid analysis")
        try:
            return ClassificationResult.from_dict(analysis)
        except (KeyError, TypeError, ValueError) as e:
            raise InputError("Invalid analysis") from e

    def get_report(self, report_id: str) -> Optional[Dict[str, Any]]:
        report = self.store.get_report(report_id)
        return report.to_dict() if report else None
