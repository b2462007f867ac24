"""
Pytest configuration and fixtures
"""
import base64
import json
import pytest
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from civiclens.database.connection import DatabaseConnection
from civiclens.database.models import ProblemType, Report, ReportStatus, User


# 1x1 JPEG-ish payload; content is never decoded as an image
SAMPLE_IMAGE_BYTES = b"\xff\xd8\xff\xe0civiclens-test-photo\xff\xd9"
SAMPLE_IMAGE_B64 = base64.b64encode(SAMPLE_IMAGE_BYTES).decode("ascii")


@pytest.fixture
def sample_image_b64():
    """Bare base64 photo payload."""
    return SAMPLE_IMAGE_B64


@pytest.fixture
def sample_image():
    """Photo as a data URL, the way the mobile client sends it."""
    return f"data:image/jpeg;base64,{SAMPLE_IMAGE_B64}"


@pytest.fixture
def parking_analysis():
    """Confident parking classification as returned by /analyze-image."""
    return {
        "problemType": "parking",
        "problemSubtype": "illegal_parking",
        "licensePlate": "ABC1234",
        "confidence": 0.85,
        "description": "Car parked on the sidewalk.",
        "requiresRetake": False,
    }


@pytest.fixture
def database():
    """Fresh in-memory database with all tables."""
    db = DatabaseConnection(database_url="sqlite:///:memory:")
    db.create_tables()
    yield db
    db.drop_tables()
    db.close()


@pytest.fixture
def db_session(database):
    """SQLAlchemy session bound to the in-memory database."""
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db_session):
    """A registered user."""
    account = User(
        id="user-1",
        email="reporter@example.com",
        name="Riley Reporter",
        provider="google",
    )
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture
def make_report(db_session, user):
    """Factory inserting reports with explicit fields."""

    def _make(
        license_plate=None,
        location=None,
        status=ReportStatus.APPROVED,
        problem_type=ProblemType.PARKING,
        created_at=None,
        user_id=None,
        confidence=0.9,
    ):
        report = Report(
            user_id=user_id or user.id,
            image_url="https://photos.example.com/reports/test.jpg",
            problem_type=problem_type,
            problem_subtype="illegal_parking" if problem_type == ProblemType.PARKING else "pothole",
            license_plate=license_plate,
            location=location,
            description="Test report",
            confidence_score=confidence,
            status=status,
            created_at=created_at or datetime.utcnow(),
        )
        db_session.add(report)
        db_session.commit()
        return report

    return _make


def _completion_response(content, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = {
        "id": "chatcmpl-test",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}}
        ],
    }
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def completion_response():
    """Builder for mock httpx responses carrying a chat completion."""
    return _completion_response


@pytest.fixture
def model_answer():
    """Well-formed model answer for a parking violation."""
    return json.dumps({
        "problemType": "parking",
        "problemSubtype": "illegal_parking",
        "licensePlate": "ABC1234",
        "confidence": 0.85,
        "description": "A car is parked across a pedestrian crossing.",
        "requiresRetake": False,
    })
