"""
SQLAlchemy models for CivicLens
Users and the classified civic-issue reports they submit
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column, Float, String, Text,
    DateTime, ForeignKey, Index, Enum as SQLEnum
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class ProblemType(enum.Enum):
    """Kind of civic problem shown in a report photo."""
    PARKING = "parking"
    INFRASTRUCTURE = "infrastructure"


class ReportStatus(enum.Enum):
    """Report review status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class User(Base):
    """
    Account record.

    Identity is owned by the external auth provider; this table only mirrors
    it so reports can reference their submitter. Stars are not stored, they
    are always the user's report count.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(100))
    avatar_url = Column(String(500))
    provider = Column(String(50))

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    reports = relationship("Report", back_populates="user")

    def __repr__(self):
        return f"<User({self.id}, email={self.email})>"

    def to_dict(self, stars: Optional[int] = None) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "avatar_url": self.avatar_url,
            "provider": self.provider,
            "stars": stars if stars is not None else 0,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Report(Base):
    """
    Civic-issue report submitted by a user.

    Status is derived from the classifier confidence when the row is
    inserted and is not re-derived afterwards.
    """
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Submitter
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    user = relationship("User", back_populates="reports")

    # Image (public URL or inline data URL)
    image_url = Column(Text, nullable=False)

    # Classification
    problem_type = Column(SQLEnum(ProblemType), nullable=False)
    problem_subtype = Column(Text)
    license_plate = Column(Text)
    location = Column(Text)
    description = Column(Text)
    ai_analysis = Column(Text)  # raw classifier payload (JSON)
    confidence_score = Column(Float)

    status = Column(SQLEnum(ReportStatus), default=ReportStatus.PENDING, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_report_user_id", user_id),
        Index("idx_report_status", status),
        Index("idx_report_created_at", created_at),
        Index("idx_report_license_plate", license_plate),
    )

    def __repr__(self):
        return f"<Report({self.id}, status={self.status.value}, type={self.problem_type.value})>"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "image_url": self.image_url,
            "problem_type": self.problem_type.value if self.problem_type else None,
            "problem_subtype": self.problem_subtype,
            "license_plate": self.license_plate,
            "location": self.location,
            "description": self.description,
            "confidence_score": self.confidence_score,
            "status": self.status.value if self.status else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
