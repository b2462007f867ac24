"""
CivicLens - REST API

FastAPI application for classifying civic-issue photos, storing reports,
and serving leaderboards and user profiles.

Run with: uvicorn civiclens.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, Generator, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from civiclens import __version__
from civiclens.analysis.leaderboard import LeaderboardAggregator, LeaderboardPeriod
from civiclens.analysis.profile import ProfileAggregator
from civiclens.classification.vision_client import VisionClassifier
from civiclens.core.config import settings
from civiclens.core.exceptions import AuthorizationError, CivicLensError, ReportNotFoundError
from civiclens.core.logging import setup_logging
from civiclens.crowdsource.object_storage import ObjectStorage
from civiclens.crowdsource.report_handler import ReportHandler
from civiclens.crowdsource.report_store import ReportStore
from civiclens.crowdsource.session import SessionRegistry
from civiclens.database.connection import get_db, get_session

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.is_development:
        try:
            get_db().create_tables()
        except SQLAlchemyError as e:
            logger.warning(f"Could not create tables on startup: {e}")
    yield


# FastAPI app
app = FastAPI(
    title="CivicLens",
    description="Civic-issue reporting API: AI photo classification, reports and leaderboards",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

session_registry = SessionRegistry()


# ============================================================================
# Dependencies
# ============================================================================

def get_classifier() -> Generator[VisionClassifier, None, None]:
    with VisionClassifier() as classifier:
        yield classifier


@lru_cache()
def get_object_storage() -> ObjectStorage:
    return ObjectStorage()


def get_session_registry() -> SessionRegistry:
    return session_registry


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def _client_error(error: CivicLensError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    modules: dict


class AnalyzeImageRequest(BaseModel):
    """Photo to classify."""
    image: Optional[str] = Field(default=None, description="Base64 data URL of the photo")


class AnalysisPayload(BaseModel):
    """Classification the user reviewed and accepted."""
    problemType: str
    problemSubtype: str
    licensePlate: Optional[str] = None
    confidence: float = Field(allow_inf_nan=False)
    description: str = ""
    requiresRetake: bool = False
    location: Optional[str] = None


class AnalyzeImageResponse(BaseModel):
    success: bool
    analysis: AnalysisPayload
    timestamp: str


class ReportSubmitRequest(BaseModel):
    """Request to store a classified report."""
    image: Optional[str] = None
    analysis: Optional[AnalysisPayload] = None
    location: Optional[str] = None
    userId: Optional[str] = None


class ReportResponse(BaseModel):
    """Stored report."""
    id: str
    user_id: str
    image_url: str
    problem_type: str
    problem_subtype: Optional[str]
    license_plate: Optional[str]
    location: Optional[str]
    description: Optional[str]
    confidence_score: Optional[float]
    status: str
    created_at: Optional[str]
    updated_at: Optional[str]


class ReportSubmitResponse(BaseModel):
    success: bool
    report: ReportResponse
    message: str
    timestamp: str


class SessionCreateRequest(BaseModel):
    userId: Optional[str] = None


class DataResponse(BaseModel):
    """Standard envelope for read endpoints."""
    success: bool
    data: Dict[str, Any]
    timestamp: str


# ============================================================================
# System Routes
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """API health check."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=_timestamp(),
        modules={
            "classifier": bool(settings.openai_api_key),
            "object_storage": settings.object_storage_configured,
            "environment": settings.app_env,
        },
    )


# ============================================================================
# Report Routes
# ============================================================================

@app.post("/api/v1/analyze-image", response_model=AnalyzeImageResponse, tags=["Reports"])
def analyze_image(
    request: AnalyzeImageRequest,
    classifier: VisionClassifier = Depends(get_classifier),
):
    """
    Classify a report photo.

    Always returns a classification. When the model cannot be reached or its
    answer is unusable, the result has requiresRetake set to true.
    """
    try:
        handler = ReportHandler(classifier=classifier)
        result = handler.analyze(request.image)
        return AnalyzeImageResponse(
            success=True,
            analysis=AnalysisPayload(**result.to_dict()),
            timestamp=_timestamp(),
        )
    except CivicLensError as e:
        raise _client_error(e)
    except Exception:
        logger.exception("Error analyzing image")
        raise HTTPException(status_code=500, detail="Failed to analyze image")


@app.post("/api/v1/reports", response_model=ReportSubmitResponse, tags=["Reports"])
def submit_report(
    request: ReportSubmitRequest,
    x_session_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_session),
    storage: ObjectStorage = Depends(get_object_storage),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """
    Store a classified report.

    Status is approved when confidence is at least the approval threshold,
    pending otherwise. Classifications that require a retake are refused.
    """
    try:
        session_context = None
        if x_session_id:
            session_context = registry.get(x_session_id)
            if session_context is None:
                raise AuthorizationError()

        handler = ReportHandler(db, storage=storage)
        report = handler.submit(
            user_id=request.userId,
            image=request.image,
            analysis=request.analysis.model_dump() if request.analysis else None,
            location=request.location,
            session_context=session_context,
        )
        return ReportSubmitResponse(
            success=True,
            report=ReportResponse(**report.to_dict()),
            message="Report submitted successfully",
            timestamp=_timestamp(),
        )
    except CivicLensError as e:
        raise _client_error(e)
    except Exception:
        logger.exception("Error submitting report")
        raise HTTPException(status_code=500, detail="Failed to submit report")


@app.get("/api/v1/reports/{report_id}", response_model=ReportResponse, tags=["Reports"])
def get_report(report_id: str, db: Session = Depends(get_session)):
    """Get a stored report by ID."""
    report = ReportStore(db).get_report(report_id)
    if not report:
        raise _client_error(ReportNotFoundError())
    return ReportResponse(**report.to_dict())


# ============================================================================
# Leaderboard & Profile Routes
# ============================================================================

@app.get("/api/v1/leaderboard", response_model=DataResponse, tags=["Leaderboard"])
def get_leaderboard(
    period: str = Query(default="all", description="7days, 30days, 90days or all"),
    db: Session = Depends(get_session),
):
    """
    Most reported license plates and locations.

    "all" returns the all-time, 7, 30 and 90 day boards plus the 30-day
    location board in one response.
    """
    try:
        aggregator = LeaderboardAggregator(db, limit=settings.leaderboard_size)
        data = aggregator.leaderboard(LeaderboardPeriod.parse(period))
        return DataResponse(success=True, data=data, timestamp=_timestamp())
    except CivicLensError as e:
        raise _client_error(e)
    except Exception:
        logger.exception("Error fetching leaderboard")
        raise HTTPException(status_code=500, detail="Failed to fetch leaderboard data")


@app.get("/api/v1/profile", response_model=DataResponse, tags=["Profile"])
def get_profile(
    userId: Optional[str] = Query(default=None),
    db: Session = Depends(get_session),
):
    """Submission statistics, recent reports and monthly activity for a user."""
    if not userId:
        raise HTTPException(status_code=400, detail="User ID is required")

    try:
        aggregator = ProfileAggregator(db, recent_limit=settings.recent_reports_limit)
        data = aggregator.profile(userId)
        return DataResponse(success=True, data=data, timestamp=_timestamp())
    except CivicLensError as e:
        raise _client_error(e)
    except Exception:
        logger.exception("Error fetching profile")
        raise HTTPException(status_code=500, detail="Failed to fetch profile data")


# ============================================================================
# Session Routes
# ============================================================================

@app.post("/api/v1/sessions", tags=["Sessions"])
def create_session(
    request: SessionCreateRequest,
    db: Session = Depends(get_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Open a session for a user known to the account store."""
    try:
        user = ReportStore(db).require_user(request.userId)
        context = registry.login(user.id)
        return {"success": True, "session": context.to_dict(), "timestamp": _timestamp()}
    except CivicLensError as e:
        raise _client_error(e)


@app.delete("/api/v1/sessions/{session_id}", tags=["Sessions"])
def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Invalidate a session."""
    if not registry.logout(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True, "timestamp": _timestamp()}


# ============================================================================
# Main
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
