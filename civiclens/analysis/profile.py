"""
CivicLens - User Profiles
Per-user submission statistics and activity history.
"""

import logging
import math
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from civiclens.core.constants import RECENT_REPORTS_LIMIT
from civiclens.core.exceptions import UserNotFoundError
from civiclens.database.models import ProblemType, Report, ReportStatus, User

logger = logging.getLogger(__name__)


def success_rate(approved: int, total: int) -> int:
    """Approved share as a whole percentage; 0 when there are no reports."""
    if total <= 0:
        return 0
    # Half rounds up
    return int(math.floor(approved / total * 100 + 0.5))


def monthly_activity(reports: List[Report]) -> Dict[str, int]:
    """Report counts keyed by calendar month (YYYY-MM) of created_at."""
    activity: Dict[str, int] = {}
    for report in reports:
        if report.created_at is None:
            continue
        month = report.created_at.strftime("%Y-%m")
        activity[month] = activity.get(month, 0) + 1
    return activity


def get_report_statistics(reports: List[Report]) -> Dict[str, Any]:
    """
    Aggregate statistics for a user's reports.

    Args:
        reports: All reports of one user

    Returns:
        Dictionary with counts by status and type, stars and success rate
    """
    total = len(reports)

    by_status = {status: 0 for status in ReportStatus}
    by_type = {problem_type: 0 for problem_type in ProblemType}
    for report in reports:
        if report.status in by_status:
            by_status[report.status] += 1
        if report.problem_type in by_type:
            by_type[report.problem_type] += 1

    approved = by_status[ReportStatus.APPROVED]

    return {
        "totalSubmissions": total,
        "approvedReports": approved,
        "pendingReports": by_status[ReportStatus.PENDING],
        "rejectedReports": by_status[ReportStatus.REJECTED],
        "parkingViolations": by_type[ProblemType.PARKING],
        "infrastructureIssues": by_type[ProblemType.INFRASTRUCTURE],
        # One star per submission
        "stars": total,
        "successRate": success_rate(approved, total),
    }


class ProfileAggregator:
    """Builds a user's profile page data from their reports."""

    def __init__(self, session: Session, recent_limit: int = RECENT_REPORTS_LIMIT):
        self.session = session
        self.recent_limit = recent_limit

    def _user_reports(self, user_id: str) -> List[Report]:
        query = (
            select(Report)
            .where(Report.user_id == user_id)
            .order_by(Report.created_at.desc())
        )
        return list(self.session.scalars(query))

    def profile(self, user_id: str) -> Dict[str, Any]:
        """
        Profile data for a user.

        Args:
            user_id: User to summarize

        Returns:
            {"user", "statistics", "recentReports", "monthlyActivity"}

        Raises:
            UserNotFoundError: Unknown user id
        """
        user = self.session.get(User, user_id) if user_id else None
        if user is None:
            raise UserNotFoundError()

        reports = self._user_reports(user_id)
        statistics = get_report_statistics(reports)

        logger.info(f"Built profile for user {user_id}: {statistics['totalSubmissions']} reports")

        return {
            "user": user.to_dict(stars=statistics["stars"]),
            "statistics": statistics,
            "recentReports": [r.to_dict() for r in reports[:self.recent_limit]],
            "monthlyActivity": monthly_activity(reports),
        }
