"""
CivicLens - Leaderboards
Ranks the most reported license plates and locations over time windows.

Every call rescans the matching approved reports; there are no maintained
counters.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from civiclens.core.constants import (
    ALL_TIME_START_YEAR,
    LEADERBOARD_PERIOD_DAYS,
    LEADERBOARD_SIZE,
    LOCATION_WINDOW_DAYS,
)
from civiclens.core.exceptions import InvalidPeriodError
from civiclens.database.models import Report, ReportStatus

logger = logging.getLogger(__name__)


class LeaderboardPeriod(str, Enum):
    """Time windows a leaderboard can cover."""

    DAYS_7 = "7days"
    DAYS_30 = "30days"
    DAYS_90 = "90days"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        return LEADERBOARD_PERIOD_DAYS.get(self.value)

    def start(self, now: datetime) -> datetime:
        """Earliest created_at included in this window."""
        if self.days is None:
            return datetime(ALL_TIME_START_YEAR, 1, 1)
        return now - timedelta(days=self.days)

    @classmethod
    def parse(cls, value: Optional[str]) -> "LeaderboardPeriod":
        if value is None:
            return cls.ALL
        try:
            return cls(value)
        except ValueError:
            raise InvalidPeriodError()


@dataclass
class LeaderboardEntry:
    """One ranked subject: a license plate or a location string."""
    subject: str
    violation_count: int
    rank: int
    kind: str = "license_plate"

    def to_dict(self) -> Dict[str, Any]:
        return {
            self.kind: self.subject,
            "violation_count": self.violation_count,
            "rank": self.rank,
        }


def rank_subjects(
    subjects: Iterable[Optional[str]],
    limit: int = LEADERBOARD_SIZE,
    kind: str = "license_plate"
) -> List[LeaderboardEntry]:
    """
    Count exact subject strings and rank them.

    Grouping is case-sensitive with no normalization. Higher counts rank
    first; equal counts are ordered by subject so results are deterministic.
    Ranks are dense, 1..N by position.

    Args:
        subjects: One value per report; empty values are skipped
        limit: Maximum entries returned
        kind: Key name used for the subject in to_dict()

    Returns:
        Ranked LeaderboardEntry list
    """
    counts = Counter(s for s in subjects if s)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    return [
        LeaderboardEntry(subject=subject, violation_count=count, rank=index + 1, kind=kind)
        for index, (subject, count) in enumerate(ordered[:limit])
    ]


class LeaderboardAggregator:
    """Builds leaderboards from approved reports."""

    BATCH_PERIODS = {
        "past7Days": LeaderboardPeriod.DAYS_7,
        "past30Days": LeaderboardPeriod.DAYS_30,
        "past90Days": LeaderboardPeriod.DAYS_90,
    }

    def __init__(self, session: Session, limit: int = LEADERBOARD_SIZE):
        self.session = session
        self.limit = limit

    def _approved_values(self, column, since: datetime) -> List[str]:
        query = (
            select(column)
            .where(Report.status == ReportStatus.APPROVED)
            .where(column.is_not(None))
            .where(column != "")
            .where(Report.created_at >= since)
            .order_by(Report.created_at.desc())
        )
        return list(self.session.scalars(query))

    def plate_leaderboard(
        self,
        period: LeaderboardPeriod,
        now: Optional[datetime] = None
    ) -> List[LeaderboardEntry]:
        """Most reported license plates within the period."""
        now = now or datetime.utcnow()
        plates = self._approved_values(Report.license_plate, period.start(now))
        return rank_subjects(plates, limit=self.limit, kind="license_plate")

    def location_leaderboard(self, now: Optional[datetime] = None) -> List[LeaderboardEntry]:
        """Most reported locations over the fixed 30-day window."""
        now = now or datetime.utcnow()
        since = now - timedelta(days=LOCATION_WINDOW_DAYS)
        locations = self._approved_values(Report.location, since)
        return rank_subjects(locations, limit=self.limit, kind="location")

    def leaderboard(
        self,
        period: Any = LeaderboardPeriod.ALL,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Leaderboard response for a period.

        A single period returns its plate board, plus the location board for
        30days. "all" returns the all-time board together with the 7, 30 and
        90 day boards and the location board, computed in one call.

        Args:
            period: LeaderboardPeriod or its string value
            now: Reference time (defaults to current UTC time)

        Raises:
            InvalidPeriodError: Unknown period string
        """
        if not isinstance(period, LeaderboardPeriod):
            period = LeaderboardPeriod.parse(period)
        now = now or datetime.utcnow()

        if period is LeaderboardPeriod.ALL:
            data = {
                "allTime": [e.to_dict() for e in self.plate_leaderboard(period, now)],
            }
            for key, window in self.BATCH_PERIODS.items():
                data[key] = [e.to_dict() for e in self.plate_leaderboard(window, now)]
            data["topLocations"] = [e.to_dict() for e in self.location_leaderboard(now)]
            logger.info("Computed batched leaderboard for all periods")
            return data

        board = self.plate_leaderboard(period, now)
        top_locations = []
        if period is LeaderboardPeriod.DAYS_30:
            top_locations = [e.to_dict() for e in self.location_leaderboard(now)]

        logger.info(f"Computed {period.value} leaderboard with {len(board)} entries")
        return {
            "leaderboard": [e.to_dict() for e in board],
            "topLocations": top_locations,
        }
