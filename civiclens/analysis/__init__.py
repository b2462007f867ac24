"""
CivicLens - Analysis Module
Leaderboards and user profile statistics computed from stored reports.
"""

from civiclens.analysis.leaderboard import (
    LeaderboardAggregator,
    LeaderboardEntry,
    LeaderboardPeriod,
    rank_subjects,
)
from civiclens.analysis.profile import (
    ProfileAggregator,
    get_report_statistics,
    monthly_activity,
    success_rate,
)

__all__ = [
    # Leaderboard
    "LeaderboardAggregator",
    "LeaderboardEntry",
    "LeaderboardPeriod",
    "rank_subjects",
    # Profile
    "ProfileAggregator",
    "get_report_statistics",
    "monthly_activity",
    "success_rate",
]
