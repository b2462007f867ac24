"""
Tests for plate and location leaderboards
"""
import pytest
from datetime import datetime, timedelta

from civiclens.analysis.leaderboard import (
    LeaderboardAggregator,
    LeaderboardEntry,
    LeaderboardPeriod,
    rank_subjects,
)
from civiclens.core.exceptions import InvalidPeriodError
from civiclens.database.models import ReportStatus


NOW = datetime(2024, 6, 15, 12, 0, 0)


class TestRankSubjects:
    """Test suite for rank_subjects."""

    def test_counts_and_ranks(self):
        entries = rank_subjects(["ABC1234", "ABC1234", "DEF5678"])

        assert [e.to_dict() for e in entries] == [
            {"license_plate": "ABC1234", "violation_count": 2, "rank": 1},
            {"license_plate": "DEF5678", "violation_count": 1, "rank": 2},
        ]

    def test_ties_ordered_by_subject(self):
        entries = rank_subjects(["ZZZ999", "AAA111", "MMM555"])

        assert [e.subject for e in entries] == ["AAA111", "MMM555", "ZZZ999"]
        assert [e.rank for e in entries] == [1, 2, 3]

    def test_exact_string_grouping(self):
        entries = rank_subjects(["abc1234", "ABC1234", "ABC 1234"])

        assert len(entries) == 3
        assert all(e.violation_count == 1 for e in entries)

    def test_skips_empty(self):
        entries = rank_subjects(["", None, "ABC1234"])

        assert len(entries) == 1

    def test_limit(self):
        plates = [f"PLATE{i:02d}" for i in range(15) for _ in range(i + 1)]

        entries = rank_subjects(plates, limit=10)

        assert len(entries) == 10
        assert entries[0].subject == "PLATE14"
        assert entries[0].violation_count == 15
        assert entries[-1].rank == 10

    def test_location_kind(self):
        entry = LeaderboardEntry(subject="Main St", violation_count=3, rank=1, kind="location")

        assert entry.to_dict() == {"location": "Main St", "violation_count": 3, "rank": 1}


class TestLeaderboardPeriod:

    @pytest.mark.parametrize("value,days", [("7days", 7), ("30days", 30), ("90days", 90)])
    def test_parse(self, value, days):
        period = LeaderboardPeriod.parse(value)

        assert period.days == days
        assert period.start(NOW) == NOW - timedelta(days=days)

    def test_all(self):
        assert LeaderboardPeriod.parse(None) is LeaderboardPeriod.ALL
        assert LeaderboardPeriod.ALL.start(NOW) == datetime(2000, 1, 1)

    @pytest.mark.parametrize("value", ["week", "7", "", "ALL"])
    def test_invalid(self, value):
        with pytest.raises(InvalidPeriodError) as exc_info:
            LeaderboardPeriod.parse(value)

        assert exc_info.value.status_code == 400


class TestLeaderboardAggregator:
    """Test suite for LeaderboardAggregator."""

    def test_plate_board(self, db_session, make_report):
        make_report(license_plate="ABC1234", created_at=NOW - timedelta(days=1))
        make_report(license_plate="ABC1234", created_at=NOW - timedelta(days=2))
        make_report(license_plate="DEF5678", created_at=NOW - timedelta(days=3))

        aggregator = LeaderboardAggregator(db_session)
        data = aggregator.leaderboard("7days", now=NOW)

        assert data["leaderboard"] == [
            {"license_plate": "ABC1234", "violation_count": 2, "rank": 1},
            {"license_plate": "DEF5678", "violation_count": 1, "rank": 2},
        ]
        assert data["topLocations"] == []

    def test_only_approved_counted(self, db_session, make_report):
        make_report(license_plate="ABC1234", created_at=NOW - timedelta(days=1))
        make_report(license_plate="PEND001", status=ReportStatus.PENDING, created_at=NOW - timedelta(days=1))
        make_report(license_plate="REJ0001", status=ReportStatus.REJECTED, created_at=NOW - timedelta(days=1))

        board = LeaderboardAggregator(db_session).plate_leaderboard(LeaderboardPeriod.ALL, now=NOW)

        assert [e.subject for e in board] == ["ABC1234"]

    def test_missing_plates_excluded(self, db_session, make_report):
        make_report(license_plate=None, created_at=NOW - timedelta(days=1))
        make_report(license_plate="", created_at=NOW - timedelta(days=1))

        board = LeaderboardAggregator(db_session).plate_leaderboard(LeaderboardPeriod.ALL, now=NOW)

        assert board == []

    def test_window_excludes_old_reports(self, db_session, make_report):
        make_report(license_plate="NEW0001", created_at=NOW - timedelta(days=6))
        make_report(license_plate="OLD0001", created_at=NOW - timedelta(days=8))
        make_report(license_plate="OLDER01", created_at=NOW - timedelta(days=45))

        aggregator = LeaderboardAggregator(db_session)

        week = aggregator.plate_leaderboard(LeaderboardPeriod.DAYS_7, now=NOW)
        month = aggregator.plate_leaderboard(LeaderboardPeriod.DAYS_30, now=NOW)
        quarter = aggregator.plate_leaderboard(LeaderboardPeriod.DAYS_90, now=NOW)

        assert [e.subject for e in week] == ["NEW0001"]
        assert [e.subject for e in month] == ["NEW0001", "OLD0001"]
        assert len(quarter) == 3

    def test_thirty_day_board_includes_locations(self, db_session, make_report):
        make_report(location="Main St", created_at=NOW - timedelta(days=1))
        make_report(location="Main St", created_at=NOW - timedelta(days=2))
        make_report(location="Elm St", created_at=NOW - timedelta(days=3))
        make_report(location="Elm St", created_at=NOW - timedelta(days=40))

        data = LeaderboardAggregator(db_session).leaderboard(LeaderboardPeriod.DAYS_30, now=NOW)

        assert data["topLocations"] == [
            {"location": "Main St", "violation_count": 2, "rank": 1},
            {"location": "Elm St", "violation_count": 1, "rank": 2},
        ]

    def test_all_returns_every_board(self, db_session, make_report):
        make_report(license_plate="ABC1234", location="Main St", created_at=NOW - timedelta(days=2))
        make_report(license_plate="ABC1234", created_at=NOW - timedelta(days=60))
        make_report(license_plate="XYZ0001", created_at=NOW - timedelta(days=400))

        data = LeaderboardAggregator(db_session).leaderboard(now=NOW)

        assert set(data) == {"allTime", "past7Days", "past30Days", "past90Days", "topLocations"}
        assert data["allTime"][0] == {"license_plate": "ABC1234", "violation_count": 2, "rank": 1}
        assert len(data["allTime"]) == 2
        assert data["past7Days"] == [{"license_plate": "ABC1234", "violation_count": 1, "rank": 1}]
        assert data["past30Days"] == data["past7Days"]
        assert data["past90Days"][0]["violation_count"] == 2
        assert data["topLocations"] == [{"location": "Main St", "violation_count": 1, "rank": 1}]

    def test_limit_applies(self, db_session, make_report):
        for i in range(12):
            make_report(license_plate=f"PLATE{i:02d}", created_at=NOW - timedelta(days=1))

        board = LeaderboardAggregator(db_session, limit=10).plate_leaderboard(LeaderboardPeriod.ALL, now=NOW)

        assert len(board) == 10
        assert [e.rank for e in board] == list(range(1, 11))

    def test_invalid_period(self, db_session):
        with pytest.raises(InvalidPeriodError):
            LeaderboardAggregator(db_session).leaderboard("yesterday")

    def test_empty_database(self, db_session):
        data = LeaderboardAggregator(db_session).leaderboard(now=NOW)

        assert data["allTime"] == []
        assert data["topLocations"] == []
