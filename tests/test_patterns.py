"""
Tests for weekly pattern analysis.

Run with: python -m pytest tests/test_patterns.py -v
"""

import pytest
from datetime import date, timedelta

from fitness_engine.patterns import DAY_NAMES, analyze_weekly_patterns, weekly_totals
from fitness_engine.sessions import SessionRecord

MONDAY = date(2024, 1, 1)


@pytest.fixture
def three_weeks():
    """Tue/Thu/Sun runs for three weeks; Sunday is the long run."""
    sessions = []
    for week in range(3):
        base = MONDAY + timedelta(weeks=week)
        sessions.append(SessionRecord(base + timedelta(days=1), 8.0, 45.0))
        sessions.append(SessionRecord(base + timedelta(days=3), 8.0, 45.0))
        sessions.append(SessionRecord(base + timedelta(days=6), 18.0 + week, 110.0))
    return sessions


class TestWeeklyPatterns:
    """Tests for analyze_weekly_patterns."""

    def test_empty(self):
        """Empty history gives all zeros."""
        patterns = analyze_weekly_patterns([])
        assert patterns.weeks == 0
        assert patterns.avg_weekly_distance == 0
        assert patterns.optimal_days == []
        assert patterns.typical_long_run_day is None

    def test_volume(self, three_weeks):
        """Weekly distances 34, 35, 36 km."""
        patterns = analyze_weekly_patterns(three_weeks)
        assert patterns.weeks == 3
        assert patterns.avg_weekly_distance == 35
        assert patterns.max_weekly_distance == 36
        assert patterns.avg_runs_per_week == 3.0

    def test_optimal_days(self, three_weeks):
        """Top N days by frequency, N = rounded runs per week."""
        patterns = analyze_weekly_patterns(three_weeks)
        assert patterns.optimal_days == [1, 3, 6]
        assert patterns.optimal_day_names == ['Tuesday', 'Thursday', 'Sunday']

    def test_long_run_day(self, three_weeks):
        """Runs over 15 km fall on Sunday."""
        patterns = analyze_weekly_patterns(three_weeks)
        assert patterns.typical_long_run_day == 6
        assert DAY_NAMES[patterns.typical_long_run_day] == 'Sunday'

    def test_no_long_runs(self):
        sessions = [SessionRecord(MONDAY, 8.0, 45.0)]
        assert analyze_weekly_patterns(sessions).typical_long_run_day is None

    def test_day_frequency(self, three_weeks):
        patterns = analyze_weekly_patterns(three_weeks)
        assert patterns.day_frequency == [0, 3, 0, 3, 0, 0, 3]

    def test_consistency_against_target(self, three_weeks):
        """9 sessions against 4 per week over 3 weeks is 75 %."""
        patterns = analyze_weekly_patterns(three_weeks, target_runs_per_week=4)
        assert patterns.consistency_score == 75

    def test_consistency_capped(self, three_weeks):
        """More sessions than planned still scores 100."""
        patterns = analyze_weekly_patterns(three_weeks, target_runs_per_week=2)
        assert patterns.consistency_score == 100

    def test_tie_goes_to_earlier_day(self):
        """Equal counts rank the earlier weekday first."""
        sessions = [
            SessionRecord(MONDAY + timedelta(days=4), 5.0, 30.0),   # Friday
            SessionRecord(MONDAY + timedelta(days=2), 5.0, 30.0),   # Wednesday
        ]
        patterns = analyze_weekly_patterns(sessions)
        assert patterns.optimal_days == [2, 4]


class TestWeeklyTotals:
    """Tests for weekly_totals."""

    def test_totals(self, three_weeks):
        totals = weekly_totals(three_weeks)
        assert len(totals) == 3
        assert list(totals['distance']) == [34.0, 35.0, 36.0]
        assert list(totals['runs']) == [3, 3, 3]

    def test_empty(self):
        assert weekly_totals([]).empty
