"""
Tests for dashboard metrics.

Test Coverage:
1. Empty store: every counter zero, no division errors
2. Per-status counts and resolution rate
3. Average resolution time ignores resolved rows without resolvedAt
4. Rolling 7/30 day windows against a fixed clock
5. Chart series: ordering, daily counts, resolution time by category
"""
from datetime import datetime, timedelta

import pytest

from app.services.dashboard import MetricsAggregator
from conftest import make_complaint


NOW = datetime(2024, 11, 30, 12, 0, 0)


def fixed_clock():
    return NOW


@pytest.fixture
def aggregator(db):
    return MetricsAggregator(db, clock=fixed_clock)


# =============================================================================
# TEST: COUNTERS
# =============================================================================

class TestMetrics:

    def test_empty_store(self, aggregator):
        metrics = aggregator.metrics()

        assert metrics == {
            "totalComplaints": 0,
            "pendingComplaints": 0,
            "inProgressComplaints": 0,
            "resolvedComplaints": 0,
            "rejectedComplaints": 0,
            "avgResolutionTime": 0,
            "complaintsThisWeek": 0,
            "complaintsThisMonth": 0,
            "resolutionRate": 0,
        }

    def test_status_counts_and_rate(self, db, aggregator):
        for status in ("pending", "pending", "in_progress", "resolved", "rejected", "resolved"):
            make_complaint(db, status=status, created_at=NOW - timedelta(days=1))

        metrics = aggregator.metrics()

        assert metrics["totalComplaints"] == 6
        assert metrics["pendingComplaints"] == 2
        assert metrics["inProgressComplaints"] == 1
        assert metrics["resolvedComplaints"] == 2
        assert metrics["rejectedComplaints"] == 1
        assert metrics["resolutionRate"] == 33.3

    def test_average_resolution_hours(self, db, aggregator):
        created = NOW - timedelta(days=3)
        make_complaint(db, status="resolved", created_at=created, resolved_at=created + timedelta(hours=10))
        make_complaint(db, status="resolved", created_at=created, resolved_at=created + timedelta(hours=25))
        # Legacy resolved row without a stamp does not count toward the average
        make_complaint(db, status="resolved", created_at=created, resolved_at=None)

        assert aggregator.metrics()["avgResolutionTime"] == 17.5

    def test_rolling_windows(self, db, aggregator):
        make_complaint(db, created_at=NOW - timedelta(days=1))
        make_complaint(db, created_at=NOW - timedelta(days=6, hours=23))
        make_complaint(db, created_at=NOW - timedelta(days=10))
        make_complaint(db, created_at=NOW - timedelta(days=29))
        make_complaint(db, created_at=NOW - timedelta(days=45))

        metrics = aggregator.metrics()

        assert metrics["totalComplaints"] == 5
        assert metrics["complaintsThisWeek"] == 2
        assert metrics["complaintsThisMonth"] == 4


# =============================================================================
# TEST: CHARTS
# =============================================================================

class TestCharts:

    def test_empty_store(self, aggregator):
        charts = aggregator.charts()

        assert charts == {
            "complaintsByCategory": [],
            "complaintsByStatus": [],
            "complaintsByPriority": [],
            "complaintsOverTime": [],
            "resolutionTimeByCategory": [],
        }

    def test_category_breakdown_sorted_by_count(self, db, aggregator):
        for category in ("maintenance", "cleanliness", "maintenance", "security", "maintenance", "cleanliness"):
            make_complaint(db, category=category, created_at=NOW - timedelta(days=2))

        series = aggregator.charts()["complaintsByCategory"]

        assert series == [
            {"label": "maintenance", "value": 3},
            {"label": "cleanliness", "value": 2},
            {"label": "security", "value": 1},
        ]

    def test_daily_counts_skip_empty_days(self, db, aggregator):
        make_complaint(db, created_at=datetime(2024, 11, 20, 8))
        make_complaint(db, created_at=datetime(2024, 11, 20, 22))
        make_complaint(db, created_at=datetime(2024, 11, 25, 10))
        make_complaint(db, created_at=datetime(2024, 10, 1, 10))

        assert aggregator.charts()["complaintsOverTime"] == [
            {"date": "2024-11-20", "count": 2},
            {"date": "2024-11-25", "count": 1},
        ]

    def test_resolution_time_by_category(self, db, aggregator):
        created = NOW - timedelta(days=5)
        make_complaint(db, category="security", status="resolved",
                       created_at=created, resolved_at=created + timedelta(hours=4))
        make_complaint(db, category="maintenance", status="resolved",
                       created_at=created, resolved_at=created + timedelta(hours=48))
        make_complaint(db, category="maintenance", status="resolved",
                       created_at=created, resolved_at=created + timedelta(hours=24))
        make_complaint(db, category="ticketing", status="pending", created_at=created)

        assert aggregator.charts()["resolutionTimeByCategory"] == [
            {"label": "maintenance", "value": 36.0},
            {"label": "security", "value": 4.0},
        ]

    def test_status_and_priority_series(self, db, aggregator):
        make_complaint(db, status="pending", priority="high", created_at=NOW - timedelta(hours=5))
        make_complaint(db, status="resolved", priority="high",
                       created_at=NOW - timedelta(hours=5), resolved_at=NOW)

        charts = aggregator.charts()

        assert {"label": "pending", "value": 1} in charts["complaintsByStatus"]
        assert {"label": "resolved", "value": 1} in charts["complaintsByStatus"]
        assert charts["complaintsByPriority"] == [{"label": "high", "value": 2}]
