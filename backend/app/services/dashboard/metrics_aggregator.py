"""
Dashboard Metrics Aggregator

Read-only counters and breakdowns over the complaints table. Every call
recomputes from current rows; nothing is cached.
"""
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models.db_models import ComplaintDB, ComplaintStatus, utcnow

SECONDS_PER_HOUR = 60 * 60


def round1(value: float) -> float:
    return round(value, 1)


class MetricsAggregator:
    """
    Fleet-wide complaint statistics.

    `clock` returns the naive-UTC "now" the rolling windows are anchored to.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    # =========================================================================
    # COUNTERS
    # =========================================================================

    def metrics(self) -> Dict[str, Any]:
        now = self.clock()
        one_week_ago = now - timedelta(days=7)
        one_month_ago = now - timedelta(days=30)

        total = self.db.query(func.count(ComplaintDB.id)).scalar() or 0
        by_status = self._count_by(ComplaintDB.status)

        this_week = self.db.query(func.count(ComplaintDB.id)).filter(
            ComplaintDB.created_at >= one_week_ago
        ).scalar() or 0
        this_month = self.db.query(func.count(ComplaintDB.id)).filter(
            ComplaintDB.created_at >= one_month_ago
        ).scalar() or 0

        durations = [hours for _, hours in self._resolution_hours()]
        avg_resolution = sum(durations) / len(durations) if durations else 0

        resolved = by_status.get(ComplaintStatus.RESOLVED.value, 0)
        resolution_rate = (resolved / total) * 100 if total > 0 else 0

        return {
            "totalComplaints": total,
            "pendingComplaints": by_status.get(ComplaintStatus.PENDING.value, 0),
            "inProgressComplaints": by_status.get(ComplaintStatus.IN_PROGRESS.value, 0),
            "resolvedComplaints": resolved,
            "rejectedComplaints": by_status.get(ComplaintStatus.REJECTED.value, 0),
            "avgResolutionTime": round1(avg_resolution),
            "complaintsThisWeek": this_week,
            "complaintsThisMonth": this_month,
            "resolutionRate": round1(resolution_rate),
        }

    # =========================================================================
    # CHARTS
    # =========================================================================

    def charts(self) -> Dict[str, Any]:
        by_category = self._count_by(ComplaintDB.category)

        return {
            "complaintsByCategory": sorted(
                self._as_series(by_category), key=lambda item: item["value"], reverse=True
            ),
            "complaintsByStatus": self._as_series(self._count_by(ComplaintDB.status)),
            "complaintsByPriority": self._as_series(self._count_by(ComplaintDB.priority)),
            "complaintsOverTime": self._daily_counts(days=30),
            "resolutionTimeByCategory": self._resolution_time_by_category(),
        }

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _count_by(self, column) -> Dict[str, int]:
        rows = self.db.query(column, func.count(ComplaintDB.id)).group_by(column).all()
        return {label: count for label, count in rows}

    @staticmethod
    def _as_series(counts: Dict[str, int]) -> List[Dict[str, Any]]:
        return [{"label": label, "value": value} for label, value in sorted(counts.items())]

    def _daily_counts(self, days: int) -> List[Dict[str, Any]]:
        """Complaints per calendar day (UTC) over the trailing window; empty days omitted."""
        since = self.clock() - timedelta(days=days)
        rows = self.db.query(ComplaintDB.created_at).filter(
            ComplaintDB.created_at >= since
        ).all()

        per_day = Counter(created_at.date().isoformat() for (created_at,) in rows)
        return [{"date": day, "count": per_day[day]} for day in sorted(per_day)]

    def _resolution_hours(self) -> List[Tuple[str, float]]:
        """(category, hours to resolve) for resolved complaints that carry resolved_at."""
        rows = self.db.query(
            ComplaintDB.category, ComplaintDB.created_at, ComplaintDB.resolved_at
        ).filter(
            ComplaintDB.status == ComplaintStatus.RESOLVED.value,
            ComplaintDB.resolved_at.isnot(None),
        ).all()

        return [
            (category, (resolved_at - created_at).total_seconds() / SECONDS_PER_HOUR)
            for category, created_at, resolved_at in rows
            if created_at is not None
        ]

    def _resolution_time_by_category(self) -> List[Dict[str, Any]]:
        grouped: Dict[str, List[float]] = defaultdict(list)
        for category, hours in self._resolution_hours():
            grouped[category].append(hours)

        series = [
            {"label": category, "value": round1(sum(hours) / len(hours))}
            for category, hours in grouped.items()
        ]
        return sorted(series, key=lambda item: item["value"], reverse=True)
