"""
Dashboard Services

Read-only aggregate metrics and chart breakdowns for the admin dashboard.
"""

from .metrics_aggregator import MetricsAggregator

__all__ = [
    'MetricsAggregator',
]
