"""
Insights Engine - dashboard and admin aggregates.
"""

from kms.engines.insights.dashboard_service import DashboardService

__all__ = [
    "DashboardService",
]
