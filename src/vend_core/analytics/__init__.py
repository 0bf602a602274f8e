"""Cross-analytics: top-K matrix, hourly distribution, trends and alerts."""

from vend_core.analytics.alerts import Alert, evaluate_alerts
from vend_core.analytics.api import CrossAnalytics, build_analytics, build_cross_analysis
from vend_core.analytics.trends import Trends, compute_trends

__all__ = [
    "Alert",
    "CrossAnalytics",
    "Trends",
    "build_analytics",
    "build_cross_analysis",
    "compute_trends",
    "evaluate_alerts",
]
