"""
Core services of the derivation engine.

Session aggregation, change classification, subscores and insights, blood-test
summaries and the ignored-metric registry.
"""

from .blood_tests import MetricSummary, summarize_metrics
from .change import classify, compare, format_change
from .ignored_metrics import IgnoredMetricRegistry, KeyValueStore
from .insights import compose_insights
from .scoring import calculate_bp_score, calculate_health_score, calculate_sleep_score
from .sessions import build_session, group_readings, replace_session

__all__ = [
    "IgnoredMetricRegistry",
    "KeyValueStore",
    "MetricSummary",
    "build_session",
    "calculate_bp_score",
    "calculate_health_score",
    "calculate_sleep_score",
    "classify",
    "compare",
    "compose_insights",
    "format_change",
    "group_readings",
    "replace_session",
    "summarize_metrics",
]
