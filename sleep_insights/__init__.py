"""
Sleep Insights: sleep-stage trends and before/after medication deltas.

Normalizes tracker exports and event logs, then derives filtered night
views, moving averages, monthly summaries and event deltas.
"""

from sleep_insights.pipeline import (
    SleepDashboard,
    build_dashboard,
    load_event_log,
    load_sleep_export,
)

__all__ = [
    "SleepDashboard",
    "build_dashboard",
    "load_event_log",
    "load_sleep_export",
]
