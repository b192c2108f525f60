"""
Analysis module: moving averages, filtered night views, and event deltas.

Consumes normalized NightRecord and EventRecord sequences:

    NightRecord list
        ↓
    Filter & derive (sleep_insights/analysis/derive.py) → DerivedNight
        ↓                   uses rolling.py for moving averages
    Event deltas (sleep_insights/analysis/events.py) → EventDelta
"""

from .derive import derive_nights, filter_nights
from .events import compute_event_delta, compute_event_deltas, event_window, nan_mean
from .rolling import RollingMeanEstimator, rolling_mean

__all__ = [
    "RollingMeanEstimator",
    "rolling_mean",
    "filter_nights",
    "derive_nights",
    "compute_event_delta",
    "compute_event_deltas",
    "event_window",
    "nan_mean",
]
