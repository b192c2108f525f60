"""
Before/after comparison of sleep around dated events.

For each event (e.g. a medication start), nights in a fixed window before
and after the event date are averaged and the change is reported. The event
day itself belongs to neither window.

Empty windows produce NaN means, and NaN flows through the delta instead of
raising; presentation renders it as "no data".
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import List, Optional, Sequence

from sleep_insights.core.config import config
from sleep_insights.data.features import stage_percentages
from sleep_insights.data.schema import EventDelta, EventRecord, MetricMeans, NightRecord

logger = logging.getLogger(__name__)


def nan_mean(values: Sequence[float]) -> float:
    """Arithmetic mean, NaN for an empty sequence."""
    if not values:
        return math.nan
    return sum(values) / len(values)


def event_window(
    nights: Sequence[NightRecord],
    start: date,
    end: date,
) -> List[NightRecord]:
    """Nights dated within [start, end], both inclusive."""
    return [n for n in nights if start <= n.date <= end]


def window_means(nights: Sequence[NightRecord]) -> MetricMeans:
    """Mean REM %, deep %, total hours and awake hours over a window."""
    pcts = [stage_percentages(n) for n in nights]
    return MetricMeans(
        rem=nan_mean([p[0] for p in pcts]),
        deep=nan_mean([p[1] for p in pcts]),
        total=nan_mean([n.total_sleep_hours for n in nights]),
        awake=nan_mean([n.awake_hours for n in nights]),
    )


def compute_event_delta(
    nights: Sequence[NightRecord],
    event: EventRecord,
    window_days: Optional[int] = None,
) -> EventDelta:
    """Compare the nights before and after a single event.

    Args:
        nights: Full or filtered night sequence; DerivedNight percentages are
            reused, plain NightRecords have them computed per night.
        event: The event to centre the windows on.
        window_days: Days on each side (defaults to config).

    Returns:
        EventDelta with before, after and after - before per metric.

    Raises:
        ValueError: If window_days is below 1.
    """
    days = window_days if window_days is not None else config.analysis.event_window_days
    if days < 1:
        raise ValueError(f"window_days must be >= 1, got {days}")

    pre = event_window(nights, event.date - timedelta(days=days), event.date - timedelta(days=1))
    post = event_window(nights, event.date + timedelta(days=1), event.date + timedelta(days=days))

    before = window_means(pre)
    after = window_means(post)
    delta = MetricMeans(
        rem=after.rem - before.rem,
        deep=after.deep - before.deep,
        total=after.total - before.total,
        awake=after.awake - before.awake,
    )

    return EventDelta(
        event=event,
        before=before,
        after=after,
        delta=delta,
        nights_before=len(pre),
        nights_after=len(post),
    )


def compute_event_deltas(
    nights: Sequence[NightRecord],
    events: Sequence[EventRecord],
    window_days: Optional[int] = None,
) -> List[EventDelta]:
    """Event deltas for every event, most recent event first.

    Events sharing a date keep their incoming order.
    """
    deltas = [compute_event_delta(nights, event, window_days) for event in events]
    deltas.sort(key=lambda d: d.event.date, reverse=True)

    empty = sum(1 for d in deltas if d.nights_before == 0 or d.nights_after == 0)
    if empty:
        logger.debug(f"{empty} of {len(deltas)} event(s) have an empty comparison window")
    return deltas
