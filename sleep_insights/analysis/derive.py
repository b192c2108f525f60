"""
Filtering and per-night derivation.

Turns the full, date-ordered night sequence into the filtered view shown in
the charts: nights outside the date range or sleep-duration bounds are
dropped, stage percentages are computed, and moving averages are attached.

Design:
- Pure and total: never raises, empty input gives empty output
- Filters compose by conjunction in a fixed order (from, to, hours)
- Rolling averages run over the *filtered* sequence, by index
"""

import logging
from datetime import timedelta
from typing import List, Optional, Sequence

from sleep_insights.analysis.rolling import rolling_mean
from sleep_insights.core.config import ViewSettings, config
from sleep_insights.data.features import stage_percentages
from sleep_insights.data.schema import DerivedNight, NightRecord

logger = logging.getLogger(__name__)


def filter_nights(
    nights: Sequence[NightRecord],
    settings: Optional[ViewSettings] = None,
) -> List[NightRecord]:
    """
    Apply date-range and sleep-duration filters.

    Args:
        nights: Date-ordered nights
        settings: Filter bounds (defaults to config.analysis.view)

    Returns:
        Nights passing every filter, order preserved

    Notes:
        - date_from is inclusive
        - date_to is inclusive: the cut-off is the day after date_to
        - min_hours <= total_sleep_hours <= max_hours
    """
    settings = settings or config.analysis.view
    rows = list(nights)

    if settings.date_from is not None:
        rows = [n for n in rows if n.date >= settings.date_from]

    if settings.date_to is not None:
        cutoff = settings.date_to + timedelta(days=1)
        rows = [n for n in rows if n.date < cutoff]

    rows = [
        n for n in rows
        if settings.min_hours <= n.total_sleep_hours <= settings.max_hours
    ]

    return rows


def derive_nights(
    nights: Sequence[NightRecord],
    settings: Optional[ViewSettings] = None,
) -> List[DerivedNight]:
    """
    Filter nights and attach percentages and moving averages.

    Args:
        nights: Full, date-ordered night sequence
        settings: Filter bounds and rolling window width

    Returns:
        DerivedNight list aligned with the filtered sequence

    Example:
        view = derive_nights(nights, ViewSettings(rolling_window=7))
        latest = view[-1].rem_rolling
    """
    settings = settings or config.analysis.view
    filtered = filter_nights(nights, settings)

    enriched = []
    for night in filtered:
        rem_pct, deep_pct, core_pct = stage_percentages(night)
        enriched.append((night, rem_pct, deep_pct, core_pct))

    k = settings.rolling_window
    rem_roll = rolling_mean(enriched, k, lambda e: e[1])
    deep_roll = rolling_mean(enriched, k, lambda e: e[2])
    total_roll = rolling_mean(enriched, k, lambda e: e[0].total_sleep_hours)
    awake_roll = rolling_mean(enriched, k, lambda e: e[0].awake_hours)

    derived = []
    for i, (night, rem_pct, deep_pct, core_pct) in enumerate(enriched):
        derived.append(DerivedNight(
            date=night.date,
            total_sleep_hours=night.total_sleep_hours,
            core_hours=night.core_hours,
            deep_hours=night.deep_hours,
            rem_hours=night.rem_hours,
            awake_hours=night.awake_hours,
            rem_pct=rem_pct,
            deep_pct=deep_pct,
            core_pct=core_pct,
            rem_rolling=rem_roll[i],
            deep_rolling=deep_roll[i],
            total_rolling=total_roll[i],
            awake_rolling=awake_roll[i],
        ))

    logger.debug(
        f"Derived {len(derived)} of {len(nights)} night(s) "
        f"(rolling window {k})"
    )
    return derived
