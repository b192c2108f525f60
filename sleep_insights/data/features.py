"""
Per-night stage features.

Stage percentages are derived on demand rather than stored on NightRecord:
a stage's hours divided by the night's total sleep, as a percentage.

Design:
- A zero total yields 0.0, never a division error
- Nights that already carry percentages (DerivedNight) are read as-is
"""

from typing import Tuple

from sleep_insights.data.schema import DerivedNight, NightRecord


def stage_pct(stage_hours: float, total_hours: float) -> float:
    """Stage hours as a percentage of total sleep (0.0 when total is 0)."""
    if not total_hours:
        return 0.0
    return stage_hours / total_hours * 100


def stage_percentages(night: NightRecord) -> Tuple[float, float, float]:
    """
    Stage percentages for a night.

    Args:
        night: A NightRecord, or a DerivedNight whose stored values are reused

    Returns:
        Tuple of (rem_pct, deep_pct, core_pct)
    """
    if isinstance(night, DerivedNight):
        return night.rem_pct, night.deep_pct, night.core_pct

    total = night.total_sleep_hours
    return (
        stage_pct(night.rem_hours, total),
        stage_pct(night.deep_hours, total),
        stage_pct(night.core_hours, total),
    )
