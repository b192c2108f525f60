"""
Canonical internal schema for the sleep analysis pipeline.

This module defines the standardized representation of a night of sleep and
of a dated life event after parsing and normalization. All export formats are
converted to this schema before filtering, aggregation or correlation.

Design rationale:
- Minimal fields (only what the analytical views need)
- Calendar dates only; time of day is discarded during normalization
- Hours default to 0.0 instead of None so arithmetic never sees missing values
- All models are frozen: stages produce new values instead of mutating
"""

import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NightRecord(BaseModel):
    """
    Canonical representation of one night of sleep.

    Produced by the normalizer from any supported export layout.

    Attributes:
        date: Calendar date the tracker attributed the night to
        total_sleep_hours: Total time asleep
        core_hours: Time in core (light) sleep
        deep_hours: Time in deep sleep
        rem_hours: Time in REM sleep
        awake_hours: Time awake while in bed

    Notes:
        - Stage percentages are not stored; see analysis.derive
        - Unparseable numeric cells were already coerced to 0.0
    """

    model_config = ConfigDict(frozen=True)

    date: datetime.date = Field(
        ...,
        description="Calendar date of the night"
    )

    total_sleep_hours: float = Field(
        default=0.0,
        ge=0.0,
        description="Total sleep in hours"
    )

    core_hours: float = Field(
        default=0.0,
        ge=0.0,
        description="Core sleep in hours"
    )

    deep_hours: float = Field(
        default=0.0,
        ge=0.0,
        description="Deep sleep in hours"
    )

    rem_hours: float = Field(
        default=0.0,
        ge=0.0,
        description="REM sleep in hours"
    )

    awake_hours: float = Field(
        default=0.0,
        ge=0.0,
        description="Awake time in bed in hours"
    )

    @property
    def date_str(self) -> str:
        """ISO calendar date (YYYY-MM-DD)."""
        return self.date.isoformat()


class DerivedNight(NightRecord):
    """
    A night that survived filtering, with stage percentages and moving averages.

    Attributes:
        rem_pct / deep_pct / core_pct: Stage hours as a percentage of total sleep
        rem_rolling / deep_rolling: Moving averages of the stage percentages
        total_rolling / awake_rolling: Moving averages of total and awake hours

    Notes:
        - Percentages are 0.0 when total_sleep_hours is 0
        - Rolling fields are None until a full window of nights exists
    """

    rem_pct: float = Field(default=0.0, description="REM share of total sleep (%)")
    deep_pct: float = Field(default=0.0, description="Deep share of total sleep (%)")
    core_pct: float = Field(default=0.0, description="Core share of total sleep (%)")

    rem_rolling: Optional[float] = Field(default=None, description="Rolling mean of rem_pct")
    deep_rolling: Optional[float] = Field(default=None, description="Rolling mean of deep_pct")
    total_rolling: Optional[float] = Field(default=None, description="Rolling mean of total hours")
    awake_rolling: Optional[float] = Field(default=None, description="Rolling mean of awake hours")


class EventRecord(BaseModel):
    """
    A dated annotation such as a medication start or stop.

    Attributes:
        date: Calendar date of the event
        label: Free-text description shown next to chart markers
    """

    model_config = ConfigDict(frozen=True)

    date: datetime.date = Field(
        ...,
        description="Calendar date of the event"
    )

    label: str = Field(
        default="",
        description="Free-text event description"
    )


class MonthlySummary(BaseModel):
    """
    Per-calendar-month means over a night sequence.

    Attributes:
        month_key: YYYY-MM (lexicographic order is chronological)
        rem_pct_mean: Mean REM % over nights with total_sleep_hours > 0
        deep_pct_mean: Mean deep % over nights with total_sleep_hours > 0
        total_sleep_mean: Mean total sleep hours over all nights
        awake_mean: Mean awake hours over all nights
        night_count: Number of nights in the month
    """

    model_config = ConfigDict(frozen=True)

    month_key: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    rem_pct_mean: float = 0.0
    deep_pct_mean: float = 0.0
    total_sleep_mean: float = 0.0
    awake_mean: float = 0.0
    night_count: int = Field(..., ge=1)


class MonthBand(BaseModel):
    """Calendar span of a flagged month, end exclusive."""

    model_config = ConfigDict(frozen=True)

    month_key: str
    start: datetime.date
    end: datetime.date


class MetricMeans(BaseModel):
    """
    Mean sleep metrics over a window of nights.

    Any field may be NaN when the window holds no nights.
    """

    model_config = ConfigDict(frozen=True)

    rem: float = Field(..., description="Mean REM %")
    deep: float = Field(..., description="Mean deep %")
    total: float = Field(..., description="Mean total sleep hours")
    awake: float = Field(..., description="Mean awake hours")


class EventDelta(BaseModel):
    """
    Before/after comparison around a single event.

    Attributes:
        event: The event the windows are centred on
        before: Means over the nights preceding the event
        after: Means over the nights following the event
        delta: after - before per metric (NaN if either side is empty)
        nights_before / nights_after: Window sizes actually observed
    """

    model_config = ConfigDict(frozen=True)

    event: EventRecord
    before: MetricMeans
    after: MetricMeans
    delta: MetricMeans
    nights_before: int = Field(default=0, ge=0)
    nights_after: int = Field(default=0, ge=0)


RollingSeries = List[Optional[float]]
