"""
Calendar-month aggregation for nights.

Groups nights by year-month and computes per-month means for the summary
table. Also flags the months with the least deep sleep so charts can shade
them.

Design:
- Month keys are "YYYY-MM" so string order equals calendar order
- Stage-percentage means skip nights with zero total sleep
- Summaries are recomputed from scratch; the sort directive only reorders
- Computed over the full dataset, not the filtered chart view
"""

import logging
import math
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set

from pydantic import BaseModel, ConfigDict

from sleep_insights.core.exceptions import DataValidationError
from sleep_insights.data.features import stage_percentages
from sleep_insights.data.schema import MonthBand, MonthlySummary, NightRecord

logger = logging.getLogger(__name__)


class AggregationError(DataValidationError):
    """Raised when aggregation parameters are invalid."""
    pass


class SortColumn(str, Enum):
    """Sortable columns of the monthly summary table."""
    MONTH = "month_key"
    REM_PCT = "rem_pct_mean"
    DEEP_PCT = "deep_pct_mean"
    TOTAL_SLEEP = "total_sleep_mean"
    AWAKE = "awake_mean"
    NIGHTS = "night_count"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortDirective(BaseModel):
    """
    Column and direction for the monthly table.

    Selecting the current column again flips the direction; selecting a
    different column sorts it descending.
    """

    model_config = ConfigDict(frozen=True)

    column: SortColumn = SortColumn.MONTH
    direction: SortDirection = SortDirection.ASC

    def select(self, column: SortColumn) -> "SortDirective":
        column = SortColumn(column)
        if column == self.column:
            flipped = (
                SortDirection.DESC
                if self.direction == SortDirection.ASC
                else SortDirection.ASC
            )
            return SortDirective(column=column, direction=flipped)
        return SortDirective(column=column, direction=SortDirection.DESC)


def month_key(day: date) -> str:
    """
    Year-month key for a date.

    Example:
        date(2024, 3, 9) -> "2024-03"
    """
    return f"{day.year:04d}-{day.month:02d}"


def group_by_month(nights: Iterable[NightRecord]) -> Dict[str, List[NightRecord]]:
    """
    Group nights by calendar month.

    Returns:
        Dict mapping month key -> nights (encounter order), keys in
        chronological order
    """
    groups: Dict[str, List[NightRecord]] = {}
    for night in nights:
        groups.setdefault(month_key(night.date), []).append(night)
    return dict(sorted(groups.items()))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def summarize_month(key: str, nights: Sequence[NightRecord]) -> MonthlySummary:
    """
    Compute the summary for one month.

    Args:
        key: Month key
        nights: Nights of that month (non-empty)

    Notes:
        - total and awake means use every night
        - REM/deep % means use only nights with total_sleep_hours > 0,
          and are 0.0 if there are none
    """
    if not nights:
        raise AggregationError(f"Month {key} has no nights")

    slept = [n for n in nights if n.total_sleep_hours > 0]
    pcts = [stage_percentages(n) for n in slept]

    return MonthlySummary(
        month_key=key,
        rem_pct_mean=_mean([p[0] for p in pcts]),
        deep_pct_mean=_mean([p[1] for p in pcts]),
        total_sleep_mean=_mean([n.total_sleep_hours for n in nights]),
        awake_mean=_mean([n.awake_hours for n in nights]),
        night_count=len(nights),
    )


def summarize_months(nights: Iterable[NightRecord]) -> List[MonthlySummary]:
    """
    Summaries for every month present, in chronological order.
    """
    return [summarize_month(key, group) for key, group in group_by_month(nights).items()]


def sort_summaries(
    summaries: Sequence[MonthlySummary],
    directive: Optional[SortDirective] = None,
) -> List[MonthlySummary]:
    """
    Order monthly summaries for display.

    The sort is stable in both directions: months that tie on the selected
    column keep their incoming (chronological) order.
    """
    directive = directive or SortDirective()
    attr = directive.column.value
    return sorted(
        summaries,
        key=lambda s: getattr(s, attr),
        reverse=directive.direction == SortDirection.DESC,
    )


def low_deep_months(
    summaries: Sequence[MonthlySummary],
    percentile: float,
) -> Set[str]:
    """
    Month keys in the lowest ``percentile`` percent by deep-sleep share.

    Args:
        summaries: Monthly summaries (any order)
        percentile: Share of months to flag, 0-100

    Returns:
        Set of ceil(percentile / 100 * n) month keys

    Raises:
        AggregationError: If percentile is outside 0-100
    """
    if not 0 <= percentile <= 100:
        raise AggregationError(f"Percentile must be within 0-100, got {percentile}")
    if not summaries:
        return set()

    ranked = sorted(summaries, key=lambda s: s.deep_pct_mean)
    k = math.ceil(percentile / 100 * len(ranked))
    return {s.month_key for s in ranked[:k]}


def month_bounds(day: date) -> tuple[date, date]:
    """First day of the month and first day of the next month."""
    start = day.replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def low_deep_bands(
    nights: Iterable[NightRecord],
    months: Set[str],
) -> List[MonthBand]:
    """
    Calendar spans of flagged months that appear in a night sequence.

    Used to shade chart backgrounds; only months with at least one night in
    ``nights`` produce a band.
    """
    bands: Dict[str, MonthBand] = {}
    for night in nights:
        key = month_key(night.date)
        if key in months and key not in bands:
            start, end = month_bounds(night.date)
            bands[key] = MonthBand(month_key=key, start=start, end=end)

    return sorted(bands.values(), key=lambda b: b.start)
