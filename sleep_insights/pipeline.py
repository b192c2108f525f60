"""
End-to-end sleep analysis pipeline.

Wires ingestion, normalization, filtering, monthly aggregation and event
correlation into the set of views consumed by presentation. Every call
recomputes from the full inputs; callers re-invoke when a file, filter
bound, rolling width or sort column changes.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from sleep_insights.analysis.derive import derive_nights
from sleep_insights.analysis.events import compute_event_deltas
from sleep_insights.core.config import ViewSettings, config
from sleep_insights.data.aggregation import (
    SortDirective,
    low_deep_bands,
    low_deep_months,
    sort_summaries,
    summarize_months,
)
from sleep_insights.data.ingestion import (
    Source,
    decode_text,
    ingest_sleep_export,
    read_payload,
    source_name,
)
from sleep_insights.data.normalizers import normalize_nights
from sleep_insights.data.parsers import parse_event_file
from sleep_insights.data.schema import (
    DerivedNight,
    EventDelta,
    EventRecord,
    MonthBand,
    MonthlySummary,
    NightRecord,
)

logger = logging.getLogger(__name__)


class SleepDashboard(BaseModel):
    """
    All derived views for one set of inputs and parameters.

    Fields:
    - nights: filtered nights with percentages and moving averages
    - monthly: summaries over the unfiltered nights, in display order
    - low_deep_months: month keys flagged as lowest deep-sleep share
    - bands: calendar spans of flagged months present in ``nights``
    - event_deltas: before/after comparisons, most recent event first
    - nights_loaded: number of nights in the filtered view
    """

    model_config = ConfigDict(frozen=True)

    settings: ViewSettings
    sort: SortDirective
    nights: List[DerivedNight]
    monthly: List[MonthlySummary]
    low_deep_months: List[str]
    bands: List[MonthBand]
    event_deltas: List[EventDelta]
    nights_loaded: int


def load_sleep_export(
    source: Source,
    filename: Optional[str] = None,
) -> List[NightRecord]:
    """
    Read a sleep export (CSV table or ZIP of tables) into nights.

    Args:
        source: Path to the export, or its contents (bytes or decoded text)
        filename: Original file name, used for format detection

    Returns:
        Nights sorted ascending by date

    Raises:
        IngestionError: If the file cannot be read
        UnrecognizedInputError: If the payload is not a table or archive
    """
    name = filename or source_name(source) or "<memory>"
    nights, skipped = normalize_nights(ingest_sleep_export(source, filename=filename))
    logger.info(f"Loaded {len(nights)} night(s) from {name}, skipped {skipped} row(s)")
    return nights


def load_event_log(
    source: Source,
    filename: Optional[str] = None,
) -> List[EventRecord]:
    """
    Read an event log into events.

    A ".csv" file name selects the tabular format; anything else (including
    unnamed in-memory contents) is read as "DATE - LABEL" lines.

    Args:
        source: Path to the log, or its contents (bytes or decoded text)
        filename: Original file name (defaults to the path's name)

    Raises:
        IngestionError: If the file cannot be read
        UnrecognizedInputError: If the payload is not text
    """
    if filename is None:
        filename = source_name(source)

    text = decode_text(read_payload(source))
    return parse_event_file(filename or "events.txt", text)


def build_dashboard(
    nights: Sequence[NightRecord],
    events: Sequence[EventRecord] = (),
    settings: Optional[ViewSettings] = None,
    sort: Optional[SortDirective] = None,
    low_deep_percentile: Optional[float] = None,
    deltas_over_filtered: bool = True,
) -> SleepDashboard:
    """
    Compute every view for the given inputs and parameters.

    Args:
        nights: Full, date-ordered night sequence
        events: Date-ordered events
        settings: Filter bounds and rolling width (defaults to config)
        sort: Monthly table ordering (defaults to chronological)
        low_deep_percentile: Share of months flagged as low deep sleep
        deltas_over_filtered: Correlate events against the filtered view
            (True) or the full night sequence (False)

    Returns:
        SleepDashboard

    Notes:
        - Monthly summaries always use the unfiltered nights, so the table
          stays put while chart filters are tuned
    """
    settings = settings or config.analysis.view
    sort = sort or SortDirective()
    if low_deep_percentile is None:
        low_deep_percentile = config.analysis.low_deep_percentile

    derived = derive_nights(nights, settings)

    summaries = summarize_months(nights)
    flagged = low_deep_months(summaries, low_deep_percentile)
    bands = low_deep_bands(derived, flagged)

    delta_source = derived if deltas_over_filtered else list(nights)
    deltas = compute_event_deltas(delta_source, events)

    logger.info(
        f"Dashboard: {len(derived)}/{len(nights)} night(s) in view, "
        f"{len(summaries)} month(s), {len(deltas)} event(s)"
    )

    return SleepDashboard(
        settings=settings,
        sort=sort,
        nights=derived,
        monthly=sort_summaries(summaries, sort),
        low_deep_months=sorted(flagged),
        bands=bands,
        event_deltas=deltas,
        nights_loaded=len(derived),
    )
