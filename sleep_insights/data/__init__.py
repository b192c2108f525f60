"""
Data module: Export ingestion, normalization, event parsing, and monthly aggregation.

Responsible for converting raw tracker exports into clean, canonical records
suitable for analysis. Pipeline:

    Raw exports (CSV table / ZIP of CSV tables)
        ↓
    Ingestion (sleep_insights/data/ingestion.py)
        ↓
    Normalization (sleep_insights/data/normalizers.py) → NightRecord
        ↓
    Monthly aggregation (sleep_insights/data/aggregation.py) → MonthlySummary

    Event logs (CSV table / "DATE - LABEL" lines)
        ↓
    Parsing (sleep_insights/data/parsers.py) → EventRecord
"""

from sleep_insights.data.aggregation import (
    AggregationError,
    SortColumn,
    SortDirection,
    SortDirective,
    group_by_month,
    low_deep_bands,
    low_deep_months,
    month_key,
    sort_summaries,
    summarize_months,
)
from sleep_insights.data.features import stage_pct, stage_percentages
from sleep_insights.data.ingestion import (
    CSVTableSource,
    ZipArchiveSource,
    detect_format,
    ingest_sleep_export,
)
from sleep_insights.data.normalizers import (
    HEADER_ALIASES,
    NormalizationError,
    coerce_float,
    normalize_night,
    normalize_nights,
    parse_date,
)
from sleep_insights.data.parsers import (
    LineEventParser,
    ParsingError,
    TabularEventParser,
    parse_event_file,
    parse_event_lines,
    parse_event_table,
)
from sleep_insights.data.schema import (
    DerivedNight,
    EventDelta,
    EventRecord,
    MetricMeans,
    MonthBand,
    MonthlySummary,
    NightRecord,
    RollingSeries,
)

__all__ = [
    # Schema
    "NightRecord",
    "DerivedNight",
    "EventRecord",
    "MonthlySummary",
    "MonthBand",
    "MetricMeans",
    "EventDelta",
    "RollingSeries",

    # Ingestion
    "ingest_sleep_export",
    "detect_format",
    "CSVTableSource",
    "ZipArchiveSource",

    # Normalization
    "HEADER_ALIASES",
    "normalize_night",
    "normalize_nights",
    "parse_date",
    "coerce_float",
    "NormalizationError",

    # Event parsing
    "parse_event_file",
    "parse_event_lines",
    "parse_event_table",
    "LineEventParser",
    "TabularEventParser",
    "ParsingError",

    # Features
    "stage_pct",
    "stage_percentages",

    # Aggregation
    "summarize_months",
    "sort_summaries",
    "group_by_month",
    "month_key",
    "low_deep_months",
    "low_deep_bands",
    "SortColumn",
    "SortDirection",
    "SortDirective",
    "AggregationError",
]
