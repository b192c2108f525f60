"""
Night normalization: resolve header aliases, dates and hour values.

Converts raw table rows (whose headers differ between tracker apps, export
versions and locales) into canonical NightRecord objects that are consistent
across the entire pipeline.

Design:
- One priority-ordered alias list per semantic field, first match wins
- Dates parsed from a fixed list of formats; time of day discarded
- Decimal commas accepted; bad numbers become 0.0 rather than errors
- Rows without a usable date are skipped, never fatal
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sleep_insights.core.exceptions import DataValidationError
from sleep_insights.data.schema import NightRecord

logger = logging.getLogger(__name__)


class NormalizationError(DataValidationError):
    """Raised when a row cannot be turned into a NightRecord."""
    pass


# Accepted headers per field, in priority order
HEADER_ALIASES: Dict[str, Tuple[str, ...]] = {
    "date": ("Date/Time", "Date", "date"),
    "total_sleep_hours": ("Total Sleep (hr)", "Asleep (hr)", "TotalSleep"),
    "core_hours": ("Core (hr)", "Core"),
    "deep_hours": ("Deep (hr)", "Deep"),
    "rem_hours": ("REM (hr)", "REM"),
    "awake_hours": ("Awake (hr)", "Awake"),
}

HOUR_FIELDS = (
    "total_sleep_hours",
    "core_hours",
    "deep_hours",
    "rem_hours",
    "awake_hours",
)

DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
]

# Leading number, like JavaScript's parseFloat: "7.5 h" -> 7.5
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def resolve_field(
    row: Dict[str, Any],
    field: str,
    skip_blank: bool = False,
) -> Optional[Any]:
    """
    Look up a semantic field through its alias list.

    Args:
        row: Raw row dict from ingestion
        field: Key of HEADER_ALIASES
        skip_blank: Treat blank cells as absent and try the next alias

    Returns:
        The value of the first alias present in the row, or None
    """
    for alias in HEADER_ALIASES[field]:
        value = row.get(alias)
        if value is None:
            continue
        if skip_blank and isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def parse_date(value: Any) -> date:
    """
    Parse a calendar date from a tracker timestamp.

    Supports ISO 8601 dates and date-times (with or without a UTC offset),
    slash-separated year-first and US month-first dates.

    Args:
        value: Date string, date or datetime

    Returns:
        The calendar date (time of day is discarded)

    Raises:
        NormalizationError: If the value matches no known format
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        raise NormalizationError("Empty date")

    text = str(value).strip()
    if not text:
        raise NormalizationError("Empty date")

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # Offsets and trailing Z ("2024-01-01T23:10:00+01:00")
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    raise NormalizationError(f"Could not parse date: {text}")


def coerce_float(value: Any) -> float:
    """
    Coerce a cell to a non-negative number (hours, doses).

    - Decimal comma is normalized to a decimal point ("7,5" -> 7.5)
    - Trailing text after the number is ignored ("7.5 h" -> 7.5)
    - Absent, unparseable, negative or non-finite values become 0.0

    Never raises.
    """
    if value is None:
        return 0.0

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        text = str(value).strip().replace(",", ".", 1)
        match = _NUMBER_PREFIX.match(text)
        if not match:
            return 0.0
        try:
            number = float(match.group(0))
        except ValueError:
            return 0.0

    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def normalize_night(row: Dict[str, Any]) -> NightRecord:
    """
    Convert a raw row to a canonical NightRecord.

    Args:
        row: Row dict from ingestion (headers as keys)

    Returns:
        NightRecord

    Raises:
        NormalizationError: If the row has no resolvable or parseable date
    """
    if not isinstance(row, dict):
        raise NormalizationError(f"Expected dict, got {type(row)}")

    raw_date = resolve_field(row, "date", skip_blank=True)
    if raw_date is None:
        raise NormalizationError("No date column in row")

    night_date = parse_date(raw_date)
    hours = {field: coerce_float(resolve_field(row, field)) for field in HOUR_FIELDS}

    return NightRecord(date=night_date, **hours)


def sort_by_date(records: Iterable[Any]) -> List[Any]:
    """Stable ascending sort on the ``date`` attribute."""
    return sorted(records, key=lambda r: r.date)


def normalize_nights(
    rows: Iterable[Dict[str, Any]]
) -> tuple[list[NightRecord], int]:
    """
    Normalize many rows into a date-ordered night sequence.

    Args:
        rows: Raw row dicts (from one table or a whole archive)

    Returns:
        Tuple of (nights sorted ascending by date, skipped_count)

    Notes:
        - Rows that fail normalization are skipped, not raised
        - Ties on date keep their encounter order
    """
    nights = []
    skipped = 0

    for row in rows:
        try:
            nights.append(normalize_night(row))
        except NormalizationError as e:
            logger.debug(f"Skipped row due to normalization error: {e}")
            skipped += 1

    if skipped:
        logger.info(f"Normalized {len(nights)} night(s), skipped {skipped} row(s)")

    return sort_by_date(nights), skipped

