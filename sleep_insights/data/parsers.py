"""
Event log parsing rules and strategies.

Converts medication/event logs into EventRecord sequences. Two shapes are
accepted:

    Line format (one event per line):
        2024-03-10 - Sertraline 50mg - START

    Tabular format (CSV with a header row):
        date,medication,dose_mg,action
        2024-03-10,Sertraline,50,start

Design:
- Each parser takes the whole decoded text and yields parsed events
- Lines/rows without a parseable date are dropped and logged at DEBUG
- Output is sorted ascending by date, stable on ties
"""

import csv
import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from sleep_insights.core.config import config
from sleep_insights.core.exceptions import DataValidationError
from sleep_insights.data.normalizers import (
    NormalizationError,
    coerce_float,
    parse_date,
    sort_by_date,
)
from sleep_insights.data.schema import EventRecord

logger = logging.getLogger(__name__)


class ParsingError(DataValidationError):
    """Raised when an event line or row cannot be parsed."""
    pass


RECOGNIZED_ACTIONS = ("START", "STOP")


def format_dose(dose: float) -> str:
    """Render a dose without a trailing '.0' (50.0 -> '50', 12.5 -> '12.5')."""
    return f"{dose:.6f}".rstrip("0").rstrip(".")


def normalize_action(value: Any) -> str:
    """Upper-case START/STOP; anything else becomes ''."""
    action = str(value or "").strip().upper()
    return action if action in RECOGNIZED_ACTIONS else ""


def build_label(medication: str, dose: Optional[float], action: str) -> str:
    """
    Synthesize an event label from tabular columns.

    Examples:
        ("Sertraline", 50.0, "START") -> "Sertraline 50mg - START"
        ("Melatonin", None, "")       -> "Melatonin"
    """
    dose_label = f"{format_dose(dose)}mg" if dose is not None and dose > 0 else ""
    parts = " ".join(p for p in (medication, dose_label) if p)
    return f"{parts} - {action}" if action else parts


class BaseEventParser(ABC):
    """
    Abstract base for event log parsers.

    Each parser handles one textual shape.
    """

    @abstractmethod
    def iter_events(self, text: str) -> Iterator[EventRecord]:
        """
        Yield events in encounter order, skipping unparseable entries.
        """
        pass

    def parse(self, text: str) -> List[EventRecord]:
        """
        Parse a whole log.

        Args:
            text: Decoded file contents

        Returns:
            Events sorted ascending by date (stable)
        """
        return sort_by_date(self.iter_events(text))


class LineEventParser(BaseEventParser):
    """
    Parses free-text event logs:

        DATE<separator>LABEL

    The line is split at the first separator only, so labels may contain the
    separator themselves ("Sertraline 50mg - START").
    """

    def __init__(self, separator: Optional[str] = None):
        self.separator = separator or config.analysis.event_line_separator

    def parse_line(self, line: str) -> EventRecord:
        """
        Parse a single line.

        Raises:
            ParsingError: If the separator is missing or the date is invalid
        """
        line = line.strip()
        if not line:
            raise ParsingError("Empty line")

        idx = line.find(self.separator)
        if idx == -1:
            raise ParsingError(f"No separator {self.separator!r} in: {line[:50]}")

        date_part = line[:idx].strip()
        label = line[idx + len(self.separator):].strip()

        try:
            event_date = parse_date(date_part)
        except NormalizationError as e:
            raise ParsingError(str(e)) from e

        return EventRecord(date=event_date, label=label)

    def iter_events(self, text: str) -> Iterator[EventRecord]:
        for line_num, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                yield self.parse_line(line)
            except ParsingError as e:
                logger.debug(f"Skipped event line {line_num}: {e}")


class TabularEventParser(BaseEventParser):
    """
    Parses CSV event logs.

    Maps common column names to event fields:
        - date / Date
        - medication / Medication
        - dose_mg / DoseMg / dose (optional)
        - action / Action (optional, START or STOP)
    """

    COLUMNS = {
        "date": ("date", "Date"),
        "medication": ("medication", "Medication"),
        "dose": ("dose_mg", "DoseMg", "dose"),
        "action": ("action", "Action"),
    }

    def _lookup(self, row: Dict[str, Any], field: str) -> Optional[Any]:
        for col in self.COLUMNS[field]:
            value = row.get(col)
            if value is not None and str(value).strip():
                return value
        return None

    def parse_row(self, row: Dict[str, Any]) -> EventRecord:
        """
        Parse a CSV row dict.

        Raises:
            ParsingError: If the row has no parseable date
        """
        raw_date = self._lookup(row, "date")
        if raw_date is None:
            raise ParsingError("No date found in row")

        try:
            event_date = parse_date(raw_date)
        except NormalizationError as e:
            raise ParsingError(str(e)) from e

        medication = str(self._lookup(row, "medication") or "").strip()
        raw_dose = self._lookup(row, "dose")
        dose = coerce_float(raw_dose) if raw_dose is not None else None
        action = normalize_action(self._lookup(row, "action"))

        return EventRecord(date=event_date, label=build_label(medication, dose, action))

    def iter_events(self, text: str) -> Iterator[EventRecord]:
        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff"), newline=""))
        if reader.fieldnames:
            reader.fieldnames = [name.strip() for name in reader.fieldnames]

        for line_num, row in enumerate(reader, start=2):
            if all(v is None or not str(v).strip() for v in row.values()):
                continue
            try:
                yield self.parse_row(row)
            except ParsingError as e:
                logger.debug(f"Skipped event row {line_num}: {e}")


def parse_event_lines(text: str, separator: Optional[str] = None) -> List[EventRecord]:
    """Parse a free-text event log."""
    return LineEventParser(separator).parse(text)


def parse_event_table(text: str) -> List[EventRecord]:
    """Parse a CSV event log."""
    return TabularEventParser().parse(text)


def parse_event_file(filename: str, text: str) -> List[EventRecord]:
    """
    Parse an event log, choosing the parser from the file name.

    Args:
        filename: Original file name (".csv" selects the tabular parser)
        text: Decoded file contents

    Returns:
        Events sorted ascending by date

    Example:
        events = parse_event_file("medications.csv", text)
        logger.info(f"Loaded {len(events)} events")
    """
    if Path(filename).suffix.lower() == ".csv":
        parser: BaseEventParser = TabularEventParser()
    else:
        parser = LineEventParser()

    events = parser.parse(text)
    logger.info(f"Parsed {len(events)} event(s) from {filename}")
    return events
