"""
Sleep export ingestion from tables and archives.

Supports a single delimited table (CSV) and a ZIP archive bundling several
same-shaped tables (one per month is typical of tracker exports). All
ingested rows are returned as raw dictionaries for subsequent normalization.

Design:
- The whole payload is materialized before any parsing begins
- Format detection from the file name, falling back to ZIP magic bytes
- Bad rows are left for the normalizer to drop; only a payload that is not
  a table or archive at all raises UnrecognizedInputError
- Returns raw dicts, not NightRecord objects
"""

import csv
import io
import logging
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from sleep_insights.core.config import config
from sleep_insights.core.exceptions import IngestionError, UnrecognizedInputError

logger = logging.getLogger(__name__)

Payload = Union[bytes, str]
# A Path names a file; str and bytes are the contents themselves
Source = Union[Path, str, bytes]

ZIP_MAGIC = b"PK\x03\x04"
CANDIDATE_DELIMITERS = ",;\t"


def read_payload(source: Source) -> bytes:
    """
    Materialize a source into bytes.

    Args:
        source: Path to a file, or the file contents as bytes or decoded text

    Returns:
        Raw file contents (text is encoded as UTF-8)

    Raises:
        IngestionError: If the path does not exist or cannot be read
    """
    if isinstance(source, bytes):
        return source
    if isinstance(source, str):
        return source.encode("utf-8")

    path = Path(source)
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise IngestionError(f"Export file not found: {path}") from e
    except OSError as e:
        raise IngestionError(f"Failed to read {path}: {e}") from e


def source_name(source: Source) -> Optional[str]:
    """File name of a path source, None for in-memory contents."""
    if isinstance(source, (bytes, str)):
        return None
    return Path(source).name


def decode_text(payload: Payload, errors: str = "strict") -> str:
    """
    Decode a payload as UTF-8 text, dropping a leading byte-order mark.

    Raises:
        UnrecognizedInputError: If strict decoding fails or the text is binary
    """
    if isinstance(payload, str):
        text = payload
    else:
        try:
            text = payload.decode("utf-8-sig", errors=errors)
        except UnicodeDecodeError as e:
            raise UnrecognizedInputError(f"Input is not UTF-8 text: {e}") from e

    text = text.lstrip("\ufeff")
    if "\x00" in text:
        raise UnrecognizedInputError("Input looks binary, expected a delimited table")
    return text


def sniff_delimiter(text: str) -> str:
    """
    Guess the column delimiter from the header line.

    Falls back to a comma when the header is ambiguous.
    """
    header = text.split("\n", 1)[0]
    try:
        return csv.Sniffer().sniff(header, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        return ","


class BaseTableSource(ABC):
    """
    Abstract base class for sleep export sources.

    Each source type (single table, archive) implements this interface.
    """

    def __init__(self, payload: Payload, name: str = "<memory>"):
        """
        Initialize the source.

        Args:
            payload: File contents (bytes or decoded text)
            name: Display name used in row metadata and log messages
        """
        self.payload = payload
        self.name = name

    @abstractmethod
    def ingest(self) -> Iterator[Dict[str, Any]]:
        """
        Ingest rows from the source.

        Yields:
            Dict mapping column headers to cell values
        """
        pass


class CSVTableSource(BaseTableSource):
    """
    Ingests one delimited table with a header row.

    Example:
        Date,Total Sleep (hr),Core (hr),Deep (hr),REM (hr),Awake (hr)
        2024-01-01,8,4.2,1.2,1.6,1.0
    """

    def __init__(
        self,
        payload: Payload,
        name: str = "<memory>",
        delimiter: Optional[str] = None,
        decode_errors: str = "strict",
    ):
        """
        Initialize CSV source.

        Args:
            payload: File contents
            name: Display name
            delimiter: Column delimiter (sniffed from the header when None)
            decode_errors: Codec error policy for byte payloads
        """
        super().__init__(payload, name)
        self.delimiter = delimiter
        self.decode_errors = decode_errors

    def ingest(self) -> Iterator[Dict[str, Any]]:
        """
        Read the table.

        First row must contain headers. Rows are yielded as-is; validation is
        the normalizer's job.

        Yields:
            Dict mapping column names to values

        Raises:
            UnrecognizedInputError: If the payload has no header row
        """
        text = decode_text(self.payload, errors=self.decode_errors)
        if not text.strip():
            raise UnrecognizedInputError(f"Table {self.name} is empty")

        delimiter = self.delimiter or sniff_delimiter(text)
        reader = csv.DictReader(io.StringIO(text, newline=""), delimiter=delimiter)

        if not reader.fieldnames:
            raise UnrecognizedInputError(f"Table {self.name} has no header row")
        reader.fieldnames = [
            name.strip() if isinstance(name, str) else name
            for name in reader.fieldnames
        ]

        try:
            for line_num, row in enumerate(reader, start=2):  # Row 1 is the header
                row["_metadata"] = {
                    "source": self.name,
                    "line_number": line_num,
                    "format": "csv",
                }
                yield row
        except csv.Error as e:
            raise UnrecognizedInputError(f"Malformed table {self.name}: {e}") from e


class ZipArchiveSource(BaseTableSource):
    """
    Ingests every table inside a ZIP archive.

    Members whose names end with the table extension are parsed
    independently; all other members are ignored.
    """

    def __init__(
        self,
        payload: bytes,
        name: str = "<memory>",
        extension: Optional[str] = None,
    ):
        super().__init__(payload, name)
        self.extension = (extension or config.analysis.sleep_table_extension).lower()

    def member_names(self, archive: zipfile.ZipFile) -> list[str]:
        """Names of archive members that hold night tables."""
        return [
            info.filename
            for info in archive.infolist()
            if not info.is_dir() and info.filename.lower().endswith(self.extension)
        ]

    def ingest(self) -> Iterator[Dict[str, Any]]:
        """
        Read all matching tables from the archive.

        Yields:
            Raw row dicts from every matching member, member by member

        Raises:
            UnrecognizedInputError: If the payload is not a ZIP archive
        """
        if isinstance(self.payload, str):
            raise UnrecognizedInputError(f"Archive {self.name} must be bytes")

        try:
            archive = zipfile.ZipFile(io.BytesIO(self.payload))
        except zipfile.BadZipFile as e:
            raise UnrecognizedInputError(f"{self.name} is not a ZIP archive: {e}") from e

        with archive:
            names = self.member_names(archive)
            logger.info(f"Archive {self.name}: {len(names)} table(s) to read")

            for member in names:
                data = archive.read(member)
                source = CSVTableSource(
                    data,
                    name=f"{self.name}:{member}",
                    decode_errors="replace",
                )
                try:
                    yield from source.ingest()
                except UnrecognizedInputError as e:
                    # One unreadable member does not invalidate the archive
                    logger.warning(f"Skipping archive member {member}: {e}")


def detect_format(payload: bytes, filename: Optional[str] = None) -> str:
    """
    Detect whether a sleep export is a single table or an archive.

    Args:
        payload: Raw file contents
        filename: Original file name, if known

    Returns:
        "zip" or "csv"

    Raises:
        UnrecognizedInputError: If the file name has an unsupported extension
    """
    if filename:
        suffix = Path(filename).suffix.lower()
        if suffix == ".zip":
            return "zip"
        if suffix == config.analysis.sleep_table_extension.lower():
            return "csv"
        raise UnrecognizedInputError(
            f"Unsupported sleep export {filename!r}: expected a .zip or "
            f"{config.analysis.sleep_table_extension} file"
        )

    return "zip" if payload.startswith(ZIP_MAGIC) else "csv"


def ingest_sleep_export(
    source: Source,
    filename: Optional[str] = None,
    format: str = "auto",
) -> Iterator[Dict[str, Any]]:
    """
    Convenience function to ingest rows from a sleep export.

    Args:
        source: Path to the export, or its contents (bytes or decoded text)
        filename: Original file name (defaults to the path's name)
        format: "csv", "zip", or "auto" for detection

    Yields:
        Raw row dicts

    Raises:
        IngestionError: If the file cannot be read
        UnrecognizedInputError: If the payload is not a table or archive

    Example:
        for row in ingest_sleep_export(Path("sleep_2024.zip")):
            night = normalize_night(row)
            ...
    """
    if filename is None:
        filename = source_name(source)

    payload = read_payload(source)
    name = filename or "<memory>"

    if format == "auto":
        format = detect_format(payload, filename)

    if format == "zip":
        table_source: BaseTableSource = ZipArchiveSource(payload, name=name)
    elif format == "csv":
        table_source = CSVTableSource(payload, name=name)
    else:
        raise UnrecognizedInputError(f"Unknown format: {format}")

    yield from table_source.ingest()
