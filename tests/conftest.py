"""
Pytest configuration and shared fixtures.

Provides test configuration instances and sample exports for unit and
integration tests.
"""

import io
import zipfile
from datetime import date, timedelta
from typing import Any, Dict, List

import pandas as pd
import pytest

from sleep_insights.core.config import Config
from sleep_insights.data.schema import NightRecord


@pytest.fixture
def mock_config(tmp_path):
    """
    Fixture providing test configuration with minimal values.

    Ensures tests run consistently regardless of .env settings.

    Returns:
        Config: Test instance logging to a temporary directory
    """
    return Config(
        log_level="WARNING",  # Reduce noise in test output
        logs_dir=tmp_path / "logs",
    )


@pytest.fixture
def sample_night_rows() -> List[Dict[str, Any]]:
    """
    Fixture providing sixty nights of realistic tracker rows.

    Spans 2024-01-01 .. 2024-02-29 with the headers a typical export uses.

    Returns:
        List[Dict]: Rows keyed by export header
    """
    rows = []
    start = date(2024, 1, 1)

    for i in range(60):
        total = 6.5 + (i % 4) * 0.5          # 6.5 - 8.0 h
        deep = 0.8 + (i % 3) * 0.2           # 0.8 - 1.2 h
        rem = 1.2 + (i % 5) * 0.1            # 1.2 - 1.6 h
        core = round(total - deep - rem, 2)
        rows.append({
            "Date": (start + timedelta(days=i)).isoformat(),
            "Total Sleep (hr)": total,
            "Core (hr)": core,
            "Deep (hr)": deep,
            "REM (hr)": rem,
            "Awake (hr)": 0.5 + (i % 2) * 0.25,
        })

    return rows


@pytest.fixture
def sample_night_dataframe(sample_night_rows) -> pd.DataFrame:
    """
    Fixture providing the sample rows as a pandas DataFrame.

    Convenience fixture for building CSV payloads.
    """
    return pd.DataFrame(sample_night_rows)


@pytest.fixture
def sleep_csv_bytes(sample_night_dataframe) -> bytes:
    """Sample nights rendered as one CSV export, with a blank trailer row."""
    text = sample_night_dataframe.to_csv(index=False)
    return (text + ",,,,,\n").encode("utf-8")


@pytest.fixture
def sleep_zip_bytes(sample_night_dataframe) -> bytes:
    """
    Sample nights split into monthly CSVs inside a ZIP archive.

    Also contains a non-table member that must be ignored.
    """
    df = sample_night_dataframe
    january = df[df["Date"] < "2024-02-01"]
    february = df[df["Date"] >= "2024-02-01"]

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        # February first: output must still be date-ordered
        archive.writestr("export/2024-02.csv", february.to_csv(index=False))
        archive.writestr("export/2024-01.CSV", january.to_csv(index=False))
        archive.writestr("export/README.txt", "Exported from tracker")
    return buffer.getvalue()


@pytest.fixture
def medications_csv_text() -> str:
    """Tabular medication log."""
    return (
        "date,medication,dose_mg,action\n"
        "2024-02-01,Sertraline,50,start\n"
        "2024-01-15,Melatonin,3,START\n"
        "not-a-date,Ignored,10,STOP\n"
        "2024-02-20,Sertraline,,stop\n"
    )


@pytest.fixture
def medications_txt_text() -> str:
    """Free-text medication log."""
    return (
        "2024-02-01 - Sertraline 50mg - START\n"
        "\n"
        "2024-01-15 - Melatonin 3mg\n"
        "garbage line without separator\n"
    )


def make_night(day: date, total: float = 8.0, rem: float = 1.6, deep: float = 1.2,
               core: float = 4.2, awake: float = 1.0) -> NightRecord:
    """Build a NightRecord with sensible defaults."""
    return NightRecord(
        date=day,
        total_sleep_hours=total,
        core_hours=core,
        deep_hours=deep,
        rem_hours=rem,
        awake_hours=awake,
    )


@pytest.fixture
def night_factory():
    """Fixture exposing make_night to tests."""
    return make_night


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
