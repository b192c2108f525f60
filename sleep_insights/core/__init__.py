"""
Core module: Configuration, logging, and exception handling.
"""

from .config import AnalysisConfig, Config, ViewSettings, config
from .exceptions import (
    ConfigurationError,
    DataValidationError,
    IngestionError,
    SleepInsightsError,
    UnrecognizedInputError,
)
from .logging_config import setup_logging

__all__ = [
    "AnalysisConfig",
    "Config",
    "ViewSettings",
    "config",
    "setup_logging",
    "SleepInsightsError",
    "DataValidationError",
    "ConfigurationError",
    "IngestionError",
    "UnrecognizedInputError",
]
