"""
Custom exceptions for Sleep Insights.

These exceptions provide clear error semantics across the system.
Per-row problems are absorbed by the pipeline; only structural failures
reach the caller.
"""


class SleepInsightsError(Exception):
    """Base exception for all Sleep Insights failures."""
    pass


class DataValidationError(SleepInsightsError):
    """Raised when input data fails validation."""
    pass


class ConfigurationError(SleepInsightsError):
    """Raised when configuration is invalid or missing."""
    pass


class IngestionError(SleepInsightsError):
    """Raised when an export file cannot be read."""
    pass


class UnrecognizedInputError(IngestionError):
    """Raised when input is not a recognizable table or archive."""
    pass
