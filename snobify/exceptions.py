"""Exception hierarchy for Snobify.

The analytics core does not raise for well-typed input; these exceptions come
from the ingestion boundary and from configuration validation.
"""


class SnobifyError(Exception):
    """Base exception for Snobify errors"""
    pass


class DataNotFoundError(SnobifyError):
    """Raised when no readable play data exists at the requested location"""

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message)
        self.hint = hint


class CsvSchemaError(SnobifyError):
    """Raised when a CSV export lacks a required column"""
    pass


class ConfigError(SnobifyError, ValueError):
    """Raised when a configuration value is out of range"""
    pass
