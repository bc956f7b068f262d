"""Stock dashboard exception hierarchy.

All dashboard-specific exceptions derive from :class:`StockDashError` so callers
can catch all of them uniformly.
"""

from __future__ import annotations


class StockDashError(Exception):
    """Base class for dashboard exceptions.

    Derived exceptions should extend this class so that callers can catch all
    dashboard-specific errors uniformly.
    """


class ConfigError(StockDashError):
    """Raised when configuration files or parameters are invalid."""


class DataSourceError(StockDashError):
    """Raised when accessing or processing a data source fails."""


class DataValidationError(StockDashError):
    """Raised when request data fails validation checks.

    Named DataValidationError to avoid conflict with pydantic's ValidationError.
    """


class StorageError(StockDashError):
    """Raised when reading from or writing to the history store fails."""


__all__ = [
    "StockDashError",
    "ConfigError",
    "DataSourceError",
    "DataValidationError",
    "StorageError",
]
