"""Price history sources module."""

from stockdash.data.sources import (CSVDataSource, DataSource, LocalDataSource,
                                    SyntheticDataSource, YahooDataSource,
                                    resolve_data_source)

__all__ = [
    "DataSource",
    "YahooDataSource",
    "SyntheticDataSource",
    "LocalDataSource",
    "CSVDataSource",
    "resolve_data_source",
]
