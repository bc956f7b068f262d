"""Data source implementations for fetching daily price history.

This module provides an abstract interface for data sources and concrete
implementations for Yahoo Finance, seeded synthetic data, CSV files, and the
local history store.
"""

from __future__ import annotations

import csv
import logging
import math
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

from stockdash.exceptions import DataSourceError, StorageError
from stockdash.seeding import LehmerRandom, symbol_hash
from stockdash.types import Bar, PriceHistory, Symbol

logger = logging.getLogger(__name__)

# Calendar days generated for each supported period
PERIOD_DAYS = {
    "1mo": 30,
    "3mo": 90,
    "6mo": 180,
    "1y": 365,
    "2y": 730,
    "5y": 1825,
}

# Fixed base prices for well-known symbols in synthetic data
SYNTHETIC_BASE_PRICES = {
    "RELIANCE": 2400.0,
    "TCS": 3800.0,
    "MRF": 120000.0,
}


class DataSource(ABC):
    """Abstract base class for data sources.

    All data source implementations must inherit from this class and implement
    the `fetch_history` method.
    """

    #: Whether the source serves live market data rather than generated or
    #: previously stored data.
    online: bool = False

    @abstractmethod
    def fetch_history(
        self,
        symbol: Symbol,
        period: str,
        interval: str,
    ) -> PriceHistory:
        """Fetch price history for a symbol.

        :param symbol: Symbol to fetch.
        :param period: Lookback period (e.g., "1mo", "6mo", "1y").
        :param interval: Bar interval (e.g., "1d", "1wk").
        :returns: PriceHistory with bars in ascending date order.
        :raises DataSourceError: If fetching fails.
        """
        ...


def _to_price(value: Any) -> float:
    """Convert a raw price cell to float, treating missing values as 0."""
    if value is None:
        return 0.0
    try:
        price = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(price) else price


class YahooDataSource(DataSource):
    """Data source that fetches data from Yahoo Finance via yfinance.

    Prices are rounded to two decimals. Rows without a positive close are
    dropped; missing open/high/low fall back to the close and a missing volume
    becomes 0.

    :param source_params: Optional parameters for configuring the source.
        - timeout: Request timeout in seconds (default: 5)
    """

    online = True

    # Map our interval format to yfinance interval format
    INTERVAL_MAP = {
        "1m": "1m",
        "5m": "5m",
        "15m": "15m",
        "30m": "30m",
        "60m": "60m",
        "1h": "60m",
        "1d": "1d",
        "5d": "5d",
        "1wk": "1wk",
        "1mo": "1mo",
        "3mo": "3mo",
    }

    VALID_PERIODS = frozenset([
        "1d", "5d", "1mo", "3mo", "6mo", "1y", "2y", "5y", "10y", "ytd", "max",
    ])

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize Yahoo data source.

        :param source_params: Optional configuration parameters.
        """
        self.params = source_params or {}
        self.timeout = self.params.get("timeout", 5)

    def fetch_history(
        self,
        symbol: Symbol,
        period: str,
        interval: str,
    ) -> PriceHistory:
        """Fetch price history from Yahoo Finance.

        :param symbol: Symbol to fetch.
        :param period: Lookback period.
        :param interval: Bar interval.
        :returns: PriceHistory with quote metadata.
        :raises DataSourceError: If fetching fails or returns no prices.
        """
        try:
            import yfinance as yf
        except ImportError as e:
            raise DataSourceError(
                "yfinance is not installed. Install it with: pip install yfinance"
            ) from e

        yf_interval = self.INTERVAL_MAP.get(interval)
        if yf_interval is None:
            raise DataSourceError(
                f"Unsupported interval '{interval}'. "
                f"Supported: {list(self.INTERVAL_MAP.keys())}"
            )
        if period not in self.VALID_PERIODS:
            raise DataSourceError(
                f"Unsupported period '{period}'. "
                f"Supported: {sorted(self.VALID_PERIODS)}"
            )

        try:
            ticker = yf.Ticker(str(symbol))
            df = ticker.history(
                period=period,
                interval=yf_interval,
                timeout=self.timeout,
            )
            meta = ticker.history_metadata
        except Exception as e:
            raise DataSourceError(
                f"Failed to fetch data for symbol '{symbol}': {e}"
            ) from e

        if df is None or df.empty:
            raise DataSourceError(f"No price data for symbol '{symbol}'")
        if not isinstance(meta, dict):
            meta = {}

        bars: list[Bar] = []
        for timestamp, row in df.iterrows():
            close = _to_price(row.get("Close"))
            if close <= 0:
                continue
            volume = _to_price(row.get("Volume"))
            bars.append(
                Bar(
                    date=timestamp.date(),
                    open=round(_to_price(row.get("Open")) or close, 2),
                    high=round(_to_price(row.get("High")) or close, 2),
                    low=round(_to_price(row.get("Low")) or close, 2),
                    close=round(close, 2),
                    volume=int(volume),
                )
            )

        if not bars:
            raise DataSourceError(f"No price data for symbol '{symbol}'")

        logger.debug("Fetched %d bars for %s from Yahoo", len(bars), symbol)
        current_price = _to_price(meta.get("regularMarketPrice")) or bars[-1].close
        return PriceHistory(
            symbol=symbol,
            bars=bars,
            currency=meta.get("currency"),
            current_price=current_price,
            name=meta.get("shortName") or meta.get("symbol") or str(symbol),
        )


class SyntheticDataSource(DataSource):
    """Data source that generates deterministic daily bars for any symbol.

    The random stream is seeded by the symbol hash, so a symbol always gets the
    same path for the same end date. One bar is produced per calendar day,
    ending the day before ``end_date``.

    :param source_params: Optional parameters:
        - days: Number of bars (default: derived from period, else 180)
        - end_date: Date after the last bar, ``date`` or ISO string
          (default: today)
        - currency: Currency reported for the data (default: None)
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        self.params = source_params or {}
        self.days = self.params.get("days")
        if self.days is not None and (not isinstance(self.days, int) or self.days < 1):
            raise DataSourceError("'days' must be a positive integer")
        self.end_date = self._parse_end_date(self.params.get("end_date"))
        self.currency = self.params.get("currency")

    @staticmethod
    def _parse_end_date(value: date | str | None) -> date | None:
        if value is None or isinstance(value, date):
            return value
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except (TypeError, ValueError) as e:
            raise DataSourceError(f"Invalid end_date: {value}") from e

    def fetch_history(
        self,
        symbol: Symbol,
        period: str,
        interval: str,
    ) -> PriceHistory:
        """Generate price history; ``interval`` is ignored (always daily)."""
        days = self.days or PERIOD_DAYS.get(period, 180)
        bars = self.generate(str(symbol), days, self.end_date or date.today())
        return PriceHistory(
            symbol=symbol,
            bars=bars,
            currency=self.currency,
            current_price=bars[-1].close,
            name=str(symbol),
        )

    @staticmethod
    def generate(symbol: str, days: int, end_date: date) -> list[Bar]:
        """Generate ``days`` bars of a drifting random walk for ``symbol``.

        :param symbol: Symbol whose hash seeds prices and drift.
        :param days: Number of daily bars.
        :param end_date: Date after the last generated bar.
        :returns: Bars in ascending date order.
        """
        seed = symbol_hash(symbol)
        rng = LehmerRandom(seed)

        price = 500 + rng.random() * 3000
        for key, base_price in SYNTHETIC_BASE_PRICES.items():
            if key in symbol:
                price = base_price

        # Long-term drift unique to the symbol
        drift = (seed % 10 - 5) / 1000

        bars: list[Bar] = []
        for i in range(days):
            volatility = 0.02 + rng.random() * 0.015
            change = (rng.random() - 0.5 + drift) * price * volatility
            price = max(price + change, 10.0)

            bars.append(
                Bar(
                    date=end_date - timedelta(days=days - i),
                    open=round(price - change * 0.4, 2),
                    high=round(price * (1 + rng.random() * 0.015), 2),
                    low=round(price * (1 - rng.random() * 0.015), 2),
                    close=round(price, 2),
                    volume=math.floor(1_000_000 + rng.random() * 5_000_000),
                )
            )
        return bars


class CSVDataSource(DataSource):
    """Data source that reads daily bars from a CSV file.

    Expected CSV format (default columns):
    - date: ISO date (YYYY-MM-DD)
    - open, high, low, close: Prices
    - volume: Trading volume

    :param source_params: Required parameters:
        - file_path: Path to the CSV file.
        Optional parameters:
        - symbol_col: Column used to filter rows by symbol (default: none)
        - date_col, open_col, high_col, low_col, close_col, volume_col:
          Column names (default: the field names above)
        - delimiter: CSV delimiter (default: ",")
        - date_format: strptime format for dates (default: ISO date)
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize CSV data source.

        :param source_params: Configuration with file_path and optional column mappings.
        :raises DataSourceError: If file_path is not provided.
        """
        self.params = source_params or {}
        self.file_path = self.params.get("file_path")
        if not self.file_path:
            raise DataSourceError("CSVDataSource requires 'file_path' in source_params")

        # Column name mappings with defaults
        self.symbol_col = self.params.get("symbol_col")
        self.date_col = self.params.get("date_col", "date")
        self.open_col = self.params.get("open_col", "open")
        self.high_col = self.params.get("high_col", "high")
        self.low_col = self.params.get("low_col", "low")
        self.close_col = self.params.get("close_col", "close")
        self.volume_col = self.params.get("volume_col", "volume")
        self.delimiter = self.params.get("delimiter", ",")
        self.date_format = self.params.get("date_format")

    def _parse_date(self, value: str) -> date:
        if self.date_format:
            return datetime.strptime(value, self.date_format).date()
        return date.fromisoformat(value[:10])

    def fetch_history(
        self,
        symbol: Symbol,
        period: str,
        interval: str,
    ) -> PriceHistory:
        """Read bars from the CSV file; ``period`` and ``interval`` are ignored.

        :raises DataSourceError: If the file is missing or a row is malformed.
        """
        path = Path(self.file_path)
        if not path.exists():
            raise DataSourceError(f"CSV file not found: {self.file_path}")

        bars: list[Bar] = []
        try:
            with open(path, newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)

                for row in reader:
                    if self.symbol_col and row.get(self.symbol_col) != str(symbol):
                        continue

                    date_str = row.get(self.date_col)
                    if not date_str:
                        continue

                    try:
                        bars.append(
                            Bar(
                                date=self._parse_date(date_str),
                                open=float(row[self.open_col]),
                                high=float(row[self.high_col]),
                                low=float(row[self.low_col]),
                                close=float(row[self.close_col]),
                                volume=int(float(row[self.volume_col] or 0)),
                            )
                        )
                    except (KeyError, ValueError) as e:
                        raise DataSourceError(f"Failed to parse row {row}: {e}") from e

        except csv.Error as e:
            raise DataSourceError(f"CSV parsing error: {e}") from e
        except OSError as e:
            raise DataSourceError(f"Failed to read CSV file: {e}") from e

        if not bars:
            raise DataSourceError(f"No rows for symbol '{symbol}' in {self.file_path}")

        bars.sort(key=lambda b: b.date)
        return PriceHistory(
            symbol=symbol,
            bars=bars,
            current_price=bars[-1].close,
            name=str(symbol),
        )


class LocalDataSource(DataSource):
    """Data source that loads bars previously saved to the history store.

    :param source_params: Optional parameters:
        - db_path: Path of the SQLite history database (default: store default).
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        from stockdash.storage import HistoryStore

        self.params = source_params or {}
        self.store = HistoryStore(self.params.get("db_path"))

    def fetch_history(
        self,
        symbol: Symbol,
        period: str,
        interval: str,
    ) -> PriceHistory:
        """Load all stored bars for ``symbol``; ``period``/``interval`` ignored."""
        try:
            bars = self.store.load_bars(str(symbol))
            name = self.store.name_for(str(symbol)) if bars else None
        except StorageError as e:
            raise DataSourceError(f"Failed to load history for '{symbol}': {e}") from e

        if not bars:
            raise DataSourceError(f"No stored history for symbol '{symbol}'")

        return PriceHistory(
            symbol=symbol,
            bars=bars,
            current_price=bars[-1].close,
            name=name or str(symbol),
        )


def resolve_data_source(
    source_type: str, source_params: dict[str, Any] | None = None
) -> DataSource:
    """Construct a data source by type name.

    :param source_type: One of "yahoo", "synthetic", "csv", "local".
    :param source_params: Source-specific parameters.
    :returns: DataSource instance for the specified type.
    :raises DataSourceError: If the type is unrecognized.
    """
    source_type_key = source_type.lower()

    if source_type_key == "yahoo":
        return YahooDataSource(source_params)
    elif source_type_key == "synthetic":
        return SyntheticDataSource(source_params)
    elif source_type_key == "csv":
        return CSVDataSource(source_params)
    elif source_type_key == "local":
        return LocalDataSource(source_params)
    else:
        raise DataSourceError(
            f"Unrecognized data source type: '{source_type}'. "
            f"Supported types: yahoo, synthetic, csv, local"
        )
