"""Core type definitions for the stock dashboard.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages. Models that travel over the wire
serialize with the camelCase field names the dashboard front end expects.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Literal, NewType

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Type aliases for domain-specific identifiers
Symbol = NewType("Symbol", str)


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


class WireModel(FrozenModel):
    """Frozen model that serializes with camelCase aliases.

    Fields can be populated either by their Python name or by their alias.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict using wire (camelCase) names.

        Optional fields that are unset are omitted.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Market Data Types
# ---------------------------------------------------------------------------


class Bar(WireModel):
    """One trading-period record of market data.

    Prices are expected to satisfy ``low <= open, close <= high`` but this is
    not enforced; upstream data may violate it.

    :param date: Calendar date of the bar.
    :param open: Opening price.
    :param high: Highest price during the period.
    :param low: Lowest price during the period.
    :param close: Closing price.
    :param volume: Traded volume during the period.
    """

    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: int = 0


class Signal(str, Enum):
    """Categorical trading signal derived from the rise probability."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class EnrichedBar(Bar):
    """Bar augmented with technical indicators and a trading signal.

    Every derived field is computed relative to the bar's position in the
    full series it was enriched with.

    :param support: Lowest low over the trailing short window.
    :param resistance: Highest high over the trailing short window.
    :param sma14: Mean close over the trailing short window.
    :param sma50: Mean close over the trailing long window.
    :param rsi: Relative Strength Index (0-100).
    :param volatility: Normalized dispersion of closes in the short window.
    :param momentum: One-bar fractional price change.
    :param dist_support: Fractional distance of close above support.
    :param dist_resistance: Fractional distance of close below resistance.
    :param prediction: Clamped probability that the price rises.
    :param signal: Signal derived from ``prediction``.
    """

    support: float
    resistance: float
    sma14: float
    sma50: float
    rsi: float
    volatility: float
    momentum: float
    dist_support: float | None = None
    dist_resistance: float | None = None
    prediction: float
    signal: Signal


class PriceHistory(FrozenModel):
    """Raw bars for one symbol plus quote metadata from the data source.

    :param symbol: Symbol the bars belong to.
    :param bars: Bars in ascending date order.
    :param currency: Quote currency, if known.
    :param current_price: Latest traded price, if known.
    :param name: Display name of the instrument, if known.
    """

    symbol: Symbol
    bars: list[Bar] = Field(default_factory=list)
    currency: str | None = None
    current_price: float | None = None
    name: str | None = None


class QuoteResponse(WireModel):
    """Enriched price history returned to the dashboard.

    :param success: Always True for a returned response.
    :param symbol: Requested symbol.
    :param data: Enriched bars in ascending date order.
    :param source: "online" for live data, "offline" for generated data.
    :param currency: Quote currency.
    :param current_price: Latest price, rounded to two decimals.
    :param name: Display name of the instrument.
    :param hour_seed: Hour bucket the signals were stabilized with.
    """

    success: bool = True
    symbol: Symbol
    data: list[EnrichedBar | Bar] = Field(default_factory=list)
    source: Literal["online", "offline"]
    currency: str | None = None
    current_price: float | None = None
    name: str | None = None
    hour_seed: int


class SearchResult(WireModel):
    """A single instrument returned by symbol search.

    :param symbol: Ticker symbol.
    :param name: Display name.
    :param exchange: Exchange display name or code.
    :param type: Quote type (EQUITY or ETF).
    """

    symbol: Symbol
    name: str
    exchange: str | None = None
    type: str


# ---------------------------------------------------------------------------
# Configuration Types
# ---------------------------------------------------------------------------


class EngineConfig(FrozenModel):
    """Tunable constants of the indicator and signal engine.

    Defaults take the indicator rules of the client engine (raw RSI ratio,
    close-dispersion volatility, range-position proximity rule) and the
    backend's 30% hourly blend and ``[0.12, 0.88]`` clamp. The backend itself
    corresponds to ``volatility_mode="returns"``, ``proximity_mode="distance"``
    and ``jitter_rounds=1``.

    :param short_window: Short window covers bars ``[i - short_window, i]``.
    :param long_window: Long window covers bars ``[i - long_window, i]``.
    :param rsi_period: Number of day-over-day deltas used for RSI.
    :param rsi_default: RSI reported before ``rsi_period`` bars of history.
    :param rsi_zero_loss_rs: Relative strength used when there are no losses.
    :param volatility_mode: "close" (stdev of closes / sma14) or "returns"
        (stdev of one-bar returns).
    :param proximity_mode: "range" (position within support-resistance range)
        or "distance" (fractional distance to support/resistance).
    :param range_band: Fraction of the range treated as near support/resistance.
    :param proximity_distance: Distance treated as near support/resistance.
    :param jitter_mode: "blend" (weighted mix) or "additive" (small offset).
    :param jitter_weight: Weight of the jitter in blend mode.
    :param jitter_amplitude: Maximum absolute offset in additive mode.
    :param jitter_rounds: Generator steps behind the hourly jitter; 1 matches
        the original single-step seed.
    :param clamp_low: Lower bound of the prediction.
    :param clamp_high: Upper bound of the prediction.
    :param buy_threshold: Prediction above which the signal is BUY.
    :param sell_threshold: Prediction below which the signal is SELL.
    :param include_distances: Whether to emit dist_support/dist_resistance.
    :param price_decimals: Decimals kept for price-like outputs.
    :param indicator_decimals: Decimals kept for ratio-like outputs.
    """

    short_window: int = Field(default=14, gt=0)
    long_window: int = Field(default=50, gt=0)
    rsi_period: int = Field(default=14, gt=0)
    rsi_default: float = 50.0
    rsi_zero_loss_rs: float = 100.0
    volatility_mode: Literal["close", "returns"] = "close"
    proximity_mode: Literal["range", "distance"] = "range"
    range_band: float = Field(default=0.2, ge=0.0, le=0.5)
    proximity_distance: float = Field(default=0.015, ge=0.0)
    jitter_mode: Literal["blend", "additive"] = "blend"
    jitter_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    jitter_amplitude: float = Field(default=0.03, ge=0.0)
    jitter_rounds: int = Field(default=2, ge=1)
    clamp_low: float = Field(default=0.12, ge=0.0, le=1.0)
    clamp_high: float = Field(default=0.88, ge=0.0, le=1.0)
    buy_threshold: float = 0.62
    sell_threshold: float = 0.38
    include_distances: bool = True
    price_decimals: int = Field(default=2, ge=0)
    indicator_decimals: int = Field(default=4, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> EngineConfig:
        if self.clamp_low >= self.clamp_high:
            raise ValueError("clamp_low must be below clamp_high")
        if self.sell_threshold > self.buy_threshold:
            raise ValueError("sell_threshold must not exceed buy_threshold")
        return self


class ScanConfig(FrozenModel):
    """Configuration for scanning a list of symbols.

    :param symbols: Symbols to quote.
    :param period: History period (e.g., "6mo").
    :param interval: Bar interval (e.g., "1d").
    :param data_source: Primary data source type.
    :param source_params: Source-specific parameters.
    :param fallback: Whether to fall back to synthetic data on fetch failure.
    :param store_history: Whether to persist online bars to the history store.
    :param db_path: History store location, or None for the default.
    :param engine: Engine constants.
    :param log_level: Logging level.
    """

    symbols: list[Symbol]
    period: str = "6mo"
    interval: str = "1d"
    data_source: str = "yahoo"
    source_params: dict[str, Any] = Field(default_factory=dict)
    fallback: bool = True
    store_history: bool = False
    db_path: str | None = None
    engine: EngineConfig = Field(default_factory=EngineConfig)
    log_level: str = "INFO"
