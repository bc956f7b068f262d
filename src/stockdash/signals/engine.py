"""Technical indicator and signal engine.

Transforms a daily OHLCV series into per-bar indicators (support/resistance,
moving averages, RSI, volatility, momentum) and a BUY/SELL/HOLD signal with a
rise probability. The probability is blended with a jitter that depends only
on the symbol and the hour bucket, so repeated requests within the same hour
get the same answer.

The engine never reads a clock and validates nothing: zero or missing prices
produce ``inf``/``nan`` values that flow into the output rather than raising.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from stockdash.seeding import hour_bucket, hourly_jitter
from stockdash.types import Bar, EngineConfig, EnrichedBar, Signal

DEFAULT_CONFIG = EngineConfig()

# Base probability adjustments
TREND_WEIGHT = 0.05
RSI_WEIGHT = 0.15
PROXIMITY_WEIGHT = 0.10
RSI_OVERSOLD = 35.0
RSI_OVERBOUGHT = 65.0


class SignalEngine:
    """Enrich bar series with indicators and hourly-stable signals.

    :param config: Engine constants, defaults to :data:`DEFAULT_CONFIG`.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def enrich(
        self,
        series: Sequence[Bar],
        symbol: str,
        now_millis: int | float,
    ) -> list[Bar]:
        """Compute indicators and signals for every bar of ``series``.

        :param series: Bars in ascending date order without duplicate dates.
        :param symbol: Symbol whose hash seeds the hourly jitter.
        :param now_millis: Wall-clock time in epoch milliseconds; only its
            hour bucket is used.
        :returns: A new list of :class:`EnrichedBar` in input order, or the
            input bars unchanged when fewer than two are given.
        """
        if len(series) < 2:
            return list(series)

        jitter = hourly_jitter(
            symbol, hour_bucket(now_millis), self.config.jitter_rounds
        )

        closes = np.array([b.close for b in series], dtype=np.float64)
        highs = np.array([b.high for b in series], dtype=np.float64)
        lows = np.array([b.low for b in series], dtype=np.float64)

        with np.errstate(divide="ignore", invalid="ignore"):
            return [
                self._enrich_bar(bar, i, closes, highs, lows, jitter)
                for i, bar in enumerate(series)
            ]

    def _enrich_bar(
        self,
        bar: Bar,
        idx: int,
        closes: NDArray[np.float64],
        highs: NDArray[np.float64],
        lows: NDArray[np.float64],
        jitter: float,
    ) -> EnrichedBar:
        cfg = self.config
        short_start = max(0, idx - cfg.short_window)
        long_start = max(0, idx - cfg.long_window)

        close = closes[idx]
        short_closes = closes[short_start : idx + 1]
        support = lows[short_start : idx + 1].min()
        resistance = highs[short_start : idx + 1].max()
        sma14 = short_closes.mean()
        sma50 = closes[long_start : idx + 1].mean()

        rsi = self._compute_rsi(closes, idx)
        volatility = self._compute_volatility(short_closes, sma14)
        momentum = (close - closes[idx - 1]) / closes[idx - 1] if idx > 0 else 0.0
        dist_support = (close - support) / close
        dist_resistance = (resistance - close) / close

        base = 0.5
        if sma14 > sma50:
            base += TREND_WEIGHT
        if close > sma14:
            base += TREND_WEIGHT
        if rsi < RSI_OVERSOLD:
            base += RSI_WEIGHT
        elif rsi > RSI_OVERBOUGHT:
            base -= RSI_WEIGHT
        base += self._proximity_adjustment(
            close, support, resistance, dist_support, dist_resistance
        )

        prob = self._blend(base, jitter)
        prob = min(max(prob, cfg.clamp_low), cfg.clamp_high)
        prediction = round(float(prob), cfg.indicator_decimals)

        price_dp = cfg.price_decimals
        ind_dp = cfg.indicator_decimals
        extra: dict[str, float] = {}
        if cfg.include_distances:
            extra["dist_support"] = round(float(dist_support), ind_dp)
            extra["dist_resistance"] = round(float(dist_resistance), ind_dp)

        return EnrichedBar(
            **bar.model_dump(include=set(Bar.model_fields)),
            support=round(float(support), price_dp),
            resistance=round(float(resistance), price_dp),
            sma14=round(float(sma14), price_dp),
            sma50=round(float(sma50), price_dp),
            rsi=round(float(rsi), ind_dp),
            volatility=round(float(volatility), ind_dp),
            momentum=round(float(momentum), ind_dp),
            prediction=prediction,
            signal=self.classify(prediction),
            **extra,
        )

    def _compute_rsi(self, closes: NDArray[np.float64], idx: int) -> float:
        """Compute RSI from the ``rsi_period`` deltas ending at ``idx``.

        Averaging gains and losses over the period does not change their
        ratio, so the sums are used directly.
        """
        period = self.config.rsi_period
        if idx < period:
            return self.config.rsi_default

        deltas = np.diff(closes[idx - period : idx + 1])
        gains = deltas[deltas > 0].sum()
        losses = -deltas[deltas < 0].sum()

        rs = self.config.rsi_zero_loss_rs if losses == 0 else gains / losses
        return 100.0 - 100.0 / (1.0 + rs)

    def _compute_volatility(
        self, window: NDArray[np.float64], mean: np.float64
    ) -> float:
        """Population dispersion of the short window, per ``volatility_mode``."""
        if len(window) < 2:
            return 0.0
        if self.config.volatility_mode == "returns":
            returns = np.diff(window) / window[:-1]
            return returns.std()
        return window.std() / mean

    def _proximity_adjustment(
        self,
        close: float,
        support: float,
        resistance: float,
        dist_support: float,
        dist_resistance: float,
    ) -> float:
        """Reversal bias when the close sits near support or resistance."""
        cfg = self.config
        if cfg.proximity_mode == "distance":
            adjustment = 0.0
            if dist_support < cfg.proximity_distance:
                adjustment += PROXIMITY_WEIGHT
            if dist_resistance < cfg.proximity_distance:
                adjustment -= PROXIMITY_WEIGHT
            return adjustment

        price_range = resistance - support
        if not price_range > 0:
            return 0.0
        position = (close - support) / price_range
        if position < cfg.range_band:
            return PROXIMITY_WEIGHT
        if position > 1.0 - cfg.range_band:
            return -PROXIMITY_WEIGHT
        return 0.0

    def _blend(self, base: float, jitter: float) -> float:
        cfg = self.config
        if cfg.jitter_mode == "additive":
            return base + (jitter - 0.5) * 2.0 * cfg.jitter_amplitude
        return base * (1.0 - cfg.jitter_weight) + jitter * cfg.jitter_weight

    def classify(self, prediction: float) -> Signal:
        """Map a probability to a signal using the configured thresholds."""
        if prediction > self.config.buy_threshold:
            return Signal.BUY
        if prediction < self.config.sell_threshold:
            return Signal.SELL
        return Signal.HOLD


def enrich(
    series: Sequence[Bar],
    symbol: str,
    now_millis: int | float,
    config: EngineConfig | None = None,
) -> list[Bar]:
    """Enrich ``series`` with a :class:`SignalEngine` built from ``config``."""
    return SignalEngine(config).enrich(series, symbol, now_millis)
