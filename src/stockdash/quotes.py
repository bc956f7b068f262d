"""Quote service: fetch price history, enrich it, and optionally persist it."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from stockdash.exceptions import DataSourceError, DataValidationError, StorageError
from stockdash.seeding import hour_bucket
from stockdash.signals import SignalEngine
from stockdash.types import QuoteResponse, Symbol

if TYPE_CHECKING:
    from stockdash.data.sources import DataSource
    from stockdash.storage import HistoryStore
    from stockdash.types import PriceHistory

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "INR"


def _system_millis() -> float:
    return time.time() * 1000


class QuoteService:
    """Serve enriched quotes with an offline fallback.

    The primary source is tried first. If it raises :class:`DataSourceError`
    and a fallback source is configured, the fallback's data is served
    instead. Responses report ``source="online"`` only for data from a live
    source; only such data is written to the history store, and a failed
    write never fails the request.

    :param primary: Source for live data.
    :param fallback: Source used when the primary fails, or None to propagate.
    :param engine: Signal engine, defaults to one with default constants.
    :param store: History store for online bars, or None to skip persistence.
    :param clock: Callable returning the current time in epoch milliseconds.
    """

    def __init__(
        self,
        primary: DataSource,
        fallback: DataSource | None = None,
        engine: SignalEngine | None = None,
        store: HistoryStore | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.engine = engine or SignalEngine()
        self.store = store
        self.clock = clock or _system_millis

    def get_quote(
        self,
        symbol: str,
        period: str = "6mo",
        interval: str = "1d",
        now_millis: float | None = None,
    ) -> QuoteResponse:
        """Fetch and enrich the price history of ``symbol``.

        :param symbol: Symbol to quote.
        :param period: Lookback period (e.g., "6mo").
        :param interval: Bar interval (e.g., "1d").
        :param now_millis: Time used for the hourly signal seed; read from
            the clock when omitted.
        :returns: QuoteResponse with enriched bars.
        :raises DataValidationError: If ``symbol`` is empty.
        :raises DataSourceError: If the primary fails and there is no fallback,
            or the fallback fails as well.
        """
        symbol = symbol.strip() if symbol else ""
        if not symbol:
            raise DataValidationError("Symbol is required")

        if now_millis is None:
            now_millis = self.clock()

        source = "online" if self.primary.online else "offline"
        try:
            history = self.primary.fetch_history(Symbol(symbol), period, interval)
        except DataSourceError as e:
            if self.fallback is None:
                raise
            logger.warning("Fetch failed for %s: %s; using offline data", symbol, e)
            history = self.fallback.fetch_history(Symbol(symbol), period, interval)
            source = "online" if self.fallback.online else "offline"

        if not history.bars:
            raise DataSourceError(f"No price data for symbol '{symbol}'")

        enriched = self.engine.enrich(history.bars, symbol, now_millis)

        if source == "online":
            self._persist(history)

        current_price = history.bars[-1].close
        if source == "online" and history.current_price:
            current_price = history.current_price

        return QuoteResponse(
            symbol=Symbol(symbol),
            data=enriched,
            source=source,
            currency=history.currency or DEFAULT_CURRENCY,
            current_price=round(current_price, 2),
            name=history.name or symbol,
            hour_seed=hour_bucket(now_millis),
        )

    def _persist(self, history: PriceHistory) -> None:
        if self.store is None:
            return
        try:
            self.store.upsert_bars(str(history.symbol), history.bars, history.name)
        except StorageError as e:
            logger.error("History persistence failed for %s: %s", history.symbol, e)
