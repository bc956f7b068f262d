"""Tests for the quote service."""

import logging
from datetime import date
from pathlib import Path

import pytest

from stockdash.data.sources import DataSource, SyntheticDataSource
from stockdash.exceptions import DataSourceError, DataValidationError, StorageError
from stockdash.quotes import DEFAULT_CURRENCY, QuoteService
from stockdash.seeding import MILLIS_PER_HOUR
from stockdash.signals import SignalEngine
from stockdash.storage import HistoryStore
from stockdash.types import EngineConfig, EnrichedBar, PriceHistory, Symbol

NOW = 472_222 * MILLIS_PER_HOUR + 1234


class StubSource(DataSource):
    """Source returning fixed bars, flagged as live data."""

    online = True

    def __init__(self, days: int = 40, current_price: float | None = 999.999) -> None:
        self.days = days
        self.current_price = current_price
        self.calls: list[tuple[str, str, str]] = []

    def fetch_history(self, symbol: Symbol, period: str, interval: str) -> PriceHistory:
        self.calls.append((symbol, period, interval))
        return PriceHistory(
            symbol=symbol,
            bars=SyntheticDataSource.generate(str(symbol), self.days, date(2024, 6, 1)),
            currency="USD",
            current_price=self.current_price,
            name="Stub Corp",
        )


class FailingSource(DataSource):
    """Source that always fails."""

    online = True

    def fetch_history(self, symbol: Symbol, period: str, interval: str) -> PriceHistory:
        raise DataSourceError(f"Failed to fetch data for symbol '{symbol}'")


class BrokenStore:
    """History store whose writes always fail."""

    def upsert_bars(self, symbol, bars, name=None) -> int:
        raise StorageError("disk full")


@pytest.fixture
def fallback() -> SyntheticDataSource:
    """Offline source with a fixed end date."""
    return SyntheticDataSource({"end_date": "2024-06-01"})


class TestGetQuote:
    """Tests for QuoteService.get_quote."""

    def test_online_quote(self) -> None:
        """Live data is enriched and labelled online."""
        primary = StubSource()
        service = QuoteService(primary)

        response = service.get_quote("AAPL", "3mo", "1d", now_millis=NOW)

        assert primary.calls == [("AAPL", "3mo", "1d")]
        assert response.success is True
        assert response.source == "online"
        assert response.symbol == "AAPL"
        assert response.currency == "USD"
        assert response.name == "Stub Corp"
        assert response.current_price == 1000.0
        assert response.hour_seed == 472_222
        assert len(response.data) == 40
        assert all(isinstance(b, EnrichedBar) for b in response.data)

    def test_matches_engine_output(self) -> None:
        """Response bars are exactly what the engine produces."""
        primary = StubSource()
        config = EngineConfig(jitter_mode="additive")
        service = QuoteService(primary, engine=SignalEngine(config))

        response = service.get_quote("AAPL", now_millis=NOW)
        history = primary.fetch_history(Symbol("AAPL"), "6mo", "1d")

        assert response.data == SignalEngine(config).enrich(history.bars, "AAPL", NOW)

    def test_current_price_falls_back_to_last_close(self) -> None:
        """Without a quoted price the last close is reported."""
        service = QuoteService(StubSource(current_price=None))

        response = service.get_quote("AAPL", now_millis=NOW)

        assert response.current_price == response.data[-1].close

    def test_fallback_on_failure(self, fallback: SyntheticDataSource) -> None:
        """A failing primary serves synthetic data labelled offline."""
        service = QuoteService(FailingSource(), fallback=fallback)

        response = service.get_quote("RELIANCE.NS", "1mo", now_millis=NOW)

        assert response.source == "offline"
        assert len(response.data) == 30
        assert response.currency == DEFAULT_CURRENCY
        assert response.name == "RELIANCE.NS"
        assert response.current_price == response.data[-1].close

    def test_fallback_logs_warning(
        self, fallback: SyntheticDataSource, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Falling back is logged."""
        service = QuoteService(FailingSource(), fallback=fallback)

        with caplog.at_level(logging.WARNING, logger="stockdash.quotes"):
            service.get_quote("AAPL", now_millis=NOW)

        assert "using offline data" in caplog.text

    def test_no_fallback_propagates(self) -> None:
        """Without a fallback the fetch error reaches the caller."""
        service = QuoteService(FailingSource())

        with pytest.raises(DataSourceError, match="Failed to fetch"):
            service.get_quote("AAPL", now_millis=NOW)

    def test_offline_primary_labelled_offline(self, fallback: SyntheticDataSource) -> None:
        """Generated data is never reported as online."""
        service = QuoteService(fallback)

        response = service.get_quote("TCS.NS", now_millis=NOW)

        assert response.source == "offline"

    @pytest.mark.parametrize("symbol", ["", "   "])
    def test_empty_symbol_rejected(self, symbol: str) -> None:
        """A symbol is required."""
        service = QuoteService(StubSource())

        with pytest.raises(DataValidationError, match="Symbol is required"):
            service.get_quote(symbol, now_millis=NOW)

    def test_clock_used_when_time_omitted(self) -> None:
        """The injected clock supplies the hour seed."""
        service = QuoteService(StubSource(), clock=lambda: NOW + MILLIS_PER_HOUR)

        response = service.get_quote("AAPL")

        assert response.hour_seed == 472_223

    def test_same_hour_same_response(self) -> None:
        """Requests within one hour return identical signals."""
        service = QuoteService(StubSource())

        first = service.get_quote("AAPL", now_millis=NOW)
        second = service.get_quote("AAPL", now_millis=NOW + 60_000)

        assert first == second

    def test_short_history_returned_unenriched(self) -> None:
        """A single bar passes through without indicators."""
        service = QuoteService(StubSource(days=1))

        response = service.get_quote("AAPL", now_millis=NOW)

        assert len(response.data) == 1
        assert not isinstance(response.data[0], EnrichedBar)
        assert "signal" not in response.to_wire()["data"][0]


class TestPersistence:
    """Tests for history persistence."""

    def test_online_data_saved(self, tmp_path: Path) -> None:
        """Online bars are written to the store."""
        store = HistoryStore(tmp_path / "history.db")
        service = QuoteService(StubSource(days=10), store=store)

        service.get_quote("AAPL", now_millis=NOW)

        assert len(store.load_bars("AAPL")) == 10
        assert store.name_for("AAPL") == "Stub Corp"

    def test_offline_data_not_saved(
        self, tmp_path: Path, fallback: SyntheticDataSource
    ) -> None:
        """Fallback data is never written to the store."""
        store = HistoryStore(tmp_path / "history.db")
        service = QuoteService(FailingSource(), fallback=fallback, store=store)

        service.get_quote("AAPL", now_millis=NOW)

        assert store.symbols() == []

    def test_storage_failure_logged_not_raised(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failed write still returns the quote."""
        service = QuoteService(StubSource(), store=BrokenStore())

        with caplog.at_level(logging.ERROR, logger="stockdash.quotes"):
            response = service.get_quote("AAPL", now_millis=NOW)

        assert response.source == "online"
        assert "History persistence failed" in caplog.text
        assert "disk full" in caplog.text
