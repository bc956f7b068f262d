"""Symbol search backed by Yahoo Finance with an offline fallback list."""

from __future__ import annotations

import logging
from typing import Any

from stockdash.types import SearchResult, Symbol

logger = logging.getLogger(__name__)

SEARCHABLE_TYPES = frozenset(["EQUITY", "ETF"])

# Answered when Yahoo search is unreachable
OFFLINE_SYMBOLS = [
    SearchResult(symbol=Symbol("AAPL"), name="Apple Inc.", exchange="NASDAQ", type="EQUITY"),
    SearchResult(
        symbol=Symbol("RELIANCE.NS"), name="Reliance Industries", exchange="NSE", type="EQUITY"
    ),
    SearchResult(symbol=Symbol("TSLA"), name="Tesla, Inc.", exchange="NASDAQ", type="EQUITY"),
    SearchResult(
        symbol=Symbol("TCS.NS"), name="Tata Consultancy Services", exchange="NSE", type="EQUITY"
    ),
    SearchResult(
        symbol=Symbol("MSFT"), name="Microsoft Corporation", exchange="NASDAQ", type="EQUITY"
    ),
    SearchResult(symbol=Symbol("GOOGL"), name="Alphabet Inc.", exchange="NASDAQ", type="EQUITY"),
]


def _to_result(quote: dict[str, Any]) -> SearchResult:
    symbol = quote["symbol"]
    return SearchResult(
        symbol=Symbol(symbol),
        name=quote.get("shortname") or quote.get("longname") or symbol,
        exchange=quote.get("exchDisp") or quote.get("exchange"),
        type=quote["quoteType"],
    )


def search_offline(query: str) -> list[SearchResult]:
    """Filter the offline list by case-insensitive substring on symbol or name."""
    needle = query.lower()
    return [
        r for r in OFFLINE_SYMBOLS
        if needle in r.symbol.lower() or needle in r.name.lower()
    ]


def search_symbols(query: str, max_results: int = 15) -> list[SearchResult]:
    """Search equities and ETFs matching ``query``.

    :param query: Free-text query (symbol or company name).
    :param max_results: Maximum number of quotes requested from Yahoo.
    :returns: Matching instruments; the offline list is used if Yahoo fails.
    """
    query = query.strip()
    if not query:
        return []

    try:
        import yfinance as yf

        quotes = yf.Search(query, max_results=max_results, news_count=0).quotes
        return [
            _to_result(q) for q in quotes
            if q.get("quoteType") in SEARCHABLE_TYPES and q.get("symbol")
        ]
    except Exception as e:
        logger.warning("Yahoo search failed for %r: %s; using offline list", query, e)
        return search_offline(query)
