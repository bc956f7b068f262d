"""Stock dashboard package root."""

from stockdash.exceptions import StockDashError
from stockdash.signals import SignalEngine, enrich
from stockdash.types import Bar, EngineConfig, EnrichedBar, Signal

__all__ = [
    "Bar",
    "EngineConfig",
    "EnrichedBar",
    "Signal",
    "SignalEngine",
    "StockDashError",
    "enrich",
]
