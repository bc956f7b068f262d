"""Technical indicator and signal generation module."""

from stockdash.signals.engine import DEFAULT_CONFIG, SignalEngine, enrich

__all__ = [
    "DEFAULT_CONFIG",
    "SignalEngine",
    "enrich",
]
