"""Local persistence of raw price history."""

from stockdash.storage.history import DEFAULT_DB_PATH, HistoryStore

__all__ = [
    "DEFAULT_DB_PATH",
    "HistoryStore",
]
