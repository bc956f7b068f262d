"""SQLite-backed store of raw daily bars.

Bars are keyed by ``(symbol, date)``; saving a bar that already exists
replaces its prices. Stored history is never read by the signal engine, it is
only offered back through :class:`stockdash.data.sources.LocalDataSource`.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from datetime import date
from pathlib import Path
from typing import Iterable

from stockdash.exceptions import StorageError
from stockdash.types import Bar

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".stockdash" / "history.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS stock_history (
    symbol TEXT NOT NULL,
    name TEXT,
    date TEXT NOT NULL,
    open REAL NOT NULL,
    high REAL NOT NULL,
    low REAL NOT NULL,
    close REAL NOT NULL,
    volume INTEGER NOT NULL,
    PRIMARY KEY (symbol, date)
)
"""

_UPSERT = """
INSERT INTO stock_history (symbol, name, date, open, high, low, close, volume)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (symbol, date) DO UPDATE SET
    name = excluded.name,
    open = excluded.open,
    high = excluded.high,
    low = excluded.low,
    close = excluded.close,
    volume = excluded.volume
"""


class HistoryStore:
    """Persist and reload raw bars per symbol.

    :param db_path: SQLite database file, defaults to ``~/.stockdash/history.db``.
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH

    def _connect(self) -> sqlite3.Connection:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
            conn.execute(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Failed to open history store {self.db_path}: {e}") from e
        return conn

    def upsert_bars(self, symbol: str, bars: Iterable[Bar], name: str | None = None) -> int:
        """Insert or update bars for ``symbol``.

        :param symbol: Symbol the bars belong to.
        :param bars: Bars to save.
        :param name: Display name stored alongside, defaults to the symbol.
        :returns: Number of rows written.
        :raises StorageError: If the write fails.
        """
        rows = [
            (
                symbol,
                name or symbol,
                bar.date.isoformat(),
                bar.open,
                bar.high,
                bar.low,
                bar.close,
                bar.volume,
            )
            for bar in bars
        ]
        if not rows:
            return 0

        with closing(self._connect()) as conn:
            try:
                with conn:
                    conn.executemany(_UPSERT, rows)
            except sqlite3.Error as e:
                raise StorageError(f"Failed to save history for '{symbol}': {e}") from e

        logger.debug("Saved %d bars for %s", len(rows), symbol)
        return len(rows)

    def load_bars(self, symbol: str) -> list[Bar]:
        """Load stored bars for ``symbol`` in ascending date order.

        :raises StorageError: If the read fails.
        """
        with closing(self._connect()) as conn:
            try:
                cursor = conn.execute(
                    "SELECT date, open, high, low, close, volume FROM stock_history "
                    "WHERE symbol = ? ORDER BY date",
                    (symbol,),
                )
                rows = cursor.fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to load history for '{symbol}': {e}") from e

        return [
            Bar(
                date=date.fromisoformat(row[0]),
                open=row[1],
                high=row[2],
                low=row[3],
                close=row[4],
                volume=row[5],
            )
            for row in rows
        ]

    def name_for(self, symbol: str) -> str | None:
        """Return the most recently stored display name for ``symbol``."""
        with closing(self._connect()) as conn:
            try:
                row = conn.execute(
                    "SELECT name FROM stock_history WHERE symbol = ? "
                    "ORDER BY date DESC LIMIT 1",
                    (symbol,),
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read name for '{symbol}': {e}") from e
        return row[0] if row else None

    def symbols(self) -> list[str]:
        """List symbols that have stored history, sorted alphabetically."""
        with closing(self._connect()) as conn:
            try:
                rows = conn.execute(
                    "SELECT DISTINCT symbol FROM stock_history ORDER BY symbol"
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to list stored symbols: {e}") from e
        return [row[0] for row in rows]
