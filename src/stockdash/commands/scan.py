"""Configuration and execution for the scan command.

Example config file (scan.yaml):

    symbols:
      - "AAPL"
      - "TCS.NS"
    period: "6mo"
    interval: "1d"
    data_source: "yahoo"
    source_params: {}
    fallback: true
    store_history: false
    db_path: "~/.stockdash/history.db"  # Optional
    log_level: "INFO"
    engine:                             # Optional, see EngineConfig
      jitter_mode: "blend"
      clamp_low: 0.12
      clamp_high: 0.88
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from stockdash.data.sources import SyntheticDataSource, resolve_data_source
from stockdash.exceptions import ConfigError
from stockdash.quotes import QuoteService
from stockdash.signals import SignalEngine
from stockdash.storage import HistoryStore
from stockdash.types import EngineConfig, QuoteResponse, ScanConfig, Symbol

# Periods accepted by the data sources
VALID_PERIODS = frozenset([
    "1d", "5d", "1mo", "3mo", "6mo", "1y", "2y", "5y", "10y", "ytd", "max",
])

VALID_INTERVALS = frozenset([
    "1m", "5m", "15m", "30m", "60m", "1h", "1d", "5d", "1wk", "1mo", "3mo",
])

# Valid data source types
VALID_DATA_SOURCES = frozenset(["yahoo", "synthetic", "csv", "local"])

VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


def _read_yaml_mapping(config_path: str | Path) -> dict[str, Any]:
    """Read a YAML file that must contain a mapping.

    :raises ConfigError: If the file is missing, unparsable, or not a mapping.
    """
    config_path = Path(config_path)

    try:
        with open(config_path) as f:
            raw_config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Configuration must be a YAML mapping")
    return raw_config


def parse_engine_config(raw_engine: Any) -> EngineConfig:
    """Build an EngineConfig from a mapping of overrides.

    :param raw_engine: Mapping of EngineConfig field names to values, or None.
    :returns: Validated EngineConfig.
    :raises ConfigError: If the mapping has unknown fields or invalid values.
    """
    if raw_engine is None:
        return EngineConfig()
    if not isinstance(raw_engine, dict):
        raise ConfigError("'engine' must be a mapping")

    unknown = set(raw_engine) - set(EngineConfig.model_fields)
    if unknown:
        raise ConfigError(f"Unknown engine settings: {sorted(unknown)}")

    try:
        return EngineConfig(**raw_engine)
    except ValidationError as e:
        raise ConfigError(f"Invalid engine settings: {e}") from e


def load_engine_config(config_path: str | Path) -> EngineConfig:
    """Load engine constants from a YAML file.

    The file may hold the settings at top level or under an ``engine`` key.

    :param config_path: Path to YAML configuration file.
    :returns: Validated EngineConfig.
    :raises ConfigError: If file cannot be read or settings are invalid.
    """
    raw_config = _read_yaml_mapping(config_path)
    if "engine" in raw_config:
        return parse_engine_config(raw_config["engine"])
    return parse_engine_config(raw_config)


def load_scan_config(config_path: str | Path) -> ScanConfig:
    """Parse and validate a scan configuration file.

    :param config_path: Path to YAML configuration file.
    :returns: Validated ScanConfig object.
    :raises ConfigError: If file cannot be read or config is invalid.
    """
    raw_config = _read_yaml_mapping(config_path)

    # Parse symbols
    if "symbols" not in raw_config:
        raise ConfigError("Missing required field: symbols")
    raw_symbols = raw_config["symbols"]
    if not isinstance(raw_symbols, list) or len(raw_symbols) == 0:
        raise ConfigError("'symbols' must be a non-empty list")
    if not all(isinstance(s, str) and s.strip() for s in raw_symbols):
        raise ConfigError("'symbols' must contain non-empty strings")
    symbols = [Symbol(s.strip()) for s in raw_symbols]

    # Parse period and interval (optional)
    period = raw_config.get("period", "6mo")
    if period not in VALID_PERIODS:
        raise ConfigError(
            f"Invalid period '{period}'. Valid options: {sorted(VALID_PERIODS)}"
        )

    interval = raw_config.get("interval", "1d")
    if interval not in VALID_INTERVALS:
        raise ConfigError(
            f"Invalid interval '{interval}'. Valid options: {sorted(VALID_INTERVALS)}"
        )

    # Parse data_source (optional)
    data_source = raw_config.get("data_source", "yahoo")
    if data_source not in VALID_DATA_SOURCES:
        raise ConfigError(
            f"Invalid data_source '{data_source}'. "
            f"Valid options: {sorted(VALID_DATA_SOURCES)}"
        )

    source_params: dict[str, Any] = raw_config.get("source_params") or {}
    if not isinstance(source_params, dict):
        raise ConfigError("'source_params' must be a mapping")

    # Parse flags (optional)
    fallback = raw_config.get("fallback", True)
    if not isinstance(fallback, bool):
        raise ConfigError("'fallback' must be a boolean")

    store_history = raw_config.get("store_history", False)
    if not isinstance(store_history, bool):
        raise ConfigError("'store_history' must be a boolean")

    db_path = raw_config.get("db_path")
    if db_path is not None:
        if not isinstance(db_path, str):
            raise ConfigError("'db_path' must be a string")
        db_path = str(Path(db_path).expanduser())

    log_level = str(raw_config.get("log_level", "INFO")).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigError(
            f"Invalid log_level '{log_level}'. Valid options: {sorted(VALID_LOG_LEVELS)}"
        )

    engine = parse_engine_config(raw_config.get("engine"))

    return ScanConfig(
        symbols=symbols,
        period=period,
        interval=interval,
        data_source=data_source,
        source_params=source_params,
        fallback=fallback,
        store_history=store_history,
        db_path=db_path,
        engine=engine,
        log_level=log_level,
    )


def configure_logging(level: str) -> None:
    """Configure root logging for command-line runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_quote_service(config: ScanConfig) -> QuoteService:
    """Wire a QuoteService from a scan configuration.

    :raises DataSourceError: If the configured data source cannot be built.
    """
    primary = resolve_data_source(config.data_source, config.source_params)
    fallback = SyntheticDataSource() if config.fallback else None
    store = HistoryStore(config.db_path) if config.store_history else None
    return QuoteService(
        primary=primary,
        fallback=fallback,
        engine=SignalEngine(config.engine),
        store=store,
    )


def run_scan(
    config: ScanConfig, now_millis: float | None = None
) -> list[QuoteResponse]:
    """Quote every configured symbol.

    :param config: Scan configuration.
    :param now_millis: Time used for the hourly signal seed, or None for now.
    :returns: One response per symbol, in configuration order.
    :raises StockDashError: If any symbol cannot be quoted.
    """
    service = build_quote_service(config)
    return [
        service.get_quote(symbol, config.period, config.interval, now_millis)
        for symbol in config.symbols
    ]
