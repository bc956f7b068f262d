#!/usr/bin/env python3
"""Command-line interface for the stock dashboard backend."""

from __future__ import annotations

import argparse
import json
import sys

from stockdash.exceptions import StockDashError
from stockdash.types import EnrichedBar, QuoteResponse


def _print_quote(response: QuoteResponse, rows: int) -> None:
    """Print a quote summary and the most recent enriched bars."""
    print("=" * 60)
    print(f"QUOTE {response.symbol}")
    print("=" * 60)
    print(f"Name:      {response.name}")
    print(f"Source:    {response.source}")
    print(f"Price:     {response.current_price:,.2f} {response.currency}")
    print(f"Bars:      {len(response.data)}")
    print(f"Hour seed: {response.hour_seed}")

    latest = response.data[-1] if response.data else None
    if not isinstance(latest, EnrichedBar):
        print("\nNot enough history to compute signals.")
        return

    print(f"\nSignal:    {latest.signal.value} (p={latest.prediction:.3f})")
    print(f"RSI:       {latest.rsi:.2f}")
    print(f"Support:   {latest.support:,.2f}")
    print(f"Resist.:   {latest.resistance:,.2f}")

    if rows > 0:
        print(
            f"\n{'Date':<12} {'Close':>10} {'SMA14':>10} {'RSI':>7} "
            f"{'Prob':>7} {'Signal':>6}"
        )
        print("-" * 57)
        for bar in response.data[-rows:]:
            print(
                f"{bar.date.isoformat():<12} {bar.close:>10.2f} {bar.sma14:>10.2f} "
                f"{bar.rsi:>7.2f} {bar.prediction:>7.3f} {bar.signal.value:>6}"
            )


def cmd_quote(args: argparse.Namespace) -> int:
    """Fetch, enrich and print the history of one symbol."""
    from stockdash.commands.scan import load_engine_config
    from stockdash.data import SyntheticDataSource, resolve_data_source
    from stockdash.quotes import QuoteService
    from stockdash.signals import SignalEngine
    from stockdash.storage import HistoryStore

    engine_config = load_engine_config(args.engine_config) if args.engine_config else None
    source_params = {"db_path": args.db_path} if args.source == "local" else {}

    service = QuoteService(
        primary=resolve_data_source(args.source, source_params),
        fallback=None if args.no_fallback else SyntheticDataSource(),
        engine=SignalEngine(engine_config),
        store=HistoryStore(args.db_path) if args.store else None,
    )
    response = service.get_quote(args.symbol, args.period, args.interval)

    if args.json:
        print(json.dumps(response.to_wire(), indent=2))
    else:
        _print_quote(response, args.rows)
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Search symbols by name or ticker."""
    from stockdash.search import search_symbols

    results = search_symbols(args.query, max_results=args.limit)

    if args.json:
        print(json.dumps([r.to_wire() for r in results], indent=2))
        return 0

    if not results:
        print(f"No matches for '{args.query}'")
        return 0

    print(f"{'Symbol':<14} {'Type':<7} {'Exchange':<10} Name")
    print("-" * 60)
    for r in results:
        print(f"{r.symbol:<14} {r.type:<7} {r.exchange or '':<10} {r.name}")
    return 0


def cmd_scan(args: argparse.Namespace) -> int:
    """Quote every symbol of a scan configuration and print the latest signals."""
    from stockdash.commands.scan import (configure_logging, load_scan_config,
                                         run_scan)

    config = load_scan_config(args.config)
    if args.log_level is None:
        configure_logging(config.log_level)

    responses = run_scan(config)

    if args.json:
        print(json.dumps([r.to_wire() for r in responses], indent=2))
        return 0

    print(
        f"{'Symbol':<14} {'Source':<8} {'Price':>12} {'RSI':>7} {'Prob':>7} {'Signal':>6}"
    )
    print("-" * 60)
    for response in responses:
        latest = response.data[-1] if response.data else None
        if isinstance(latest, EnrichedBar):
            print(
                f"{response.symbol:<14} {response.source:<8} "
                f"{response.current_price:>12,.2f} {latest.rsi:>7.2f} "
                f"{latest.prediction:>7.3f} {latest.signal.value:>6}"
            )
        else:
            print(f"{response.symbol:<14} {response.source:<8} {'(insufficient history)':>34}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Stock dashboard signals CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING, or the scan config level)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Quote command
    quote_parser = subparsers.add_parser("quote", help="Quote a symbol with signals")
    quote_parser.add_argument("symbol", help="Stock symbol (e.g., AAPL, TCS.NS)")
    quote_parser.add_argument(
        "-p", "--period", default="6mo", help="History period (default: 6mo)"
    )
    quote_parser.add_argument(
        "-i", "--interval", default="1d", help="Bar interval (default: 1d)"
    )
    quote_parser.add_argument(
        "--source",
        default="yahoo",
        choices=["yahoo", "synthetic", "local"],
        help="Primary data source (default: yahoo)",
    )
    quote_parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Fail instead of serving synthetic data when the fetch fails",
    )
    quote_parser.add_argument(
        "--engine-config", help="YAML file with engine settings"
    )
    quote_parser.add_argument(
        "--store", action="store_true", help="Save fetched bars to the history store"
    )
    quote_parser.add_argument("--db-path", help="History store database path")
    quote_parser.add_argument(
        "-n", "--rows", type=int, default=10, help="Recent bars to show (default: 10)"
    )
    quote_parser.add_argument("--json", action="store_true", help="Print wire JSON")

    # Search command
    search_parser = subparsers.add_parser("search", help="Search for symbols")
    search_parser.add_argument("query", help="Company name or ticker fragment")
    search_parser.add_argument(
        "-l", "--limit", type=int, default=15, help="Maximum results (default: 15)"
    )
    search_parser.add_argument("--json", action="store_true", help="Print wire JSON")

    # Scan command
    scan_parser = subparsers.add_parser(
        "scan", help="Quote all symbols from a configuration file"
    )
    scan_parser.add_argument("config", help="Path to YAML configuration file")
    scan_parser.add_argument("--json", action="store_true", help="Print wire JSON")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.log_level is not None or args.command != "scan":
        from stockdash.commands.scan import configure_logging

        configure_logging(args.log_level or "WARNING")

    try:
        if args.command == "quote":
            return cmd_quote(args)
        elif args.command == "search":
            return cmd_search(args)
        elif args.command == "scan":
            return cmd_scan(args)
    except StockDashError as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
