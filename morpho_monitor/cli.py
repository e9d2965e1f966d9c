"""Command-line interface for the Morpho monitor."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace

from .config import load_config
from .logging_setup import configure_logging
from .models import BORROW_ASSETS, COLLATERAL_FAMILIES
from .services import MarketBoard
from .services.formatting import render_market_table, render_status


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="morpho-monitor",
        description="Best borrow rates across Morpho Blue markets",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    markets_parser = sub.add_parser("markets", help="Rank markets by net borrow APY")
    markets_parser.add_argument(
        "--borrow", choices=BORROW_ASSETS, default="ANY", help="Asset to borrow"
    )
    markets_parser.add_argument(
        "--collateral",
        choices=COLLATERAL_FAMILIES,
        default="ALL",
        help="Collateral family",
    )
    markets_parser.add_argument(
        "--search", default="", help="Filter by loan or collateral symbol"
    )
    markets_parser.add_argument(
        "--min-liquidity",
        type=float,
        default=None,
        help="Minimum available liquidity in USD (overrides config)",
    )
    markets_parser.add_argument(
        "--limit", type=int, default=25, help="Rows to show (default: 25)"
    )
    markets_parser.add_argument(
        "--json",
        action="store_true",
        help="Print every fetched market as JSON instead of the ranked table",
    )

    status_parser = sub.add_parser("status", help="Single market status snapshot")
    status_parser.add_argument(
        "--json", action="store_true", help="Print the snapshot as JSON"
    )

    watch_parser = sub.add_parser("watch", help="Refresh market status continuously")
    watch_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Refresh interval in seconds (overrides config)",
    )

    return parser


def _markets_json(board: MarketBoard) -> str:
    """Unranked markets in the Morpho API shape, stamped with the fetch time."""
    refreshed_at = board.markets_refreshed_at
    return json.dumps(
        {
            "timestamp": refreshed_at.isoformat() if refreshed_at else None,
            "count": len(board.markets),
            "markets": [m.to_dict() for m in board.markets],
        },
        indent=2,
    )


async def _show_markets(board: MarketBoard, args: argparse.Namespace) -> int:
    if not await board.refresh_markets():
        if args.json:
            print(json.dumps({"error": board.markets_error}))
        else:
            print(board.markets_error, file=sys.stderr)
        return 1

    if args.json:
        print(_markets_json(board))
        return 0

    filter_config = board.default_filter()
    filter_config = replace(
        filter_config,
        borrow_asset=args.borrow,
        collateral_family=args.collateral,
        search_query=args.search,
    )
    if args.min_liquidity is not None:
        filter_config = replace(filter_config, min_liquidity_usd=args.min_liquidity)

    ranked = board.ranked(filter_config)
    print(render_market_table(ranked[: args.limit]))
    print(f"\n{len(ranked)} of {len(board.markets)} markets match")
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    board = MarketBoard(config)

    if args.command == "markets":
        return await _show_markets(board, args)
    if args.command == "status":
        snapshot = await board.refresh_status()
        if args.json:
            print(json.dumps(snapshot.to_dict(), indent=2))
        else:
            print(render_status(snapshot))
        return 0
    if args.command == "watch":
        await board.run_status_loop(
            args.interval, on_refresh=lambda s: print(render_status(s) + "\n")
        )
        return 0

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
