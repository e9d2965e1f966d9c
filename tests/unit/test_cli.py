"""Unit tests for CLI argument parsing and command output."""
from __future__ import annotations

import json
from typing import Any

import pytest

from morpho_monitor.cli import _show_markets, build_parser
from morpho_monitor.config import AppConfig
from morpho_monitor.errors import UpstreamError
from morpho_monitor.services import MarketBoard


class PageSource:
    def __init__(self, items: list[dict[str, Any]], fail: bool = False) -> None:
        self.items = items
        self.fail = fail

    async def request_markets(self, first: int, skip: int) -> list[dict[str, Any]]:
        if self.fail:
            raise UpstreamError("Morpho API returned HTTP 502")
        return self.items[skip : skip + first]


class TestBuildParser:
    def test_markets_defaults(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["markets"])
        assert args.command == "markets"
        assert args.borrow == "ANY"
        assert args.collateral == "ALL"
        assert args.search == ""
        assert args.min_liquidity is None
        assert args.limit == 25
        assert args.json is False

    def test_markets_filters(self) -> None:
        parser = build_parser()
        args = parser.parse_args(
            [
                "markets",
                "--borrow", "USDC",
                "--collateral", "BTC",
                "--search", "cbbtc",
                "--min-liquidity", "50000",
                "--limit", "5",
            ]
        )
        assert args.borrow == "USDC"
        assert args.collateral == "BTC"
        assert args.search == "cbbtc"
        assert args.min_liquidity == 50_000.0
        assert args.limit == 5

    def test_markets_rejects_unknown_borrow_asset(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["markets", "--borrow", "DAI"])

    def test_markets_rejects_unknown_family(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["markets", "--collateral", "SOL"])

    def test_status_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["status"])
        assert args.command == "status"
        assert args.json is False

    def test_status_json(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["status", "--json"])
        assert args.json is True

    def test_watch_command_default_interval(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["watch"])
        assert args.command == "watch"
        assert args.interval is None

    def test_watch_command_custom_interval(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["watch", "10"])
        assert args.command == "watch"
        assert args.interval == 10

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "status"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "status"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None

    def test_markets_json(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["markets", "--json"])
        assert args.command == "markets"
        assert args.json is True


class TestShowMarkets:
    @pytest.mark.asyncio
    async def test_json_lists_all_fetched_markets(
        self, sample_app_config: AppConfig, make_raw_market, capsys
    ) -> None:
        items = [
            make_raw_market(key="0xstable", borrow_apy=0.05),
            make_raw_market(key="0xweth", loan="WETH", borrow_apy=0.01),
            make_raw_market(key="0xidle", collateral=None),
        ]
        board = MarketBoard(sample_app_config, source=PageSource(items))
        args = build_parser().parse_args(["markets", "--json"])

        assert await _show_markets(board, args) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["count"] == 3
        assert payload["markets"] == items
        assert payload["timestamp"] == board.markets_refreshed_at.isoformat()

    @pytest.mark.asyncio
    async def test_json_error(self, sample_app_config: AppConfig, capsys) -> None:
        board = MarketBoard(sample_app_config, source=PageSource([], fail=True))
        args = build_parser().parse_args(["markets", "--json"])

        assert await _show_markets(board, args) == 1
        assert json.loads(capsys.readouterr().out) == {"error": "Failed to fetch markets"}

    @pytest.mark.asyncio
    async def test_table_output(
        self, sample_app_config: AppConfig, make_raw_market, capsys
    ) -> None:
        items = [
            make_raw_market(key="0xstable", borrow_apy=0.05),
            make_raw_market(key="0xweth", loan="WETH", borrow_apy=0.01),
        ]
        board = MarketBoard(sample_app_config, source=PageSource(items))
        args = build_parser().parse_args(["markets"])

        assert await _show_markets(board, args) == 0
        out = capsys.readouterr().out
        assert "USDC/WBTC" in out
        assert "1 of 2 markets match" in out

    @pytest.mark.asyncio
    async def test_table_error_goes_to_stderr(
        self, sample_app_config: AppConfig, capsys
    ) -> None:
        board = MarketBoard(sample_app_config, source=PageSource([], fail=True))
        args = build_parser().parse_args(["markets"])

        assert await _show_markets(board, args) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Failed to fetch markets" in captured.err
