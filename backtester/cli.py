"""
Backtest Runner CLI
Command-line interface for running a backtest over a local price file.
"""

from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import sys
from decimal import Decimal
from typing import Any, Optional, Sequence

from backtester.config import get_settings
from backtester.core.errors import EXPECTED_ERRORS
from backtester.core.types import BacktestError, BacktestResult
from backtester.data.frame_source import FrameDataSource
from backtester.logging_setup import configure_logging
from backtester.runner.engine import BacktestEngine, error_record
from backtester.strategy.registry import parse_request

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REJECTED = 2


def print_result(result: BacktestResult) -> None:
    """Print backtest results to console."""
    print("\n" + "=" * 60)
    print("BACKTEST RESULTS")
    print("=" * 60)
    print(f"Strategy: {result.strategy_name}")
    print(f"Symbol: {result.symbol}")
    print(f"Period: {result.start_date} to {result.end_date}")
    print("-" * 60)
    print(f"Initial Capital: {result.initial_capital:,.2f}")
    print(f"Final Capital: {result.final_capital:,.2f}")
    print(f"Total Return: {result.total_return:+.2f}%")
    print(f"Max Drawdown: {result.max_drawdown:.2f}%")
    print(f"Sharpe Ratio: {result.sharpe_ratio:.2f}")
    print("-" * 60)
    print(f"Total Trades: {result.total_trades}")
    print(f"Win Rate: {result.win_rate:.1f}%")
    print("=" * 60 + "\n")


def print_error(error: BacktestError) -> None:
    """Print a rejected backtest to stderr."""
    print(f"Backtest rejected ({error.kind}): {error.message}", file=sys.stderr)
    if error.parameter:
        print(f"  parameter: {error.parameter}", file=sys.stderr)
    if error.constraint:
        print(f"  constraint: {error.constraint}", file=sys.stderr)


def _strategy_params(args: argparse.Namespace) -> dict[str, Any]:
    params: dict[str, Any] = {"type": args.strategy}
    optional = {
        "short_period": args.short_period,
        "long_period": args.long_period,
        "period": args.rsi_period,
        "oversold": args.oversold,
        "overbought": args.overbought,
        "fast_period": args.fast,
        "slow_period": args.slow,
        "signal_period": args.signal,
    }
    params.update({key: value for key, value in optional.items() if value is not None})
    return params


def run_backtest(args: argparse.Namespace) -> int:
    """Run a single backtest."""
    settings = get_settings()
    capital = args.capital if args.capital is not None else settings.engine.default_initial_capital

    try:
        request = parse_request(
            {
                "symbol": args.symbol,
                "strategy": _strategy_params(args),
                "capital": {"initial_capital": capital},
                "strategy_name": args.name,
            }
        )
        series = FrameDataSource().load(
            args.data,
            request.symbol,
            start_date=args.start,
            end_date=args.end,
        )
    except EXPECTED_ERRORS as exc:
        outcome = error_record(exc)
    else:
        outcome = BacktestEngine(settings.engine).run_request(series, request)

    if args.json:
        print(json.dumps(outcome.to_record(), indent=2))
    elif isinstance(outcome, BacktestResult):
        print_result(outcome)
    else:
        print_error(outcome)

    return EXIT_OK if outcome.success else EXIT_REJECTED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="backtester",
        description="Strategy Backtest Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Backtest command
    bt_parser = subparsers.add_parser("run", help="Run single backtest")
    bt_parser.add_argument("--data", required=True, help="CSV or Parquet file with OHLC bars")
    bt_parser.add_argument("--symbol", required=True, help="Symbol the data belongs to")
    bt_parser.add_argument("--strategy", default="sma", help="Strategy type (sma, rsi, macd)")
    bt_parser.add_argument("--name", default=None, help="Strategy display name")
    bt_parser.add_argument("--capital", type=Decimal, default=None, help="Initial capital")
    bt_parser.add_argument("--start", type=dt.date.fromisoformat, default=None, help="Start date (YYYY-MM-DD)")
    bt_parser.add_argument("--end", type=dt.date.fromisoformat, default=None, help="End date (YYYY-MM-DD)")
    bt_parser.add_argument("--short-period", type=int, default=None, help="SMA short period")
    bt_parser.add_argument("--long-period", type=int, default=None, help="SMA long period")
    bt_parser.add_argument("--rsi-period", type=int, default=None, help="RSI period")
    bt_parser.add_argument("--oversold", type=Decimal, default=None, help="RSI oversold line")
    bt_parser.add_argument("--overbought", type=Decimal, default=None, help="RSI overbought line")
    bt_parser.add_argument("--fast", type=int, default=None, help="MACD fast EMA period")
    bt_parser.add_argument("--slow", type=int, default=None, help="MACD slow EMA period")
    bt_parser.add_argument("--signal", type=int, default=None, help="MACD signal EMA period")
    bt_parser.add_argument("--json", action="store_true", help="Print the result record as JSON")
    bt_parser.set_defaults(func=run_backtest)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(get_settings().logging)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
