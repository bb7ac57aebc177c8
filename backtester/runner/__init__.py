"""Backtest entrypoints."""

from backtester.runner.batch import BatchItem, run_batch
from backtester.runner.engine import BacktestEngine, BacktestOutcome, error_record

__all__ = ["BacktestEngine", "BacktestOutcome", "BatchItem", "error_record", "run_batch"]
