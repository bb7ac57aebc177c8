"""Deterministic strategy backtesting engine."""

from backtester.core import (
    BacktestError,
    BacktestRequest,
    BacktestResult,
    Bar,
    CapitalConfig,
    EquityPoint,
    MacdCrossoverConfig,
    PriceSeries,
    RsiThresholdConfig,
    SmaCrossoverConfig,
    Trade,
)
from backtester.runner import BacktestEngine, run_batch
from backtester.strategy import parse_request, parse_strategy_config

__version__ = "0.1.0"

__all__ = [
    "BacktestEngine",
    "BacktestError",
    "BacktestRequest",
    "BacktestResult",
    "Bar",
    "CapitalConfig",
    "EquityPoint",
    "MacdCrossoverConfig",
    "PriceSeries",
    "RsiThresholdConfig",
    "SmaCrossoverConfig",
    "Trade",
    "parse_request",
    "parse_strategy_config",
    "run_batch",
]
