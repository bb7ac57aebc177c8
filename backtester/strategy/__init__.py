"""Signal generators and the strategy registry."""

from backtester.strategy.base import SignalGenerator, SignalStream
from backtester.strategy.macd_crossover import MacdCrossoverGenerator
from backtester.strategy.registry import (
    STRATEGY_GENERATORS,
    build_generator,
    normalize_strategy_type,
    parse_request,
    parse_strategy_config,
)
from backtester.strategy.rsi_threshold import RsiThresholdGenerator
from backtester.strategy.sma_crossover import SmaCrossoverGenerator

__all__ = [
    "SignalGenerator",
    "SignalStream",
    "SmaCrossoverGenerator",
    "RsiThresholdGenerator",
    "MacdCrossoverGenerator",
    "STRATEGY_GENERATORS",
    "build_generator",
    "normalize_strategy_type",
    "parse_request",
    "parse_strategy_config",
]
