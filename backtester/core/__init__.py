"""Pure core contracts for the backtest engine."""

from backtester.core.errors import (
    BacktestEngineError,
    InsufficientData,
    InternalError,
    InvalidConfig,
    UnsupportedStrategy,
)
from backtester.core.models import (
    BacktestRequest,
    CapitalConfig,
    MacdCrossoverConfig,
    RsiThresholdConfig,
    SmaCrossoverConfig,
    StrategyConfig,
)
from backtester.core.types import (
    BacktestError,
    BacktestResult,
    Bar,
    EquityPoint,
    PriceSeries,
    Signal,
    SignalKind,
    Trade,
)

__all__ = [
    "BacktestEngineError",
    "InvalidConfig",
    "InsufficientData",
    "UnsupportedStrategy",
    "InternalError",
    "BacktestRequest",
    "CapitalConfig",
    "SmaCrossoverConfig",
    "RsiThresholdConfig",
    "MacdCrossoverConfig",
    "StrategyConfig",
    "Bar",
    "PriceSeries",
    "Signal",
    "SignalKind",
    "Trade",
    "EquityPoint",
    "BacktestResult",
    "BacktestError",
]
