"""
Backtesting Engine
Runs one strategy over one price series with no look-ahead.

Order of operations:
1. Validate capital, strategy parameters and series length
2. Generate signals (lazy, bar-aligned)
3. Simulate execution bar by bar
4. Aggregate metrics

Expected failures come back as a BacktestError record. InternalError is
logged and re-raised.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from backtester.config import EngineSettings
from backtester.core.errors import (
    EXPECTED_ERRORS,
    BacktestEngineError,
    InsufficientData,
    InternalError,
)
from backtester.core.models import BacktestRequest, CapitalConfig, StrategyConfig
from backtester.core.types import BacktestError, BacktestResult, PriceSeries
from backtester.execution.simulator import ExecutionSimulator
from backtester.indicators.cache import IndicatorCache
from backtester.indicators.library import IndicatorLibrary
from backtester.metrics import MetricsCalculator
from backtester.strategy.registry import build_generator

logger = logging.getLogger(__name__)

BacktestOutcome = Union[BacktestResult, BacktestError]


def error_record(exc: BacktestEngineError) -> BacktestError:
    return BacktestError(**exc.to_record())


class BacktestEngine:
    """
    Deterministic backtest runner.

    Holds no per-run state, so one engine may serve concurrent runs. An
    optional IndicatorCache is shared by every run on this engine.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        cache: Optional[IndicatorCache] = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._indicators = IndicatorLibrary(cache)
        self._metrics = MetricsCalculator(self._settings.annualization_factor)

    def run(
        self,
        series: PriceSeries,
        strategy: StrategyConfig,
        capital: CapitalConfig,
        strategy_name: Optional[str] = None,
    ) -> BacktestOutcome:
        """
        Run a backtest, returning a result or a structured error.

        Raises:
            InternalError: invariant violation during simulation
        """
        try:
            return self.run_or_raise(series, strategy, capital, strategy_name)
        except EXPECTED_ERRORS as exc:
            logger.warning(f"Backtest rejected ({exc.kind}): {exc.message}")
            return error_record(exc)
        except InternalError as exc:
            logger.error(f"Backtest aborted on {series.symbol}: {exc.message}")
            raise

    def run_request(self, series: PriceSeries, request: BacktestRequest) -> BacktestOutcome:
        return self.run(series, request.strategy, request.capital, request.display_name)

    def run_or_raise(
        self,
        series: PriceSeries,
        strategy: StrategyConfig,
        capital: CapitalConfig,
        strategy_name: Optional[str] = None,
    ) -> BacktestResult:
        """Run a backtest, raising the typed error for any failure."""
        generator = build_generator(strategy, self._indicators)
        self._validate(series, strategy, capital)

        name = strategy_name or strategy.default_name
        logger.info(
            f"Starting backtest: {name} on {series.symbol} "
            f"({series.start_date} to {series.end_date}, {len(series)} bars)"
        )

        simulation = ExecutionSimulator(capital).run(series, generator.signals(series))
        metrics = self._metrics.calculate(
            capital.initial_capital, simulation.trades, simulation.equity_curve
        )

        result = BacktestResult(
            strategy_name=name,
            symbol=series.symbol,
            start_date=series.start_date,
            end_date=series.end_date,
            initial_capital=capital.initial_capital,
            final_capital=metrics.final_capital,
            total_return=metrics.total_return,
            sharpe_ratio=metrics.sharpe_ratio,
            max_drawdown=metrics.max_drawdown,
            win_rate=metrics.win_rate,
            total_trades=metrics.total_trades,
            trades=simulation.trades,
            equity_curve=simulation.equity_curve,
        )

        logger.info(
            f"Backtest complete: {result.total_trades} trades, "
            f"return={result.total_return:.2f}%, "
            f"sharpe={result.sharpe_ratio:.2f}, "
            f"ignored_signals={simulation.signals_ignored}"
        )
        return result

    def _validate(self, series: PriceSeries, strategy: StrategyConfig, capital: CapitalConfig) -> None:
        capital.check()
        strategy.check()
        if len(series) < strategy.lookback:
            raise InsufficientData(
                f"{strategy.default_name} needs at least {strategy.lookback} bars, "
                f"{series.symbol} has {len(series)}",
                parameter="price_series",
                constraint=f"length >= {strategy.lookback}",
            )
