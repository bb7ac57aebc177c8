"""
Performance Metrics
Pure aggregation over closed trades and the equity curve.
"""

from __future__ import annotations

import datetime as dt
import statistics
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from backtester.core.types import EquityPoint, Trade

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PerformanceMetrics:
    """Summary statistics for one run."""
    final_capital: Decimal
    total_return: Decimal
    sharpe_ratio: Decimal
    max_drawdown: Decimal
    win_rate: Decimal
    total_trades: int


def total_return(initial_capital: Decimal, final_capital: Decimal) -> Decimal:
    """Percentage change from initial to final capital."""
    return (final_capital - initial_capital) / initial_capital * _HUNDRED


def win_rate(trades: Sequence[Trade]) -> Decimal:
    """Percentage of trades with positive profit; 0 when there are no trades."""
    if not trades:
        return _ZERO
    winners = sum(1 for trade in trades if trade.profit > 0)
    return Decimal(winners) * _HUNDRED / len(trades)


def max_drawdown(values: Sequence[Decimal]) -> Decimal:
    """
    Deepest decline from a running peak, as a non-positive percentage.

    Returns 0 for a non-decreasing curve.
    """
    worst = _ZERO
    peak: Optional[Decimal] = None
    for value in values:
        if peak is None or value > peak:
            peak = value
        if peak > 0:
            drawdown = (value - peak) / peak * _HUNDRED
            if drawdown < worst:
                worst = drawdown
    return worst


def periods_per_year(dates: Sequence[dt.date]) -> int:
    """
    Trading periods per year implied by the median bar spacing.

    Daily bars (weekend gaps included) map to 252, weekly to 52, monthly to
    12, quarterly to 4, anything sparser to 1.
    """
    if len(dates) < 2:
        return 252
    gaps = [(later - earlier).days for earlier, later in zip(dates, dates[1:])]
    median_gap = statistics.median(gaps)
    if median_gap <= 4:
        return 252
    if median_gap <= 10:
        return 52
    if median_gap <= 45:
        return 12
    if median_gap <= 120:
        return 4
    return 1


def simple_returns(values: Sequence[Decimal]) -> list[Decimal]:
    """Per-bar simple returns ``v[t] / v[t-1] - 1``, skipping zero denominators."""
    returns = []
    for previous, current in zip(values, values[1:]):
        if previous > 0:
            returns.append(current / previous - 1)
    return returns


def sharpe_ratio(values: Sequence[Decimal], annualization_factor: int) -> Decimal:
    """
    Annualized ratio of mean to sample standard deviation of per-bar returns.

    Reported as 0 with fewer than two bars, fewer than two returns, or zero
    volatility.
    """
    if len(values) < 2:
        return _ZERO
    returns = simple_returns(values)
    if len(returns) < 2:
        return _ZERO
    stdev = statistics.stdev(returns)
    if stdev == 0:
        return _ZERO
    mean = sum(returns, _ZERO) / len(returns)
    return mean / stdev * Decimal(annualization_factor).sqrt()


class MetricsCalculator:
    """Computes PerformanceMetrics without mutating its inputs."""

    def __init__(self, annualization_factor: Optional[int] = None) -> None:
        self._annualization_factor = annualization_factor

    def calculate(
        self,
        initial_capital: Decimal,
        trades: Sequence[Trade],
        equity_curve: Sequence[EquityPoint],
    ) -> PerformanceMetrics:
        values = [point.value for point in equity_curve]
        final_capital = values[-1] if values else initial_capital
        factor = self._annualization_factor or periods_per_year(
            [point.date for point in equity_curve]
        )
        return PerformanceMetrics(
            final_capital=final_capital,
            total_return=total_return(initial_capital, final_capital),
            sharpe_ratio=sharpe_ratio(values, factor),
            max_drawdown=max_drawdown(values),
            win_rate=win_rate(trades),
            total_trades=len(trades),
        )
