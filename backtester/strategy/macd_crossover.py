"""
MACD Crossover Strategy

MACD line = EMA(fast) - EMA(slow) of closes; signal line = EMA(signal) of
the MACD line.

Entry: MACD crosses above its signal line
Exit: MACD crosses below its signal line
"""

from decimal import Decimal
from typing import Iterator, Optional

from backtester.core.models import MacdCrossoverConfig
from backtester.core.types import PriceSeries, Signal
from backtester.indicators.library import ema
from backtester.strategy.base import SignalGenerator, crossover_signals


class MacdCrossoverGenerator(SignalGenerator):
    strategy_type = "macd"
    config: MacdCrossoverConfig

    def _generate(self, series: PriceSeries) -> Iterator[Signal]:
        fast = self.indicators.ema(series, self.config.fast_period)
        slow = self.indicators.ema(series, self.config.slow_period)
        macd_line: list[Optional[Decimal]] = [
            None if f is None or s is None else f - s for f, s in zip(fast, slow)
        ]
        signal_line = ema(macd_line, self.config.signal_period)
        yield from crossover_signals(self, series, macd_line, signal_line, "macd")
