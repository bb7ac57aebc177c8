"""
SMA Crossover Strategy

Entry: short SMA crosses above long SMA (golden cross)
Exit: short SMA crosses below long SMA (death cross)
"""

from typing import Iterator

from backtester.core.models import SmaCrossoverConfig
from backtester.core.types import PriceSeries, Signal
from backtester.strategy.base import SignalGenerator, crossover_signals


class SmaCrossoverGenerator(SignalGenerator):
    """Golden/death cross of two simple moving averages."""

    strategy_type = "sma"
    config: SmaCrossoverConfig

    def _generate(self, series: PriceSeries) -> Iterator[Signal]:
        short = self.indicators.sma(series, self.config.short_period)
        long = self.indicators.sma(series, self.config.long_period)
        yield from crossover_signals(self, series, short, long, "sma")
