"""
RSI Threshold Strategy

Entry: RSI recovers above the oversold line after having been below it
Exit: RSI falls back below the overbought line after having been above it

Waiting for the recovery keeps the strategy from buying while RSI is still
falling.
"""

from typing import Iterator

from backtester.core.models import RsiThresholdConfig
from backtester.core.types import PriceSeries, Signal, SignalKind
from backtester.strategy.base import SignalGenerator


class RsiThresholdGenerator(SignalGenerator):
    """Oversold recovery entries and overbought reversal exits."""

    strategy_type = "rsi"
    config: RsiThresholdConfig

    def _generate(self, series: PriceSeries) -> Iterator[Signal]:
        values = self.indicators.rsi(series, self.config.period)
        oversold = self.config.oversold
        overbought = self.config.overbought

        # Armed once RSI is strictly beyond a line; a touch of the line itself
        # neither arms nor fires.
        below_oversold = False
        above_overbought = False

        for index, value in enumerate(values):
            if value is None:
                continue

            if value < oversold:
                below_oversold = True
            elif value > oversold and below_oversold:
                below_oversold = False
                yield self._signal(series, index, SignalKind.ENTER, "rsi_oversold_recovery")

            if value > overbought:
                above_overbought = True
            elif value < overbought and above_overbought:
                above_overbought = False
                yield self._signal(series, index, SignalKind.EXIT, "rsi_overbought_reversal")
