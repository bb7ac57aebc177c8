"""Base signal generator contract."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, ClassVar, Iterator, Optional, Sequence

from backtester.core.models import StrategyConfig
from backtester.core.types import PriceSeries, Signal, SignalKind
from backtester.indicators.library import IndicatorLibrary

logger = logging.getLogger(__name__)


class SignalStream:
    """
    Lazy, finite, restartable sequence of signals.

    Each iteration starts a fresh pass over the series.
    """

    def __init__(self, factory: Callable[[], Iterator[Signal]]) -> None:
        self._factory = factory

    def __iter__(self) -> Iterator[Signal]:
        return self._factory()


class SignalGenerator:
    """
    One concrete generator per strategy variant.

    Subclasses set ``strategy_type`` and implement ``_generate``. A generator
    only reads indicator values at or before the bar it is evaluating.
    """

    strategy_type: ClassVar[str]

    def __init__(self, config: StrategyConfig, indicators: Optional[IndicatorLibrary] = None) -> None:
        self.config = config
        self.indicators = indicators or IndicatorLibrary()

    @property
    def lookback(self) -> int:
        return self.config.lookback

    def signals(self, series: PriceSeries) -> SignalStream:
        return SignalStream(lambda: self._generate(series))

    def _generate(self, series: PriceSeries) -> Iterator[Signal]:
        raise NotImplementedError

    def _signal(self, series: PriceSeries, index: int, kind: SignalKind, reason: str) -> Signal:
        signal = Signal(
            timestamp=series[index].timestamp,
            kind=kind,
            bar_index=index,
            reason=reason,
        )
        logger.debug(f"{self.strategy_type} {kind.value} {series.symbol} @ {series[index].timestamp} ({reason})")
        return signal


def crossover_signals(
    generator: SignalGenerator,
    series: PriceSeries,
    fast: Sequence[Optional[Decimal]],
    slow: Sequence[Optional[Decimal]],
    label: str,
) -> Iterator[Signal]:
    """
    Emit Enter when ``fast - slow`` turns positive from <= 0 and Exit when it
    turns negative from >= 0, comparing consecutive bars where both are defined.
    A bar where the lines are equal never fires by itself.
    """
    previous: Optional[Decimal] = None
    for index in range(len(series)):
        if fast[index] is None or slow[index] is None:
            continue
        diff = fast[index] - slow[index]
        if previous is not None:
            if previous <= 0 < diff:
                yield generator._signal(series, index, SignalKind.ENTER, f"{label}_cross_up")
            elif previous >= 0 > diff:
                yield generator._signal(series, index, SignalKind.EXIT, f"{label}_cross_down")
        previous = diff
