"""
Indicator Library
Stateless transforms over close prices.

Every function returns a tuple aligned to the input, with ``None`` where the
indicator is not yet defined. Nothing here looks past the bar being computed.
"""

from decimal import Decimal
from typing import Callable, Optional, Sequence, Union

from backtester.core.errors import InsufficientData, InvalidConfig
from backtester.core.types import PriceSeries
from backtester.indicators.cache import IndicatorCache

IndicatorSeries = tuple[Optional[Decimal], ...]
SeriesLike = Union[PriceSeries, Sequence[Decimal]]

_HUNDRED = Decimal("100")


def _values(series: SeriesLike) -> Sequence[Decimal]:
    if isinstance(series, PriceSeries):
        return series.closes
    return series


def _check_period(period: int, length: int, required: int, indicator: str) -> None:
    if period < 1:
        raise InvalidConfig(
            f"{indicator} period must be at least 1, got {period}",
            parameter="period",
            constraint="period >= 1",
        )
    if required > length:
        raise InsufficientData(
            f"{indicator}({period}) needs {required} bars, series has {length}",
            parameter="period",
            constraint=f"series length >= {required}",
        )


def sma(series: SeriesLike, period: int) -> IndicatorSeries:
    """
    Simple moving average of the trailing ``period`` values (inclusive).

    Undefined for indices below ``period - 1``.

    Raises:
        InsufficientData: if ``period`` exceeds the series length
    """
    values = _values(series)
    _check_period(period, len(values), period, "SMA")

    out: list[Optional[Decimal]] = [None] * (period - 1)
    window_sum = sum(values[:period], Decimal("0"))
    out.append(window_sum / period)
    for i in range(period, len(values)):
        window_sum += values[i] - values[i - period]
        out.append(window_sum / period)
    return tuple(out)


def ema(values: Sequence[Optional[Decimal]], period: int) -> IndicatorSeries:
    """
    Exponential moving average seeded with the SMA of the first ``period``
    defined values, then smoothed with alpha = 2 / (period + 1).

    Leading ``None`` entries are carried through, so an EMA can be taken of
    another indicator.
    """
    offset = 0
    while offset < len(values) and values[offset] is None:
        offset += 1
    defined = values[offset:]
    if any(value is None for value in defined):
        raise InvalidConfig(
            "EMA input may only have undefined values at the start",
            parameter="values",
            constraint="no gaps after first defined value",
        )
    _check_period(period, len(defined), period, "EMA")

    alpha = Decimal(2) / (period + 1)
    out: list[Optional[Decimal]] = [None] * (offset + period - 1)
    current = sum(defined[:period], Decimal("0")) / period
    out.append(current)
    for value in defined[period:]:
        current = (value - current) * alpha + current
        out.append(current)
    return tuple(out)


def rsi(series: SeriesLike, period: int) -> IndicatorSeries:
    """
    Relative Strength Index with Wilder's smoothing.

    The first ``period`` close-to-close deltas seed the average gain and loss;
    each later bar updates them as ``(prev * (period - 1) + current) / period``.
    RSI is 100 when the average loss is zero. Undefined for the first
    ``period`` bars.

    Raises:
        InsufficientData: if the series has fewer than ``period + 1`` bars
    """
    values = _values(series)
    _check_period(period, len(values), period + 1, "RSI")

    gains: list[Decimal] = []
    losses: list[Decimal] = []
    for previous, current in zip(values, values[1:]):
        delta = current - previous
        gains.append(delta if delta > 0 else Decimal("0"))
        losses.append(-delta if delta < 0 else Decimal("0"))

    out: list[Optional[Decimal]] = [None] * period
    avg_gain = sum(gains[:period], Decimal("0")) / period
    avg_loss = sum(losses[:period], Decimal("0")) / period
    out.append(_rsi_value(avg_gain, avg_loss))
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        out.append(_rsi_value(avg_gain, avg_loss))
    return tuple(out)


def _rsi_value(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    if avg_loss == 0:
        return _HUNDRED
    return _HUNDRED - _HUNDRED / (1 + avg_gain / avg_loss)


class IndicatorLibrary:
    """
    Indicator access for signal generators.

    With a cache attached, results are memoized per
    (series fingerprint, indicator kind, parameters).
    """

    def __init__(self, cache: Optional[IndicatorCache] = None) -> None:
        self._cache = cache

    @property
    def cache(self) -> Optional[IndicatorCache]:
        return self._cache

    def sma(self, series: PriceSeries, period: int) -> IndicatorSeries:
        return self._compute(series, "sma", (period,), lambda: sma(series, period))

    def rsi(self, series: PriceSeries, period: int) -> IndicatorSeries:
        return self._compute(series, "rsi", (period,), lambda: rsi(series, period))

    def ema(self, series: PriceSeries, period: int) -> IndicatorSeries:
        return self._compute(series, "ema", (period,), lambda: ema(series.closes, period))

    def _compute(
        self,
        series: PriceSeries,
        kind: str,
        params: tuple[int, ...],
        compute: Callable[[], IndicatorSeries],
    ) -> IndicatorSeries:
        if self._cache is None:
            return compute()
        return self._cache.get_or_compute(series.fingerprint, kind, params, compute)
