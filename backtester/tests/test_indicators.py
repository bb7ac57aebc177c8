from __future__ import annotations

import concurrent.futures
from datetime import date, timedelta
from decimal import Decimal

import pytest

from backtester.core.errors import InsufficientData, InvalidConfig
from backtester.core.types import Bar, PriceSeries
from backtester.indicators import IndicatorCache, IndicatorLibrary, ema, rsi, sma


def _series(closes, symbol: str = "TEST") -> PriceSeries:
    start = date(2023, 1, 2)
    bars = []
    for i, close in enumerate(closes):
        price = Decimal(str(close))
        bars.append(Bar(timestamp=start + timedelta(days=i), open=price, high=price, low=price, close=price))
    return PriceSeries(symbol, bars)


def test_sma_trailing_average_with_undefined_prefix() -> None:
    values = sma(_series([1, 2, 3, 4, 5]), 3)

    assert values == (None, None, Decimal("2"), Decimal("3"), Decimal("4"))


def test_sma_period_one_matches_closes() -> None:
    series = _series([10, 11, 12])

    assert sma(series, 1) == series.closes


def test_sma_period_longer_than_series_is_insufficient_data() -> None:
    with pytest.raises(InsufficientData, match="needs 4 bars"):
        sma(_series([1, 2, 3]), 4)


def test_sma_rejects_non_positive_period() -> None:
    with pytest.raises(InvalidConfig):
        sma(_series([1, 2, 3]), 0)


def test_rsi_wilder_smoothing() -> None:
    values = rsi(_series([10, 11, 10, 12]), 2)

    assert values[:2] == (None, None)
    assert values[2] == Decimal("50")
    assert round(values[3], 6) == Decimal("83.333333")


def test_rsi_is_100_when_there_are_no_losses() -> None:
    values = rsi(_series([100] * 20), 14)

    assert values[:14] == (None,) * 14
    assert all(value == Decimal("100") for value in values[14:])


def test_rsi_is_zero_on_a_steady_decline() -> None:
    values = rsi(_series([100, 98, 96, 94, 92]), 3)

    assert values[3] == Decimal("0")
    assert values[4] == Decimal("0")


def test_rsi_needs_period_plus_one_bars() -> None:
    with pytest.raises(InsufficientData):
        rsi(_series([1, 2, 3]), 3)


def test_ema_seeds_with_sma_then_smooths() -> None:
    values = ema([Decimal(v) for v in (1, 2, 3, 4, 5)], 3)

    assert values == (None, None, Decimal("2"), Decimal("3"), Decimal("4"))


def test_ema_carries_leading_undefined_values() -> None:
    values = ema([None, None, Decimal("2"), Decimal("4"), Decimal("6")], 2)

    assert values[:3] == (None, None, None)
    assert values[3] == Decimal("3")


def test_ema_rejects_gaps_after_first_value() -> None:
    with pytest.raises(InvalidConfig, match="undefined"):
        ema([Decimal("1"), None, Decimal("2")], 1)


def test_indicator_library_memoizes_per_series_and_parameters() -> None:
    cache = IndicatorCache()
    library = IndicatorLibrary(cache)
    series = _series([1, 2, 3, 4, 5, 6])

    first = library.sma(series, 3)
    second = library.sma(series, 3)
    library.sma(series, 2)
    library.rsi(series, 3)

    assert first is second
    assert len(cache) == 3
    assert cache.hits == 1
    assert cache.misses == 3
    assert (series.fingerprint, "sma", (3,)) in cache


def test_cache_keys_by_series_content_not_object_identity() -> None:
    cache = IndicatorCache()
    library = IndicatorLibrary(cache)

    library.sma(_series([1, 2, 3]), 2)
    library.sma(_series([1, 2, 3]), 2)
    library.sma(_series([1, 2, 4]), 2)

    assert cache.hits == 1
    assert len(cache) == 2


def test_cache_counters_are_exact_under_concurrent_lookups() -> None:
    cache = IndicatorCache()
    calls_per_worker = 500

    def lookups() -> None:
        for _ in range(calls_per_worker):
            cache.get_or_compute("fp", "sma", (3,), lambda: (Decimal("1"),))

    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as pool:
        for future in [pool.submit(lookups) for _ in range(8)]:
            future.result()

    assert len(cache) == 1
    assert cache.hits + cache.misses == 8 * calls_per_worker
