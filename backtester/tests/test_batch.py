from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from backtester.config import EngineSettings
from backtester.core.models import BacktestRequest, RsiThresholdConfig, SmaCrossoverConfig
from backtester.core.types import BacktestError, BacktestResult, Bar, PriceSeries
from backtester.indicators.cache import IndicatorCache
from backtester.runner import BacktestEngine, BatchItem, run_batch


def _series(closes, symbol: str = "TEST") -> PriceSeries:
    start = date(2023, 1, 2)
    bars = []
    for i, close in enumerate(closes):
        price = Decimal(str(close))
        bars.append(Bar(timestamp=start + timedelta(days=i), open=price, high=price, low=price, close=price))
    return PriceSeries(symbol, bars)


def _wave(length: int, offset: int = 0) -> list[int]:
    # Triangle wave between 100 and 120.
    return [100 + min((i + offset) % 40, 40 - (i + offset) % 40) for i in range(length)]


def _request(symbol: str, strategy) -> BacktestRequest:
    return BacktestRequest(symbol=symbol, strategy=strategy)


def test_batch_preserves_input_order_and_mixes_outcomes() -> None:
    aapl = _series(_wave(120), "AAPL")
    msft = _series(_wave(120, offset=7), "MSFT")
    tiny = _series([100, 101], "TINY")
    items = [
        BatchItem(_request("AAPL", SmaCrossoverConfig(short_period=3, long_period=10)), aapl),
        BatchItem(_request("TINY", SmaCrossoverConfig()), tiny),
        BatchItem(_request("MSFT", RsiThresholdConfig(period=5)), msft),
    ]

    outcomes = run_batch(items, max_workers=3)

    assert [type(outcome) for outcome in outcomes] == [BacktestResult, BacktestError, BacktestResult]
    assert outcomes[0].symbol == "AAPL"
    assert outcomes[1].kind == "insufficient_data"
    assert outcomes[2].symbol == "MSFT"


def test_batch_matches_sequential_runs() -> None:
    series = _series(_wave(150))
    configs = [SmaCrossoverConfig(short_period=s, long_period=s * 3) for s in (2, 3, 4, 5)]
    items = [BatchItem(_request("TEST", config), series) for config in configs]

    batched = run_batch(items, max_workers=4)
    sequential = [BacktestEngine().run_request(series, item.request) for item in items]

    assert batched == sequential


def test_batch_shares_indicator_cache() -> None:
    series = _series(_wave(100))
    config = SmaCrossoverConfig(short_period=3, long_period=9)
    items = [BatchItem(_request("TEST", config), series) for _ in range(6)]
    cache = IndicatorCache()

    outcomes = run_batch(items, max_workers=3, cache=cache)

    assert len({outcome.final_capital for outcome in outcomes}) == 1
    assert len(cache) == 2


def test_batch_without_cache_when_disabled() -> None:
    series = _series(_wave(60))
    items = [BatchItem(_request("TEST", SmaCrossoverConfig(short_period=3, long_period=9)), series)]

    outcomes = run_batch(items, settings=EngineSettings(indicator_cache_enabled=False))

    assert outcomes[0].success


def test_empty_batch() -> None:
    assert run_batch([]) == []
