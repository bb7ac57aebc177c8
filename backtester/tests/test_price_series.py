from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from backtester.core.errors import InsufficientData, InvalidConfig
from backtester.core.types import Bar, PriceSeries, Trade


def _bar(day: int, close: str = "100") -> Bar:
    price = Decimal(close)
    return Bar(timestamp=date(2023, 1, day), open=price, high=price, low=price, close=price)


def test_series_exposes_closes_and_dates() -> None:
    series = PriceSeries("AAPL", [_bar(2, "100"), _bar(3, "101.5")])

    assert len(series) == 2
    assert series.closes == (Decimal("100"), Decimal("101.5"))
    assert series.start_date == date(2023, 1, 2)
    assert series.end_date == date(2023, 1, 3)


def test_empty_series_is_insufficient_data() -> None:
    with pytest.raises(InsufficientData):
        PriceSeries("AAPL", [])


def test_non_increasing_timestamps_are_rejected() -> None:
    with pytest.raises(InvalidConfig, match="strictly increasing"):
        PriceSeries("AAPL", [_bar(3), _bar(2)])


def test_bar_rejects_high_below_low() -> None:
    with pytest.raises(ValidationError):
        Bar(timestamp=date(2023, 1, 2), open=10, high=9, low=11, close=10)


@pytest.mark.parametrize(
    "prices",
    [
        {"open": 12, "high": 11, "low": 9, "close": 10},
        {"open": 10, "high": 11, "low": 9, "close": 8},
    ],
)
def test_bar_rejects_open_or_close_outside_range(prices) -> None:
    with pytest.raises(ValidationError, match="outside low-high range"):
        Bar(timestamp=date(2023, 1, 2), **prices)


def test_bar_accepts_open_and_close_on_range_edges() -> None:
    bar = Bar(timestamp=date(2023, 1, 2), open=9, high=11, low=9, close=11)

    assert (bar.open, bar.close) == (Decimal("9"), Decimal("11"))


def test_bar_rejects_non_positive_prices() -> None:
    with pytest.raises(ValidationError):
        Bar(timestamp=date(2023, 1, 2), open=0, high=1, low=0, close=1)


def test_from_records_wraps_validation_errors() -> None:
    records = [{"timestamp": "2023-01-02", "open": 1, "high": 1, "low": 1, "close": -1}]

    with pytest.raises(InvalidConfig, match="Malformed bar at row 0"):
        PriceSeries.from_records("AAPL", records)


def test_fingerprint_depends_on_content() -> None:
    base = PriceSeries("AAPL", [_bar(2), _bar(3)])

    assert base.fingerprint == PriceSeries("AAPL", [_bar(2), _bar(3)]).fingerprint
    assert base.fingerprint != PriceSeries("AAPL", [_bar(2), _bar(3, "99")]).fingerprint
    assert base.fingerprint != PriceSeries("MSFT", [_bar(2), _bar(3)]).fingerprint


def test_trade_derives_profit_and_return() -> None:
    trade = Trade.closed(
        entry_date=date(2023, 1, 2),
        exit_date=date(2023, 1, 5),
        entry_price=Decimal("50"),
        exit_price=Decimal("45"),
        quantity=4,
    )

    assert trade.profit == Decimal("-20")
    assert trade.return_pct == Decimal("-10")


def test_trade_rejects_exit_before_entry() -> None:
    with pytest.raises(ValidationError):
        Trade.closed(
            entry_date=date(2023, 1, 5),
            exit_date=date(2023, 1, 2),
            entry_price=Decimal("50"),
            exit_price=Decimal("45"),
            quantity=1,
        )
