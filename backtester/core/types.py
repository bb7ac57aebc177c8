"""
Core domain types for the backtest engine.

Bars, the price series, signals, trades and equity points are immutable once
built. Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

import datetime as dt
import hashlib
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from backtester.core.errors import InsufficientData, InvalidConfig


class RecordModel(BaseModel):
    """Frozen model serialized with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Market Data
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Bar(RecordModel):
    """One OHLCV sample."""

    timestamp: dt.date
    open: Decimal = Field(gt=0)
    high: Decimal = Field(gt=0)
    low: Decimal = Field(gt=0)
    close: Decimal = Field(gt=0)
    volume: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> "Bar":
        if self.high < self.low:
            raise ValueError(f"high {self.high} is below low {self.low} on {self.timestamp}")
        for name in ("open", "close"):
            value = getattr(self, name)
            if not self.low <= value <= self.high:
                raise ValueError(
                    f"{name} {value} is outside low-high range [{self.low}, {self.high}] on {self.timestamp}"
                )
        return self


class PriceSeries:
    """
    Ordered, deduplicated bars for one symbol.

    The series is immutable: bars are held in a tuple and the content
    fingerprint is computed once at construction.
    """

    __slots__ = ("_symbol", "_bars", "_closes", "_fingerprint")

    def __init__(self, symbol: str, bars: Iterable[Bar]) -> None:
        self._symbol = symbol
        self._bars: tuple[Bar, ...] = tuple(bars)
        if not self._bars:
            raise InsufficientData(
                f"Price series for {symbol} is empty",
                parameter="price_series",
                constraint="length >= 1",
            )
        for previous, current in zip(self._bars, self._bars[1:]):
            if current.timestamp <= previous.timestamp:
                raise InvalidConfig(
                    f"Bar timestamps must be strictly increasing: "
                    f"{current.timestamp} follows {previous.timestamp}",
                    parameter="price_series",
                    constraint="timestamps strictly increasing",
                )
        self._closes: tuple[Decimal, ...] = tuple(bar.close for bar in self._bars)
        self._fingerprint = self._compute_fingerprint()

    @classmethod
    def from_records(cls, symbol: str, records: Iterable[Mapping[str, Any]]) -> "PriceSeries":
        """Build a series from plain mappings, reporting malformed rows as InvalidConfig."""
        bars: list[Bar] = []
        for index, record in enumerate(records):
            try:
                bars.append(Bar.model_validate(record))
            except ValidationError as exc:
                raise InvalidConfig(
                    f"Malformed bar at row {index} for {symbol}: {exc.errors()[0]['msg']}",
                    parameter="price_series",
                    constraint="valid OHLC values",
                ) from exc
        return cls(symbol, bars)

    def _compute_fingerprint(self) -> str:
        digest = hashlib.sha256(self._symbol.encode("utf-8"))
        for bar in self._bars:
            digest.update(f"{bar.timestamp.isoformat()}|{bar.close}\n".encode("utf-8"))
        return digest.hexdigest()

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def bars(self) -> tuple[Bar, ...]:
        return self._bars

    @property
    def closes(self) -> tuple[Decimal, ...]:
        return self._closes

    @property
    def dates(self) -> tuple[dt.date, ...]:
        return tuple(bar.timestamp for bar in self._bars)

    @property
    def start_date(self) -> dt.date:
        return self._bars[0].timestamp

    @property
    def end_date(self) -> dt.date:
        return self._bars[-1].timestamp

    @property
    def fingerprint(self) -> str:
        """Content hash used as the series identity in indicator caches."""
        return self._fingerprint

    def __len__(self) -> int:
        return len(self._bars)

    def __iter__(self) -> Iterator[Bar]:
        return iter(self._bars)

    def __getitem__(self, index: int) -> Bar:
        return self._bars[index]

    def __repr__(self) -> str:
        return (
            f"PriceSeries(symbol={self._symbol!r}, bars={len(self._bars)}, "
            f"start={self.start_date}, end={self.end_date})"
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Signals
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SignalKind(str, Enum):
    """Signal kind enum."""
    ENTER = "enter"
    EXIT = "exit"


class Signal(RecordModel):
    """Discrete trading signal aligned to a bar."""

    timestamp: dt.date
    kind: SignalKind
    bar_index: int = Field(ge=0)
    reason: str = ""


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Trades and Equity
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Trade(RecordModel):
    """Closed round-trip long trade."""

    entry_date: dt.date
    exit_date: dt.date
    entry_price: Decimal = Field(gt=0)
    exit_price: Decimal = Field(gt=0)
    quantity: int = Field(ge=1)
    profit: Decimal
    return_pct: Decimal

    @model_validator(mode="after")
    def _check_dates(self) -> "Trade":
        if self.exit_date < self.entry_date:
            raise ValueError(f"exit {self.exit_date} precedes entry {self.entry_date}")
        return self

    @classmethod
    def closed(
        cls,
        entry_date: dt.date,
        exit_date: dt.date,
        entry_price: Decimal,
        exit_price: Decimal,
        quantity: int,
    ) -> "Trade":
        """Build a trade with profit and return derived from prices."""
        profit = (exit_price - entry_price) * quantity
        return_pct = profit / (entry_price * quantity) * 100
        return cls(
            entry_date=entry_date,
            exit_date=exit_date,
            entry_price=entry_price,
            exit_price=exit_price,
            quantity=quantity,
            profit=profit,
            return_pct=return_pct,
        )


class EquityPoint(RecordModel):
    """Mark-to-market account value at a bar's close."""

    date: dt.date
    value: Decimal = Field(ge=0)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Results
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _money(value: Decimal, places: int = 2) -> float:
    return float(round(value, places))


class BacktestResult(RecordModel):
    """Complete output of one backtest run."""

    strategy_name: str
    symbol: str
    start_date: dt.date
    end_date: dt.date
    initial_capital: Decimal
    final_capital: Decimal
    total_return: Decimal
    sharpe_ratio: Decimal
    max_drawdown: Decimal
    win_rate: Decimal
    total_trades: int = Field(ge=0)
    trades: tuple[Trade, ...] = ()
    equity_curve: tuple[EquityPoint, ...] = ()

    @property
    def success(self) -> bool:
        return True

    def to_record(self) -> dict[str, Any]:
        """Flat record plus trades and equityCurve, shaped for storage and display."""
        return {
            "success": True,
            "strategyName": self.strategy_name,
            "symbol": self.symbol,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "initialCapital": _money(self.initial_capital),
            "finalCapital": _money(self.final_capital),
            "totalReturn": _money(self.total_return),
            "sharpeRatio": _money(self.sharpe_ratio, 4),
            "maxDrawdown": _money(self.max_drawdown),
            "winRate": _money(self.win_rate),
            "totalTrades": self.total_trades,
            "trades": [
                {
                    "entryDate": trade.entry_date.isoformat(),
                    "exitDate": trade.exit_date.isoformat(),
                    "entryPrice": _money(trade.entry_price),
                    "exitPrice": _money(trade.exit_price),
                    "quantity": trade.quantity,
                    "profit": _money(trade.profit),
                    "returnPct": _money(trade.return_pct),
                }
                for trade in self.trades
            ],
            "equityCurve": [
                {"date": point.date.isoformat(), "value": _money(point.value)}
                for point in self.equity_curve
            ],
        }


class BacktestError(RecordModel):
    """Structured failure returned instead of a result."""

    kind: str
    message: str
    parameter: Optional[str] = None
    constraint: Optional[str] = None

    @property
    def success(self) -> bool:
        return False

    def to_record(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "kind": self.kind,
            "parameter": self.parameter,
            "constraint": self.constraint,
        }
