"""
Execution Simulator
Bar-by-bar state machine over one symbol with a single long-or-flat position.

States:
- FLAT + ENTER -> buy floor(cash / close) shares at the bar's close -> LONG
  (ignored when that quantity is zero)
- LONG + EXIT  -> sell the whole position at the bar's close -> FLAT
- LONG + ENTER, FLAT + EXIT -> ignored (no pyramiding, no shorts)

A position still open after the last bar is closed at that bar's close, so
every run ends fully realized. Exactly one equity point is recorded per bar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from pydantic import ValidationError

from backtester.core.errors import InternalError
from backtester.core.models import CapitalConfig
from backtester.core.types import Bar, EquityPoint, PriceSeries, Signal, SignalKind, Trade

logger = logging.getLogger(__name__)


class PositionState(str, Enum):
    """Simulator state enum."""
    FLAT = "flat"
    LONG = "long"


@dataclass
class OpenPosition:
    """Position held between an entry and its exit."""
    entry_index: int
    entry_bar: Bar
    quantity: int

    @property
    def entry_price(self) -> Decimal:
        return self.entry_bar.close


@dataclass(frozen=True)
class SimulationResult:
    """Output of one simulator pass."""
    trades: tuple[Trade, ...]
    equity_curve: tuple[EquityPoint, ...]
    final_cash: Decimal
    signals_processed: int
    signals_ignored: int
    entries_skipped: int
    forced_close: bool


class ExecutionSimulator:
    """
    Consumes signals in bar order and tracks cash, position and equity.

    The simulator owns no data beyond one run; ``run`` resets all state, so a
    single instance may be reused sequentially.
    """

    def __init__(self, capital: CapitalConfig) -> None:
        self._capital = capital
        self._reset()

    def _reset(self) -> None:
        self._cash: Decimal = self._capital.initial_capital
        self._state = PositionState.FLAT
        self._position: Optional[OpenPosition] = None
        self._trades: List[Trade] = []
        self._equity_curve: List[EquityPoint] = []
        self._signals_processed = 0
        self._signals_ignored = 0
        self._entries_skipped = 0

    @property
    def state(self) -> PositionState:
        return self._state

    def run(self, series: PriceSeries, signals: Iterable[Signal]) -> SimulationResult:
        """
        Walk every bar of ``series``, applying the signals that belong to it.

        Raises:
            InternalError: signals out of order or not aligned to a bar, or a
                broken cash/equity invariant
        """
        self._reset()
        pending = _Peekable(iter(signals))

        for index, bar in enumerate(series):
            while pending.peek() is not None and pending.peek().bar_index <= index:
                signal = next(pending)
                self._check_alignment(signal, index, bar)
                self._apply(signal, index, bar)
            self._record_equity(bar)

        leftover = pending.peek()
        if leftover is not None:
            raise InternalError(
                f"Signal at bar {leftover.bar_index} ({leftover.timestamp}) is beyond "
                f"the end of the series ({len(series)} bars)",
                parameter="signals",
                constraint="signals aligned to series bars",
            )

        forced_close = False
        if self._state is PositionState.LONG:
            last_index = len(series) - 1
            logger.debug(f"Closing open position at series end {series[last_index].timestamp}")
            self._close(last_index, series[last_index])
            forced_close = True

        self._check_final_equity()
        return SimulationResult(
            trades=tuple(self._trades),
            equity_curve=tuple(self._equity_curve),
            final_cash=self._cash,
            signals_processed=self._signals_processed,
            signals_ignored=self._signals_ignored,
            entries_skipped=self._entries_skipped,
            forced_close=forced_close,
        )

    def _check_alignment(self, signal: Signal, index: int, bar: Bar) -> None:
        if signal.bar_index != index:
            raise InternalError(
                f"Signal for bar {signal.bar_index} ({signal.timestamp}) arrived after "
                f"bar {index} ({bar.timestamp}) was processed",
                parameter="signals",
                constraint="non-decreasing signal timestamps",
            )
        if signal.timestamp != bar.timestamp:
            raise InternalError(
                f"Signal timestamp {signal.timestamp} does not match bar {index} "
                f"timestamp {bar.timestamp}",
                parameter="signals",
                constraint="signal timestamp equals bar timestamp",
            )

    def _apply(self, signal: Signal, index: int, bar: Bar) -> None:
        self._signals_processed += 1
        if signal.kind is SignalKind.ENTER and self._state is PositionState.FLAT:
            self._open(index, bar)
        elif signal.kind is SignalKind.EXIT and self._state is PositionState.LONG:
            self._close(index, bar)
        else:
            self._signals_ignored += 1
            logger.debug(f"Ignoring {signal.kind.value} signal on {bar.timestamp} while {self._state.value}")

    def _open(self, index: int, bar: Bar) -> None:
        quantity = int(self._cash // bar.close)
        if quantity == 0:
            self._entries_skipped += 1
            logger.debug(f"Skipping entry on {bar.timestamp}: cash {self._cash} below price {bar.close}")
            return

        self._cash -= bar.close * quantity
        if self._cash < 0:
            raise InternalError(
                f"Cash went negative ({self._cash}) opening {quantity} @ {bar.close}",
                parameter="cash",
                constraint="cash >= 0",
            )
        self._position = OpenPosition(entry_index=index, entry_bar=bar, quantity=quantity)
        self._state = PositionState.LONG
        logger.debug(f"ENTER {quantity} @ {bar.close} on {bar.timestamp}")

    def _close(self, index: int, bar: Bar) -> None:
        position = self._position
        if position is None:
            raise InternalError(
                "LONG state without an open position",
                parameter="state",
                constraint="LONG implies open position",
            )
        if index < position.entry_index:
            raise InternalError(
                f"Exit bar {index} precedes entry bar {position.entry_index}",
                parameter="signals",
                constraint="entry_date <= exit_date",
            )
        try:
            trade = Trade.closed(
                entry_date=position.entry_bar.timestamp,
                exit_date=bar.timestamp,
                entry_price=position.entry_price,
                exit_price=bar.close,
                quantity=position.quantity,
            )
        except ValidationError as exc:
            raise InternalError(
                f"Invalid trade record: {exc.errors()[0]['msg']}",
                parameter="trade",
                constraint="valid trade record",
            ) from exc

        self._cash += bar.close * position.quantity
        self._trades.append(trade)
        self._position = None
        self._state = PositionState.FLAT
        logger.debug(f"EXIT {position.quantity} @ {bar.close} on {bar.timestamp} profit={trade.profit}")

    def _record_equity(self, bar: Bar) -> None:
        equity = self._cash
        if self._position is not None:
            equity += self._position.quantity * bar.close
        self._equity_curve.append(EquityPoint(date=bar.timestamp, value=equity))

    def _check_final_equity(self) -> None:
        last = self._equity_curve[-1].value
        if self._position is not None or self._cash != last:
            raise InternalError(
                f"Final cash {self._cash} does not match final equity {last}",
                parameter="equity_curve",
                constraint="final cash equals last equity value",
            )


class _Peekable:
    """Iterator wrapper with one-item lookahead."""

    _EMPTY = object()

    def __init__(self, iterator: Iterator[Signal]) -> None:
        self._iterator = iterator
        self._head: object = self._EMPTY

    def peek(self) -> Optional[Signal]:
        if self._head is self._EMPTY:
            self._head = next(self._iterator, None)
        return self._head  # type: ignore[return-value]

    def __iter__(self) -> "_Peekable":
        return self

    def __next__(self) -> Signal:
        head = self.peek()
        if head is None:
            raise StopIteration
        self._head = self._EMPTY
        return head
