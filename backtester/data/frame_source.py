"""DataFrame/CSV/Parquet adapter producing a validated PriceSeries."""

from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Optional

from backtester.core.errors import InsufficientData, InvalidConfig
from backtester.core.types import PriceSeries

logger = logging.getLogger(__name__)


class FrameDataSource:
    """
    Convert an already-fetched price table into a PriceSeries.

    Accepts a dataframe-like object directly (``from_frame``) or reads a
    local ``.csv`` / ``.parquet`` file (``load``). No network access.
    """

    REQUIRED_COLUMNS: tuple[str, ...] = ("open", "high", "low", "close")
    DATE_COLUMNS: tuple[str, ...] = ("timestamp", "date")

    def __init__(self, *, read_file: Callable[[Path], object] | None = None) -> None:
        if read_file is not None:
            self._read_file = read_file
        else:
            self._read_file = self._read_with_pandas

    @staticmethod
    def _read_with_pandas(path: Path) -> object:
        # Lazily import pandas to keep core/runtime contracts independent.
        import pandas as pd

        if path.suffix.lower() == ".parquet":
            return pd.read_parquet(path)
        return pd.read_csv(path)

    def load(
        self,
        path: str | Path,
        symbol: str,
        *,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
    ) -> PriceSeries:
        path = Path(path)
        if not path.is_file():
            raise InvalidConfig(
                f"Price file not found: {path}",
                parameter="data",
                constraint="existing .csv or .parquet file",
            )
        logger.info(f"Loading {symbol} bars from {path}")
        try:
            frame = self._read_file(path)
        except (ValueError, OSError, ImportError) as exc:
            raise InvalidConfig(
                f"Could not read price file {path}: {exc}",
                parameter="data",
                constraint="readable .csv or .parquet file",
            ) from exc
        return self.from_frame(frame, symbol, start_date=start_date, end_date=end_date)

    def from_frame(
        self,
        frame: object,
        symbol: str,
        *,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
    ) -> PriceSeries:
        if not hasattr(frame, "columns"):
            raise TypeError("frame must be a dataframe-like object with columns")

        columns = {str(column).lower(): column for column in getattr(frame, "columns")}
        if not any(name in columns for name in self.DATE_COLUMNS) and hasattr(frame, "reset_index"):
            frame = frame.reset_index()
            columns = {str(column).lower(): column for column in getattr(frame, "columns")}

        missing = [name for name in self.REQUIRED_COLUMNS if name not in columns]
        if missing:
            raise InvalidConfig(
                f"Missing required columns for {symbol}: {missing}",
                parameter="price_series",
                constraint=f"columns {list(self.REQUIRED_COLUMNS)}",
            )
        date_column = next((columns[name] for name in self.DATE_COLUMNS if name in columns), None)
        if date_column is None:
            raise InvalidConfig(
                f"Price table for {symbol} has no timestamp or date column",
                parameter="price_series",
                constraint="timestamp or date column",
            )

        records = []
        for row in frame.to_dict(orient="records"):
            day = _to_date(row[date_column])
            if start_date is not None and day < start_date:
                continue
            if end_date is not None and day > end_date:
                continue
            volume = row.get(columns["volume"]) if "volume" in columns else 0
            records.append(
                {
                    "timestamp": day,
                    "open": _to_decimal(row[columns["open"]]),
                    "high": _to_decimal(row[columns["high"]]),
                    "low": _to_decimal(row[columns["low"]]),
                    "close": _to_decimal(row[columns["close"]]),
                    "volume": _to_volume(volume),
                }
            )

        if not records:
            raise InsufficientData(
                f"No bars for {symbol} in range {start_date} to {end_date}",
                parameter="price_series",
                constraint="length >= 1",
            )
        records.sort(key=lambda record: record["timestamp"])
        return PriceSeries.from_records(symbol, records)


def _to_date(value: object) -> dt.date:
    if hasattr(value, "to_pydatetime"):
        value = value.to_pydatetime()
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise InvalidConfig(
        f"Unrecognized date value {value!r}",
        parameter="price_series",
        constraint="ISO date or datetime-like timestamp",
    )


def _to_decimal(value: object) -> Decimal:
    # Go through str so binary floats keep their printed value.
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidConfig(
            f"Unrecognized price value {value!r}",
            parameter="price_series",
            constraint="numeric OHLC values",
        ) from exc


def _to_volume(value: object) -> object:
    # Blank cells read as NaN; anything else is left for Bar validation.
    if value is None:
        return 0
    import pandas as pd

    if pd.isna(value):
        return 0
    return value
