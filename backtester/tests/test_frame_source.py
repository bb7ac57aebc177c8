from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from backtester.core.errors import InsufficientData, InvalidConfig
from backtester.data.frame_source import FrameDataSource


class _Frame:
    def __init__(self, rows):
        self._rows = list(rows)
        self.columns = tuple(self._rows[0].keys()) if self._rows else tuple()

    def to_dict(self, orient="records"):
        assert orient == "records"
        return list(self._rows)

    def reset_index(self):
        return self


def _row(day, close, **extra):
    row = {"date": day, "open": close, "high": close + 1, "low": close - 1, "close": close}
    row.update(extra)
    return row


def test_rows_are_sorted_and_converted() -> None:
    rows = [
        _row("2023-01-04", 102.5, volume=30),
        _row("2023-01-02", 100, volume=10),
        _row("2023-01-03", 101, volume=20),
    ]

    series = FrameDataSource().from_frame(_Frame(rows), "AAPL")

    assert series.symbol == "AAPL"
    assert list(series.dates) == [date(2023, 1, 2), date(2023, 1, 3), date(2023, 1, 4)]
    assert series.closes[-1] == Decimal("102.5")
    assert series[0].volume == 10


def test_datetime_timestamps_and_upper_case_columns() -> None:
    rows = [
        {"Timestamp": datetime(2023, 1, 2, 16, 0), "Open": 10, "High": 11, "Low": 9, "Close": 10},
        {"Timestamp": datetime(2023, 1, 3, 16, 0), "Open": 10, "High": 12, "Low": 10, "Close": 11},
    ]

    series = FrameDataSource().from_frame(_Frame(rows), "MSFT")

    assert series.start_date == date(2023, 1, 2)
    assert series[1].volume == 0


def test_date_range_is_clipped() -> None:
    rows = [_row(f"2023-01-{day:02d}", 100 + day) for day in range(2, 12)]

    series = FrameDataSource().from_frame(
        _Frame(rows), "AAPL", start_date=date(2023, 1, 4), end_date=date(2023, 1, 6)
    )

    assert list(series.dates) == [date(2023, 1, 4), date(2023, 1, 5), date(2023, 1, 6)]


def test_empty_range_is_insufficient_data() -> None:
    rows = [_row("2023-01-02", 100)]

    with pytest.raises(InsufficientData):
        FrameDataSource().from_frame(_Frame(rows), "AAPL", start_date=date(2024, 1, 1))


def test_missing_columns_are_invalid_config() -> None:
    rows = [{"date": "2023-01-02", "open": 100, "high": 101, "low": 99}]

    with pytest.raises(InvalidConfig, match="Missing required columns"):
        FrameDataSource().from_frame(_Frame(rows), "AAPL")


def test_missing_date_column_is_invalid_config() -> None:
    rows = [{"open": 100, "high": 101, "low": 99, "close": 100}]

    with pytest.raises(InvalidConfig, match="no timestamp or date column"):
        FrameDataSource().from_frame(_Frame(rows), "AAPL")


def test_duplicate_dates_are_rejected() -> None:
    rows = [_row("2023-01-02", 100), _row("2023-01-02", 101)]

    with pytest.raises(InvalidConfig, match="strictly increasing"):
        FrameDataSource().from_frame(_Frame(rows), "AAPL")


@pytest.mark.parametrize("bad", [{"close": "n/a"}, {"date": "yesterday"}, {"low": 200}])
def test_malformed_values_are_invalid_config(bad) -> None:
    row = _row("2023-01-02", 100)
    row.update(bad)

    with pytest.raises(InvalidConfig):
        FrameDataSource().from_frame(_Frame([row]), "AAPL")


def test_load_uses_injected_reader(tmp_path) -> None:
    path = tmp_path / "bars.parquet"
    path.write_bytes(b"")
    seen = []

    def read_file(p):
        seen.append(p)
        return _Frame([_row("2023-01-02", 100), _row("2023-01-03", 101)])

    series = FrameDataSource(read_file=read_file).load(path, "AAPL")

    assert seen == [path]
    assert len(series) == 2


def test_load_missing_file_is_invalid_config(tmp_path) -> None:
    with pytest.raises(InvalidConfig) as excinfo:
        FrameDataSource().load(tmp_path / "missing.csv", "AAPL")

    assert excinfo.value.parameter == "data"


def test_load_reads_csv_with_pandas(tmp_path) -> None:
    path = tmp_path / "aapl.csv"
    path.write_text(
        "date,open,high,low,close,volume\n"
        "2023-01-03,101,102,100,101.5,1200\n"
        "2023-01-02,100,101,99,100.25,1000\n"
    )

    series = FrameDataSource().load(path, "AAPL")

    assert list(series.dates) == [date(2023, 1, 2), date(2023, 1, 3)]
    assert series.closes == (Decimal("100.25"), Decimal("101.5"))
    assert series[1].volume == 1200


def test_blank_volume_cell_reads_as_zero(tmp_path) -> None:
    path = tmp_path / "gaps.csv"
    path.write_text(
        "date,open,high,low,close,volume\n"
        "2023-01-02,1,1,1,1,\n"
        "2023-01-03,2,2,2,2,500\n"
    )

    series = FrameDataSource().load(path, "AAPL")

    assert [bar.volume for bar in series] == [0, 500]


@pytest.mark.parametrize("volume", [1.5, -10, "lots"])
def test_invalid_volume_is_invalid_config(volume) -> None:
    rows = [_row("2023-01-02", 100, volume=volume)]

    with pytest.raises(InvalidConfig) as excinfo:
        FrameDataSource().from_frame(_Frame(rows), "AAPL")

    assert excinfo.value.parameter == "price_series"


@pytest.mark.parametrize(
    "error",
    [
        ValueError("No columns to parse from file"),
        UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
        ImportError("pyarrow"),
    ],
)
def test_unreadable_file_is_invalid_config(tmp_path, error) -> None:
    path = tmp_path / "bars.csv"
    path.write_bytes(b"")

    def read_file(_path):
        raise error

    with pytest.raises(InvalidConfig, match="Could not read price file") as excinfo:
        FrameDataSource(read_file=read_file).load(path, "AAPL")

    assert excinfo.value.parameter == "data"
    assert excinfo.value.__cause__ is error


def test_empty_csv_is_invalid_config(tmp_path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("")

    with pytest.raises(InvalidConfig, match="Could not read price file"):
        FrameDataSource().load(path, "AAPL")
