from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

import pandas as pd


DEFAULT_TIMEZONE = "Asia/Jakarta"

EXCEL_EPOCH = pd.Timestamp("1899-12-30")
# ~1954 to ~2064, anything else is not a date serial
SERIAL_MIN, SERIAL_MAX = 20000, 60000

_DMY = re.compile(
    r"^\s*(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})"
    r"(?:[ T]+(\d{1,2}):(\d{2})(?::(\d{2}))?)?"
)
_YMD = re.compile(
    r"^\s*(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})"
    r"(?:[ T]+(\d{1,2}):(\d{2})(?::(\d{2}))?)?"
)


def _local(ts: pd.Timestamp, tz: str) -> datetime:
    # naive values are already wall-clock time in the export's zone
    if ts.tzinfo is not None:
        ts = ts.tz_convert(tz).tz_localize(None)
    return ts.to_pydatetime()


def _from_match(m: re.Match, order: str) -> datetime | None:
    # only the anchored prefix is parsed; impossible dates ("31-02-2025") give NaT
    fmt = "%d-%m-%Y" if order == "dmy" else "%Y-%m-%d"
    hour, second = m.group(4), m.group(6)
    if hour:
        fmt += " %H:%M" + (":%S" if second else "")
    text = re.sub(r"[/.]", "-", m.group(0).strip())
    text = re.sub(r"[ T]+", " ", text)
    ts = pd.to_datetime(text, format=fmt, errors="coerce")
    return None if pd.isna(ts) else ts.to_pydatetime()


def parse_local_datetime(value: Any, tz: str = DEFAULT_TIMEZONE) -> datetime | None:
    """
    Resolve a cell to a naive wall-clock datetime in `tz`.

    Accepts native datetimes/dates (aware ones are converted to `tz`), Excel
    date serials, and day-first text such as "05-01-2025 19:30". Returns None
    when the encoding cannot be recognised.
    """
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else _local(value, tz)
    if isinstance(value, datetime):
        return _local(pd.Timestamp(value), tz)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value != value or not (SERIAL_MIN <= value <= SERIAL_MAX):
            return None
        ts = EXCEL_EPOCH + pd.to_timedelta(float(value), unit="D")
        return ts.round("s").to_pydatetime()

    s = str(value).strip()
    if not s:
        return None
    m = _DMY.match(s)
    if m:
        return _from_match(m, "dmy")
    m = _YMD.match(s)
    if m:
        return _from_match(m, "ymd")
    # serials that arrived as text ("45662" / "45662.0")
    try:
        num = float(s)
    except ValueError:
        return None
    return parse_local_datetime(num, tz)


def parse_period_date(value: Any, tz: str = DEFAULT_TIMEZONE) -> date | None:
    """Calendar date of a "Periode Data" cell; any time part is discarded."""
    dt = parse_local_datetime(value, tz)
    return dt.date() if dt else None


def iso_week(d: date) -> int:
    return d.isocalendar()[1]


def month_index(d: date) -> int:
    """0 = January ... 11 = December."""
    return d.month - 1
