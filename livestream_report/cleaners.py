from __future__ import annotations

import math
import re
from datetime import time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable


CLEANING_RULES = ("currency", "percentage", "numeric", "duration", "text")

# "Rp", "RM" and "S$" first so their letters go with the symbol
_CURRENCY_GLYPHS = re.compile(r"Rp|RM|S\$|[$€¥£₹₽¢₪₨₱₦₡₵₴₸₺₼฿]")
_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_HMS = re.compile(r"^(\d+):(\d+):(\d+)$")


def excel_round(x: float, digits: int = 0) -> float:
    """ROUND as the spreadsheet does it: half away from zero."""
    q = Decimal(1).scaleb(-digits)
    return float(Decimal(str(x)).quantize(q, rounding=ROUND_HALF_UP))


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _leading_float(s: str) -> float | None:
    m = _NUMBER_PREFIX.match(s)
    if not m:
        return None
    n = float(m.group(0))
    return n if math.isfinite(n) else None


def clean_currency(value: Any) -> float:
    """
    Strip currency glyphs and every separator, then parse.

    Both "." and "," are treated as separators, so fractional digits are folded
    into the integer part: "Rp1.500.000" -> 1500000, "$1,500.00" -> 150000.
    Numbers pass through untouched.
    """
    if _is_number(value) and not _is_absent(value):
        return value
    if _is_absent(value):
        return 0
    s = _CURRENCY_GLYPHS.sub("", str(value))
    s = re.sub(r"[,.']", "", s)
    s = re.sub(r"\s+", "", s)
    n = _leading_float(s)
    return 0 if n is None else n


def clean_percentage(value: Any) -> float:
    """
    "15%" -> 0.15, "12,5%" -> 0.125. Strings without a "%" are taken as
    already-decimal fractions ("0.15" -> 0.15).
    """
    if _is_number(value) and not _is_absent(value):
        return value
    if _is_absent(value):
        return 0
    raw = str(value)
    s = raw.replace("%", "").replace(",", ".")
    s = re.sub(r"\s+", "", s)
    n = _leading_float(s)
    if n is None:
        return 0
    if "%" in raw:
        return n / 100
    return n


def clean_numeric(value: Any) -> float:
    if _is_number(value) and not _is_absent(value):
        return value
    if _is_absent(value):
        return 0
    s = re.sub(r"[,\s]", "", str(value))
    n = _leading_float(s)
    return 0 if n is None else n


def clean_duration(value: Any) -> float:
    """
    Decimal hours. "4:02:02" -> 4.03 (rounded to 2 decimals); numbers are
    assumed to be hours already. Spreadsheet time/timedelta cells are
    converted the same way as the H:MM:SS text.
    """
    if _is_number(value) and not _is_absent(value):
        return value
    if _is_absent(value):
        return 0
    if isinstance(value, timedelta):
        return excel_round(value.total_seconds() / 3600, 2)
    if isinstance(value, time):
        return excel_round(value.hour + value.minute / 60 + value.second / 3600, 2)

    s = str(value).strip()
    m = _HMS.match(s)
    if m:
        hours, minutes, seconds = (int(g) for g in m.groups())
        return excel_round(hours + minutes / 60 + seconds / 3600, 2)
    return clean_numeric(s)


def clean_text(value: Any) -> str:
    if _is_absent(value):
        return ""
    return str(value).strip()


CLEANERS: dict[str, Callable[[Any], Any]] = {
    "currency": clean_currency,
    "percentage": clean_percentage,
    "numeric": clean_numeric,
    "duration": clean_duration,
    "text": clean_text,
}


def apply_rule(rule: str | None, value: Any) -> Any:
    """Unknown or missing rules fall back to text."""
    return CLEANERS.get(rule or "text", clean_text)(value)
