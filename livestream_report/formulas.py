"""
Spreadsheet-formula text generation.

Aggregate columns are declared once as `Measure`s and rendered here into
range-scoped conditional formulas over the clean-data sheet. The same
declarations are evaluated in Python by `livestream_report.aggregate` when
plain values are requested instead of formulas.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from openpyxl.utils import get_column_letter
from openpyxl.worksheet.formula import ArrayFormula


CLEAN_SHEET = "clean data"
METRICS_SHEET = "metrics"


class Formula(str):
    """Formula text (without the leading "=") destined for a single cell."""


@dataclass(frozen=True)
class RangeSet:
    """Named absolute references into the clean-data sheet."""

    start_row: int
    last_row: int
    columns: Mapping[str, str | None]
    sheet: str = CLEAN_SHEET

    def has(self, name: str) -> bool:
        return self.columns.get(name) is not None

    def ref(self, name: str) -> str:
        col = self.columns.get(name)
        if col is None:
            raise KeyError(f"Range '{name}' is not available for this layout")
        return f"'{self.sheet}'!${col}${self.start_row}:${col}${self.last_row}"


@dataclass(frozen=True)
class Measure:
    """
    One aggregate column (or summary row).

    kind: weekday | date | week | count | sum | avg | min | max | median |
          prime_time | day_average | blank
    field: RangeSet name the aggregate reads.
    digits: ROUND precision; None leaves the value unrounded.
    source: for day_average, the metrics header whose column is averaged.
    fmt: display category used when formatting (currency, percent, int,
         decimal, date, text).
    """

    header: str
    kind: str
    field: str | None = None
    digits: int | None = None
    source: str | None = None
    fmt: str | None = None


# Functions newer than Excel 2010 must be stored with their prefixes or
# Excel shows #NAME? when the file is opened.
_PREFIXES = {
    "FILTER": "_xlfn._xlws.FILTER",
    "SORT": "_xlfn._xlws.SORT",
    "UNIQUE": "_xlfn.UNIQUE",
    "MAXIFS": "_xlfn.MAXIFS",
    "MINIFS": "_xlfn.MINIFS",
    "TEXTJOIN": "_xlfn.TEXTJOIN",
    "XLOOKUP": "_xlfn.XLOOKUP",
    "ISOWEEKNUM": "_xlfn.ISOWEEKNUM",
}
_FN_RE = re.compile(r"(?<![\w.])(" + "|".join(_PREFIXES) + r")\(")


def with_prefixes(text: str) -> str:
    return _FN_RE.sub(lambda m: _PREFIXES[m.group(1)] + "(", text)


def needs_array(text: str) -> bool:
    return "FILTER(" in text


def _round(expr: str, digits: int | None) -> str:
    if digits is None:
        return expr
    return f"ROUND({expr},{digits})"


def render_measure(
    m: Measure,
    ranges: RangeSet,
    *,
    key_cell: str,
    key_field: str,
    metrics_rows: tuple[int, int] | None = None,
    metrics_columns: Mapping[str, str] | None = None,
) -> Formula:
    """
    Render one measure as formula text.

    `key_cell` is the cell holding this row's key (a date or month index) and
    `key_field` the clean-data range it is compared against. Summary measures
    pass an empty `key_cell`, which drops the per-key filter.
    """
    if m.kind == "blank":
        return Formula('""')
    if m.kind == "weekday":
        return Formula(f'TEXT({key_cell},"dddd")')
    if m.kind == "week":
        return Formula(
            f'XLOOKUP({key_cell},{ranges.ref("start_date")},{ranges.ref("week")},"")'
        )
    if m.kind == "day_average":
        if metrics_rows is None or metrics_columns is None:
            raise ValueError(f"{m.header}: day_average needs the metrics rows and columns")
        first, last = metrics_rows
        col = metrics_columns[m.source]
        return Formula(_round(f"AVERAGE({METRICS_SHEET}!${col}${first}:${col}${last})", m.digits))

    key_r = ranges.ref(key_field)
    if m.kind == "count":
        return Formula(f"COUNTIF({key_r},{key_cell})")

    if m.field is None or not ranges.has(m.field):
        return Formula('""')
    r = ranges.ref(m.field)

    if not key_cell:
        agg = {"sum": "SUM", "avg": "AVERAGE", "min": "MIN", "max": "MAX", "median": "MEDIAN"}[m.kind]
        return Formula(f'IFERROR({_round(f"{agg}({r})", m.digits)},"")')

    if m.kind == "sum":
        return Formula(f"SUMIFS({r},{key_r},{key_cell})")
    if m.kind == "avg":
        return Formula(_round(f"AVERAGEIFS({r},{key_r},{key_cell})", m.digits))
    if m.kind == "min":
        return Formula(f"MINIFS({r},{key_r},{key_cell})")
    if m.kind == "max":
        return Formula(f"MAXIFS({r},{key_r},{key_cell})")
    if m.kind == "median":
        return Formula(f'IFERROR({_round(f"MEDIAN(FILTER({r},{key_r}={key_cell}))", m.digits)},"")')
    if m.kind == "prime_time":
        # every session tying for the day's max is listed
        t = ranges.ref("start_time")
        peak = f"MAXIFS({r},{key_r},{key_cell})"
        return Formula(
            f'IFERROR(TEXTJOIN(", ",TRUE,FILTER({t},({key_r}={key_cell})*({r}={peak}))),"")'
        )
    raise ValueError(f"Unknown measure kind: {m.kind}")


def measure_columns(measures: tuple[Measure, ...]) -> dict[str, str]:
    """Header -> column letter for a row of measures laid out from column A."""
    return {m.header: get_column_letter(i) for i, m in enumerate(measures, start=1)}


def write_cell(ws, ref: str, value: Any) -> None:
    """Write a value, or a Formula as "=" text (array formula when it filters)."""
    if isinstance(value, Formula):
        text = "=" + with_prefixes(value)
        ws[ref] = ArrayFormula(ref, text) if needs_array(value) else text
    else:
        ws[ref] = value
