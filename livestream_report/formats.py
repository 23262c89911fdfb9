"""
Format definitions for livestream-commerce exports.

A `FormatDefinition` describes one platform: how to recognise its header
block, which canonical layout(s) it uses, how derived columns are computed,
and which aggregates the report sheets carry. A platform may ship more than
one physical layout (Shopee has a monthly livestream export and a daily CSV),
so detection resolves to a concrete `Layout` as well as the definition.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Mapping

from openpyxl.utils import get_column_letter

from livestream_report.dates import iso_week, month_index
from livestream_report.formulas import Formula, Measure, RangeSet, measure_columns, render_measure
from livestream_report.tabular import TabularSource


DETECTION_ROWS = 10


class FormatId(str, Enum):
    TIKTOK_LIVESTREAM = "TIKTOK_LIVESTREAM"
    SHOPEE_MONTHLY = "SHOPEE_MONTHLY"
    UNSUPPORTED = "UNSUPPORTED"


@dataclass(frozen=True)
class Layout:
    name: str
    headers: tuple[str, ...]
    cleaning_rules: Mapping[int, str]
    derived_headers: tuple[str, ...]
    derived_columns: tuple[str, ...]
    range_columns: Mapping[str, str | None]
    anchor_columns: tuple[int, int] = (1, 2)

    def rule_for(self, index: int) -> str:
        return self.cleaning_rules.get(index, "text")

    def columns_with_rule(self, rule: str) -> list[int]:
        """1-based column numbers whose cleaning rule is `rule`."""
        return sorted(i + 1 for i, r in self.cleaning_rules.items() if r == rule)

    @property
    def canonical_columns(self) -> list[str]:
        return [get_column_letter(i) for i in range(1, len(self.headers) + 1)]

    @property
    def all_columns(self) -> list[str]:
        return self.canonical_columns + list(self.derived_columns)

    def build_ranges(self, start_row: int, last_row: int) -> RangeSet:
        return RangeSet(start_row=start_row, last_row=last_row, columns=dict(self.range_columns))


@dataclass(frozen=True)
class Detection:
    format_id: FormatId
    start_row: int
    definition: "FormatDefinition | None" = None
    layout: Layout | None = None

    @property
    def supported(self) -> bool:
        return self.definition is not None


def cell_text(sheet: TabularSource, row: int, col: int) -> str:
    value = sheet.get_cell(row, col)
    return "" if value is None else str(value).lower()


def contains_any(text: str, needles: tuple[str, ...]) -> bool:
    return any(n in text for n in needles)


TREND_MEASURES = (
    Measure("Month Index", "month_index"),
    Measure("Month", "month_name"),
    Measure("Avg CTR", "avg", "ctr", 4, fmt="percent"),
    Measure("Avg CTOR", "avg", "ctor", 4, fmt="percent"),
    Measure("Avg Viewers", "avg", "viewers", 0, fmt="int"),
    Measure("Avg Like", "avg", "likes", 0, fmt="int"),
    Measure("Avg Comment", "avg", "comments", 0, fmt="int"),
    Measure("Avg Share", "avg", "shares", 0, fmt="int"),
)


class FormatDefinition:
    """Base class; subclasses fill in the class attributes and `detect`."""

    id: FormatId
    layouts: tuple[Layout, ...] = ()
    metrics: tuple[Measure, ...] = ()
    summary: tuple[Measure, ...] = ()
    trend: tuple[Measure, ...] = TREND_MEASURES

    def detect(self, sheet: TabularSource) -> Detection | None:
        raise NotImplementedError

    def layout(self, name: str | None = None) -> Layout:
        if name is None:
            return self.layouts[0]
        for lay in self.layouts:
            if lay.name == name:
                return lay
        raise KeyError(f"{self.id.value} has no layout '{name}'")

    def _detected(self, start_row: int, layout: Layout) -> Detection:
        return Detection(format_id=self.id, start_row=start_row, definition=self, layout=layout)

    # ---- derived clean-data columns ----

    def derived_values(
        self,
        layout: Layout,
        sheet: TabularSource,
        source_row: int,
        cleaned: Mapping[str, Any],
        tz: str,
    ) -> dict[str, Any]:
        """Python-side values for the derived columns of one record."""
        raise NotImplementedError

    def raw_data_formulas(self, row: int, layout: Layout | None = None) -> dict[str, Formula]:
        """Derived columns that are written as formulas (the rest are values)."""
        return {}

    # ---- aggregate formulas ----

    def metrics_formulas(self, row: int, ranges: RangeSet) -> dict[str, Formula]:
        cols = measure_columns(self.metrics)
        out: dict[str, Formula] = {}
        for m in self.metrics:
            if m.kind == "date":
                continue
            out[cols[m.header]] = render_measure(m, ranges, key_cell=f"B{row}", key_field="start_date")
        return out

    def summary_formulas(self, ranges: RangeSet, metrics_last_row: int) -> dict[str, Formula]:
        return {
            m.header: render_measure(
                m,
                ranges,
                key_cell="",
                key_field="start_date",
                metrics_rows=(2, max(metrics_last_row, 2)),
                metrics_columns=measure_columns(self.metrics),
            )
            for m in self.summary
        }

    def trend_formulas(self, row: int, ranges: RangeSet) -> dict[str, Formula]:
        cols = measure_columns(self.trend)
        return {
            cols[m.header]: render_measure(m, ranges, key_cell=f"A{row}", key_field="month")
            for m in self.trend
            if m.kind not in ("month_index", "month_name")
        }


def start_fields(start: Any) -> dict[str, Any]:
    """Date/week/month helpers shared by every layout; blanks when undated."""
    if not isinstance(start, date):
        return {"date": "", "week": "", "month": ""}
    return {"date": start, "week": iso_week(start), "month": month_index(start)}


def end_clock(start: datetime | None, **duration: float) -> str:
    """HH:MM of start + duration; "" when the start is unknown or the sum overflows."""
    if start is None:
        return ""
    try:
        return (start + timedelta(**duration)).strftime("%H:%M")
    except (OverflowError, ValueError):
        return ""


def per_hour(amount: float, hours: float) -> float:
    """amount / hours; 0 when hours is zero or either side is not finite."""
    if not hours or not math.isfinite(hours) or not math.isfinite(amount):
        return 0
    return amount / hours
