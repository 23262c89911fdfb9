from __future__ import annotations

import calendar
import math
from datetime import date
from typing import Any

import pandas as pd

from livestream_report.cleaners import excel_round
from livestream_report.formats import FormatDefinition, Layout
from livestream_report.formulas import Measure, RangeSet, measure_columns


METRICS_START_ROW = 2


def collect_dates(clean: pd.DataFrame, layout: Layout) -> list[date]:
    col = layout.range_columns["start_date"]
    if clean.empty:
        return []
    return sorted({v for v in clean[col] if isinstance(v, date)})


def collect_months(clean: pd.DataFrame, layout: Layout) -> list[int]:
    """Month indexes 0-11 in numeric order (not chronological across years)."""
    col = layout.range_columns["month"]
    if clean.empty:
        return []
    return sorted({int(v) for v in pd.to_numeric(clean[col], errors="coerce").dropna()})


def _py(x: Any) -> Any:
    return x.item() if hasattr(x, "item") else x


def _numbers(clean: pd.DataFrame, col: str) -> pd.Series:
    return pd.to_numeric(clean[col], errors="coerce").dropna()


def _rounded(x: Any, digits: int | None) -> Any:
    x = _py(x)
    if digits is None or not isinstance(x, (int, float)) or not math.isfinite(x):
        return x
    return excel_round(x, digits)


def evaluate_measure(m: Measure, rows: pd.DataFrame, layout: Layout, key: Any = None) -> Any:
    """
    Evaluate one measure over `rows` (already filtered to a key, or the whole
    dataset for summary measures) with the same semantics as its formula.
    """
    cols = layout.range_columns
    if m.kind == "weekday":
        return key.strftime("%A")
    if m.kind in ("date", "month_index"):
        return key
    if m.kind == "month_name":
        return calendar.month_name[key + 1]
    if m.kind == "week":
        weeks = [w for w in rows[cols["week"]] if w != ""]
        return _py(weeks[0]) if weeks else ""
    if m.kind == "count":
        return len(rows)
    if m.kind == "blank" or m.field is None or cols.get(m.field) is None:
        return ""

    values = _numbers(rows, cols[m.field])
    if m.kind == "sum":
        return _py(values.sum())
    if m.kind in ("min", "max"):
        # MINIFS/MAXIFS give 0 when nothing matches
        if values.empty:
            return 0
        return _py(values.min() if m.kind == "min" else values.max())
    if m.kind in ("avg", "median"):
        if values.empty:
            return ""
        return _rounded(values.mean() if m.kind == "avg" else values.median(), m.digits)
    if m.kind == "prime_time":
        if values.empty:
            return ""
        peak = values.max()
        times = rows.loc[values[values == peak].index, cols["start_time"]]
        return ", ".join(str(t) for t in times if t not in ("", None))
    raise ValueError(f"Unknown measure kind: {m.kind}")


def _date_header(definition: FormatDefinition) -> str:
    return next(m.header for m in definition.metrics if m.kind == "date")


def day_metric_rows(
    definition: FormatDefinition,
    layout: Layout,
    clean: pd.DataFrame,
    ranges: RangeSet,
    mode: str = "formulas",
) -> list[dict[str, Any]]:
    """One row per distinct start date, ascending, keyed by metrics column letter."""
    cols = measure_columns(definition.metrics)
    date_col = cols[_date_header(definition)]
    out: list[dict[str, Any]] = []

    for i, day in enumerate(collect_dates(clean, layout)):
        row = METRICS_START_ROW + i
        if mode == "formulas":
            values: dict[str, Any] = dict(definition.metrics_formulas(row, ranges))
            values[date_col] = day
        else:
            group = clean[clean[layout.range_columns["start_date"]] == day]
            values = {cols[m.header]: evaluate_measure(m, group, layout, day) for m in definition.metrics}
        out.append(values)

    return out


def summary_rows(
    definition: FormatDefinition,
    layout: Layout,
    clean: pd.DataFrame,
    ranges: RangeSet,
    day_rows: list[dict[str, Any]],
    mode: str = "formulas",
) -> list[tuple[Measure, Any]]:
    """
    The fixed, ordered summary statistics. The per-day average always reads the
    day-level sum column so both sheets agree on totals.
    """
    if mode == "formulas":
        metrics_last_row = METRICS_START_ROW + len(day_rows) - 1
        formulas = definition.summary_formulas(ranges, metrics_last_row)
        return [(m, formulas[m.header]) for m in definition.summary]

    cols = measure_columns(definition.metrics)
    out: list[tuple[Measure, Any]] = []
    for m in definition.summary:
        if m.kind == "day_average":
            sums = pd.to_numeric(pd.Series([r[cols[m.source]] for r in day_rows], dtype=object), errors="coerce").dropna()
            value = _rounded(sums.mean(), m.digits) if not sums.empty else ""
        else:
            value = evaluate_measure(m, clean, layout)
        out.append((m, value))
    return out


def trend_rows(
    definition: FormatDefinition,
    layout: Layout,
    clean: pd.DataFrame,
    ranges: RangeSet,
    mode: str = "formulas",
) -> list[dict[str, Any]]:
    cols = measure_columns(definition.trend)
    out: list[dict[str, Any]] = []

    for i, month in enumerate(collect_months(clean, layout)):
        row = METRICS_START_ROW + i
        if mode == "formulas":
            values: dict[str, Any] = dict(definition.trend_formulas(row, ranges))
            for m in definition.trend:
                if m.kind in ("month_index", "month_name"):
                    values[cols[m.header]] = evaluate_measure(m, clean, layout, month)
        else:
            group = clean[clean[layout.range_columns["month"]] == month]
            values = {cols[m.header]: evaluate_measure(m, group, layout, month) for m in definition.trend}
        out.append(values)

    return out

