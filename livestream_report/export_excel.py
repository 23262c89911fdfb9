from __future__ import annotations

from datetime import date, datetime
from typing import Any

from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from livestream_report.formats import Layout
from livestream_report.formulas import Measure, measure_columns, write_cell
from livestream_report.tabular import TabularSource


HEADER_FILL = PatternFill("solid", fgColor="D9E1F2")  # light blue-grey
HEADER_FONT = Font(bold=True)
CENTER = Alignment(horizontal="center")
LEFT = Alignment(horizontal="left")

PERCENT_FMT = "0.00%"
INT_FMT = "#,##0"
DECIMAL_FMT = "0.00"
DATE_FMT = "yyyy-mm-dd"

CURRENCY_FORMATS = {
    "USD": "$#,##0.00_);[Red]($#,##0.00)",
    "EUR": "€#,##0.00_);[Red](€#,##0.00)",
    "GBP": "£#,##0.00_);[Red](£#,##0.00)",
    "JPY": "¥#,##0_);[Red](¥#,##0)",
    "IDR": "Rp#,##0.00_);[Red](Rp#,##0.00)",
    "SGD": "S$#,##0.00_);[Red](S$#,##0.00)",
    "MYR": "RM#,##0.00_);[Red](RM#,##0.00)",
    "THB": "฿#,##0.00_);[Red](฿#,##0.00)",
}

# checked in order: "S$" before "$"
CURRENCY_MARKERS = (
    ("S$", "SGD"),
    ("$", "USD"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("¥", "JPY"),
    ("RM", "MYR"),
    ("฿", "THB"),
    ("Rp", "IDR"),
)

DEFAULT_CURRENCY = "IDR"


def currency_format(currency_code: str | None) -> str:
    code = (currency_code or DEFAULT_CURRENCY).upper().strip()
    return CURRENCY_FORMATS.get(code, CURRENCY_FORMATS[DEFAULT_CURRENCY])


def detect_currency(sheet: TabularSource, layout: Layout, start_row: int, last_row: int) -> str:
    """Look for currency glyphs in the first rows of the raw currency columns."""
    for row in range(start_row, min(start_row + 5, last_row) + 1):
        for col in layout.columns_with_rule("currency"):
            value = sheet.get_cell(row, col)
            text = "" if value is None else str(value)
            for marker, code in CURRENCY_MARKERS:
                if marker in text:
                    return code
    return DEFAULT_CURRENCY


def _number_format(fmt: str | None, currency_fmt: str) -> str | None:
    return {
        "currency": currency_fmt,
        "percent": PERCENT_FMT,
        "int": INT_FMT,
        "decimal": DECIMAL_FMT,
        "date": DATE_FMT,
    }.get(fmt or "")


def _excel_value(value: Any) -> Any:
    # openpyxl only takes plain scalars
    if value is None or isinstance(value, (str, int, float, date, datetime)):
        return value
    if hasattr(value, "item"):
        return value.item()
    return str(value)


def _style_header_row(ws, header_row: int, max_col: int) -> None:
    for c in range(1, max_col + 1):
        cell = ws.cell(row=header_row, column=c)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = CENTER


def _auto_fit_columns(ws, min_row: int = 1, max_row: int | None = None, max_col: int | None = None) -> None:
    if max_row is None:
        max_row = ws.max_row
    if max_col is None:
        max_col = ws.max_column

    for col in range(1, max_col + 1):
        max_len = 0
        for row in range(min_row, max_row + 1):
            v = ws.cell(row=row, column=col).value
            if v is None:
                continue
            # formulas are long but render short
            s = str(v)
            if s.startswith("=") or not isinstance(v, (str, int, float)):
                s = s[:12]
            if len(s) > max_len:
                max_len = len(s)

        width = min(max_len + 2, 45)
        ws.column_dimensions[get_column_letter(col)].width = max(10, width)


def copy_raw_data(sheet: TabularSource, ws) -> None:
    """Verbatim copy of the input sheet."""
    for row_number, values in sheet.iter_rows():
        for col, value in enumerate(values, start=1):
            if value is None:
                continue
            ws.cell(row=row_number, column=col, value=_excel_value(value))


def format_clean_sheet(ws, layout: Layout, last_row: int, currency_fmt: str) -> None:
    ws.freeze_panes = "A2"
    _style_header_row(ws, header_row=1, max_col=len(layout.all_columns))

    by_rule = {
        "percentage": PERCENT_FMT,
        "currency": currency_fmt,
        "duration": DECIMAL_FMT,
    }
    for rule, fmt in by_rule.items():
        for col in layout.columns_with_rule(rule):
            for r in range(2, last_row + 1):
                ws.cell(row=r, column=col).number_format = fmt

    date_col = layout.range_columns["start_date"]
    per_hour_col = layout.derived_columns[-1]
    for r in range(2, last_row + 1):
        ws[f"{date_col}{r}"].number_format = DATE_FMT
        ws[f"{per_hour_col}{r}"].number_format = currency_fmt

    _auto_fit_columns(ws)


def write_measure_table(
    ws,
    measures: tuple[Measure, ...],
    rows: list[dict[str, Any]],
    currency_fmt: str,
) -> int:
    """Header row plus one row per entry of `rows`; returns the last row written."""
    cols = measure_columns(measures)
    for j, m in enumerate(measures, start=1):
        ws.cell(row=1, column=j, value=m.header)

    for i, values in enumerate(rows, start=2):
        for m in measures:
            col = cols[m.header]
            cell_ref = f"{col}{i}"
            write_cell(ws, cell_ref, _excel_value(values.get(col, "")))
            fmt = _number_format(m.fmt, currency_fmt)
            if fmt:
                ws[cell_ref].number_format = fmt
            if m.fmt == "text":
                ws[cell_ref].alignment = LEFT

    ws.freeze_panes = "A2"
    _style_header_row(ws, header_row=1, max_col=len(measures))
    _auto_fit_columns(ws)
    return len(rows) + 1


def write_summary_sheet(ws, rows: list[tuple[Measure, Any]], currency_fmt: str) -> None:
    ws.cell(row=1, column=1, value="Metric")
    ws.cell(row=1, column=2, value="Value")

    for r, (m, value) in enumerate(rows, start=2):
        ws.cell(row=r, column=1, value=m.header).font = HEADER_FONT
        write_cell(ws, f"B{r}", _excel_value(value))
        fmt = _number_format(m.fmt, currency_fmt)
        if fmt:
            ws[f"B{r}"].number_format = fmt

    ws.freeze_panes = "A2"
    _style_header_row(ws, header_row=1, max_col=2)
    _auto_fit_columns(ws)
