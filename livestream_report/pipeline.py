from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import pandas as pd
from openpyxl import Workbook

from livestream_report.aggregate import collect_months, day_metric_rows, summary_rows, trend_rows
from livestream_report.dates import DEFAULT_TIMEZONE
from livestream_report.export_excel import (
    copy_raw_data,
    currency_format,
    detect_currency,
    format_clean_sheet,
    write_measure_table,
    write_summary_sheet,
)
from livestream_report.formats import FormatDefinition, FormatId
from livestream_report.formulas import CLEAN_SHEET, METRICS_SHEET, measure_columns
from livestream_report.ingest import read_one_file
from livestream_report.normalize import CLEAN_START_ROW, OUTPUT_MODES, clean_and_copy_data
from livestream_report.registry import FormatRegistry, default_registry
from livestream_report.shape import detect_data_length
from livestream_report.tabular import TabularSource


logger = logging.getLogger(__name__)

RAW_SHEET = "raw data"
SUMMARY_SHEET = "summary"
TREND_SHEET = "trend"
SHEET_ORDER = (RAW_SHEET, CLEAN_SHEET, METRICS_SHEET, SUMMARY_SHEET, TREND_SHEET)


@dataclass
class ProcessResult:
    workbook: Workbook
    format_id: FormatId
    layout: str
    start_row: int
    last_row: int
    rows: int
    dates: list[date]
    months: list[int]
    currency: str
    clean: pd.DataFrame
    warnings: list[str] = field(default_factory=list)


def process_sheet(
    source: TabularSource,
    *,
    registry: FormatRegistry | None = None,
    mode: str = "formulas",
    currency_code: str | None = None,
    timezone: str = DEFAULT_TIMEZONE,
    label: str = "",
) -> ProcessResult:
    """
    Build the five-sheet report workbook for one input sheet.

    Raises UnsupportedFormatError before anything is written when no format
    claims the sheet. An empty dataset still yields every sheet, with headers
    only.
    """
    if mode not in OUTPUT_MODES:
        raise ValueError(f"output mode must be one of {OUTPUT_MODES}, got {mode!r}")

    registry = registry or default_registry()
    detection = registry.require_format(source, label or getattr(source, "label", ""))
    definition, layout = detection.definition, detection.layout

    shape = detect_data_length(source, detection.start_row, layout)
    warnings: list[str] = []
    if shape.empty:
        warnings.append(f"No data rows found below the header (expected data from row {shape.start_row})")

    currency = (currency_code or "").upper().strip()
    if not currency:
        currency = detect_currency(source, layout, shape.start_row, shape.last_row)
    currency_fmt = currency_format(currency)

    wb = Workbook()
    wb.remove(wb["Sheet"])
    sheets = {name: wb.create_sheet(title=name) for name in SHEET_ORDER}

    copy_raw_data(source, sheets[RAW_SHEET])

    clean = clean_and_copy_data(
        source,
        sheets[CLEAN_SHEET],
        shape.start_row,
        shape.last_row,
        definition,
        layout,
        mode=mode,
        tz=timezone,
    )
    clean_last_row = CLEAN_START_ROW + shape.rows - 1
    format_clean_sheet(sheets[CLEAN_SHEET], layout, clean_last_row, currency_fmt)

    ranges = layout.build_ranges(CLEAN_START_ROW, max(clean_last_row, CLEAN_START_ROW))
    day_rows = []
    summary = []
    months_rows = []
    if not shape.empty:
        day_rows = day_metric_rows(definition, layout, clean, ranges, mode)
        months_rows = trend_rows(definition, layout, clean, ranges, mode)
        if day_rows:
            summary = summary_rows(definition, layout, clean, ranges, day_rows, mode)
        else:
            warnings.append("No session has a readable start date; metrics, summary and trend are empty")

    write_measure_table(sheets[METRICS_SHEET], definition.metrics, day_rows, currency_fmt)
    write_summary_sheet(sheets[SUMMARY_SHEET], summary, currency_fmt)
    write_measure_table(sheets[TREND_SHEET], definition.trend, months_rows, currency_fmt)

    dates = [r[_date_column(definition)] for r in day_rows]
    logger.info(
        "%s: %s/%s rows %s-%s, %d day(s), mode=%s",
        label or "sheet",
        detection.format_id.value,
        layout.name,
        shape.start_row,
        shape.last_row,
        len(dates),
        mode,
    )

    return ProcessResult(
        workbook=wb,
        format_id=detection.format_id,
        layout=layout.name,
        start_row=shape.start_row,
        last_row=shape.last_row,
        rows=shape.rows,
        dates=dates,
        months=collect_months(clean, layout),
        currency=currency,
        clean=clean,
        warnings=warnings,
    )


def _date_column(definition: FormatDefinition) -> str:
    cols = measure_columns(definition.metrics)
    return next(cols[m.header] for m in definition.metrics if m.kind == "date")


def output_path(path: Path, out_dir: Path) -> Path:
    return out_dir / f"processed_{path.stem}.xlsx"


def process_file(
    path: Path,
    out_dir: Path,
    *,
    registry: FormatRegistry | None = None,
    mode: str = "formulas",
    currency_code: str | None = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> tuple[Path, ProcessResult]:
    """Read one export, build its report and save it as processed_<stem>.xlsx."""
    source = read_one_file(path)
    result = process_sheet(
        source,
        registry=registry,
        mode=mode,
        currency_code=currency_code,
        timezone=timezone,
        label=path.name,
    )

    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_path(path, out_dir)
    result.workbook.save(out_path)
    return out_path, result

