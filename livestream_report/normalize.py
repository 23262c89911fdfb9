from __future__ import annotations

from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

from livestream_report.cleaners import apply_rule
from livestream_report.dates import DEFAULT_TIMEZONE
from livestream_report.formats import FormatDefinition, Layout
from livestream_report.formulas import write_cell
from livestream_report.tabular import TabularSource


CLEAN_START_ROW = 2
OUTPUT_MODES = ("formulas", "values")


def clean_row(layout: Layout, sheet: TabularSource, source_row: int) -> dict[str, Any]:
    """Canonical typed values of one source row, keyed by column letter."""
    return {
        get_column_letter(i + 1): apply_rule(layout.rule_for(i), sheet.get_cell(source_row, i + 1))
        for i in range(len(layout.headers))
    }


def clean_and_copy_data(
    sheet: TabularSource,
    ws,
    start_row: int,
    last_row: int,
    definition: FormatDefinition,
    layout: Layout,
    *,
    mode: str = "formulas",
    tz: str = DEFAULT_TIMEZONE,
) -> pd.DataFrame:
    """
    Write the clean-data sheet and return the same records as a DataFrame.

    Row 1 holds the canonical headers followed by the derived headers; source
    row `start_row + k` lands on output row `2 + k`. The returned frame is
    keyed by column letter and always carries Python-side derived values,
    whatever `mode` wrote into the sheet.
    """
    if mode not in OUTPUT_MODES:
        raise ValueError(f"output mode must be one of {OUTPUT_MODES}, got {mode!r}")

    for j, header in enumerate(layout.headers, start=1):
        ws.cell(row=1, column=j, value=header)
    for col, header in zip(layout.derived_columns, layout.derived_headers):
        ws[f"{col}1"] = header

    records: list[dict[str, Any]] = []
    out_row = CLEAN_START_ROW
    for source_row in range(start_row, last_row + 1):
        cleaned = clean_row(layout, sheet, source_row)
        derived = definition.derived_values(layout, sheet, source_row, cleaned, tz)
        formulas = definition.raw_data_formulas(out_row, layout) if mode == "formulas" else {}

        for j, col in enumerate(layout.canonical_columns, start=1):
            ws.cell(row=out_row, column=j, value=cleaned[col])
        for col in layout.derived_columns:
            write_cell(ws, f"{col}{out_row}", formulas.get(col, derived.get(col, "")))

        records.append({**cleaned, **derived})
        out_row += 1

    return pd.DataFrame(records, columns=layout.all_columns)

