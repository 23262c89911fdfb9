from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from livestream_report.formats import Layout
from livestream_report.registry import FormatRegistry, default_registry
from livestream_report.tabular import TabularSource


@dataclass(frozen=True)
class DataShape:
    start_row: int
    last_row: int

    @property
    def rows(self) -> int:
        return max(self.last_row - self.start_row + 1, 0)

    @property
    def empty(self) -> bool:
        return self.last_row < self.start_row


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def detect_data_length(
    sheet: TabularSource,
    start_row: int | None = None,
    layout: Layout | None = None,
    registry: FormatRegistry | None = None,
) -> DataShape:
    """
    Walk down from `start_row` until both anchor columns are blank.

    Without a start row the format is detected first; an undetected sheet
    starts at row 2.
    """
    if start_row is None or layout is None:
        detection = (registry or default_registry()).detect_format(sheet)
        start_row = start_row or detection.start_row
        layout = layout or detection.layout

    first, second = layout.anchor_columns if layout else (1, 2)
    row = start_row
    while row <= sheet.max_row and not (_blank(sheet.get_cell(row, first)) and _blank(sheet.get_cell(row, second))):
        row += 1

    return DataShape(start_row=start_row, last_row=row - 1)
