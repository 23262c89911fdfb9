from __future__ import annotations

import logging

from livestream_report.formats import Detection, FormatDefinition, FormatId
from livestream_report.shopee import ShopeeFormat
from livestream_report.tabular import TabularSource
from livestream_report.tiktok import TikTokFormat


logger = logging.getLogger(__name__)

DEFAULT_START_ROW = 2


class UnsupportedFormatError(Exception):
    def __init__(self, label: str = "") -> None:
        where = f" in {label}" if label else ""
        super().__init__(f"No supported livestream export header found{where} (checked the first 10 rows)")
        self.label = label


class FormatRegistry:
    """
    Ordered set of format definitions. Detection asks each definition in
    registration order and the first one to claim the sheet wins.
    """

    def __init__(self, definitions: list[FormatDefinition] | None = None) -> None:
        self._definitions: list[FormatDefinition] = []
        for d in definitions or []:
            self.register(d)

    def register(self, definition: FormatDefinition) -> None:
        if any(d.id == definition.id for d in self._definitions):
            logger.warning("Format %s is already registered; skipping duplicate registration", definition.id.value)
            return
        self._definitions.append(definition)

    def get_definition(self, format_id: FormatId) -> FormatDefinition | None:
        for d in self._definitions:
            if d.id == format_id:
                return d
        return None

    def available_formats(self) -> list[FormatDefinition]:
        return list(self._definitions)

    def detect_format(self, sheet: TabularSource) -> Detection:
        matches = [m for m in (d.detect(sheet) for d in self._definitions) if m is not None]
        if not matches:
            return Detection(format_id=FormatId.UNSUPPORTED, start_row=DEFAULT_START_ROW)
        if len(matches) > 1:
            logger.warning(
                "Sheet matches several formats (%s); using %s",
                ", ".join(m.format_id.value for m in matches),
                matches[0].format_id.value,
            )
        return matches[0]

    def require_format(self, sheet: TabularSource, label: str = "") -> Detection:
        detection = self.detect_format(sheet)
        if not detection.supported:
            raise UnsupportedFormatError(label)
        return detection


def default_registry() -> FormatRegistry:
    return FormatRegistry([TikTokFormat(), ShopeeFormat()])
