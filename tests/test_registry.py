"""Tests for format detection and the registry."""

import logging

import pytest

from livestream_report.formats import Detection, FormatDefinition, FormatId
from livestream_report.registry import FormatRegistry, UnsupportedFormatError, default_registry
from livestream_report.shopee import ShopeeFormat
from livestream_report.tabular import FrameSheet
from livestream_report.tiktok import TikTokFormat

from conftest import shopee_daily_row, shopee_livestream_row, tiktok_row


class AlwaysShopee(FormatDefinition):
    """Claims every sheet; used to provoke a double match."""

    id = FormatId.SHOPEE_MONTHLY
    layouts = ShopeeFormat.layouts

    def detect(self, sheet):
        return self._detected(2, self.layouts[0])


# ---------------------------------------------------------------------------
# detect_format
# ---------------------------------------------------------------------------

class TestDetectTikTok:
    def test_header_on_first_row(self, make_tiktok_sheet):
        d = default_registry().detect_format(make_tiktok_sheet([tiktok_row("05-01-2025 19:00")]))
        assert d.format_id == FormatId.TIKTOK_LIVESTREAM
        assert d.start_row == 2
        assert d.layout.name == "livestream"

    def test_header_below_title_block(self, make_tiktok_sheet):
        sheet = make_tiktok_sheet([tiktok_row("05-01-2025 19:00")], title_rows=[["Livestream data"], ["Range"]])
        d = default_registry().detect_format(sheet)
        assert d.format_id == FormatId.TIKTOK_LIVESTREAM
        assert d.start_row == 4

    def test_indonesian_header(self):
        sheet = FrameSheet.from_rows([["Streaming Langsung", "Waktu Mulai", "Durasi"]])
        d = default_registry().detect_format(sheet)
        assert d.format_id == FormatId.TIKTOK_LIVESTREAM
        assert d.start_row == 2


class TestDetectShopee:
    def test_monthly_livestream(self, make_shopee_livestream_sheet):
        d = default_registry().detect_format(make_shopee_livestream_sheet([shopee_livestream_row("05-01-2025 19:00")]))
        assert d.format_id == FormatId.SHOPEE_MONTHLY
        assert d.layout.name == "livestream"
        assert d.start_row == 2

    def test_daily_with_english_header_row(self, make_shopee_daily_sheet):
        d = default_registry().detect_format(make_shopee_daily_sheet([shopee_daily_row("01-01-2025")]))
        assert d.format_id == FormatId.SHOPEE_MONTHLY
        assert d.layout.name == "daily"
        assert d.start_row == 3

    def test_daily_single_header_row(self, make_shopee_daily_sheet):
        sheet = make_shopee_daily_sheet([shopee_daily_row("01-01-2025")], english_row=False)
        d = default_registry().detect_format(sheet)
        assert d.layout.name == "daily"
        assert d.start_row == 2


class TestUnsupported:
    def test_no_markers(self):
        sheet = FrameSheet.from_rows([["Order ID", "Amount"], ["1", "10"]])
        d = default_registry().detect_format(sheet)
        assert d.format_id == FormatId.UNSUPPORTED
        assert d.start_row == 2
        assert not d.supported

    def test_header_past_probe_window(self, make_tiktok_sheet):
        sheet = make_tiktok_sheet([], title_rows=[["x"]] * 10)
        assert default_registry().detect_format(sheet).format_id == FormatId.UNSUPPORTED

    def test_require_format_raises_with_label(self):
        sheet = FrameSheet.from_rows([["Order ID"]])
        with pytest.raises(UnsupportedFormatError, match="orders.csv") as exc:
            default_registry().require_format(sheet, "orders.csv")
        assert exc.value.label == "orders.csv"


# ---------------------------------------------------------------------------
# registry bookkeeping
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_duplicate_registration_is_ignored(self, caplog):
        reg = default_registry()
        before = reg.available_formats()
        with caplog.at_level(logging.WARNING):
            reg.register(TikTokFormat())
        assert [d.id for d in reg.available_formats()] == [d.id for d in before]
        assert "already registered" in caplog.text

    def test_get_definition(self):
        reg = default_registry()
        assert isinstance(reg.get_definition(FormatId.TIKTOK_LIVESTREAM), TikTokFormat)
        assert reg.get_definition(FormatId.UNSUPPORTED) is None

    def test_first_match_wins_and_warns(self, make_tiktok_sheet, caplog):
        reg = FormatRegistry([TikTokFormat(), AlwaysShopee()])
        with caplog.at_level(logging.WARNING):
            d = reg.detect_format(make_tiktok_sheet([tiktok_row("05-01-2025 19:00")]))
        assert d.format_id == FormatId.TIKTOK_LIVESTREAM
        assert "several formats" in caplog.text

    def test_detection_carries_definition(self, make_tiktok_sheet):
        d = default_registry().detect_format(make_tiktok_sheet([]))
        assert isinstance(d, Detection)
        assert isinstance(d.definition, TikTokFormat)
