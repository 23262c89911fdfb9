"""Tests for the clean-data sheet writer."""

import math
from datetime import date

import pandas as pd
import pytest

from livestream_report.normalize import clean_and_copy_data, clean_row
from livestream_report.shopee import SHOPEE_DAILY_LAYOUT, SHOPEE_LIVESTREAM_LAYOUT, ShopeeFormat
from livestream_report.tiktok import TIKTOK_LAYOUT, TikTokFormat

from conftest import shopee_daily_row, shopee_livestream_row, tiktok_row


def _tiktok(sheet, ws, mode="formulas"):
    last = sheet.max_row
    return clean_and_copy_data(sheet, ws, 2, last, TikTokFormat(), TIKTOK_LAYOUT, mode=mode)


# ---------------------------------------------------------------------------
# TikTok
# ---------------------------------------------------------------------------

class TestTikTok:
    def test_row_count_is_preserved(self, three_session_sheet, ws):
        clean = _tiktok(three_session_sheet, ws)
        assert len(clean) == 3
        assert ws.max_row == 4

    def test_headers(self, three_session_sheet, ws):
        _tiktok(three_session_sheet, ws)
        assert ws["A1"].value == "Livestream"
        assert ws["W1"].value == "CTOR"
        assert ws["X1"].value == "Start Date"
        assert ws["AC1"].value == "GMV/Hour"

    def test_cleaned_values(self, three_session_sheet, ws):
        _tiktok(three_session_sheet, ws)
        assert ws["D2"].value == 1000000
        assert ws["V2"].value == pytest.approx(0.05)
        assert ws["B2"].value == "05-01-2025 19:00"

    def test_formula_mode_derived_columns(self, three_session_sheet, ws):
        _tiktok(three_session_sheet, ws)
        assert pd.Timestamp(ws["X2"].value) == pd.Timestamp(2025, 1, 5)
        assert ws["Y2"].value == "19:00"
        assert ws["Z2"].value == "20:00"
        assert ws["AA3"].value == '=IF(X3="","",_xlfn.ISOWEEKNUM(X3))'
        assert ws["AC4"].value == "=IFERROR(D4/(C4/3600),0)"

    def test_values_mode_derived_columns(self, three_session_sheet, ws):
        _tiktok(three_session_sheet, ws, mode="values")
        assert ws["Y2"].value == "19:00"
        assert ws["Z2"].value == "20:00"
        assert ws["AA2"].value == 1
        assert ws["AB2"].value == 0
        assert ws["AC2"].value == 1000000

    def test_frame_always_has_parsed_values(self, three_session_sheet, ws):
        clean = _tiktok(three_session_sheet, ws, mode="formulas")
        assert list(clean["X"]) == [date(2025, 1, 5), date(2025, 1, 5), date(2025, 1, 6)]
        assert list(clean["Y"]) == ["19:00", "21:00", "19:00"]

    def test_unreadable_start_is_blank(self, make_tiktok_sheet, ws):
        clean = _tiktok(make_tiktok_sheet([tiktok_row("soon", seconds=0)]), ws, mode="values")
        assert clean.loc[0, "X"] == ""
        assert clean.loc[0, "AA"] == ""
        assert clean.loc[0, "AC"] == 0

    def test_bad_mode(self, three_session_sheet, ws):
        with pytest.raises(ValueError):
            _tiktok(three_session_sheet, ws, mode="both")

    def test_oversized_duration_keeps_the_row(self, make_tiktok_sheet, ws):
        sheet = make_tiktok_sheet([tiktok_row("05-01-2025 19:00", seconds="99999999999999")])
        clean = _tiktok(sheet, ws, mode="values")
        assert len(clean) == 1
        assert clean.loc[0, "X"] == date(2025, 1, 5)
        assert clean.loc[0, "Z"] == ""
        assert math.isfinite(clean.loc[0, "AC"])

    def test_infinite_duration_is_zero(self, make_tiktok_sheet, ws):
        clean = _tiktok(make_tiktok_sheet([tiktok_row("05-01-2025 19:00", seconds="1e999")]), ws, mode="values")
        assert clean.loc[0, "C"] == 0
        assert clean.loc[0, "Z"] == "19:00"
        assert clean.loc[0, "AC"] == 0


# ---------------------------------------------------------------------------
# Shopee
# ---------------------------------------------------------------------------

class TestShopeeLivestream:
    def test_start_and_end(self, make_shopee_livestream_sheet, ws):
        sheet = make_shopee_livestream_sheet([shopee_livestream_row("05-01-2025 19:00", durasi="2:30:00")])
        clean = clean_and_copy_data(sheet, ws, 2, 2, ShopeeFormat(), SHOPEE_LIVESTREAM_LAYOUT, mode="values")
        assert clean.loc[0, "F"] == 2.5
        assert clean.loc[0, "R"] == date(2025, 1, 5)
        assert ws["S2"].value == "19:00"
        assert ws["T2"].value == "21:30"
        assert ws["W2"].value == pytest.approx(1800000 / 2.5)

    def test_period_fallback(self, make_shopee_livestream_sheet, ws):
        sheet = make_shopee_livestream_sheet([shopee_livestream_row("", period="03-01-2025-31-01-2025")])
        clean = clean_and_copy_data(sheet, ws, 2, 2, ShopeeFormat(), SHOPEE_LIVESTREAM_LAYOUT, mode="values")
        assert clean.loc[0, "R"] == date(2025, 1, 3)
        assert clean.loc[0, "S"] == ""

    def test_gmv_per_hour_formula(self, make_shopee_livestream_sheet, ws):
        sheet = make_shopee_livestream_sheet([shopee_livestream_row("05-01-2025 19:00")])
        clean_and_copy_data(sheet, ws, 2, 2, ShopeeFormat(), SHOPEE_LIVESTREAM_LAYOUT)
        assert ws["W2"].value == "=IFERROR(Q2/F2,0)"
        assert ws["S2"].value == "19:00"

    def test_oversized_stream_duration(self, make_shopee_livestream_sheet, ws):
        sheet = make_shopee_livestream_sheet([shopee_livestream_row("05-01-2025 19:00", durasi="99999999")])
        clean = clean_and_copy_data(sheet, ws, 2, 2, ShopeeFormat(), SHOPEE_LIVESTREAM_LAYOUT, mode="values")
        assert clean.loc[0, "R"] == date(2025, 1, 5)
        assert clean.loc[0, "T"] == ""
        assert clean.loc[0, "W"] == pytest.approx(1800000 / 99999999)


class TestShopeeDaily:
    def test_date_from_period(self, make_shopee_daily_sheet, ws):
        sheet = make_shopee_daily_sheet([shopee_daily_row("02-01-2025-02-01-2025")])
        clean = clean_and_copy_data(sheet, ws, 3, 3, ShopeeFormat(), SHOPEE_DAILY_LAYOUT)
        assert clean.loc[0, "AE"] == date(2025, 1, 2)
        assert clean.loc[0, "AF"] == ""
        assert clean.loc[0, "AJ"] == 0
        assert ws["AH2"].value == '=IF(AE2="","",_xlfn.ISOWEEKNUM(AE2))'
        assert ws["AI2"].value == '=IF(AE2="","",MONTH(AE2)-1)'

    def test_clean_row_rules(self, make_shopee_daily_sheet):
        sheet = make_shopee_daily_sheet([shopee_daily_row("02-01-2025", sales="Rp2.500.000", ctr="4,5%")])
        row = clean_row(SHOPEE_DAILY_LAYOUT, sheet, 3)
        assert row["C"] == 2500000
        assert row["O"] == pytest.approx(0.045)
        assert row["K"] == pytest.approx(0.08)
        assert row["B"] == "123"
