"""Shared sheet factories for the livestream report tests."""

from __future__ import annotations

import pytest
from openpyxl import Workbook

from livestream_report.shopee import SHOPEE_DAILY_HEADERS, SHOPEE_LIVESTREAM_HEADERS
from livestream_report.tabular import FrameSheet
from livestream_report.tiktok import TIKTOK_HEADERS


def tiktok_row(
    start: str,
    gross: str = "Rp1.000.000",
    *,
    seconds=3600,
    items=10,
    viewers=100,
    likes=50,
    comments=5,
    shares=2,
    ctr="5%",
    ctor="10%",
    gmv_1k="Rp1.000",
    name="Live",
) -> list:
    return [
        name, start, seconds, gross, gross, items, 5, "Rp10.000", 5, gmv_1k, "Rp900",
        viewers * 2, viewers, viewers // 2, 1, 30, likes, comments, shares, 1000, 100, ctr, ctor,
    ]


def shopee_livestream_row(
    start: str,
    *,
    period: str = "01-01-2025-31-01-2025",
    durasi: str = "2:00:00",
    sales: str = "Rp2.000.000",
    shipped: str = "Rp1.800.000",
    comments=10,
    viewers=300,
) -> list:
    return [
        period, "123", "1", "Promo Live", start, durasi, 80, comments, 15, "0:03:00", viewers,
        12, 10, 20, 18, sales, shipped,
    ]


def shopee_daily_row(period: str, *, sales: str = "Rp1.000.000", ctr: str = "4%", likes=40) -> list:
    row = ["0"] * len(SHOPEE_DAILY_HEADERS)
    row[0] = period
    row[1] = "123"
    row[2] = sales
    row[3] = sales
    row[8] = "500"
    row[10] = "0:05:00"
    row[14] = ctr
    row[15] = "8%"
    row[23] = str(likes)
    row[24] = "3"
    row[25] = "12"
    return row


@pytest.fixture
def make_tiktok_sheet():
    def _make(rows, title_rows=()):
        return FrameSheet.from_rows([list(t) for t in title_rows] + [list(TIKTOK_HEADERS)] + rows, label="tiktok.xlsx")

    return _make


@pytest.fixture
def make_shopee_livestream_sheet():
    def _make(rows):
        return FrameSheet.from_rows([list(SHOPEE_LIVESTREAM_HEADERS)] + rows, label="shopee_live.xlsx")

    return _make


@pytest.fixture
def make_shopee_daily_sheet():
    def _make(rows, english_row=True):
        header = [list(SHOPEE_DAILY_HEADERS)]
        if english_row:
            header.append(["Data Period", "User Id", "Sales(Placed Order)"])
        return FrameSheet.from_rows(header + rows, label="shopee_daily.csv")

    return _make


@pytest.fixture
def three_session_sheet(make_tiktok_sheet):
    """Two tied sessions on 5 Jan 2025 and one on 6 Jan 2025."""
    return make_tiktok_sheet(
        [
            tiktok_row("05-01-2025 19:00", "Rp1.000.000", viewers=100, ctr="5%"),
            tiktok_row("05-01-2025 21:00", "Rp1.000.000", viewers=200, ctr="7%"),
            tiktok_row("06-01-2025 19:00", "Rp500.000", viewers=300, ctr="3%"),
        ]
    )


@pytest.fixture
def ws():
    return Workbook().active
