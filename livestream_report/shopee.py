from __future__ import annotations

from typing import Any, Mapping

from livestream_report.dates import parse_local_datetime, parse_period_date
from livestream_report.formats import (
    DETECTION_ROWS,
    Detection,
    FormatDefinition,
    FormatId,
    Layout,
    cell_text,
    contains_any,
    end_clock,
    per_hour,
    start_fields,
)
from livestream_report.formulas import Formula, Measure
from livestream_report.tabular import TabularSource


PERIOD_MARKERS = ("periode data", "data period")

# ---- monthly livestream export (one row per livestream session) ----

SHOPEE_LIVESTREAM_HEADERS = (
    "Periode Data",
    "User Id",
    "No.",
    "Nama Livestream",
    "Start Time",
    "Durasi",
    "Penonton Aktif",
    "Komentar",
    "Tambah ke Keranjang",
    "Durasi Rata-Rata Menonton",
    "Penonton",
    "Pesanan(Pesanan Dibuat)",
    "Pesanan(Pesanan Siap Dikirim)",
    "Produk Terjual(Pesanan Dibuat)",
    "Produk Terjual(Pesanan Siap Dikirim)",
    "Penjualan(Pesanan Dibuat)",
    "Penjualan(Pesanan Siap Dikirim)",
)

SHOPEE_LIVESTREAM_RULES = {
    15: "currency",
    16: "currency",
    2: "numeric",
    6: "numeric",
    7: "numeric",
    8: "numeric",
    10: "numeric",
    11: "numeric",
    12: "numeric",
    13: "numeric",
    14: "numeric",
    5: "duration",  # "4:02:02" -> 4.03
    9: "duration",
}

SHOPEE_LIVESTREAM_LAYOUT = Layout(
    name="livestream",
    headers=SHOPEE_LIVESTREAM_HEADERS,
    cleaning_rules=SHOPEE_LIVESTREAM_RULES,
    derived_headers=("Start Date", "Start Time", "End Time", "Week in Year", "Month", "GMV/Hour"),
    derived_columns=("R", "S", "T", "U", "V", "W"),
    range_columns={
        "start_date": "R",
        "start_time": "S",
        "end_time": "T",
        "week": "U",
        "month": "V",
        "gross": "P",
        "direct": "Q",
        "items": "N",
        "avg_view": "J",
        "viewers": "K",
        "comments": "H",
        # not part of this export
        "likes": None,
        "shares": None,
        "ctr": None,
        "ctor": None,
        "gmv_1k_shows": None,
    },
)

# ---- daily CSV export (one row per day, optional second header row) ----

SHOPEE_DAILY_HEADERS = (
    "Periode Data",
    "User Id",
    "Penjualan(Pesanan Dibuat)",
    "Penjualan(Pesanan Siap Dikirim)",
    "Pesanan(Pesanan Dibuat)",
    "Pesanan(Pesanan Siap Dikirim)",
    "Produk Terjual(Pesanan Dibuat)",
    "Produk Terjual(Pesanan Siap Dikirim)",
    "Penonton",
    "Penonton Aktif",
    "Durasi Rata-Rata Menonton",
    "Pengikut Baru",
    "Klik Produk",
    "Tambah ke Keranjang",
    "Tingkat Klik Produk",
    "Tingkat Klik ke Pesanan(Pesanan Dibuat)",
    "Tingkat Klik ke Pesanan(Pesanan Siap Dikirim)",
    "Pembeli(Pesanan Dibuat)",
    "Pembeli(Pesanan Siap Dikirim)",
    "Nilai Pesanan Rata-Rata(Pesanan Dibuat)",
    "Nilai Pesanan Rata-Rata(Pesanan Siap Dikirim)",
    "Penjualan per Pembeli",
    "Jumlah Livestream",
    "Suka",
    "Dibagikan",
    "Komentar",
    "Koin Diklaim",
    "Voucher Diklaim",
    "Tingkat Konversi(Pesanan Dibuat)",
    "Tingkat Konversi(Pesanan Siap Dikirim)",
)

SHOPEE_DAILY_RULES = {
    **{i: "currency" for i in (2, 3, 19, 20, 21)},
    **{i: "percentage" for i in (14, 15, 16, 28, 29)},
    **{i: "numeric" for i in (4, 5, 6, 7, 8, 9, 11, 12, 13, 17, 18, 22, 23, 24, 25, 26, 27)},
    10: "duration",
}

SHOPEE_DAILY_LAYOUT = Layout(
    name="daily",
    headers=SHOPEE_DAILY_HEADERS,
    cleaning_rules=SHOPEE_DAILY_RULES,
    derived_headers=("Start Date", "Start Time", "End Time", "Week in Year", "Month", "GMV/Hour"),
    derived_columns=("AE", "AF", "AG", "AH", "AI", "AJ"),
    range_columns={
        "start_date": "AE",
        "start_time": "AF",
        "end_time": "AG",
        "week": "AH",
        "month": "AI",
        "gross": "C",
        "direct": "D",
        "items": "G",
        "viewers": "I",
        "avg_view": "K",
        "ctr": "O",
        "ctor": "P",
        "likes": "X",
        "shares": "Y",
        "comments": "Z",
        "gmv_1k_shows": None,
    },
)


def _is_daily_header(sheet: TabularSource, row: int) -> bool:
    a = cell_text(sheet, row, 1)
    c = cell_text(sheet, row, 3)
    return (
        contains_any(a, PERIOD_MARKERS)
        and "penjualan" in c
        and contains_any(c, ("pesanan dibuat", "placed order"))
    )


class ShopeeFormat(FormatDefinition):
    id = FormatId.SHOPEE_MONTHLY
    layouts = (SHOPEE_LIVESTREAM_LAYOUT, SHOPEE_DAILY_LAYOUT)

    metrics = (
        Measure("Day", "weekday", fmt="text"),
        Measure("Date", "date", fmt="date"),
        Measure("Week", "week", fmt="int"),
        Measure("Sessions", "count", fmt="int"),
        Measure("Max Sales", "max", "gross", fmt="currency"),
        Measure("Min Sales", "min", "gross", fmt="currency"),
        Measure("Avg Sales", "avg", "gross", 0, fmt="currency"),
        Measure("Sum Sales", "sum", "gross", fmt="currency"),
        Measure("Median Sales", "median", "gross", fmt="currency"),
        Measure("Max Items Sold", "max", "items", fmt="int"),
        Measure("Min Items Sold", "min", "items", fmt="int"),
        Measure("Avg Items Sold", "avg", "items", 0, fmt="int"),
        Measure("Avg View Duration", "avg", "avg_view", 2, fmt="decimal"),
        Measure("Median CTR", "median", "ctr", fmt="percent"),
        Measure("Max CTR", "max", "ctr", fmt="percent"),
        Measure("Min CTR", "min", "ctr", fmt="percent"),
        Measure("Avg CTR", "avg", "ctr", 4, fmt="percent"),
        Measure("Median CTOR", "median", "ctor", fmt="percent"),
        Measure("Max CTOR", "max", "ctor", fmt="percent"),
        Measure("Min CTOR", "min", "ctor", fmt="percent"),
        Measure("Avg CTOR", "avg", "ctor", 4, fmt="percent"),
        Measure("Sum Viewers", "sum", "viewers", fmt="int"),
        Measure("Avg Viewers", "avg", "viewers", 0, fmt="int"),
        Measure("Max Likes", "max", "likes", fmt="int"),
        Measure("Min Likes", "min", "likes", fmt="int"),
        Measure("Avg Likes", "avg", "likes", 0, fmt="int"),
        Measure("Max Comments", "max", "comments", fmt="int"),
        Measure("Min Comments", "min", "comments", fmt="int"),
        Measure("Avg Comments", "avg", "comments", 0, fmt="int"),
        Measure("Max Shares", "max", "shares", fmt="int"),
        Measure("Min Shares", "min", "shares", fmt="int"),
        Measure("Avg Shares", "avg", "shares", 0, fmt="int"),
    )

    summary = (
        Measure("Avg Sales/Session", "avg", "gross", 0, fmt="currency"),
        Measure("Avg Sales/Day", "day_average", digits=0, source="Sum Sales", fmt="currency"),
        Measure("Avg CTR", "avg", "ctr", 4, fmt="percent"),
        Measure("Avg CTOR", "avg", "ctor", 4, fmt="percent"),
        Measure("Avg Viewers", "avg", "viewers", 0, fmt="int"),
        Measure("Avg Like", "avg", "likes", 0, fmt="int"),
        Measure("Avg Comment", "avg", "comments", 0, fmt="int"),
        Measure("Avg Share", "avg", "shares", 0, fmt="int"),
    )

    def detect(self, sheet: TabularSource) -> Detection | None:
        for row in range(1, DETECTION_ROWS + 1):
            a = cell_text(sheet, row, 1)
            d = cell_text(sheet, row, 4)
            if contains_any(a, PERIOD_MARKERS) and contains_any(d, ("nama livestream", "livestream")):
                return self._detected(row + 1, SHOPEE_LIVESTREAM_LAYOUT)
            if _is_daily_header(sheet, row):
                # CSV exports repeat the header in English on the next row
                skip = 2 if contains_any(cell_text(sheet, row + 1, 1), PERIOD_MARKERS) else 1
                return self._detected(row + skip, SHOPEE_DAILY_LAYOUT)
        return None

    def raw_data_formulas(self, row: int, layout: Layout | None = None) -> dict[str, Formula]:
        layout = layout or self.layout()
        if layout.name == "daily":
            return {
                "AH": Formula(f'IF(AE{row}="","",ISOWEEKNUM(AE{row}))'),
                "AI": Formula(f'IF(AE{row}="","",MONTH(AE{row})-1)'),
            }
        # start date/time come from locale text and stay host-parsed values
        return {"W": Formula(f"IFERROR(Q{row}/F{row},0)")}

    def derived_values(
        self,
        layout: Layout,
        sheet: TabularSource,
        source_row: int,
        cleaned: Mapping[str, Any],
        tz: str,
    ) -> dict[str, Any]:
        if layout.name == "daily":
            return self._daily_values(sheet, source_row, tz)
        return self._livestream_values(sheet, source_row, cleaned, tz)

    def _daily_values(self, sheet: TabularSource, source_row: int, tz: str) -> dict[str, Any]:
        fields = start_fields(parse_period_date(sheet.get_cell(source_row, 1), tz))
        return {
            "AE": fields["date"],
            "AF": "",
            "AG": "",
            "AH": fields["week"],
            "AI": fields["month"],
            "AJ": 0,
        }

    def _livestream_values(
        self,
        sheet: TabularSource,
        source_row: int,
        cleaned: Mapping[str, Any],
        tz: str,
    ) -> dict[str, Any]:
        start = parse_local_datetime(sheet.get_cell(source_row, 5), tz)
        hours = cleaned.get("F") or 0
        shipped = cleaned.get("Q") or 0
        if start:
            fields = start_fields(start.date())
        else:
            fields = start_fields(parse_period_date(sheet.get_cell(source_row, 1), tz))

        return {
            "R": fields["date"],
            "S": start.strftime("%H:%M") if start else "",
            "T": end_clock(start, hours=hours),
            "U": fields["week"],
            "V": fields["month"],
            "W": per_hour(shipped, hours),
        }
