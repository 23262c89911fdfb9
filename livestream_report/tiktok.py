from __future__ import annotations

from typing import Any, Mapping

from livestream_report.dates import parse_local_datetime
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


TIKTOK_HEADERS = (
    "Livestream",
    "Start time",
    "Duration",
    "Gross revenue",
    "Direct GMV",
    "Items sold",
    "Customers",
    "Avg. price",
    "Orders paid for",
    "GMV/1K shows",
    "GMV/1K views",
    "Views",
    "Viewers",
    "Peak viewers",
    "New followers",
    "Avg. view duration",
    "Likes",
    "Comments",
    "Shares",
    "Product impressions",
    "Product clicks",
    "CTR",
    "CTOR",
)

# 0-based column index -> cleaning rule; unlisted columns are text
TIKTOK_CLEANING_RULES = {
    3: "currency",  # Gross revenue
    4: "currency",  # Direct GMV
    7: "currency",  # Avg. price
    9: "currency",  # GMV/1K shows
    10: "currency",  # GMV/1K views
    2: "numeric",  # Duration (seconds)
    5: "numeric",
    6: "numeric",
    8: "numeric",
    11: "numeric",
    12: "numeric",
    13: "numeric",
    14: "numeric",
    15: "numeric",
    16: "numeric",
    17: "numeric",
    18: "numeric",
    19: "numeric",
    20: "numeric",
    21: "percentage",  # CTR
    22: "percentage",  # CTOR
}

TIKTOK_LAYOUT = Layout(
    name="livestream",
    headers=TIKTOK_HEADERS,
    cleaning_rules=TIKTOK_CLEANING_RULES,
    derived_headers=("Start Date", "Start Time", "End Time", "Week in Year", "Month", "GMV/Hour"),
    derived_columns=("X", "Y", "Z", "AA", "AB", "AC"),
    range_columns={
        "start_date": "X",
        "start_time": "Y",
        "end_time": "Z",
        "week": "AA",
        "month": "AB",
        "gross": "D",
        "direct": "E",
        "items": "F",
        "gmv_1k_shows": "J",
        "viewers": "M",
        "avg_view": "P",
        "likes": "Q",
        "comments": "R",
        "shares": "S",
        "ctr": "V",
        "ctor": "W",
    },
)


class TikTokFormat(FormatDefinition):
    id = FormatId.TIKTOK_LIVESTREAM
    layouts = (TIKTOK_LAYOUT,)

    metrics = (
        Measure("Day", "weekday", fmt="text"),
        Measure("Date", "date", fmt="date"),
        Measure("Week", "week", fmt="int"),
        Measure("Sessions", "count", fmt="int"),
        Measure("Max GMV", "max", "gross", fmt="currency"),
        Measure("Min GMV", "min", "gross", fmt="currency"),
        Measure("Avg GMV", "avg", "gross", 0, fmt="currency"),
        Measure("Sum GMV", "sum", "gross", fmt="currency"),
        Measure("Prime Time", "prime_time", "gross", fmt="text"),
        Measure("Max Items Sold", "max", "items", fmt="int"),
        Measure("Min Items Sold", "min", "items", fmt="int"),
        Measure("Avg Items Sold", "avg", "items", 0, fmt="int"),
        Measure("Avg View Duration", "avg", "avg_view", 0, fmt="int"),
        Measure("Prime Time by CTR", "prime_time", "ctr", fmt="text"),
        Measure("Max CTR", "max", "ctr", fmt="percent"),
        Measure("Min CTR", "min", "ctr", fmt="percent"),
        Measure("Avg CTR", "avg", "ctr", 4, fmt="percent"),
        Measure("Prime Time by CTOR", "prime_time", "ctor", fmt="text"),
        Measure("Max CTOR", "max", "ctor", fmt="percent"),
        Measure("Min CTOR", "min", "ctor", fmt="percent"),
        Measure("Avg CTOR", "avg", "ctor", 4, fmt="percent"),
        Measure("Sum Viewers", "sum", "viewers", fmt="int"),
        Measure("Avg Viewers", "avg", "viewers", 0, fmt="int"),
        Measure("Sum Likes", "sum", "likes", fmt="int"),
        Measure("Avg Likes", "avg", "likes", 0, fmt="int"),
        Measure("Sum Comments", "sum", "comments", fmt="int"),
        Measure("Avg Comments", "avg", "comments", 0, fmt="int"),
        Measure("Sum Shares", "sum", "shares", fmt="int"),
        Measure("Avg Shares", "avg", "shares", 0, fmt="int"),
        Measure("Median GMV/1K Shows", "median", "gmv_1k_shows", fmt="currency"),
    )

    summary = (
        Measure("Avg GMV/Session", "avg", "gross", 0, fmt="currency"),
        Measure("Avg GMV/Day", "day_average", digits=0, source="Sum GMV", fmt="currency"),
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
            b = cell_text(sheet, row, 2)
            c = cell_text(sheet, row, 3)
            if (
                contains_any(a, ("livestream", "streaming langsung"))
                and contains_any(b, ("start time", "waktu mulai"))
                and contains_any(c, ("duration", "durasi"))
            ):
                return self._detected(row + 1, TIKTOK_LAYOUT)
        return None

    def raw_data_formulas(self, row: int, layout: Layout | None = None) -> dict[str, Formula]:
        # start date/time are host-parsed values; the text in B is day-first and
        # a spreadsheet would coerce it by its own locale
        return {
            "AA": Formula(f'IF(X{row}="","",ISOWEEKNUM(X{row}))'),
            "AB": Formula(f'IF(X{row}="","",MONTH(X{row})-1)'),
            "AC": Formula(f"IFERROR(D{row}/(C{row}/3600),0)"),
        }

    def derived_values(
        self,
        layout: Layout,
        sheet: TabularSource,
        source_row: int,
        cleaned: Mapping[str, Any],
        tz: str,
    ) -> dict[str, Any]:
        start = parse_local_datetime(cleaned.get("B"), tz)
        seconds = cleaned.get("C") or 0
        gross = cleaned.get("D") or 0
        fields = start_fields(start.date() if start else None)

        return {
            "X": fields["date"],
            "Y": start.strftime("%H:%M") if start else "",
            "Z": end_clock(start, seconds=seconds),
            "AA": fields["week"],
            "AB": fields["month"],
            "AC": per_hour(gross, seconds / 3600),
        }
