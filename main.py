from __future__ import annotations

import argparse
from datetime import datetime, timedelta
from pathlib import Path
import sys
import logging
import random
import pandas as pd

from livestream_report.config import resolve_config
from livestream_report.ingest import list_input_files
from livestream_report.pipeline import process_file
from livestream_report.registry import UnsupportedFormatError, default_registry
from livestream_report.runlog import FileOutcome, write_run_log
from livestream_report.shopee import SHOPEE_DAILY_HEADERS
from livestream_report.tiktok import TIKTOK_HEADERS


def _tiktok_demo_rows(n: int) -> list[list]:
    start = datetime(2025, 1, 3, 19, 0)
    rows = []
    for i in range(n):
        began = start + timedelta(days=i // 2, hours=(i % 2) * 3)
        seconds = random.randint(3600, 3 * 3600)
        gross = random.randint(500, 5000) * 1000
        viewers = random.randint(300, 4000)
        rows.append(
            [
                f"Live #{i + 1}",
                began.strftime("%d-%m-%Y %H:%M"),
                seconds,
                f"Rp{gross:,}".replace(",", "."),
                f"Rp{int(gross * 0.8):,}".replace(",", "."),
                random.randint(5, 120),
                random.randint(5, 90),
                "Rp45.000",
                random.randint(5, 100),
                "Rp1.200",
                "Rp900",
                viewers * 2,
                viewers,
                viewers // 5,
                random.randint(0, 60),
                random.randint(20, 180),
                random.randint(100, 9000),
                random.randint(5, 400),
                random.randint(0, 80),
                viewers * 3,
                random.randint(50, 900),
                f"{random.uniform(1, 9):.2f}%",
                f"{random.uniform(2, 15):.2f}%",
            ]
        )
    return rows


def _shopee_daily_demo_rows(n: int) -> list[list]:
    rows = []
    for i in range(n):
        day = datetime(2025, 1, 1) + timedelta(days=i)
        period = day.strftime("%d-%m-%Y")
        sales = random.randint(200, 4000) * 1000
        rows.append(
            [f"{period}-{period}", "123456", f"Rp{sales:,}".replace(",", "."), f"Rp{int(sales * 0.9):,}".replace(",", ".")]
            + [str(random.randint(1, 80)) for _ in range(4)]
            + [str(random.randint(200, 3000)), str(random.randint(50, 600)), f"0:{random.randint(1, 9):02d}:{random.randint(0, 59):02d}"]
            + [str(random.randint(0, 50)) for _ in range(3)]
            + [f"{random.uniform(1, 9):.2f}%" for _ in range(3)]
            + [str(random.randint(1, 60)) for _ in range(2)]
            + ["Rp55.000", "Rp52.000", "Rp60.000"]
            + [str(random.randint(1, 3))]
            + [str(random.randint(50, 3000)) for _ in range(3)]
            + [str(random.randint(0, 30)) for _ in range(2)]
            + [f"{random.uniform(0.5, 5):.2f}%" for _ in range(2)]
        )
    return rows


def make_demo_inputs(input_dir: Path) -> None:
    random.seed(42)
    input_dir.mkdir(parents=True, exist_ok=True)

    # title block above the header, as the TikTok export ships it
    tiktok = [["Livestream data"], ["Date range: 2025-01-03 ~ 2025-01-09"], list(TIKTOK_HEADERS)]
    tiktok += _tiktok_demo_rows(12)
    pd.DataFrame(tiktok).to_excel(input_dir / "tiktok_live_demo.xlsx", index=False, header=False)

    shopee = [list(SHOPEE_DAILY_HEADERS), ["Data Period", "User Id"] + ["Sales"] * 28]
    shopee += _shopee_daily_demo_rows(20)
    pd.DataFrame(shopee).to_csv(input_dir / "shopee_daily_demo.csv", index=False, header=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Livestream Commerce Report Builder")

    # Default config.yaml so `python main.py` just works
    p.add_argument("--config", type=str, default="config.yaml", help="Path to config.yaml (default: config.yaml)")
    p.add_argument("--input", type=str, default=None, help="Override input_dir from config")
    p.add_argument("--out", type=str, default=None, help="Override out_dir from config")
    p.add_argument("--currency", type=str, default=None, help="Override currency_code from config (e.g. IDR/USD)")
    p.add_argument("--mode", type=str, default=None, choices=["formulas", "values"], help="Override output_mode from config")

    p.add_argument("--demo", action="store_true", help="Generate demo inputs into input folder then run")

    return p.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    try:
        cfg = resolve_config(
            config_path=args.config,
            cli_input=args.input,
            cli_out=args.out,
            cli_currency=args.currency,
            cli_mode=args.mode,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR loading config: {e}", file=sys.stderr)
        return 2

    input_dir = cfg.input_dir
    out_dir = cfg.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)

    if args.demo:
        make_demo_inputs(input_dir)

    files = list_input_files(input_dir)
    if not files:
        print(f"ERROR: No input files found in {input_dir}", file=sys.stderr)
        return 2

    registry = default_registry()
    outcomes: list[FileOutcome] = []

    for path in files:
        try:
            out_path, result = process_file(
                path,
                out_dir,
                registry=registry,
                mode=cfg.output_mode,
                currency_code=cfg.currency_code,
                timezone=cfg.timezone,
            )
        except UnsupportedFormatError as e:
            print(f"⚠️  Skipped {path.name}: {e}", file=sys.stderr)
            outcomes.append(FileOutcome(source=path.name, error=str(e)))
            continue
        except PermissionError:
            print(f"ERROR: Can't write the report for {path.name}. Close it if open in Excel, then re-run.", file=sys.stderr)
            outcomes.append(FileOutcome(source=path.name, error="output file is locked"))
            continue

        print(f"📦 {path.name} -> {out_path} ({result.format_id.value}/{result.layout}, {result.rows} rows, {len(result.dates)} days)")
        for w in result.warnings:
            print(f"   ⚠️  {w}")

        if cfg.write_cleaned_csv:
            layout = registry.get_definition(result.format_id).layout(result.layout)
            cleaned_csv = out_dir / f"cleaned_{path.stem}.csv"
            result.clean.set_axis(list(layout.headers) + list(layout.derived_headers), axis=1).to_csv(cleaned_csv, index=False)
            print(f"🧼 Cleaned data saved: {cleaned_csv}")

        outcomes.append(
            FileOutcome(
                source=path.name,
                output=str(out_path),
                format_id=result.format_id.value,
                layout=result.layout,
                rows=result.rows,
                days=len(result.dates),
                currency=result.currency,
                warnings=result.warnings,
            )
        )

    # Run log (driven by YAML)
    if cfg.write_run_log:
        log_path = out_dir / "run_log.txt"
        write_run_log(
            log_path,
            input_dir=str(input_dir),
            out_dir=str(out_dir),
            mode=cfg.output_mode,
            timezone=cfg.timezone,
            outcomes=outcomes,
        )
        print(f"🧾 Run log written: {log_path}")

    processed = [o for o in outcomes if not o.error]
    print(f"✅ Processed {len(processed)} of {len(outcomes)} file(s) from folder: {input_dir}")

    if not processed:
        print("ERROR: No file matched a supported livestream export format", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
