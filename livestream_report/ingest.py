from __future__ import annotations

import csv
from pathlib import Path
import pandas as pd

from livestream_report.tabular import FrameSheet


SUPPORTED = {".csv", ".xlsx", ".xls"}


def list_input_files(input_dir: Path) -> list[Path]:
    if not input_dir.exists():
        return []
    files = [p for p in input_dir.rglob("*") if p.is_file() and p.suffix.lower() in SUPPORTED]
    return sorted(files)


def _csv_width(path: Path, encoding: str) -> int:
    # exports put short title lines above the header, so size by the widest row
    with path.open(newline="", encoding=encoding) as fh:
        return max((len(r) for r in csv.reader(fh)), default=0)


def _read_csv(path: Path) -> pd.DataFrame:
    # every cell stays text; the cleaners decide what a value means
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            width = _csv_width(path, encoding)
            if width == 0:
                return pd.DataFrame()
            return pd.read_csv(
                path,
                header=None,
                names=list(range(width)),
                dtype=str,
                encoding=encoding,
                skip_blank_lines=False,
            )
        except UnicodeDecodeError:
            continue
    raise ValueError(f"Could not decode {path.name}")


def read_one_file(path: Path) -> FrameSheet:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = _read_csv(path)
    elif suffix in SUPPORTED:
        df = pd.read_excel(path, header=None, sheet_name=0)
    else:
        raise ValueError(f"Unsupported file type: {path.suffix}")

    return FrameSheet(df, label=path.name)
