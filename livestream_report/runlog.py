from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from datetime import datetime


@dataclass
class FileOutcome:
    source: str
    output: str = ""
    format_id: str = ""
    layout: str = ""
    rows: int = 0
    days: int = 0
    currency: str = ""
    error: str = ""
    warnings: list[str] = field(default_factory=list)


def write_run_log(
    out_path: Path,
    *,
    input_dir: str,
    out_dir: str,
    mode: str,
    timezone: str,
    outcomes: list[FileOutcome],
) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)

    processed = [o for o in outcomes if not o.error]

    lines: list[str] = []
    lines.append("Livestream Report - Run Log")
    lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")
    lines.append(f"Input dir: {input_dir}")
    lines.append(f"Output dir: {out_dir}")
    lines.append(f"Output mode: {mode}")
    lines.append(f"Timezone: {timezone}")
    lines.append(f"Files processed: {len(processed)} of {len(outcomes)}")

    for o in outcomes:
        lines.append("")
        lines.append(f"[{o.source}]")
        if o.error:
            lines.append(f"Skipped: {o.error}")
            continue
        lines.append(f"Format: {o.format_id} ({o.layout})")
        lines.append(f"Rows: {o.rows}")
        lines.append(f"Days: {o.days}")
        lines.append(f"Currency: {o.currency}")
        lines.append(f"Output: {o.output}")
        lines.append("Warnings:")
        if o.warnings:
            for w in o.warnings:
                lines.append(f"- {w}")
        else:
            lines.append("- (none)")

    out_path.write_text("\n".join(lines), encoding="utf-8")
