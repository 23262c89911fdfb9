from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from livestream_report.dates import DEFAULT_TIMEZONE
from livestream_report.normalize import OUTPUT_MODES


@dataclass(frozen=True)
class AppConfig:
    input_dir: Path = Path("data/in")
    out_dir: Path = Path("out")
    # None = detect from the export's currency columns
    currency_code: str | None = None
    output_mode: str = "formulas"
    timezone: str = DEFAULT_TIMEZONE

    # Run toggles
    write_cleaned_csv: bool = False
    write_run_log: bool = True


def load_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError("Config must be a YAML mapping (key: value)")
    return data


def _as_bool(x: Any, default: bool) -> bool:
    if x is None:
        return default
    if isinstance(x, bool):
        return x
    if isinstance(x, (int, float)):
        return bool(x)
    s = str(x).strip().lower()
    if s in {"true", "yes", "y", "1", "on"}:
        return True
    if s in {"false", "no", "n", "0", "off"}:
        return False
    return default


def _as_currency(x: Any) -> str | None:
    if x is None:
        return None
    s = str(x).upper().strip()
    if s in {"", "AUTO"}:
        return None
    return s


def _as_mode(x: Any) -> str:
    mode = str(x or "formulas").strip().lower()
    if mode not in OUTPUT_MODES:
        raise ValueError(f"output_mode must be one of {', '.join(OUTPUT_MODES)} (got {x!r})")
    return mode


def resolve_config(
    *,
    config_path: str | None,
    cli_input: str | None,
    cli_out: str | None,
    cli_currency: str | None,
    cli_mode: str | None = None,
) -> AppConfig:
    # If user doesn't provide a path, we default to config.yaml at project root
    path = Path(config_path or "config.yaml")
    raw = load_config(path)

    timezone = str(raw.get("timezone") or DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE

    cfg = AppConfig(
        input_dir=Path(raw.get("input_dir", "data/in")),
        out_dir=Path(raw.get("out_dir", "out")),
        currency_code=_as_currency(raw.get("currency_code")),
        output_mode=_as_mode(raw.get("output_mode")),
        timezone=timezone,
        write_cleaned_csv=_as_bool(raw.get("write_cleaned_csv"), False),
        write_run_log=_as_bool(raw.get("write_run_log"), True),
    )

    # CLI overrides config (optional)
    return AppConfig(
        input_dir=Path(cli_input) if cli_input else cfg.input_dir,
        out_dir=Path(cli_out) if cli_out else cfg.out_dir,
        currency_code=_as_currency(cli_currency) if cli_currency else cfg.currency_code,
        output_mode=_as_mode(cli_mode) if cli_mode else cfg.output_mode,
        timezone=cfg.timezone,
        write_cleaned_csv=cfg.write_cleaned_csv,
        write_run_log=cfg.write_run_log,
    )
