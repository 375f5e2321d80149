"""Validation result reporting and formatting.

Turns the per-row validity series into a human-readable table, a short text
summary or a JSON document, and optionally persists it next to the output.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.table import Table

from cleanpipe.utils.types import is_absent

type ReportFormat = str  # "table" | "json" | "summary"

REPORT_FORMATS = ("table", "json", "summary")
ABSENT_DISPLAY = "<absent>"

logger = logging.getLogger(__name__)


def _display(value: object) -> str:
    return ABSENT_DISPLAY if is_absent(value) else str(value)


def build_validation_report(
    df: pd.DataFrame,
    valid: pd.Series,
    name: str = "table",
    output_format: ReportFormat = "table",
) -> str:
    """Describe which rows of ``df`` violate the predicate behind ``valid``."""
    failed = df[~valid]

    match output_format:
        case "json":
            return _to_json(name, df, failed)
        case "summary":
            return _to_summary(name, df, failed)
        case "table":
            return _to_table(name, df, failed)
        case other:
            raise ValueError(f"Unsupported report format: {other}")


def _to_json(name: str, df: pd.DataFrame, failed: pd.DataFrame) -> str:
    violations = json.loads(
        failed.assign(row=failed.index).to_json(orient="records", date_format="iso")
    )
    report = {
        "table": name,
        "timestamp": datetime.now().isoformat(),
        "total": len(df),
        "passed": len(df) - len(failed),
        "violations": violations,
    }
    return json.dumps(report, indent=2)


def _to_summary(name: str, df: pd.DataFrame, failed: pd.DataFrame) -> str:
    lines = [f"[{name}] {len(df) - len(failed)}/{len(df)} rows valid"]
    for position, row in failed.iterrows():
        cells = ", ".join(f"{col}={_display(val)}" for col, val in row.items())
        lines.append(f"  FAIL row {position}: {cells}")
    return "\n".join(lines)


def _to_table(name: str, df: pd.DataFrame, failed: pd.DataFrame) -> str:
    table = Table(title=f"Validation: {name} ({len(failed)}/{len(df)} rows invalid)")
    table.add_column("Row", justify="right", style="cyan")
    for col in df.columns:
        table.add_column(str(col))

    for position, row in failed.iterrows():
        table.add_row(str(position), *(_display(val) for val in row))

    buf = Console(file=None, force_terminal=False, width=120)
    with buf.capture() as capture:
        buf.print(table)
    return capture.get()


def save_report(
    report: str,
    output_dir: Path,
    name: str,
    fmt: ReportFormat = "json",
) -> Path:
    """Persist a validation report to disk under a timestamped file name."""
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    match fmt:
        case "json":
            path = output_dir / f"{name}_validation_{timestamp}.json"
        case _:
            path = output_dir / f"{name}_validation_{timestamp}.txt"

    path.write_text(report)
    logger.info("Validation report saved: %s", path)
    return path
