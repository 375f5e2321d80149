"""Pipeline runner: load, rename, normalize, coerce, dedupe, validate, write."""

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from cleanpipe.config import CleaningConfig, default_config, load_cleaning_config
from cleanpipe.errors import CleaningError, ConfigError, TableIOError
from cleanpipe.utils.coercion import coerce_types
from cleanpipe.utils.io import read_table, resolve_format, write_table
from cleanpipe.utils.transforms import (
    drop_duplicate_rows,
    normalize_column_names,
    normalize_missing,
    rename_columns,
)
from cleanpipe.utils.types import FilePath, PipelineResult, StageResult, StageStatus
from cleanpipe.utils.validators import validate_rows
from cleanpipe.validation import build_validation_report, get_predicate, save_report
from cleanpipe.validation.reporters import REPORT_FORMATS

type Stage = Callable[[pd.DataFrame], pd.DataFrame]

EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_DATA_ERROR = 2
EXIT_IO_ERROR = 3
EXIT_INVALID_ROWS = 4

console = Console()
logger = logging.getLogger(__name__)


def build_stages(config: CleaningConfig) -> list[tuple[str, Stage]]:
    """The transforming stages, in the order they must run."""
    stages: list[tuple[str, Stage]] = []
    if config.snake_case_headers:
        stages.append(("snake_case", normalize_column_names))
    stages += [
        ("rename", lambda df: rename_columns(df, config.renames)),
        ("missing", lambda df: normalize_missing(df, config.sentinels)),
        ("coerce", lambda df: coerce_types(df, config.types)),
        ("dedupe", drop_duplicate_rows),
    ]
    return stages


def run_pipeline(
    source: FilePath,
    config: CleaningConfig | None = None,
    destination: FilePath | None = None,
    fmt: str | None = None,
) -> PipelineResult:
    """Run every stage in order, aborting on the first error.

    Nothing is written unless all stages, including validation, succeed.
    ``destination`` falls back to the config's output path; with neither set
    the cleaned table is only returned.
    """
    config = config or default_config()
    predicate = get_predicate(config.predicate) if config.predicate else None

    # the configured format only applies to the configured path
    if destination is None and config.output.path is not None:
        destination, fmt = config.output.path, fmt or config.output.format
    if destination is not None:
        fmt = resolve_format(Path(destination), fmt)

    df = read_table(source, delimiter=config.delimiter)
    results = [StageResult("load", 0, len(df))]

    for name, stage in build_stages(config):
        rows_in = len(df)
        df = stage(df)
        results.append(StageResult(name, rows_in, len(df)))

    valid = None
    if predicate is None:
        results.append(StageResult("validate", len(df), len(df), StageStatus.SKIPPED))
    else:
        valid = validate_rows(df, predicate)
        invalid = int((~valid).sum())
        results.append(StageResult("validate", len(df), len(df), detail=f"{invalid} invalid"))

    output_path = None
    if destination is None:
        results.append(StageResult("write", len(df), 0, StageStatus.SKIPPED))
    else:
        output_path = write_table(df, destination, config.types, fmt=fmt)
        results.append(StageResult("write", len(df), len(df), detail=str(output_path)))

    return PipelineResult(table=df, valid=valid, stages=results, output_path=output_path)


def render_stage_table(stages: list[StageResult]) -> Table:
    table = Table(title="Cleaning Pipeline")
    table.add_column("Stage")
    table.add_column("Rows in", justify="right")
    table.add_column("Rows out", justify="right")
    table.add_column("Status")
    table.add_column("Details")

    for s in stages:
        match s.status:
            case StageStatus.SUCCESS:
                status = "[green]✓[/green]"
            case StageStatus.SKIPPED:
                status = "[yellow]skipped[/yellow]"
            case _:
                status = "[red]✗[/red]"
        table.add_row(s.stage, f"{s.rows_in:,}", f"{s.rows_out:,}", status, s.detail)
    return table


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Clean a delimited text file into a typed columnar file")
    parser.add_argument("source", type=Path, help="Delimited text file to clean")
    parser.add_argument("-c", "--config", type=Path, help="TOML or YAML cleaning config (default: grades example)")
    parser.add_argument("-o", "--output", type=Path, help="Output file (overrides the config)")
    parser.add_argument("--format", choices=["parquet", "feather"], help="Output format (default: from config or suffix)")
    parser.add_argument("--report", choices=REPORT_FORMATS, default="table", help="Validation report format")
    parser.add_argument("--report-dir", type=Path, help="Also save the validation report here")
    parser.add_argument("--fail-on-invalid", action="store_true", help="Exit non-zero if any row is invalid")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = load_cleaning_config(args.config) if args.config else default_config()
        result = run_pipeline(args.source, config, destination=args.output, fmt=args.format)
    except ConfigError as exc:
        console.print(f"[red]Configuration error: {exc}[/red]")
        return EXIT_CONFIG_ERROR
    except TableIOError as exc:
        console.print(f"[red]I/O error: {exc}[/red]")
        return EXIT_IO_ERROR
    except CleaningError as exc:
        console.print(f"[red]Pipeline aborted: {exc}[/red]")
        return EXIT_DATA_ERROR

    console.print(render_stage_table(result.stages))

    if result.valid is not None:
        report = build_validation_report(result.table, result.valid, args.source.stem, args.report)
        console.print(report, markup=False, highlight=False)
        if args.report_dir:
            save_report(report, args.report_dir, args.source.stem, args.report)

    if args.fail_on_invalid and result.invalid_count:
        console.print(f"[red]{result.invalid_count} rows failed validation[/red]")
        return EXIT_INVALID_ROWS

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
