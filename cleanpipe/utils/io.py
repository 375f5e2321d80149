"""File I/O for the pipeline: delimited text in, typed columnar files out."""

import json
import logging
import os
import re
from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.feather as feather
import pyarrow.parquet as pq

from cleanpipe.errors import ConfigError, TableIOError, TableSchemaError
from cleanpipe.utils.types import ColumnType, FilePath, SemanticKind, TypeMapping
from cleanpipe.utils.validators import check_typed_table

logger = logging.getLogger(__name__)

SEMANTIC_TYPES_KEY = "cleanpipe.semantic_types"
ENCODINGS = ("utf-8", "latin-1", "cp1252")
OUTPUT_FORMATS = ("parquet", "feather")

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")
# leading "+" or a redundant leading zero marks a code, not a number
_PADDED_RE = re.compile(r"^(\+|-?0\d)")


def _parse_scalar(text: str) -> int | float | str:
    """Parse a raw cell into int, float or leave it as the original string.

    Cells like ``"01"`` or ``"+5"`` would not survive the round trip through a
    number, so they stay text.
    """
    stripped = text.strip()
    if _PADDED_RE.match(stripped):
        return text
    if _INT_RE.match(stripped):
        return int(stripped)
    if _FLOAT_RE.match(stripped):
        return float(stripped)
    return text


def _read_delimited(path: Path, delimiter: str) -> pd.DataFrame:
    """Read every cell as text, trying each known encoding in turn."""
    for encoding in ENCODINGS:
        try:
            return pd.read_csv(
                path,
                sep=delimiter,
                dtype=str,
                keep_default_na=False,
                encoding=encoding,
            )
        except UnicodeDecodeError:
            logger.debug("Could not decode %s as %s", path, encoding)
            continue
    raise TableIOError(f"Could not decode {path} with any of {ENCODINGS}")


def read_table(path: FilePath, delimiter: str = ",") -> pd.DataFrame:
    """Load a delimited text file whose first row holds the raw headers.

    No NA inference happens here: strings such as ``"na"`` or ``""`` survive
    untouched so the missing-value stage can match them. Numeric-looking cells
    become ``int``/``float`` so numeric sentinels like ``-1`` compare equal.
    """
    path = Path(path)
    try:
        raw = _read_delimited(path, delimiter)
    except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        if isinstance(exc, TableIOError):
            raise
        raise TableIOError(f"Failed to read {path}: {exc}") from exc

    table = pd.DataFrame(
        {
            col: pd.Series([_parse_scalar(v) for v in raw[col]], dtype=object).infer_objects()
            for col in raw.columns
        }
    )
    logger.info("Loaded %d rows x %d columns from %s", len(table), len(table.columns), path.name)
    return table


def resolve_format(path: Path, fmt: str | None = None) -> str:
    """Pick the output format from an explicit name or the file suffix.

    An explicit format must agree with a recognised suffix; unknown suffixes
    accept any explicit format.
    """
    match path.suffix.lower():
        case ".parquet" | ".pq":
            implied = "parquet"
        case ".feather" | ".arrow":
            implied = "feather"
        case _:
            implied = None

    if fmt is None:
        if implied is None:
            raise ConfigError(f"Cannot infer output format from suffix {path.suffix!r}")
        return implied
    if fmt not in OUTPUT_FORMATS:
        raise ConfigError(f"Unsupported output format: {fmt}")
    if implied is not None and fmt != implied:
        raise ConfigError(f"Output format '{fmt}' contradicts the suffix of {path.name}")
    return fmt


def _to_arrow(df: pd.DataFrame, types: TypeMapping) -> pa.Table:
    table = pa.Table.from_pandas(df, preserve_index=False)
    semantic = {col: types[col].to_dict() for col in df.columns}
    metadata = dict(table.schema.metadata or {})
    metadata[SEMANTIC_TYPES_KEY.encode()] = json.dumps(semantic).encode()
    return table.replace_schema_metadata(metadata)


def write_table(
    df: pd.DataFrame,
    path: FilePath,
    types: TypeMapping,
    fmt: str | None = None,
) -> Path:
    """Write a fully typed table to Parquet or Feather.

    The semantic types travel in the file's schema metadata so
    :func:`read_output` can restore category labels and their order. The file
    is staged next to the destination and renamed into place, so a failed
    write never leaves a partial file behind.
    """
    path = Path(path)
    fmt = resolve_format(path, fmt)
    check_typed_table(df, types)
    table = _to_arrow(df, types)

    staging = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        match fmt:
            case "parquet":
                pq.write_table(table, staging)
            case "feather":
                feather.write_feather(table, staging)
        os.replace(staging, path)
    except OSError as exc:
        if staging.exists():
            staging.unlink()
        raise TableIOError(f"Failed to write {path}: {exc}") from exc

    logger.info("Wrote %d rows to %s (%s)", len(df), path, fmt)
    return path


def _semantic_types(table: pa.Table, path: Path) -> TypeMapping:
    raw = (table.schema.metadata or {}).get(SEMANTIC_TYPES_KEY.encode())
    if raw is None:
        raise TableSchemaError([f"{path} carries no '{SEMANTIC_TYPES_KEY}' metadata"])
    return {
        col: ColumnType(
            kind=SemanticKind(spec["kind"]),
            labels=tuple(spec.get("labels", ())),
            format=spec.get("format"),
        )
        for col, spec in json.loads(raw).items()
    }


def read_output(path: FilePath) -> tuple[pd.DataFrame, TypeMapping]:
    """Reload a file written by :func:`write_table` with its exact dtypes."""
    path = Path(path)
    fmt = resolve_format(path)
    try:
        match fmt:
            case "parquet":
                table = pq.read_table(path)
            case "feather":
                table = feather.read_table(path)
    except (OSError, pa.ArrowInvalid) as exc:
        raise TableIOError(f"Failed to read {path}: {exc}") from exc

    types = _semantic_types(table, path)
    df = table.to_pandas()
    for col, ctype in types.items():
        df[col] = df[col].astype(ctype.dtype)
    return df, types
