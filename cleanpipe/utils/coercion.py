"""Reinterpret raw columns under their semantic types."""

import logging

import pandas as pd

from cleanpipe.errors import TypeCoercionError
from cleanpipe.utils.types import ColumnType, SemanticKind, TypeMapping

logger = logging.getLogger(__name__)


def _coerce_numeric(name: str, concrete: pd.Series, integral: bool) -> pd.Series:
    parsed = pd.to_numeric(concrete, errors="coerce")
    bad = concrete[parsed.isna()]
    if not bad.empty:
        raise TypeCoercionError(name, "values are not numeric", bad.tolist())
    if integral:
        fractional = concrete[(parsed % 1) != 0]
        if not fractional.empty:
            raise TypeCoercionError(name, "values are not whole numbers", fractional.tolist())
    return parsed


def _coerce_timestamp(name: str, concrete: pd.Series, fmt: str | None) -> pd.Series:
    try:
        parsed = pd.to_datetime(concrete.astype(str), errors="coerce", format=fmt or "mixed")
    except (TypeError, ValueError) as exc:
        raise TypeCoercionError(name, f"cannot parse timestamps: {exc}") from exc
    bad = concrete[parsed.isna()]
    if not bad.empty:
        raise TypeCoercionError(name, "values are not timestamps", bad.tolist())
    return parsed


def _coerce_category(name: str, concrete: pd.Series, labels: tuple) -> pd.Series:
    """Match each value to a label, first as-is and then by its string form."""
    if not labels:
        raise TypeCoercionError(name, "category type declares no labels")
    label_set = set(labels)
    by_text = {str(label): label for label in labels}
    resolved = concrete.map(lambda v: v if v in label_set else by_text.get(str(v)))
    bad = concrete[resolved.isna()]
    if not bad.empty:
        raise TypeCoercionError(name, f"values outside label set {list(labels)}", bad.tolist())
    return resolved


def coerce_column(name: str, series: pd.Series, ctype: ColumnType) -> pd.Series:
    """Return ``series`` stored as ``ctype.dtype``; absent cells stay absent."""
    if ctype.kind is SemanticKind.TIMESTAMP and pd.api.types.is_datetime64_any_dtype(series):
        return series.astype(ctype.dtype)

    absent = series.isna()
    concrete = series[~absent].astype(object)

    match ctype.kind:
        case SemanticKind.INTEGER:
            converted = _coerce_numeric(name, concrete, integral=True)
        case SemanticKind.FLOAT:
            converted = _coerce_numeric(name, concrete, integral=False)
        case SemanticKind.TIMESTAMP:
            converted = _coerce_timestamp(name, concrete, ctype.format)
        case SemanticKind.CATEGORY | SemanticKind.ORDERED_CATEGORY:
            converted = _coerce_category(name, concrete, ctype.labels)
        case other:
            raise TypeCoercionError(name, f"unknown semantic type {other!r}")

    try:
        return converted.reindex(series.index).astype(ctype.dtype)
    except (TypeError, ValueError) as exc:
        raise TypeCoercionError(name, f"cannot store as {ctype.dtype}: {exc}") from exc


def coerce_types(df: pd.DataFrame, types: TypeMapping) -> pd.DataFrame:
    """Coerce every column named in ``types``; unmapped columns are left alone."""
    missing = [col for col in types if col not in df.columns]
    if missing:
        raise TypeCoercionError(missing[0], f"not found in table (missing: {missing})")

    result = df.copy()
    for col, ctype in types.items():
        result[col] = coerce_column(col, result[col], ctype)
        logger.debug("Column '%s' coerced to %s", col, ctype.kind)
    logger.info("Coerced %d columns", len(types))
    return result
