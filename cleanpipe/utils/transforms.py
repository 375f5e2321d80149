"""Column renaming, missing-value normalization and row deduplication."""

import logging
import re
from collections import Counter
from collections.abc import Iterable

import pandas as pd

from cleanpipe.errors import KeyConflict
from cleanpipe.utils.types import ABSENT, ColumnMapping, Sentinel

logger = logging.getLogger(__name__)


def _snake_case(name: str) -> str:
    name = re.sub(r"[\s-]+", "_", str(name).strip().lower())
    return re.sub(r"_+", "_", name).strip("_")


def _raise_on_duplicates(names: Iterable[str], context: str) -> None:
    duplicates = sorted(name for name, n in Counter(names).items() if n > 1)
    if duplicates:
        raise KeyConflict(f"{context} produces duplicate column names: {duplicates}")


def normalize_column_names(df: pd.DataFrame) -> pd.DataFrame:
    """Normalize column names to snake_case."""
    names = [_snake_case(col) for col in df.columns]
    _raise_on_duplicates(names, "snake_case normalization")
    result = df.copy()
    result.columns = names
    return result


def rename_columns(df: pd.DataFrame, mapping: ColumnMapping) -> pd.DataFrame:
    """Rename the columns listed in ``mapping``; every other column keeps its name.

    Keys that are not columns of ``df`` are ignored. Raises ``KeyConflict``
    when two old names share a target, or a target collides with a column that
    is not being renamed.
    """
    applicable = {old: new for old, new in mapping.items() if old in df.columns}
    ignored = [old for old in mapping if old not in applicable]
    if ignored:
        logger.debug("Rename keys not present in table: %s", ignored)

    _raise_on_duplicates(applicable.values(), "Rename mapping")
    kept = {col for col in df.columns if col not in applicable}
    collisions = sorted(set(applicable.values()) & kept)
    if collisions:
        raise KeyConflict(f"Rename targets collide with existing columns: {collisions}")

    logger.info("Renamed %d of %d columns", len(applicable), len(df.columns))
    return df.rename(columns=applicable)


def normalize_missing(df: pd.DataFrame, sentinels: Iterable[Sentinel]) -> pd.DataFrame:
    """Replace every sentinel cell, in any column, with the absent marker.

    NA-likes already present (``None``, ``NaN``, ``NaT``) are folded into the
    same marker. Columns that receive the marker are held as ``object`` until
    type coercion; untouched columns keep their dtype. Matching is Python
    ``==``, so ``-1`` also hits ``-1.0``.
    """
    values = list(sentinels)
    result = df.copy()
    for col in result.columns:
        series = result[col]
        mask = series.isna()
        if values:
            mask |= series.isin(values)
        hits = int(mask.sum())
        if hits:
            result[col] = series.astype(object).mask(mask, ABSENT)
            logger.debug("Column '%s': %d cells marked absent", col, hits)
    return result


def drop_duplicate_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Drop rows identical to an earlier row across all columns, keeping the first.

    Absent cells compare equal to each other. Survivors keep their relative
    order and get a fresh ``0..n-1`` index.
    """
    keep = ~df.duplicated(keep="first")
    result = df[keep].reset_index(drop=True)
    dropped = len(df) - len(result)
    if dropped:
        logger.info("Dropped %d duplicate rows (%d remain)", dropped, len(result))
    return result
