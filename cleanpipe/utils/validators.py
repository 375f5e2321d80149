"""Typed-schema checks (pandera) and row-level predicate evaluation."""

import logging
from types import MappingProxyType

import numpy as np
import pandas as pd
import pandera.pandas as pa
from pandera.errors import SchemaErrors

from cleanpipe.errors import TableSchemaError, ValidationPredicateError
from cleanpipe.utils.types import ABSENT, RowPredicate, RowView, TypeMapping, is_absent

logger = logging.getLogger(__name__)


def build_schema(types: TypeMapping) -> pa.DataFrameSchema:
    """Build a strict pandera schema: one nullable column per semantic type."""
    columns = {}
    for name, ctype in types.items():
        checks = [pa.Check.isin(list(ctype.labels))] if ctype.is_categorical else []
        columns[name] = pa.Column(ctype.dtype, checks=checks, nullable=True)
    return pa.DataFrameSchema(columns, strict=True, coerce=False)


def check_typed_table(df: pd.DataFrame, types: TypeMapping) -> None:
    """Raise ``TableSchemaError`` unless every column carries its semantic dtype."""
    schema = build_schema(types)
    try:
        schema.validate(df, lazy=True)
    except SchemaErrors as e:
        errors = []
        for _, row in e.failure_cases.iterrows():
            match row.to_dict():
                case {"column": col, "check": check, "failure_case": val}:
                    errors.append(f"Column '{col}' failed check '{check}': {val}")
                case failure:
                    errors.append(f"Validation failure: {failure}")
        raise TableSchemaError(errors) from e


def _row_view(columns: list[str], values: tuple) -> RowView:
    return MappingProxyType(
        {col: ABSENT if is_absent(value) else value for col, value in zip(columns, values)}
    )


def validate_rows(df: pd.DataFrame, predicate: RowPredicate) -> pd.Series:
    """Evaluate ``predicate`` once per row, in order, without touching ``df``.

    The predicate sees a read-only mapping in which every absent cell is
    ``ABSENT``; it has to handle that marker itself. An exception or a
    non-boolean result is surfaced as ``ValidationPredicateError``.
    """
    columns = list(df.columns)
    results: list[bool] = []
    for position, values in enumerate(df.itertuples(index=False, name=None)):
        row = _row_view(columns, values)
        try:
            outcome = predicate(row)
        except Exception as exc:
            raise ValidationPredicateError(position, f"{type(exc).__name__}: {exc}") from exc
        if not isinstance(outcome, (bool, np.bool_)):
            raise ValidationPredicateError(position, f"expected a boolean, got {outcome!r}")
        results.append(bool(outcome))

    valid = pd.Series(results, index=df.index, name="valid", dtype=bool)
    logger.info("Validated %d rows: %d violate the predicate", len(valid), int((~valid).sum()))
    return valid
