"""Shared utilities for the cleaning pipeline."""

from cleanpipe.utils.io import read_table, write_table, read_output
from cleanpipe.utils.transforms import rename_columns, normalize_missing, drop_duplicate_rows
from cleanpipe.utils.coercion import coerce_types
from cleanpipe.utils.validators import validate_rows, check_typed_table
from cleanpipe.utils.types import ABSENT, ColumnType, SemanticKind, TypeMapping
