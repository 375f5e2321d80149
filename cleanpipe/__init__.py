"""cleanpipe: a five-stage cleaning pipeline for small tabular datasets.

Rename columns, normalize missing values, coerce types, drop duplicate rows
and validate row-level invariants, then write a typed columnar file.
"""

from cleanpipe.config import CleaningConfig, OutputConfig, default_config, load_cleaning_config
from cleanpipe.errors import (
    CleaningError,
    ConfigError,
    KeyConflict,
    TableIOError,
    TableSchemaError,
    TypeCoercionError,
    ValidationPredicateError,
)
from cleanpipe.run import run_pipeline
from cleanpipe.utils import (
    ABSENT,
    ColumnType,
    SemanticKind,
    coerce_types,
    drop_duplicate_rows,
    normalize_missing,
    read_output,
    read_table,
    rename_columns,
    validate_rows,
    write_table,
)

__version__ = "0.1.0"
