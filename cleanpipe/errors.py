"""Exception hierarchy for the cleaning pipeline.

Every stage raises one of these and never recovers on its own; the runner
aborts on the first error, before anything is written.
"""


class CleaningError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(CleaningError):
    """The cleaning configuration is malformed or names something unknown."""


class KeyConflict(CleaningError):
    """A rename would leave two columns with the same name."""


class TypeCoercionError(CleaningError):
    """A concrete value cannot be represented in its column's target type."""

    def __init__(self, column: str, message: str, values: list | None = None):
        self.column = column
        self.values = list(values or [])
        detail = f" (offending values: {self.values[:5]!r})" if self.values else ""
        super().__init__(f"Column '{column}': {message}{detail}")


class TableSchemaError(CleaningError):
    """A table does not match the typed schema it is supposed to carry."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Table does not match its semantic types:\n  " + "\n  ".join(errors))


class ValidationPredicateError(CleaningError):
    """A row predicate raised or returned a non-boolean result."""

    def __init__(self, row: int, message: str):
        self.row = row
        super().__init__(f"Predicate failed on row {row}: {message}")


class TableIOError(CleaningError, OSError):
    """Reading the source or writing the destination file failed."""
