"""Shared type definitions for the pipeline."""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

import pandas as pd

type ColumnMapping = dict[str, str]
type Sentinel = str | int | float
type SentinelList = Sequence[Sentinel]
type RowView = Mapping[str, object]
type RowPredicate = Callable[[RowView], bool]
type FilePath = str | Path

# Canonical "no value" marker shared by every column.
ABSENT = pd.NA


def is_absent(value: object) -> bool:
    """True for the absent marker and every NA-like pandas may store for it."""
    if value is ABSENT or value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # array-likes are never a single absent cell
        return False


class SemanticKind(StrEnum):
    INTEGER = "integer"
    FLOAT = "float"
    TIMESTAMP = "timestamp"
    CATEGORY = "category"
    ORDERED_CATEGORY = "ordered_category"


@dataclass(frozen=True)
class ColumnType:
    """Semantic type of one column.

    Category kinds carry their label set; for ``ORDERED_CATEGORY`` the labels
    are listed from lowest to highest. ``format`` is only read for timestamps.
    """

    kind: SemanticKind
    labels: tuple = ()
    format: str | None = None

    @classmethod
    def integer(cls) -> "ColumnType":
        return cls(SemanticKind.INTEGER)

    @classmethod
    def floating(cls) -> "ColumnType":
        return cls(SemanticKind.FLOAT)

    @classmethod
    def timestamp(cls, fmt: str | None = None) -> "ColumnType":
        return cls(SemanticKind.TIMESTAMP, format=fmt)

    @classmethod
    def category(cls, labels: Sequence) -> "ColumnType":
        return cls(SemanticKind.CATEGORY, labels=tuple(labels))

    @classmethod
    def ordered_category(cls, labels: Sequence) -> "ColumnType":
        return cls(SemanticKind.ORDERED_CATEGORY, labels=tuple(labels))

    @property
    def is_categorical(self) -> bool:
        return self.kind in (SemanticKind.CATEGORY, SemanticKind.ORDERED_CATEGORY)

    @property
    def dtype(self) -> str | pd.CategoricalDtype:
        """The pandas dtype a column of this type is stored as."""
        match self.kind:
            case SemanticKind.INTEGER:
                return "Int64"
            case SemanticKind.FLOAT:
                return "Float64"
            case SemanticKind.TIMESTAMP:
                return "datetime64[ns]"
            case SemanticKind.CATEGORY | SemanticKind.ORDERED_CATEGORY:
                return pd.CategoricalDtype(
                    categories=list(self.labels),
                    ordered=self.kind is SemanticKind.ORDERED_CATEGORY,
                )

    def to_dict(self) -> dict[str, str | list]:
        data: dict[str, str | list] = {"kind": str(self.kind)}
        if self.labels:
            data["labels"] = list(self.labels)
        if self.format:
            data["format"] = self.format
        return data


type TypeMapping = dict[str, ColumnType]


class StageStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StageResult:
    stage: str
    rows_in: int
    rows_out: int
    status: StageStatus = StageStatus.SUCCESS
    detail: str = ""


@dataclass
class PipelineResult:
    table: pd.DataFrame
    valid: pd.Series | None
    stages: list[StageResult] = field(default_factory=list)
    output_path: Path | None = None

    @property
    def invalid_count(self) -> int:
        if self.valid is None:
            return 0
        return int((~self.valid).sum())
