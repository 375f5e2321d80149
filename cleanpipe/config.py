"""Cleaning configuration: rename, sentinel and type mappings plus output settings."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from cleanpipe.errors import ConfigError
from cleanpipe.utils.io import OUTPUT_FORMATS
from cleanpipe.utils.types import ColumnMapping, ColumnType, FilePath, Sentinel, SemanticKind, TypeMapping

type ConfigDict = dict[str, str | int | bool | list | dict]


@dataclass(frozen=True)
class OutputConfig:
    format: str | None = None
    path: Path | None = None


@dataclass(frozen=True)
class CleaningConfig:
    renames: ColumnMapping = field(default_factory=dict)
    sentinels: tuple[Sentinel, ...] = ()
    types: TypeMapping = field(default_factory=dict)
    predicate: str | None = None
    delimiter: str = ","
    snake_case_headers: bool = False
    output: OutputConfig = field(default_factory=OutputConfig)


def parse_column_type(name: str, spec: ConfigDict | str) -> ColumnType:
    """Turn a ``{kind, labels, format}`` table (or a bare kind name) into a ``ColumnType``."""
    match spec:
        case str(kind):
            spec = {}
        case {"kind": str(kind)}:
            pass
        case _:
            raise ConfigError(f"Type for column '{name}' needs a 'kind' entry")

    try:
        semantic = SemanticKind(kind)
    except ValueError:
        choices = ", ".join(k.value for k in SemanticKind)
        raise ConfigError(f"Unknown type kind '{kind}' for column '{name}' (expected one of: {choices})") from None

    labels = spec.get("labels", [])
    match semantic:
        case SemanticKind.CATEGORY | SemanticKind.ORDERED_CATEGORY if not labels:
            raise ConfigError(f"Category column '{name}' needs a non-empty 'labels' list")
        case SemanticKind.CATEGORY | SemanticKind.ORDERED_CATEGORY if len(set(labels)) != len(labels):
            raise ConfigError(f"Category column '{name}' has duplicate labels: {labels}")
        case SemanticKind.TIMESTAMP:
            return ColumnType.timestamp(spec.get("format"))
        case SemanticKind.INTEGER | SemanticKind.FLOAT:
            return ColumnType(semantic)
    return ColumnType(semantic, labels=tuple(labels))


def _section(data: ConfigDict, key: str) -> dict:
    """A nested table; an empty YAML key (``output:``) counts as missing."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{key}' must be a table, got {type(value).__name__}")
    return value


def config_from_dict(data: ConfigDict) -> CleaningConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a table of settings, got {type(data).__name__}")

    output = _section(data, "output")
    fmt = output.get("format")
    if fmt is not None and fmt not in OUTPUT_FORMATS:
        raise ConfigError(f"Unsupported output format: {fmt}")

    renames = {str(old): str(new) for old, new in _section(data, "rename").items()}
    types = {col: parse_column_type(col, spec) for col, spec in _section(data, "types").items()}

    sentinels = data.get("sentinels") or []
    if not isinstance(sentinels, list):
        raise ConfigError(f"'sentinels' must be a list, got {type(sentinels).__name__}")
    sentinels = tuple(sentinels)
    # True == 1 under isin, so a boolean would blank out every 1 and 0
    if any(isinstance(s, bool) for s in sentinels):
        raise ConfigError(f"Boolean sentinels are not supported: {list(sentinels)}")

    return CleaningConfig(
        renames=renames,
        sentinels=sentinels,
        types=types,
        predicate=data.get("predicate"),
        delimiter=data.get("delimiter", ","),
        snake_case_headers=bool(data.get("snake_case_headers", False)),
        output=OutputConfig(
            format=fmt,
            path=Path(output["path"]) if output.get("path") else None,
        ),
    )


def load_cleaning_config(path: FilePath) -> CleaningConfig:
    """Load a cleaning config from a TOML or YAML file."""
    path = Path(path)
    try:
        match path.suffix.lower():
            case ".toml":
                with open(path, "rb") as f:
                    data = tomllib.load(f)
            case ".yaml" | ".yml":
                with open(path) as f:
                    data = yaml.safe_load(f) or {}
            case other:
                raise ConfigError(f"Unsupported config file type: {other or path.name}")
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot parse config {path}: {exc}") from exc

    return config_from_dict(data)


def default_config() -> CleaningConfig:
    """The student-grades example: four coded columns, two sentinels, four types.

    Output goes to ``output/students.parquet`` relative to the working directory.
    """
    return CleaningConfig(
        renames={"A": "gender", "B": "dob", "C": "score", "D": "grade"},
        sentinels=("na", -1),
        types={
            "gender": ColumnType.category(["male", "female"]),
            "dob": ColumnType.timestamp(),
            "score": ColumnType.floating(),
            "grade": ColumnType.ordered_category(["D", "C", "B", "A"]),
        },
        predicate="grade_score_consistency",
        output=OutputConfig(path=Path("output/students.parquet")),
    )
