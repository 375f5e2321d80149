"""Shared fixtures: the student-grades example in raw and cleaned form."""

from pathlib import Path

import pandas as pd
import pytest

from cleanpipe.config import default_config
from cleanpipe.utils.coercion import coerce_types
from cleanpipe.utils.transforms import drop_duplicate_rows, normalize_missing, rename_columns

SAMPLE_DIR = Path(__file__).parent.parent / "sample"


@pytest.fixture
def sample_csv() -> Path:
    return SAMPLE_DIR / "students.csv"


@pytest.fixture
def config():
    return default_config()


@pytest.fixture
def raw_table() -> pd.DataFrame:
    """Raw frame as the loader produces it: coded headers, sentinels in place."""
    return pd.DataFrame(
        {
            "A": pd.Series(["male", "female", "na", "male"], dtype=object),
            "B": pd.Series(["2001-03-14", "2000-11-02", "2002-01-30", "2001-03-14"], dtype=object),
            "C": pd.Series([95, 82, 61, -1], dtype=object),
            "D": pd.Series(["A", "B", "D", "na"], dtype=object),
        }
    )


@pytest.fixture
def typed_table(raw_table, config) -> pd.DataFrame:
    df = rename_columns(raw_table, config.renames)
    df = normalize_missing(df, config.sentinels)
    df = coerce_types(df, config.types)
    return drop_duplicate_rows(df)
