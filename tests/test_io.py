"""
Tests for the delimited-text loader and the typed columnar writer/reader.

All files live under pytest's tmp_path.
"""

from pathlib import Path

import pandas as pd
import pyarrow.parquet as pq
import pytest

from cleanpipe.errors import ConfigError, TableIOError, TableSchemaError
from cleanpipe.utils.io import SEMANTIC_TYPES_KEY, read_output, read_table, resolve_format, write_table
from cleanpipe.utils.types import ColumnType


# ============================================================================
# read_table
# ============================================================================

def test_read_sample_keeps_raw_headers_and_sentinels(sample_csv):
    df = read_table(sample_csv)

    assert list(df.columns) == ["A", "B", "C", "D"]
    assert len(df) == 7
    assert "na" in df["A"].tolist()
    assert "na" in df["B"].tolist()
    assert -1 in df["C"].tolist()


def test_read_numeric_column_gets_numeric_dtype(sample_csv):
    df = read_table(sample_csv)

    assert df["C"].dtype == "int64"


def test_mixed_column_keeps_integer_cells(tmp_path):
    path = tmp_path / "mixed.csv"
    path.write_text("x\nna\n-1\n0\n2.5\n\n")

    df = read_table(path)

    values = df["x"].tolist()
    assert values[0] == "na"
    assert values[1] == -1 and isinstance(values[1], int)
    assert values[2] == 0
    assert values[3] == 2.5


def test_padded_codes_keep_their_text(tmp_path):
    path = tmp_path / "codes.csv"
    path.write_text("code,n\n01,1\n+5,-1\n007,0.5\n10,2.5\n")

    df = read_table(path)

    assert df["code"].tolist() == ["01", "+5", "007", 10]
    assert df["n"].tolist() == [1, -1, 0.5, 2.5]


def test_na_like_strings_are_not_inferred(tmp_path):
    path = tmp_path / "strings.csv"
    path.write_text("x,y\nNA,nan\nNULL,\n")

    df = read_table(path)

    assert df["x"].tolist() == ["NA", "NULL"]
    assert df["y"].tolist() == ["nan", ""]
    assert not df.isna().any().any()


def test_custom_delimiter(tmp_path):
    path = tmp_path / "semi.csv"
    path.write_text("a;b\n1;x\n")

    df = read_table(path, delimiter=";")

    assert list(df.columns) == ["a", "b"]
    assert df["a"].iloc[0] == 1


def test_latin1_file_is_decoded(tmp_path):
    path = tmp_path / "latin.csv"
    path.write_bytes("name\nJos\xe9\n".encode("latin-1"))

    df = read_table(path)

    assert df["name"].iloc[0] == "José"


def test_missing_file_raises_io_error(tmp_path):
    with pytest.raises(TableIOError):
        read_table(tmp_path / "nope.csv")


def test_empty_file_raises_io_error(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")

    with pytest.raises(IOError):
        read_table(path)


# ============================================================================
# write_table / read_output
# ============================================================================

@pytest.mark.parametrize("suffix", [".parquet", ".feather"])
def test_round_trip_preserves_names_types_and_values(typed_table, config, tmp_path, suffix):
    path = write_table(typed_table, tmp_path / f"students{suffix}", config.types)

    loaded, types = read_output(path)

    assert types == config.types
    pd.testing.assert_frame_equal(loaded, typed_table)


def test_round_trip_keeps_unused_category_labels(config, tmp_path):
    df = pd.DataFrame(
        {
            "gender": pd.Categorical(["male"], categories=["male", "female"]),
            "dob": pd.Series(pd.to_datetime(["2001-03-14"]), dtype="datetime64[ns]"),
            "score": pd.array([95.0], dtype="Float64"),
            "grade": pd.Categorical(["A"], categories=["D", "C", "B", "A"], ordered=True),
        }
    )

    loaded, _ = read_output(write_table(df, tmp_path / "one.parquet", config.types))

    assert list(loaded["grade"].dtype.categories) == ["D", "C", "B", "A"]
    assert loaded["grade"].dtype.ordered
    assert list(loaded["gender"].dtype.categories) == ["male", "female"]


def test_semantic_types_embedded_in_metadata(typed_table, config, tmp_path):
    path = write_table(typed_table, tmp_path / "students.parquet", config.types)

    metadata = pq.read_schema(path).metadata

    assert SEMANTIC_TYPES_KEY.encode() in metadata


def test_write_creates_parent_directory(typed_table, config, tmp_path):
    path = write_table(typed_table, tmp_path / "nested" / "dir" / "out.parquet", config.types)

    assert path.exists()


def test_unwritable_destination_raises_io_error(typed_table, config, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(TableIOError):
        write_table(typed_table, blocker / "out.parquet", config.types)


def test_failed_write_leaves_no_file(typed_table, config, tmp_path, monkeypatch):
    def broken_write(table, where):
        with open(where, "wb") as f:
            f.write(b"PAR1 partial")
        raise OSError("disk full")

    monkeypatch.setattr(pq, "write_table", broken_write)
    target = tmp_path / "out.parquet"

    with pytest.raises(TableIOError):
        write_table(typed_table, target, config.types)

    assert list(tmp_path.iterdir()) == []


def test_untyped_table_is_not_written(typed_table, config, tmp_path):
    target = tmp_path / "out.parquet"

    with pytest.raises(TableSchemaError):
        write_table(typed_table.assign(note="x"), target, config.types)

    assert not target.exists()


def test_resolve_format():
    assert resolve_format(Path("a.parquet")) == "parquet"
    assert resolve_format(Path("a.arrow")) == "feather"
    assert resolve_format(Path("a.bin"), "feather") == "feather"

    with pytest.raises(ConfigError):
        resolve_format(Path("a.csv"))


@pytest.mark.parametrize(
    "name, fmt",
    [("a.parquet", "feather"), ("a.pq", "feather"), ("a.feather", "parquet"), ("a.arrow", "parquet")],
)
def test_resolve_format_rejects_suffix_mismatch(name, fmt):
    with pytest.raises(ConfigError):
        resolve_format(Path(name), fmt)


def test_mismatched_format_writes_nothing(typed_table, config, tmp_path):
    target = tmp_path / "students.feather"

    with pytest.raises(ConfigError):
        write_table(typed_table, target, config.types, fmt="parquet")

    assert list(tmp_path.iterdir()) == []


def test_read_output_without_metadata(tmp_path):
    path = tmp_path / "plain.parquet"
    pd.DataFrame({"x": [1]}).to_parquet(path)

    with pytest.raises(TableSchemaError):
        read_output(path)


def test_integer_column_round_trip(tmp_path):
    types = {"n": ColumnType.integer()}
    df = pd.DataFrame({"n": pd.array([1, None, 3], dtype="Int64")})

    loaded, _ = read_output(write_table(df, tmp_path / "ints.feather", types))

    pd.testing.assert_frame_equal(loaded, df)
