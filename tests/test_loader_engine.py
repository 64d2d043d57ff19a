import pandas as pd
import pytest

from core.exceptions import NumericDegeneracyError, SchemaError
from core.loader_engine import add_ratio_column, add_weekday_column, load_table


def write(tmp_path, text, name="table.csv"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadTable:

    def test_decimal_commas_and_semicolon_separator(self, tmp_path):
        path = write(tmp_path, "Date;Energy;Text\n01/11/2023;12,5;-1,25\n02/11/2023;1.234,5;3\n")
        df, out = load_table(path, numeric_columns=["Energy", "Text"], date_column="Date")

        assert out.separator == ";"
        assert df["Energy"].tolist() == [12.5, 1234.5]
        assert df["Text"].tolist() == [-1.25, 3.0]
        energy_log = next(log for log in out.column_logs if log.column == "Energy")
        assert energy_log.decimal_commas_normalised == 2

    def test_dates_parsed_day_first_to_calendar_dates(self, tmp_path):
        path = write(tmp_path, "Date;Energy\n03/11/2023;1\n04/11/2023;2\n")
        df, _ = load_table(path, numeric_columns=["Energy"], date_column="Date", dayfirst=True)

        assert df["Date"].iloc[0] == pd.Timestamp("2023-11-03")
        assert (df["Date"].dt.hour == 0).all()

    def test_incomplete_rows_dropped(self, tmp_path):
        path = write(tmp_path, "A,B\n1,2\n,3\n4,5\n")
        df, out = load_table(path, numeric_columns=["A", "B"])

        assert len(df) == 2
        assert out.rows_dropped_total == 1
        assert list(df.index) == [0, 2]

    def test_missing_required_column_is_schema_error(self, tmp_path):
        path = write(tmp_path, "A,B\n1,2\n")
        with pytest.raises(SchemaError) as exc:
            load_table(path, required_columns=["A", "Energy"])
        assert exc.value.columns == ["Energy"]

    def test_declared_numeric_column_must_parse(self, tmp_path):
        path = write(tmp_path, "A,B\nx,1\ny,2\nz,3\n")
        with pytest.raises(SchemaError):
            load_table(path, numeric_columns=["A"])

    def test_undeclared_text_column_stays_categorical(self, tmp_path):
        path = write(tmp_path, "Id,Class,Value\nE1,A,1\nE2,B,2\n")
        df, out = load_table(path)

        assert out.numeric_columns == ["Value"]
        assert set(out.categorical_columns) == {"Id", "Class"}
        assert df["Class"].tolist() == ["A", "B"]


class TestDerivedColumns:

    def test_weekday_column(self):
        df = pd.DataFrame({"Date": pd.to_datetime(["2023-10-15", "2023-10-16"])})
        out = add_weekday_column(df, "Date")
        assert out["Weekday"].tolist() == ["Sunday", "Monday"]
        assert "Weekday" not in df.columns

    def test_ratio_column(self):
        df = pd.DataFrame({"a": [2.0, 9.0], "b": [1.0, 3.0]})
        out = add_ratio_column(df, "ratio", "a", "b")
        assert out["ratio"].tolist() == [2.0, 3.0]

    def test_ratio_zero_denominator_is_fatal(self):
        df = pd.DataFrame({"a": [2.0, 9.0], "b": [1.0, 0.0]})
        with pytest.raises(NumericDegeneracyError):
            add_ratio_column(df, "ratio", "a", "b")
