import numpy as np
import pandas as pd
import pytest
from statsmodels.regression.linear_model import OLS
from statsmodels.tools import add_constant

from Schemas.outliers import OutlierStrategy
from core.exceptions import SchemaError
from core.outlier_engine import (
    apply_mask,
    category_mask,
    cooks_distance_mask,
    cooks_distances,
    iqr_bounds,
    iqr_outlier_mask,
)


@pytest.fixture
def normal_frame():
    rng = np.random.default_rng(0)
    df = pd.DataFrame({
        "a": rng.normal(0.0, 1.0, 200),
        "b": rng.normal(10.0, 2.0, 200),
    })
    df.loc[5, "a"] = 60.0
    df.loc[17, "b"] = -90.0
    df.loc[5, "b"] = 500.0
    return df


class TestIQRFilter:

    def test_bounds_use_linear_quartiles(self):
        s = pd.Series([1.0, 2.0, 3.0, 4.0, 5.0], name="x")
        b = iqr_bounds(s, multiplier=1.5)
        assert b.q1 == 2.0
        assert b.q3 == 4.0
        assert b.lower == pytest.approx(-1.0)
        assert b.upper == pytest.approx(7.0)

    def test_flags_are_unioned_across_columns(self, normal_frame):
        mask = iqr_outlier_mask(normal_frame, ["a", "b"], multiplier=5.0)
        assert sorted(mask.flagged_index) == [5, 17]
        assert mask.strategy == OutlierStrategy.IQR
        assert [(b.column, b.n_flagged) for b in mask.bounds] == [("a", 1), ("b", 2)]
        _, step = apply_mask(normal_frame, mask)
        assert "Flags per column: a=1, b=2." in step.summary

    def test_flagged_and_retained_partition_the_rows(self, normal_frame):
        mask = iqr_outlier_mask(normal_frame, ["a", "b"])
        retained, out = apply_mask(normal_frame, mask)

        assert out.n_flagged + out.n_after == len(normal_frame)
        assert set(retained.index).isdisjoint(mask.flagged_index)
        assert set(retained.index) | set(mask.flagged_index) == set(normal_frame.index)

    def test_second_pass_flags_nothing_new(self, normal_frame):
        first = iqr_outlier_mask(normal_frame, ["a", "b"])
        retained, _ = apply_mask(normal_frame, first)

        second = iqr_outlier_mask(retained, ["a", "b"])
        assert second.flagged_index == []

    def test_missing_values_ignored(self):
        df = pd.DataFrame({"a": [1.0, 2.0, np.nan, 3.0, 4.0, 100.0]})
        mask = iqr_outlier_mask(df, ["a"], multiplier=1.5)
        assert mask.flagged_index == [5]

    def test_constant_column_is_excluded_not_flagged(self):
        df = pd.DataFrame({
            "const": [1.0] * 20 + [1.0000001],
            "x": list(range(21)),
        })
        mask = iqr_outlier_mask(df, ["const", "x"])

        assert mask.degenerate_columns == ["const"]
        assert mask.flagged_index == []
        assert [b.column for b in mask.bounds] == ["x"]

    def test_small_scale_column_is_not_degenerate(self):
        rng = np.random.default_rng(3)
        df = pd.DataFrame({"tiny": rng.normal(0.0, 1e-13, 200)})
        df.loc[42, "tiny"] = 1e-10
        mask = iqr_outlier_mask(df, ["tiny"])

        assert mask.degenerate_columns == []
        assert 42 in mask.flagged_index

    def test_unknown_column_is_schema_error(self, normal_frame):
        with pytest.raises(SchemaError):
            iqr_outlier_mask(normal_frame, ["missing"])


class TestCategoryFilter:

    def test_flags_matching_values(self):
        df = pd.DataFrame({"Weekday": ["Monday", "Sunday", "Tuesday", "Sunday"]})
        mask = category_mask(df, "Weekday", ["Sunday"])
        retained, out = apply_mask(df, mask)

        assert mask.flagged_index == [1, 3]
        assert retained["Weekday"].tolist() == ["Monday", "Tuesday"]
        assert out.n_after == 2


class TestCooksDistance:

    def test_zero_residual_gives_zero_distance(self):
        x = np.array([-2.0, -1.0, 0.0, 1.0, 2.0])
        y = np.array([1.0, -1.0, 0.0, -1.0, 1.0])
        model = OLS(y, add_constant(x)).fit()

        distances = cooks_distances(model)
        assert model.resid[2] == pytest.approx(0.0, abs=1e-12)
        assert distances[2] == pytest.approx(0.0, abs=1e-12)

    def test_removing_dominant_outlier_lowers_max_distance(self):
        rng = np.random.default_rng(1)
        x = np.linspace(0.0, 10.0, 30)
        y = 1.0 + 2.0 * x + rng.normal(0.0, 0.5, 30)
        y[-1] += 40.0
        df = pd.DataFrame({"x": x, "y": y})

        model = OLS(df["y"], add_constant(df[["x"]])).fit()
        distances = cooks_distances(model)
        worst = int(np.argmax(distances))
        assert worst == 29

        trimmed = df.drop(index=worst)
        refit = OLS(trimmed["y"], add_constant(trimmed[["x"]])).fit()
        assert cooks_distances(refit).max() < distances.max()

    def test_threshold_is_four_over_n_inclusive(self, linear_frame):
        df = linear_frame.copy()
        df.loc[0, "y"] += 30.0
        model = OLS(df["y"], add_constant(df[["x1", "x2"]])).fit()

        mask = cooks_distance_mask(model, index=df.index)
        distances = cooks_distances(model)

        assert mask.threshold == pytest.approx(4.0 / len(df))
        assert 0 in mask.flagged_index
        expected = df.index[distances >= 4.0 / len(df)].tolist()
        assert mask.flagged_index == expected

    def test_index_defaults_to_model_row_labels(self, linear_frame):
        df = linear_frame.set_index(pd.RangeIndex(100, 160))
        df.loc[100, "y"] += 30.0
        model = OLS(df["y"], add_constant(df[["x1", "x2"]])).fit()

        mask = cooks_distance_mask(model)
        assert 100 in mask.flagged_index
