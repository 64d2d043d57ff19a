import numpy as np
import pandas as pd
import pytest

from core.exceptions import InsufficientDataError, NumericDegeneracyError, SchemaError
from core.regression_engine import fit_ols, fit_with_influence_refit


class TestFitOLS:

    def test_recovers_known_coefficients(self, linear_frame):
        result, model = fit_ols(linear_frame, "y", ["x1", "x2"])

        assert result.coefficient("const").estimate == pytest.approx(2.0, abs=0.5)
        assert result.coefficient("x1").estimate == pytest.approx(1.5, abs=0.1)
        assert result.coefficient("x2").estimate == pytest.approx(-0.7, abs=0.1)
        assert result.r_squared > 0.95
        assert result.n_observations == len(linear_frame)
        assert result.df_model == 2
        assert result.df_resid == len(linear_frame) - 3

    def test_per_record_diagnostics_follow_row_labels(self, linear_frame):
        df = linear_frame.set_index(pd.RangeIndex(10, 70))
        result, model = fit_ols(df, "y", ["x1", "x2"])

        assert [o.index for o in result.observations] == list(range(10, 70))
        assert result.observations[0].residual == pytest.approx(float(model.resid.iloc[0]))
        assert all(0.0 <= o.leverage <= 1.0 for o in result.observations)

    def test_confidence_interval_contains_estimate(self, linear_frame):
        result, _ = fit_ols(linear_frame, "y", ["x1", "x2"])
        for c in result.coefficients:
            assert c.ci_lower <= c.estimate <= c.ci_upper

    def test_unknown_coefficient_lookup(self, linear_frame):
        result, _ = fit_ols(linear_frame, "y", ["x1", "x2"])
        with pytest.raises(KeyError):
            result.coefficient("x3")

    def test_collinear_predictors_are_fatal(self, linear_frame):
        df = linear_frame.assign(x3=2.0 * linear_frame["x1"])
        with pytest.raises(NumericDegeneracyError) as exc:
            fit_ols(df, "y", ["x1", "x3"])
        assert exc.value.stage == "regression"

    def test_no_residual_degrees_of_freedom_is_fatal(self, linear_frame):
        with pytest.raises(InsufficientDataError) as exc:
            fit_ols(linear_frame.head(3), "y", ["x1", "x2"])
        assert exc.value.required == 4

    def test_missing_values_are_fatal(self, linear_frame):
        df = linear_frame.copy()
        df.loc[3, "x1"] = np.nan
        with pytest.raises(NumericDegeneracyError):
            fit_ols(df, "y", ["x1", "x2"])

    def test_missing_column_is_schema_error(self, linear_frame):
        with pytest.raises(SchemaError):
            fit_ols(linear_frame, "y", ["x1", "Iext"])


class TestInfluenceRefit:

    def test_final_fit_is_on_the_retained_rows(self, linear_frame):
        df = linear_frame.copy()
        df.loc[[0, 1], "y"] += 25.0

        out = fit_with_influence_refit(df, "y", ["x1", "x2"])
        flagged = out["cooks_mask"].flagged_index

        assert {0, 1} <= set(flagged)
        assert out["final_result"].n_observations == len(df) - len(flagged)
        assert out["initial_result"].n_observations == len(df)
        assert set(out["final_df"].index).isdisjoint(flagged)

    def test_refit_is_closer_to_the_clean_model(self, linear_frame):
        df = linear_frame.copy()
        df.loc[[0, 1], "y"] += 25.0

        out = fit_with_influence_refit(df, "y", ["x1", "x2"])
        assert out["final_result"].r_squared > out["initial_result"].r_squared
        assert out["final_result"].rmse < out["initial_result"].rmse
