"""
FILE: core/regression_engine.py
--------------------------------
Ordinary least squares of one response on a fixed set of predictors.
No interaction terms, no regularisation.

fit_ols() returns (RegressionResult, fitted_model). The fitted statsmodels
results object is handed on unserialized so the Cook's distance pass and
the post-fit checks can read residuals, leverage and influence directly.

fit_with_influence_refit() runs the two-pass procedure: fit, drop rows
with Cook's D >= 4/n, refit. Only the refit is reported as final.
"""

import logging

import numpy as np
import pandas as pd
from statsmodels.regression.linear_model import OLS
from statsmodels.tools import add_constant

from Schemas.regression import Coefficient, ObservationDiagnostics, RegressionResult
from constants.outliers import COOKS_NUMERATOR
from constants.regression import DEFAULT_ALPHA
from core.exceptions import InsufficientDataError, NumericDegeneracyError, SchemaError
from core.outlier_engine import apply_mask, cooks_distance_mask

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

def _row_label(label: object) -> str | int:
    return int(label) if isinstance(label, (int, np.integer)) else str(label)


def _design_matrix(
    df: pd.DataFrame,
    response: str,
    predictors: list[str],
) -> tuple[pd.Series, pd.DataFrame]:
    missing = [c for c in [response, *predictors] if c not in df.columns]
    if missing:
        raise SchemaError(f"Regression column(s) not found: {missing}.", columns=missing, stage="regression")

    data = df[[response, *predictors]].astype(float)
    non_finite = ~np.isfinite(data.to_numpy()).all(axis=1)
    if non_finite.any():
        raise NumericDegeneracyError(
            f"{int(non_finite.sum())} row(s) carry missing or infinite values in "
            f"{[response, *predictors]}; clean the table before fitting.",
            stage="regression",
        )

    n_obs, n_params = len(data), len(predictors) + 1
    if n_obs - n_params < 1:
        raise InsufficientDataError(
            f"OLS with {len(predictors)} predictor(s) and an intercept",
            n_rows=n_obs,
            required=n_params + 1,
            stage="regression",
        )

    X = add_constant(data[predictors], has_constant="add")
    rank = np.linalg.matrix_rank(X.to_numpy())
    if rank < n_params:
        raise NumericDegeneracyError(
            f"Design matrix has rank {rank} < {n_params}: predictors {predictors} are "
            f"perfectly collinear (or one is constant).",
            columns=list(predictors),
            stage="regression",
        )
    return data[response], X


# ─────────────────────────────────────────────
# FIT
# ─────────────────────────────────────────────

def fit_ols(
    df: pd.DataFrame,
    response: str,
    predictors: list[str],
    test_name: str = "Multiple Linear Regression",
) -> tuple[RegressionResult, object]:
    """
    OLS fit with full per-record diagnostics.
    Returns (RegressionResult, fitted_model).
    """
    y, X = _design_matrix(df, response, predictors)
    model = OLS(y, X).fit()

    influence = model.get_influence()
    leverage = influence.hat_matrix_diag
    cooks = influence.cooks_distance[0]

    ci = model.conf_int(alpha=DEFAULT_ALPHA)
    coefficients = []
    for i, name in enumerate(["const"] + list(predictors)):
        coefficients.append(Coefficient(
            variable=name,
            estimate=float(model.params.iloc[i]),
            std_error=float(model.bse.iloc[i]),
            t_statistic=float(model.tvalues.iloc[i]),
            p_value=float(model.pvalues.iloc[i]),
            ci_lower=float(ci.iloc[i, 0]),
            ci_upper=float(ci.iloc[i, 1]),
        ))

    observations = [
        ObservationDiagnostics(
            index=_row_label(label),
            fitted=float(model.fittedvalues.iloc[j]),
            residual=float(model.resid.iloc[j]),
            leverage=float(leverage[j]),
            cooks_distance=float(cooks[j]),
        )
        for j, label in enumerate(y.index)
    ]

    n_sig = sum(1 for c in coefficients[1:] if c.p_value is not None and c.p_value < DEFAULT_ALPHA)
    interpretation = (
        f"Model R²={model.rsquared:.4f}, "
        f"Adj. R²={model.rsquared_adj:.4f}, "
        f"F({int(model.df_model)},{int(model.df_resid)})="
        f"{model.fvalue:.4f}, p={model.f_pvalue:.4g}. "
        f"{n_sig} of {len(predictors)} predictor(s) are statistically significant."
    )

    result = RegressionResult(
        test_name=test_name,
        response=response,
        predictors=list(predictors),
        n_observations=int(model.nobs),
        coefficients=coefficients,
        r_squared=float(model.rsquared),
        adj_r_squared=float(model.rsquared_adj),
        f_statistic=float(model.fvalue),
        f_p_value=float(model.f_pvalue),
        aic=float(model.aic),
        bic=float(model.bic),
        rmse=float(np.sqrt(model.mse_resid)),
        df_model=int(model.df_model),
        df_resid=int(model.df_resid),
        observations=observations,
        interpretation=interpretation,
    )
    return result, model


# ─────────────────────────────────────────────
# TWO-PASS FIT — INFLUENCE FILTER THEN REFIT
# ─────────────────────────────────────────────

def fit_with_influence_refit(
    df: pd.DataFrame,
    response: str,
    predictors: list[str],
    cooks_numerator: float = COOKS_NUMERATOR,
) -> dict:
    """
    Fits, removes observations with Cook's D >= cooks_numerator / n, refits.

    Returns:
        {
          "initial_result":  RegressionResult of the first fit (reference only),
          "cooks_filter":    OutlierFilterOutput of the influence pass,
          "cooks_mask":      the OutlierMask itself,
          "final_result":    RegressionResult of the refit (the reported one),
          "final_model":     fitted statsmodels results of the refit,
          "final_df":        the doubly-cleaned table,
        }
    """
    initial_result, initial_model = fit_ols(df, response, predictors)
    mask = cooks_distance_mask(initial_model, index=df.index, numerator=cooks_numerator)
    cleaned, cooks_filter = apply_mask(df, mask)
    logger.info("Influence pass removed %d row(s); refitting on %d", cooks_filter.n_flagged, len(cleaned))

    final_result, final_model = fit_ols(cleaned, response, predictors)
    return {
        "initial_result": initial_result,
        "cooks_filter":   cooks_filter,
        "cooks_mask":     mask,
        "final_result":   final_result,
        "final_model":    final_model,
        "final_df":       cleaned,
    }

