"""
FILE: core/critic_engine.py
----------------------------
Post-fit checks on the final regression refit (never the initial fit).
Every check reads the fitted statsmodels OLS results object directly.

  normality_of_residuals  : Shapiro-Wilk, D'Agostino-Pearson above 5000 rows
  homoscedasticity        : Breusch-Pagan against the model's own regressors
  no_autocorrelation      : Durbin-Watson inside [1.5, 2.5]
  no_influential_points   : Cook's D >= c/n still present after the refit
                            (c is the numerator the influence filter used)

The checks are informative: they never change the model or stop the run.
"""

import logging

import numpy as np
from scipy import stats
from statsmodels.stats.diagnostic import het_breuschpagan
from statsmodels.stats.stattools import durbin_watson

from Schemas.diagnostics import DiagnosticResult, DiagnosticStatus, ModelCriticOutput
from Utils.diagnostics_registry import POST_FIT_CHECK_REGISTRY
from constants.outliers import COOKS_NUMERATOR
from constants.regression import DEFAULT_ALPHA, DW_LOWER_BOUND, DW_UPPER_BOUND, LARGE_SAMPLE_NORMALITY

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

def _result(check: dict, status: DiagnosticStatus, reason: str, **fields) -> DiagnosticResult:
    return DiagnosticResult(
        name=check["name"],
        description=check["description"],
        status=status,
        plain_reason=reason,
        **fields,
    )


def _hypothesis_result(
    check: dict,
    test_used: str,
    statistic: float | None,
    p: float,
    ok_reason: str,
    violated_reason: str,
) -> DiagnosticResult:
    """PASSED when p >= alpha, FAILED otherwise."""
    alpha = check.get("alpha") or DEFAULT_ALPHA
    p = float(p)
    held = p >= alpha
    stat_text = f"statistic={statistic:.4f}, " if statistic is not None else ""
    return _result(
        check,
        DiagnosticStatus.PASSED if held else DiagnosticStatus.FAILED,
        f"{test_used}: {stat_text}p={p:.4f}. " + (ok_reason if held else f"p < {alpha}: {violated_reason}"),
        test_used=test_used,
        statistic=None if statistic is None else round(float(statistic), 4),
        p_value=round(p, 4),
        alpha=alpha,
    )


# ─────────────────────────────────────────────
# POST-FIT CHECK FUNCTIONS
# ─────────────────────────────────────────────

def check_normality_of_residuals(fitted_model: object, check: dict) -> DiagnosticResult:
    residuals = np.asarray(fitted_model.resid, dtype=float)
    if len(residuals) < 3:
        return _result(check, DiagnosticStatus.WARNING, "Fewer than 3 residuals; normality not tested.")

    large = len(residuals) > LARGE_SAMPLE_NORMALITY
    stat, p = stats.normaltest(residuals) if large else stats.shapiro(residuals)
    return _hypothesis_result(
        check,
        "D'Agostino-Pearson" if large else "Shapiro-Wilk",
        float(stat),
        p,
        ok_reason="No evidence against normally distributed residuals.",
        violated_reason="residuals depart from normality; coefficient p-values are approximate.",
    )


def check_homoscedasticity_bp(fitted_model: object, check: dict) -> DiagnosticResult:
    lm_stat, p, _, _ = het_breuschpagan(fitted_model.resid, fitted_model.model.exog)
    return _hypothesis_result(
        check,
        "Breusch-Pagan",
        float(lm_stat),
        p,
        ok_reason="Residual variance looks constant across the predictors.",
        violated_reason="residual variance changes with the predictors.",
    )


def check_autocorrelation_dw(fitted_model: object, check: dict) -> DiagnosticResult:
    """
    Durbin-Watson on residuals in row order (chronological for daily data).
    Below 1.5: positive serial correlation. Above 2.5: negative.
    """
    dw = float(durbin_watson(np.asarray(fitted_model.resid, dtype=float)))

    if DW_LOWER_BOUND <= dw <= DW_UPPER_BOUND:
        status = DiagnosticStatus.PASSED
        reason = f"Durbin-Watson={dw:.4f}, inside [{DW_LOWER_BOUND}, {DW_UPPER_BOUND}]."
    else:
        status = DiagnosticStatus.FAILED
        direction = "positive" if dw < DW_LOWER_BOUND else "negative"
        reason = (
            f"Durbin-Watson={dw:.4f}, outside [{DW_LOWER_BOUND}, {DW_UPPER_BOUND}]: "
            f"{direction} serial correlation between consecutive residuals."
        )
    return _result(check, status, reason, test_used="Durbin-Watson", statistic=round(dw, 4))


def check_influential_points_cooks(fitted_model: object, check: dict) -> DiagnosticResult:
    """
    Cook's distance on the refit, against the same c/n cut-off the
    influence filter used (check["cooks_numerator"], default 4). Points
    above it routinely reappear after a single removal pass, so this
    only ever warns.
    """
    numerator = float(check.get("cooks_numerator", COOKS_NUMERATOR))
    cooks_d = np.asarray(fitted_model.get_influence().cooks_distance[0], dtype=float)
    n_obs = len(cooks_d)
    threshold = numerator / n_obs
    n_influential = int(np.sum(np.nan_to_num(cooks_d, nan=-np.inf) >= threshold))

    if n_influential == 0:
        status = DiagnosticStatus.PASSED
        reason = f"No observation reaches Cook's D >= {numerator:g}/n = {threshold:.4f} in the refit."
    else:
        status = DiagnosticStatus.WARNING
        reason = (
            f"{n_influential} of {n_obs} observation(s) ({n_influential / n_obs:.1%}) reach "
            f"Cook's D >= {numerator:g}/n = {threshold:.4f} in the refit; they are kept."
        )
    return _result(
        check, status, reason,
        test_used="Cook's Distance",
        statistic=round(float(np.nanmax(cooks_d)), 4),
    )


CHECK_FUNCTIONS = {
    "check_normality_of_residuals":   check_normality_of_residuals,
    "check_homoscedasticity_bp":      check_homoscedasticity_bp,
    "check_autocorrelation_dw":       check_autocorrelation_dw,
    "check_influential_points_cooks": check_influential_points_cooks,
}


# ─────────────────────────────────────────────
# MAIN — RUN ALL POST-FIT CHECKS
# ─────────────────────────────────────────────

def run_post_fit_checks(
    fitted_model: object,
    test_name: str = "Multiple Linear Regression",
    cooks_numerator: float = COOKS_NUMERATOR,
) -> ModelCriticOutput:
    """
    Runs every registered check on the refit and tallies the outcomes.
    cooks_numerator must match the one the influence filter ran with.
    """
    results: list[DiagnosticResult] = []
    for check in POST_FIT_CHECK_REGISTRY:
        fn = CHECK_FUNCTIONS[check["test_fn"]]
        try:
            results.append(fn(fitted_model, {**check, "cooks_numerator": cooks_numerator}))
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.warning("Post-fit check '%s' could not be completed: %s", check["name"], e)
            results.append(_result(check, DiagnosticStatus.WARNING, f"Check could not be completed: {e}"))

    counts = {status: 0 for status in DiagnosticStatus}
    for r in results:
        counts[r.status] += 1
    logger.info(
        "Post-fit checks: %d passed, %d failed, %d warning(s)",
        counts[DiagnosticStatus.PASSED], counts[DiagnosticStatus.FAILED], counts[DiagnosticStatus.WARNING],
    )

    lines = [
        f"Post-fit checks on the refit of **{test_name}**: "
        f"{counts[DiagnosticStatus.PASSED]} passed, {counts[DiagnosticStatus.FAILED]} failed, "
        f"{counts[DiagnosticStatus.WARNING]} warning(s).",
        "",
    ]
    lines.extend(f"- [{r.status.value}] **{r.name}**: {r.plain_reason}" for r in results)

    return ModelCriticOutput(
        test_name=test_name,
        results=results,
        total_checks=len(results),
        passed_count=counts[DiagnosticStatus.PASSED],
        failed_count=counts[DiagnosticStatus.FAILED],
        warning_count=counts[DiagnosticStatus.WARNING],
        has_failures=counts[DiagnosticStatus.FAILED] > 0,
        summary_message="\n".join(lines),
    )
