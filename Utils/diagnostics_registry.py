"""
FILE: Utils/diagnostics_registry.py
------------------------------------
Registry of the post-fit checks run on the final regression refit.
These checks need a fitted model and cannot run before the fit.

Each entry: name, description, test_fn (key into CHECK_FUNCTIONS), alpha
"""

POST_FIT_CHECK_REGISTRY: list[dict] = [
    {
        "name": "normality_of_residuals",
        "description": "Residuals should be approximately normally distributed.",
        "test_fn": "check_normality_of_residuals",
        "alpha": 0.05,
    },
    {
        "name": "homoscedasticity",
        "description": "Variance of residuals should be constant across fitted values (no heteroscedasticity).",
        "test_fn": "check_homoscedasticity_bp",
        "alpha": 0.05,
    },
    {
        "name": "no_autocorrelation",
        "description": "Consecutive daily residuals should not be correlated (Durbin-Watson statistic close to 2).",
        "test_fn": "check_autocorrelation_dw",
        "alpha": None,   # DW uses range check, not p-value
    },
    {
        "name": "no_influential_points",
        "description": "No remaining observation should have disproportionate influence on the refit (Cook's distance below the influence filter's c/n cut-off).",
        "test_fn": "check_influential_points_cooks",
        "alpha": None,
    },
]
