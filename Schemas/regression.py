"""
FILE: Schemas/regression.py
----------------------------
Pydantic output schemas for the ordinary least squares fitter.
RegressionResult carries coefficients, overall fit statistics and the
per-record diagnostics that the Cook's distance pass consumes.
"""

from pydantic import BaseModel, Field


# ─────────────────────────────────────────────
# REGRESSION COEFFICIENT
# ─────────────────────────────────────────────

class Coefficient(BaseModel):
    variable:   str
    estimate:   float
    std_error:  float | None = None
    t_statistic: float | None = None
    p_value:    float | None = None
    ci_lower:   float | None = None    # 95% confidence interval lower bound
    ci_upper:   float | None = None    # 95% confidence interval upper bound


# ─────────────────────────────────────────────
# PER-RECORD DIAGNOSTICS
# ─────────────────────────────────────────────

class ObservationDiagnostics(BaseModel):
    index:           str | int
    fitted:          float
    residual:        float
    leverage:        float
    cooks_distance:  float


class RegressionResult(BaseModel):
    test_name:   str = "Multiple Linear Regression"
    response:    str
    predictors:  list[str] = Field(default_factory=list)
    n_observations: int

    coefficients: list[Coefficient] = Field(default_factory=list)

    # ── Model fit ──
    r_squared:         float
    adj_r_squared:     float
    f_statistic:       float | None = None
    f_p_value:         float | None = None
    aic:               float | None = None
    bic:               float | None = None
    rmse:              float | None = None
    df_model:          int
    df_resid:          int

    observations: list[ObservationDiagnostics] = Field(default_factory=list)

    interpretation: str = ""

    def coefficient(self, variable: str) -> Coefficient:
        for c in self.coefficients:
            if c.variable == variable:
                return c
        raise KeyError(variable)
