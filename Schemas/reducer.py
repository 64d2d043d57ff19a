"""
FILE: Schemas/reducer.py
-------------------------
Pydantic schemas for standardization and principal component analysis.
"""

from pydantic import BaseModel, Field


class StandardizationOutput(BaseModel):
    columns_used: list[str] = Field(default_factory=list)
    columns_excluded: list[str] = Field(default_factory=list)        # configured exclusions
    zero_variance_columns: list[str] = Field(default_factory=list)   # excluded for sd = 0
    means: dict[str, float] = Field(default_factory=dict)
    std_devs: dict[str, float] = Field(default_factory=dict)
    n_rows_in: int
    n_rows_out: int
    rows_dropped_non_finite: int = 0


# ─────────────────────────────────────────────
# PCA COMPONENT
# ─────────────────────────────────────────────

class PCAComponent(BaseModel):
    component_number:       int
    eigenvalue:             float       # variance explained on the standardized scale
    explained_variance_pct: float       # share of total variance, in percent
    cumulative_variance_pct: float      # cumulative share up to this component, in percent
    retained:               bool = False
    loadings: dict[str, float] = Field(default_factory=dict)  # {variable: loading}


class DimensionalityResult(BaseModel):
    test_name: str = "Principal Component Analysis"
    n_observations: int
    n_components_total: int
    n_components_selected: int      # components with eigenvalue above the Kaiser threshold
    kaiser_threshold: float

    components: list[PCAComponent] = Field(default_factory=list)
    total_variance_explained: float  # by selected components, in percent

    interpretation: str = ""
