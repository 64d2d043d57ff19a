"""
FILE: Schemas/outliers.py
--------------------------
Pydantic schemas for the outlier filter.

OutlierMask is computed independently per detection pass and only names
rows; OutlierFilterOutput records what happened when a mask was applied.
"""

from enum import Enum

from pydantic import BaseModel, Field


class OutlierStrategy(str, Enum):
    IQR      = "iqr"
    COOKS    = "cooks_distance"
    CATEGORY = "category"       # coarse pre-cleaning on a categorical value


class ColumnBounds(BaseModel):
    column: str
    q1: float
    q3: float
    iqr: float
    lower: float
    upper: float
    n_flagged: int = 0


class OutlierMask(BaseModel):
    strategy: OutlierStrategy
    flagged_index: list = Field(default_factory=list)   # row labels to remove
    n_evaluated: int

    # ── IQR pass ──
    multiplier: float | None = None
    bounds: list[ColumnBounds] = Field(default_factory=list)
    degenerate_columns: list[str] = Field(default_factory=list)  # IQR = 0, excluded from the pass

    # ── Cook's distance pass ──
    numerator: float | None = None      # threshold = numerator / n
    threshold: float | None = None
    max_distance: float | None = None

    # ── Category pass ──
    column: str | None = None
    values: list[str] = Field(default_factory=list)


class OutlierFilterOutput(BaseModel):
    strategy: OutlierStrategy
    n_before: int
    n_flagged: int
    n_after: int
    removed_index: list = Field(default_factory=list)
    summary: str = ""
