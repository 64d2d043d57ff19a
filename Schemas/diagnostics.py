"""
FILE: Schemas/diagnostics.py
-----------------------------
Pydantic output schema for the post-fit model checks run on the final
regression refit.
"""

from enum import Enum

from pydantic import BaseModel, Field


class DiagnosticStatus(str, Enum):
    PASSED  = "passed"
    FAILED  = "failed"
    WARNING = "warning"  # borderline or could not be computed


class DiagnosticResult(BaseModel):
    name: str                               # e.g. "normality_of_residuals"
    description: str
    status: DiagnosticStatus

    test_used: str | None = None            # e.g. "Breusch-Pagan"
    statistic: float | None = None
    p_value: float | None = None
    alpha: float | None = None

    plain_reason: str = ""


class ModelCriticOutput(BaseModel):
    test_name: str

    results: list[DiagnosticResult] = Field(default_factory=list)

    # ── Aggregated counts ──
    total_checks:  int = 0
    passed_count:  int = 0
    failed_count:  int = 0
    warning_count: int = 0

    has_failures: bool = False

    summary_message: str = ""
