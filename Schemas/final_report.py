"""
FILE: Schemas/final_report.py
------------------------------
Pydantic output schemas for the two finished reports.
Everything a rendering layer needs is here, serializable with
model_dump_json(); markdown_report is the plain-text rendition.
"""

from pydantic import BaseModel, Field

from Schemas.clustering import ClusterAssignmentOutput, ClusterProfile, ClusterSelectionResult
from Schemas.diagnostics import ModelCriticOutput
from Schemas.loader import LoaderOutput
from Schemas.outliers import OutlierFilterOutput
from Schemas.reducer import DimensionalityResult, StandardizationOutput
from Schemas.regression import RegressionResult


class HeatingReportOutput(BaseModel):
    title: str = ""

    # ── Pipeline outputs ──
    loader_output:   LoaderOutput
    cleaning_steps:  list[OutlierFilterOutput] = Field(default_factory=list)
    initial_fit:     RegressionResult              # reference only, never the reported fit
    cooks_filter:    OutlierFilterOutput
    cooks_numerator: float                         # cut-off is cooks_numerator / n
    cooks_threshold: float
    final_fit:       RegressionResult
    post_fit_checks: ModelCriticOutput

    # ── Summary sections ──
    dataset_summary: str = ""
    key_statistic:   str = ""
    caveats:         list[str] = Field(default_factory=list)

    markdown_report: str = ""


class CertificateReportOutput(BaseModel):
    title: str = ""

    # ── Pipeline outputs ──
    loader_output:     LoaderOutput
    cleaning_steps:    list[OutlierFilterOutput] = Field(default_factory=list)
    degenerate_columns: list[str] = Field(default_factory=list)
    standardization:   StandardizationOutput
    pca:               DimensionalityResult
    cluster_selection: ClusterSelectionResult
    assignment:        ClusterAssignmentOutput
    cluster_profiles:  list[ClusterProfile] = Field(default_factory=list)  # near-noise clusters left out

    # ── Summary sections ──
    dataset_summary: str = ""
    key_statistic:   str = ""
    caveats:         list[str] = Field(default_factory=list)

    markdown_report: str = ""
