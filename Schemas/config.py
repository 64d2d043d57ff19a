"""
FILE: Schemas/config.py
------------------------
Pydantic configuration models for the two pipelines.

Defaults come from Utils/report_registry.py; load_config() overlays a
JSON file and keyword overrides on top and validates the result.
"""

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

from Utils.report_registry import REPORT_REGISTRY


class RatioColumnSpec(BaseModel):
    name: str
    numerator: str
    denominator: str


class HeatingPipelineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = ""
    separator: str | None = None
    date_column: str = "Date"
    dayfirst: bool = True
    response: str
    predictors: list[str]
    numeric_columns: list[str] = Field(default_factory=list)
    weekday_column: str = "Weekday"
    excluded_weekdays: list[str] = Field(default_factory=list)
    iqr_columns: list[str] = Field(default_factory=list)
    iqr_multiplier: float = Field(gt=0)
    cooks_numerator: float = Field(gt=0)

    @model_validator(mode="after")
    def _response_not_a_predictor(self) -> "HeatingPipelineConfig":
        if not self.predictors:
            raise ValueError("At least one predictor is required.")
        if self.response in self.predictors:
            raise ValueError(f"Response '{self.response}' cannot also be a predictor.")
        return self

    @property
    def required_columns(self) -> list[str]:
        return list(dict.fromkeys([self.date_column, self.response, *self.predictors]))


class CertificatePipelineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = ""
    separator: str | None = None
    id_columns: list[str] = Field(default_factory=list)
    categorical_columns: list[str] = Field(default_factory=list)
    numeric_columns: list[str] = Field(default_factory=list)   # empty → detect from file
    excluded_columns: list[str] = Field(default_factory=list)  # numeric but non-explanatory
    ratio_columns: list[RatioColumnSpec] = Field(default_factory=list)
    iqr_multiplier: float = Field(gt=0)
    kaiser_threshold: float = Field(ge=0)
    k_min: int = Field(ge=2)
    k_max: int = Field(ge=2)
    n_init: int = Field(ge=1)
    small_cluster_share: float = Field(ge=0, lt=1)
    random_state: int | None = None

    @model_validator(mode="after")
    def _k_range_ordered(self) -> "CertificatePipelineConfig":
        if self.k_min > self.k_max:
            raise ValueError(f"k_min ({self.k_min}) must not exceed k_max ({self.k_max}).")
        return self

    @property
    def reduction_exclusions(self) -> list[str]:
        return list(dict.fromkeys(
            self.id_columns + self.categorical_columns + self.excluded_columns
        ))


CONFIG_MODELS: dict[str, type[BaseModel]] = {
    "heating":      HeatingPipelineConfig,
    "certificates": CertificatePipelineConfig,
}


def load_config(
    report: str,
    config_path: str | Path | None = None,
    **overrides,
) -> BaseModel:
    """
    Builds the validated config for a report.
    Precedence: registry defaults < JSON file < keyword overrides (None values ignored).
    Unknown keys raise a pydantic ValidationError.
    """
    if report not in REPORT_REGISTRY:
        raise ValueError(f"Unknown report: '{report}'")

    values = dict(REPORT_REGISTRY[report])
    if config_path is not None:
        with open(config_path, "r", encoding="utf-8") as f:
            values.update(json.load(f))
    values.update({k: v for k, v in overrides.items() if v is not None})

    return CONFIG_MODELS[report].model_validate(values)
