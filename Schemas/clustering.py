"""
FILE: Schemas/clustering.py
----------------------------
Pydantic schemas for cluster-count selection and the final assignment.

ClusterSelectionResult carries the validity-index curve over every
candidate k. ClusterAssignmentOutput carries sizes for the winning k.
Near-noise clusters are listed separately but their labels stay in the
assignment.
"""

from pydantic import BaseModel, Field


class ClusterTrial(BaseModel):
    k: int
    davies_bouldin: float
    inertia: float


class ClusterSelectionResult(BaseModel):
    k_min: int
    k_max: int
    n_init: int
    random_state: int | None = None
    trials: list[ClusterTrial] = Field(default_factory=list)
    selected_k: int
    selected_index: float
    interpretation: str = ""


class ClusterSummary(BaseModel):
    label: int                  # 1..k
    size: int
    relative_size: float        # share of retained records
    near_noise: bool = False
    centroid: dict[str, float] = Field(default_factory=dict)   # in component space


class ClusterAssignmentOutput(BaseModel):
    k: int
    n_observations: int
    clusters: list[ClusterSummary] = Field(default_factory=list)
    near_noise_clusters: list[int] = Field(default_factory=list)
    min_share: float
    labels: dict[str, int] = Field(default_factory=dict)      # {row label: cluster label}


class ClusterProfile(BaseModel):
    label: int
    size: int
    means: dict[str, float] = Field(default_factory=dict)     # original-scale attribute means
