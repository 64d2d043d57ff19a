"""
FILE: core/cluster_engine.py
-----------------------------
K-means cluster-count selection and assignment on component scores.

select_cluster_count() fits K-means for every candidate k, scores each
fit with the Davies-Bouldin index and keeps the first k with the lowest
value (ascending k). The winning fit is reused for the assignment.

Near-noise clusters (relative size below min_share) are reported but
keep their labels; only the interpretation view leaves them out.
"""

import logging

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans
from sklearn.metrics import davies_bouldin_score

from Schemas.clustering import (
    ClusterAssignmentOutput,
    ClusterProfile,
    ClusterSelectionResult,
    ClusterSummary,
    ClusterTrial,
)
from constants.clustering import (
    CLUSTER_K_MAX,
    CLUSTER_K_MIN,
    CLUSTER_LABEL_COLUMN,
    KMEANS_N_INIT,
    SMALL_CLUSTER_SHARE,
)
from core.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)


def davies_bouldin_index(X: np.ndarray | pd.DataFrame, labels: np.ndarray | pd.Series) -> float:
    """Davies-Bouldin index; lower means more compact, better separated clusters."""
    return float(davies_bouldin_score(np.asarray(X, dtype=float), np.asarray(labels)))


# ─────────────────────────────────────────────
# SELECTION
# ─────────────────────────────────────────────

def select_cluster_count(
    scores: pd.DataFrame,
    k_min: int = CLUSTER_K_MIN,
    k_max: int = CLUSTER_K_MAX,
    n_init: int = KMEANS_N_INIT,
    random_state: int | None = None,
) -> tuple[ClusterSelectionResult, KMeans]:
    """
    Tries every k in [k_min, k_max] and returns the Davies-Bouldin minimiser.

    Returns:
        result:  Validity-index curve and the selected k
        model:   The fitted KMeans for the selected k
    """
    if k_min < 2 or k_min > k_max:
        raise ValueError(f"Invalid candidate range [{k_min}, {k_max}]; need 2 <= k_min <= k_max.")
    n_rows = len(scores)
    # Davies-Bouldin needs at least one row more than the number of clusters
    if n_rows <= k_max:
        raise InsufficientDataError(
            f"Cluster selection over k={k_min}..{k_max}",
            n_rows=n_rows,
            required=k_max + 1,
            stage="clustering",
        )

    X = scores.to_numpy(dtype=float)
    trials: list[ClusterTrial] = []
    models: dict[int, KMeans] = {}

    for k in range(k_min, k_max + 1):
        km = KMeans(n_clusters=k, n_init=n_init, random_state=random_state)
        labels = km.fit_predict(X)
        # K-means can leave fewer distinct labels than k on duplicated points
        if len(np.unique(labels)) < 2:
            db = float("inf")
        else:
            db = davies_bouldin_index(X, labels)
        trials.append(ClusterTrial(k=k, davies_bouldin=db, inertia=float(km.inertia_)))
        models[k] = km
        logger.debug("k=%d: Davies-Bouldin=%.4f inertia=%.2f", k, db, km.inertia_)

    best = min(trials, key=lambda t: t.davies_bouldin)
    logger.info("Cluster selection: k=%d (Davies-Bouldin=%.4f)", best.k, best.davies_bouldin)

    result = ClusterSelectionResult(
        k_min=k_min,
        k_max=k_max,
        n_init=n_init,
        random_state=random_state,
        trials=trials,
        selected_k=best.k,
        selected_index=best.davies_bouldin,
        interpretation=(
            f"K-means tried for k={k_min}..{k_max} with {n_init} restart(s) each. "
            f"k={best.k} minimises the Davies-Bouldin index ({best.davies_bouldin:.4f})."
        ),
    )
    return result, models[best.k]


# ─────────────────────────────────────────────
# ASSIGNMENT
# ─────────────────────────────────────────────

def assign_clusters(
    scores: pd.DataFrame,
    model: KMeans,
    min_share: float = SMALL_CLUSTER_SHARE,
) -> tuple[ClusterAssignmentOutput, pd.Series]:
    """
    Labels every row 1..k from the fitted model and summarises cluster sizes.

    Returns:
        output:  Sizes, relative sizes, centroids and the near-noise list
        labels:  Series of cluster labels aligned with scores.index
    """
    raw = model.predict(scores.to_numpy(dtype=float))
    labels = pd.Series(raw + 1, index=scores.index, name=CLUSTER_LABEL_COLUMN, dtype=int)

    n = len(labels)
    counts = labels.value_counts()
    clusters: list[ClusterSummary] = []
    near_noise: list[int] = []

    for i in range(model.n_clusters):
        label = i + 1
        size = int(counts.get(label, 0))
        share = size / n if n else 0.0
        is_noise = share < min_share
        if is_noise:
            near_noise.append(label)
        clusters.append(ClusterSummary(
            label=label,
            size=size,
            relative_size=share,
            near_noise=is_noise,
            centroid={col: float(v) for col, v in zip(scores.columns, model.cluster_centers_[i])},
        ))

    if near_noise:
        logger.warning(
            "Cluster(s) %s hold less than %.1f%% of records; reported as near-noise",
            near_noise, min_share * 100,
        )

    return ClusterAssignmentOutput(
        k=model.n_clusters,
        n_observations=n,
        clusters=clusters,
        near_noise_clusters=near_noise,
        min_share=min_share,
        labels={str(idx): int(lbl) for idx, lbl in labels.items()},
    ), labels


def profile_clusters(
    df: pd.DataFrame,
    labels: pd.Series,
    columns: list[str],
    excluded_clusters: list[int] | None = None,
) -> list[ClusterProfile]:
    """
    Per-cluster means of the original attributes, for interpretation.
    Clusters in excluded_clusters are left out of the view only.
    """
    excluded = set(excluded_clusters or [])
    joined = df.loc[labels.index, columns].assign(_label=labels)

    profiles = []
    for label, group in joined.groupby("_label", sort=True):
        if int(label) in excluded:
            continue
        profiles.append(ClusterProfile(
            label=int(label),
            size=len(group),
            means={col: float(group[col].mean()) for col in columns},
        ))
    return profiles
