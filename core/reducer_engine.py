"""
FILE: core/reducer_engine.py
-----------------------------
Standardization and principal component analysis.
No orchestration, no plotting.

Standardization uses the sample standard deviation (ddof=1), so every
standardized column has variance exactly 1 and the PCA eigenvalues are
the eigenvalues of the correlation matrix. That is the baseline the
Kaiser criterion compares against.
"""

import logging

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA

from Schemas.reducer import DimensionalityResult, PCAComponent, StandardizationOutput
from constants.reducer import KAISER_THRESHOLD, ZERO_VARIANCE_TOLERANCE
from core.exceptions import InsufficientDataError, NumericDegeneracyError

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# STANDARDIZATION
# ─────────────────────────────────────────────

def standardize(
    df: pd.DataFrame,
    exclude: list[str] | None = None,
) -> tuple[pd.DataFrame, StandardizationOutput]:
    """
    Z-scores every numeric column not in exclude.

    Zero-variance columns are dropped from the result and reported.
    Rows with any non-finite standardized value are dropped and counted.
    """
    exclude = list(exclude or [])
    candidates = [
        c for c in df.select_dtypes(include="number").columns
        if c not in exclude
    ]
    if not candidates:
        raise NumericDegeneracyError("No numeric columns left to standardize.", stage="reducer")

    X = df[candidates].astype(float)
    means = X.mean()
    stds = X.std(ddof=1)

    zero_var = [c for c in candidates if not np.isfinite(stds[c]) or stds[c] <= ZERO_VARIANCE_TOLERANCE]
    for col in zero_var:
        logger.warning("Standardization: column '%s' has zero variance — excluded", col)
    used = [c for c in candidates if c not in zero_var]
    if not used:
        raise NumericDegeneracyError(
            "Every candidate column has zero variance; nothing to standardize.",
            columns=zero_var,
            stage="reducer",
        )

    Z = (X[used] - means[used]) / stds[used]
    finite = np.isfinite(Z.to_numpy()).all(axis=1)
    Z = Z.loc[finite]
    dropped = int((~finite).sum())
    if dropped:
        logger.info("Standardization: dropped %d row(s) with non-finite values", dropped)

    return Z, StandardizationOutput(
        columns_used=used,
        columns_excluded=[c for c in exclude if c in df.columns],
        zero_variance_columns=zero_var,
        means={c: float(means[c]) for c in used},
        std_devs={c: float(stds[c]) for c in used},
        n_rows_in=len(df),
        n_rows_out=len(Z),
        rows_dropped_non_finite=dropped,
    )


# ─────────────────────────────────────────────
# PCA
# ─────────────────────────────────────────────

def kaiser_selection(eigenvalues: np.ndarray, threshold: float = KAISER_THRESHOLD) -> int:
    """Number of components whose eigenvalue exceeds threshold."""
    return int(np.sum(np.asarray(eigenvalues) > threshold))


def run_pca(
    z_df: pd.DataFrame,
    kaiser_threshold: float = KAISER_THRESHOLD,
) -> tuple[DimensionalityResult, pd.DataFrame, PCA]:
    """
    Full principal component decomposition of an already-standardized table.

    Returns:
        result:  Per-component eigenvalue, variance share, loadings and the Kaiser selection
        scores:  Row-wise component scores restricted to the retained components (PC1..PCk)
        pca:     The fitted sklearn PCA object
    """
    n_rows, n_cols = z_df.shape
    if n_rows < 2:
        raise InsufficientDataError("PCA needs at least two rows", n_rows=n_rows, required=2, stage="reducer")

    pca = PCA()
    all_scores = pca.fit_transform(z_df.to_numpy())

    eigenvalues = pca.explained_variance_
    k_pc = kaiser_selection(eigenvalues, kaiser_threshold)
    if k_pc == 0:
        raise NumericDegeneracyError(
            f"No principal component has an eigenvalue above {kaiser_threshold} "
            f"(largest = {eigenvalues[0]:.4f}); the attributes carry no shared variance.",
            stage="reducer",
        )

    cumulative = np.cumsum(pca.explained_variance_ratio_)
    components = [
        PCAComponent(
            component_number=i + 1,
            eigenvalue=float(eigenvalues[i]),
            explained_variance_pct=float(pca.explained_variance_ratio_[i] * 100),
            cumulative_variance_pct=float(cumulative[i] * 100),
            retained=i < k_pc,
            loadings={col: float(pca.components_[i][j]) for j, col in enumerate(z_df.columns)},
        )
        for i in range(len(eigenvalues))
    ]

    names = [f"PC{i + 1}" for i in range(k_pc)]
    scores = pd.DataFrame(all_scores[:, :k_pc], index=z_df.index, columns=names)

    total_var = float(cumulative[k_pc - 1] * 100)
    interpretation = (
        f"PCA on {n_cols} standardized variables ({n_rows} rows). "
        f"{k_pc} component(s) have an eigenvalue above {kaiser_threshold} and together "
        f"explain {total_var:.2f}% of total variance. "
        f"Top component explains {components[0].explained_variance_pct:.2f}%."
    )
    logger.info("PCA: retained %d of %d component(s) (%.2f%% variance)", k_pc, len(components), total_var)

    result = DimensionalityResult(
        n_observations=n_rows,
        n_components_total=len(components),
        n_components_selected=k_pc,
        kaiser_threshold=kaiser_threshold,
        components=components,
        total_variance_explained=total_var,
        interpretation=interpretation,
    )
    return result, scores, pca
