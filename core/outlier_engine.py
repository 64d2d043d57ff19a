"""
FILE: core/outlier_engine.py
-----------------------------
Outlier detection as pure functions over a table.

Every detector returns an OutlierMask naming the rows to remove; nothing
is dropped until apply_mask() is called. Masks are computed once per
pass and applied as one batch, never re-evaluated on the shrinking table.

Strategies:
  - iqr_outlier_mask     : per-column [Q1 - c·IQR, Q3 + c·IQR], flags unioned
  - cooks_distance_mask  : Cook's D >= 4/n on a fitted statsmodels OLS model
  - category_mask        : rows whose categorical value is in a given set
                           (coarse pre-cleaning, e.g. zero-activity days)
"""

import logging

import numpy as np
import pandas as pd

from Schemas.outliers import ColumnBounds, OutlierFilterOutput, OutlierMask, OutlierStrategy
from constants.outliers import COOKS_NUMERATOR, IQR_MULTIPLIER, ZERO_WIDTH_TOLERANCE
from core.exceptions import InsufficientDataError, SchemaError

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# INTERQUARTILE STRATEGY
# ─────────────────────────────────────────────

def iqr_bounds(series: pd.Series, multiplier: float = IQR_MULTIPLIER) -> ColumnBounds:
    """Quartiles by linear interpolation, ignoring missing values."""
    clean = series.dropna()
    q1 = float(clean.quantile(0.25, interpolation="linear"))
    q3 = float(clean.quantile(0.75, interpolation="linear"))
    iqr = q3 - q1
    return ColumnBounds(
        column=str(series.name),
        q1=q1,
        q3=q3,
        iqr=iqr,
        lower=q1 - multiplier * iqr,
        upper=q3 + multiplier * iqr,
    )


def iqr_outlier_mask(
    df: pd.DataFrame,
    columns: list[str],
    multiplier: float = IQR_MULTIPLIER,
) -> OutlierMask:
    """
    Flags rows outside [Q1 - c·IQR, Q3 + c·IQR] on any of the given columns.

    A column whose IQR is zero relative to its quartiles is excluded from
    the pass and reported in degenerate_columns; it never flags rows on its own.
    """
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(f"IQR filter column(s) not found: {missing}.", columns=missing, stage="outliers")
    if multiplier <= 0:
        raise ValueError(f"IQR multiplier must be positive, got {multiplier}.")

    flagged = pd.Series(False, index=df.index)
    bounds: list[ColumnBounds] = []
    degenerate: list[str] = []

    for col in columns:
        if df[col].dropna().empty:
            degenerate.append(col)
            logger.warning("IQR filter: column '%s' has no values — excluded from the pass", col)
            continue

        b = iqr_bounds(df[col], multiplier)
        # tolerance scales with the quartiles' magnitude
        if b.iqr <= ZERO_WIDTH_TOLERANCE * max(abs(b.q1), abs(b.q3)):
            degenerate.append(col)
            logger.warning(
                "IQR filter: column '%s' has zero interquartile range — excluded from the pass", col
            )
            continue

        col_mask = (df[col] < b.lower) | (df[col] > b.upper)
        b.n_flagged = int(col_mask.sum())
        bounds.append(b)
        flagged |= col_mask

    flagged_index = df.index[flagged].tolist()
    logger.info(
        "IQR filter (c=%s): %d of %d row(s) flagged across %d column(s)",
        multiplier, len(flagged_index), len(df), len(bounds),
    )
    return OutlierMask(
        strategy=OutlierStrategy.IQR,
        flagged_index=flagged_index,
        n_evaluated=len(df),
        multiplier=multiplier,
        bounds=bounds,
        degenerate_columns=degenerate,
    )


# ─────────────────────────────────────────────
# COOK'S DISTANCE STRATEGY
# ─────────────────────────────────────────────

def cooks_distances(fitted_model: object) -> np.ndarray:
    """Cook's distance per observation of a fitted statsmodels OLS model."""
    if not hasattr(fitted_model, "get_influence"):
        raise TypeError("Cook's distance needs a fitted statsmodels OLS results object.")
    return np.asarray(fitted_model.get_influence().cooks_distance[0], dtype=float)


def cooks_distance_mask(
    fitted_model: object,
    index: pd.Index | None = None,
    numerator: float = COOKS_NUMERATOR,
) -> OutlierMask:
    """
    Flags observations with Cook's D >= numerator / n.

    index names the rows the model was fitted on; when omitted, the row
    labels carried by the model's endogenous variable are used.
    """
    distances = cooks_distances(fitted_model)
    n_obs = len(distances)
    if n_obs == 0:
        raise InsufficientDataError("Cook's distance on an empty model", n_rows=0, required=1, stage="outliers")

    if index is None:
        index = pd.Index(fitted_model.model.data.row_labels)
    if len(index) != n_obs:
        raise ValueError(f"Index length {len(index)} does not match {n_obs} fitted observations.")

    threshold = numerator / n_obs
    # NaN distances (leverage 1) are not comparable and are never flagged
    flagged = np.nan_to_num(distances, nan=-np.inf) >= threshold
    flagged_index = index[flagged].tolist()

    logger.info(
        "Cook's distance: %d of %d observation(s) at or above %g/n = %.4f",
        len(flagged_index), n_obs, numerator, threshold,
    )
    return OutlierMask(
        strategy=OutlierStrategy.COOKS,
        flagged_index=flagged_index,
        n_evaluated=n_obs,
        numerator=numerator,
        threshold=threshold,
        max_distance=float(np.nanmax(distances)) if np.isfinite(distances).any() else None,
    )


# ─────────────────────────────────────────────
# CATEGORY STRATEGY
# ─────────────────────────────────────────────

def category_mask(
    df: pd.DataFrame,
    column: str,
    values: list[str],
) -> OutlierMask:
    """Flags rows whose value in column is one of values."""
    if column not in df.columns:
        raise SchemaError(f"Column '{column}' not found.", columns=[column], stage="outliers")

    flagged = df[column].astype(str).isin([str(v) for v in values])
    flagged_index = df.index[flagged].tolist()
    logger.info("Category filter on '%s' %s: %d row(s) flagged", column, values, len(flagged_index))
    return OutlierMask(
        strategy=OutlierStrategy.CATEGORY,
        flagged_index=flagged_index,
        n_evaluated=len(df),
        column=column,
        values=[str(v) for v in values],
    )


# ─────────────────────────────────────────────
# APPLY
# ─────────────────────────────────────────────

def apply_mask(
    df: pd.DataFrame,
    mask: OutlierMask,
) -> tuple[pd.DataFrame, OutlierFilterOutput]:
    """
    Returns the complement of the mask as a new DataFrame.
    Flagged labels not present in df are ignored.
    """
    to_remove = df.index.isin(mask.flagged_index)
    retained = df.loc[~to_remove].copy()
    removed_index = df.index[to_remove].tolist()

    summary = (
        f"{mask.strategy.value}: removed {len(removed_index)} of {len(df)} row(s), "
        f"{len(retained)} retained."
    )
    flagged_by = [f"{b.column}={b.n_flagged}" for b in mask.bounds if b.n_flagged]
    if flagged_by:
        summary += f" Flags per column: {', '.join(flagged_by)}."
    if mask.degenerate_columns:
        summary += f" Zero-width column(s) excluded from the pass: {mask.degenerate_columns}."

    return retained, OutlierFilterOutput(
        strategy=mask.strategy,
        n_before=len(df),
        n_flagged=len(removed_index),
        n_after=len(retained),
        removed_index=removed_index,
        summary=summary,
    )
