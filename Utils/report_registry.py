"""
FILE: Utils/report_registry.py
-------------------------------
Registry of the two reports this project produces and the column roles
each one expects from its input file.

Keyed by report name:
  "heating"      → daily heating-season energy table, OLS with Cook's refit
  "certificates" → energy-performance certificates, PCA + K-means

Each entry is the default configuration consumed by
Schemas/config.py (HeatingPipelineConfig / CertificatePipelineConfig).
Values can be overridden from a JSON file on the command line.
"""

from constants.clustering import CLUSTER_K_MAX, CLUSTER_K_MIN, KMEANS_N_INIT, SMALL_CLUSTER_SHARE
from constants.loader import DEFAULT_WEEKDAY_COLUMN
from constants.outliers import COOKS_NUMERATOR, IQR_MULTIPLIER
from constants.reducer import KAISER_THRESHOLD


REPORT_REGISTRY: dict[str, dict] = {

    # ─────────────────────────────────────────────
    # HEATING SEASON — MULTIPLE LINEAR REGRESSION
    # Energy ~ Text + Iext, zero-activity days removed first
    # ─────────────────────────────────────────────
    "heating": {
        "title": "Heating-season energy regression",
        "separator": None,
        "date_column": "Date",
        "dayfirst": True,
        "response": "Energy",
        "predictors": ["Text", "Iext"],
        "numeric_columns": ["Energy", "Text", "Iext"],
        "weekday_column": DEFAULT_WEEKDAY_COLUMN,
        "excluded_weekdays": ["Sunday"],
        "iqr_columns": [],
        "iqr_multiplier": IQR_MULTIPLIER,
        "cooks_numerator": COOKS_NUMERATOR,
    },

    # ─────────────────────────────────────────────
    # ENERGY-PERFORMANCE CERTIFICATES — PCA + K-MEANS
    # Numeric columns detected from the file; identifiers and
    # categorical columns excluded from the reduction
    # ─────────────────────────────────────────────
    "certificates": {
        "title": "Energy-performance certificate clustering",
        "separator": None,
        "id_columns": [],
        "categorical_columns": [],
        "numeric_columns": [],
        "excluded_columns": [],
        "ratio_columns": [],
        "iqr_multiplier": IQR_MULTIPLIER,
        "kaiser_threshold": KAISER_THRESHOLD,
        "k_min": CLUSTER_K_MIN,
        "k_max": CLUSTER_K_MAX,
        "n_init": KMEANS_N_INIT,
        "small_cluster_share": SMALL_CLUSTER_SHARE,
        "random_state": None,
    },
}
