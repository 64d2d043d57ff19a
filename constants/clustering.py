# ─────────────────────────────────────────────
# CONSTANTS
# ─────────────────────────────────────────────

CLUSTER_K_MIN = 3             # smallest candidate cluster count (inclusive)
CLUSTER_K_MAX = 10            # largest candidate cluster count (inclusive)
KMEANS_N_INIT = 25            # random restarts per candidate k
SMALL_CLUSTER_SHARE = 0.01    # relative size below this → near-noise cluster
CLUSTER_LABEL_COLUMN = "Cluster"
