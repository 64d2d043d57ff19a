# ─────────────────────────────────────────────
# CONSTANTS
# ─────────────────────────────────────────────

DEFAULT_ALPHA = 0.05

DW_LOWER_BOUND = 1.5    # Durbin-Watson below this → positive autocorrelation
DW_UPPER_BOUND = 2.5    # Durbin-Watson above this → negative autocorrelation

LARGE_SAMPLE_NORMALITY = 5000   # above this, D'Agostino replaces Shapiro-Wilk
