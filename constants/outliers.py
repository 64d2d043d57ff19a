# ─────────────────────────────────────────────
# THRESHOLDS
# ─────────────────────────────────────────────

# Deliberately loose: only extreme values fall outside [Q1 - c·IQR, Q3 + c·IQR]
IQR_MULTIPLIER = 5.0

# Cook's distance cut-off is COOKS_NUMERATOR / n
COOKS_NUMERATOR = 4.0

# IQR at or below this fraction of max(|Q1|, |Q3|) is treated as a constant attribute
ZERO_WIDTH_TOLERANCE = 1e-12
