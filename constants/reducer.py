# ─────────────────────────────────────────────
# CONSTANTS
# ─────────────────────────────────────────────

KAISER_THRESHOLD = 1.0        # retain components with eigenvalue above this
ZERO_VARIANCE_TOLERANCE = 1e-12
