# ─────────────────────────────────────────────
# CONSTANTS
# ─────────────────────────────────────────────

# Share of non-null values that must convert before an undeclared
# object column is treated as numeric
NUMERIC_COERCION_MIN_SUCCESS = 0.70

# Separators tried, in order, when none is configured
CANDIDATE_SEPARATORS = (";", ",", "\t")

DEFAULT_WEEKDAY_COLUMN = "Weekday"
