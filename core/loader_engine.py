"""
FILE: core/loader_engine.py
----------------------------
Reads one delimited input file into a clean, fully numeric-where-declared
DataFrame. No statistics happen here.

Responsibilities:
  1. Detect the separator when none is configured
  2. Verify every required column is present (SchemaError otherwise)
  3. Normalise locale decimal commas ("12,5" → 12.5) and coerce to float
       - declared numeric columns must convert for >= 70% of non-null cells
       - undeclared object columns are coerced only if they clear the same bar
  4. Parse the date column to calendar-date granularity
  5. Drop incomplete rows (listwise, over the numeric and date columns)

Row labels of the returned DataFrame are the 0-based positions in the
raw file, so every later mask can be traced back to the source record.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from Schemas.loader import ColumnCleaningLog, LoaderOutput
from constants.loader import CANDIDATE_SEPARATORS, NUMERIC_COERCION_MIN_SUCCESS
from core.exceptions import NumericDegeneracyError, SchemaError

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# HELPER — SEPARATOR DETECTION
# ─────────────────────────────────────────────

def _detect_separator(path: Path) -> str:
    """Picks the candidate separator that occurs most often in the header line."""
    with open(path, "r", encoding="utf-8-sig") as f:
        header = f.readline()
    counts = {sep: header.count(sep) for sep in CANDIDATE_SEPARATORS}
    best = max(counts, key=counts.get)
    return best if counts[best] > 0 else ","


# ─────────────────────────────────────────────
# HELPER — DECIMAL NORMALISATION
# ─────────────────────────────────────────────

def _normalise_decimal_commas(series: pd.Series) -> tuple[pd.Series, int]:
    """
    Rewrites locale-formatted numbers to the dot convention.
      "12,5"     → "12.5"
      "1.234,5"  → "1234.5"   (dot read as thousands separator)
    Returns the rewritten series and the number of cells changed.
    """
    text = series.where(series.isna(), series.astype(str).str.strip())
    has_comma = text.str.contains(",", regex=False, na=False)
    has_dot = text.str.contains(".", regex=False, na=False)

    both = has_comma & has_dot
    text = text.where(~both, text.str.replace(".", "", regex=False))
    text = text.where(~has_comma, text.str.replace(",", ".", regex=False))
    return text, int(has_comma.sum())


def _coerce_to_numeric(series: pd.Series) -> tuple[pd.Series, int, int, float]:
    """
    Normalises decimal commas then converts to float.
    Returns (coerced, commas_normalised, unparseable_count, success_rate).
    """
    text, n_commas = _normalise_decimal_commas(series)
    coerced = pd.to_numeric(text, errors="coerce").astype(float)
    coerced.name = series.name

    original_non_null = int(text.notna().sum())
    if original_non_null == 0:
        return coerced, n_commas, 0, 0.0
    converted = int(coerced.notna().sum())
    return coerced, n_commas, original_non_null - converted, converted / original_non_null


# ─────────────────────────────────────────────
# MAIN — LOAD TABLE
# ─────────────────────────────────────────────

def load_table(
    csv_path: str | Path,
    required_columns: list[str] | None = None,
    numeric_columns: list[str] | None = None,
    date_column: str | None = None,
    separator: str | None = None,
    dayfirst: bool = True,
) -> tuple[pd.DataFrame, LoaderOutput]:
    """
    Loads and cleans one input table.

    Args:
        csv_path:          Path to the delimited file.
        required_columns:  Columns that must exist; missing ones raise SchemaError.
        numeric_columns:   Columns that must parse as numbers.
        date_column:       Optional column parsed to calendar dates.
        separator:         Field separator; detected from the header when None.
        dayfirst:          Passed to pd.to_datetime for ambiguous dates.

    Returns:
        df:            Cleaned DataFrame (row labels = raw file positions)
        loader_output: Structured summary of every change made
    """
    path = Path(csv_path)
    sep = separator or _detect_separator(path)
    numeric_columns = list(numeric_columns or [])
    required = list(dict.fromkeys(
        list(required_columns or []) + numeric_columns + ([date_column] if date_column else [])
    ))

    raw = pd.read_csv(path, sep=sep, dtype=str, encoding="utf-8-sig", skipinitialspace=True)
    raw.columns = [str(c).strip() for c in raw.columns]
    original_shape = raw.shape
    logger.info("Loaded %s: %d rows × %d columns (sep=%r)", path.name, *original_shape, sep)

    # ── Schema: required columns ──
    missing = [c for c in required if c not in raw.columns]
    if missing:
        raise SchemaError(
            f"Required column(s) missing from {path.name}: {missing}. "
            f"Available columns: {list(raw.columns)}.",
            columns=missing,
        )

    df = raw.copy()
    column_logs: dict[str, ColumnCleaningLog] = {
        col: ColumnCleaningLog(column=col, original_dtype=str(raw[col].dtype))
        for col in df.columns
    }
    changes_summary: list[str] = []
    warnings: list[str] = []
    resolved_numeric: list[str] = []
    categorical: list[str] = []

    # ── Numeric coercion ──
    for col in df.columns:
        if col == date_column:
            continue
        coerced, n_commas, n_bad, success = _coerce_to_numeric(df[col])
        declared = col in numeric_columns

        if declared and success < NUMERIC_COERCION_MIN_SUCCESS:
            raise SchemaError(
                f"Column '{col}' is declared numeric but only {success * 100:.1f}% "
                f"of its values could be parsed as numbers.",
                columns=[col],
            )
        if not declared and success < NUMERIC_COERCION_MIN_SUCCESS:
            categorical.append(col)
            continue

        df[col] = coerced
        resolved_numeric.append(col)
        log = column_logs[col]
        log.dtype_coerced = True
        log.decimal_commas_normalised = n_commas
        log.values_unparseable = n_bad
        if n_commas:
            changes_summary.append(f"'{col}': normalised {n_commas} decimal comma(s).")
        if n_bad:
            warnings.append(
                f"Column '{col}' had {n_bad} value(s) that could not be parsed as numbers "
                f"— treated as missing."
            )

    # ── Infinite values count as missing ──
    if resolved_numeric:
        df[resolved_numeric] = df[resolved_numeric].replace([np.inf, -np.inf], np.nan)

    # ── Date parsing ──
    if date_column:
        parsed = pd.to_datetime(df[date_column], dayfirst=dayfirst, errors="coerce")
        if parsed.notna().sum() == 0:
            raise SchemaError(
                f"Date column '{date_column}' contains no parseable dates.",
                columns=[date_column],
            )
        df[date_column] = parsed.dt.normalize()
        column_logs[date_column].parsed_as_date = True

    # ── Listwise deletion of incomplete rows ──
    listwise_cols = resolved_numeric + ([date_column] if date_column else [])
    for col in listwise_cols:
        before = len(df)
        df = df.dropna(subset=[col])
        dropped = before - len(df)
        if dropped:
            column_logs[col].rows_dropped_due_to_null = dropped
            changes_summary.append(f"'{col}': dropped {dropped} incomplete row(s).")

    for col in df.columns:
        column_logs[col].final_dtype = str(df[col].dtype)

    rows_dropped_total = original_shape[0] - len(df)
    if rows_dropped_total:
        logger.info("Dropped %d incomplete row(s)", rows_dropped_total)

    return df, LoaderOutput(
        source_path=str(path),
        separator=sep,
        original_shape=original_shape,
        final_shape=df.shape,
        rows_dropped_total=rows_dropped_total,
        numeric_columns=resolved_numeric,
        categorical_columns=categorical,
        date_column=date_column,
        column_logs=list(column_logs.values()),
        changes_summary=changes_summary,
        warnings=warnings,
    )


# ─────────────────────────────────────────────
# DERIVED COLUMNS
# ─────────────────────────────────────────────

def add_weekday_column(
    df: pd.DataFrame,
    date_column: str,
    name: str = "Weekday",
) -> pd.DataFrame:
    """Returns a copy with an English day-name column derived from date_column."""
    if date_column not in df.columns:
        raise SchemaError(f"Date column '{date_column}' not found.", columns=[date_column])
    out = df.copy()
    out[name] = pd.to_datetime(out[date_column]).dt.day_name()
    return out


def add_ratio_column(
    df: pd.DataFrame,
    name: str,
    numerator: str,
    denominator: str,
) -> pd.DataFrame:
    """
    Returns a copy with name = numerator / denominator.
    A zero denominator is a configuration problem, not an Inf to carry forward.
    """
    missing = [c for c in (numerator, denominator) if c not in df.columns]
    if missing:
        raise SchemaError(f"Ratio column '{name}' needs missing column(s) {missing}.", columns=missing)

    zero = df[denominator] == 0
    if zero.any():
        raise NumericDegeneracyError(
            f"Ratio column '{name}': denominator '{denominator}' is zero in "
            f"{int(zero.sum())} row(s).",
            columns=[denominator],
            stage="loader",
        )
    out = df.copy()
    out[name] = out[numerator] / out[denominator]
    return out
