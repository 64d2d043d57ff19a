"""
FILE: Schemas/loader.py
------------------------
Pydantic output schema for the tabular loader.
LoaderOutput records what was done to the raw file before any
statistical step sees the table.
"""

from pydantic import BaseModel, Field


# ─────────────────────────────────────────────
# PER-COLUMN ACTION LOG
# ─────────────────────────────────────────────

class ColumnCleaningLog(BaseModel):
    column: str
    original_dtype: str | None = None
    final_dtype: str | None = None
    decimal_commas_normalised: int = 0      # cells rewritten from "12,5" to "12.5"
    dtype_coerced: bool = False             # True if object dtype was coerced to numeric
    values_unparseable: int = 0             # non-null cells that became NaN on coercion
    rows_dropped_due_to_null: int = 0       # rows dropped because of NaN in this column
    parsed_as_date: bool = False


# ─────────────────────────────────────────────
# MAIN OUTPUT SCHEMA
# ─────────────────────────────────────────────

class LoaderOutput(BaseModel):
    source_path: str
    separator: str

    # ── Shape changes ──
    original_shape: tuple[int, int]
    final_shape: tuple[int, int]
    rows_dropped_total: int = 0

    # ── Column roles as resolved after loading ──
    numeric_columns: list[str] = Field(default_factory=list)
    categorical_columns: list[str] = Field(default_factory=list)
    date_column: str | None = None
    derived_columns: list[str] = Field(default_factory=list)

    column_logs: list[ColumnCleaningLog] = Field(default_factory=list)

    # ── Summary for user display ──
    changes_summary: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
