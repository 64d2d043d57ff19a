"""
FILE: core/exceptions.py
-------------------------
Fatal error types raised by the engines.

Every error is terminal for the run: engines raise, the orchestrator in
main.py catches PipelineError, records the message as fatal_error in
state and stops the graph. Nothing is retried.

  SchemaError             : expected column missing or not coercible
  NumericDegeneracyError  : zero-width ranges, zero variance, collinearity
  InsufficientDataError   : too few rows for the requested model
"""


class PipelineError(ValueError):
    """Base class for all fatal pipeline errors."""

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        return f"[{self.stage}] {message}" if self.stage else message


class SchemaError(PipelineError):
    def __init__(self, message: str, columns: list[str] | None = None, stage: str | None = "loader"):
        super().__init__(message, stage=stage)
        self.columns = columns or []


class NumericDegeneracyError(PipelineError):
    def __init__(self, message: str, columns: list[str] | None = None, stage: str | None = None):
        super().__init__(message, stage=stage)
        self.columns = columns or []


class InsufficientDataError(PipelineError):
    def __init__(self, message: str, n_rows: int, required: int, stage: str | None = None):
        super().__init__(
            f"{message} (got {n_rows} row(s), need at least {required}).",
            stage=stage,
        )
        self.n_rows = n_rows
        self.required = required
