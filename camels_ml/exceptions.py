"""
Errors raised by the model-selection pipeline.

Fold-level `FitError`s are recorded and skipped by the evaluation engine;
every other error here aborts the run.
"""


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class SchemaError(PipelineError):
    """Raised when a required column is missing or the identifier is not unique."""


class TransformError(PipelineError):
    """Raised when a preprocessing step is undefined for a value (e.g. log of a non-positive)."""


class FitError(PipelineError):
    """Raised when an estimator fails to fit or produces unusable predictions."""


class EmptyFoldError(PipelineError):
    """Raised when a fold portion has zero rows after preprocessing."""


class NoSuccessfulModelsError(PipelineError):
    """Raised when no estimator or candidate has a usable aggregated metric."""


class StageError(PipelineError):
    """Structural failure annotated with the pipeline stage it happened in."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Pipeline failed at stage '{stage}': {type(cause).__name__}: {cause}")
