"""Feature preprocessing: ordered steps fitted on training rows only."""

from camels_ml.preprocessing.preprocessor import (
    FrozenPreprocessor,
    apply_preprocessor,
    feature_matrix,
    fit_preprocessor,
)
from camels_ml.preprocessing.steps import (
    STEP_TYPES,
    DropColumns,
    DropMissing,
    EncodeCategorical,
    Interaction,
    LogTransform,
    Normalize,
    PreprocessingSpec,
)

__all__ = [
    "FrozenPreprocessor",
    "apply_preprocessor",
    "feature_matrix",
    "fit_preprocessor",
    "STEP_TYPES",
    "DropColumns",
    "DropMissing",
    "EncodeCategorical",
    "Interaction",
    "LogTransform",
    "Normalize",
    "PreprocessingSpec",
]
