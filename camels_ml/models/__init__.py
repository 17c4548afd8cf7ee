"""Estimator kinds, estimator specs and the registry."""

from camels_ml.models.factory import (
    BAGGED_NETWORK,
    BOOSTED_TREE,
    ESTIMATOR_KINDS,
    LINEAR,
    NULL,
    RANDOM_FOREST,
    build_estimator,
    supported_params,
)
from camels_ml.models.registry import (
    EstimatorRegistry,
    EstimatorSpec,
    Tunable,
    default_registry,
)

__all__ = [
    "BAGGED_NETWORK",
    "BOOSTED_TREE",
    "ESTIMATOR_KINDS",
    "LINEAR",
    "NULL",
    "RANDOM_FOREST",
    "build_estimator",
    "supported_params",
    "EstimatorRegistry",
    "EstimatorSpec",
    "Tunable",
    "default_registry",
]
