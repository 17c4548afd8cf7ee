"""Configuration module."""

from .settings import (
    DataConfig,
    EstimatorConfig,
    ResamplingConfig,
    RuntimeConfig,
    SelectionConfig,
    Settings,
    StepConfig,
    TunableConfig,
    TuningConfig,
)

__all__ = [
    "DataConfig",
    "EstimatorConfig",
    "ResamplingConfig",
    "RuntimeConfig",
    "SelectionConfig",
    "Settings",
    "StepConfig",
    "TunableConfig",
    "TuningConfig",
]
