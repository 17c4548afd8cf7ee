"""Configuration management for the model-selection pipeline."""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from camels_ml.evaluation.metrics import METRICS
from camels_ml.models.factory import ESTIMATOR_KINDS
from camels_ml.models.registry import (
    EstimatorRegistry,
    EstimatorSpec,
    Tunable,
    default_registry,
)
from camels_ml.preprocessing.steps import STEP_TYPES, PreprocessingSpec, Step
from camels_ml.readers.camels_reader import CAMELS_ATTRIBUTE_GROUPS

Direction = Literal["minimize", "maximize"]


def _check_metric(name: str) -> str:
    if name not in METRICS:
        raise ValueError(f"metric must be one of {sorted(METRICS)}, got '{name}'")
    return name


class DataConfig(BaseModel):
    """Input data settings."""

    path: Optional[Path] = Field(default=None, description="Single CSV with one row per basin")
    camels_dir: Optional[Path] = Field(
        default=None, description="Directory holding camels_<group>.txt attribute files"
    )
    attribute_groups: List[str] = Field(default_factory=lambda: list(CAMELS_ATTRIBUTE_GROUPS))
    id_column: str = Field(default="gauge_id")
    target: str = Field(default="q_mean")
    features: List[str] = Field(
        default_factory=lambda: ["aridity", "p_mean"],
        description="Predictor columns kept from the dataset",
    )

    @field_validator("features")
    @classmethod
    def validate_features(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one feature column is required")
        return v


class StepConfig(BaseModel):
    """One preprocessing step, discriminated by ``kind``."""

    kind: Literal[
        "drop_columns", "log", "interaction", "encode_categorical", "normalize", "drop_missing"
    ]
    columns: Optional[List[str]] = None
    offset: float = 0.0
    on_invalid: Literal["fail", "drop"] = "fail"
    left: Optional[str] = None
    right: Optional[str] = None
    name: Optional[str] = None
    drop_first: bool = True

    @model_validator(mode="after")
    def validate_fields(self) -> "StepConfig":
        if self.kind in ("drop_columns", "log", "encode_categorical") and not self.columns:
            raise ValueError(f"'{self.kind}' step requires columns")
        if self.kind == "interaction" and not (self.left and self.right):
            raise ValueError("'interaction' step requires left and right")
        return self

    def to_step(self) -> Step:
        step_type = STEP_TYPES[self.kind]
        if self.kind == "log":
            return step_type(columns=self.columns, offset=self.offset, on_invalid=self.on_invalid)
        if self.kind == "interaction":
            return step_type(left=self.left, right=self.right, name=self.name)
        if self.kind == "encode_categorical":
            return step_type(columns=self.columns, drop_first=self.drop_first)
        return step_type(columns=self.columns)


def _default_steps() -> List[StepConfig]:
    return [
        StepConfig(kind="log", columns=["aridity", "p_mean", "q_mean"], on_invalid="drop"),
        StepConfig(kind="interaction", left="aridity", right="p_mean"),
        StepConfig(kind="drop_missing"),
    ]


class TunableConfig(BaseModel):
    low: float
    high: float
    integer: bool = False
    log: bool = False

    @model_validator(mode="after")
    def validate_range(self) -> "TunableConfig":
        if not self.low < self.high:
            raise ValueError(f"low must be < high, got [{self.low}, {self.high}]")
        if self.log and self.low <= 0:
            raise ValueError("log-scaled ranges must be positive")
        return self

    def to_tunable(self) -> Tunable:
        return Tunable(self.low, self.high, integer=self.integer, log=self.log)


class EstimatorConfig(BaseModel):
    """One registered estimator."""

    name: str
    kind: str
    params: Dict[str, Any] = Field(default_factory=dict)
    tunable: Dict[str, TunableConfig] = Field(default_factory=dict)

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        if v not in ESTIMATOR_KINDS:
            raise ValueError(f"kind must be one of {list(ESTIMATOR_KINDS)}")
        return v

    @classmethod
    def from_spec(cls, spec: EstimatorSpec) -> "EstimatorConfig":
        return cls(
            name=spec.name,
            kind=spec.kind,
            params=dict(spec.params),
            tunable={
                name: TunableConfig(
                    low=t.low, high=t.high, integer=t.integer, log=t.log
                )
                for name, t in spec.tunable.items()
            },
        )

    def to_spec(self) -> EstimatorSpec:
        return EstimatorSpec(
            name=self.name,
            kind=self.kind,
            params=dict(self.params),
            tunable={name: t.to_tunable() for name, t in self.tunable.items()},
        )


class ResamplingConfig(BaseModel):
    proportion: float = Field(default=0.8, gt=0.0, lt=1.0)
    seed: int = Field(default=42)
    folds: int = Field(default=10, ge=2)


class SelectionConfig(BaseModel):
    """Metrics computed per fold and the metric used to pick the winner."""

    metrics: List[str] = Field(default_factory=lambda: ["rmse", "rsq", "mae"])
    metric: str = Field(default="rsq")
    direction: Optional[Direction] = None

    @field_validator("metrics")
    @classmethod
    def validate_metrics(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one metric is required")
        return [_check_metric(name) for name in v]

    @field_validator("metric")
    @classmethod
    def validate_metric(cls, v: str) -> str:
        return _check_metric(v)

    @model_validator(mode="after")
    def include_selection_metric(self) -> "SelectionConfig":
        if self.metric not in self.metrics:
            self.metrics = [*self.metrics, self.metric]
        return self


class TuningConfig(BaseModel):
    enabled: bool = True
    grid_size: int = Field(default=25, ge=1)
    metric: str = Field(default="rmse")
    direction: Optional[Direction] = None
    seed: int = Field(default=42)

    @field_validator("metric")
    @classmethod
    def validate_metric(cls, v: str) -> str:
        return _check_metric(v)


class RuntimeConfig(BaseModel):
    n_workers: int = Field(default=1, ge=1)
    output_dir: Path = Field(default=Path("outputs/selection"))
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class Settings(BaseModel):
    """Main settings class containing all configuration."""

    data: DataConfig = Field(default_factory=DataConfig)
    preprocessing: List[StepConfig] = Field(default_factory=_default_steps)
    resampling: ResamplingConfig = Field(default_factory=ResamplingConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    tuning: TuningConfig = Field(default_factory=TuningConfig)
    estimators: List[EstimatorConfig] = Field(
        default_factory=lambda: [EstimatorConfig.from_spec(s) for s in default_registry()]
    )
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @field_validator("estimators")
    @classmethod
    def validate_estimators(cls, v: List[EstimatorConfig]) -> List[EstimatorConfig]:
        if not v:
            raise ValueError("At least one estimator is required")
        names = [e.name for e in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Estimator names must be unique, duplicated: {duplicates}")
        return v

    @model_validator(mode="after")
    def validate_pipeline(self) -> "Settings":
        # PreprocessingSpec and EstimatorSpec check step order and parameter names
        self.preprocessing_spec()
        self.registry()
        return self

    @classmethod
    def from_yaml(cls, config_path: Path) -> "Settings":
        """Load settings from a YAML file; missing sections keep their defaults."""
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}
        return cls(**config_dict)

    def to_yaml(self, output_path: Path) -> None:
        """Save settings to a YAML file."""
        with open(output_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )

    def preprocessing_spec(self) -> PreprocessingSpec:
        return PreprocessingSpec(tuple(step.to_step() for step in self.preprocessing))

    def registry(self) -> EstimatorRegistry:
        return EstimatorRegistry([e.to_spec() for e in self.estimators])
