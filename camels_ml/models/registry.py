"""Estimator specs and the ordered registry the selector ranks over."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

import numpy as np

from camels_ml.models.factory import (
    BAGGED_NETWORK,
    BOOSTED_TREE,
    ESTIMATOR_KINDS,
    LINEAR,
    RANDOM_FOREST,
    build_estimator,
    supported_params,
)


@dataclass(frozen=True)
class Tunable:
    """Search range for one hyperparameter.

    ``integer`` ranges are inclusive on both ends; ``log`` ranges are sampled
    uniformly in log space.
    """

    low: float
    high: float
    integer: bool = False
    log: bool = False

    def __post_init__(self):
        if not self.low < self.high:
            raise ValueError(f"Tunable range needs low < high, got [{self.low}, {self.high}]")
        if self.log and self.low <= 0:
            raise ValueError(f"Log-scaled range must be positive, got low={self.low}")

    def scale(self, unit: np.ndarray) -> list[Any]:
        """Map samples in [0, 1) onto this range, one stratum per unit interval."""
        unit = np.asarray(unit, dtype=float)
        if self.integer:
            width = int(self.high) - int(self.low) + 1
            values = int(self.low) + np.floor(unit * width)
            return [int(v) for v in np.clip(values, int(self.low), int(self.high))]
        if self.log:
            log_low, log_high = np.log(self.low), np.log(self.high)
            return [float(v) for v in np.exp(log_low + unit * (log_high - log_low))]
        return [float(v) for v in self.low + unit * (self.high - self.low)]


@dataclass(frozen=True)
class EstimatorSpec:
    """Algorithm kind plus fixed hyperparameters and tunable ranges."""

    name: str
    kind: str
    params: dict[str, Any] = field(default_factory=dict)
    tunable: dict[str, Tunable] = field(default_factory=dict)

    def __post_init__(self):
        if self.kind not in ESTIMATOR_KINDS:
            raise ValueError(
                f"Estimator '{self.name}': unknown kind '{self.kind}'. Supported: {ESTIMATOR_KINDS}"
            )
        allowed = supported_params(self.kind)
        unknown = sorted((set(self.params) | set(self.tunable)) - allowed)
        if unknown:
            raise ValueError(
                f"Estimator '{self.name}' ({self.kind}) does not accept {unknown}"
            )

    @property
    def is_tunable(self) -> bool:
        return bool(self.tunable)

    def resolve(self, candidate: dict[str, Any] | None = None) -> dict[str, Any]:
        """Fixed parameters overlaid with a candidate's values for the tunable ones."""
        candidate = dict(candidate or {})
        unexpected = sorted(set(candidate) - set(self.tunable))
        if unexpected:
            raise ValueError(f"Estimator '{self.name}' has no tunable {unexpected}")
        return {**self.params, **candidate}

    def build(self, candidate: dict[str, Any] | None = None, seed: int = 42):
        """Unfitted regressor for this spec and an optional candidate."""
        return build_estimator(self.kind, self.resolve(candidate), seed=seed)


class EstimatorRegistry:
    """Named estimator specs in registration order (ties rank by this order)."""

    def __init__(self, specs: list[EstimatorSpec] | None = None):
        self._specs: dict[str, EstimatorSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: EstimatorSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Estimator '{spec.name}' is already registered")
        self._specs[spec.name] = spec

    def __getitem__(self, name: str) -> EstimatorSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise KeyError(f"No estimator named '{name}'. Registered: {self.names}") from None

    def __iter__(self) -> Iterator[EstimatorSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    @property
    def names(self) -> list[str]:
        return list(self._specs)

    def order(self, name: str) -> int:
        return self.names.index(name)


def default_registry() -> EstimatorRegistry:
    """Linear regression, boosted trees, random forest and a bagged network."""
    return EstimatorRegistry(
        [
            EstimatorSpec(name="linear_reg", kind=LINEAR),
            EstimatorSpec(
                name="boost_tree",
                kind=BOOSTED_TREE,
                params={"n_estimators": 200},
                tunable={
                    "max_depth": Tunable(1, 15, integer=True),
                    "learning_rate": Tunable(1e-3, 0.3, log=True),
                    "min_child_weight": Tunable(1, 40, integer=True),
                    "gamma": Tunable(1e-4, 10.0, log=True),
                },
            ),
            EstimatorSpec(
                name="rand_forest",
                kind=RANDOM_FOREST,
                tunable={
                    "min_samples_leaf": Tunable(1, 20, integer=True),
                    "max_features": Tunable(0.2, 1.0),
                },
            ),
            EstimatorSpec(
                name="bag_mlp",
                kind=BAGGED_NETWORK,
                tunable={
                    "hidden_units": Tunable(1, 10, integer=True),
                    "alpha": Tunable(1e-5, 1.0, log=True),
                },
            ),
        ]
    )
