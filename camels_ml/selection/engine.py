"""Cross-validated evaluation of estimator specs.

Each fold fits its own preprocessor on the fold's training rows, fits the
estimator, predicts the validation rows and scores the predictions. Estimator
failures are recorded per fold and never abort the evaluation; schema and
empty-fold problems are structural and propagate.
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Sequence

import numpy as np
import pandas as pd

from camels_ml.evaluation.metrics import compute_metrics, get_metric
from camels_ml.exceptions import EmptyFoldError, FitError, SchemaError
from camels_ml.models.registry import EstimatorRegistry, EstimatorSpec
from camels_ml.preprocessing import (
    PreprocessingSpec,
    apply_preprocessor,
    feature_matrix,
    fit_preprocessor,
)
from camels_ml.selection.resampling import Fold
from camels_ml.utils.logger import setup_logger

logger = setup_logger("evaluation_engine")

AGGREGATE = "aggregate"


@dataclass(frozen=True)
class MetricResult:
    """One metric value for an estimator on a fold (or its aggregate)."""

    estimator: str
    fold: str
    metric: str
    value: float


@dataclass(frozen=True)
class FoldOutcome:
    """Metrics for one fold, or the error that prevented them."""

    fold: str
    metrics: dict[str, float] = field(default_factory=dict)
    error: str | None = None
    n_train: int = 0
    n_validation: int = 0

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class EvaluationResult:
    """All fold outcomes of one estimator (or tuning candidate)."""

    estimator: str
    outcomes: tuple[FoldOutcome, ...]
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def n_failed(self) -> int:
        return sum(not outcome.succeeded for outcome in self.outcomes)

    @property
    def succeeded(self) -> bool:
        """True when at least one fold produced metrics."""
        return self.n_failed < len(self.outcomes)

    @property
    def failures(self) -> list[FoldOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    def metric_results(self) -> list[MetricResult]:
        return [
            MetricResult(self.estimator, outcome.fold, name, value)
            for outcome in self.outcomes
            if outcome.succeeded
            for name, value in outcome.metrics.items()
        ]

    def to_frame(self) -> pd.DataFrame:
        """Long table: estimator, fold, metric, value."""
        return pd.DataFrame(
            [vars(result) for result in self.metric_results()],
            columns=["estimator", "fold", "metric", "value"],
        )


def _check_target(folds: Sequence[Fold], target: str) -> None:
    for fold in folds:
        for portion, rows in (("training", fold.train), ("validation", fold.validation)):
            if target not in rows.columns:
                raise SchemaError(
                    f"Target column '{target}' missing from {fold.id} {portion} rows"
                )


def _fit_predict(
    spec: EstimatorSpec,
    candidate: dict[str, Any] | None,
    x_train: pd.DataFrame,
    y_train: np.ndarray,
    x_validation: pd.DataFrame,
    seed: int,
) -> np.ndarray:
    model = spec.build(candidate, seed=seed)
    model.fit(x_train, y_train)
    predicted = np.asarray(model.predict(x_validation), dtype=float).ravel()
    if not np.all(np.isfinite(predicted)):
        raise FitError(f"{int((~np.isfinite(predicted)).sum())} non-finite prediction(s)")
    return predicted


def evaluate_fold(
    fold: Fold,
    spec: EstimatorSpec,
    preprocessing: PreprocessingSpec,
    metrics: Sequence[str],
    target: str,
    id_column: str | None = None,
    candidate: dict[str, Any] | None = None,
    seed: int = 42,
) -> FoldOutcome:
    """Preprocess, fit, predict and score a single fold.

    Raises:
        SchemaError / TransformError: Preprocessing cannot be fitted or applied
        EmptyFoldError: A fold portion has no rows after preprocessing
    """
    frozen = fit_preprocessor(preprocessing, fold.train, target, id_column)
    train_rows = apply_preprocessor(frozen, fold.train)
    validation_rows = apply_preprocessor(frozen, fold.validation)

    for portion, rows in (("training", train_rows), ("validation", validation_rows)):
        if rows.empty:
            raise EmptyFoldError(f"{fold.id} {portion} portion has no rows after preprocessing")

    observed = validation_rows[target].to_numpy(dtype=float)
    try:
        predicted = _fit_predict(
            spec,
            candidate,
            feature_matrix(frozen, train_rows),
            train_rows[target].to_numpy(dtype=float),
            feature_matrix(frozen, validation_rows),
            seed,
        )
    except Exception as exc:  # any estimator failure is recorded as a FitError
        error = FitError(f"{spec.name} failed on {fold.id}: {type(exc).__name__}: {exc}")
        logger.warning(str(error))
        return FoldOutcome(
            fold=fold.id,
            error=str(error),
            n_train=len(train_rows),
            n_validation=len(validation_rows),
        )

    return FoldOutcome(
        fold=fold.id,
        metrics=compute_metrics(observed, predicted, metrics),
        n_train=len(train_rows),
        n_validation=len(validation_rows),
    )


def run_fold_tasks(
    task: Callable[[Fold], FoldOutcome], folds: Sequence[Fold], n_workers: int = 1
) -> list[FoldOutcome]:
    """Run a fold task serially or on a process pool, preserving fold order.

    If any task raises, pending tasks are cancelled and nothing is returned.
    """
    if n_workers <= 1 or len(folds) <= 1:
        return [task(fold) for fold in folds]

    with ProcessPoolExecutor(max_workers=min(n_workers, len(folds))) as executor:
        futures = [executor.submit(task, fold) for fold in folds]
        try:
            return [future.result() for future in futures]
        except BaseException:
            for future in futures:
                future.cancel()
            raise


def evaluate_estimator(
    spec: EstimatorSpec,
    folds: Sequence[Fold],
    preprocessing: PreprocessingSpec,
    metrics: Sequence[str],
    target: str,
    id_column: str | None = None,
    candidate: dict[str, Any] | None = None,
    n_workers: int = 1,
    seed: int = 42,
    label: str | None = None,
) -> EvaluationResult:
    """Cross-validate one estimator spec (optionally with a tuning candidate).

    Args:
        spec: Estimator to evaluate
        folds: Resampled training folds
        preprocessing: Steps fitted inside every fold
        metrics: Metric names to compute
        target: Target column
        id_column: Identifier column excluded from the predictors
        candidate: Values for the estimator's tunable hyperparameters
        n_workers: Process pool size; 1 runs serially
        seed: Random state for stochastic estimators
        label: Name reported in results (defaults to the estimator name)

    Returns:
        EvaluationResult with one outcome per fold

    Raises:
        SchemaError: The target is missing, checked before any fold is fitted
    """
    if not folds:
        raise ValueError("At least one fold is required")
    for name in metrics:
        get_metric(name)
    _check_target(folds, target)

    task = partial(
        evaluate_fold,
        spec=spec,
        preprocessing=preprocessing,
        metrics=tuple(metrics),
        target=target,
        id_column=id_column,
        candidate=candidate,
        seed=seed,
    )
    outcomes = run_fold_tasks(task, folds, n_workers)

    result = EvaluationResult(
        estimator=label or spec.name,
        outcomes=tuple(outcomes),
        params=spec.resolve(candidate),
    )
    if result.n_failed:
        logger.warning(
            f"{result.estimator}: {result.n_failed}/{len(outcomes)} fold(s) failed"
        )
    return result


def evaluate_registry(
    registry: EstimatorRegistry,
    folds: Sequence[Fold],
    preprocessing: PreprocessingSpec,
    metrics: Sequence[str],
    target: str,
    id_column: str | None = None,
    n_workers: int = 1,
    seed: int = 42,
) -> list[EvaluationResult]:
    """Cross-validate every registered estimator with its fixed parameters."""
    results = []
    for spec in registry:
        logger.info(f"Evaluating {spec.name} ({spec.kind}) on {len(folds)} folds")
        result = evaluate_estimator(
            spec,
            folds,
            preprocessing,
            metrics,
            target,
            id_column=id_column,
            n_workers=n_workers,
            seed=seed,
        )
        scores = result.to_frame()
        if not scores.empty:
            summary = scores.groupby("metric")["value"].mean()
            logger.info(
                f"{spec.name}: "
                + ", ".join(f"{name}={value:.3f}" for name, value in summary.items())
            )
        results.append(result)
    return results
