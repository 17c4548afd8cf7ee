"""Refit the selected configuration on all training rows and score it on Test."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
import pandas as pd

from camels_ml.evaluation.metrics import compute_metrics
from camels_ml.exceptions import EmptyFoldError, FitError, SchemaError
from camels_ml.models.registry import EstimatorSpec
from camels_ml.preprocessing import (
    FrozenPreprocessor,
    PreprocessingSpec,
    apply_preprocessor,
    feature_matrix,
    fit_preprocessor,
)
from camels_ml.utils.logger import setup_logger

logger = setup_logger("finalizer")


@dataclass(frozen=True)
class TrainedModel:
    """Fitted estimator bundled with the preprocessor it was trained behind."""

    estimator: str
    kind: str
    params: dict[str, Any]
    preprocessor: FrozenPreprocessor
    model: Any = field(repr=False)

    @property
    def feature_columns(self) -> tuple[str, ...]:
        return self.preprocessor.feature_columns

    def predict(self, rows: pd.DataFrame) -> pd.Series:
        """Predict the (transformed-scale) target for raw rows.

        Rows removed by preprocessing (missing values, invalid logs) are absent
        from the returned Series, which keeps the surviving rows' index.
        """
        transformed = apply_preprocessor(self.preprocessor, rows)
        predicted = self.model.predict(feature_matrix(self.preprocessor, transformed))
        return pd.Series(np.asarray(predicted, dtype=float).ravel(), index=transformed.index, name="predicted")


@dataclass
class FinalizeResult:
    model: TrainedModel
    test_metrics: pd.DataFrame
    predictions: pd.DataFrame


def finalize(
    spec: EstimatorSpec,
    params: dict[str, Any] | None,
    train: pd.DataFrame,
    test: pd.DataFrame,
    preprocessing: PreprocessingSpec,
    metrics: Sequence[str],
    target: str,
    id_column: str | None = None,
    seed: int = 42,
) -> FinalizeResult:
    """Fit on all of Train, predict Test once, and score the predictions.

    Args:
        spec: Selected estimator family
        params: Tuned values for the estimator's tunable hyperparameters (or None)
        train: Full training split
        test: Held-out split, used only here
        preprocessing: Steps refitted on the full training split
        metrics: Metric names for the held-out evaluation
        target: Target column
        id_column: Identifier column carried into the predictions table
        seed: Random state for stochastic estimators

    Returns:
        FinalizeResult with the trained model, one row per metric and the
        per-basin predictions

    Raises:
        SchemaError: Target missing from either split
        EmptyFoldError: A split has no rows left after preprocessing
        FitError: The estimator cannot be fitted or predicts non-finite values
    """
    for name, rows in (("train", train), ("test", test)):
        if target not in rows.columns:
            raise SchemaError(f"Target column '{target}' missing from {name} split")

    frozen = fit_preprocessor(preprocessing, train, target, id_column)
    train_rows = apply_preprocessor(frozen, train)
    test_rows = apply_preprocessor(frozen, test)
    for name, rows in (("train", train_rows), ("test", test_rows)):
        if rows.empty:
            raise EmptyFoldError(f"{name} split has no rows after preprocessing")

    logger.info(
        f"Finalizing {spec.name} on {len(train_rows)} training rows, "
        f"{len(frozen.feature_columns)} features"
    )
    try:
        model = spec.build(params, seed=seed)
        model.fit(feature_matrix(frozen, train_rows), train_rows[target].to_numpy(dtype=float))
        predicted = np.asarray(
            model.predict(feature_matrix(frozen, test_rows)), dtype=float
        ).ravel()
    except Exception as exc:
        raise FitError(f"Final fit of {spec.name} failed: {type(exc).__name__}: {exc}") from exc
    if not np.all(np.isfinite(predicted)):
        raise FitError(f"Final {spec.name} model produced non-finite predictions")

    observed = test_rows[target].to_numpy(dtype=float)
    scores = compute_metrics(observed, predicted, metrics)
    test_metrics = pd.DataFrame(
        {"metric": list(scores), "value": list(scores.values())}
    )

    predictions = pd.DataFrame(
        {"actual": observed, "predicted": predicted}, index=test_rows.index
    )
    if id_column is not None and id_column in test_rows.columns:
        predictions.insert(0, id_column, test_rows[id_column].to_numpy())
    predictions = predictions.reset_index(drop=True)

    logger.info(
        "Held-out metrics: "
        + ", ".join(f"{name}={value:.3f}" for name, value in scores.items())
    )

    trained = TrainedModel(
        estimator=spec.name,
        kind=spec.kind,
        params=spec.resolve(params),
        preprocessor=frozen,
        model=model,
    )
    return FinalizeResult(model=trained, test_metrics=test_metrics, predictions=predictions)
