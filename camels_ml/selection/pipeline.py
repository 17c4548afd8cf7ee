"""End-to-end model selection: split, resample, compare, tune, finalize.

Each stage is a function of the previous stage's output; nothing is cached
between stages. Structural failures (pipeline errors and invalid sizes) are
re-raised as StageError naming the stage, while estimator failures inside
folds are collected into the report.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import time
from typing import Iterator, Sequence

import pandas as pd

from camels_ml.config.settings import Settings
from camels_ml.exceptions import PipelineError, SchemaError, StageError
from camels_ml.models.registry import EstimatorRegistry
from camels_ml.readers.camels_reader import check_unique_ids, select_columns
from camels_ml.selection.engine import EvaluationResult, evaluate_registry
from camels_ml.selection.finalize import FinalizeResult, finalize
from camels_ml.selection.resampling import initial_split, k_fold
from camels_ml.selection.selector import aggregate_metrics, ranking_table, select_best
from camels_ml.selection.tuner import TuningResult, tune
from camels_ml.utils.helpers import format_duration
from camels_ml.utils.logger import setup_logger

logger = setup_logger("pipeline")


@dataclass
class PipelineReport:
    """Everything a run produced, ready to be written by ``save_pipeline_report``."""

    ranking: pd.DataFrame
    evaluations: list[EvaluationResult]
    winner: str
    tuning: TuningResult | None
    final: FinalizeResult
    failures: pd.DataFrame
    n_train: int
    n_test: int
    elapsed_seconds: float

    @property
    def best_params(self) -> dict:
        """Hyperparameters of the finalized model (fixed and tuned)."""
        return dict(self.final.model.params)

    @property
    def test_metrics(self) -> pd.DataFrame:
        return self.final.test_metrics

    @property
    def predictions(self) -> pd.DataFrame:
        return self.final.predictions


@contextmanager
def _stage(name: str) -> Iterator[None]:
    logger.debug(f"Entering stage '{name}'")
    try:
        yield
    except StageError:
        raise
    except (PipelineError, ValueError) as exc:
        logger.error(f"Stage '{name}' failed: {type(exc).__name__}: {exc}")
        raise StageError(name, exc) from exc


def failure_table(results: Sequence[EvaluationResult]) -> pd.DataFrame:
    """One row per failed fold: estimator (or candidate), fold, error."""
    rows = [
        {"estimator": result.estimator, "fold": outcome.fold, "error": outcome.error}
        for result in results
        for outcome in result.failures
    ]
    return pd.DataFrame(rows, columns=["estimator", "fold", "error"])


def run_pipeline(
    dataset: pd.DataFrame,
    settings: Settings | None = None,
    registry: EstimatorRegistry | None = None,
) -> PipelineReport:
    """Run model comparison, tuning and held-out evaluation on a basin table.

    Args:
        dataset: One row per basin with the identifier, target and features
        settings: Pipeline configuration (defaults when omitted)
        registry: Estimators to compare (built from ``settings`` when omitted)

    Returns:
        PipelineReport with rankings, tuning results, held-out metrics and
        predictions

    Raises:
        StageError: A structural failure; ``stage`` and ``cause`` say where and why
    """
    settings = settings or Settings()
    registry = registry or settings.registry()
    preprocessing = settings.preprocessing_spec()
    target = settings.data.target
    id_column = settings.data.id_column
    metrics = settings.selection.metrics
    n_workers = settings.runtime.n_workers
    start = time.perf_counter()

    logger.info(
        f"Model selection for '{target}' with {len(registry)} estimators: {registry.names}"
    )
    logger.info(f"Preprocessing: {' -> '.join(preprocessing.describe()) or 'none'}")

    with _stage("split"):
        check_unique_ids(dataset, id_column)
        if target not in dataset.columns:
            raise SchemaError(f"Target column '{target}' not found in dataset")
        dataset = select_columns(dataset, id_column, target, settings.data.features)
        train, test = initial_split(
            dataset, settings.resampling.proportion, settings.resampling.seed
        )

    with _stage("resample"):
        folds = k_fold(train, settings.resampling.folds, settings.resampling.seed)

    with _stage("evaluate"):
        evaluations = evaluate_registry(
            registry,
            folds,
            preprocessing,
            metrics,
            target,
            id_column=id_column,
            n_workers=n_workers,
            seed=settings.resampling.seed,
        )

    with _stage("select"):
        table = aggregate_metrics(evaluations)
        winner = select_best(table, settings.selection.metric, settings.selection.direction)
        ranking = ranking_table(table, settings.selection.metric, settings.selection.direction)
    logger.info(f"Selected '{winner}' by {settings.selection.metric}")

    spec = registry[winner]
    tuning_result = None
    if settings.tuning.enabled and spec.is_tunable:
        with _stage("tune"):
            tuning_result = tune(
                spec,
                folds,
                preprocessing,
                settings.tuning.grid_size,
                metrics,
                target,
                metric=settings.tuning.metric,
                direction=settings.tuning.direction,
                id_column=id_column,
                seed=settings.tuning.seed,
                n_workers=n_workers,
            )
    else:
        logger.info(f"Skipping tuning for '{winner}' (enabled={settings.tuning.enabled}, "
                    f"tunable={spec.is_tunable})")

    with _stage("finalize"):
        final = finalize(
            spec,
            tuning_result.best_params if tuning_result else None,
            train,
            test,
            preprocessing,
            metrics,
            target,
            id_column=id_column,
            seed=settings.resampling.seed,
        )

    failures = failure_table(evaluations + (tuning_result.results if tuning_result else []))
    if not failures.empty:
        counts = failures.groupby("estimator").size()
        logger.warning(
            f"{len(failures)} failed fold(s): "
            + ", ".join(f"{name}={count}" for name, count in counts.items())
        )

    elapsed = time.perf_counter() - start
    logger.info(f"Pipeline finished in {format_duration(elapsed)}")

    return PipelineReport(
        ranking=ranking,
        evaluations=evaluations,
        winner=winner,
        tuning=tuning_result,
        final=final,
        failures=failures,
        n_train=len(train),
        n_test=len(test),
        elapsed_seconds=elapsed,
    )
