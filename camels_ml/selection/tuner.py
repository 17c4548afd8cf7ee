"""Latin-hypercube hyperparameter tuning for one estimator family.

Candidates are drawn up front with a scrambled Latin hypercube, enqueued into
an Optuna study and replayed as trials, so the study keeps the trial log while
the candidate set stays fully determined by the seed. Candidates are ranked
with the same aggregation as the model selector.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Sequence

import numpy as np
import optuna  # type: ignore[import-untyped]
import pandas as pd
from scipy.stats import qmc

from camels_ml.evaluation.metrics import metric_direction
from camels_ml.exceptions import FitError
from camels_ml.models.registry import EstimatorSpec, Tunable
from camels_ml.preprocessing import PreprocessingSpec
from camels_ml.selection.engine import EvaluationResult, evaluate_estimator
from camels_ml.selection.resampling import Fold
from camels_ml.selection.selector import aggregate_metrics, ranking_table, select_best
from camels_ml.utils.logger import setup_logger

logger = setup_logger("tuner")

optuna.logging.set_verbosity(optuna.logging.WARNING)
logging.getLogger("optuna").setLevel(logging.WARNING)


def latin_hypercube(
    ranges: dict[str, Tunable], grid_size: int, seed: int = 42
) -> list[dict[str, Any]]:
    """Draw ``grid_size`` candidates covering every range one stratum at a time.

    Each dimension is split into ``grid_size`` equal-width strata in unit
    space and receives exactly one sample per stratum; the strata are permuted
    independently per dimension.

    Args:
        ranges: Tunable ranges keyed by hyperparameter name
        grid_size: Number of candidates
        seed: Seed for the scrambled hypercube

    Returns:
        Candidates as ``{name: value}`` dictionaries, in draw order
    """
    if grid_size < 1:
        raise ValueError(f"grid_size must be at least 1, got {grid_size}")
    if not ranges:
        raise ValueError("At least one tunable range is required")

    names = list(ranges)
    sampler = qmc.LatinHypercube(d=len(names), scramble=True, rng=np.random.default_rng(seed))
    unit = sampler.random(n=grid_size)

    columns = {name: ranges[name].scale(unit[:, j]) for j, name in enumerate(names)}
    return [{name: columns[name][i] for name in names} for i in range(grid_size)]


def _suggest(trial: optuna.Trial, name: str, tunable: Tunable) -> Any:
    if tunable.integer:
        return trial.suggest_int(name, int(tunable.low), int(tunable.high), log=tunable.log)
    return trial.suggest_float(name, tunable.low, tunable.high, log=tunable.log)


@dataclass
class TuningResult:
    """Candidates, their cross-validated scores and the selected configuration."""

    estimator: str
    metric: str
    direction: str
    candidates: list[dict[str, Any]]
    results: list[EvaluationResult]
    table: pd.DataFrame
    best_candidate: str
    best_params: dict[str, Any]
    study: optuna.Study | None = field(default=None, repr=False)

    @property
    def n_failed(self) -> int:
        return sum(not result.succeeded for result in self.results)

    def ranking(self) -> pd.DataFrame:
        return ranking_table(self.table, self.metric, self.direction)

    def trials_frame(self) -> pd.DataFrame:
        """Optuna trial log (params, value, state, user attributes)."""
        if self.study is None:
            return pd.DataFrame()
        return self.study.trials_dataframe()


def tune(
    spec: EstimatorSpec,
    folds: Sequence[Fold],
    preprocessing: PreprocessingSpec,
    grid_size: int,
    metrics: Sequence[str],
    target: str,
    metric: str = "rmse",
    direction: str | None = None,
    id_column: str | None = None,
    seed: int = 42,
    n_workers: int = 1,
) -> TuningResult:
    """Search the estimator's tunable ranges under cross-validation.

    Args:
        spec: Estimator family to tune; must declare tunable ranges
        folds: Resampled training folds (never the test split)
        preprocessing: Steps fitted inside every fold
        grid_size: Number of Latin-hypercube candidates
        metrics: Metrics computed for every candidate
        target: Target column
        metric: Metric used to pick the best candidate
        direction: Override for the metric's registered direction
        id_column: Identifier column excluded from the predictors
        seed: Seed for candidate generation and stochastic estimators
        n_workers: Process pool size for fold evaluation

    Returns:
        TuningResult with the best candidate's parameters

    Raises:
        ValueError: The spec has nothing to tune
        NoSuccessfulModelsError: Every candidate failed on every fold
    """
    if not spec.is_tunable:
        raise ValueError(f"Estimator '{spec.name}' declares no tunable hyperparameters")

    direction = metric_direction(metric, direction)
    metrics = tuple(metrics) if metric in metrics else (*metrics, metric)
    candidates = latin_hypercube(spec.tunable, grid_size, seed)

    logger.info(
        f"Tuning {spec.name}: {grid_size} Latin-hypercube candidates over "
        f"{sorted(spec.tunable)}, {len(folds)} folds, {direction} {metric}"
    )

    study = optuna.create_study(
        study_name=f"tune_{spec.name}",
        direction=direction,
        sampler=optuna.samplers.RandomSampler(seed=seed),
    )
    for candidate in candidates:
        study.enqueue_trial(candidate)

    results: dict[int, EvaluationResult] = {}

    def objective(trial: optuna.Trial) -> float:
        candidate = candidates[trial.number]
        for name, tunable in spec.tunable.items():
            _suggest(trial, name, tunable)

        label = f"Candidate{trial.number + 1:02d}"
        result = evaluate_estimator(
            spec,
            folds,
            preprocessing,
            metrics,
            target,
            id_column=id_column,
            candidate=candidate,
            n_workers=n_workers,
            seed=seed,
            label=label,
        )
        results[trial.number] = result
        trial.set_user_attr("candidate", label)
        trial.set_user_attr("n_failed", result.n_failed)

        if not result.succeeded:
            raise FitError(f"{label}: all {len(folds)} folds failed")

        values = np.array(
            [o.metrics[metric] for o in result.outcomes if o.succeeded], dtype=float
        )
        values = values[np.isfinite(values)]
        return float(values.mean()) if len(values) else float("nan")

    study.optimize(
        objective,
        n_trials=len(candidates),
        catch=(FitError,),
        show_progress_bar=False,
    )

    ordered = [results[number] for number in sorted(results)]
    table = aggregate_metrics(ordered)
    best_candidate = select_best(table, metric, direction)
    best_params = dict(next(r.params for r in ordered if r.estimator == best_candidate))
    tuned_only = {name: best_params[name] for name in spec.tunable}

    n_failed = sum(not r.succeeded for r in ordered)
    if n_failed:
        logger.warning(f"{n_failed}/{len(ordered)} candidate(s) failed on every fold")
    logger.info(f"Best {spec.name} candidate {best_candidate}: {tuned_only}")

    return TuningResult(
        estimator=spec.name,
        metric=metric,
        direction=direction,
        candidates=candidates,
        results=ordered,
        table=table,
        best_candidate=best_candidate,
        best_params=tuned_only,
        study=study,
    )
