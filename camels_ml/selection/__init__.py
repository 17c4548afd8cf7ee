"""Resampling, model comparison, tuning and held-out evaluation."""

from camels_ml.selection.engine import (
    AGGREGATE,
    EvaluationResult,
    FoldOutcome,
    MetricResult,
    evaluate_estimator,
    evaluate_fold,
    evaluate_registry,
)
from camels_ml.selection.finalize import FinalizeResult, TrainedModel, finalize
from camels_ml.selection.io import save_pipeline_report
from camels_ml.selection.pipeline import PipelineReport, failure_table, run_pipeline
from camels_ml.selection.resampling import Fold, initial_split, k_fold
from camels_ml.selection.selector import (
    aggregate_metrics,
    rank_estimators,
    ranking_table,
    select_best,
)
from camels_ml.selection.tuner import TuningResult, latin_hypercube, tune

__all__ = [
    "AGGREGATE",
    "EvaluationResult",
    "FinalizeResult",
    "Fold",
    "FoldOutcome",
    "MetricResult",
    "PipelineReport",
    "TrainedModel",
    "TuningResult",
    "aggregate_metrics",
    "evaluate_estimator",
    "evaluate_fold",
    "evaluate_registry",
    "failure_table",
    "finalize",
    "initial_split",
    "k_fold",
    "latin_hypercube",
    "rank_estimators",
    "ranking_table",
    "run_pipeline",
    "save_pipeline_report",
    "select_best",
    "tune",
]
