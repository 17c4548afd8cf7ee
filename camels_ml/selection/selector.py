"""Aggregate fold metrics and rank estimators.

Ranking direction always comes from the metric registry (or an explicit
override), so error metrics sort ascending and goodness-of-fit metrics sort
descending. Ties go to the estimator registered first.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from camels_ml.evaluation.metrics import MINIMIZE, metric_direction
from camels_ml.exceptions import NoSuccessfulModelsError
from camels_ml.selection.engine import EvaluationResult

AGGREGATE_COLUMNS = ["estimator", "metric", "mean", "std_err", "n", "n_failed", "order"]


def aggregate_metrics(results: Sequence[EvaluationResult]) -> pd.DataFrame:
    """Mean and standard error of every metric per estimator, over succeeded folds.

    Args:
        results: Evaluation results in registration order

    Returns:
        DataFrame with columns estimator, metric, mean, std_err, n, n_failed, order
    """
    metric_names: list[str] = []
    for result in results:
        for outcome in result.outcomes:
            for name in outcome.metrics:
                if name not in metric_names:
                    metric_names.append(name)

    rows = []
    for order, result in enumerate(results):
        for name in metric_names:
            values = np.array(
                [
                    outcome.metrics[name]
                    for outcome in result.outcomes
                    if outcome.succeeded and name in outcome.metrics
                ],
                dtype=float,
            )
            values = values[np.isfinite(values)]
            n = len(values)
            rows.append(
                {
                    "estimator": result.estimator,
                    "metric": name,
                    "mean": float(values.mean()) if n else np.nan,
                    "std_err": float(values.std(ddof=1) / np.sqrt(n)) if n > 1 else np.nan,
                    "n": n,
                    "n_failed": result.n_failed,
                    "order": order,
                }
            )
    return pd.DataFrame(rows, columns=AGGREGATE_COLUMNS)


def rank_estimators(
    table: pd.DataFrame, metric: str, direction: str | None = None
) -> pd.DataFrame:
    """Rows of ``table`` for one metric, best first, with a 1-based ``rank``.

    Estimators without a finite mean for the metric are left out.
    """
    direction = metric_direction(metric, direction)
    subset = table[(table["metric"] == metric) & np.isfinite(table["mean"].astype(float))]
    ranked = subset.sort_values(
        by=["mean", "order"], ascending=[direction == MINIMIZE, True]
    ).reset_index(drop=True)
    ranked["rank"] = np.arange(1, len(ranked) + 1)
    return ranked


def select_best(table: pd.DataFrame, metric: str, direction: str | None = None) -> str:
    """Name of the best-ranked estimator.

    Raises:
        NoSuccessfulModelsError: No estimator has a finite aggregate for ``metric``
    """
    ranked = rank_estimators(table, metric, direction)
    if ranked.empty:
        raise NoSuccessfulModelsError(
            f"No estimator produced a usable '{metric}' across "
            f"{table['estimator'].nunique()} candidate(s)"
        )
    return str(ranked.loc[0, "estimator"])


def ranking_table(
    table: pd.DataFrame, metric: str, direction: str | None = None
) -> pd.DataFrame:
    """Full aggregate table annotated with each estimator's rank on ``metric``.

    Unranked estimators (every fold failed) keep a missing rank so they still
    show up in reports.
    """
    ranks = rank_estimators(table, metric, direction).set_index("estimator")["rank"]
    annotated = table.copy()
    annotated["rank"] = annotated["estimator"].map(ranks).astype("Int64")
    return annotated.sort_values(
        by=["rank", "order", "metric"], na_position="last"
    ).reset_index(drop=True)
