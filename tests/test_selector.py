"""Tests for metric aggregation and estimator ranking."""

import numpy as np
import pandas as pd
import pytest

from camels_ml.exceptions import NoSuccessfulModelsError
from camels_ml.selection.engine import EvaluationResult, FoldOutcome
from camels_ml.selection.selector import (
    aggregate_metrics,
    rank_estimators,
    ranking_table,
    select_best,
)


def _result(name, values, failed=0):
    """EvaluationResult with one rmse/rsq pair per value and ``failed`` failed folds."""
    outcomes = [
        FoldOutcome(fold=f"Fold{i + 1:02d}", metrics={"rmse": v, "rsq": 1.0 / (1.0 + v)})
        for i, v in enumerate(values)
    ]
    outcomes += [
        FoldOutcome(fold=f"Fold{len(values) + i + 1:02d}", error="FitError: boom")
        for i in range(failed)
    ]
    return EvaluationResult(estimator=name, outcomes=tuple(outcomes))


class TestAggregate:
    """Test mean and standard error over succeeded folds."""

    def test_mean_and_standard_error(self):
        table = aggregate_metrics([_result("a", [1.0, 2.0, 3.0])])
        row = table[table["metric"] == "rmse"].iloc[0]

        assert row["mean"] == pytest.approx(2.0)
        assert row["std_err"] == pytest.approx(1.0 / np.sqrt(3))
        assert row["n"] == 3
        assert row["n_failed"] == 0

    def test_failed_folds_excluded(self):
        table = aggregate_metrics([_result("a", [2.0, 4.0], failed=2)])
        row = table[table["metric"] == "rmse"].iloc[0]

        assert row["mean"] == pytest.approx(3.0)
        assert row["n"] == 2
        assert row["n_failed"] == 2

    def test_non_finite_values_excluded(self):
        table = aggregate_metrics([_result("a", [2.0, np.nan, 4.0])])
        row = table[table["metric"] == "rmse"].iloc[0]
        assert row["n"] == 2
        assert row["mean"] == pytest.approx(3.0)

    def test_single_fold_has_no_standard_error(self):
        table = aggregate_metrics([_result("a", [2.0])])
        assert table["std_err"].isna().all()

    def test_registration_order_recorded(self):
        table = aggregate_metrics([_result("b", [1.0]), _result("a", [1.0])])
        orders = table.drop_duplicates("estimator").set_index("estimator")["order"]
        assert orders.to_dict() == {"b": 0, "a": 1}


class TestRanking:
    """Test direction-aware ranking and tie-breaking."""

    def test_error_metric_ascending(self):
        table = aggregate_metrics([_result("worse", [3.0, 3.0]), _result("better", [1.0, 1.0])])
        ranked = rank_estimators(table, "rmse")

        assert list(ranked["estimator"]) == ["better", "worse"]
        assert list(ranked["rank"]) == [1, 2]

    def test_goodness_of_fit_descending(self):
        table = aggregate_metrics([_result("worse", [3.0, 3.0]), _result("better", [1.0, 1.0])])
        assert select_best(table, "rsq") == "better"

    def test_direction_override(self):
        table = aggregate_metrics([_result("worse", [3.0, 3.0]), _result("better", [1.0, 1.0])])
        assert select_best(table, "rmse", direction="maximize") == "worse"

    def test_tie_goes_to_first_registered(self):
        table = aggregate_metrics([_result("first", [2.0, 2.0]), _result("second", [2.0, 2.0])])
        assert select_best(table, "rmse") == "first"

        table = aggregate_metrics([_result("second", [2.0, 2.0]), _result("first", [2.0, 2.0])])
        assert select_best(table, "rmse") == "second"

    def test_failed_estimator_unranked(self):
        table = aggregate_metrics([_result("ok", [1.0, 2.0]), _result("dead", [], failed=3)])
        ranked = rank_estimators(table, "rmse")
        assert list(ranked["estimator"]) == ["ok"]

        annotated = ranking_table(table, "rmse")
        dead = annotated[annotated["estimator"] == "dead"]
        assert len(dead) == 2
        assert dead["rank"].isna().all()
        assert annotated.iloc[0]["estimator"] == "ok"

    def test_no_successful_models(self):
        table = aggregate_metrics([_result("dead", [], failed=2), _result("gone", [], failed=1)])
        with pytest.raises(NoSuccessfulModelsError):
            select_best(table, "rmse")

    def test_empty_table(self):
        with pytest.raises(NoSuccessfulModelsError):
            select_best(aggregate_metrics([]), "rmse")

    def test_ranking_table_keeps_all_metrics(self):
        table = aggregate_metrics([_result("a", [1.0, 2.0]), _result("b", [0.5, 0.7])])
        annotated = ranking_table(table, "rmse")

        assert set(annotated["metric"]) == {"rmse", "rsq"}
        ranks = annotated.drop_duplicates("estimator").set_index("estimator")["rank"]
        assert ranks.to_dict() == {"b": 1, "a": 2}
        assert isinstance(annotated, pd.DataFrame)
