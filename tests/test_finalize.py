"""Tests for the final fit and held-out evaluation."""

import numpy as np
import pytest

from camels_ml.exceptions import FitError, SchemaError
from camels_ml.models import LINEAR, RANDOM_FOREST, EstimatorSpec, Tunable
from camels_ml.preprocessing import EncodeCategorical, Normalize, PreprocessingSpec
from camels_ml.selection.finalize import finalize
from camels_ml.selection.resampling import initial_split

SPEC = PreprocessingSpec((EncodeCategorical(["category"]), Normalize()))
METRICS = ("rmse", "rsq")


class TestFinalize:
    """Test refitting on Train and scoring on Test."""

    def test_predictions_table(self, basins):
        train, test = initial_split(basins)
        result = finalize(
            EstimatorSpec(name="lin", kind=LINEAR), None, train, test, SPEC, METRICS,
            "target", id_column="gauge_id",
        )

        assert list(result.predictions.columns) == ["gauge_id", "actual", "predicted"]
        assert len(result.predictions) == len(test)
        assert set(result.predictions["gauge_id"]) == set(test["gauge_id"])
        np.testing.assert_allclose(
            result.predictions.set_index("gauge_id").loc[test["gauge_id"], "actual"],
            test["target"],
        )

    def test_metrics_table(self, basins):
        train, test = initial_split(basins)
        result = finalize(
            EstimatorSpec(name="lin", kind=LINEAR), None, train, test, SPEC, METRICS,
            "target", id_column="gauge_id",
        )

        assert list(result.test_metrics["metric"]) == ["rmse", "rsq"]
        rsq = result.test_metrics.set_index("metric").loc["rsq", "value"]
        assert rsq > 0.9

    def test_preprocessor_fitted_on_train_only(self, basins):
        train, test = initial_split(basins)
        result = finalize(
            EstimatorSpec(name="lin", kind=LINEAR), None, train, test, SPEC, METRICS,
            "target", id_column="gauge_id",
        )
        preprocessor = result.model.preprocessor
        normalize_state = preprocessor.states[1]

        assert preprocessor.n_fit_rows == len(train)
        assert normalize_state.means["x1"] == pytest.approx(train["x1"].mean())

    def test_tuned_params_applied(self, basins):
        train, test = initial_split(basins)
        spec = EstimatorSpec(
            name="rf",
            kind=RANDOM_FOREST,
            params={"n_estimators": 15},
            tunable={"min_samples_leaf": Tunable(1, 20, integer=True)},
        )
        result = finalize(
            spec, {"min_samples_leaf": 3}, train, test, SPEC, METRICS, "target", "gauge_id"
        )

        assert result.model.params == {"n_estimators": 15, "min_samples_leaf": 3}
        assert result.model.model.min_samples_leaf == 3

    def test_trained_model_predicts_new_rows(self, basins):
        train, test = initial_split(basins)
        result = finalize(
            EstimatorSpec(name="lin", kind=LINEAR), None, train, test, SPEC, METRICS,
            "target", id_column="gauge_id",
        )
        predicted = result.model.predict(test.drop(columns=["target"]))

        assert predicted.name == "predicted"
        np.testing.assert_allclose(
            predicted.to_numpy(),
            result.predictions["predicted"].to_numpy(),
        )

    def test_missing_target(self, basins):
        train, test = initial_split(basins)
        with pytest.raises(SchemaError, match="test split"):
            finalize(
                EstimatorSpec(name="lin", kind=LINEAR), None, train,
                test.drop(columns=["target"]), SPEC, METRICS, "target",
            )

    def test_fit_failure(self, basins):
        train, test = initial_split(basins)
        broken = EstimatorSpec(name="broken", kind=LINEAR, params={"positive": "yes"})
        with pytest.raises(FitError, match="Final fit of broken"):
            finalize(broken, None, train, test, SPEC, METRICS, "target", "gauge_id")
