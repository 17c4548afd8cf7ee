"""Tests for estimator specs, the registry and the estimator factory."""

import numpy as np
import pytest
from sklearn.dummy import DummyRegressor
from sklearn.ensemble import BaggingRegressor, RandomForestRegressor
from sklearn.linear_model import LinearRegression
import xgboost as xgb

from camels_ml.models import (
    BAGGED_NETWORK,
    BOOSTED_TREE,
    LINEAR,
    NULL,
    RANDOM_FOREST,
    EstimatorRegistry,
    EstimatorSpec,
    Tunable,
    build_estimator,
    default_registry,
)


class TestTunable:
    """Test hyperparameter search ranges."""

    def test_invalid_range(self):
        with pytest.raises(ValueError, match="low < high"):
            Tunable(5, 5)

    def test_log_range_must_be_positive(self):
        with pytest.raises(ValueError, match="positive"):
            Tunable(0.0, 1.0, log=True)

    def test_integer_scale_is_inclusive(self):
        values = Tunable(1, 3, integer=True).scale(np.array([0.0, 0.34, 0.67, 0.999]))
        assert values == [1, 2, 3, 3]
        assert all(isinstance(v, int) for v in values)

    def test_log_scale(self):
        values = Tunable(1e-3, 1e-1, log=True).scale(np.array([0.0, 0.5]))
        assert values[0] == pytest.approx(1e-3)
        assert values[1] == pytest.approx(1e-2)

    def test_linear_scale(self):
        assert Tunable(0.2, 1.0).scale(np.array([0.5])) == [pytest.approx(0.6)]


class TestEstimatorSpec:
    """Test spec validation and parameter resolution."""

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="unknown kind"):
            EstimatorSpec(name="svm", kind="support_vector")

    def test_unknown_parameter(self):
        with pytest.raises(ValueError, match="does not accept"):
            EstimatorSpec(name="rf", kind=RANDOM_FOREST, params={"depth_limit": 3})

    def test_unknown_tunable(self):
        with pytest.raises(ValueError, match="does not accept"):
            EstimatorSpec(name="lin", kind=LINEAR, tunable={"alpha": Tunable(0.1, 1.0)})

    def test_resolve_overlays_candidate(self):
        spec = EstimatorSpec(
            name="rf",
            kind=RANDOM_FOREST,
            params={"n_estimators": 50, "min_samples_leaf": 5},
            tunable={"min_samples_leaf": Tunable(1, 20, integer=True)},
        )
        assert spec.resolve({"min_samples_leaf": 2}) == {"n_estimators": 50, "min_samples_leaf": 2}
        assert spec.resolve() == {"n_estimators": 50, "min_samples_leaf": 5}

    def test_resolve_rejects_fixed_parameter(self):
        spec = EstimatorSpec(
            name="rf",
            kind=RANDOM_FOREST,
            params={"n_estimators": 50},
            tunable={"max_features": Tunable(0.2, 1.0)},
        )
        with pytest.raises(ValueError, match="no tunable"):
            spec.resolve({"n_estimators": 10})

    def test_is_tunable(self):
        assert not EstimatorSpec(name="lin", kind=LINEAR).is_tunable
        assert default_registry()["rand_forest"].is_tunable


class TestRegistry:
    """Test registration order and lookup."""

    def test_default_registry(self):
        registry = default_registry()
        assert registry.names == ["linear_reg", "boost_tree", "rand_forest", "bag_mlp"]
        assert registry["boost_tree"].kind == BOOSTED_TREE
        assert set(registry["bag_mlp"].tunable) == {"hidden_units", "alpha"}

    def test_duplicate_name(self):
        registry = EstimatorRegistry([EstimatorSpec(name="m", kind=LINEAR)])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(EstimatorSpec(name="m", kind=NULL))

    def test_order_and_membership(self):
        registry = EstimatorRegistry(
            [EstimatorSpec(name="b", kind=NULL), EstimatorSpec(name="a", kind=LINEAR)]
        )
        assert registry.order("a") == 1
        assert "b" in registry
        assert "c" not in registry
        assert len(registry) == 2
        assert [spec.name for spec in registry] == ["b", "a"]

    def test_missing_name(self):
        with pytest.raises(KeyError, match="No estimator named"):
            default_registry()["knn"]


class TestFactory:
    """Test construction of configured regressors."""

    def test_estimator_types(self):
        assert isinstance(build_estimator(NULL), DummyRegressor)
        assert isinstance(build_estimator(LINEAR), LinearRegression)
        assert isinstance(build_estimator(BOOSTED_TREE), xgb.XGBRegressor)
        assert isinstance(build_estimator(RANDOM_FOREST), RandomForestRegressor)
        assert isinstance(build_estimator(BAGGED_NETWORK), BaggingRegressor)

    def test_caller_params_override_defaults(self):
        model = build_estimator(RANDOM_FOREST, {"n_estimators": 10}, seed=3)
        assert model.n_estimators == 10
        assert model.min_samples_leaf == 5
        assert model.random_state == 3

    def test_bagged_network_hidden_units(self):
        model = build_estimator(BAGGED_NETWORK, {"hidden_units": 7, "alpha": 0.01})
        assert model.estimator.hidden_layer_sizes == (7,)
        assert model.estimator.alpha == pytest.approx(0.01)
        assert model.n_estimators == 11

    def test_xgboost_params(self):
        model = build_estimator(BOOSTED_TREE, {"max_depth": 3, "learning_rate": 0.05})
        params = model.get_params()
        assert params["max_depth"] == 3
        assert params["learning_rate"] == pytest.approx(0.05)
        assert params["n_estimators"] == 200

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown estimator kind"):
            build_estimator("knn")
