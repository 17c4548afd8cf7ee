"""
Estimator Factory
=================

Builds configured regressors for every estimator kind the pipeline knows:

- null            -> sklearn DummyRegressor (predicts the training mean)
- linear          -> sklearn LinearRegression
- boosted_tree    -> xgboost XGBRegressor
- random_forest   -> sklearn RandomForestRegressor
- bagged_network  -> sklearn BaggingRegressor over MLPRegressor

Defaults are merged with the caller's parameters; the caller always wins.
"""

from typing import Any

from sklearn.dummy import DummyRegressor
from sklearn.ensemble import BaggingRegressor, RandomForestRegressor
from sklearn.linear_model import LinearRegression
from sklearn.neural_network import MLPRegressor
import xgboost as xgb

NULL = "null"
LINEAR = "linear"
BOOSTED_TREE = "boosted_tree"
RANDOM_FOREST = "random_forest"
BAGGED_NETWORK = "bagged_network"

ESTIMATOR_KINDS = (NULL, LINEAR, BOOSTED_TREE, RANDOM_FOREST, BAGGED_NETWORK)

_DEFAULT_PARAMS: dict[str, dict[str, Any]] = {
    NULL: {},
    LINEAR: {},
    BOOSTED_TREE: {
        "n_estimators": 200,
        "max_depth": 6,
        "learning_rate": 0.1,
        "min_child_weight": 1,
        "gamma": 0.0,
        "subsample": 1.0,
        "tree_method": "hist",
        "n_jobs": 1,
    },
    RANDOM_FOREST: {
        "n_estimators": 500,
        "min_samples_leaf": 5,
        "max_features": 1.0,
        "n_jobs": 1,
    },
    BAGGED_NETWORK: {
        "n_estimators": 11,
        "hidden_units": 5,
        "alpha": 1e-3,
        "max_iter": 500,
        "learning_rate_init": 1e-3,
    },
}

# Parameters routed to the inner MLPRegressor of the bagged network
_NETWORK_PARAMS = ("hidden_units", "alpha", "max_iter", "learning_rate_init")

_STOCHASTIC_KINDS = (BOOSTED_TREE, RANDOM_FOREST, BAGGED_NETWORK)


def supported_params(kind: str) -> set[str]:
    """Hyperparameter names accepted for an estimator kind."""
    if kind == NULL:
        return set()
    if kind == LINEAR:
        return set(LinearRegression().get_params())
    if kind == BOOSTED_TREE:
        return set(xgb.XGBRegressor().get_params())
    if kind == RANDOM_FOREST:
        return set(RandomForestRegressor().get_params())
    if kind == BAGGED_NETWORK:
        return {"n_estimators", "max_samples", "random_state", *_NETWORK_PARAMS}
    raise ValueError(f"Unknown estimator kind: {kind}. Supported: {ESTIMATOR_KINDS}")


def build_estimator(kind: str, params: dict[str, Any] | None = None, seed: int = 42):
    """Create an unfitted regressor for ``kind`` with merged hyperparameters.

    Args:
        kind: One of ESTIMATOR_KINDS
        params: Hyperparameters overriding the defaults
        seed: Random state for stochastic estimators (unless ``params`` sets one)

    Returns:
        An sklearn-compatible regressor
    """
    if kind not in ESTIMATOR_KINDS:
        raise ValueError(f"Unknown estimator kind: {kind}. Supported: {ESTIMATOR_KINDS}")

    merged = {**_DEFAULT_PARAMS[kind], **(params or {})}
    if kind in _STOCHASTIC_KINDS:
        merged.setdefault("random_state", seed)

    if kind == NULL:
        return DummyRegressor(strategy="mean")

    if kind == LINEAR:
        return LinearRegression(**merged)

    if kind == BOOSTED_TREE:
        return xgb.XGBRegressor(**merged)

    if kind == RANDOM_FOREST:
        return RandomForestRegressor(**merged)

    network = MLPRegressor(
        hidden_layer_sizes=(int(merged.pop("hidden_units")),),
        alpha=float(merged.pop("alpha")),
        max_iter=int(merged.pop("max_iter")),
        learning_rate_init=float(merged.pop("learning_rate_init")),
        random_state=merged["random_state"],
    )
    return BaggingRegressor(estimator=network, **merged)
