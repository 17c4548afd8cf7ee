"""Regression metrics used to score and rank streamflow models.

Every metric takes ``(observed, simulated)`` arrays, ignores paired NaN
values, and returns NaN when the score is undefined for the input (no valid
pairs, constant observations, ...). Each metric declares whether it is
minimised or maximised; the model selector never guesses a direction.
"""

from dataclasses import dataclass
from typing import Callable

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

MINIMIZE = "minimize"
MAXIMIZE = "maximize"
DIRECTIONS = (MINIMIZE, MAXIMIZE)


def _paired(observed: np.ndarray, simulated: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    observed = np.asarray(observed, dtype=float)
    simulated = np.asarray(simulated, dtype=float)
    if observed.shape != simulated.shape:
        raise ValueError("Observed and simulated arrays must have the same length")

    mask = ~(np.isnan(observed) | np.isnan(simulated))
    return observed[mask], simulated[mask]


def _is_constant(values: np.ndarray) -> bool:
    # np.std of identical floats can be ~1e-16 rather than exactly 0
    return len(values) == 0 or np.ptp(values) == 0


def root_mean_squared_error(observed: np.ndarray, simulated: np.ndarray) -> float:
    """Calculate Root Mean Squared Error (RMSE).

    RMSE = √[Σ(Obs - Sim)² / n]

    Returns:
        RMSE value [0, ∞), where 0 is perfect match
    """
    observed, simulated = _paired(observed, simulated)
    if len(observed) == 0:
        return np.nan
    return float(np.sqrt(mean_squared_error(observed, simulated)))


def mean_absolute_error_score(observed: np.ndarray, simulated: np.ndarray) -> float:
    """Calculate Mean Absolute Error (MAE), [0, ∞)."""
    observed, simulated = _paired(observed, simulated)
    if len(observed) == 0:
        return np.nan
    return float(mean_absolute_error(observed, simulated))


def r_squared(observed: np.ndarray, simulated: np.ndarray) -> float:
    """Calculate R² as the squared Pearson correlation between observed and simulated.

    Undefined (NaN) when either series is constant, e.g. for a mean-only model.
    """
    observed, simulated = _paired(observed, simulated)
    if len(observed) < 2 or _is_constant(observed) or _is_constant(simulated):
        return np.nan
    r = np.corrcoef(observed, simulated)[0, 1]
    return float(r**2)


def r_squared_traditional(observed: np.ndarray, simulated: np.ndarray) -> float:
    """Calculate the traditional coefficient of determination, 1 - SSres / SStot."""
    observed, simulated = _paired(observed, simulated)
    if len(observed) == 0:
        return np.nan
    if _is_constant(observed):
        return np.nan
    denominator = np.sum((observed - np.mean(observed)) ** 2)
    return float(1 - np.sum((observed - simulated) ** 2) / denominator)


def nash_sutcliffe_efficiency(observed: np.ndarray, simulated: np.ndarray) -> float:
    """Calculate Nash-Sutcliffe Efficiency (NSE).

    NSE = 1 - Σ(Obs - Sim)² / Σ(Obs - mean(Obs))²

    Numerically identical to the traditional R² but reported under its
    hydrological name.

    Returns:
        NSE value [-∞, 1], where 1 is perfect match
    """
    return r_squared_traditional(observed, simulated)


def kling_gupta_efficiency(observed: np.ndarray, simulated: np.ndarray) -> float:
    """Calculate Kling-Gupta Efficiency (KGE).

    KGE = 1 - √[(r-1)² + (α-1)² + (β-1)²]
    where:
    r = correlation coefficient
    α = std(sim) / std(obs)
    β = mean(sim) / mean(obs)

    Returns:
        KGE value [-∞, 1], where 1 is perfect match
    """
    observed, simulated = _paired(observed, simulated)

    if (
        len(observed) < 2
        or np.mean(observed) == 0
        or _is_constant(observed)
        or _is_constant(simulated)
    ):
        return np.nan

    r = np.corrcoef(observed, simulated)[0, 1]
    alpha = np.std(simulated) / np.std(observed)
    beta = np.mean(simulated) / np.mean(observed)

    return float(1 - np.sqrt((r - 1) ** 2 + (alpha - 1) ** 2 + (beta - 1) ** 2))


@dataclass(frozen=True)
class MetricDefinition:
    """A named metric and the direction in which it improves."""

    name: str
    func: Callable[[np.ndarray, np.ndarray], float]
    direction: str


METRICS: dict[str, MetricDefinition] = {
    "rmse": MetricDefinition("rmse", root_mean_squared_error, MINIMIZE),
    "mae": MetricDefinition("mae", mean_absolute_error_score, MINIMIZE),
    "rsq": MetricDefinition("rsq", r_squared, MAXIMIZE),
    "rsq_trad": MetricDefinition("rsq_trad", r_squared_traditional, MAXIMIZE),
    "nse": MetricDefinition("nse", nash_sutcliffe_efficiency, MAXIMIZE),
    "kge": MetricDefinition("kge", kling_gupta_efficiency, MAXIMIZE),
}


def get_metric(name: str) -> MetricDefinition:
    """Look up a metric by name."""
    try:
        return METRICS[name]
    except KeyError:
        raise ValueError(
            f"Unknown metric '{name}'. Available: {sorted(METRICS)}"
        ) from None


def metric_direction(name: str, direction: str | None = None) -> str:
    """Return the ranking direction for a metric, honouring an explicit override."""
    if direction is None:
        return get_metric(name).direction
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got '{direction}'")
    return direction


def compute_metrics(
    observed: np.ndarray, simulated: np.ndarray, metrics: tuple[str, ...] | list[str]
) -> dict[str, float]:
    """Compute the requested metrics for one set of predictions.

    Examples:
        >>> obs = np.array([1.0, 2.0, 3.0, 4.0])
        >>> compute_metrics(obs, obs, ["rmse"])
        {'rmse': 0.0}
    """
    return {name: get_metric(name).func(observed, simulated) for name in metrics}
