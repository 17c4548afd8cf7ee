"""Evaluation metrics for streamflow model assessment."""

from .metrics import (
    MAXIMIZE,
    METRICS,
    MINIMIZE,
    compute_metrics,
    get_metric,
    kling_gupta_efficiency,
    mean_absolute_error_score,
    metric_direction,
    nash_sutcliffe_efficiency,
    r_squared,
    r_squared_traditional,
    root_mean_squared_error,
)

__all__ = [
    "MAXIMIZE",
    "METRICS",
    "MINIMIZE",
    "compute_metrics",
    "get_metric",
    "kling_gupta_efficiency",
    "mean_absolute_error_score",
    "metric_direction",
    "nash_sutcliffe_efficiency",
    "r_squared",
    "r_squared_traditional",
    "root_mean_squared_error",
]
