"""Regression metrics used to score held-out folds."""

from __future__ import annotations

from typing import Callable, Dict, Sequence

import numpy as np
from sklearn.metrics import (
    mean_absolute_error,
    mean_absolute_percentage_error,
    mean_squared_error,
)

Metric = Callable[[np.ndarray, np.ndarray], float]


def rmse(y_true, y_pred) -> float:
    """Root mean squared error."""
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def mape(y_true, y_pred) -> float:
    """Mean absolute percentage error, in percent."""
    return float(100.0 * mean_absolute_percentage_error(y_true, y_pred))


def mae(y_true, y_pred) -> float:
    """Mean absolute error."""
    return float(mean_absolute_error(y_true, y_pred))


METRICS: Dict[str, Metric] = {
    "rmse": rmse,
    "mape": mape,
    "mae": mae,
}


def get_metric(name: str) -> Metric:
    """Look up a metric by name."""
    try:
        return METRICS[name]
    except KeyError:
        raise ValueError(
            f"Unknown metric '{name}'. Available: {', '.join(sorted(METRICS))}"
        ) from None


def score_all(y_true, y_pred, names: Sequence[str]) -> Dict[str, float]:
    """Compute several metrics at once."""
    return {name: get_metric(name)(y_true, y_pred) for name in names}
