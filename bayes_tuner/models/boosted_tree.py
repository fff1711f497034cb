"""XGBoostTrainer: boosted-tree regression trainer and its default search space."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from xgboost import XGBRegressor

from bayes_tuner.models.base import ModelTrainer
from bayes_tuner.search.parameter import (
    FloatParameter,
    IntParameter,
    ProportionParameter,
    predictor_count,
)
from bayes_tuner.search.space import SearchSpace

logger = logging.getLogger(__name__)

# Engine-neutral boost-tree names -> XGBRegressor arguments
PARAMETER_MAP = {
    "trees": "n_estimators",
    "tree_depth": "max_depth",
    "min_n": "min_child_weight",
    "loss_reduction": "gamma",
    "sample_size": "subsample",
    "learn_rate": "learning_rate",
}

INTEGER_ARGS = {"n_estimators", "max_depth"}


def boost_tree_space(
    tune_trees: bool = False,
    max_depth: int = 15,
) -> SearchSpace:
    """
    Default search space for boosted trees.

    ``mtry`` (predictors sampled per split) is bounded by the number of
    predictors after preprocessing, so the space must be finalized
    against the transformed training table before use.

    Args:
        tune_trees: Also tune the number of trees.
        max_depth: Upper bound for ``tree_depth``.

    Returns:
        Unresolved SearchSpace.
    """
    params = [
        IntParameter("tree_depth", 1, max_depth),
        IntParameter("min_n", 2, 40),
        FloatParameter("loss_reduction", 1e-10, 10 ** 1.5, log=True),
        ProportionParameter("sample_size", 0.1, 1.0),
        IntParameter("mtry", 1, None, finalize_rule=predictor_count),
        FloatParameter("learn_rate", 1e-3, 0.3, log=True),
    ]
    if tune_trees:
        params.insert(0, IntParameter("trees", 100, 2000, log=True))
    return SearchSpace.declare(params)


class XGBoostTrainer(ModelTrainer):
    """
    Trains ``xgboost.XGBRegressor`` models.

    Configuration keys use boost-tree names (``trees``, ``tree_depth``,
    ``min_n``, ``loss_reduction``, ``sample_size``, ``mtry``,
    ``learn_rate``); any other key is passed to XGBoost unchanged.
    ``mtry`` becomes ``colsample_bynode = mtry / n_predictors``.
    """

    def __init__(
        self,
        target: str,
        metrics: Sequence[str] = ("rmse", "mape"),
        fixed_params: Optional[Dict[str, Any]] = None,
        random_state: Optional[int] = 42,
    ) -> None:
        """
        Args:
            target: Target column in the transformed tables.
            metrics: Metric names reported by ``score``.
            fixed_params: XGBoost arguments applied to every fit (the
                configuration overrides them).
            random_state: Seed passed to XGBoost.
        """
        super().__init__(target=target, metrics=metrics)
        self.fixed_params = {
            "n_estimators": 500,
            "objective": "reg:squarederror",
            "tree_method": "hist",
            "n_jobs": 1,
        }
        self.fixed_params.update(fixed_params or {})
        self.random_state = random_state

    def xgb_params(self, configuration: Mapping[str, Any], n_predictors: int) -> Dict[str, Any]:
        """Translate a configuration into XGBRegressor keyword arguments."""
        params = dict(self.fixed_params)
        params["random_state"] = self.random_state
        for name, value in configuration.items():
            if name == "mtry":
                params["colsample_bynode"] = min(1.0, max(1, int(value)) / max(1, n_predictors))
                continue
            params[PARAMETER_MAP.get(name, name)] = value
        for arg in INTEGER_ARGS & params.keys():
            params[arg] = int(params[arg])
        return params

    def train(self, configuration: Mapping[str, Any], transformed_train: pd.DataFrame) -> XGBRegressor:
        X, y = self.split(transformed_train)
        params = self.xgb_params(configuration, X.shape[1])
        logger.debug("Training XGBRegressor with %s", params)
        model = XGBRegressor(**params)
        model.fit(X, y, verbose=False)
        return model

    def predict(self, model: XGBRegressor, X: pd.DataFrame) -> np.ndarray:
        return np.asarray(model.predict(X), dtype=float)

    def __repr__(self) -> str:
        return f"XGBoostTrainer(target={self.target}, metrics={list(self.metrics)})"
