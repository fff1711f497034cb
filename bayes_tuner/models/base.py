"""ModelTrainer: Abstract train/score collaborator used by the evaluator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Sequence

import numpy as np
import pandas as pd

from bayes_tuner.evaluation.metrics import score_all


class ModelTrainer(ABC):
    """
    Trains a model for one configuration and scores it on held-out rows.

    Tables passed in are already preprocessed and still hold the target
    column named ``target``.
    """

    def __init__(self, target: str, metrics: Sequence[str] = ("rmse", "mape")) -> None:
        """
        Args:
            target: Target column in the transformed tables.
            metrics: Metric names reported by ``score``.
        """
        if not metrics:
            raise ValueError("metrics cannot be empty")
        self.target = target
        self.metrics = tuple(metrics)

    def split(self, table: pd.DataFrame):
        """Split a transformed table into (X, y)."""
        if self.target not in table.columns:
            raise ValueError(f"Target column '{self.target}' not found in table")
        return table.drop(columns=[self.target]), table[self.target]

    @abstractmethod
    def train(self, configuration: Mapping[str, Any], transformed_train: pd.DataFrame) -> Any:
        """
        Fit a model.

        Args:
            configuration: Hyperparameter values.
            transformed_train: Preprocessed training table.

        Returns:
            Fitted model.
        """
        pass

    @abstractmethod
    def predict(self, model: Any, X: pd.DataFrame) -> np.ndarray:
        """Predict on preprocessed predictors."""
        pass

    def score(self, model: Any, transformed_holdout: pd.DataFrame) -> Dict[str, float]:
        """
        Score a fitted model on a preprocessed held-out table.

        Returns:
            Mapping of metric name to value (on the transformed target scale).
        """
        X, y = self.split(transformed_holdout)
        return score_all(y.to_numpy(), self.predict(model, X), self.metrics)
