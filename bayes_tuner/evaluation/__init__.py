"""Configuration evaluation: cross-validation and metrics."""

from bayes_tuner.evaluation.evaluator import (
    CrossValidationEvaluator,
    EvaluationResult,
    Evaluator,
    FunctionEvaluator,
)
from bayes_tuner.evaluation.metrics import METRICS, get_metric, mape, rmse

__all__ = [
    "CrossValidationEvaluator",
    "EvaluationResult",
    "Evaluator",
    "FunctionEvaluator",
    "METRICS",
    "get_metric",
    "mape",
    "rmse",
]
