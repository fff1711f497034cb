"""
bayes-tuner

Bayesian hyperparameter optimization for tabular regression models: a
Gaussian-process surrogate, expected-improvement acquisition and a
patience-based stopping rule over cross-validated evaluations.
"""

from bayes_tuner.api import FinalModel, fit_final, tune_model
from bayes_tuner.audit.logger import AuditLogger
from bayes_tuner.core.data.context import DataContext
from bayes_tuner.core.data.cv import CVConfig, CVFold
from bayes_tuner.core.tuning.config import TuningConfig
from bayes_tuner.core.tuning.history import FailedTrial, History, Observation
from bayes_tuner.core.tuning.loop import (
    CancellationToken,
    LoopState,
    SearchLoop,
    SearchResult,
)
from bayes_tuner.errors import (
    DuplicateCandidateError,
    EvaluationFailure,
    InitializationFailure,
    InsufficientData,
    TuningError,
    UnresolvedDomainError,
)
from bayes_tuner.evaluation.evaluator import (
    CrossValidationEvaluator,
    EvaluationResult,
    Evaluator,
    FunctionEvaluator,
)
from bayes_tuner.execution.local import LocalExecutor, SequentialExecutor
from bayes_tuner.models.boosted_tree import XGBoostTrainer, boost_tree_space
from bayes_tuner.pipeline.recipe import Recipe, RecipeConfig
from bayes_tuner.search.acquisition import AcquisitionOptimizer
from bayes_tuner.search.configuration import Configuration
from bayes_tuner.search.parameter import DataSummary
from bayes_tuner.search.space import SearchSpace
from bayes_tuner.search.surrogate import GaussianProcessSurrogate

__version__ = "0.1.0"

__all__ = [
    # API
    "tune_model",
    "fit_final",
    "FinalModel",
    # Data
    "DataContext",
    "CVConfig",
    "CVFold",
    # Tuning
    "TuningConfig",
    "SearchLoop",
    "SearchResult",
    "LoopState",
    "CancellationToken",
    "History",
    "Observation",
    "FailedTrial",
    # Search
    "SearchSpace",
    "Configuration",
    "DataSummary",
    "GaussianProcessSurrogate",
    "AcquisitionOptimizer",
    # Evaluation
    "Evaluator",
    "EvaluationResult",
    "CrossValidationEvaluator",
    "FunctionEvaluator",
    "LocalExecutor",
    "SequentialExecutor",
    # Modeling
    "Recipe",
    "RecipeConfig",
    "XGBoostTrainer",
    "boost_tree_space",
    # Logging
    "AuditLogger",
    # Errors
    "TuningError",
    "UnresolvedDomainError",
    "EvaluationFailure",
    "InsufficientData",
    "InitializationFailure",
    "DuplicateCandidateError",
]
