"""Evaluators: score a configuration, by cross-validation or a plain function."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from bayes_tuner.core.data.cv import CVFold, CVResult, FoldResult
from bayes_tuner.errors import EvaluationFailure
from bayes_tuner.execution.local import SequentialExecutor

if TYPE_CHECKING:
    from bayes_tuner.audit.logger import AuditLogger
    from bayes_tuner.core.data.context import DataContext
    from bayes_tuner.execution.base import Executor
    from bayes_tuner.models.base import ModelTrainer
    from bayes_tuner.pipeline.recipe import Recipe
    from bayes_tuner.search.configuration import Configuration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """
    Outcome of evaluating one configuration.

    Attributes:
        value: Primary metric averaged across folds.
        fold_values: Primary metric per fold, ordered by fold index.
        metrics: Mean of every reported metric.
        duration: Wall time in seconds.
    """

    value: float
    fold_values: Tuple[float, ...] = ()
    metrics: Dict[str, float] = field(default_factory=dict, compare=False)
    duration: float = 0.0

    @property
    def std(self) -> float:
        """Spread of the per-fold values."""
        return float(np.std(self.fold_values)) if self.fold_values else 0.0


class Evaluator(ABC):
    """Scores configurations. Implementations must not mutate shared state."""

    @abstractmethod
    def evaluate(
        self,
        configuration: Configuration,
        folds: Optional[Sequence[CVFold]] = None,
    ) -> EvaluationResult:
        """
        Evaluate a configuration.

        Args:
            configuration: Hyperparameter values.
            folds: Folds to use (evaluators without folds ignore this).

        Returns:
            EvaluationResult.

        Raises:
            EvaluationFailure: If the evaluation cannot be completed.
        """
        pass


class FunctionEvaluator(Evaluator):
    """
    Wraps a deterministic objective ``fn(configuration) -> float``.

    Any exception raised by ``fn`` surfaces as ``EvaluationFailure``;
    so does a non-finite value.
    """

    def __init__(self, fn: Callable[[Configuration], float], metric: str = "objective") -> None:
        self.fn = fn
        self.metric = metric

    def evaluate(
        self,
        configuration: Configuration,
        folds: Optional[Sequence[CVFold]] = None,
    ) -> EvaluationResult:
        start = time.time()
        try:
            value = float(self.fn(configuration))
        except Exception as e:
            raise EvaluationFailure(configuration, message=str(e)) from e
        if not np.isfinite(value):
            raise EvaluationFailure(configuration, message=f"non-finite value {value}")
        return EvaluationResult(
            value=value,
            fold_values=(value,),
            metrics={self.metric: value},
            duration=time.time() - start,
        )

    def __repr__(self) -> str:
        return f"FunctionEvaluator(metric={self.metric})"


class CrossValidationEvaluator(Evaluator):
    """
    k-fold cross-validation of the preprocess-then-train pipeline.

    For each fold the recipe is fitted on the fold's training rows only,
    the trainer fits on the transformed rows, and the held-out rows are
    transformed with the fold's fitted recipe and scored. Folds are
    independent and run through the executor; results are reassembled by
    fold index before averaging.
    """

    def __init__(
        self,
        ctx: DataContext,
        folds: Sequence[CVFold],
        recipe: Recipe,
        trainer: ModelTrainer,
        metric: str = "rmse",
        executor: Optional[Executor] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Args:
            ctx: Training data.
            folds: Default folds.
            recipe: Preprocessing recipe fitted per fold.
            trainer: Model trainer.
            metric: Primary metric (must be one the trainer reports).
            executor: Executor for fold-level parallelism.
            audit_logger: Optional logger for per-fold records.
        """
        if metric not in trainer.metrics:
            raise ValueError(
                f"Primary metric '{metric}' is not reported by the trainer "
                f"({', '.join(trainer.metrics)})"
            )
        if len(folds) < 2:
            raise ValueError(f"At least 2 folds are required, got {len(folds)}")
        self.ctx = ctx
        self.folds = list(folds)
        self.recipe = recipe
        self.trainer = trainer
        self.metric = metric
        self.executor = executor or SequentialExecutor()
        self.audit_logger = audit_logger

    def _fit_fold(self, configuration: Configuration, fold: CVFold) -> FoldResult:
        """Fit and score a single fold."""
        try:
            train_ctx = self.ctx.with_indices(fold.train_indices)
            val_ctx = self.ctx.with_indices(fold.val_indices)

            start_time = time.time()
            fitted, train_t = self.recipe.fit_transform(train_ctx.data)
            model = self.trainer.train(configuration, train_t)
            fit_time = time.time() - start_time

            pred_start = time.time()
            metrics = self.trainer.score(model, self.recipe.apply(fitted, val_ctx.data))
            predict_time = time.time() - pred_start
        except Exception as e:
            raise EvaluationFailure(configuration, fold.fold_idx, str(e)) from e

        val_score = metrics[self.metric]
        if not np.isfinite(val_score):
            raise EvaluationFailure(
                configuration, fold.fold_idx, f"non-finite {self.metric}: {val_score}"
            )
        return FoldResult(
            fold=fold,
            val_score=float(val_score),
            metrics=metrics,
            fit_time=fit_time,
            predict_time=predict_time,
        )

    def cross_validate(
        self,
        configuration: Configuration,
        folds: Optional[Sequence[CVFold]] = None,
    ) -> CVResult:
        """Run every fold and collect the per-fold results."""
        folds = list(folds) if folds is not None else self.folds
        results: List[FoldResult] = self.executor.map(
            lambda fold: self._fit_fold(configuration, fold), folds
        )
        cv_result = CVResult(fold_results=results)

        if self.audit_logger:
            for result in cv_result.fold_results:
                self.audit_logger.log_fold(
                    fold=result.fold,
                    score=result.val_score,
                    fit_time=result.fit_time,
                    params=dict(configuration),
                )
        return cv_result

    def evaluate(
        self,
        configuration: Configuration,
        folds: Optional[Sequence[CVFold]] = None,
    ) -> EvaluationResult:
        start = time.time()
        cv_result = self.cross_validate(configuration, folds)
        logger.debug(
            "Evaluated %r: %s=%.4f +/- %.4f", configuration, self.metric,
            cv_result.mean_score, cv_result.std_score,
        )
        return EvaluationResult(
            value=cv_result.mean_score,
            fold_values=tuple(float(v) for v in cv_result.val_scores),
            metrics=cv_result.mean_metrics,
            duration=time.time() - start,
        )

    def __repr__(self) -> str:
        return (
            f"CrossValidationEvaluator(n_folds={len(self.folds)}, metric={self.metric}, "
            f"executor={self.executor})"
        )
