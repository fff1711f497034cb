"""High-level entry points: tune a trainer on a table, then refit the winner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, TYPE_CHECKING

import numpy as np
import pandas as pd

from bayes_tuner.core.data.context import DataContext
from bayes_tuner.core.data.cv import CVConfig, create_folds
from bayes_tuner.core.tuning.config import TuningConfig
from bayes_tuner.core.tuning.loop import CancellationToken, SearchLoop, SearchResult
from bayes_tuner.evaluation.evaluator import CrossValidationEvaluator
from bayes_tuner.execution.local import LocalExecutor
from bayes_tuner.pipeline.recipe import FittedRecipe, Recipe, RecipeConfig
from bayes_tuner.search.configuration import Configuration
from bayes_tuner.search.parameter import DataSummary

if TYPE_CHECKING:
    from bayes_tuner.audit.logger import AuditLogger
    from bayes_tuner.execution.base import Executor
    from bayes_tuner.models.base import ModelTrainer
    from bayes_tuner.search.space import SearchSpace

logger = logging.getLogger(__name__)


def _check_target(target: str, trainer: ModelTrainer, recipe: Recipe) -> None:
    if trainer.target != target:
        raise ValueError(
            f"Trainer target '{trainer.target}' does not match '{target}'"
        )
    if recipe.target != target:
        raise ValueError(f"Recipe target '{recipe.target}' does not match '{target}'")


def tune_model(
    data: pd.DataFrame,
    target: str,
    search_space: SearchSpace,
    trainer: ModelTrainer,
    recipe: Optional[Recipe] = None,
    tuning_config: Optional[TuningConfig] = None,
    executor: Optional[Executor] = None,
    audit_logger: Optional[AuditLogger] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> SearchResult:
    """
    Tune a trainer's hyperparameters by cross-validated Bayesian optimization.

    The recipe is fitted once on the full table only to learn the shape of
    the preprocessed data (e.g. the predictor count that bounds ``mtry``);
    during the search it is refitted inside every fold.

    Args:
        data: Training table including the target column.
        target: Target column name.
        search_space: Space to search; data-dependent bounds are resolved here.
        trainer: Model trainer.
        recipe: Preprocessing recipe (default: ``Recipe(RecipeConfig(target))``).
        tuning_config: Tuning configuration.
        executor: Fold executor (default: ``LocalExecutor(worker_count)``).
        audit_logger: Optional audit logger.
        cancel_token: Optional cancellation token.

    Returns:
        SearchResult.

    Example:
        space = boost_tree_space()
        trainer = XGBoostTrainer(target="SalePrice")
        result = tune_model(train, "SalePrice", space, trainer)
        model = fit_final(train, "SalePrice", result.best_configuration, trainer)
    """
    config = tuning_config or TuningConfig()
    recipe = recipe or Recipe(RecipeConfig(target=target))
    _check_target(target, trainer, recipe)

    ctx = DataContext(data=data.reset_index(drop=True), target=target)

    fitted, transformed = recipe.fit_transform(ctx.data)
    summary = DataSummary.from_frame(transformed, target=target)
    resolved = search_space.finalize(summary)
    logger.info(
        "Tuning %d parameters on %d rows, %d predictors after preprocessing",
        len(resolved), summary.n_rows, summary.n_predictors,
    )

    folds = create_folds(
        ctx.n_samples, CVConfig(n_splits=config.folds, random_state=config.seed)
    )
    executor = executor or LocalExecutor(n_workers=config.worker_count)
    evaluator = CrossValidationEvaluator(
        ctx=ctx,
        folds=folds,
        recipe=recipe,
        trainer=trainer,
        metric=config.metric,
        executor=executor,
        audit_logger=audit_logger,
    )
    loop = SearchLoop(resolved, evaluator, config, audit_logger=audit_logger)
    return loop.run(cancel_token)


@dataclass
class FinalModel:
    """
    A model refitted on all training rows with a chosen configuration.

    Attributes:
        configuration: Hyperparameters used.
        recipe: Recipe used for preprocessing.
        fitted_recipe: Recipe statistics learned on the full table.
        trainer: Trainer that produced the model.
        model: Fitted model.
    """

    configuration: Configuration
    recipe: Recipe
    fitted_recipe: FittedRecipe
    trainer: ModelTrainer
    model: Any

    def predict(self, table: pd.DataFrame) -> np.ndarray:
        """
        Predict on raw rows, returned on the original target scale.

        The target column may be absent from ``table``.
        """
        transformed = self.recipe.apply(self.fitted_recipe, table)
        X = transformed.drop(columns=[self.recipe.target], errors="ignore")
        return self.fitted_recipe.inverse_target(self.trainer.predict(self.model, X))

    def __repr__(self) -> str:
        return f"FinalModel({self.configuration!r})"


def fit_final(
    data: pd.DataFrame,
    target: str,
    configuration: Mapping[str, Any],
    trainer: ModelTrainer,
    recipe: Optional[Recipe] = None,
) -> FinalModel:
    """
    Refit the preprocessing recipe and the trainer on every training row.

    Args:
        data: Training table including the target column.
        target: Target column name.
        configuration: Hyperparameters, typically ``result.best_configuration``.
        trainer: Model trainer.
        recipe: Preprocessing recipe (default: ``Recipe(RecipeConfig(target))``).

    Returns:
        FinalModel.
    """
    if configuration is None:
        raise ValueError("configuration is required")
    recipe = recipe or Recipe(RecipeConfig(target=target))
    _check_target(target, trainer, recipe)

    ctx = DataContext(data=data.reset_index(drop=True), target=target)
    fitted, transformed = recipe.fit_transform(ctx.data)
    configuration = Configuration(configuration)
    model = trainer.train(configuration, transformed)
    logger.info("Fitted final model on %d rows: %r", ctx.n_samples, configuration)

    return FinalModel(
        configuration=configuration,
        recipe=recipe,
        fitted_recipe=fitted,
        trainer=trainer,
        model=model,
    )
