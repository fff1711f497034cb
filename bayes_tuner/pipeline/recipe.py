"""Recipe: fixed preprocessing pipeline for tabular regression."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from bayes_tuner.pipeline import steps

logger = logging.getLogger(__name__)


@dataclass
class RecipeConfig:
    """
    Which preprocessing steps to run.

    Steps always run in this order: remove columns, log transform,
    normalize, impute, one-hot encode.

    Attributes:
        target: Target column name.
        remove: Columns dropped before anything else (e.g. row identifiers).
        log_target: Whether to ``log1p`` the target.
        log_predictors: Numeric predictors to ``log1p`` as well.
        normalize: Whether to z-score numeric predictors.
        impute: Whether to fill missing values.
        one_hot: Whether to one-hot encode categorical predictors.
    """

    target: str
    remove: Tuple[str, ...] = ("Id",)
    log_target: bool = True
    log_predictors: Tuple[str, ...] = ()
    normalize: bool = True
    impute: bool = True
    one_hot: bool = True

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.remove = tuple(self.remove)
        self.log_predictors = tuple(self.log_predictors)
        if self.target in self.remove:
            raise ValueError(f"Target '{self.target}' cannot be removed")


@dataclass(frozen=True)
class FittedRecipe:
    """
    Statistics learned by ``Recipe.fit_transform``.

    Attributes:
        config: Recipe configuration.
        numeric_columns: Numeric predictors seen at fit time.
        categorical_columns: Categorical predictors seen at fit time.
        normalize_stats: Per-column (mean, std).
        fill_values: Per-column imputation value.
        levels: Per-column one-hot levels.
        output_columns: Predictor columns of the transformed table, in order.
    """

    config: RecipeConfig
    numeric_columns: Tuple[str, ...]
    categorical_columns: Tuple[str, ...]
    normalize_stats: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    fill_values: Dict[str, object] = field(default_factory=dict)
    levels: Dict[str, List[str]] = field(default_factory=dict)
    output_columns: Tuple[str, ...] = ()

    @property
    def n_predictors(self) -> int:
        """Number of predictor columns produced."""
        return len(self.output_columns)

    def transform(self, table: pd.DataFrame) -> pd.DataFrame:
        """
        Apply the learned steps to any table.

        The target column is transformed when present and may be absent
        (e.g. for rows to predict).
        """
        cfg = self.config
        missing = [
            c for c in self.numeric_columns + self.categorical_columns
            if c not in table.columns
        ]
        if missing:
            raise ValueError(f"Table is missing predictor columns: {missing}")

        frame = steps.remove_columns(table, cfg.remove)
        log_cols = [c for c in cfg.log_predictors if c in self.numeric_columns]
        if cfg.log_target:
            log_cols.append(cfg.target)
        frame = steps.log_transform(frame, log_cols)
        if cfg.normalize:
            frame = steps.apply_normalize(frame, self.normalize_stats)
        if cfg.impute:
            frame = steps.apply_impute(frame, self.fill_values)
        if cfg.one_hot:
            frame = steps.apply_one_hot(frame, self.levels)

        columns = list(self.output_columns)
        if cfg.target in frame.columns:
            columns.append(cfg.target)
        return frame[columns]

    def inverse_target(self, values: np.ndarray) -> np.ndarray:
        """Map target-scale predictions back to the original scale."""
        values = np.asarray(values, dtype=float)
        if self.config.log_target:
            return np.expm1(values)
        return values


class Recipe:
    """
    Fixed, deterministic preprocessing pipeline.

    Example:
        recipe = Recipe(RecipeConfig(target="SalePrice"))
        fitted, train_t = recipe.fit_transform(train)
        test_t = recipe.apply(fitted, test)
    """

    def __init__(self, config: RecipeConfig) -> None:
        self.config = config

    @property
    def target(self) -> str:
        """Target column name."""
        return self.config.target

    def fit_transform(self, table: pd.DataFrame) -> Tuple[FittedRecipe, pd.DataFrame]:
        """
        Learn every step's statistics on ``table`` and transform it.

        Args:
            table: Training table including the target column.

        Returns:
            (fitted recipe, transformed table).
        """
        cfg = self.config
        if cfg.target not in table.columns:
            raise ValueError(f"Target column '{cfg.target}' not found in table")

        frame = steps.remove_columns(table, cfg.remove)
        numeric = steps.numeric_columns(frame, exclude=[cfg.target])
        categorical = steps.categorical_columns(frame, exclude=[cfg.target])

        log_cols = [c for c in cfg.log_predictors if c in numeric]
        if cfg.log_target:
            log_cols.append(cfg.target)
        frame = steps.log_transform(frame, log_cols)

        normalize_stats = steps.fit_normalize(frame, numeric) if cfg.normalize else {}
        if cfg.normalize:
            frame = steps.apply_normalize(frame, normalize_stats)

        fill_values = steps.fit_impute(frame, numeric, categorical) if cfg.impute else {}
        if cfg.impute:
            frame = steps.apply_impute(frame, fill_values)

        levels = steps.fit_one_hot(frame, categorical) if cfg.one_hot else {}
        if cfg.one_hot:
            frame = steps.apply_one_hot(frame, levels)

        fitted = FittedRecipe(
            config=cfg,
            numeric_columns=tuple(numeric),
            categorical_columns=tuple(categorical),
            normalize_stats=normalize_stats,
            fill_values=fill_values,
            levels=levels,
            output_columns=tuple(c for c in frame.columns if c != cfg.target),
        )
        logger.debug(
            "Recipe fitted: %d numeric, %d categorical -> %d predictors",
            len(numeric), len(categorical), fitted.n_predictors,
        )
        return fitted, frame[list(fitted.output_columns) + [cfg.target]]

    def apply(self, fitted: FittedRecipe, table: pd.DataFrame) -> pd.DataFrame:
        """Transform ``table`` with previously learned statistics."""
        return fitted.transform(table)

    def __repr__(self) -> str:
        return f"Recipe(target={self.config.target})"
