"""K-fold resampling of the training rows and per-trial fold results.

Folds are built once per run from the seed and reused for every trial,
so configurations are always compared on identical splits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from sklearn.model_selection import KFold, RepeatedKFold


@dataclass
class CVFold:
    """
    Row positions of one train/validation split.

    Attributes:
        fold_idx: Position of the fold in the run, counted across repeats.
        train_indices: Rows the recipe and model are fitted on.
        val_indices: Held-out rows the model is scored on.
        repeat_idx: Which repetition of the k-fold split this fold came from.
    """

    fold_idx: int
    train_indices: np.ndarray
    val_indices: np.ndarray
    repeat_idx: int = 0

    def __repr__(self) -> str:
        return (
            f"CVFold(fold={self.fold_idx}, repeat={self.repeat_idx}, "
            f"n_train={len(self.train_indices)}, n_val={len(self.val_indices)})"
        )


@dataclass
class CVConfig:
    """
    How the training rows are resampled.

    Attributes:
        n_splits: Folds per repetition (``TuningConfig.folds``).
        n_repeats: Repetitions with fresh shuffles; above one uses RepeatedKFold.
        shuffle: Shuffle rows before a single k-fold split.
        random_state: Seed for the shuffle (``TuningConfig.seed``).
    """

    n_splits: int = 5
    n_repeats: int = 1
    shuffle: bool = True
    random_state: Optional[int] = 42

    def __post_init__(self) -> None:
        if self.n_splits < 2:
            raise ValueError(f"n_splits must be >= 2, got {self.n_splits}")
        if self.n_repeats < 1:
            raise ValueError(f"n_repeats must be >= 1, got {self.n_repeats}")

    @property
    def total_folds(self) -> int:
        return self.n_splits * self.n_repeats


def create_folds(n_samples: int, cv_config: CVConfig) -> List[CVFold]:
    """
    Split ``n_samples`` rows into train/validation folds.

    Args:
        n_samples: Number of training rows.
        cv_config: Resampling configuration.

    Returns:
        Folds in fold-index order; within one repetition the validation
        sets partition the rows.
    """
    k = cv_config.n_splits
    if n_samples < k:
        raise ValueError(f"Cannot split {n_samples} samples into {k} folds")

    if cv_config.n_repeats > 1:
        splitter = RepeatedKFold(
            n_splits=k, n_repeats=cv_config.n_repeats, random_state=cv_config.random_state
        )
    elif cv_config.shuffle:
        splitter = KFold(n_splits=k, shuffle=True, random_state=cv_config.random_state)
    else:
        splitter = KFold(n_splits=k)

    return [
        CVFold(fold_idx=i, train_indices=train, val_indices=val, repeat_idx=i // k)
        for i, (train, val) in enumerate(splitter.split(np.arange(n_samples)))
    ]


@dataclass
class FoldResult:
    """
    Outcome of fitting and scoring one configuration on one fold.

    Attributes:
        fold: Fold that was evaluated.
        val_score: Held-out value of the metric driving the search.
        metrics: Every metric the trainer reported on the held-out rows.
        fit_time: Seconds spent fitting the recipe and the model.
        predict_time: Seconds spent transforming, predicting and scoring.
    """

    fold: CVFold
    val_score: float
    metrics: Dict[str, float] = field(default_factory=dict)
    fit_time: float = 0.0
    predict_time: float = 0.0

    @property
    def fold_idx(self) -> int:
        return self.fold.fold_idx

    def __repr__(self) -> str:
        return (
            f"FoldResult(fold={self.fold_idx}, val_score={self.val_score:.4f}, "
            f"fit_time={self.fit_time:.2f}s)"
        )


@dataclass
class CVResult:
    """
    Fold results of one trial, reassembled in fold order.

    Results may arrive from parallel workers in any order; sorting them
    keeps the aggregate independent of scheduling.
    """

    fold_results: List[FoldResult]

    def __post_init__(self) -> None:
        self.fold_results = sorted(self.fold_results, key=lambda r: r.fold_idx)

    @property
    def n_folds(self) -> int:
        return len(self.fold_results)

    @property
    def val_scores(self) -> np.ndarray:
        return np.array([r.val_score for r in self.fold_results])

    @property
    def mean_score(self) -> float:
        """Aggregate objective of the trial: the plain mean over folds."""
        return float(np.mean(self.val_scores))

    @property
    def std_score(self) -> float:
        return float(np.std(self.val_scores))

    @property
    def mean_metrics(self) -> Dict[str, float]:
        """Per-metric mean over folds (secondary metrics are reported, not optimized)."""
        if not self.fold_results:
            return {}
        names = list(self.fold_results[0].metrics)
        return {
            name: float(np.mean([r.metrics[name] for r in self.fold_results]))
            for name in names
        }

    @property
    def total_fit_time(self) -> float:
        return sum(r.fit_time for r in self.fold_results)

    def __repr__(self) -> str:
        return (
            f"CVResult(n_folds={self.n_folds}, "
            f"mean_score={self.mean_score:.4f} +/- {self.std_score:.4f})"
        )
