"""Data handling components."""

from bayes_tuner.core.data.context import DataContext
from bayes_tuner.core.data.cv import CVConfig, CVFold, CVResult, FoldResult, create_folds

__all__ = ["DataContext", "CVConfig", "CVFold", "CVResult", "FoldResult", "create_folds"]
