"""Model trainers."""

from bayes_tuner.models.base import ModelTrainer
from bayes_tuner.models.boosted_tree import XGBoostTrainer, boost_tree_space

__all__ = ["ModelTrainer", "XGBoostTrainer", "boost_tree_space"]
