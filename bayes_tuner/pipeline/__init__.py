"""Preprocessing recipe for tabular regression."""

from bayes_tuner.pipeline.recipe import FittedRecipe, Recipe, RecipeConfig

__all__ = ["FittedRecipe", "Recipe", "RecipeConfig"]
