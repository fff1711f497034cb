"""Execution backends for parallel fold evaluation."""

from bayes_tuner.execution.base import Executor
from bayes_tuner.execution.local import LocalExecutor, SequentialExecutor

__all__ = ["Executor", "LocalExecutor", "SequentialExecutor"]
