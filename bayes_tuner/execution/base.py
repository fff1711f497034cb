"""Executor: how the folds of one trial are run."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class Executor(ABC):
    """
    Runs the independent fold tasks of a single trial.

    Implementations may run tasks concurrently but must hand results back
    in task order, so a trial's aggregate never depends on scheduling.
    Trials themselves are always evaluated one after another.
    """

    @abstractmethod
    def map(self, fn: Callable[[T], R], items: List[T]) -> List[R]:
        """
        Run ``fn`` on every item.

        Args:
            fn: Task, typically "fit and score one fold".
            items: Task inputs.

        Returns:
            One result per item, aligned with ``items``. The first task
            exception propagates to the caller.
        """
        pass

    @property
    def n_workers(self) -> int:
        return 1

    def shutdown(self, wait: bool = True) -> None:
        """Release worker resources; a no-op for executors that hold none."""

    def __enter__(self) -> Executor:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)
