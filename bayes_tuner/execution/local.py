"""In-process executors: sequential, or fold-parallel through joblib."""

from __future__ import annotations

import logging
import os
from typing import Callable, List, TypeVar

from joblib import Parallel, delayed

from bayes_tuner.execution.base import Executor

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def resolve_workers(n_workers: int) -> int:
    """Map a requested worker count to a concrete one (-1 = every CPU, 0 = one)."""
    if n_workers < -1:
        raise ValueError(f"n_workers must be >= -1, got {n_workers}")
    if n_workers == -1:
        return os.cpu_count() or 1
    return max(1, n_workers)


class LocalExecutor(Executor):
    """
    Evaluates folds on local workers with ``joblib.Parallel``.

    The threading backend is the default: fold tasks spend their time in
    XGBoost and numpy, which release the GIL, and no data is pickled.
    With a single worker the tasks run inline in the calling thread.
    """

    def __init__(self, n_workers: int = 1, backend: str = "threading") -> None:
        """
        Args:
            n_workers: Worker count; -1 uses every CPU, 0 means one.
            backend: joblib backend name ("threading", "loky", "multiprocessing").
        """
        self._n_workers = resolve_workers(n_workers)
        self._backend = backend

    @property
    def n_workers(self) -> int:
        return self._n_workers

    def map(self, fn: Callable[[T], R], items: List[T]) -> List[R]:
        if not items:
            return []
        if self._n_workers == 1:
            return [fn(item) for item in items]

        n_jobs = min(self._n_workers, len(items))
        logger.debug("Running %d tasks on %d %s workers", len(items), n_jobs, self._backend)
        return list(Parallel(n_jobs=n_jobs, backend=self._backend)(
            delayed(fn)(item) for item in items
        ))

    def __repr__(self) -> str:
        return f"LocalExecutor(n_workers={self._n_workers}, backend={self._backend})"


class SequentialExecutor(Executor):
    """Runs folds one after another in the calling thread."""

    def map(self, fn: Callable[[T], R], items: List[T]) -> List[R]:
        return [fn(item) for item in items]

    def __repr__(self) -> str:
        return "SequentialExecutor()"
