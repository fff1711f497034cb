"""Observation history: the append-only record of evaluated trials."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from bayes_tuner.search.configuration import Configuration

DIRECTIONS = ("minimize", "maximize")


def check_direction(direction: str) -> str:
    """Validate an optimization direction."""
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be 'minimize' or 'maximize', got {direction}")
    return direction


def is_better(candidate: float, incumbent: Optional[float], direction: str) -> bool:
    """Whether ``candidate`` strictly improves on ``incumbent``."""
    if incumbent is None:
        return True
    if direction == "maximize":
        return candidate > incumbent
    return candidate < incumbent


def _now() -> str:
    return datetime.now().isoformat()


@dataclass(frozen=True)
class Observation:
    """
    A successfully evaluated configuration.

    Attributes:
        configuration: Configuration that was evaluated.
        value: Primary metric value (mean across folds).
        fold_values: Primary metric per fold, ordered by fold index.
        iteration: 1-based trial number within the search.
        timestamp: ISO timestamp of when the evaluation finished.
        metrics: Mean of every reported metric (primary and secondary).
        duration: Evaluation wall time in seconds.
    """

    configuration: Configuration
    value: float
    fold_values: Tuple[float, ...] = ()
    iteration: int = 0
    timestamp: str = field(default_factory=_now)
    metrics: Dict[str, float] = field(default_factory=dict, compare=False)
    duration: float = 0.0

    @property
    def variance(self) -> float:
        """Variance of the per-fold values (0 when there is one or none)."""
        if len(self.fold_values) < 2:
            return 0.0
        return float(np.var(self.fold_values))

    @property
    def std(self) -> float:
        """Standard deviation of the per-fold values."""
        return float(np.sqrt(self.variance))

    def __repr__(self) -> str:
        return (
            f"Observation(iteration={self.iteration}, value={self.value:.4f}, "
            f"{self.configuration!r})"
        )


@dataclass(frozen=True)
class FailedTrial:
    """
    A trial whose evaluation failed; kept for diagnostics only.

    Attributes:
        configuration: Configuration that failed.
        iteration: 1-based trial number within the search.
        error: Error message.
        fold_idx: Failing fold, if known.
        timestamp: ISO timestamp of the failure.
    """

    configuration: Configuration
    iteration: int
    error: str
    fold_idx: Optional[int] = None
    timestamp: str = field(default_factory=_now)


class History:
    """
    Append-only, ordered sequence of observations.

    Entries are never removed or reordered, and iteration numbers must
    strictly increase. The best observation is recomputed by scanning on
    every request.
    """

    def __init__(self, observations: Sequence[Observation] = ()) -> None:
        self._observations: List[Observation] = []
        for obs in observations:
            self.append(obs)

    def append(self, observation: Observation) -> None:
        """
        Append an observation.

        Raises:
            ValueError: If its iteration does not exceed the last one.
        """
        if self._observations and observation.iteration <= self._observations[-1].iteration:
            raise ValueError(
                f"Iteration {observation.iteration} does not follow "
                f"{self._observations[-1].iteration}"
            )
        self._observations.append(observation)

    def snapshot(self) -> Tuple[Observation, ...]:
        """Immutable copy of the current history."""
        return tuple(self._observations)

    def best(self, direction: str = "minimize") -> Optional[Observation]:
        """Observation with the optimal value, or None if empty. Ties keep the earliest."""
        return best_of(self._observations, direction)

    @property
    def configurations(self) -> List[Configuration]:
        """Evaluated configurations in order."""
        return [o.configuration for o in self._observations]

    @property
    def values(self) -> np.ndarray:
        """Primary metric values in order."""
        return np.array([o.value for o in self._observations], dtype=float)

    def __len__(self) -> int:
        return len(self._observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(tuple(self._observations))

    def __getitem__(self, idx: int) -> Observation:
        return self._observations[idx]

    def __repr__(self) -> str:
        return f"History(n={len(self._observations)})"


def best_of(
    observations: Sequence[Observation], direction: str = "minimize"
) -> Optional[Observation]:
    """Scan for the optimal observation under ``direction``."""
    check_direction(direction)
    best: Optional[Observation] = None
    for obs in observations:
        if best is None or is_better(obs.value, best.value, direction):
            best = obs
    return best
