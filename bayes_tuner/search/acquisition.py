"""Expected-improvement acquisition over a sampled candidate pool."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence, TYPE_CHECKING

import numpy as np
from scipy.spatial.distance import cdist
from scipy.stats import norm

from bayes_tuner.errors import DuplicateCandidateError
from bayes_tuner.search.configuration import Configuration
from bayes_tuner.search.design import RandomState, as_generator

if TYPE_CHECKING:
    from bayes_tuner.core.tuning.history import Observation
    from bayes_tuner.search.space import SearchSpace
    from bayes_tuner.search.surrogate import SurrogateModel

logger = logging.getLogger(__name__)


def expected_improvement(
    mean: np.ndarray,
    std: np.ndarray,
    best: float,
    direction: str = "minimize",
    xi: float = 0.0,
) -> np.ndarray:
    """
    Expected improvement over ``best`` under a Normal predictive distribution.

    For minimization ``EI(x) = E[max(best - Y(x) - xi, 0)]`` with
    ``Y(x) ~ N(mean, std**2)``; maximization mirrors it. Where ``std`` is
    zero the expectation collapses to the plain improvement.

    Args:
        mean: Predictive means.
        std: Predictive standard deviations.
        best: Best observed value so far.
        direction: "minimize" or "maximize".
        xi: Exploration margin subtracted from the improvement.

    Returns:
        Non-negative array of expected improvements.
    """
    mean = np.atleast_1d(np.asarray(mean, dtype=float))
    std = np.atleast_1d(np.asarray(std, dtype=float))
    if direction == "maximize":
        improvement = mean - best - xi
    else:
        improvement = best - mean - xi

    ei = np.maximum(improvement, 0.0)
    positive = std > 0
    if positive.any():
        z = improvement[positive] / std[positive]
        ei[positive] = improvement[positive] * norm.cdf(z) + std[positive] * norm.pdf(z)
    return np.maximum(ei, 0.0)


class AcquisitionOptimizer:
    """
    Picks the next configuration by maximizing expected improvement.

    The candidate pool mixes uniform draws over the unit hypercube with
    Gaussian perturbations of the incumbent. Every candidate is decoded
    into a configuration (so integers are snapped) before scoring, and
    candidates within ``tolerance`` of an already evaluated configuration
    are dropped.
    """

    def __init__(
        self,
        n_candidates: int = 2000,
        local_fraction: float = 0.25,
        local_scale: float = 0.05,
        tolerance: float = 1e-6,
        max_retries: int = 10,
        xi: float = 0.0,
        random_state: RandomState = None,
    ) -> None:
        """
        Args:
            n_candidates: Pool size per draw.
            local_fraction: Share of the pool drawn around the incumbent.
            local_scale: Std of the local perturbations (unit-cube scale).
            tolerance: Normalized distance below which a candidate is a duplicate.
            max_retries: Pool redraws allowed when no novel candidate remains.
            xi: Exploration margin for expected improvement.
            random_state: Seed or numpy Generator.
        """
        if n_candidates < 1:
            raise ValueError(f"n_candidates must be >= 1, got {n_candidates}")
        if not 0.0 <= local_fraction <= 1.0:
            raise ValueError(f"local_fraction must be in [0, 1], got {local_fraction}")
        self.n_candidates = n_candidates
        self.local_fraction = local_fraction
        self.local_scale = local_scale
        self.tolerance = tolerance
        self.max_retries = max_retries
        self.xi = xi
        self._rng = as_generator(random_state)
        self.last_expected_improvement: Optional[float] = None

    def _candidate_pool(self, d: int, incumbent: Optional[np.ndarray]) -> np.ndarray:
        n_local = 0
        if incumbent is not None:
            n_local = int(round(self.n_candidates * self.local_fraction))
        pool = self._rng.random((self.n_candidates - n_local, d))
        if n_local:
            local = incumbent + self._rng.normal(0.0, self.local_scale, (n_local, d))
            pool = np.vstack([pool, np.clip(local, 0.0, 1.0)])
        return pool

    def _novel_mask(self, X: np.ndarray, seen: np.ndarray) -> np.ndarray:
        if seen.shape[0] == 0:
            return np.ones(X.shape[0], dtype=bool)
        return cdist(X, seen).min(axis=1) > self.tolerance

    def next_candidate(
        self,
        surrogate: SurrogateModel,
        search_space: SearchSpace,
        history: Sequence[Observation],
        best_so_far: Optional[Observation],
        direction: str = "minimize",
        exclude: Iterable[Mapping] = (),
    ) -> Configuration:
        """
        Propose the next configuration to evaluate.

        Args:
            surrogate: Fitted surrogate model.
            search_space: Resolved search space.
            history: Observations so far (read-only snapshot).
            best_so_far: Incumbent observation.
            direction: "minimize" or "maximize".
            exclude: Further configurations never to propose (e.g. failed ones).

        Returns:
            Configuration with maximal expected improvement; exact ties go
            to the most promising predictive mean.

        Raises:
            DuplicateCandidateError: If every pool is exhausted by already
                seen configurations after ``max_retries`` redraws.
        """
        if best_so_far is None:
            raise ValueError("best_so_far is required to compute expected improvement")

        seen = search_space.to_unit_array(
            [o.configuration for o in history] + list(exclude)
        )
        incumbent = search_space.to_unit(best_so_far.configuration)

        for attempt in range(self.max_retries + 1):
            pool = self._candidate_pool(search_space.dimensionality, incumbent)
            configs = [search_space.from_unit(p) for p in pool]
            X = search_space.to_unit_array(configs)

            novel = np.flatnonzero(self._novel_mask(X, seen))
            if novel.size == 0:
                logger.debug(
                    "Candidate pool %d contained only seen configurations", attempt
                )
                continue

            mean, std = surrogate.predict_unit(X[novel])
            ei = expected_improvement(mean, std, best_so_far.value, direction, self.xi)
            tiebreak = -mean if direction == "maximize" else mean
            winner = np.lexsort((tiebreak, -ei))[0]

            self.last_expected_improvement = float(ei[winner])
            return configs[novel[winner]]

        raise DuplicateCandidateError(self.max_retries, self.tolerance)

    def __repr__(self) -> str:
        return (
            f"AcquisitionOptimizer(n_candidates={self.n_candidates}, "
            f"tolerance={self.tolerance}, max_retries={self.max_retries})"
        )
