"""Initial design strategies in the unit hypercube."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

import numpy as np
from scipy.stats import qmc


class DesignStrategy(Enum):
    """Strategies for drawing initial design points."""

    RANDOM = "random"
    """Independent uniform draws."""

    LATIN_HYPERCUBE = "latin_hypercube"
    """Space-filling Latin hypercube: one point per stratum of every axis."""


RandomState = Optional[Union[int, np.random.Generator]]


def as_generator(random_state: RandomState) -> np.random.Generator:
    """Coerce a seed or generator into a numpy Generator."""
    if isinstance(random_state, np.random.Generator):
        return random_state
    return np.random.default_rng(random_state)


def unit_design(
    n: int,
    d: int,
    strategy: Union[DesignStrategy, str] = DesignStrategy.LATIN_HYPERCUBE,
    random_state: RandomState = None,
) -> np.ndarray:
    """
    Draw ``n`` points in the ``d``-dimensional unit hypercube.

    Args:
        n: Number of points.
        d: Dimensionality.
        strategy: Sampling strategy.
        random_state: Seed or numpy Generator.

    Returns:
        Array of shape (n, d) with values in [0, 1).
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    if d < 1:
        raise ValueError(f"d must be >= 1, got {d}")
    strategy = DesignStrategy(strategy)
    rng = as_generator(random_state)

    if n == 0:
        return np.empty((0, d))
    if strategy == DesignStrategy.LATIN_HYPERCUBE:
        return qmc.LatinHypercube(d=d, seed=rng).random(n)
    return rng.random((n, d))
