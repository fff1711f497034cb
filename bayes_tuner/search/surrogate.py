"""Surrogate models approximating the expensive evaluation function."""

from __future__ import annotations

import logging
import warnings
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.gaussian_process import GaussianProcessRegressor
from sklearn.gaussian_process.kernels import ConstantKernel, Matern, WhiteKernel

from bayes_tuner.errors import InsufficientData

if TYPE_CHECKING:
    from bayes_tuner.core.tuning.history import Observation
    from bayes_tuner.search.space import SearchSpace

logger = logging.getLogger(__name__)

MIN_OBSERVATIONS = 2


class SurrogateModel(ABC):
    """
    Abstract probabilistic regression model over normalized configurations.

    ``fit`` is always given the full history and refits from scratch.
    Predictions are in the raw metric scale.
    """

    def __init__(self, search_space: SearchSpace) -> None:
        self.search_space = search_space

    @abstractmethod
    def fit(self, history: Sequence[Observation]) -> None:
        """
        Fit on an ordered sequence of observations.

        Raises:
            InsufficientData: With fewer than two observations.
        """
        pass

    @abstractmethod
    def predict_unit(self, X: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Predict at points of the unit hypercube.

        Args:
            X: Array of shape (n, d).

        Returns:
            (means, standard deviations), each of shape (n,).
        """
        pass

    def predict(self, configuration: Mapping[str, Any]) -> Tuple[float, float]:
        """Predictive (mean, std) for one configuration."""
        x = self.search_space.to_unit(configuration).reshape(1, -1)
        mean, std = self.predict_unit(x)
        return float(mean[0]), float(std[0])


class GaussianProcessSurrogate(SurrogateModel):
    """
    Gaussian-process surrogate built on scikit-learn.

    Kernel: ``ConstantKernel * Matern(nu=2.5)`` with one length scale per
    dimension, plus a ``WhiteKernel`` for observation noise. Targets are
    standardized internally (``normalize_y``) and predictions are returned
    de-standardized.
    """

    def __init__(
        self,
        search_space: SearchSpace,
        random_state: Optional[int] = None,
        n_restarts: int = 2,
        nu: float = 2.5,
    ) -> None:
        """
        Args:
            search_space: Resolved search space used for normalization.
            random_state: Seed for kernel hyperparameter restarts.
            n_restarts: Extra optimizer restarts when fitting kernel parameters.
            nu: Smoothness of the Matern kernel.
        """
        super().__init__(search_space)
        self.random_state = random_state
        self.n_restarts = n_restarts
        self.nu = nu
        self._gp: Optional[GaussianProcessRegressor] = None
        self._n_observations = 0

    def _make_kernel(self, d: int):
        return ConstantKernel(1.0, (1e-3, 1e3)) * Matern(
            length_scale=np.full(d, 0.5),
            length_scale_bounds=(1e-2, 1e2),
            nu=self.nu,
        ) + WhiteKernel(noise_level=1e-4, noise_level_bounds=(1e-8, 1e-1))

    def fit(self, history: Sequence[Observation]) -> None:
        if len(history) < MIN_OBSERVATIONS:
            raise InsufficientData(len(history), MIN_OBSERVATIONS)

        X = self.search_space.to_unit_array(o.configuration for o in history)
        y = np.array([o.value for o in history], dtype=float)

        gp = GaussianProcessRegressor(
            kernel=self._make_kernel(X.shape[1]),
            alpha=1e-8,
            normalize_y=True,
            n_restarts_optimizer=self.n_restarts,
            random_state=self.random_state,
        )
        with warnings.catch_warnings():
            # Kernel bounds are routinely hit on tiny histories
            warnings.simplefilter("ignore", ConvergenceWarning)
            gp.fit(X, y)

        self._gp = gp
        self._n_observations = len(history)
        logger.debug("Fitted GP on %d observations: %s", len(history), gp.kernel_)

    def predict_unit(self, X: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        if self._gp is None:
            raise RuntimeError("Must call fit before predict")
        X = np.atleast_2d(np.asarray(X, dtype=float))
        mean, std = self._gp.predict(X, return_std=True)
        return np.asarray(mean, dtype=float).ravel(), np.maximum(std, 0.0).ravel()

    @property
    def kernel(self):
        """Fitted kernel, or None before fit."""
        return self._gp.kernel_ if self._gp is not None else None

    def __repr__(self) -> str:
        return (
            f"GaussianProcessSurrogate(n_observations={self._n_observations}, "
            f"nu={self.nu})"
        )
