"""TuningConfig: options controlling the Bayesian search loop."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from bayes_tuner.core.tuning.history import check_direction
from bayes_tuner.search.design import DesignStrategy


@dataclass
class TuningConfig:
    """
    Configuration for the tuning process.

    Attributes:
        iterations: Total trial budget, initial design included.
        patience: Stop after this many consecutive non-improving iterations.
        folds: Number of cross-validation folds.
        seed: Random seed for design, surrogate, acquisition and folds.
        initial_design_size: Number of seed configurations evaluated
            before the surrogate is used.
        metric_direction: "minimize" or "maximize".
        worker_count: Parallel workers for fold evaluation.
        metric: Primary metric driving the search (others are reported only).
        initial_design: "latin_hypercube" or "random".
        n_candidates: Size of the acquisition candidate pool.
        duplicate_tolerance: Normalized distance under which a candidate
            counts as already evaluated.
        max_duplicate_retries: Pool redraws before giving up on novelty.
        xi: Exploration margin for expected improvement.
        verbose: Verbosity level (0=silent, 1=progress, 2=detailed).
    """

    iterations: int = 50
    patience: int = 10
    folds: int = 5
    seed: Optional[int] = 42
    initial_design_size: int = 5
    metric_direction: str = "minimize"
    worker_count: int = 1
    metric: str = "rmse"
    initial_design: DesignStrategy = DesignStrategy.LATIN_HYPERCUBE
    n_candidates: int = 2000
    duplicate_tolerance: float = 1e-6
    max_duplicate_retries: int = 10
    xi: float = 0.0
    verbose: int = 1

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {self.iterations}")
        if self.patience < 1:
            raise ValueError(f"patience must be >= 1, got {self.patience}")
        if self.folds < 2:
            raise ValueError(f"folds must be >= 2, got {self.folds}")
        if self.initial_design_size < 2:
            raise ValueError(
                f"initial_design_size must be >= 2, got {self.initial_design_size}"
            )
        if self.initial_design_size > self.iterations:
            raise ValueError(
                f"initial_design_size ({self.initial_design_size}) cannot exceed "
                f"iterations ({self.iterations})"
            )
        if self.worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {self.worker_count}")
        if self.n_candidates < 1:
            raise ValueError(f"n_candidates must be >= 1, got {self.n_candidates}")
        if self.duplicate_tolerance < 0:
            raise ValueError(
                f"duplicate_tolerance must be >= 0, got {self.duplicate_tolerance}"
            )
        if self.max_duplicate_retries < 0:
            raise ValueError(
                f"max_duplicate_retries must be >= 0, got {self.max_duplicate_retries}"
            )
        check_direction(self.metric_direction)
        if isinstance(self.initial_design, str):
            self.initial_design = DesignStrategy(self.initial_design)

    @property
    def greater_is_better(self) -> bool:
        """Whether higher metric values are better."""
        return self.metric_direction == "maximize"

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> TuningConfig:
        """
        Create a config from a plain mapping.

        Raises:
            ValueError: On unknown option names.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"Unknown tuning options: {', '.join(unknown)}")
        return cls(**options)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-mapping view (the design strategy as its string value)."""
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        out["initial_design"] = self.initial_design.value
        return out
