"""Exception taxonomy for the tuning loop."""

from __future__ import annotations

from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from bayes_tuner.core.tuning.loop import SearchResult
    from bayes_tuner.search.configuration import Configuration


class TuningError(Exception):
    """
    Base class for all tuning errors.

    Attributes:
        result: Partial search result known when the error was raised
            (set by the search loop for fatal errors, otherwise None).
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.result: Optional[SearchResult] = None


class UnresolvedDomainError(TuningError):
    """A data-dependent parameter was used before ``SearchSpace.finalize``."""

    def __init__(self, parameter_name: str) -> None:
        super().__init__(
            f"Parameter '{parameter_name}' depends on the data; "
            f"call SearchSpace.finalize() before sampling it"
        )
        self.parameter_name = parameter_name


class EvaluationFailure(TuningError):
    """
    A trial failed while being evaluated.

    Attributes:
        configuration: Configuration that was being evaluated.
        fold_idx: Index of the failing fold, or None for non-CV evaluators.
    """

    def __init__(
        self,
        configuration: Configuration,
        fold_idx: Optional[int] = None,
        message: str = "",
    ) -> None:
        where = f" on fold {fold_idx}" if fold_idx is not None else ""
        detail = f": {message}" if message else ""
        super().__init__(f"Evaluation of {configuration!r} failed{where}{detail}")
        self.configuration = configuration
        self.fold_idx = fold_idx
        self.detail = message


class InsufficientData(TuningError):
    """The surrogate model was asked to fit on fewer than two observations."""

    def __init__(self, n_observations: int, required: int = 2) -> None:
        super().__init__(
            f"Surrogate needs at least {required} observations, got {n_observations}"
        )
        self.n_observations = n_observations
        self.required = required


class InitializationFailure(TuningError):
    """Fewer than two initial design points were evaluated successfully."""

    def __init__(self, n_successful: int, n_attempted: int) -> None:
        super().__init__(
            f"Only {n_successful} of {n_attempted} initial evaluations succeeded; "
            f"at least 2 are required"
        )
        self.n_successful = n_successful
        self.n_attempted = n_attempted


class DuplicateCandidateError(TuningError):
    """The acquisition optimizer could not propose an unseen configuration."""

    def __init__(self, n_retries: int, tolerance: Any) -> None:
        super().__init__(
            f"No novel candidate found after {n_retries} retries "
            f"(tolerance={tolerance})"
        )
        self.n_retries = n_retries
        self.tolerance = tolerance
