"""SearchLoop: the seed-then-iterate Bayesian optimization state machine."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, TYPE_CHECKING

import numpy as np
import pandas as pd

from bayes_tuner.core.tuning.config import TuningConfig
from bayes_tuner.core.tuning.history import (
    FailedTrial,
    History,
    Observation,
    best_of,
    is_better,
)
from bayes_tuner.errors import (
    DuplicateCandidateError,
    EvaluationFailure,
    InitializationFailure,
    InsufficientData,
    UnresolvedDomainError,
)
from bayes_tuner.search.acquisition import AcquisitionOptimizer
from bayes_tuner.search.configuration import Configuration
from bayes_tuner.search.design import DesignStrategy
from bayes_tuner.search.surrogate import GaussianProcessSurrogate, SurrogateModel

if TYPE_CHECKING:
    from bayes_tuner.audit.logger import AuditLogger
    from bayes_tuner.evaluation.evaluator import Evaluator
    from bayes_tuner.search.space import SearchSpace

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """Phases of a search."""

    SEEDING = "seeding"
    """Evaluating the initial design."""

    ITERATING = "iterating"
    """Surrogate-guided proposals."""

    CONVERGED = "converged"
    """Stopped after ``patience`` consecutive non-improving iterations."""

    EXHAUSTED = "exhausted"
    """Stopped because the budget ran out or the run was cancelled."""


class CancellationToken:
    """
    Thread-safe flag to stop a running search.

    The loop checks the token before each trial; a fold that is already
    running is never interrupted.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()


@dataclass
class SearchResult:
    """
    Outcome of a search.

    Attributes:
        state: Terminal (or, for a partial result, current) loop state.
        best: Best observation, or None if nothing succeeded.
        history: Successful observations in evaluation order.
        failures: Failed trials in evaluation order.
        n_iterations: Trials consumed from the budget, failures included.
        cancelled: Whether the run was stopped by a cancellation token.
        direction: "minimize" or "maximize".
        total_time: Wall time of the run in seconds.
    """

    state: LoopState
    best: Optional[Observation]
    history: Tuple[Observation, ...] = ()
    failures: Tuple[FailedTrial, ...] = ()
    n_iterations: int = 0
    cancelled: bool = False
    direction: str = "minimize"
    total_time: float = 0.0

    @property
    def best_configuration(self) -> Optional[Configuration]:
        """Configuration of the best observation."""
        return self.best.configuration if self.best is not None else None

    @property
    def best_value(self) -> Optional[float]:
        """Value of the best observation."""
        return self.best.value if self.best is not None else None

    @property
    def converged(self) -> bool:
        """Whether the patience rule stopped the search."""
        return self.state == LoopState.CONVERGED

    @property
    def no_improvement_met(self) -> bool:
        """Alias of ``converged``: True only when patience ran out."""
        return self.converged

    @property
    def n_successful(self) -> int:
        return len(self.history)

    @property
    def n_failed(self) -> int:
        return len(self.failures)

    def to_frame(self) -> pd.DataFrame:
        """
        Results table with one row per trial, ordered by iteration.

        Columns: ``iteration``, ``status`` ("ok" or "failed"), ``value``,
        ``std``, ``duration``, ``error``, one column per hyperparameter and
        ``mean_<metric>`` for every reported metric.
        """
        rows = []
        for obs in self.history:
            row = {
                "iteration": obs.iteration,
                "status": "ok",
                "value": obs.value,
                "std": obs.std,
                "duration": obs.duration,
                "error": None,
            }
            row.update(obs.configuration)
            row.update({f"mean_{k}": v for k, v in obs.metrics.items()})
            rows.append(row)
        for failure in self.failures:
            row = {
                "iteration": failure.iteration,
                "status": "failed",
                "value": np.nan,
                "std": np.nan,
                "duration": np.nan,
                "error": failure.error,
            }
            row.update(failure.configuration)
            rows.append(row)

        if not rows:
            return pd.DataFrame(
                columns=["iteration", "status", "value", "std", "duration", "error"]
            )
        return pd.DataFrame(rows).sort_values("iteration").reset_index(drop=True)

    def __repr__(self) -> str:
        best = f"{self.best_value:.4f}" if self.best is not None else "None"
        return (
            f"SearchResult(state={self.state.value}, best_value={best}, "
            f"n_iterations={self.n_iterations}, n_failed={self.n_failed})"
        )


class SearchLoop:
    """
    Bayesian optimization loop with a patience stopping rule.

    The loop evaluates an initial design (SEEDING), then repeatedly fits
    the surrogate on the history, asks the acquisition optimizer for the
    next configuration and evaluates it (ITERATING). It stops as CONVERGED
    once ``patience`` consecutive successful iterations fail to strictly
    improve the best value, or as EXHAUSTED when the ``iterations`` budget
    (seeds included) is spent or the run is cancelled.

    The history is owned by the loop; the surrogate and acquisition
    optimizer only ever see immutable snapshots of it.
    """

    def __init__(
        self,
        search_space: SearchSpace,
        evaluator: Evaluator,
        config: Optional[TuningConfig] = None,
        surrogate: Optional[SurrogateModel] = None,
        acquisition: Optional[AcquisitionOptimizer] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the loop.

        Args:
            search_space: Resolved search space.
            evaluator: Scores configurations.
            config: Tuning configuration.
            surrogate: Surrogate model (default: Gaussian process).
            acquisition: Acquisition optimizer (default: expected improvement
                over a candidate pool, configured from ``config``).
            audit_logger: Optional logger for trials and phase changes.

        Raises:
            ValueError: If the search space is empty.
            UnresolvedDomainError: If a parameter still depends on the data.
        """
        if len(search_space) == 0:
            raise ValueError("Search space has no parameters")
        for param in search_space:
            if not param.is_resolved:
                raise UnresolvedDomainError(param.name)

        self.search_space = search_space
        self.evaluator = evaluator
        self.config = config or TuningConfig()
        self.surrogate = surrogate or GaussianProcessSurrogate(
            search_space, random_state=self.config.seed
        )
        self.acquisition = acquisition or AcquisitionOptimizer(
            n_candidates=self.config.n_candidates,
            tolerance=self.config.duplicate_tolerance,
            max_retries=self.config.max_duplicate_retries,
            xi=self.config.xi,
            random_state=self.config.seed,
        )
        self.audit_logger = audit_logger

        self.state = LoopState.SEEDING
        self.history = History()
        self.failures: List[FailedTrial] = []
        self.iterations_since_improvement = 0

        self._rng = np.random.default_rng(self.config.seed)
        self._n_trials = 0
        self._cancelled = False
        self._started = False
        self._start_time = 0.0

    @property
    def direction(self) -> str:
        return self.config.metric_direction

    @property
    def n_trials(self) -> int:
        """Trials consumed so far, failures included."""
        return self._n_trials

    def best(self) -> Optional[Observation]:
        """Current best observation (a fresh scan of the history)."""
        return self.history.best(self.direction)

    def run(self, cancel_token: Optional[CancellationToken] = None) -> SearchResult:
        """
        Run the search to completion.

        Args:
            cancel_token: Optional token checked before every trial.

        Returns:
            SearchResult in state CONVERGED or EXHAUSTED.

        Raises:
            InitializationFailure: If fewer than two initial configurations
                succeed. ``error.result`` holds the partial result.
            DuplicateCandidateError: If no novel configuration can be
                proposed. ``error.result`` holds the partial result.
            RuntimeError: If the loop has already been run.
        """
        if self._started:
            raise RuntimeError("SearchLoop.run() can only be called once")
        self._started = True
        self._start_time = time.time()

        self._log_phase(
            LoopState.SEEDING,
            f"{self.config.initial_design_size} initial configurations",
        )
        self._seed(cancel_token)

        if self.state == LoopState.SEEDING:
            self._enter(LoopState.ITERATING)
            self._iterate(cancel_token)

        result = self.result()
        if self.audit_logger:
            self.audit_logger.log_search_complete(
                state=result.state.value,
                best_score=result.best_value,
                best_params=dict(result.best_configuration) if result.best else None,
                n_trials=result.n_iterations,
                duration=result.total_time,
            )
        if self.config.verbose >= 1:
            logger.info("Search finished: %r", result)
        return result

    def result(self) -> SearchResult:
        """Snapshot of the current progress as a SearchResult."""
        return SearchResult(
            state=self.state,
            best=self.best(),
            history=self.history.snapshot(),
            failures=tuple(self.failures),
            n_iterations=self._n_trials,
            cancelled=self._cancelled,
            direction=self.direction,
            total_time=time.time() - self._start_time if self._started else 0.0,
        )

    def _seed(self, cancel_token: Optional[CancellationToken]) -> None:
        design = self.search_space.sample_design(
            self.config.initial_design_size,
            strategy=self.config.initial_design,
            random_state=self._rng,
        )
        for configuration in design:
            if self._cancel_requested(cancel_token):
                self._enter(LoopState.EXHAUSTED)
                return
            self._run_trial(configuration)

        n_successful = len(self.history)
        if n_successful < 2:
            self._enter(LoopState.EXHAUSTED)
            error = InitializationFailure(n_successful, len(design))
            error.result = self.result()
            raise error

    def _iterate(self, cancel_token: Optional[CancellationToken]) -> None:
        while self._n_trials < self.config.iterations:
            if self._cancel_requested(cancel_token):
                break

            configuration = self._propose()
            improved = self._run_trial(configuration)
            if improved is None:
                continue

            if improved:
                self.iterations_since_improvement = 0
            else:
                self.iterations_since_improvement += 1

            if self.iterations_since_improvement >= self.config.patience:
                self._enter(
                    LoopState.CONVERGED,
                    f"no improvement in {self.iterations_since_improvement} iterations",
                )
                return

        self._enter(LoopState.EXHAUSTED, f"{self._n_trials} trials used")

    def _propose(self) -> Configuration:
        """Next configuration from the surrogate, or a random one on a cold start."""
        snapshot = self.history.snapshot()
        try:
            self.surrogate.fit(snapshot)
        except InsufficientData as e:
            logger.warning("%s; sampling iteration %d at random", e, self._n_trials + 1)
            return self.search_space.sample(
                strategy=DesignStrategy.RANDOM, random_state=self._rng
            )

        try:
            return self.acquisition.next_candidate(
                self.surrogate,
                self.search_space,
                snapshot,
                best_of(snapshot, self.direction),
                direction=self.direction,
                exclude=[f.configuration for f in self.failures],
            )
        except DuplicateCandidateError as e:
            self._enter(LoopState.EXHAUSTED, str(e))
            e.result = self.result()
            raise

    def _run_trial(self, configuration: Configuration) -> Optional[bool]:
        """
        Evaluate one configuration and record the outcome.

        Returns:
            None on failure, otherwise whether the best value strictly improved.
        """
        self._n_trials += 1
        iteration = self._n_trials
        incumbent = self.best()

        try:
            result = self.evaluator.evaluate(configuration)
        except EvaluationFailure as e:
            self.failures.append(
                FailedTrial(
                    configuration=configuration,
                    iteration=iteration,
                    error=e.detail or str(e),
                    fold_idx=e.fold_idx,
                )
            )
            logger.warning(
                "Iteration %d failed (configuration=%r, fold=%s): %s",
                iteration, configuration, e.fold_idx, e,
            )
            if self.audit_logger:
                self.audit_logger.log_failure(
                    trial_id=iteration,
                    params=dict(configuration),
                    error=str(e),
                    fold_idx=e.fold_idx,
                    phase=self.state.value,
                )
            return None

        observation = Observation(
            configuration=configuration,
            value=result.value,
            fold_values=result.fold_values,
            iteration=iteration,
            metrics=dict(result.metrics),
            duration=result.duration,
        )
        self.history.append(observation)
        improved = incumbent is None or is_better(
            observation.value, incumbent.value, self.direction
        )

        best_value = observation.value if improved else incumbent.value
        if self.audit_logger:
            self.audit_logger.log_trial(
                trial_id=iteration,
                params=dict(configuration),
                score=observation.value,
                duration=observation.duration,
                phase=self.state.value,
                best_score=best_value,
            )
        if self.config.verbose >= 2:
            logger.info(
                "Iteration %d/%d: value=%.4f best=%.4f",
                iteration, self.config.iterations, observation.value, best_value,
            )
        return improved

    def _cancel_requested(self, cancel_token: Optional[CancellationToken]) -> bool:
        if cancel_token is not None and cancel_token.cancelled:
            if not self._cancelled:
                logger.info("Search cancelled after %d trials", self._n_trials)
            self._cancelled = True
        return self._cancelled

    def _enter(self, state: LoopState, detail: str = "") -> None:
        self.state = state
        self._log_phase(state, detail)

    def _log_phase(self, state: LoopState, detail: str = "") -> None:
        if self.audit_logger:
            self.audit_logger.log_phase(state.value, detail)
        if self.config.verbose >= 1:
            logger.info("Search %s%s", state.value, f": {detail}" if detail else "")

    def __repr__(self) -> str:
        return (
            f"SearchLoop(state={self.state.value}, n_trials={self._n_trials}, "
            f"n_params={len(self.search_space)})"
        )
