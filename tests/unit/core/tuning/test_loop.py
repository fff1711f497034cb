"""Tests for the SearchLoop state machine."""

import numpy as np
import pytest

from bayes_tuner.audit.logger import AuditLogger
from bayes_tuner.core.tuning.config import TuningConfig
from bayes_tuner.core.tuning.history import best_of
from bayes_tuner.core.tuning.loop import (
    CancellationToken,
    LoopState,
    SearchLoop,
    SearchResult,
)
from bayes_tuner.errors import (
    DuplicateCandidateError,
    EvaluationFailure,
    InitializationFailure,
    InsufficientData,
    UnresolvedDomainError,
)
from bayes_tuner.evaluation.evaluator import EvaluationResult, Evaluator, FunctionEvaluator
from bayes_tuner.search.parameter import predictor_count
from bayes_tuner.search.space import SearchSpace
from bayes_tuner.search.surrogate import SurrogateModel


class ScriptedEvaluator(Evaluator):
    """Returns pre-set values in call order; None means the trial fails."""

    def __init__(self, values, on_call=None):
        self.values = list(values)
        self.calls = []
        self.on_call = on_call

    def evaluate(self, configuration, folds=None):
        self.calls.append(configuration)
        if self.on_call:
            self.on_call(len(self.calls))
        value = self.values[len(self.calls) - 1]
        if value is None:
            raise EvaluationFailure(configuration, fold_idx=1, message="fold crashed")
        return EvaluationResult(value=value, fold_values=(value, value), metrics={"rmse": value})


class NullSurrogate(SurrogateModel):
    """Surrogate that never needs fitting."""

    def fit(self, history):
        self.n_fit = len(history)

    def predict_unit(self, X):
        X = np.atleast_2d(X)
        return np.zeros(X.shape[0]), np.ones(X.shape[0])


class ColdSurrogate(SurrogateModel):
    """Surrogate that always reports too little data."""

    def fit(self, history):
        raise InsufficientData(len(history), required=1000)

    def predict_unit(self, X):
        raise AssertionError("not fitted")


class RandomAcquisition:
    """Acquisition stand-in proposing random configurations."""

    def __init__(self, seed=0):
        self.rng = np.random.default_rng(seed)
        self.calls = 0
        self.excluded = []

    def next_candidate(self, surrogate, search_space, history, best_so_far, direction="minimize", exclude=()):
        self.calls += 1
        self.excluded.append(list(exclude))
        assert isinstance(history, tuple)
        return search_space.sample(random_state=self.rng)


def _loop(values, space=None, acquisition=None, surrogate=None, **config):
    space = space or SearchSpace().add_float("x", 0.0, 1.0)
    options = {"iterations": 20, "patience": 3, "initial_design_size": 2, "verbose": 0}
    options.update(config)
    evaluator = ScriptedEvaluator(values)
    loop = SearchLoop(
        space,
        evaluator,
        TuningConfig(**options),
        surrogate=surrogate or NullSurrogate(space),
        acquisition=acquisition or RandomAcquisition(),
    )
    return loop, evaluator


class TestStoppingRule:
    """Tests for the patience counter and terminal states."""

    def test_converges_at_exactly_patience(self):
        """Verify the loop stops on the patience-th non-improving iteration."""
        loop, evaluator = _loop([5.0, 4.0, 3.0, 3.5, 3.2, 3.1, 0.0, 0.0])

        result = loop.run()

        assert result.state == LoopState.CONVERGED
        assert result.converged
        assert result.no_improvement_met
        assert result.n_iterations == 6
        assert len(evaluator.calls) == 6
        assert loop.iterations_since_improvement == 3
        assert result.best_value == 3.0

    def test_counter_resets_on_strict_improvement(self):
        """Verify an improvement resets the counter and the budget ends the run."""
        loop, _ = _loop([5.0, 4.0, 4.5, 4.5, 3.0, 4.9, 4.9], iterations=7)

        result = loop.run()

        assert result.state == LoopState.EXHAUSTED
        assert not result.no_improvement_met
        assert loop.iterations_since_improvement == 2
        assert result.best_value == 3.0

    def test_tie_is_not_improvement(self):
        """Verify matching the best value counts toward patience."""
        loop, _ = _loop([5.0, 4.0, 4.0, 4.0, 4.0], patience=3)

        result = loop.run()

        assert result.converged
        assert result.n_iterations == 5
        assert result.best.iteration == 2

    def test_seed_improvements_do_not_count(self):
        """Verify the counter starts at zero when iterating begins."""
        loop, _ = _loop([5.0, 6.0, 7.0, 7.0, 7.0], patience=3)

        result = loop.run()

        assert result.n_iterations == 5
        assert result.converged

    def test_budget_includes_seeds(self):
        """Verify iterations is the total number of trials."""
        loop, evaluator = _loop([float(10 - i) for i in range(10)], iterations=4, initial_design_size=3)

        result = loop.run()

        assert result.state == LoopState.EXHAUSTED
        assert result.n_iterations == 4
        assert len(evaluator.calls) == 4

    def test_maximize(self):
        """Verify the counter follows the maximization direction."""
        loop, _ = _loop(
            [1.0, 2.0, 3.0, 2.5, 2.0, 1.0], metric_direction="maximize", patience=3
        )

        result = loop.run()

        assert result.converged
        assert result.best_value == 3.0


class TestFailures:
    """Tests for recoverable evaluation failures."""

    def test_failures_consume_budget(self):
        """Verify successes == iterations - failures."""
        values = [5.0, 4.0, None, 3.0, None, None, 2.0, 1.5, None, 1.0]
        loop, _ = _loop(values, iterations=10, patience=10)

        result = loop.run()

        assert result.n_iterations == 10
        assert result.n_failed == 4
        assert result.n_successful == 10 - 4
        assert result.state == LoopState.EXHAUSTED

    def test_failures_leave_counter_unchanged(self):
        """Verify failed trials neither advance nor reset the counter."""
        loop, _ = _loop([5.0, 4.0, None, 4.5, None, 4.6], patience=2)

        result = loop.run()

        assert result.converged
        assert result.n_iterations == 6
        assert result.n_failed == 2

    def test_failure_details_recorded(self):
        """Verify failed trials keep configuration, fold and iteration."""
        loop, evaluator = _loop([5.0, 4.0, None, 3.0, 3.0, 3.0, 3.0])

        result = loop.run()

        failure = result.failures[0]
        assert failure.iteration == 3
        assert failure.fold_idx == 1
        assert failure.configuration == evaluator.calls[2]
        assert "fold crashed" in failure.error

    def test_failed_configurations_excluded(self):
        """Verify failed configurations are passed to the acquisition as exclusions."""
        acquisition = RandomAcquisition()
        loop, evaluator = _loop([5.0, 4.0, None, 3.0, 3.0], acquisition=acquisition, iterations=5)

        loop.run()

        assert acquisition.excluded[1] == [evaluator.calls[2]]

    def test_iterations_strictly_increase_in_history(self):
        """Verify history iterations skip failed trial numbers."""
        loop, _ = _loop([5.0, None, 4.0, 3.0], iterations=4, initial_design_size=3)

        result = loop.run()

        assert [o.iteration for o in result.history] == [1, 3, 4]


class TestColdStart:
    """Tests for the initial design and cold-start handling."""

    def test_initialization_failure(self):
        """Verify fewer than two successful seeds is fatal and carries the partial result."""
        loop, _ = _loop([1.0, None, None], initial_design_size=3)

        with pytest.raises(InitializationFailure) as exc_info:
            loop.run()

        partial = exc_info.value.result
        assert isinstance(partial, SearchResult)
        assert partial.n_successful == 1
        assert partial.n_failed == 2
        assert partial.best_value == 1.0
        assert loop.state == LoopState.EXHAUSTED

    def test_all_seeds_fail(self):
        """Verify zero successes is fatal with no best observation."""
        loop, _ = _loop([None, None])

        with pytest.raises(InitializationFailure) as exc_info:
            loop.run()

        assert exc_info.value.result.best is None

    def test_insufficient_data_falls_back_to_random(self):
        """Verify the loop samples at random when the surrogate cannot fit."""
        space = SearchSpace().add_float("x", 0.0, 1.0)
        acquisition = RandomAcquisition()
        loop, evaluator = _loop(
            [5.0, 4.0, 3.0, 2.0, 1.0],
            space=space,
            surrogate=ColdSurrogate(space),
            acquisition=acquisition,
            iterations=5,
        )

        result = loop.run()

        assert result.n_iterations == 5
        assert acquisition.calls == 0
        assert all(space.contains(c) for c in evaluator.calls)

    def test_seeds_use_initial_design(self):
        """Verify the first trials come from the Latin hypercube design."""
        space = SearchSpace().add_float("x", 0.0, 1.0)
        loop, evaluator = _loop([1.0, 2.0, 3.0, 4.0], space=space, initial_design_size=4, iterations=4, seed=5)

        loop.run()

        expected = space.sample_design(4, random_state=np.random.default_rng(5))
        assert evaluator.calls == expected


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_before_run(self):
        """Verify a pre-cancelled token stops before any trial."""
        token = CancellationToken()
        token.cancel()
        loop, evaluator = _loop([1.0, 2.0])

        result = loop.run(token)

        assert result.cancelled
        assert result.state == LoopState.EXHAUSTED
        assert result.n_iterations == 0
        assert evaluator.calls == []

    def test_cancel_between_trials(self):
        """Verify cancellation is honoured before the next trial."""
        token = CancellationToken()
        space = SearchSpace().add_float("x", 0.0, 1.0)
        evaluator = ScriptedEvaluator(
            [5.0, 4.0, 3.0, 2.0, 1.0, 0.5],
            on_call=lambda n: token.cancel() if n == 3 else None,
        )
        loop = SearchLoop(
            space,
            evaluator,
            TuningConfig(iterations=6, patience=5, initial_design_size=2, verbose=0),
            surrogate=NullSurrogate(space),
            acquisition=RandomAcquisition(),
        )

        result = loop.run(token)

        assert result.cancelled
        assert not result.no_improvement_met
        assert result.n_iterations == 3


class TestDuplicates:
    """Tests for duplicate-candidate exhaustion."""

    def test_exhausted_space_raises_with_result(self):
        """Verify DuplicateCandidateError carries the partial result."""
        space = SearchSpace().add_int("k", 1, 2)
        loop = SearchLoop(
            space,
            FunctionEvaluator(lambda c: float(c["k"])),
            TuningConfig(
                iterations=10, patience=5, initial_design_size=2,
                n_candidates=50, max_duplicate_retries=2, verbose=0,
            ),
        )

        with pytest.raises(DuplicateCandidateError) as exc_info:
            loop.run()

        partial = exc_info.value.result
        assert partial.n_successful == 2
        assert partial.best_configuration == {"k": 1}
        assert partial.state == LoopState.EXHAUSTED


class TestSearchLoopBehaviour:
    """End-to-end checks with the default surrogate and acquisition."""

    @staticmethod
    def _quadratic_loop(seed=0):
        space = SearchSpace().add_float("x", -10.0, 10.0)
        evaluator = FunctionEvaluator(lambda c: (c["x"] - 3.0) ** 2)
        config = TuningConfig(
            iterations=12, patience=12, initial_design_size=3,
            seed=seed, n_candidates=300, verbose=0,
        )
        return SearchLoop(space, evaluator, config)

    def test_best_equals_direct_scan(self):
        """Verify the reported best matches a scan of the history."""
        result = self._quadratic_loop().run()

        assert result.best == best_of(result.history, "minimize")
        assert result.best_value == min(o.value for o in result.history)

    def test_history_is_append_only_and_ordered(self):
        """Verify iteration numbers strictly increase."""
        result = self._quadratic_loop().run()

        iterations = [o.iteration for o in result.history]
        assert iterations == sorted(set(iterations))
        assert isinstance(result.history, tuple)

    def test_deterministic(self):
        """Verify equal seeds reproduce the same search."""
        a = self._quadratic_loop(seed=4).run()
        b = self._quadratic_loop(seed=4).run()

        assert [o.configuration for o in a.history] == [o.configuration for o in b.history]
        assert [o.value for o in a.history] == [o.value for o in b.history]

    def test_run_twice_rejected(self):
        """Verify a loop can only run once."""
        loop = self._quadratic_loop()
        loop.run()

        with pytest.raises(RuntimeError, match="once"):
            loop.run()

    def test_audit_logger_records_trials(self):
        """Verify every trial and failure reaches the audit logger."""
        audit = AuditLogger(name="test.loop.audit", console_level=100)
        space = SearchSpace().add_float("x", 0.0, 1.0)
        loop = SearchLoop(
            space,
            ScriptedEvaluator([3.0, 2.0, None, 1.0]),
            TuningConfig(iterations=4, patience=4, initial_design_size=2, verbose=0),
            surrogate=NullSurrogate(space),
            acquisition=RandomAcquisition(),
            audit_logger=audit,
        )

        loop.run()

        summary = audit.get_trial_summary()
        assert summary["n_trials"] == 4
        assert summary["n_failed"] == 1
        assert summary["best_score"] == 1.0


class TestSearchLoopInit:
    """Tests for construction-time validation."""

    def test_unresolved_space_rejected(self):
        """Verify a space with unresolved parameters is rejected."""
        space = SearchSpace().add_int("mtry", 1, None, finalize_rule=predictor_count)

        with pytest.raises(UnresolvedDomainError):
            SearchLoop(space, FunctionEvaluator(lambda c: 0.0))

    def test_empty_space_rejected(self):
        """Verify an empty space is rejected."""
        with pytest.raises(ValueError):
            SearchLoop(SearchSpace(), FunctionEvaluator(lambda c: 0.0))


class TestSearchResult:
    """Tests for SearchResult."""

    def test_to_frame(self):
        """Verify the results table has one row per trial in order."""
        loop, _ = _loop([5.0, 4.0, None, 3.0], iterations=4, patience=4)

        frame = loop.run().to_frame()

        assert list(frame["iteration"]) == [1, 2, 3, 4]
        assert list(frame["status"]) == ["ok", "ok", "failed", "ok"]
        assert "x" in frame.columns
        assert "mean_rmse" in frame.columns
        assert np.isnan(frame.loc[2, "value"])

    def test_empty_frame(self):
        """Verify an empty result gives an empty table with the base columns."""
        frame = SearchResult(state=LoopState.EXHAUSTED, best=None).to_frame()

        assert frame.empty
        assert "value" in frame.columns
