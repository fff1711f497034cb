"""Tests for SearchSpace."""

import numpy as np
import pytest

from bayes_tuner.errors import UnresolvedDomainError
from bayes_tuner.search.configuration import Configuration
from bayes_tuner.search.parameter import (
    DataSummary,
    FloatParameter,
    IntParameter,
    predictor_count,
)
from bayes_tuner.search.space import SearchSpace


class TestSearchSpaceBuilding:
    """Tests for declaring and editing spaces."""

    def test_fluent_chaining(self):
        """Verify add_* methods chain and keep declaration order."""
        space = SearchSpace().add_float("a", 0.0, 1.0).add_int("b", 1, 5).add_proportion("c")

        assert space.parameter_names == ["a", "b", "c"]
        assert space.dimensionality == 3

    def test_declare_rejects_duplicates(self):
        """Verify declare rejects repeated names."""
        with pytest.raises(ValueError, match="Duplicate"):
            SearchSpace.declare([FloatParameter("a", 0, 1), FloatParameter("a", 0, 2)])

    def test_from_dict(self):
        """Verify from_dict builds typed parameters and accepts shorthand."""
        space = SearchSpace.from_dict(
            {
                "lr": {"type": "float", "low": 0.001, "high": 0.3, "log": True},
                "depth": {"type": "int", "low": 1, "high": 10},
                "frac": {"type": "proportion"},
                "k": (1, 4),
            }
        )

        assert isinstance(space.get_parameter("depth"), IntParameter)
        assert space.get_parameter("lr").log
        assert isinstance(space.get_parameter("k"), IntParameter)

    def test_from_dict_unknown_type(self):
        """Verify unknown parameter types are rejected."""
        with pytest.raises(ValueError, match="Unknown parameter type"):
            SearchSpace.from_dict({"x": {"type": "categorical", "low": 0, "high": 1}})

    def test_remove_parameter(self):
        """Verify parameters can be removed by name."""
        space = SearchSpace().add_float("a", 0.0, 1.0).add_float("b", 0.0, 1.0)

        space.remove_parameter("a")

        assert "a" not in space
        assert len(space) == 1


class TestSampling:
    """Tests for sample and sample_design."""

    def test_samples_lie_in_domain(self, mixed_space):
        """Verify every sampled configuration is inside the space."""
        for config in mixed_space.sample_design(20, random_state=0):
            assert mixed_space.contains(config)

    def test_design_is_deterministic(self, mixed_space):
        """Verify the same seed gives the same design."""
        a = mixed_space.sample_design(5, random_state=7)
        b = mixed_space.sample_design(5, random_state=7)

        assert a == b

    def test_random_strategy(self, mixed_space):
        """Verify the random strategy is accepted by name."""
        design = mixed_space.sample_design(4, strategy="random", random_state=1)

        assert len(design) == 4

    def test_latin_hypercube_covers_strata(self, quadratic_space):
        """Verify a Latin hypercube puts one point in each stratum."""
        design = quadratic_space.sample_design(10, random_state=3)
        units = quadratic_space.to_unit_array(design)[:, 0]

        strata = np.floor(units * 10).astype(int)
        assert sorted(strata) == list(range(10))

    def test_sample_returns_configuration(self, mixed_space):
        """Verify sample returns a single Configuration."""
        config = mixed_space.sample(random_state=0)

        assert isinstance(config, Configuration)
        assert set(config) == set(mixed_space.parameter_names)

    def test_empty_space_raises(self):
        """Verify sampling an empty space raises."""
        with pytest.raises(ValueError, match="no parameters"):
            SearchSpace().sample(random_state=0)

    def test_unresolved_space_raises(self):
        """Verify sampling before finalize raises UnresolvedDomainError."""
        space = SearchSpace().add_int("mtry", 1, None, finalize_rule=predictor_count)

        with pytest.raises(UnresolvedDomainError):
            space.sample_design(3, random_state=0)


class TestFinalize:
    """Tests for SearchSpace.finalize."""

    def test_finalize_returns_new_space(self):
        """Verify finalize resolves data-dependent bounds without mutating."""
        space = (
            SearchSpace()
            .add_float("lr", 1e-3, 0.3, log=True)
            .add_int("mtry", 1, None, finalize_rule=predictor_count)
        )

        resolved = space.finalize(DataSummary(n_rows=50, n_predictors=9))

        assert resolved.is_resolved
        assert resolved.get_parameter("mtry").bounds() == (1, 9)
        assert not space.is_resolved
        assert resolved.get_parameter("lr") is space.get_parameter("lr")


class TestNormalization:
    """Tests for unit-cube normalization."""

    def test_to_unit_shape_and_range(self, mixed_space):
        """Verify normalized points lie in the unit hypercube."""
        config = mixed_space.sample(random_state=2)

        point = mixed_space.to_unit(config)

        assert point.shape == (4,)
        assert np.all((point >= 0) & (point <= 1))

    def test_from_unit_roundtrip(self, mixed_space):
        """Verify decoding a normalized sample returns the same configuration."""
        config = mixed_space.sample(random_state=5)

        decoded = mixed_space.from_unit(mixed_space.to_unit(config))

        assert decoded["depth"] == config["depth"]
        assert decoded["learn_rate"] == pytest.approx(config["learn_rate"])

    def test_from_unit_dimension_mismatch(self, mixed_space):
        """Verify from_unit rejects points of the wrong size."""
        with pytest.raises(ValueError, match="dimension"):
            mixed_space.from_unit(np.zeros(2))

    def test_distance(self, quadratic_space):
        """Verify distance is Euclidean in normalized space."""
        d = quadratic_space.distance({"x": -10.0}, {"x": 10.0})

        assert d == pytest.approx(1.0)

    def test_contains_requires_all_names(self, mixed_space):
        """Verify contains rejects partial configurations."""
        assert not mixed_space.contains({"alpha": 0.5})

    def test_to_unit_array_empty(self, mixed_space):
        """Verify an empty iterable gives an (0, d) array."""
        assert mixed_space.to_unit_array([]).shape == (0, 4)
