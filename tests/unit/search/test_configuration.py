"""Tests for Configuration."""

import pytest

from bayes_tuner.search.configuration import Configuration


class TestConfiguration:
    """Tests for the immutable configuration mapping."""

    def test_mapping_interface(self):
        """Verify Configuration behaves like a read-only mapping."""
        config = Configuration({"a": 1, "b": 0.5})

        assert config["a"] == 1
        assert len(config) == 2
        assert dict(config) == {"a": 1, "b": 0.5}

    def test_hashable_and_order_independent(self):
        """Verify equal configurations hash equally regardless of key order."""
        a = Configuration({"a": 1, "b": 2})
        b = Configuration({"b": 2, "a": 1})

        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_equals_plain_dict(self):
        """Verify equality with a plain mapping."""
        assert Configuration({"a": 1}) == {"a": 1}

    def test_immutable(self):
        """Verify attributes cannot be reassigned and items cannot be set."""
        config = Configuration({"a": 1})

        with pytest.raises(AttributeError):
            config._values = {}
        with pytest.raises(TypeError):
            config["a"] = 2

    def test_input_copied(self):
        """Verify later changes to the source dict do not leak in."""
        values = {"a": 1}
        config = Configuration(values)
        values["a"] = 99

        assert config["a"] == 1

    def test_with_values(self):
        """Verify with_values returns a new configuration."""
        config = Configuration({"a": 1, "b": 2})

        updated = config.with_values(b=3)

        assert updated["b"] == 3
        assert config["b"] == 2

    def test_repr_formats_floats(self):
        """Verify floats are shortened in repr."""
        assert "x=0.1235" in repr(Configuration({"x": 0.123456789}))
