"""Tests for DataContext."""

from dataclasses import FrozenInstanceError

import numpy as np
import pandas as pd
import pytest

from bayes_tuner.core.data.context import DataContext


class TestDataContextValidation:
    """Tests for DataContext validation."""

    def test_missing_target(self, housing_frame):
        """Verify an absent target column is rejected."""
        with pytest.raises(ValueError, match="not found"):
            DataContext(data=housing_frame, target="Price")

    def test_non_numeric_target(self, housing_frame):
        """Verify a categorical target is rejected."""
        with pytest.raises(ValueError, match="numeric"):
            DataContext(data=housing_frame, target="Quality")

    def test_missing_target_values(self, housing_frame):
        """Verify NaN target values are rejected."""
        frame = housing_frame.copy()
        frame.loc[0, "SalePrice"] = np.nan

        with pytest.raises(ValueError, match="missing"):
            DataContext(data=frame, target="SalePrice")


class TestDataContextProperties:
    """Tests for DataContext accessors."""

    def test_x_and_y(self, housing_frame):
        """Verify X excludes and y selects the target."""
        ctx = DataContext(data=housing_frame, target="SalePrice")

        assert "SalePrice" not in ctx.X.columns
        assert ctx.y.name == "SalePrice"
        assert ctx.n_samples == len(housing_frame)
        assert ctx.n_features == housing_frame.shape[1] - 1
        assert ctx.feature_names == ["Id", "LotArea", "Rooms", "Quality"]

    def test_frozen(self, housing_frame):
        """Verify the context cannot be reassigned."""
        ctx = DataContext(data=housing_frame, target="SalePrice")

        with pytest.raises(FrozenInstanceError):
            ctx.target = "Id"


class TestDataContextWithIndices:
    """Tests for DataContext.with_indices."""

    def test_subset_rows(self, housing_frame):
        """Verify with_indices selects rows by position and resets the index."""
        ctx = DataContext(data=housing_frame, target="SalePrice")

        sub = ctx.with_indices(np.array([4, 0, 7]))

        assert sub.n_samples == 3
        assert list(sub.data.index) == [0, 1, 2]
        assert list(sub.data["Id"]) == [5, 1, 8]
        np.testing.assert_array_equal(sub.indices, [4, 0, 7])
        assert ctx.n_samples == len(housing_frame)

    def test_with_metadata(self, housing_frame):
        """Verify with_metadata returns a new context."""
        ctx = DataContext(data=housing_frame, target="SalePrice")

        updated = ctx.with_metadata("source", "train.csv")

        assert updated.metadata == {"source": "train.csv"}
        assert ctx.metadata == {}
