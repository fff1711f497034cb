"""DataContext: Immutable container for a training table snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class DataContext:
    """
    Immutable container for a training table.

    The table keeps its target column alongside the predictors so that
    the preprocessing recipe can transform both together.

    Attributes:
        data: Full table (predictors and target).
        target: Name of the numeric target column.
        indices: Original row positions when this is a subset (optional).
        metadata: Additional metadata for the context.
    """

    data: pd.DataFrame
    target: str
    indices: Optional[np.ndarray] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate data consistency."""
        if self.target not in self.data.columns:
            raise ValueError(f"Target column '{self.target}' not found in data")
        if not pd.api.types.is_numeric_dtype(self.data[self.target]):
            raise ValueError(f"Target column '{self.target}' must be numeric")
        if self.data[self.target].isnull().any():
            n_missing = int(self.data[self.target].isnull().sum())
            raise ValueError(f"Target column '{self.target}' has {n_missing} missing values")

    @property
    def X(self) -> pd.DataFrame:
        """Predictor columns."""
        return self.data.drop(columns=[self.target])

    @property
    def y(self) -> pd.Series:
        """Target column."""
        return self.data[self.target]

    @property
    def n_samples(self) -> int:
        """Number of rows."""
        return len(self.data)

    @property
    def n_features(self) -> int:
        """Number of raw predictor columns."""
        return self.data.shape[1] - 1

    @property
    def feature_names(self) -> List[str]:
        """List of raw predictor names."""
        return [c for c in self.data.columns if c != self.target]

    def with_indices(self, indices: np.ndarray) -> DataContext:
        """Create a new context holding only the given row positions."""
        return DataContext(
            data=self.data.iloc[indices].reset_index(drop=True),
            target=self.target,
            indices=np.asarray(indices),
            metadata=self.metadata,
        )

    def with_metadata(self, key: str, value: Any) -> DataContext:
        """Create a new context with additional metadata."""
        new_metadata = dict(self.metadata)
        new_metadata[key] = value
        return DataContext(
            data=self.data,
            target=self.target,
            indices=self.indices,
            metadata=new_metadata,
        )

    def __repr__(self) -> str:
        return (
            f"DataContext(n_samples={self.n_samples}, n_features={self.n_features}, "
            f"target={self.target})"
        )
