"""SearchParameter: Tunable hyperparameter definitions."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Tuple, Union

import pandas as pd

from bayes_tuner.errors import UnresolvedDomainError


@dataclass(frozen=True)
class DataSummary:
    """
    Facts about the (preprocessed) training table that parameter
    domains may depend on.

    Attributes:
        n_rows: Number of training rows.
        n_predictors: Number of predictor columns after preprocessing.
        predictor_names: Names of the predictor columns.
    """

    n_rows: int
    n_predictors: int
    predictor_names: Tuple[str, ...] = ()

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, target: Optional[str] = None) -> DataSummary:
        """Summarise a table, excluding the target column if given."""
        predictors = [c for c in frame.columns if c != target]
        return cls(
            n_rows=len(frame),
            n_predictors=len(predictors),
            predictor_names=tuple(str(c) for c in predictors),
        )


def predictor_count(summary: DataSummary) -> int:
    """Finalize rule: upper bound equal to the number of predictors."""
    return summary.n_predictors


FinalizeRule = Callable[[DataSummary], Union[int, float]]


class SearchParameter(ABC):
    """Base class for search parameters."""

    def __init__(self, name: str) -> None:
        """
        Initialize a search parameter.

        Args:
            name: Parameter name.
        """
        self.name = name

    @property
    def is_resolved(self) -> bool:
        """Whether the domain is fully known (no pending finalize rule)."""
        return True

    @property
    def is_data_dependent(self) -> bool:
        """Whether the domain is derived from the data."""
        return False

    def finalize(self, summary: DataSummary) -> SearchParameter:
        """Resolve a data-dependent domain. Static parameters return self."""
        return self

    @abstractmethod
    def to_unit(self, value: Any) -> float:
        """Map a value onto [0, 1]."""
        pass

    @abstractmethod
    def from_unit(self, u: float) -> Any:
        """Map a point of [0, 1] back into the domain."""
        pass

    @abstractmethod
    def contains(self, value: Any) -> bool:
        """Whether a value lies inside the domain."""
        pass

    @abstractmethod
    def __repr__(self) -> str:
        pass


def _clip_unit(u: float) -> float:
    return min(max(float(u), 0.0), 1.0)


@dataclass(frozen=True)
class FloatParameter(SearchParameter):
    """
    Continuous parameter.

    Attributes:
        name: Parameter name.
        low: Lower bound.
        high: Upper bound, or None when ``finalize_rule`` supplies it.
        log: Whether the domain is normalized (and sampled) in log space.
        finalize_rule: Optional rule deriving ``high`` from a DataSummary.
    """

    name: str
    low: float
    high: Optional[float]
    log: bool = False
    finalize_rule: Optional[FinalizeRule] = None

    def __post_init__(self) -> None:
        if self.high is None and self.finalize_rule is None:
            raise ValueError(
                f"high is required for '{self.name}' unless a finalize_rule is given"
            )
        if self.high is not None and self.low >= self.high:
            raise ValueError(f"low ({self.low}) must be less than high ({self.high})")
        if self.log and self.low <= 0:
            raise ValueError(f"log scale requires positive low bound, got {self.low}")

    @property
    def is_resolved(self) -> bool:
        return self.high is not None

    @property
    def is_data_dependent(self) -> bool:
        return self.finalize_rule is not None

    def bounds(self) -> Tuple[float, float]:
        """Resolved (low, high) bounds."""
        if self.high is None:
            raise UnresolvedDomainError(self.name)
        return self.low, self.high

    def finalize(self, summary: DataSummary) -> FloatParameter:
        if self.finalize_rule is None:
            return self
        return replace(self, high=float(self.finalize_rule(summary)))

    def to_unit(self, value: Any) -> float:
        low, high = self.bounds()
        if self.log:
            u = (math.log(value) - math.log(low)) / (math.log(high) - math.log(low))
        else:
            u = (value - low) / (high - low)
        return _clip_unit(u)

    def from_unit(self, u: float) -> float:
        low, high = self.bounds()
        u = _clip_unit(u)
        if self.log:
            value = math.exp(math.log(low) + u * (math.log(high) - math.log(low)))
        else:
            value = low + u * (high - low)
        return float(min(max(value, low), high))

    def contains(self, value: Any) -> bool:
        low, high = self.bounds()
        return low <= value <= high

    def __repr__(self) -> str:
        log_str = ", log" if self.log else ""
        high = "data" if self.high is None else self.high
        return f"Float({self.name}: [{self.low}, {high}]{log_str})"


@dataclass(frozen=True)
class IntParameter(SearchParameter):
    """
    Integer parameter with inclusive bounds.

    Each integer owns an equal-width slice of the unit interval, so a
    uniform draw on [0, 1] gives every value the same probability.

    Attributes:
        name: Parameter name.
        low: Lower bound (inclusive).
        high: Upper bound (inclusive), or None when ``finalize_rule`` supplies it.
        log: Whether the domain is normalized in log space.
        finalize_rule: Optional rule deriving ``high`` from a DataSummary.
    """

    name: str
    low: int
    high: Optional[int]
    log: bool = False
    finalize_rule: Optional[FinalizeRule] = None

    def __post_init__(self) -> None:
        if self.high is None and self.finalize_rule is None:
            raise ValueError(
                f"high is required for '{self.name}' unless a finalize_rule is given"
            )
        if self.high is not None and self.low >= self.high:
            raise ValueError(f"low ({self.low}) must be less than high ({self.high})")
        if self.log and self.low <= 0:
            raise ValueError(f"log scale requires positive low bound, got {self.low}")

    @property
    def is_resolved(self) -> bool:
        return self.high is not None

    @property
    def is_data_dependent(self) -> bool:
        return self.finalize_rule is not None

    def bounds(self) -> Tuple[int, int]:
        """Resolved (low, high) bounds."""
        if self.high is None:
            raise UnresolvedDomainError(self.name)
        return self.low, self.high

    def finalize(self, summary: DataSummary) -> IntParameter:
        if self.finalize_rule is None:
            return self
        return replace(self, high=int(self.finalize_rule(summary)))

    def _edges(self) -> Tuple[float, float]:
        low, high = self.bounds()
        if self.log:
            return math.log(low - 0.5), math.log(high + 0.5)
        return low - 0.5, high + 0.5

    def to_unit(self, value: Any) -> float:
        lo, hi = self._edges()
        x = math.log(value) if self.log else float(value)
        return _clip_unit((x - lo) / (hi - lo))

    def from_unit(self, u: float) -> int:
        low, high = self.bounds()
        lo, hi = self._edges()
        x = lo + _clip_unit(u) * (hi - lo)
        value = math.exp(x) if self.log else x
        return int(min(max(round(value), low), high))

    def contains(self, value: Any) -> bool:
        low, high = self.bounds()
        return low <= value <= high and float(value).is_integer()

    def __repr__(self) -> str:
        log_str = ", log" if self.log else ""
        high = "data" if self.high is None else self.high
        return f"Int({self.name}: [{self.low}, {high}]{log_str})"


@dataclass(frozen=True)
class ProportionParameter(FloatParameter):
    """
    Continuous parameter restricted to [0, 1] (sampling fractions).

    Attributes:
        name: Parameter name.
        low: Lower bound, at least 0.
        high: Upper bound, at most 1.
    """

    low: float = 0.0
    high: Optional[float] = 1.0

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.low < 0.0 or (self.high is not None and self.high > 1.0):
            raise ValueError(
                f"proportion bounds must lie in [0, 1], got [{self.low}, {self.high}]"
            )

    def finalize(self, summary: DataSummary) -> ProportionParameter:
        if self.finalize_rule is None:
            return self
        return replace(self, high=min(1.0, float(self.finalize_rule(summary))))

    def __repr__(self) -> str:
        high = "data" if self.high is None else self.high
        return f"Prop({self.name}: [{self.low}, {high}])"


def parse_shorthand(
    name: str, value: Union[Tuple, List]
) -> SearchParameter:
    """
    Parse shorthand parameter notation.

    Shorthand formats:
    - (low, high): Float or Int range (inferred from types)
    - (low, high, "log"): Float/Int with log scale

    Args:
        name: Parameter name.
        value: Shorthand value.

    Returns:
        Appropriate SearchParameter instance.
    """
    if not isinstance(value, (tuple, list)):
        raise ValueError(f"Cannot parse shorthand value: {value}")
    if len(value) < 2:
        raise ValueError(f"Tuple must have at least 2 elements: {value}")

    low, high = value[0], value[1]
    log = len(value) > 2 and value[2] == "log"

    if isinstance(low, int) and isinstance(high, int):
        return IntParameter(name=name, low=low, high=high, log=log)
    return FloatParameter(name=name, low=float(low), high=float(high), log=log)
