"""SearchSpace: Hyperparameter search space with unit-cube normalization."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import numpy as np

from bayes_tuner.errors import UnresolvedDomainError
from bayes_tuner.search.configuration import Configuration
from bayes_tuner.search.design import DesignStrategy, RandomState, unit_design
from bayes_tuner.search.parameter import (
    DataSummary,
    FinalizeRule,
    FloatParameter,
    IntParameter,
    ProportionParameter,
    SearchParameter,
    parse_shorthand,
)


class SearchSpace:
    """
    Hyperparameter search space.

    Every parameter is normalized onto [0, 1] (min-max, or log-min-max for
    log-scale parameters), so a configuration corresponds to a point of the
    unit hypercube. Surrogate models and acquisition optimizers work on
    those points; ``from_unit`` decodes them back into configurations.

    Example:
        space = SearchSpace()
        space.add_float("learn_rate", 1e-3, 0.3, log=True)
        space.add_int("tree_depth", 1, 15)
        space.add_int("mtry", 1, None, finalize_rule=predictor_count)

        space = space.finalize(DataSummary.from_frame(train, "SalePrice"))
        design = space.sample_design(5, random_state=42)
    """

    def __init__(self) -> None:
        self._parameters: Dict[str, SearchParameter] = {}

    @classmethod
    def declare(cls, parameters: Iterable[SearchParameter]) -> SearchSpace:
        """
        Build a space from parameter objects, keeping their order.

        Raises:
            ValueError: If two parameters share a name.
        """
        space = cls()
        for param in parameters:
            if param.name in space:
                raise ValueError(f"Duplicate parameter name: {param.name}")
            space.add_parameter(param)
        return space

    def add_float(
        self,
        name: str,
        low: float,
        high: Optional[float],
        log: bool = False,
        finalize_rule: Optional[FinalizeRule] = None,
    ) -> SearchSpace:
        """
        Declare a continuous parameter on [low, high].

        ``high`` may be None when ``finalize_rule`` derives it from the
        preprocessed data at ``finalize`` time. Log-scale parameters are
        normalized (and therefore sampled) uniformly in log space.
        """
        return self.add_parameter(
            FloatParameter(name=name, low=low, high=high, log=log, finalize_rule=finalize_rule)
        )

    def add_int(
        self,
        name: str,
        low: int,
        high: Optional[int],
        log: bool = False,
        finalize_rule: Optional[FinalizeRule] = None,
    ) -> SearchSpace:
        """Declare an integer parameter on [low, high], both inclusive."""
        return self.add_parameter(
            IntParameter(name=name, low=low, high=high, log=log, finalize_rule=finalize_rule)
        )

    def add_proportion(self, name: str, low: float = 0.0, high: float = 1.0) -> SearchSpace:
        """Declare a fraction, such as the row subsample rate."""
        return self.add_parameter(ProportionParameter(name=name, low=low, high=high))

    def add_parameter(self, param: SearchParameter) -> SearchSpace:
        """Add (or replace) a parameter; returns self for chaining."""
        self._parameters[param.name] = param
        return self

    def add_from_shorthand(self, **kwargs) -> SearchSpace:
        """
        Declare parameters from tuples: ``tree_depth=(1, 15), learn_rate=(1e-3, 0.3, "log")``.

        Integer bounds give an integer parameter, anything else a float.
        """
        for name, value in kwargs.items():
            self.add_parameter(parse_shorthand(name, value))
        return self

    def get_parameter(self, name: str) -> Optional[SearchParameter]:
        return self._parameters.get(name)

    def remove_parameter(self, name: str) -> SearchSpace:
        self._parameters.pop(name, None)
        return self

    @property
    def parameter_names(self) -> List[str]:
        """List of all parameter names."""
        return list(self._parameters.keys())

    @property
    def dimensionality(self) -> int:
        """Number of dimensions of the normalized space."""
        return len(self._parameters)

    @property
    def is_resolved(self) -> bool:
        """Whether every parameter domain is known."""
        return all(p.is_resolved for p in self._parameters.values())

    def finalize(self, summary: DataSummary) -> SearchSpace:
        """
        Resolve data-dependent parameters against a data summary.

        Args:
            summary: Summary of the preprocessed training table.

        Returns:
            New SearchSpace; this one is left unchanged.
        """
        return SearchSpace.declare(p.finalize(summary) for p in self._parameters.values())

    def _check_resolved(self) -> None:
        if not self._parameters:
            raise ValueError("Search space has no parameters")
        for param in self._parameters.values():
            if not param.is_resolved:
                raise UnresolvedDomainError(param.name)

    def sample(
        self,
        strategy: Union[DesignStrategy, str] = DesignStrategy.RANDOM,
        random_state: RandomState = None,
    ) -> Configuration:
        """
        Sample a single configuration.

        Args:
            strategy: Sampling strategy.
            random_state: Seed or numpy Generator.

        Returns:
            Configuration inside every parameter domain.
        """
        return self.sample_design(1, strategy=strategy, random_state=random_state)[0]

    def sample_design(
        self,
        n: int,
        strategy: Union[DesignStrategy, str] = DesignStrategy.LATIN_HYPERCUBE,
        random_state: RandomState = None,
    ) -> List[Configuration]:
        """
        Sample an initial design of ``n`` configurations.

        Args:
            n: Number of configurations.
            strategy: "latin_hypercube" (space-filling) or "random".
            random_state: Seed or numpy Generator.

        Returns:
            List of configurations.
        """
        self._check_resolved()
        points = unit_design(n, self.dimensionality, strategy, random_state)
        return [self.from_unit(row) for row in points]

    def to_unit(self, config: Mapping[str, Any]) -> np.ndarray:
        """Normalize a configuration into a point of the unit hypercube."""
        self._check_resolved()
        return np.array(
            [param.to_unit(config[name]) for name, param in self._parameters.items()],
            dtype=float,
        )

    def to_unit_array(self, configs: Iterable[Mapping[str, Any]]) -> np.ndarray:
        """Normalize several configurations into an (n, d) array."""
        rows = [self.to_unit(c) for c in configs]
        if not rows:
            return np.empty((0, self.dimensionality))
        return np.vstack(rows)

    def from_unit(self, point: np.ndarray) -> Configuration:
        """Decode a point of the unit hypercube into a configuration."""
        self._check_resolved()
        point = np.asarray(point, dtype=float).ravel()
        if point.shape[0] != self.dimensionality:
            raise ValueError(
                f"Expected a point of dimension {self.dimensionality}, got {point.shape[0]}"
            )
        return Configuration(
            {
                name: param.from_unit(u)
                for (name, param), u in zip(self._parameters.items(), point)
            }
        )

    def distance(self, a: Mapping[str, Any], b: Mapping[str, Any]) -> float:
        """Euclidean distance between two configurations in normalized space."""
        return float(np.linalg.norm(self.to_unit(a) - self.to_unit(b)))

    def contains(self, config: Mapping[str, Any]) -> bool:
        """Whether a configuration assigns an in-domain value to every parameter."""
        self._check_resolved()
        return set(config) == set(self._parameters) and all(
            param.contains(config[name]) for name, param in self._parameters.items()
        )

    def __len__(self) -> int:
        return len(self._parameters)

    def __contains__(self, name: str) -> bool:
        return name in self._parameters

    def __iter__(self) -> Iterator[SearchParameter]:
        return iter(self._parameters.values())

    def __repr__(self) -> str:
        return "SearchSpace([{}])".format(", ".join(repr(p) for p in self))

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> SearchSpace:
        """
        Build a space from plain data, e.g. a parsed YAML or JSON file.

        Each value is either a mapping with ``type`` ("float", "int" or
        "proportion"; default "float"), ``low``, ``high`` and optional
        ``log``, or a shorthand tuple such as ``(1, 15)`` or
        ``(0.001, 0.3, "log")``.

        Example:
            SearchSpace.from_dict({
                "tree_depth": (1, 15),
                "learn_rate": {"type": "float", "low": 1e-3, "high": 0.3, "log": True},
                "sample_size": {"type": "proportion", "low": 0.1},
            })
        """
        space = cls()
        for name, entry in config.items():
            if isinstance(entry, (tuple, list)):
                space.add_parameter(parse_shorthand(name, entry))
                continue
            if not isinstance(entry, dict):
                raise ValueError(f"Cannot parse parameter '{name}': {entry!r}")

            kind = entry.get("type", "float")
            if kind == "proportion":
                space.add_proportion(name, entry.get("low", 0.0), entry.get("high", 1.0))
            elif kind in ("float", "int"):
                add = space.add_float if kind == "float" else space.add_int
                add(name, entry["low"], entry["high"], log=entry.get("log", False))
            else:
                raise ValueError(f"Unknown parameter type: {kind}")
        return space
