"""Configuration: an immutable assignment of values to hyperparameters."""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Tuple


class Configuration(Mapping[str, Any]):
    """
    Immutable, hashable mapping from parameter name to value.

    Example:
        config = Configuration({"tree_depth": 6, "learn_rate": 0.05})
        config["tree_depth"]  # 6
        config.with_values(tree_depth=8)  # new Configuration
    """

    __slots__ = ("_values", "_key")

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values: Dict[str, Any] = dict(values)
        self._key: Tuple[Tuple[str, Any], ...] = tuple(sorted(self._values.items()))

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __hash__(self) -> int:
        return hash(self._key)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Configuration):
            return self._key == other._key
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_key"):
            raise AttributeError("Configuration is immutable")
        super().__setattr__(name, value)

    def as_dict(self) -> Dict[str, Any]:
        """Return a plain (mutable) copy of the values."""
        return dict(self._values)

    def with_values(self, **updates: Any) -> Configuration:
        """Create a new configuration with some values replaced."""
        values = dict(self._values)
        values.update(updates)
        return Configuration(values)

    def __repr__(self) -> str:
        items = ", ".join(f"{k}={_fmt(v)}" for k, v in self._values.items())
        return f"Configuration({items})"


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.4g}"
    return repr(value)
