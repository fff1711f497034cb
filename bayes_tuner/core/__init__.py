"""Core components: data handling and the search loop."""

from bayes_tuner.core.data import CVConfig, CVFold, DataContext
from bayes_tuner.core.tuning import (
    CancellationToken,
    History,
    LoopState,
    Observation,
    SearchLoop,
    SearchResult,
    TuningConfig,
)

__all__ = [
    "DataContext",
    "CVConfig",
    "CVFold",
    "CancellationToken",
    "History",
    "LoopState",
    "Observation",
    "SearchLoop",
    "SearchResult",
    "TuningConfig",
]
