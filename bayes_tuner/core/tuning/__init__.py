"""Search loop, observation history and tuning configuration."""

from bayes_tuner.core.tuning.config import TuningConfig
from bayes_tuner.core.tuning.history import FailedTrial, History, Observation
from bayes_tuner.core.tuning.loop import (
    CancellationToken,
    LoopState,
    SearchLoop,
    SearchResult,
)

__all__ = [
    "TuningConfig",
    "FailedTrial",
    "History",
    "Observation",
    "CancellationToken",
    "LoopState",
    "SearchLoop",
    "SearchResult",
]
