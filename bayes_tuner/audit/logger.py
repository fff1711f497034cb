"""AuditLogger: Record of every fold, trial and phase of a search.

Diagnostics go through module loggers; the audit logger is the
user-facing trail. It keeps structured entries in memory (for summaries
and JSON export) and mirrors each one as a line on a named logger with a
console handler and an optional file handler.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from bayes_tuner.core.data.cv import CVFold

COMPLETE = "COMPLETE"
FAIL = "FAIL"

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _now() -> str:
    return datetime.now().isoformat()


@dataclass
class FoldLog:
    """One fold of one trial: held-out score and fit time."""

    fold_idx: int
    repeat_idx: int
    score: float
    fit_time: float
    params: Dict[str, Any]
    timestamp: str
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TrialLog:
    """
    One evaluated configuration.

    ``score`` is None and ``error`` is set when ``state`` is FAIL.
    """

    trial_id: int
    params: Dict[str, Any]
    score: Optional[float]
    duration: float
    timestamp: str
    state: str = COMPLETE
    phase: str = ""
    error: str = ""

    @property
    def failed(self) -> bool:
        return self.state == FAIL


class AuditLogger:
    """
    Audit trail for a tuning run.

    Pass one to ``tune_model`` (or ``SearchLoop`` and
    ``CrossValidationEvaluator``) to collect per-fold scores and timings,
    per-trial values, failed trials with their fold, and loop phase
    transitions.

    Example:
        audit = AuditLogger(log_file="runs/housing.log")
        result = tune_model(train, "SalePrice", space, trainer, audit_logger=audit)
        audit.get_trial_summary()
        audit.export_logs("runs/housing.json")
    """

    def __init__(
        self,
        log_file: Optional[str] = None,
        console_level: int = logging.INFO,
        file_level: int = logging.DEBUG,
        name: str = "bayes_tuner.audit",
    ) -> None:
        """
        Args:
            log_file: File to mirror entries to; parent directories are created.
            console_level: Minimum level written to stdout.
            file_level: Minimum level written to ``log_file``.
            name: Name of the underlying ``logging`` logger.
        """
        self.name = name
        self.log_file = Path(log_file) if log_file else None
        self._fold_logs: List[FoldLog] = []
        self._trial_logs: List[TrialLog] = []
        self._logger = self._configure(console_level, file_level)

    def _configure(self, console_level: int, file_level: int) -> logging.Logger:
        # Reconfiguring a name replaces its handlers so repeated runs do not duplicate lines
        log = logging.getLogger(self.name)
        log.setLevel(logging.DEBUG)
        log.handlers.clear()
        log.propagate = False

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        log.addHandler(console)

        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            to_file = logging.FileHandler(self.log_file)
            to_file.setLevel(file_level)
            to_file.setFormatter(logging.Formatter(FILE_FORMAT))
            log.addHandler(to_file)
        return log

    # -- recording ----------------------------------------------------------

    def log_fold(
        self,
        fold: CVFold,
        score: float,
        fit_time: float,
        params: Dict[str, Any],
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record the held-out score and fit time of one fold."""
        self._fold_logs.append(
            FoldLog(
                fold_idx=fold.fold_idx,
                repeat_idx=fold.repeat_idx,
                score=score,
                fit_time=fit_time,
                params=params,
                timestamp=_now(),
                extra=dict(extra or {}),
            )
        )
        self._logger.debug("Fold %d: score=%.4f, time=%.2fs", fold.fold_idx, score, fit_time)

    def log_trial(
        self,
        trial_id: int,
        params: Dict[str, Any],
        score: float,
        duration: float,
        phase: str = "",
        best_score: Optional[float] = None,
    ) -> None:
        """
        Record a successful trial.

        Args:
            trial_id: Iteration number of the trial (1-based).
            params: Configuration evaluated.
            score: Aggregate objective value.
            duration: Wall-clock seconds.
            phase: Loop state the trial ran in ("seeding" or "iterating").
            best_score: Best-so-far value after this trial, for the log line.
        """
        self._trial_logs.append(
            TrialLog(trial_id, params, score, duration, _now(), phase=phase)
        )
        if best_score is None:
            self._logger.info(
                "Trial %d [%s]: score=%.4f, duration=%.2fs", trial_id, phase, score, duration
            )
        else:
            self._logger.info(
                "Trial %d [%s]: score=%.4f, best=%.4f, duration=%.2fs",
                trial_id, phase, score, best_score, duration,
            )

    def log_failure(
        self,
        trial_id: int,
        params: Dict[str, Any],
        error: str,
        fold_idx: Optional[int] = None,
        phase: str = "",
    ) -> None:
        """Record a trial whose evaluation raised; ``fold_idx`` is the failing fold."""
        self._trial_logs.append(
            TrialLog(
                trial_id, params, None, 0.0, _now(), state=FAIL, phase=phase, error=error
            )
        )
        where = "" if fold_idx is None else f" (fold {fold_idx})"
        self._logger.warning("Trial %d [%s] failed%s: %s", trial_id, phase, where, error)

    def log_phase(self, phase: str, detail: str = "") -> None:
        if detail:
            self._logger.info("Entering %s: %s", phase, detail)
        else:
            self._logger.info("Entering %s", phase)

    def log_search_complete(
        self,
        state: str,
        best_score: Optional[float],
        best_params: Optional[Dict[str, Any]],
        n_trials: int,
        duration: float,
    ) -> None:
        """Write the closing line of a run."""
        best = "n/a" if best_score is None else f"{best_score:.4f}"
        self._logger.info(
            "Search %s after %d trials: best_score=%s, duration=%.1fs",
            state, n_trials, best, duration,
        )
        self._logger.debug("Best params: %s", best_params)

    def log_warning(self, message: str) -> None:
        self._logger.warning(message)

    def log_error(self, message: str, exc: Optional[Exception] = None) -> None:
        if exc is None:
            self._logger.error(message)
        else:
            self._logger.error("%s: %s", message, exc, exc_info=exc)

    # -- summaries ----------------------------------------------------------

    def get_fold_summary(self) -> Dict[str, Any]:
        """
        Aggregate the recorded folds.

        Returns:
            n_folds, mean/std (population) of scores and total/mean fit
            time; empty when nothing was recorded.
        """
        if not self._fold_logs:
            return {}
        scores = np.array([entry.score for entry in self._fold_logs], dtype=float)
        times = np.array([entry.fit_time for entry in self._fold_logs], dtype=float)
        return {
            "n_folds": len(scores),
            "mean_score": float(scores.mean()),
            "std_score": float(scores.std()),
            "total_time": float(times.sum()),
            "mean_time": float(times.mean()),
        }

    def get_trial_summary(self, greater_is_better: bool = False) -> Dict[str, Any]:
        """
        Aggregate the recorded trials.

        Args:
            greater_is_better: Direction used to pick best and worst scores.

        Returns:
            n_trials, n_failed, best/worst score among completed trials
            (None if every trial failed) and total duration; empty when
            nothing was recorded.
        """
        if not self._trial_logs:
            return {}
        scores = [entry.score for entry in self._trial_logs if not entry.failed]
        best, worst = (max, min) if greater_is_better else (min, max)
        return {
            "n_trials": len(self._trial_logs),
            "n_failed": sum(entry.failed for entry in self._trial_logs),
            "best_score": best(scores) if scores else None,
            "worst_score": worst(scores) if scores else None,
            "total_duration": float(sum(entry.duration for entry in self._trial_logs)),
        }

    @property
    def trial_logs(self) -> List[TrialLog]:
        return list(self._trial_logs)

    @property
    def fold_logs(self) -> List[FoldLog]:
        return list(self._fold_logs)

    def export_logs(self, path: str) -> None:
        """Write every recorded fold and trial entry to a JSON file."""
        payload = {
            "fold_logs": [asdict(entry) for entry in self._fold_logs],
            "trial_logs": [asdict(entry) for entry in self._trial_logs],
        }
        Path(path).write_text(json.dumps(payload, indent=2, default=str))

    def clear(self) -> None:
        self._fold_logs.clear()
        self._trial_logs.clear()

    def __repr__(self) -> str:
        return (
            f"AuditLogger(name={self.name}, folds={len(self._fold_logs)}, "
            f"trials={len(self._trial_logs)})"
        )
