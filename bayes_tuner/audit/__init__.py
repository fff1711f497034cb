"""Audit logging of folds, trials and search progress."""

from bayes_tuner.audit.logger import AuditLogger, FoldLog, TrialLog

__all__ = ["AuditLogger", "FoldLog", "TrialLog"]
