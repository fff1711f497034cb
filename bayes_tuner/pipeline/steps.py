"""Preprocessing steps as pure fit/apply functions on DataFrames.

Each ``fit_*`` function learns the statistics a step needs from a
training table; the matching ``apply_*`` function uses them on any
table. No function mutates its input.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

MISSING_LEVEL = "missing"


def numeric_columns(frame: pd.DataFrame, exclude: Sequence[str] = ()) -> List[str]:
    """Columns with a numeric dtype (bools included)."""
    return [
        c for c in frame.columns
        if c not in exclude and pd.api.types.is_numeric_dtype(frame[c])
    ]


def categorical_columns(frame: pd.DataFrame, exclude: Sequence[str] = ()) -> List[str]:
    """Columns that are not numeric."""
    return [
        c for c in frame.columns
        if c not in exclude and not pd.api.types.is_numeric_dtype(frame[c])
    ]


def remove_columns(frame: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Drop the named columns; names absent from the frame are ignored."""
    present = [c for c in columns if c in frame.columns]
    return frame.drop(columns=present)


def log_transform(frame: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """
    Apply ``log1p`` to the named columns (those present).

    Raises:
        ValueError: If a column holds values below zero.
    """
    out = frame.copy()
    for col in columns:
        if col not in out.columns:
            continue
        values = out[col].astype(float)
        if (values < 0).any():
            raise ValueError(f"Cannot log-transform '{col}': negative values present")
        out[col] = np.log1p(values)
    return out


def fit_normalize(
    frame: pd.DataFrame, columns: Sequence[str]
) -> Dict[str, Tuple[float, float]]:
    """Learn (mean, std) per column, ignoring missing values."""
    stats = {}
    for col in columns:
        values = frame[col].astype(float)
        mean = float(values.mean()) if values.notna().any() else 0.0
        std = float(values.std(ddof=0)) if values.notna().sum() > 1 else 0.0
        stats[col] = (mean, std if std > 0 and np.isfinite(std) else 1.0)
    return stats


def apply_normalize(
    frame: pd.DataFrame, stats: Dict[str, Tuple[float, float]]
) -> pd.DataFrame:
    """Center and scale columns; missing values stay missing."""
    out = frame.copy()
    for col, (mean, std) in stats.items():
        out[col] = (out[col].astype(float) - mean) / std
    return out


def fit_impute(
    frame: pd.DataFrame,
    numeric: Sequence[str],
    categorical: Sequence[str],
) -> Dict[str, object]:
    """Learn fill values: median for numeric columns, mode for categorical ones."""
    fills: Dict[str, object] = {}
    for col in numeric:
        median = frame[col].median()
        fills[col] = float(median) if pd.notna(median) else 0.0
    for col in categorical:
        mode = frame[col].dropna().mode()
        fills[col] = mode.iloc[0] if len(mode) else MISSING_LEVEL
    return fills


def apply_impute(frame: pd.DataFrame, fills: Dict[str, object]) -> pd.DataFrame:
    """Fill missing values column by column."""
    out = frame.copy()
    for col, value in fills.items():
        if col in out.columns:
            out[col] = out[col].fillna(value)
    return out


def fit_one_hot(frame: pd.DataFrame, columns: Sequence[str]) -> Dict[str, List[str]]:
    """Learn the sorted set of levels of every categorical column."""
    return {
        col: sorted(str(v) for v in frame[col].dropna().unique())
        for col in columns
    }


def apply_one_hot(frame: pd.DataFrame, levels: Dict[str, List[str]]) -> pd.DataFrame:
    """
    Replace categorical columns with 0/1 indicator columns.

    Indicators are named ``<column>_<level>``; levels unseen during
    fitting (and missing values) encode as all zeros.
    """
    out = frame.drop(columns=[c for c in levels if c in frame.columns])
    indicators = {}
    for col, col_levels in levels.items():
        values = frame[col].astype(str).where(frame[col].notna(), None)
        for level in col_levels:
            indicators[f"{col}_{level}"] = (values == level).astype(np.int8).to_numpy()
    if indicators:
        out = pd.concat([out, pd.DataFrame(indicators, index=frame.index)], axis=1)
    return out
