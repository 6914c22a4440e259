"""Reconstruction accuracy of imputed cells against ground truth."""

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from chainfill.core.base import ColumnKind
from chainfill.core.missing import infer_column_kinds


def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Mean Absolute Error. NaN for empty input."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.size == 0:
        return float('nan')
    return float(np.mean(np.abs(y_true - y_pred)))


def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Root Mean Squared Error. NaN for empty input."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.size == 0:
        return float('nan')
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def nrmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """RMSE normalized by the range of the true values.

    NaN for empty input or a constant true column, where the range is 0.
    """
    y_true = np.asarray(y_true, dtype=float)
    if y_true.size == 0:
        return float('nan')
    true_range = np.max(y_true) - np.min(y_true)
    if true_range == 0:
        return float('nan')
    return rmse(y_true, y_pred) / float(true_range)


def categorical_accuracy(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Share of imputed labels equal to the truth. NaN for empty input."""
    y_true = np.asarray(y_true, dtype=object)
    y_pred = np.asarray(y_pred, dtype=object)
    if y_true.size == 0:
        return float('nan')
    return float(np.mean(y_true == y_pred))


def evaluate_reconstruction(
    X_true: pd.DataFrame,
    X_imputed: pd.DataFrame,
    mask: pd.DataFrame,
    column_kinds: Optional[Dict[str, Any]] = None,
) -> Dict[str, Dict[str, float]]:
    """Score imputed cells column by column.

    Args:
        X_true: Complete ground-truth frame.
        X_imputed: Output of an imputer.
        mask: Boolean frame, True where values were missing before imputation.
        column_kinds: Optional kind overrides.

    Returns:
        ``{'mae': {...}, 'rmse': {...}, 'nrmse': {...}, 'categorical_accuracy': {...}}``
        with one entry per column that had missing cells plus ``'avg'``, the
        mean of the defined (non-NaN) scores, NaN when none is defined.
        Metrics without any applicable column are omitted.

    Example:
       scores = evaluate_reconstruction(df, imputed, mask)
       scores['rmse']['avg']
    """
    kinds = infer_column_kinds(X_true, column_kinds)
    scores: Dict[str, Dict[str, float]] = {}

    numeric_metrics = {'mae': mae, 'rmse': rmse, 'nrmse': nrmse}

    for col, kind in kinds.items():
        col_mask = mask[col].to_numpy(dtype=bool)
        if not col_mask.any():
            continue

        y_true = X_true[col].to_numpy()[col_mask]
        y_pred = X_imputed[col].to_numpy()[col_mask]

        if kind is ColumnKind.NUMERIC:
            for name, fn in numeric_metrics.items():
                scores.setdefault(name, {})[col] = fn(y_true, y_pred)
        else:
            scores.setdefault('categorical_accuracy', {})[col] = categorical_accuracy(y_true, y_pred)

    for per_column in scores.values():
        defined = [value for value in per_column.values() if not np.isnan(value)]
        per_column['avg'] = float(np.mean(defined)) if defined else float('nan')

    return scores
