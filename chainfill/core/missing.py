"""Missingness profiling."""
from __future__ import annotations

from typing import Mapping, Optional, Union

import numpy as np
import pandas as pd

from chainfill.core.base import ColumnDescriptor, ColumnKind
from chainfill.exceptions import DegenerateInputError


def missing_mask(X: Union[np.ndarray, pd.DataFrame, pd.Series]) -> np.ndarray:
    """Create a boolean mask indicating missing values.

    Args:
        X: Input data array, Series or DataFrame.

    Returns:
        Boolean numpy array where True indicates a missing value.
        Uses ``pd.isna`` so object arrays holding None are handled too.

    Examples:
        >>> df = pd.DataFrame({'a': [1, np.nan, 3], 'b': ['x', None, 'y']})
        >>> missing_mask(df).sum()
        2
    """
    if isinstance(X, (pd.DataFrame, pd.Series)):
        return X.isna().to_numpy()
    return pd.isna(np.asarray(X))


def infer_column_kinds(
    df: pd.DataFrame,
    overrides: Optional[Mapping[str, Union[ColumnKind, str]]] = None,
) -> dict[str, ColumnKind]:
    """Classify each column as numeric or categorical by dtype.

    Args:
        df: Input DataFrame.
        overrides: Optional explicit kinds, e.g. to treat an integer code
            column as categorical.

    Returns:
        Mapping of column name to :class:`ColumnKind`, in column order.
    """
    kinds = {col: ColumnKind.of(df[col]) for col in df.columns}
    for col, kind in (overrides or {}).items():
        if col not in kinds:
            raise KeyError(f"Unknown column in kind overrides: {col!r}")
        kinds[col] = ColumnKind(kind)
    return kinds


def profile_missing(
    df: pd.DataFrame,
    kinds: Optional[Mapping[str, Union[ColumnKind, str]]] = None,
) -> dict[str, ColumnDescriptor]:
    """Count missing cells per column.

    Args:
        df: Frame to profile.
        kinds: Optional kind overrides, see :func:`infer_column_kinds`.

    Returns:
        Mapping of column name to :class:`ColumnDescriptor` with
        ``missing_fraction = missing_count / n_rows``.

    Raises:
        DegenerateInputError: If the frame has no rows.
    """
    n_rows = len(df)
    if n_rows == 0:
        raise DegenerateInputError("Cannot profile missingness of a frame with zero rows")

    column_kinds = infer_column_kinds(df, kinds)
    counts = df.isna().sum()

    return {
        col: ColumnDescriptor(
            name=col,
            kind=column_kinds[col],
            missing_count=int(counts[col]),
            missing_fraction=float(counts[col]) / n_rows,
        )
        for col in df.columns
    }


def missing_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Tabular view of :func:`profile_missing`, most incomplete columns first."""
    profile = profile_missing(df)
    summary = pd.DataFrame(
        {
            "kind": [d.kind.value for d in profile.values()],
            "missing_count": [d.missing_count for d in profile.values()],
            "missing_fraction": [d.missing_fraction for d in profile.values()],
        },
        index=pd.Index(list(profile.keys()), name="column"),
    )
    return summary.sort_values("missing_fraction", ascending=False, kind="stable")


def missing_patterns(
    df: pd.DataFrame,
    normalize: bool = True,
    sort_by: Optional[str] = "count",
) -> pd.DataFrame:
    """
    Group rows by their missing-value pattern.

    Parameters
    ----------
    df : pd.DataFrame
        The DataFrame to analyze.
    normalize : bool, default True
        If True, include 'proportion' (count / rows) and 'cum_proportion'.
    sort_by : str or None, default "count"
        Column to sort descending by. If None, keep first-seen pattern order.

    Returns
    -------
    patterns : pd.DataFrame
        One row per distinct pattern:
          - 'pattern_id' = "P1", "P2", ... in first-seen order
          - one column per original column, 1=missing, 0=present
          - 'count' = rows exhibiting the pattern
          - 'n_missing_cols' = missing columns in the pattern
          - 'missing_cells' = count * n_missing_cols
    """
    mask = df.isna().astype(int)
    n_rows = len(mask)

    summary = mask.groupby(list(mask.columns), sort=False).size().reset_index(name="count")
    summary["n_missing_cols"] = summary[mask.columns].sum(axis=1)
    summary["missing_cells"] = summary["count"] * summary["n_missing_cols"]

    if normalize and n_rows:
        summary["proportion"] = summary["count"] / n_rows
        summary["cum_proportion"] = summary["proportion"].cumsum()

    summary.insert(0, "pattern_id", [f"P{i+1}" for i in range(len(summary))])

    if sort_by in summary.columns:
        summary = summary.sort_values(sort_by, ascending=False, kind="stable").reset_index(drop=True)

    return summary
