"""Row and column exclusion by missingness."""
from __future__ import annotations

import logging
import warnings

import pandas as pd

from chainfill.core.missing import profile_missing
from chainfill.exceptions import DegenerateResultWarning, InvalidConfigurationError

logger = logging.getLogger(__name__)


def drop_incomplete_rows(df: pd.DataFrame, max_missing: int = 0) -> pd.DataFrame:
    """Keep rows with at most ``max_missing`` missing cells.

    Args:
        df: Input frame. Not modified.
        max_missing: Maximum tolerated missing cells per row. 0 keeps only
            complete rows (listwise deletion).

    Returns:
        New frame with the surviving rows, original index preserved.
    """
    if max_missing < 0:
        raise InvalidConfigurationError(f"max_missing must be >= 0, got {max_missing}")

    keep = df.isna().sum(axis=1) <= max_missing
    logger.debug("Dropping %d of %d rows", int((~keep).sum()), len(df))
    return df.loc[keep].copy()


def drop_sparse_columns(df: pd.DataFrame, threshold: float) -> pd.DataFrame:
    """Drop every column whose missing fraction is ``>= threshold``.

    A threshold of 1.0 only drops entirely missing columns; 0.0 drops every
    column. Applying the filter twice with the same threshold is a no-op the
    second time.

    Args:
        df: Input frame. Not modified.
        threshold: Fraction in [0, 1].

    Returns:
        New frame without the sparse columns. May have zero columns, in which
        case a :class:`DegenerateResultWarning` is emitted.

    Raises:
        InvalidConfigurationError: If threshold is outside [0, 1].
        DegenerateInputError: If the frame has zero rows.
    """
    if not 0.0 <= threshold <= 1.0:
        raise InvalidConfigurationError(f"threshold must be in [0, 1], got {threshold}")

    profile = profile_missing(df)
    dropped = [name for name, d in profile.items() if d.missing_fraction >= threshold]

    if dropped:
        logger.debug("Dropping columns above %.2f missing: %s", threshold, dropped)

    if len(dropped) == len(df.columns) and len(df.columns) > 0:
        warnings.warn(
            f"All {len(dropped)} columns have missing fraction >= {threshold}; result has no columns",
            DegenerateResultWarning,
            stacklevel=2,
        )

    return df.drop(columns=dropped)
