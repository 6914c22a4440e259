"""Core types shared across chainfill."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable, TYPE_CHECKING

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from chainfill.imputer.types import ImputedReplica

ArrayLike = np.ndarray | pd.DataFrame


class ColumnKind(str, Enum):
    """Declared kind of a column. Drives which model family imputes it."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"

    @classmethod
    def of(cls, series: pd.Series) -> "ColumnKind":
        """Infer the kind from a pandas dtype. Booleans count as categorical."""
        if pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(series):
            return cls.CATEGORICAL
        return cls.NUMERIC


def imputed_float_dtype(dtype):
    """Dtype a numeric column takes once non-integral values are written to it.

    Nullable integers become ``Float64`` so ``pd.NA`` semantics survive, numpy
    integers become ``float64``. Float dtypes are returned unchanged.
    """
    if pd.api.types.is_float_dtype(dtype):
        return dtype
    if pd.api.types.is_extension_array_dtype(dtype):
        return pd.Float64Dtype()
    return np.dtype(float)


@dataclass(frozen=True)
class ColumnDescriptor:
    """Missingness profile of one column.

    Stale as soon as the frame it was computed from changes; recompute with
    :func:`chainfill.core.missing.profile_missing`.
    """

    name: str
    kind: ColumnKind
    missing_count: int
    missing_fraction: float

    @property
    def has_missing(self) -> bool:
        return self.missing_count > 0


@runtime_checkable
class Imputer(Protocol):
    """Protocol for chainfill imputers (sklearn-compatible).

    transform() preserves observed values and only imputes missing positions.
    Unlike most sklearn imputers, input without missing values is accepted and
    returned unchanged.
    """

    def fit(self, X: ArrayLike, y=None) -> "Imputer":
        """Learn the schema and placeholder statistics of ``X``.

        Args:
            X: Input data, possibly containing missing values.

        Returns:
            The fitted imputer instance.
        """
        ...

    def transform(self, X: ArrayLike) -> ArrayLike:
        """Impute missing values of ``X``.

        Returns:
            Data with missing positions filled. Same format as input.
        """
        ...

    def fit_transform(self, X: ArrayLike, y=None) -> ArrayLike:
        ...

    def impute(self, X: pd.DataFrame) -> "ImputedReplica":
        """Impute ``X`` and return the completed frame with diagnostics."""
        ...
