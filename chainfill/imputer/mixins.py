from __future__ import annotations

from typing import Mapping

import numpy as np
import pandas as pd

from chainfill.core.base import ColumnKind
from chainfill.core.missing import infer_column_kinds


class InputHandlerMixin:
    """Turns arrays or frames into a private DataFrame copy and resolves
    the kind of every column.
    """

    _columns: list | None = None

    def _prepare_input_data(self, X: np.ndarray | pd.DataFrame) -> pd.DataFrame:
        """Copy ``X`` into a DataFrame.

        Arrays get the column names seen at fit time, or ``col_0, col_1, ...``
        before the first fit.
        """
        if isinstance(X, pd.DataFrame):
            return X.copy()
        values = np.asarray(X)
        if values.ndim != 2:
            raise ValueError(f"Expected 2D input, got an array of shape {values.shape}")
        names = self._columns or [f'col_{i}' for i in range(values.shape[1])]
        return pd.DataFrame(values, columns=names)

    def _infer_column_kinds(
        self,
        df: pd.DataFrame,
        overrides: Mapping[str, ColumnKind | str] | None = None,
    ) -> dict[str, ColumnKind]:
        return infer_column_kinds(df, overrides)


class BaseImputerMixin(InputHandlerMixin):
    """Schema bookkeeping shared by chainfill imputers.

    ``fit`` records column names and kinds; ``transform`` and ``impute`` only
    accept frames with exactly that schema, in the same order.
    """

    _column_kinds: dict[str, ColumnKind]

    def _setup_columns(self, X_df: pd.DataFrame, overrides=None) -> None:
        self._columns = list(X_df.columns)
        self._column_kinds = self._infer_column_kinds(X_df, overrides)

    def _is_fitted(self) -> bool:
        return getattr(self, '_column_kinds', None) is not None

    def _validate_transform_input(self, X) -> tuple[pd.DataFrame, bool]:
        """Check ``X`` against the fitted schema.

        Returns:
            The DataFrame copy and whether the caller passed a numpy array,
            in which case the result is handed back as an array too.

        Raises:
            ValueError: Unfitted imputer, or columns differing from fit time.
        """
        if not self._is_fitted():
            raise ValueError("Must call fit() before transform()")

        X_df = self._prepare_input_data(X)
        seen = list(X_df.columns)
        if seen != self._columns:
            missing = [col for col in self._columns if col not in seen]
            unexpected = [col for col in seen if col not in self._columns]
            detail = f"missing {missing}, unexpected {unexpected}" if missing or unexpected else "different order"
            raise ValueError(f"Column mismatch with the fitted frame: {detail}")
        return X_df, isinstance(X, np.ndarray)
