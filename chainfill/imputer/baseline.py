"""Single-pass statistical imputer."""
from __future__ import annotations

from typing import Literal

import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.impute import SimpleImputer

from chainfill.core.base import ColumnKind, imputed_float_dtype
from chainfill.imputer.mixins import BaseImputerMixin
from chainfill.transforms.fill import mode


class StatisticalImputer(BaseImputerMixin, TransformerMixin, BaseEstimator):
    """Simple imputer combining mean/median for numeric and mode for categorical.

    Also serves as the placeholder stage of
    :class:`chainfill.imputer.iterative.IterativeImputer`. The categorical
    mode breaks ties by first-encountered value (see
    :func:`chainfill.transforms.fill.mode`), unlike sklearn's
    ``most_frequent`` which picks the smallest.

    Parameters
    ----------
    numeric_strategy : Literal['mean', 'median'], default='mean'
        Strategy for numeric columns.
    column_kinds : dict | None, default=None
        Optional kind overrides per column.
    """

    def __init__(
        self,
        numeric_strategy: Literal['mean', 'median'] = 'mean',
        column_kinds: dict | None = None,
    ):
        self.numeric_strategy = numeric_strategy
        self.column_kinds = column_kinds

    def fit(self, X, y=None):
        """Learn one fill value per column.

        Columns without any observed value get no fill value and stay missing.

        Args:
            X: Input data.
            y: Ignored. Present for sklearn compatibility.

        Returns:
            The fitted imputer.
        """
        X = self._prepare_input_data(X)
        self._setup_columns(X, self.column_kinds)

        self.fill_values_: dict = {}
        self.empty_columns_: list = [col for col in X.columns if X[col].isna().all()]

        num_cols = [
            col for col, kind in self._column_kinds.items()
            if kind is ColumnKind.NUMERIC and col not in self.empty_columns_
        ]
        cat_cols = [
            col for col, kind in self._column_kinds.items()
            if kind is ColumnKind.CATEGORICAL and col not in self.empty_columns_
        ]

        if num_cols:
            num_imputer = SimpleImputer(strategy=self.numeric_strategy)
            num_imputer.fit(X[num_cols].astype(float))
            self.fill_values_.update(zip(num_cols, num_imputer.statistics_))

        for col in cat_cols:
            self.fill_values_[col] = mode(X[col])

        return self

    def transform(self, X):
        """Impute missing values using fitted statistics.

        Args:
            X: Data with missing values to impute.

        Returns:
            Data with missing positions filled. Same format as input.
        """
        X, return_numpy = self._validate_transform_input(X)
        X_out = X.copy()

        for col, value in self.fill_values_.items():
            series = X_out[col]
            if not series.isna().any():
                continue
            if self._column_kinds[col] is ColumnKind.NUMERIC:
                series = series.astype(imputed_float_dtype(series.dtype))
            elif isinstance(series.dtype, pd.CategoricalDtype) and value not in series.cat.categories:
                series = series.cat.add_categories([value])
            X_out[col] = series.fillna(value)

        return X_out.to_numpy() if return_numpy else X_out

    def fit_transform(self, X, y=None):
        return self.fit(X, y).transform(X)
