"""Per-column prediction models used by the iterative imputer.

One strategy per :class:`ColumnKind`: numeric columns are refined by a
regressor, categorical columns by a classifier. Both consume an already
encoded (all-numeric) feature matrix.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator

from chainfill.core.base import ColumnKind

EstimatorName = Literal['random_forest', 'linear', 'xgboost']
ESTIMATORS: tuple[str, ...] = ('random_forest', 'linear', 'xgboost')


class ColumnModel(ABC):
    """Fits one column from the others and predicts its missing cells.

    Parameters
    ----------
    estimator : EstimatorName
        Model family.
    n_estimators : int
        Trees for the ensemble families. Ignored by 'linear'.
    random_state : int | None
        Seed of the underlying estimator.
    sample_posterior : bool
        If True, predictions are random draws around the point estimate
        instead of the point estimate itself.
    """

    kind: ColumnKind

    def __init__(
        self,
        estimator: EstimatorName = 'random_forest',
        n_estimators: int = 100,
        random_state: int | None = None,
        sample_posterior: bool = False,
    ):
        self.estimator = estimator
        self.n_estimators = n_estimators
        self.random_state = random_state
        self.sample_posterior = sample_posterior
        self._model: BaseEstimator | None = None

    @abstractmethod
    def _build(self) -> BaseEstimator:
        ...

    @abstractmethod
    def fit(self, X: np.ndarray, y: np.ndarray) -> 'ColumnModel':
        ...

    @abstractmethod
    def predict(self, X: np.ndarray, rng: np.random.RandomState) -> np.ndarray:
        ...


class NumericModel(ColumnModel):
    """Regression strategy for numeric columns.

    With ``sample_posterior`` the prediction gets Gaussian noise: the
    predictive std for 'linear' (BayesianRidge), otherwise the std of the
    training residuals.
    """

    kind = ColumnKind.NUMERIC

    def _build(self) -> BaseEstimator:
        match self.estimator:
            case 'random_forest':
                from sklearn.ensemble import RandomForestRegressor
                return RandomForestRegressor(
                    n_estimators=self.n_estimators,
                    random_state=self.random_state,
                )
            case 'linear':
                from sklearn.linear_model import BayesianRidge
                return BayesianRidge()
            case 'xgboost':
                from xgboost import XGBRegressor
                return XGBRegressor(
                    n_estimators=self.n_estimators,
                    max_depth=4,
                    learning_rate=0.1,
                    random_state=self.random_state,
                    verbosity=0,
                )
        raise ValueError(f"Unknown estimator: {self.estimator}")

    def fit(self, X, y):
        y = np.asarray(y, dtype=float)
        self._model = self._build()
        self._model.fit(X, y)
        self._residual_std = float(np.std(y - self._model.predict(X)))
        return self

    def predict(self, X, rng):
        if self.estimator == 'linear' and self.sample_posterior:
            mean, std = self._model.predict(X, return_std=True)
            return rng.normal(mean, std)

        mean = np.asarray(self._model.predict(X), dtype=float)
        if self.sample_posterior and self._residual_std > 0:
            return mean + rng.normal(0.0, self._residual_std, size=len(mean))
        return mean


class CategoricalModel(ColumnModel):
    """Classification strategy for categorical columns.

    Labels are encoded with ``pd.factorize`` into codes 0..k-1 (what xgboost
    needs), so any hashable labels work, including object columns mixing
    strings and numbers.
    With ``sample_posterior`` the label is drawn from ``predict_proba``.
    """

    kind = ColumnKind.CATEGORICAL

    def _build(self) -> BaseEstimator:
        match self.estimator:
            case 'random_forest':
                from sklearn.ensemble import RandomForestClassifier
                return RandomForestClassifier(
                    n_estimators=self.n_estimators,
                    random_state=self.random_state,
                )
            case 'linear':
                from sklearn.linear_model import LogisticRegression
                return LogisticRegression(max_iter=1000)
            case 'xgboost':
                from xgboost import XGBClassifier
                return XGBClassifier(
                    n_estimators=self.n_estimators,
                    max_depth=4,
                    learning_rate=0.1,
                    random_state=self.random_state,
                    verbosity=0,
                )
        raise ValueError(f"Unknown estimator: {self.estimator}")

    def fit(self, X, y):
        codes, uniques = pd.factorize(pd.Series(np.asarray(y, dtype=object)), sort=False)
        self._labels = np.asarray(uniques, dtype=object)

        # a single observed class needs no model
        if len(self._labels) == 1:
            self._model = None
            return self

        self._model = self._build()
        self._model.fit(X, codes)
        return self

    def predict(self, X, rng):
        n = len(X)
        if self._model is None:
            return np.repeat(self._labels, n)

        if self.sample_posterior:
            proba = self._model.predict_proba(X)
            cumulative = proba.cumsum(axis=1)
            draws = rng.random_sample(n)[:, None]
            idx = np.minimum((cumulative < draws).sum(axis=1), proba.shape[1] - 1)
            codes = np.asarray(self._model.classes_)[idx]
        else:
            codes = self._model.predict(X)

        return self._labels[np.asarray(codes, dtype=int)]


_MODELS: dict[ColumnKind, type[ColumnModel]] = {
    ColumnKind.NUMERIC: NumericModel,
    ColumnKind.CATEGORICAL: CategoricalModel,
}


def make_column_model(kind: ColumnKind, **params) -> ColumnModel:
    """Build the model strategy matching a column kind."""
    return _MODELS[ColumnKind(kind)](**params)
