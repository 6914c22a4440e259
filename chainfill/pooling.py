"""Pooling of per-replica estimates with Rubin's rules."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.base import BaseEstimator, clone
from sklearn.linear_model import LinearRegression

from chainfill.exceptions import InvalidConfigurationError
from chainfill.imputer.types import ImputedReplica

Estimates = Union[Sequence[pd.Series], Sequence[np.ndarray], pd.DataFrame]


@dataclass
class PooledEstimate:
    """Combined estimate over M replicas.

    All fields are Series indexed by term name.

    Attributes:
        estimate: Mean of the per-replica estimates.
        within: Average within-replica variance (0 when not supplied).
        between: Variance of the estimates across replicas.
        total: ``within + (1 + 1/M) * between``.
        dof: Degrees of freedom of the t reference distribution.
        n_replicas: M.
    """

    estimate: pd.Series
    within: pd.Series
    between: pd.Series
    total: pd.Series
    dof: pd.Series
    n_replicas: int

    @property
    def std_error(self) -> pd.Series:
        return np.sqrt(self.total)

    @property
    def fraction_missing_info(self) -> pd.Series:
        """Share of total variance due to imputation, ``(1 + 1/M) * B / T``."""
        share = (1 + 1 / self.n_replicas) * self.between / self.total
        return share.where(self.total > 0, 0.0)

    def conf_int(self, alpha: float = 0.05) -> pd.DataFrame:
        """Two-sided t intervals; infinite dof falls back to the normal quantile."""
        q = pd.Series(stats.t.ppf(1 - alpha / 2, self.dof), index=self.dof.index)
        half = q * self.std_error
        return pd.DataFrame({'lower': self.estimate - half, 'upper': self.estimate + half})

    def summary(self) -> pd.DataFrame:
        table = pd.DataFrame({
            'estimate': self.estimate,
            'std_error': self.std_error,
            'within': self.within,
            'between': self.between,
            'dof': self.dof,
            'fmi': self.fraction_missing_info,
        })
        return table.join(self.conf_int())


def _as_frame(values: Estimates) -> pd.DataFrame:
    if isinstance(values, pd.DataFrame):
        return values.astype(float)
    rows = [v if isinstance(v, pd.Series) else pd.Series(np.asarray(v, dtype=float)) for v in values]
    return pd.DataFrame(rows).reset_index(drop=True).astype(float)


def pool_estimates(estimates: Estimates, variances: Optional[Estimates] = None) -> PooledEstimate:
    """Combine per-replica estimates with Rubin's rules.

    Args:
        estimates: One row of coefficients per replica (Series keyed by term
            name, arrays, or a DataFrame with one row per replica).
        variances: Optional squared standard errors, same shape. Without
            them only the between-replica variance is pooled.

    Returns:
        :class:`PooledEstimate`.
    """
    Q = _as_frame(estimates)
    m = len(Q)
    if m < 1:
        raise InvalidConfigurationError("Need at least one replica to pool")
    if Q.isna().any().any():
        raise InvalidConfigurationError("Estimates must be aligned and complete across replicas")

    if variances is None:
        U = pd.DataFrame(0.0, index=Q.index, columns=Q.columns)
    else:
        U = _as_frame(variances)
        if U.shape != Q.shape:
            raise InvalidConfigurationError(f"variances shape {U.shape} does not match estimates {Q.shape}")
        U.columns = Q.columns

    estimate = Q.mean()
    within = U.mean()
    between = Q.var(ddof=1) if m > 1 else pd.Series(0.0, index=Q.columns)
    total = within + (1 + 1 / m) * between

    with np.errstate(divide='ignore', invalid='ignore'):
        r = (1 + 1 / m) * between / within
        dof = (m - 1) * (1 + 1 / r) ** 2
    # no between-replica variance: the reference is the normal distribution
    dof = dof.where(between > 0, np.inf)

    return PooledEstimate(
        estimate=estimate,
        within=within,
        between=between,
        total=total,
        dof=dof,
        n_replicas=m,
    )


def _design_matrix(frames: list[pd.DataFrame]) -> list[pd.DataFrame]:
    """One-hot encode replicas and align them on the union of dummy columns."""
    encoded = [pd.get_dummies(frame, drop_first=True, dtype=float) for frame in frames]
    columns: list = []
    for frame in encoded:
        columns.extend(col for col in frame.columns if col not in columns)
    return [frame.reindex(columns=columns, fill_value=0.0) for frame in encoded]


def _ols_variances(X: np.ndarray, y: np.ndarray, model: LinearRegression) -> np.ndarray:
    """Classical OLS variances, intercept first."""
    design = np.column_stack([np.ones(len(X)), X])
    residuals = y - model.predict(X)
    dof = max(len(y) - design.shape[1], 1)
    sigma2 = float(residuals @ residuals) / dof
    return np.diag(sigma2 * np.linalg.pinv(design.T @ design))


def fit_pooled(
    replicas: Sequence[ImputedReplica],
    target: str,
    estimator: BaseEstimator | None = None,
    features: Optional[Sequence[str]] = None,
) -> PooledEstimate:
    """Fit a linear model on every replica and pool its coefficients.

    Categorical features are one-hot encoded (first level dropped). With the
    default ``LinearRegression`` the classical OLS variances feed the
    within-replica term; any other estimator must expose ``coef_`` and
    ``intercept_`` and is pooled on the between-replica variance only.

    Args:
        replicas: Completed datasets, e.g. from ``MultipleImputer.impute``.
        target: Column to regress on the others.
        estimator: Linear estimator to clone per replica.
        features: Predictor columns; defaults to every non-target column.
    """
    if not replicas:
        raise InvalidConfigurationError("Need at least one replica to pool")

    use_ols = estimator is None
    template = LinearRegression() if use_ols else estimator

    predictors = list(features) if features is not None else [
        col for col in replicas[0].data.columns if col != target
    ]
    designs = _design_matrix([replica.data[predictors] for replica in replicas])
    terms = ['intercept'] + list(designs[0].columns)

    estimates, variances = [], []
    for replica, design in zip(replicas, designs):
        X = design.to_numpy(dtype=float)
        y = replica.data[target].to_numpy(dtype=float)
        model = clone(template).fit(X, y)

        coef = np.concatenate([np.atleast_1d(model.intercept_), np.ravel(model.coef_)])
        estimates.append(pd.Series(coef, index=terms))
        if use_ols:
            variances.append(pd.Series(_ols_variances(X, y, model), index=terms))

    return pool_estimates(estimates, variances if use_ols else None)
