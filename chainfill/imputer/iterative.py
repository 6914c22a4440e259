"""Iterative multivariate imputation by chained per-column models."""
from __future__ import annotations

import logging
import warnings
from typing import Callable, Literal

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.preprocessing import OneHotEncoder
from sklearn.utils import check_random_state

from chainfill.core.base import ColumnKind, imputed_float_dtype
from chainfill.exceptions import (
    DegenerateInputError,
    DegenerateInputWarning,
    InvalidConfigurationError,
    NonConvergenceWarning,
)
from chainfill.imputer.baseline import StatisticalImputer
from chainfill.imputer.mixins import BaseImputerMixin
from chainfill.imputer.models import ESTIMATORS, EstimatorName, make_column_model
from chainfill.imputer.types import ImputationDiagnostics, ImputedReplica
from chainfill.shared import derive_seed
from chainfill.transforms.fill import mode

logger = logging.getLogger(__name__)

ColumnOrder = Literal['ascending', 'descending', 'positional']
COLUMN_ORDERS: tuple[str, ...] = ('ascending', 'descending', 'positional')


class IterativeImputer(BaseImputerMixin, TransformerMixin, BaseEstimator):
    """Chained-equations imputer for mixed numeric/categorical frames.

    Every column with missing cells starts from a placeholder (mean or median
    for numeric, mode for categorical). Then, pass after pass, each such
    column is re-predicted from all other columns by a model trained only on
    its originally observed rows; only the originally missing cells are
    overwritten. The run stops once the change between passes drops below
    ``tol`` or after ``max_iter`` passes.

    Models are trained on the frame being imputed, so ``transform`` runs the
    whole procedure. ``fit`` validates parameters and learns the schema and
    the placeholder statistics.

    Parameters
    ----------
    max_iter : int, default=10
        Maximum number of passes over the columns.
    tol : float, default=1e-3
        Stop when the convergence signal falls below this value.
    estimator : Literal['random_forest', 'linear', 'xgboost'], default='random_forest'
        Model family. Numeric columns use the regressor of the family,
        categorical columns the classifier.
    numeric_strategy : Literal['mean', 'median'], default='mean'
        Placeholder for numeric columns.
    n_estimators : int, default=100
        Trees per model for the ensemble families.
    sample_posterior : bool, default=False
        Draw placeholders from observed values and predictions from the
        model's predictive distribution. Needed for distinct replicas.
    column_order : Literal['ascending', 'descending', 'positional'], default='ascending'
        Processing order: fewest missing first, most missing first, or frame
        order. Ties always keep frame order.
    column_kinds : dict | None, default=None
        Kind overrides per column, e.g. ``{'zip': 'categorical'}``.
    random_state : int | None, default=None
        Seed for placeholder draws, model seeds and posterior sampling.

    Attributes
    ----------
    placeholder_ : StatisticalImputer
        Fitted placeholder stage.
    diagnostics_ : ImputationDiagnostics
        Diagnostics of the last ``transform`` run.
    """

    def __init__(
        self,
        max_iter: int = 10,
        tol: float = 1e-3,
        estimator: EstimatorName = 'random_forest',
        numeric_strategy: Literal['mean', 'median'] = 'mean',
        n_estimators: int = 100,
        sample_posterior: bool = False,
        column_order: ColumnOrder = 'ascending',
        column_kinds: dict | None = None,
        random_state: int | None = None,
    ):
        self.max_iter = max_iter
        self.tol = tol
        self.estimator = estimator
        self.numeric_strategy = numeric_strategy
        self.n_estimators = n_estimators
        self.sample_posterior = sample_posterior
        self.column_order = column_order
        self.column_kinds = column_kinds
        self.random_state = random_state

    def _validate_params(self) -> None:
        if not isinstance(self.max_iter, (int, np.integer)) or self.max_iter < 1:
            raise InvalidConfigurationError(f"max_iter must be a positive integer, got {self.max_iter!r}")
        if self.tol < 0:
            raise InvalidConfigurationError(f"tol must be >= 0, got {self.tol}")
        if self.estimator not in ESTIMATORS:
            raise InvalidConfigurationError(f"estimator must be one of {ESTIMATORS}, got {self.estimator!r}")
        if self.numeric_strategy not in ('mean', 'median'):
            raise InvalidConfigurationError(f"numeric_strategy must be 'mean' or 'median', got {self.numeric_strategy!r}")
        if self.n_estimators < 1:
            raise InvalidConfigurationError(f"n_estimators must be >= 1, got {self.n_estimators}")
        if self.column_order not in COLUMN_ORDERS:
            raise InvalidConfigurationError(f"column_order must be one of {COLUMN_ORDERS}, got {self.column_order!r}")

    def fit(self, X, y=None):
        """Validate parameters, store the schema and fit the placeholders.

        Args:
            X: Input data, possibly with missing values.
            y: Ignored. Present for sklearn compatibility.

        Returns:
            The fitted imputer.
        """
        self._validate_params()
        X_df = self._prepare_input_data(X)
        if len(X_df) == 0:
            raise DegenerateInputError("Cannot impute a frame with zero rows")
        self._setup_columns(X_df, self.column_kinds)
        self.placeholder_ = StatisticalImputer(
            numeric_strategy=self.numeric_strategy,
            column_kinds=self._column_kinds,
        ).fit(X_df)
        return self

    def transform(self, X):
        """Impute missing values of ``X``.

        Returns:
            Data with missing positions filled. Same format as input.
        """
        X_df, return_numpy = self._validate_transform_input(X)
        replica = self._run(X_df)
        return replica.data.to_numpy() if return_numpy else replica.data

    def fit_transform(self, X, y=None):
        return self.fit(X, y).transform(X)

    def impute(
        self,
        X: pd.DataFrame,
        should_stop: Callable[[], bool] | None = None,
    ) -> ImputedReplica:
        """Impute ``X`` and return the completed frame with its diagnostics.

        Fits first if the imputer has not been fitted yet.

        Args:
            X: Frame to complete. Never modified.
            should_stop: Optional callback checked after each full pass.
                Returning True ends the run with termination 'cancelled';
                the frame returned is the state after the last full pass.
        """
        if not self._is_fitted():
            self.fit(X)
        X_df, _ = self._validate_transform_input(X)
        return self._run(X_df, should_stop)

    def _run(self, X_df: pd.DataFrame, should_stop: Callable[[], bool] | None = None) -> ImputedReplica:
        seed = self.random_state if isinstance(self.random_state, (int, np.integer)) else None
        rng = check_random_state(self.random_state)
        diagnostics = ImputationDiagnostics(column_order=self.column_order)

        index = X_df.index
        frame = X_df.reset_index(drop=True)
        mask = frame.isna().to_numpy()
        missing_counts = mask.sum(axis=0)

        if not missing_counts.any():
            logger.debug("No missing values; returning input unchanged")
            self.diagnostics_ = diagnostics
            return ImputedReplica(data=X_df.copy(), diagnostics=diagnostics, seed=seed)

        columns = list(frame.columns)
        kinds = self._column_kinds
        n_rows = len(frame)

        degenerate = [col for i, col in enumerate(columns) if missing_counts[i] == n_rows]
        if degenerate:
            warnings.warn(
                f"Columns without observed values keep their placeholder: {degenerate}",
                DegenerateInputWarning,
                stacklevel=3,
            )
        diagnostics.degenerate_columns = degenerate

        targets = self._order_targets(columns, missing_counts, degenerate)
        diagnostics.imputed_columns = targets

        values = self._initialize(frame, mask, rng)

        if targets:
            self._iterate(values, mask, columns, targets, degenerate, kinds, rng, diagnostics, should_stop)
        else:
            diagnostics.termination = 'placeholder_only'

        data = self._assemble(X_df, values, mask, columns, kinds)
        data.index = index
        self.diagnostics_ = diagnostics
        return ImputedReplica(data=data, diagnostics=diagnostics, seed=seed)

    def _order_targets(self, columns: list, missing_counts: np.ndarray, degenerate: list) -> list:
        candidates = [
            (i, col) for i, col in enumerate(columns)
            if missing_counts[i] > 0 and col not in degenerate
        ]
        match self.column_order:
            case 'ascending':
                candidates.sort(key=lambda item: missing_counts[item[0]])
            case 'descending':
                candidates.sort(key=lambda item: -missing_counts[item[0]])
        return [col for _, col in candidates]

    def _initialize(self, frame: pd.DataFrame, mask: np.ndarray, rng: np.random.RandomState) -> dict:
        """Placeholder-filled working copy, one numpy array per column."""
        filled = self.placeholder_.transform(frame)
        values = {}
        for j, col in enumerate(frame.columns):
            if self._column_kinds[col] is ColumnKind.NUMERIC:
                column = filled[col].to_numpy(dtype=float, na_value=np.nan).copy()
            else:
                column = filled[col].to_numpy(dtype=object).copy()

            col_mask = mask[:, j]
            if col_mask.any() and not col_mask.all():
                observed = column[~col_mask]
                if self.sample_posterior:
                    column[col_mask] = observed[rng.randint(len(observed), size=int(col_mask.sum()))]
                elif pd.isna(column[col_mask]).any():
                    # placeholder fitted on a frame where this column was empty
                    column[col_mask] = mode(pd.Series(observed))

            values[col] = column
        return values

    def _iterate(self, values, mask, columns, targets, degenerate, kinds, rng, diagnostics, should_stop) -> None:
        position = {col: j for j, col in enumerate(columns)}
        feature_cols = [col for col in columns if col not in degenerate]
        encoders = {
            col: OneHotEncoder(handle_unknown='ignore', sparse_output=False).fit(
                values[col][~mask[:, position[col]]].astype(str).reshape(-1, 1)
            )
            for col in feature_cols
            if kinds[col] is ColumnKind.CATEGORICAL
        }
        blocks = {col: self._encode(values[col], encoders.get(col)) for col in feature_cols}

        previous = {col: values[col][mask[:, position[col]]].copy() for col in targets}

        diagnostics.termination = 'max_iter'
        for iteration in range(1, self.max_iter + 1):
            for col in targets:
                col_mask = mask[:, position[col]]
                features = self._features(blocks, feature_cols, col, len(col_mask))

                model = make_column_model(
                    kinds[col],
                    estimator=self.estimator,
                    n_estimators=self.n_estimators,
                    random_state=derive_seed(rng),
                    sample_posterior=self.sample_posterior,
                )
                model.fit(features[~col_mask], values[col][~col_mask])
                values[col][col_mask] = model.predict(features[col_mask], rng)
                blocks[col] = self._encode(values[col], encoders.get(col))

            current = {col: values[col][mask[:, position[col]]].copy() for col in targets}
            signal = _convergence_signal(previous, current, kinds)
            diagnostics.convergence_history.append(signal)
            diagnostics.iterations = iteration
            previous = current

            logger.debug("Pass %d/%d over %d columns: signal=%.6g", iteration, self.max_iter, len(targets), signal)

            if signal < self.tol:
                diagnostics.termination = 'tolerance'
                break
            if should_stop is not None and should_stop():
                diagnostics.termination = 'cancelled'
                break

        logger.info(
            "Imputation stopped after %d passes (%s), last signal %.6g",
            diagnostics.iterations, diagnostics.termination, diagnostics.last_signal,
        )

        if diagnostics.termination == 'max_iter':
            warnings.warn(
                NonConvergenceWarning(
                    f"No convergence within {self.max_iter} passes "
                    f"(signal {diagnostics.last_signal:.6g} >= tol {self.tol})",
                    diagnostics.last_signal,
                ),
                stacklevel=4,
            )

    @staticmethod
    def _encode(column: np.ndarray, encoder: OneHotEncoder | None) -> np.ndarray:
        if encoder is None:
            return column.astype(float).reshape(-1, 1)
        return encoder.transform(column.astype(str).reshape(-1, 1))

    @staticmethod
    def _features(blocks: dict, feature_cols: list, target: str, n_rows: int) -> np.ndarray:
        parts = [blocks[col] for col in feature_cols if col != target]
        if not parts:
            # nothing to condition on: an intercept-only model
            return np.ones((n_rows, 1))
        return np.hstack(parts)

    def _assemble(self, X_df: pd.DataFrame, values: dict, mask: np.ndarray, columns: list, kinds: dict) -> pd.DataFrame:
        """Copy of the input with only the originally missing cells replaced."""
        result = X_df.reset_index(drop=True)
        for j, col in enumerate(columns):
            col_mask = mask[:, j]
            if not col_mask.any():
                continue

            series = result[col].copy()
            if kinds[col] is ColumnKind.NUMERIC:
                series = series.astype(imputed_float_dtype(series.dtype))
            elif isinstance(series.dtype, pd.CategoricalDtype):
                new = pd.Index(values[col][col_mask]).dropna().difference(series.cat.categories)
                if len(new):
                    series = series.cat.add_categories(list(new))

            series.iloc[np.flatnonzero(col_mask)] = values[col][col_mask]
            result[col] = series
        return result


def _convergence_signal(previous: dict, current: dict, kinds: dict) -> float:
    """Change of the imputed cells between two passes.

    Numeric cells contribute ``sum((cur - prev)^2) / sum(cur^2)``, or the plain
    ``sum((cur - prev)^2)`` when every current value is 0, so a jump to zero
    still counts as change. Categorical cells contribute the fraction whose
    label changed; the signal is the larger of the two.
    """
    num_diff = num_norm = 0.0
    has_numeric = False
    cat_changed = cat_total = 0

    for col, cur in current.items():
        prev = previous[col]
        if kinds[col] is ColumnKind.NUMERIC:
            has_numeric = True
            num_diff += float(np.sum((cur - prev) ** 2))
            num_norm += float(np.sum(cur ** 2))
        else:
            cat_changed += int(np.sum(cur != prev))
            cat_total += len(cur)

    parts = []
    if has_numeric:
        parts.append(num_diff / num_norm if num_norm > 0 else num_diff)
    if cat_total:
        parts.append(cat_changed / cat_total)
    return max(parts) if parts else 0.0
