"""Run configuration: validation, YAML loading and the helpers it drives."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from chainfill.core.base import ColumnKind
from chainfill.core.missing import infer_column_kinds
from chainfill.exceptions import InvalidConfigurationError
from chainfill.imputer.iterative import IterativeImputer
from chainfill.imputer.models import ESTIMATORS
from chainfill.imputer.multiple import MultipleImputer
from chainfill.transforms.binning import BinningResult, equal_frequency_bins
from chainfill.transforms.filter import drop_incomplete_rows, drop_sparse_columns


@dataclass(frozen=True)
class ImputationConfig:
    """Every knob of a missing-data handling run, passed explicitly.

    Attributes:
        missing_threshold: Column-exclusion threshold on missing fraction,
            used by :func:`apply_exclusion`.
        max_missing: Row-exclusion limit on missing cells per row, used by
            :func:`apply_exclusion`.
        n_bins: Equal-frequency bin count, used by :func:`apply_binning`.
        max_iter: Iteration cap K of the iterative imputer.
        tol: Convergence tolerance.
        n_replicas: Number of replicas M. 1 means single imputation.
        estimator: Model family for the per-column models.
        n_estimators: Trees per model for ensemble families.
        random_state: Root seed.
        n_jobs: Parallel replicas.
    """

    missing_threshold: float = 0.5
    max_missing: int = 0
    n_bins: int = 4
    max_iter: int = 10
    tol: float = 1e-3
    n_replicas: int = 1
    estimator: str = "random_forest"
    n_estimators: int = 100
    random_state: int | None = None
    n_jobs: int | None = 1

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise :class:`InvalidConfigurationError` on any out-of-range value."""
        if not 0.0 <= self.missing_threshold <= 1.0:
            raise InvalidConfigurationError(f"missing_threshold must be in [0, 1], got {self.missing_threshold}")
        if self.max_missing < 0:
            raise InvalidConfigurationError(f"max_missing must be >= 0, got {self.max_missing}")
        if self.n_bins < 2:
            raise InvalidConfigurationError(f"n_bins must be >= 2, got {self.n_bins}")
        if self.max_iter < 1:
            raise InvalidConfigurationError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.tol < 0:
            raise InvalidConfigurationError(f"tol must be >= 0, got {self.tol}")
        if self.n_replicas < 1:
            raise InvalidConfigurationError(f"n_replicas must be >= 1, got {self.n_replicas}")
        if self.n_estimators < 1:
            raise InvalidConfigurationError(f"n_estimators must be >= 1, got {self.n_estimators}")
        if self.estimator not in ESTIMATORS:
            raise InvalidConfigurationError(f"estimator must be one of {ESTIMATORS}, got {self.estimator!r}")

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> "ImputationConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidConfigurationError(f"Unknown configuration keys: {unknown}")
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ImputationConfig":
        """Load a config from a YAML mapping. An empty file gives the defaults."""
        with open(path) as f:
            values = yaml.safe_load(f) or {}
        if not isinstance(values, dict):
            raise InvalidConfigurationError(f"Expected a mapping in {path}, got {type(values).__name__}")
        return cls.from_dict(values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_imputer(config: ImputationConfig) -> IterativeImputer | MultipleImputer:
    """Single imputer for ``n_replicas == 1``, a replica runner otherwise."""
    params = dict(
        max_iter=config.max_iter,
        tol=config.tol,
        estimator=config.estimator,
        n_estimators=config.n_estimators,
    )
    if config.n_replicas == 1:
        return IterativeImputer(random_state=config.random_state, **params)
    return MultipleImputer(
        n_replicas=config.n_replicas,
        n_jobs=config.n_jobs,
        random_state=config.random_state,
        **params,
    )


def apply_exclusion(df: pd.DataFrame, config: ImputationConfig) -> pd.DataFrame:
    """Column then row exclusion driven by ``missing_threshold`` and ``max_missing``.

    Sparse columns go first so that they do not cost otherwise usable rows.
    """
    return drop_incomplete_rows(
        drop_sparse_columns(df, config.missing_threshold),
        max_missing=config.max_missing,
    )


def apply_binning(
    df: pd.DataFrame,
    config: ImputationConfig,
    columns: list[str] | None = None,
) -> tuple[pd.DataFrame, dict[str, BinningResult]]:
    """Replace numeric columns by ``config.n_bins`` equal-frequency bins.

    Args:
        df: Input frame. Not modified.
        config: Supplies ``n_bins``.
        columns: Columns to bin. Defaults to every numeric column.

    Returns:
        The binned frame and the :class:`BinningResult` per column, for
        re-applying the same boundaries with ``apply_bins``.
    """
    if columns is None:
        columns = [col for col, kind in infer_column_kinds(df).items() if kind is ColumnKind.NUMERIC]

    binned = df.copy()
    results = {}
    for col in columns:
        if col not in df.columns:
            raise InvalidConfigurationError(f"Unknown column: {col!r}")
        results[col] = equal_frequency_bins(df[col], config.n_bins)
        binned[col] = results[col].binned
    return binned, results
