"""Constant and statistic-based fill."""
from __future__ import annotations

import warnings
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from chainfill.core.base import ColumnKind, imputed_float_dtype
from chainfill.exceptions import DegenerateInputWarning, InvalidConfigurationError


class FillRule(str, Enum):
    CONSTANT = "constant"
    MEAN = "mean"
    MEDIAN = "median"
    MODE = "mode"


def mode(series: pd.Series) -> Any:
    """Most frequent non-missing value.

    Ties are broken by the value encountered first in row order, so the
    result is reproducible regardless of dtype or category ordering.

    Returns:
        The mode, or ``np.nan`` if the series has no observed values.
    """
    observed = series.dropna().astype(object)
    if observed.empty:
        return np.nan
    codes, uniques = pd.factorize(observed, sort=False)
    return uniques[int(np.argmax(np.bincount(codes)))]


def _parse_rule(column: str, rule) -> tuple[FillRule, Any]:
    if isinstance(rule, tuple):
        if len(rule) != 2:
            raise InvalidConfigurationError(f"Fill rule for {column!r} must be (rule, value), got {rule!r}")
        name, value = rule
        if FillRule(name) is not FillRule.CONSTANT:
            raise InvalidConfigurationError(f"Only constant rules take a value (column {column!r})")
        return FillRule.CONSTANT, value

    try:
        parsed = FillRule(rule)
    except ValueError:
        raise InvalidConfigurationError(f"Unknown fill rule for {column!r}: {rule!r}") from None

    if parsed is FillRule.CONSTANT:
        raise InvalidConfigurationError(f"Constant rule for {column!r} needs a value: ('constant', value)")
    return parsed, None


def _fill_value(series: pd.Series, rule: FillRule, value: Any) -> Any:
    match rule:
        case FillRule.CONSTANT:
            return value
        case FillRule.MEAN:
            return series.mean(skipna=True)
        case FillRule.MEDIAN:
            return series.median(skipna=True)
        case FillRule.MODE:
            return mode(series)


def _fit_integer_column(series: pd.Series, fill) -> tuple[pd.Series, Any]:
    """Integral fills keep the integer dtype, anything else widens it to float."""
    if float(fill).is_integer():
        return series, int(fill)
    return series.astype(imputed_float_dtype(series.dtype)), float(fill)


def fill_missing(df: pd.DataFrame, rules: Mapping[str, Any]) -> pd.DataFrame:
    """Replace missing cells of the named columns.

    Args:
        df: Input frame. Not modified.
        rules: Column name to rule. A rule is a :class:`FillRule` (or its
            name) for mean / median / mode, or ``('constant', value)``.

    Returns:
        New frame. Columns not in ``rules`` keep their missing markers.
        An integer column (e.g. ``Int64``) filled with a non-integral mean or
        median becomes ``Float64`` (``float64`` for numpy integers).

    Raises:
        InvalidConfigurationError: Unknown column or rule, or mean / median
            requested for a categorical column.

    Example:
        >>> fill_missing(df, {'age': 'median', 'city': 'mode', 'score': ('constant', 0)})
    """
    parsed = {}
    for column, rule in rules.items():
        if column not in df.columns:
            raise InvalidConfigurationError(f"Unknown column: {column!r}")
        fill_rule, value = _parse_rule(column, rule)
        if fill_rule in (FillRule.MEAN, FillRule.MEDIAN) and ColumnKind.of(df[column]) is ColumnKind.CATEGORICAL:
            raise InvalidConfigurationError(f"Cannot apply {fill_rule.value} to categorical column {column!r}")
        parsed[column] = (fill_rule, value)

    result = df.copy()
    for column, (fill_rule, value) in parsed.items():
        series = result[column]
        if not series.isna().any():
            continue

        fill = _fill_value(series, fill_rule, value)
        if pd.isna(fill):
            warnings.warn(
                f"Column {column!r} has no observed values; {fill_rule.value} fill skipped",
                DegenerateInputWarning,
                stacklevel=2,
            )
            continue

        if isinstance(series.dtype, pd.CategoricalDtype) and fill not in series.cat.categories:
            series = series.cat.add_categories([fill])
        elif pd.api.types.is_integer_dtype(series.dtype) and isinstance(fill, (int, float, np.number)):
            series, fill = _fit_integer_column(series, fill)
        result[column] = series.fillna(fill)

    return result


def recode_unknown(
    df: pd.DataFrame,
    columns: Optional[Iterable[str]] = None,
    label: str = "Unknown",
) -> pd.DataFrame:
    """Turn missing cells of categorical columns into an explicit category.

    Args:
        df: Input frame. Not modified.
        columns: Categorical columns to recode. Defaults to every categorical
            column that has missing values.
        label: Category standing for "not recorded".

    Raises:
        InvalidConfigurationError: If a named column is numeric or unknown.
    """
    if columns is None:
        columns = [
            col for col in df.columns
            if ColumnKind.of(df[col]) is ColumnKind.CATEGORICAL and df[col].isna().any()
        ]

    rules = {}
    for column in columns:
        if column not in df.columns:
            raise InvalidConfigurationError(f"Unknown column: {column!r}")
        if ColumnKind.of(df[column]) is ColumnKind.NUMERIC:
            raise InvalidConfigurationError(f"Cannot recode numeric column {column!r} as categorical")
        rules[column] = (FillRule.CONSTANT, label)

    return fill_missing(df, rules)
