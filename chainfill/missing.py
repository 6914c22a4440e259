import logging
from typing import Literal, Optional, Sequence

import numpy as np
import pandas as pd
from pyampute import MultivariateAmputation

from chainfill.core.base import ColumnKind
from chainfill.core.missing import infer_column_kinds
from chainfill.exceptions import InvalidConfigurationError

Mechanism = Literal['MCAR', 'MAR', 'MNAR']


def ampute(
    df: pd.DataFrame,
    proportion: float = 0.3,
    columns: Optional[Sequence[str]] = None,
    mechanism: Mechanism = 'MCAR',
    seed: Optional[int] = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Introduce missing values into a complete DataFrame using pyampute.

    Categorical columns are amputed through their integer codes and keep
    their dtype; integer columns become float.

    Args:
        df: Complete DataFrame without missing values.
        proportion: Share of rows that receive at least one missing value.
        columns: Columns that may become missing, one pyampute pattern each,
            so an amputed row loses exactly one cell. Defaults to all columns.
        mechanism: 'MCAR', 'MAR' (depends on the other columns) or 'MNAR'.
        seed: Random seed for reproducibility.

    Returns:
        Tuple of (df_missing, mask), mask True where values were removed.

    Example:
        df_missing, mask = ampute(df, proportion=0.3, columns=['age'], mechanism='MAR', seed=0)
    """
    if not 0.0 < proportion < 1.0:
        raise InvalidConfigurationError(f"proportion must be in (0, 1), got {proportion}")
    if df.isnull().any().any():
        nan_cols = df.columns[df.isnull().any()].tolist()
        raise InvalidConfigurationError(f"Input DataFrame already contains missing values in columns: {nan_cols}")

    kinds = infer_column_kinds(df)
    categories: dict[str, pd.Categorical] = {}
    numeric = df.copy()
    for col, kind in kinds.items():
        if kind is ColumnKind.CATEGORICAL:
            categories[col] = pd.Categorical(df[col])
            numeric[col] = categories[col].codes.astype(float)
        else:
            numeric[col] = df[col].astype(float)

    targets = list(columns) if columns is not None else list(df.columns)
    unknown = [col for col in targets if col not in df.columns]
    if unknown:
        raise InvalidConfigurationError(f"Unknown columns: {unknown}")
    patterns = [
        {
            'incomplete_vars': [df.columns.get_loc(col)],
            'mechanism': mechanism,
            'freq': 1 / len(targets),
        }
        for col in targets
    ]

    # pyampute logs a warning for every pattern it adjusts
    logging.disable(logging.WARNING)
    try:
        amputer = MultivariateAmputation(prop=proportion, patterns=patterns, seed=seed)
        amputed = pd.DataFrame(amputer.fit_transform(numeric), columns=df.columns, index=df.index)
    finally:
        logging.disable(logging.NOTSET)

    mask = amputed.isna()
    df_missing = df.copy()
    for col in df.columns:
        if not mask[col].any():
            continue
        if pd.api.types.is_bool_dtype(df_missing[col]):
            df_missing[col] = df_missing[col].astype(object)
        elif col not in categories and not pd.api.types.is_float_dtype(df_missing[col]):
            df_missing[col] = df_missing[col].astype(float)
        df_missing.loc[mask[col], col] = np.nan

    return df_missing, mask
