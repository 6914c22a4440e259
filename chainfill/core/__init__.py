from .base import ArrayLike, ColumnDescriptor, ColumnKind, Imputer, imputed_float_dtype
from .missing import infer_column_kinds, missing_mask, missing_patterns, missing_summary, profile_missing

__all__ = [
    "ArrayLike",
    "ColumnDescriptor",
    "ColumnKind",
    "Imputer",
    "imputed_float_dtype",
    "infer_column_kinds",
    "missing_mask",
    "missing_patterns",
    "missing_summary",
    "profile_missing",
]
