from .binning import BinningResult, apply_bins, equal_frequency_bins
from .fill import FillRule, fill_missing, mode, recode_unknown
from .filter import drop_incomplete_rows, drop_sparse_columns

__all__ = [
    "BinningResult",
    "apply_bins",
    "equal_frequency_bins",
    "FillRule",
    "fill_missing",
    "mode",
    "recode_unknown",
    "drop_incomplete_rows",
    "drop_sparse_columns",
]
