"""
chainfill: missing-value handling for pandas frames, from listwise deletion
to chained-equations multiple imputation
"""

from .core.base import ColumnDescriptor, ColumnKind, Imputer
from .core.missing import missing_mask, missing_patterns, missing_summary, profile_missing
from .transforms import (
    FillRule,
    apply_bins,
    drop_incomplete_rows,
    drop_sparse_columns,
    equal_frequency_bins,
    fill_missing,
    recode_unknown,
)
from .imputer import IterativeImputer, MultipleImputer, StatisticalImputer, ImputedReplica, ImputationDiagnostics
from .pooling import PooledEstimate, fit_pooled, pool_estimates
from .config import ImputationConfig, apply_binning, apply_exclusion, build_imputer
from .missing import ampute
from .exceptions import (
    ChainfillError,
    InvalidConfigurationError,
    DegenerateInputError,
    NonConvergenceWarning,
    DegenerateInputWarning,
    DegenerateBinningWarning,
    DegenerateResultWarning,
)

__version__ = "0.1.0"
