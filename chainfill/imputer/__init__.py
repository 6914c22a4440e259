from .baseline import StatisticalImputer
from .iterative import IterativeImputer
from .models import CategoricalModel, ColumnModel, NumericModel, make_column_model
from .multiple import MultipleImputer
from .types import ImputationDiagnostics, ImputedReplica

__all__ = [
    "StatisticalImputer",
    "IterativeImputer",
    "ColumnModel",
    "NumericModel",
    "CategoricalModel",
    "make_column_model",
    "MultipleImputer",
    "ImputationDiagnostics",
    "ImputedReplica",
]
