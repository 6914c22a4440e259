"""Result types for the iterative imputer."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import pandas as pd

Termination = Literal["no_missing", "placeholder_only", "tolerance", "max_iter", "cancelled"]


@dataclass
class ImputationDiagnostics:
    """What happened during one run of the iterative procedure.

    Attributes:
        iterations: Completed passes over the imputed columns.
        termination: Why the run stopped.
        convergence_history: Convergence signal after each pass.
        imputed_columns: Columns refined by a model, in processing order.
        degenerate_columns: Columns with no observed value. They keep their
            placeholder (or stay missing if none exists) and are never used as
            training targets or features.
        column_order: Ordering rule used for ``imputed_columns``.
    """

    iterations: int = 0
    termination: Termination = "no_missing"
    convergence_history: list[float] = field(default_factory=list)
    imputed_columns: list[str] = field(default_factory=list)
    degenerate_columns: list[str] = field(default_factory=list)
    column_order: str = "ascending"

    @property
    def converged(self) -> bool:
        return self.termination in ("no_missing", "placeholder_only", "tolerance")

    @property
    def last_signal(self) -> float | None:
        return self.convergence_history[-1] if self.convergence_history else None


@dataclass
class ImputedReplica:
    """One completed copy of a dataset.

    Replicas produced by :class:`chainfill.imputer.multiple.MultipleImputer`
    differ only in their seed.
    """

    data: pd.DataFrame
    diagnostics: ImputationDiagnostics
    index: int = 0
    seed: int | None = None
