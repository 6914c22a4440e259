"""Equal-frequency binning that keeps missing values as their own category."""
from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from chainfill.exceptions import DegenerateBinningWarning, InvalidConfigurationError


@dataclass
class BinningResult:
    """Outcome of :func:`equal_frequency_bins`.

    Attributes:
        binned: Ordered categorical series, bin labels first and the missing
            label last.
        edges: Upper boundaries of every bin but the last. A value ``x`` falls
            in the first bin ``i`` with ``x <= edges[i]``, otherwise in the
            last bin.
        labels: Bin labels in order (missing label excluded).
        counts: Non-missing values per bin.
        requested_bins: The ``n_bins`` asked for.
        missing_label: Category used for missing cells.
    """

    binned: pd.Series
    edges: np.ndarray
    labels: list[str]
    counts: list[int]
    requested_bins: int
    missing_label: str = "Missing"
    bounds: list[tuple[float, float]] = field(default_factory=list, repr=False)

    @property
    def n_bins(self) -> int:
        return len(self.labels)

    @property
    def degenerate(self) -> bool:
        """True when fewer bins than requested could be formed."""
        return self.n_bins < self.requested_bins


def _format_edge(value: float) -> str:
    return f"{value:.10g}"


def _default_labels(bounds: list[tuple[float, float]]) -> list[str]:
    labels = []
    for i, (low, high) in enumerate(bounds):
        if i == 0:
            labels.append(f"[{_format_edge(low)}, {_format_edge(high)}]")
        else:
            previous_high = bounds[i - 1][1]
            labels.append(f"({_format_edge(previous_high)}, {_format_edge(high)}]")
    return labels


def _assign(values: np.ndarray, edges: np.ndarray) -> np.ndarray:
    """Bin index per value; values equal to an edge go to the lower bin."""
    return np.searchsorted(edges, values, side="left")


def equal_frequency_bins(
    series: pd.Series,
    n_bins: int,
    missing_label: str = "Missing",
    labels: Optional[Sequence[str]] = None,
) -> BinningResult:
    """Discretize a numeric series into ``n_bins`` bins of (near) equal count.

    Non-missing values are ranked stably (ties by row order) and rank ``r`` of
    ``N`` goes to bin ``floor(r * n_bins / N)``, so bin sizes differ by at most
    one. Equal values that straddle a cut are then pulled into the lower bin,
    which keeps every boundary lower-bin-inclusive and the assignment a pure
    function of the value. Bins emptied by this are dropped and a
    :class:`DegenerateBinningWarning` is emitted.

    Args:
        series: Numeric series, may contain missing values.
        n_bins: Requested number of bins, at least 2.
        missing_label: Category for missing cells.
        labels: Optional custom labels, one per requested bin. Only used when
            all requested bins could be formed.

    Returns:
        :class:`BinningResult`.
    """
    if n_bins < 2:
        raise InvalidConfigurationError(f"n_bins must be >= 2, got {n_bins}")
    if pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(series):
        raise InvalidConfigurationError(f"Equal-frequency binning needs a numeric series, got {series.dtype}")
    if labels is not None and len(labels) != n_bins:
        raise InvalidConfigurationError(f"Expected {n_bins} labels, got {len(labels)}")

    observed = series.dropna().to_numpy(dtype=float)
    n_observed = len(observed)

    if n_observed == 0:
        edges = np.array([], dtype=float)
        bounds: list[tuple[float, float]] = []
    else:
        order = np.argsort(observed, kind="stable")
        sorted_values = observed[order]
        rank_bins = (np.arange(n_observed) * n_bins) // n_observed

        # the first rank holding each distinct value decides its bin
        first_rank = np.searchsorted(sorted_values, sorted_values, side="left")
        value_bins = rank_bins[first_rank]

        used = np.unique(value_bins)
        bounds = [
            (float(sorted_values[value_bins == b].min()), float(sorted_values[value_bins == b].max()))
            for b in used
        ]
        edges = np.array([high for _, high in bounds[:-1]], dtype=float)

    result = _build_result(series, edges, bounds, n_bins, missing_label, labels)

    if result.degenerate:
        warnings.warn(
            f"Only {result.n_bins} of {n_bins} requested bins could be formed "
            f"from {len(np.unique(observed))} distinct values",
            DegenerateBinningWarning,
            stacklevel=2,
        )

    return result


def apply_bins(series: pd.Series, result: BinningResult) -> pd.Series:
    """Bin a new series with boundaries learned by :func:`equal_frequency_bins`.

    Values beyond the learned range fall into the first or last bin.
    """
    return _label_series(series, result.edges, result.labels, result.missing_label)


def _build_result(
    series: pd.Series,
    edges: np.ndarray,
    bounds: list[tuple[float, float]],
    requested: int,
    missing_label: str,
    labels: Optional[Sequence[str]],
) -> BinningResult:
    if labels is not None and len(bounds) == requested:
        bin_labels = list(labels)
    else:
        bin_labels = _default_labels(bounds)

    if missing_label in bin_labels:
        raise InvalidConfigurationError(f"Missing label {missing_label!r} collides with a bin label")

    binned = _label_series(series, edges, bin_labels, missing_label)
    counts = [int((binned == label).sum()) for label in bin_labels]

    return BinningResult(
        binned=binned,
        edges=edges,
        labels=bin_labels,
        counts=counts,
        requested_bins=requested,
        missing_label=missing_label,
        bounds=bounds,
    )


def _label_series(
    series: pd.Series,
    edges: np.ndarray,
    bin_labels: list[str],
    missing_label: str,
) -> pd.Series:
    categories = list(bin_labels) + [missing_label]
    codes = np.full(len(series), len(bin_labels), dtype=int)

    observed = series.notna().to_numpy()
    if bin_labels:
        values = series.to_numpy(dtype=float, na_value=np.nan)[observed]
        codes[observed] = _assign(values, edges)

    binned = pd.Categorical.from_codes(codes, categories=categories, ordered=True)
    return pd.Series(binned, index=series.index, name=series.name)
