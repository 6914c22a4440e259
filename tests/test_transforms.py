"""Profiling, row and column exclusion, fills and equal-frequency binning."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from chainfill import (
    ColumnKind,
    DegenerateBinningWarning,
    DegenerateInputError,
    DegenerateInputWarning,
    DegenerateResultWarning,
    InvalidConfigurationError,
    apply_bins,
    drop_incomplete_rows,
    drop_sparse_columns,
    equal_frequency_bins,
    fill_missing,
    missing_mask,
    missing_patterns,
    missing_summary,
    profile_missing,
    recode_unknown,
)
from chainfill.transforms import FillRule, mode


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sparse_frame():
    """C is 60% missing, D 30%, E complete."""
    return pd.DataFrame({
        "C": [np.nan] * 6 + [1.0, 2.0, 3.0, 4.0],
        "D": [np.nan] * 3 + list(range(7)),
        "E": list("abcdefghij"),
    })


@pytest.fixture
def mixed():
    return pd.DataFrame({
        "num": [1.0, np.nan, 3.0, 8.0],
        "cat": ["a", None, "b", "b"],
        "other": [np.nan, 1.0, 2.0, 3.0],
    })


# ---------------------------------------------------------------------------
# Profiling
# ---------------------------------------------------------------------------

class TestProfiling:
    def test_counts_and_fractions(self, sparse_frame):
        profile = profile_missing(sparse_frame)

        assert profile["C"].missing_count == 6
        assert profile["C"].missing_fraction == pytest.approx(0.6)
        assert profile["D"].missing_fraction == pytest.approx(0.3)
        assert not profile["E"].has_missing
        assert profile["E"].kind is ColumnKind.CATEGORICAL
        assert profile["C"].kind is ColumnKind.NUMERIC

    def test_kind_override(self, sparse_frame):
        profile = profile_missing(sparse_frame, kinds={"D": "categorical"})
        assert profile["D"].kind is ColumnKind.CATEGORICAL

    def test_zero_rows_is_an_error(self):
        with pytest.raises(DegenerateInputError):
            profile_missing(pd.DataFrame({"a": pd.Series([], dtype=float)}))

    def test_zero_is_not_missing(self):
        df = pd.DataFrame({"a": [0, 0, 1], "b": ["", "x", ""]})
        assert missing_mask(df).sum() == 0

    def test_missing_mask_numpy_object(self):
        arr = np.array([["x", None], [1.0, np.nan]], dtype=object)
        np.testing.assert_array_equal(missing_mask(arr), [[False, True], [False, True]])

    def test_summary_sorted(self, sparse_frame):
        summary = missing_summary(sparse_frame)
        assert list(summary.index) == ["C", "D", "E"]
        assert summary.loc["C", "kind"] == "numeric"

    def test_patterns(self, mixed):
        patterns = missing_patterns(mixed)
        assert patterns["count"].sum() == len(mixed)
        assert set(patterns["n_missing_cols"]) == {0, 1, 2}
        assert patterns.loc[0, "count"] == 2


# ---------------------------------------------------------------------------
# Exclusion
# ---------------------------------------------------------------------------

class TestFilters:
    def test_threshold_scenario(self, sparse_frame):
        result = drop_sparse_columns(sparse_frame, threshold=0.5)
        assert list(result.columns) == ["D", "E"]

    def test_threshold_is_inclusive(self, sparse_frame):
        assert "C" not in drop_sparse_columns(sparse_frame, threshold=0.6).columns

    @pytest.mark.parametrize("threshold", [0.25, 0.5, 0.61, 1.0])
    def test_idempotent(self, sparse_frame, threshold):
        once = drop_sparse_columns(sparse_frame, threshold)
        twice = drop_sparse_columns(once, threshold)
        assert list(twice.columns) == list(once.columns)

    def test_all_columns_dropped_warns(self, sparse_frame):
        with pytest.warns(DegenerateResultWarning):
            result = drop_sparse_columns(sparse_frame, threshold=0.0)
        assert result.shape == (10, 0)

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_invalid_threshold(self, sparse_frame, threshold):
        with pytest.raises(InvalidConfigurationError):
            drop_sparse_columns(sparse_frame, threshold)

    def test_complete_rows(self, mixed):
        result = drop_incomplete_rows(mixed)
        assert list(result.index) == [2, 3]
        assert not result.isna().any().any()

    def test_max_missing(self, mixed):
        assert list(drop_incomplete_rows(mixed, max_missing=1).index) == [0, 2, 3]
        assert len(drop_incomplete_rows(mixed, max_missing=2)) == 4

    def test_negative_max_missing(self, mixed):
        with pytest.raises(InvalidConfigurationError):
            drop_incomplete_rows(mixed, max_missing=-1)

    def test_source_untouched(self, sparse_frame):
        before = sparse_frame.copy()
        drop_sparse_columns(sparse_frame, 0.5)
        drop_incomplete_rows(sparse_frame)
        pd.testing.assert_frame_equal(sparse_frame, before)


# ---------------------------------------------------------------------------
# Fills
# ---------------------------------------------------------------------------

class TestFill:
    def test_mode_first_encountered_on_tie(self):
        assert mode(pd.Series(["b", "a", "a", "b", None])) == "b"
        assert mode(pd.Series([2.0, 1.0, 1.0, 2.0])) == 2.0

    def test_mode_of_empty_is_missing(self):
        assert pd.isna(mode(pd.Series([None, None], dtype=object)))

    def test_rules(self, mixed):
        result = fill_missing(mixed, {"num": "mean", "cat": FillRule.MODE})
        assert result.loc[1, "num"] == pytest.approx(4.0)
        assert result.loc[1, "cat"] == "b"
        assert pd.isna(result.loc[0, "other"]), "Unnamed columns keep their missing markers"

    def test_median_and_constant(self, mixed):
        result = fill_missing(mixed, {"num": FillRule.MEDIAN, "other": ("constant", 0.0)})
        assert result.loc[1, "num"] == 3.0
        assert result.loc[0, "other"] == 0.0

    def test_mean_on_categorical_rejected(self, mixed):
        with pytest.raises(InvalidConfigurationError):
            fill_missing(mixed, {"cat": "mean"})

    @pytest.mark.parametrize("rules", [
        {"missing_col": "mean"},
        {"num": "average"},
        {"num": "constant"},
        {"num": ("mean", 1.0)},
    ])
    def test_bad_rules(self, mixed, rules):
        with pytest.raises(InvalidConfigurationError):
            fill_missing(mixed, rules)

    def test_nullable_integer_mean_becomes_float(self):
        df = pd.DataFrame({"a": pd.array([1, 2, None, 4], dtype="Int64")})
        result = fill_missing(df, {"a": "mean"})

        assert result["a"].dtype == "Float64"
        assert result.loc[2, "a"] == pytest.approx(7 / 3)
        assert result.loc[0, "a"] == 1.0

    def test_nullable_integer_integral_fill_keeps_dtype(self):
        df = pd.DataFrame({"a": pd.array([1, 2, None, 4], dtype="Int64")})
        result = fill_missing(df, {"a": "median"})

        assert result["a"].dtype == "Int64"
        assert result.loc[2, "a"] == 2

    def test_empty_column_warns(self):
        df = pd.DataFrame({"e": [np.nan, np.nan]})
        with pytest.warns(DegenerateInputWarning):
            result = fill_missing(df, {"e": "mean"})
        assert result["e"].isna().all()

    def test_recode_unknown(self, mixed):
        result = recode_unknown(mixed)
        assert result.loc[1, "cat"] == "Unknown"
        assert pd.isna(result.loc[1, "num"])

    def test_recode_unknown_category_dtype(self, mixed):
        df = mixed.astype({"cat": "category"})
        result = recode_unknown(df, label="n/a")
        assert "n/a" in result["cat"].cat.categories
        assert result.loc[1, "cat"] == "n/a"

    def test_recode_numeric_rejected(self, mixed):
        with pytest.raises(InvalidConfigurationError):
            recode_unknown(mixed, columns=["num"])


# ---------------------------------------------------------------------------
# Equal-frequency binning
# ---------------------------------------------------------------------------

class TestBinning:
    def test_known_split(self):
        series = pd.Series([float(v) for v in range(1, 11)])
        result = equal_frequency_bins(series, 3)

        assert result.counts == [4, 3, 3]
        np.testing.assert_array_equal(result.edges, [4.0, 7.0])
        assert result.labels == ["[1, 4]", "(4, 7]", "(7, 10]"]
        assert not result.degenerate

    def test_boundary_goes_to_lower_bin(self):
        series = pd.Series([float(v) for v in range(1, 11)])
        result = equal_frequency_bins(series, 3)
        assert result.binned[3] == "[1, 4]"
        assert result.binned[4] == "(4, 7]"

    def test_missing_preserved(self):
        series = pd.Series([1.0, np.nan, 2.0, 3.0, np.nan, 4.0])
        result = equal_frequency_bins(series, 2, missing_label="NA")

        assert list(result.binned.cat.categories)[-1] == "NA"
        assert (result.binned[series.isna()] == "NA").all()
        assert sum(result.counts) == 4
        assert result.binned.cat.ordered

    @pytest.mark.parametrize("n_bins", [2, 3, 4, 5, 7])
    def test_balanced_counts(self, n_bins):
        values = np.random.RandomState(0).permutation(23).astype(float)
        result = equal_frequency_bins(pd.Series(values), n_bins)

        assert len(result.counts) == n_bins
        spread = max(result.counts) - min(result.counts)
        assert spread <= (1 if 23 % n_bins else 0)

    def test_deterministic_rebinning(self):
        series = pd.Series(np.random.RandomState(1).normal(size=50))
        first = equal_frequency_bins(series, 4)
        second = equal_frequency_bins(series.copy(), 4)

        pd.testing.assert_series_equal(first.binned, second.binned)
        pd.testing.assert_series_equal(apply_bins(series, first), first.binned)

    def test_ties_do_not_split(self):
        series = pd.Series([1.0, 1.0, 1.0, 2.0, 2.0])
        with pytest.warns(DegenerateBinningWarning):
            result = equal_frequency_bins(series, 4)

        assert result.degenerate
        assert result.n_bins == 2
        assert result.counts == [3, 2]

    def test_all_missing(self):
        series = pd.Series([np.nan, np.nan])
        with pytest.warns(DegenerateBinningWarning):
            result = equal_frequency_bins(series, 3)
        assert (result.binned == "Missing").all()
        assert result.n_bins == 0

    def test_custom_labels(self):
        series = pd.Series([1.0, 2.0, 3.0, 4.0])
        result = equal_frequency_bins(series, 2, labels=["low", "high"])
        assert list(result.binned) == ["low", "low", "high", "high"]

    @pytest.mark.parametrize("kwargs", [
        {"n_bins": 1},
        {"n_bins": 2, "labels": ["only-one"]},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(InvalidConfigurationError):
            equal_frequency_bins(pd.Series([1.0, 2.0, 3.0]), **kwargs)

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            equal_frequency_bins(pd.Series(["a", "b"]), 2)
