"""ImputationConfig validation, YAML loading and the imputers and transforms it drives."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from chainfill import (
    ImputationConfig,
    InvalidConfigurationError,
    IterativeImputer,
    MultipleImputer,
    apply_binning,
    apply_exclusion,
    build_imputer,
)


def test_defaults():
    config = ImputationConfig()
    assert config.missing_threshold == 0.5
    assert config.n_replicas == 1
    assert config.to_dict()["estimator"] == "random_forest"


@pytest.mark.parametrize("kwargs", [
    {"missing_threshold": 1.2},
    {"missing_threshold": -0.1},
    {"max_missing": -1},
    {"n_bins": 1},
    {"max_iter": 0},
    {"tol": -1e-3},
    {"n_replicas": 0},
    {"n_estimators": 0},
    {"estimator": "svm"},
])
def test_invalid_values(kwargs):
    with pytest.raises(InvalidConfigurationError):
        ImputationConfig(**kwargs)


def test_invalid_config_is_a_value_error():
    with pytest.raises(ValueError):
        ImputationConfig(n_bins=0)


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(InvalidConfigurationError, match="n_bin"):
        ImputationConfig.from_dict({"n_bin": 3})


def test_from_yaml(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("n_replicas: 5\nrandom_state: 42\nestimator: linear\n")

    config = ImputationConfig.from_yaml(path)

    assert config.n_replicas == 5
    assert config.random_state == 42
    assert config.estimator == "linear"
    assert config.max_iter == 10


def test_from_yaml_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert ImputationConfig.from_yaml(path) == ImputationConfig()


def test_from_yaml_not_a_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(InvalidConfigurationError):
        ImputationConfig.from_yaml(path)


def test_round_trip_through_dict():
    config = ImputationConfig(n_bins=6, tol=0.01, random_state=3)
    assert ImputationConfig.from_dict(config.to_dict()) == config


class TestBuildImputer:
    def test_single(self):
        imputer = build_imputer(ImputationConfig(max_iter=4, estimator="linear", random_state=1))

        assert isinstance(imputer, IterativeImputer)
        assert imputer.max_iter == 4
        assert imputer.estimator == "linear"
        assert imputer.random_state == 1

    def test_multiple(self):
        imputer = build_imputer(ImputationConfig(n_replicas=3, n_jobs=2, random_state=1, n_estimators=20))

        assert isinstance(imputer, MultipleImputer)
        assert imputer.n_replicas == 3
        assert imputer.n_jobs == 2
        assert imputer.template.n_estimators == 20
        assert imputer.template.sample_posterior


class TestConfigDrivenTransforms:
    @pytest.fixture
    def frame(self):
        return pd.DataFrame({
            "sparse": [np.nan, np.nan, np.nan, 1.0],
            "x": [1.0, np.nan, 3.0, 4.0],
            "label": ["a", "b", None, "a"],
        })

    def test_exclusion_uses_threshold_and_row_limit(self, frame):
        result = apply_exclusion(frame, ImputationConfig(missing_threshold=0.5, max_missing=0))

        assert list(result.columns) == ["x", "label"]
        assert list(result.index) == [0, 3]

    def test_exclusion_row_limit(self, frame):
        kept_columns = apply_exclusion(frame, ImputationConfig(missing_threshold=1.0, max_missing=1))
        assert list(kept_columns.columns) == ["sparse", "x", "label"]
        assert list(kept_columns.index) == [0, 3]

        lenient = apply_exclusion(frame, ImputationConfig(missing_threshold=1.0, max_missing=2))
        assert list(lenient.index) == [0, 1, 2, 3]

    def test_binning_uses_n_bins(self):
        df = pd.DataFrame({"v": [float(i) for i in range(1, 11)], "label": list("abcdefghij")})
        binned, results = apply_binning(df, ImputationConfig(n_bins=3))

        assert list(results) == ["v"]
        assert results["v"].counts == [4, 3, 3]
        assert list(binned["v"].cat.categories) == ["[1, 4]", "(4, 7]", "(7, 10]", "Missing"]
        assert list(binned["label"]) == list(df["label"])

    def test_binning_unknown_column(self):
        with pytest.raises(InvalidConfigurationError):
            apply_binning(pd.DataFrame({"v": [1.0, 2.0]}), ImputationConfig(), columns=["w"])
