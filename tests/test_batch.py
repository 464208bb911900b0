"""Tests for multi-gauge KGE evaluation."""

import numpy as np
import pandas as pd
import pytest

from hydro_kge.config.settings import BatchConfig, KGEConfig, LoggingConfig, Settings
from hydro_kge.evaluation.batch import (
    evaluate_many,
    evaluate_with_settings,
    kge_metrics_dataframe,
)
from hydro_kge.evaluation.kge import MISSING_VALUE, evaluate_kge


def _make_pairs():
    rng = np.random.default_rng(42)
    pairs = {}
    for i in range(4):
        obs = rng.gamma(2.0, 1.5, size=60)
        sim = obs * (1.0 + 0.1 * i) + rng.normal(0.0, 0.3, size=60)
        obs[::7] = MISSING_VALUE
        pairs[f"gauge_{i:03d}"] = (obs, sim)
    return pairs


class TestKGEMetricsDataframe:
    """Test single-gauge metrics DataFrame creation."""

    def test_basic_functionality(self):
        """Test basic metrics DataFrame creation."""
        obs = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        sim = np.array([1.1, 1.9, 3.1, 3.9, 4.9])
        gauge_id = "test_gauge"

        result = kge_metrics_dataframe(gauge_id, obs, sim)

        assert len(result) == 1
        assert result.index[0] == gauge_id
        for column in ["KGE", "r", "alpha", "beta", "w_r", "w_alpha", "w_beta"]:
            assert column in result.columns
        assert "error" not in result.columns
        assert result.loc[gauge_id, "KGE"] == pytest.approx(evaluate_kge(obs, sim).value)

    def test_data_quality_metrics(self):
        """Test that data quality metrics count missing observations."""
        obs = np.array([1.0, 2.0, MISSING_VALUE, 4.0, 5.0])
        sim = np.array([1.1, 1.9, 3.1, 3.9, 4.9])
        gauge_id = "test_gauge"

        result = kge_metrics_dataframe(gauge_id, obs, sim)

        assert result.loc[gauge_id, "n_observations"] == 5
        assert result.loc[gauge_id, "n_valid"] == 4
        assert result.loc[gauge_id, "completeness"] == 0.8

    def test_quality_metrics_after_warmup(self):
        """Test that quality metrics describe the window after warmup."""
        obs = np.array([MISSING_VALUE, 2.0, 3.0, 4.0, 5.0, 6.0])
        sim = np.array([1.0, 2.1, 2.9, 4.2, 5.1, 5.8])

        result = kge_metrics_dataframe("g", obs, sim, config=KGEConfig(warmup=2))

        assert result.loc["g", "n_observations"] == 4
        assert result.loc["g", "n_valid"] == 4
        assert result.loc["g", "completeness"] == 1.0

    def test_weights_reported(self):
        """Test that the applied weights are part of the row."""
        config = KGEConfig(weights=[2.0, 1.0, 0.5])

        result = kge_metrics_dataframe("g", [1.0, 2.0, 3.0], [1.0, 2.5, 2.0], config=config)

        assert result.loc["g", ["w_r", "w_alpha", "w_beta"]].tolist() == [2.0, 1.0, 0.5]

    def test_error_handling(self):
        """Test that evaluation errors are recorded instead of raised."""
        result = kge_metrics_dataframe("test_gauge", [1.0, 2.0, 3.0], [1.0, 2.0])

        assert len(result) == 1
        assert pd.isna(result.loc["test_gauge", "KGE"])
        assert pd.isna(result.loc["test_gauge", "n_valid"])
        assert "not of equal size" in result.loc["test_gauge", "error"]

    def test_degenerate_error_recorded(self):
        """Test that the raise policy surfaces as an error column."""
        config = KGEConfig(on_degenerate="raise")

        result = kge_metrics_dataframe("flat", [3.0, 3.0, 3.0], [1.0, 2.0, 3.0], config=config)

        assert "zero variance" in result.loc["flat", "error"]


class TestEvaluateMany:
    """Test multi-gauge evaluation."""

    def test_one_row_per_gauge(self):
        """Test that each gauge gets one row in input order."""
        pairs = _make_pairs()

        table = evaluate_many(pairs)

        assert list(table.index) == list(pairs)
        for gauge_id, (obs, sim) in pairs.items():
            assert table.loc[gauge_id, "KGE"] == pytest.approx(evaluate_kge(obs, sim).value)

    def test_config_applied(self):
        """Test that the shared config reaches every gauge."""
        pairs = _make_pairs()
        config = KGEConfig(weights=[1.0, 2.0, 1.0], warmup=10)

        table = evaluate_many(pairs, config=config)

        for gauge_id, (obs, sim) in pairs.items():
            expected = evaluate_kge(obs, sim, config=config).value
            assert table.loc[gauge_id, "KGE"] == pytest.approx(expected)

    def test_failures_do_not_abort(self):
        """Test that one failing gauge leaves the others intact."""
        pairs = _make_pairs()
        pairs["broken"] = (np.ones(10), np.ones(12))

        table = evaluate_many(pairs)

        assert len(table) == 5
        assert "not of equal size" in table.loc["broken", "error"]
        assert pd.isna(table.loc["gauge_000", "error"])
        assert table.drop(index="broken")["KGE"].notna().all()

    def test_pool_matches_in_process(self):
        """Test that a worker pool gives the same table as serial evaluation."""
        pairs = _make_pairs()

        serial = evaluate_many(pairs, n_workers=1)
        pooled = evaluate_many(pairs, n_workers=2)

        pd.testing.assert_frame_equal(serial, pooled)

    def test_pool_progress_follows_results(self, monkeypatch):
        """Test that the pool progress bar advances as gauges finish."""
        seen = {}

        def fake_tqdm(iterable, **kwargs):
            seen["iterable"] = iterable
            seen["total"] = kwargs.get("total")
            return iterable

        monkeypatch.setattr("hydro_kge.evaluation.batch.tqdm", fake_tqdm)

        table = evaluate_many(_make_pairs(), n_workers=2, show_progress=True)

        # A finished list would make the bar jump straight to 100%
        assert not isinstance(seen["iterable"], list)
        assert seen["total"] == 4
        assert len(table) == 4

    def test_empty_input(self):
        """Test that no gauges give an empty table."""
        table = evaluate_many({})

        assert table.empty
        assert "KGE" in table.columns

    def test_with_settings(self, tmp_path):
        """Test evaluation driven by a full Settings object."""
        pairs = _make_pairs()
        log_file = tmp_path / "kge.log"
        settings = Settings(
            kge=KGEConfig(warmup=5),
            batch=BatchConfig(n_workers=1),
            logging=LoggingConfig(log_file=log_file),
        )

        table = evaluate_with_settings(pairs, settings)

        expected = evaluate_many(pairs, config=KGEConfig(warmup=5))
        pd.testing.assert_frame_equal(table, expected)
        assert log_file.exists()
