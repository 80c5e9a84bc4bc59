"""
Tests for path-count convergence tables.

[T1] Standard error ~ σ/√N, so the log-log slope is -0.5
"""

import numpy as np
import pandas as pd
import pytest

from ir_montecarlo.analysis.convergence import (
    convergence_analysis,
    estimate_convergence_rate,
)
from ir_montecarlo.products.bond import Bond


@pytest.fixture(scope="module")
def table(curve, config_factory):
    """Convergence table of the 4y bond at 250, 500 and 1000 paths."""
    config = config_factory(n_paths=10, horizon=5.0)
    return convergence_analysis(
        config,
        curve,
        Bond(4.0),
        benchmark=curve.discount_factor(4.0),
        path_counts=(250, 500, 1000),
    )


class TestConvergenceAnalysis:

    def test_rows_per_path_count(self, table):
        assert table["n_paths"].tolist() == [250, 500, 1000]

    def test_columns(self, table):
        assert list(table.columns) == [
            "n_paths",
            "value",
            "standard_error",
            "benchmark",
            "absolute_error",
            "within_ci",
        ]

    def test_standard_error_decreases(self, table):
        assert np.all(np.diff(table["standard_error"].to_numpy()) < 0)

    def test_absolute_error(self, table):
        expected = (table["value"] - table["benchmark"]).abs()
        np.testing.assert_allclose(table["absolute_error"], expected)

    def test_without_benchmark(self, curve, config_factory):
        table = convergence_analysis(
            config_factory(n_paths=10, horizon=5.0),
            curve,
            Bond(2.0),
            path_counts=(100, 200),
        )
        assert list(table.columns) == ["n_paths", "value", "standard_error"]


class TestConvergenceRate:

    def test_exact_square_root_rate(self):
        n_paths = np.array([100, 400, 1600, 6400])
        table = pd.DataFrame({"n_paths": n_paths, "standard_error": 0.3 / np.sqrt(n_paths)})
        assert estimate_convergence_rate(table) == pytest.approx(-0.5, abs=1e-10)

    def test_other_column(self):
        table = pd.DataFrame({"n_paths": [100, 10000], "absolute_error": [1e-2, 1e-4]})
        assert estimate_convergence_rate(table, "absolute_error") == pytest.approx(-1.0, abs=1e-8)

    def test_needs_two_rows(self):
        table = pd.DataFrame({"n_paths": [100], "standard_error": [0.01]})
        with pytest.raises(ValueError, match="at least 2 rows"):
            estimate_convergence_rate(table)
