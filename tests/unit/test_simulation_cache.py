"""
Tests for the simulation cache.

Build once, then read-only: states and numeraires are immutable, lookups
off the grid interpolate or fail loudly.
"""

import numpy as np
import pytest

from ir_montecarlo.config.settings import DiagnosticsConfig, Settings
from ir_montecarlo.errors import (
    InvalidConfigurationError,
    NumericalInstabilityError,
    UnsupportedTenorError,
)
from ir_montecarlo.models.factory import create_model
from ir_montecarlo.simulation.brownian import BrownianMotion
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.covariance import StateSpace
from ir_montecarlo.simulation.grids import TenorGrid, TimeGrid


class ScalarModel:
    """One-component test double: dX = drift dt + 0.01 dW, N = exp(X)."""

    def __init__(self, drift_values, numeraire_sign: float = 1.0):
        self.time_grid = TimeGrid.uniform(0.0, len(drift_values), 0.5)
        self.tenor_grid = TenorGrid.uniform(0.0, len(drift_values), 0.5)
        self.n_components = 1
        self.n_factors = 1
        self.state_space = StateSpace.NORMAL
        self.drift_values = drift_values
        self.numeraire_sign = numeraire_sign

    def initial_state(self):
        return np.array([0.0])

    def drift(self, time_index, state):
        return np.full(state.shape, self.drift_values[time_index])

    def factor_loading(self, time_index, state):
        return np.full((state.shape[0], 1, 1), 0.01)

    def numeraire(self, time_index, state):
        return self.numeraire_sign * np.exp(state[:, 0])

    def state_to_observable(self, time_index, state, target):
        return state[:, 0]


class RecordingCovariance:
    """Records the tolerances the PSD diagnostic is run with."""

    def __init__(self):
        self.tolerances = []

    def check_positive_semidefinite(self, tolerance):
        self.tolerances.append(tolerance)
        return True


class TestBuild:

    def test_shapes_and_metadata(self, curve, small_hw_config):
        model = create_model(small_hw_config, curve)
        brownian = BrownianMotion(model.time_grid, model.n_factors, 100, seed=5)
        simulation = MonteCarloSimulation.build(model, brownian)

        assert simulation.n_paths == 100
        assert simulation.seed == 5
        assert simulation.state_at(3).shape == (100, 2)
        assert simulation.build_seconds >= 0.0
        assert simulation.time_grid is model.time_grid

    def test_cached_arrays_read_only(self, curve, small_hw_config):
        model = create_model(small_hw_config, curve)
        simulation = MonteCarloSimulation.build(
            model, BrownianMotion(model.time_grid, model.n_factors, 10, seed=5)
        )
        with pytest.raises(ValueError):
            simulation.state_at(1)[0, 0] = 1.0

    def test_grid_mismatch(self, curve, small_hw_config):
        model = create_model(small_hw_config, curve)
        other_grid = TimeGrid.uniform(0.0, 10, 0.25)
        with pytest.raises(InvalidConfigurationError, match="does not match"):
            MonteCarloSimulation.build(model, BrownianMotion(other_grid, 2, 10, seed=1))

    def test_factor_mismatch(self, curve, small_hw_config):
        model = create_model(small_hw_config, curve)
        with pytest.raises(InvalidConfigurationError, match="factors"):
            MonteCarloSimulation.build(model, BrownianMotion(model.time_grid, 1, 10, seed=1))

    def test_non_finite_state(self):
        model = ScalarModel([0.0, 0.0, np.nan, 0.0])
        brownian = BrownianMotion(model.time_grid, 1, 10, seed=1)
        with pytest.raises(NumericalInstabilityError) as excinfo:
            MonteCarloSimulation.build(model, brownian)
        assert excinfo.value.time_index == 3
        assert excinfo.value.n_paths == 10
        assert excinfo.value.seed == 1

    def test_non_positive_numeraire(self):
        model = ScalarModel([0.0, 0.0], numeraire_sign=-1.0)
        brownian = BrownianMotion(model.time_grid, 1, 10, seed=1)
        with pytest.raises(NumericalInstabilityError, match="numeraire"):
            MonteCarloSimulation.build(model, brownian)

    def test_psd_diagnostic_runs(self, curve, small_lmm_config, caplog):
        model = create_model(small_lmm_config, curve)
        brownian = BrownianMotion(model.time_grid, model.n_factors, 10, seed=1)
        MonteCarloSimulation.build(
            model, brownian, diagnostics=DiagnosticsConfig(check_covariance_psd=True)
        )
        assert "not positive semi-definite" not in caplog.text

    def test_diagnostics_default_from_settings(self, monkeypatch):
        settings = Settings(
            diagnostics=DiagnosticsConfig(check_covariance_psd=True, psd_tolerance=1e-8)
        )
        monkeypatch.setattr("ir_montecarlo.simulation.cache.SETTINGS", settings)
        model = ScalarModel([0.0, 0.0])
        model.covariance = RecordingCovariance()
        MonteCarloSimulation.build(model, BrownianMotion(model.time_grid, 1, 10, seed=1))
        assert model.covariance.tolerances == [1e-8]

    def test_diagnostics_off_by_default(self):
        model = ScalarModel([0.0, 0.0])
        model.covariance = RecordingCovariance()
        MonteCarloSimulation.build(model, BrownianMotion(model.time_grid, 1, 10, seed=1))
        assert model.covariance.tolerances == []


class TestAccessors:

    @pytest.fixture
    def simulation(self):
        model = ScalarModel([0.02] * 4)
        return MonteCarloSimulation.build(model, BrownianMotion(model.time_grid, 1, 50, seed=3))

    def test_numeraire_on_grid(self, simulation):
        np.testing.assert_array_equal(
            simulation.numeraire(1.0).values, simulation.numeraire_at(2).values
        )

    def test_numeraire_log_linear_between_grid_points(self, simulation):
        left = simulation.numeraire_at(1).values
        right = simulation.numeraire_at(2).values
        expected = np.exp(0.75 * np.log(left) + 0.25 * np.log(right))
        np.testing.assert_allclose(simulation.numeraire(0.625).values, expected, rtol=1e-12)

    def test_numeraire_outside_grid(self, simulation):
        with pytest.raises(UnsupportedTenorError, match="outside simulated grid"):
            simulation.numeraire(2.5)

    def test_numeraire_at_last_grid_time(self, simulation):
        np.testing.assert_array_equal(
            simulation.numeraire(2.0).values, simulation.numeraire_at(4).values
        )

    def test_time_index(self, simulation):
        assert simulation.time_index(0.0) == 0
        assert simulation.time_index(0.7) == 1
        assert simulation.time_index(2.0) == 4

    def test_observable_uses_last_grid_time(self, simulation):
        np.testing.assert_array_equal(
            simulation.observable(1.2, "state").values, simulation.state_at(2)[:, 0]
        )
