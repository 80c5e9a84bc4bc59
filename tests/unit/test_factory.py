"""
Tests for configuration-driven construction of models and simulations.
"""

import numpy as np
import pytest

from ir_montecarlo.config.settings import (
    HullWhiteConfig,
    LMMConfig,
    ModelConfig,
    SimulationConfig,
)
from ir_montecarlo.models.base import HullWhiteVariant, Measure
from ir_montecarlo.models.factory import (
    create_brownian_motion,
    create_lmm_covariance,
    create_model,
    create_simulation,
    create_tenor_grid,
    create_time_grid,
)
from ir_montecarlo.models.hull_white import HullWhiteModel
from ir_montecarlo.models.lmm import LIBORMarketModel
from ir_montecarlo.simulation.covariance import (
    CovarianceFromVolatilityAndCorrelation,
    ExponentialVolatility,
    HullWhiteLocalVolatility,
    StateSpace,
)


class TestGrids:

    def test_time_grid(self, config_factory):
        grid = create_time_grid(config_factory())
        assert grid.n_steps == 20
        assert grid.times[-1] == pytest.approx(10.0)

    def test_tenor_grid_uses_period_length(self, config_factory):
        config = config_factory(lmm=LMMConfig(period_length=1.0))
        grid = create_tenor_grid(config)
        assert grid.n_periods == 10
        assert grid.times[1] == 1.0


class TestCreateModel:

    def test_hull_white(self, curve, config_factory):
        model = create_model(
            config_factory(hull_white=HullWhiteConfig(variant="shift_extension")), curve
        )
        assert isinstance(model, HullWhiteModel)
        assert model.variant is HullWhiteVariant.SHIFT_EXTENSION
        assert model.mean_reversion == 0.1

    def test_lmm(self, curve, config_factory):
        lmm = LMMConfig(n_factors=3, correlation_decay=0.1, measure="terminal")
        config = config_factory("lmm", lmm=lmm)
        model = create_model(config, curve)
        assert isinstance(model, LIBORMarketModel)
        assert model.n_factors == 3
        assert model.measure is Measure.TERMINAL
        assert model.n_components == 20


class TestLMMCovariance:

    def test_hull_white_equivalent_by_default(self, config_factory):
        config = config_factory("lmm")
        covariance = create_lmm_covariance(
            config, create_time_grid(config), create_tenor_grid(config)
        )
        assert isinstance(covariance, HullWhiteLocalVolatility)
        assert covariance.is_state_dependent

    def test_without_local_volatility(self, config_factory):
        config = config_factory(
            "lmm",
            lmm=LMMConfig(
                state_space="lognormal",
                hull_white_local_volatility=False,
                volatility_parameters=(0.1, 0.05, 0.5, 0.1),
            ),
        )
        covariance = create_lmm_covariance(
            config, create_time_grid(config), create_tenor_grid(config)
        )
        assert isinstance(covariance, CovarianceFromVolatilityAndCorrelation)
        assert isinstance(covariance.volatility, ExponentialVolatility)
        assert covariance.state_space is StateSpace.LOGNORMAL


class TestBrownianMotion:

    def test_matches_model(self, curve, config_factory):
        config = config_factory(n_paths=100, seed=17)
        model = create_model(config, curve)
        brownian = create_brownian_motion(config, model)
        assert brownian.n_factors == 2
        assert brownian.n_paths == 100
        assert brownian.seed == 17
        assert brownian.time_grid == model.time_grid

    def test_common_random_numbers_across_models(self, curve, config_factory):
        hw_config = config_factory("hull_white", n_paths=100)
        lmm_config = config_factory("lmm", n_paths=100)
        hw = create_brownian_motion(hw_config, create_model(hw_config, curve))
        lmm = create_brownian_motion(lmm_config, create_model(lmm_config, curve))
        np.testing.assert_array_equal(hw.increments(3)[:, 0], lmm.increments(3)[:, 0])

    def test_antithetic(self, curve):
        config = ModelConfig(
            simulation=SimulationConfig(
                n_paths=100, seed=1, time_step=0.5, horizon=10.0, antithetic=True
            ),
        )
        brownian = create_brownian_motion(config, create_model(config, curve))
        increments = brownian.increments(0)
        np.testing.assert_array_equal(increments[50:], -increments[:50])


class TestCreateSimulation:

    def test_deterministic_for_seed(self, curve, config_factory):
        config = config_factory(n_paths=200, horizon=5.0)
        first = create_simulation(config, curve)
        second = create_simulation(config, curve)
        for time_index in range(first.time_grid.n_times):
            np.testing.assert_array_equal(first.state_at(time_index), second.state_at(time_index))

    def test_seed_changes_paths(self, curve, config_factory):
        first = create_simulation(config_factory(n_paths=200, horizon=5.0, seed=1), curve)
        second = create_simulation(config_factory(n_paths=200, horizon=5.0, seed=2), curve)
        assert not np.array_equal(first.state_at(4), second.state_at(4))
