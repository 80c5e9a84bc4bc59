"""
Configuration -> model, driver and simulation.

The factory resolves the string choices stored in ModelConfig into enums
and wires grids, covariance structure, model and random driver together.

Usage
-----
>>> from ir_montecarlo.config.settings import ModelConfig
>>> from ir_montecarlo.curves.yield_curve import YieldCurve
>>> curve = YieldCurve.from_forwards(0.5, [0.05] * 40)
>>> simulation = create_simulation(ModelConfig(model_type="lmm"), curve)
"""

import logging
from typing import Optional

from ir_montecarlo.config.settings import DiagnosticsConfig, ModelConfig
from ir_montecarlo.curves.yield_curve import DiscountCurveProvider
from ir_montecarlo.models.base import HullWhiteVariant, Measure, ModelType
from ir_montecarlo.models.hull_white import HullWhiteModel, ShortRateVolatility
from ir_montecarlo.models.lmm import LIBORMarketModel
from ir_montecarlo.simulation.brownian import BrownianMotion
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.covariance import (
    CovarianceFromVolatilityAndCorrelation,
    CovarianceStructure,
    ExponentialDecayCorrelation,
    ExponentialVolatility,
    HullWhiteLocalVolatility,
    StateSpace,
    VolatilityFromMatrix,
)
from ir_montecarlo.simulation.grids import TenorGrid, TimeGrid
from ir_montecarlo.simulation.scheme import EulerScheme

logger = logging.getLogger(__name__)


def create_time_grid(config: ModelConfig) -> TimeGrid:
    """Uniform simulation grid 0, Δt, ..., horizon."""
    simulation = config.simulation
    return TimeGrid.uniform(0.0, simulation.n_steps, simulation.time_step)


def create_tenor_grid(config: ModelConfig) -> TenorGrid:
    """Uniform tenor grid 0, δ, ..., horizon."""
    period_length = config.lmm.period_length
    n_periods = int(round(config.simulation.horizon / period_length))
    return TenorGrid.uniform(0.0, n_periods, period_length)


def create_lmm_covariance(
    config: ModelConfig,
    time_grid: TimeGrid,
    tenor_grid: TenorGrid,
) -> CovarianceStructure:
    """
    Covariance structure of the LMM described by config.lmm.

    Without volatility_parameters the volatility is the Hull-White
    equivalent of config.hull_white.
    """
    lmm = config.lmm
    if lmm.volatility_parameters is None:
        volatility = VolatilityFromMatrix.hull_white_equivalent(
            time_grid,
            tenor_grid,
            config.hull_white.volatility,
            config.hull_white.mean_reversion,
        )
    else:
        volatility = ExponentialVolatility(time_grid, tenor_grid, *lmm.volatility_parameters)

    correlation = ExponentialDecayCorrelation(tenor_grid, lmm.n_factors, lmm.correlation_decay)
    covariance: CovarianceStructure = CovarianceFromVolatilityAndCorrelation(
        volatility,
        correlation,
        StateSpace(lmm.state_space),
    )
    if lmm.hull_white_local_volatility:
        covariance = HullWhiteLocalVolatility(covariance, lmm.period_length)
    return covariance


def create_model(config: ModelConfig, curve: DiscountCurveProvider):
    """
    Build the model described by config.

    Returns
    -------
    LIBORMarketModel or HullWhiteModel
    """
    time_grid = create_time_grid(config)
    tenor_grid = create_tenor_grid(config)
    model_type = ModelType(config.model_type)

    if model_type is ModelType.LMM:
        covariance = create_lmm_covariance(config, time_grid, tenor_grid)
        return LIBORMarketModel(tenor_grid, curve, covariance, Measure(config.lmm.measure))

    volatility = ShortRateVolatility.constant(
        config.hull_white.volatility,
        config.hull_white.mean_reversion,
    )
    return HullWhiteModel(
        time_grid,
        tenor_grid,
        curve,
        volatility,
        HullWhiteVariant(config.hull_white.variant),
    )


def create_brownian_motion(config: ModelConfig, model) -> BrownianMotion:
    """Random driver on the model's grid with the model's factor count."""
    simulation = config.simulation
    return BrownianMotion(
        model.time_grid,
        model.n_factors,
        simulation.n_paths,
        simulation.seed,
        antithetic=simulation.antithetic,
    )


def create_simulation(
    config: ModelConfig,
    curve: DiscountCurveProvider,
    diagnostics: Optional[DiagnosticsConfig] = None,
) -> MonteCarloSimulation:
    """
    Build model and driver from config and run the simulation.

    Parameters
    ----------
    config : ModelConfig
        Model and simulation configuration
    curve : DiscountCurveProvider
        Initial curve
    diagnostics : DiagnosticsConfig, optional
        Optional build diagnostics (default: SETTINGS.diagnostics)

    Returns
    -------
    MonteCarloSimulation
    """
    model = create_model(config, curve)
    brownian = create_brownian_motion(config, model)
    logger.info(f"Created {model!r} with {brownian!r}")
    return MonteCarloSimulation.build(model, brownian, EulerScheme(), diagnostics)
