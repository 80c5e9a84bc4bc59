"""
Simulation layer: grids, random driver, covariance, scheme and cache.
"""

from ir_montecarlo.simulation.brownian import BrownianMotion
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
from ir_montecarlo.simulation.random_variable import RandomVariable
from ir_montecarlo.simulation.scheme import EulerScheme, Scheme

__all__ = [
    "TimeGrid",
    "TenorGrid",
    "BrownianMotion",
    "RandomVariable",
    "StateSpace",
    "CovarianceStructure",
    "VolatilityFromMatrix",
    "ExponentialVolatility",
    "ExponentialDecayCorrelation",
    "CovarianceFromVolatilityAndCorrelation",
    "HullWhiteLocalVolatility",
    "EulerScheme",
    "Scheme",
]
