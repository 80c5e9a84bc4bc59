"""
Centralized pytest fixtures for the ir-montecarlo test suite.

Fixture Categories:
1. Tolerance tiers - centralized, CLT-derived
2. Market inputs - flat 5% semi-annual forward curve
3. Simulations - session-scoped Hull-White and LMM builds shared by the
   validation and integration tests (read-only after the build)
4. Small grids - cheap setups for unit tests
"""

from dataclasses import dataclass

import pytest

from ir_montecarlo.config.settings import ModelConfig, SimulationConfig
from ir_montecarlo.curves.yield_curve import YieldCurve
from ir_montecarlo.models.factory import create_simulation
from ir_montecarlo.simulation.grids import TenorGrid, TimeGrid

# =============================================================================
# REFERENCE SETUP
# =============================================================================

FORWARD_RATE = 0.05
PERIOD_LENGTH = 0.5
SEED = 3141

#: Paths of the shared 20y Hull-White simulation
HW_PATHS = 20_000

#: Paths of the shared 10y cross-model simulations (LMM memory grows with P x N)
CROSS_MODEL_PATHS = 10_000
CROSS_MODEL_HORIZON = 10.0


def make_config(
    model_type: str = "hull_white",
    n_paths: int = CROSS_MODEL_PATHS,
    horizon: float = CROSS_MODEL_HORIZON,
    seed: int = SEED,
    **model_kwargs,
) -> ModelConfig:
    """
    Reference configuration: σ=0.02, a=0.1, 0.5y steps and periods.

    model_kwargs are forwarded to ModelConfig (e.g. lmm=LMMConfig(...)).
    """
    return ModelConfig(
        model_type=model_type,
        simulation=SimulationConfig(
            n_paths=n_paths,
            seed=seed,
            time_step=PERIOD_LENGTH,
            horizon=horizon,
        ),
        **model_kwargs,
    )


# =============================================================================
# TOLERANCE TIERS
# =============================================================================

@dataclass(frozen=True)
class ToleranceTiers:
    """
    Tiered tolerance framework for different test types.

    Mirrors config/tolerances.py; cross-model tiers are the calibration
    checks of the HW-equivalent LMM.
    """

    analytical: float = 1e-10
    integration: float = 1e-8
    bond_deviation: float = 5e-3
    par_swap: float = 1.5e-3
    caplet_implied_vol: float = 1e-3
    swaption_deviation: float = 8e-3


TOLERANCES = ToleranceTiers()


@pytest.fixture(scope="session")
def tolerances() -> ToleranceTiers:
    """Provide tiered tolerance settings for all tests."""
    return TOLERANCES


# =============================================================================
# MARKET INPUTS
# =============================================================================

@pytest.fixture(scope="session")
def curve() -> YieldCurve:
    """Flat 5% semi-annual forward curve out to 20y."""
    return YieldCurve.from_forwards(PERIOD_LENGTH, [FORWARD_RATE] * 40)


# =============================================================================
# SHARED SIMULATIONS
# =============================================================================

@pytest.fixture(scope="session")
def hw_simulation(curve):
    """Exact Hull-White, 20000 paths, 0.5y steps over 20y."""
    return create_simulation(make_config("hull_white", n_paths=HW_PATHS, horizon=20.0), curve)


@pytest.fixture(scope="session")
def hw_simulation_10y(curve):
    """Exact Hull-White on the cross-model grid."""
    return create_simulation(make_config("hull_white"), curve)


@pytest.fixture(scope="session")
def lmm_simulation(curve):
    """
    Hull-White equivalent LMM on the cross-model grid.

    Single factor, spot measure, normal state space with the (1 + δL)
    local volatility; shares factor 0 of its Brownian increments with
    hw_simulation_10y.
    """
    return create_simulation(make_config("lmm"), curve)


# =============================================================================
# SMALL GRIDS
# =============================================================================

@pytest.fixture
def time_grid() -> TimeGrid:
    """0, 0.5, ..., 5."""
    return TimeGrid.uniform(0.0, 10, 0.5)


@pytest.fixture
def tenor_grid() -> TenorGrid:
    """0, 0.5, ..., 5."""
    return TenorGrid.uniform(0.0, 10, 0.5)


@pytest.fixture
def small_lmm_config() -> ModelConfig:
    """Cheap LMM configuration for unit tests (2000 paths, 5y)."""
    return make_config("lmm", n_paths=2000, horizon=5.0)


@pytest.fixture
def small_hw_config() -> ModelConfig:
    """Cheap Hull-White configuration for unit tests (2000 paths, 5y)."""
    return make_config("hull_white", n_paths=2000, horizon=5.0)


@pytest.fixture(scope="session")
def config_factory():
    """make_config, for tests that need a custom configuration."""
    return make_config


@pytest.fixture
def fixed_seed() -> int:
    """Seed used by all reproducibility tests."""
    return SEED
