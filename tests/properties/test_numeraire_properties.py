"""
Property-based tests for simulated numeraires and bonds.

Uses Hypothesis to verify, over random model parameters:
1. The numeraire is finite and strictly positive on every path
2. N(0) = 1 for every model
3. Zero-volatility simulations reproduce the initial curve
4. Simulated bonds at t = 0 equal the curve

References:
    [T1] Brigo & Mercurio (2006) Ch. 2 - numeraire and change of measure
"""

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from ir_montecarlo.config.settings import (
    HullWhiteConfig,
    LMMConfig,
    ModelConfig,
    SimulationConfig,
)
from ir_montecarlo.config.tolerances import ANALYTICAL_TOLERANCE
from ir_montecarlo.curves.yield_curve import YieldCurve
from ir_montecarlo.models.factory import create_simulation

pytestmark = pytest.mark.property

# =============================================================================
# Strategy Definitions
# =============================================================================

volatility_strategy = st.floats(min_value=0.0, max_value=0.03, allow_nan=False)
mean_reversion_strategy = st.floats(min_value=0.01, max_value=0.5, allow_nan=False)
forward_strategy = st.floats(min_value=0.005, max_value=0.08, allow_nan=False)
variant_strategy = st.sampled_from(["exact", "direct_simulation", "shift_extension"])
measure_strategy = st.sampled_from(["spot", "terminal"])
seed_strategy = st.integers(min_value=0, max_value=2**31 - 1)


def _config(model_type: str, seed: int, **model_kwargs) -> ModelConfig:
    return ModelConfig(
        model_type=model_type,
        simulation=SimulationConfig(n_paths=64, seed=seed, time_step=0.5, horizon=3.0),
        **model_kwargs,
    )


# =============================================================================
# Numeraire Positivity
# =============================================================================

class TestNumerairePositivity:
    """[T1] N(t) > 0 for every path and grid time."""

    @given(
        volatility=volatility_strategy,
        mean_reversion=mean_reversion_strategy,
        forward=forward_strategy,
        variant=variant_strategy,
        seed=seed_strategy,
    )
    @settings(max_examples=40, deadline=None)
    def test_hull_white(
        self, volatility: float, mean_reversion: float, forward: float,
        variant: str, seed: int
    ) -> None:
        curve = YieldCurve.from_forwards(0.5, [forward] * 6)
        config = _config(
            "hull_white",
            seed,
            hull_white=HullWhiteConfig(
                volatility=volatility, mean_reversion=mean_reversion, variant=variant
            ),
        )
        simulation = create_simulation(config, curve)

        np.testing.assert_allclose(simulation.numeraire_at(0).values, 1.0, rtol=1e-12)
        for time_index in range(simulation.time_grid.n_times):
            numeraire = simulation.numeraire_at(time_index).values
            assert np.all(np.isfinite(numeraire))
            assert np.all(numeraire > 0)

    @given(
        volatility=st.floats(min_value=0.0, max_value=0.015, allow_nan=False),
        forward=forward_strategy,
        measure=measure_strategy,
        seed=seed_strategy,
    )
    @settings(max_examples=40, deadline=None)
    def test_lmm(self, volatility: float, forward: float, measure: str, seed: int) -> None:
        curve = YieldCurve.from_forwards(0.5, [forward] * 6)
        config = _config(
            "lmm",
            seed,
            lmm=LMMConfig(measure=measure),
            hull_white=HullWhiteConfig(volatility=volatility),
        )
        simulation = create_simulation(config, curve)

        for time_index in range(simulation.time_grid.n_times):
            numeraire = simulation.numeraire_at(time_index).values
            assert np.all(np.isfinite(numeraire))
            assert np.all(numeraire > 0)


# =============================================================================
# Curve Reproduction
# =============================================================================

class TestCurveReproduction:
    """[T1] Without volatility every path follows the initial curve."""

    @given(
        forwards=st.lists(forward_strategy, min_size=6, max_size=6),
        variant=variant_strategy,
    )
    @settings(max_examples=30, deadline=None)
    def test_zero_volatility_hull_white(self, forwards: list, variant: str) -> None:
        curve = YieldCurve.from_forwards(0.5, forwards)
        config = _config(
            "hull_white", 1, hull_white=HullWhiteConfig(volatility=0.0, variant=variant)
        )
        simulation = create_simulation(config, curve)

        for time_index, t in enumerate(simulation.time_grid.times):
            np.testing.assert_allclose(
                1.0 / simulation.numeraire_at(time_index).values,
                curve.discount_factor(t),
                rtol=ANALYTICAL_TOLERANCE,
            )

    @given(
        forwards=st.lists(forward_strategy, min_size=6, max_size=6),
        volatility=volatility_strategy,
        maturity=st.sampled_from([0.5, 1.0, 2.0, 3.0]),
    )
    @settings(max_examples=30, deadline=None)
    def test_initial_bond_matches_curve(
        self, forwards: list, volatility: float, maturity: float
    ) -> None:
        curve = YieldCurve.from_forwards(0.5, forwards)
        config = _config("hull_white", 7, hull_white=HullWhiteConfig(volatility=volatility))
        simulation = create_simulation(config, curve)

        bond = simulation.discount_bond(0.0, maturity)
        np.testing.assert_allclose(bond.values, curve.discount_factor(maturity), rtol=1e-12)
