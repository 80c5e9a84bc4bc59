"""
Reference scenario: Hull-White σ=0.02, a=0.1, flat 5% forwards.

20000 paths, 0.5y steps over 20y. Every scheme must reproduce the initial
curve through the simulated numeraire and value par swaps at zero.

[T1] P(0,T) = E[N(0)/N(T)]
[T1] Par swap: Σ δ_i (L_i - S) P(T_{i+1}) = 0
"""

import pytest

from ir_montecarlo.analytic.swap_annuity import par_swap_rate
from ir_montecarlo.config.settings import HullWhiteConfig
from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.models.factory import create_simulation
from ir_montecarlo.products.bond import Bond
from ir_montecarlo.products.numeraire_option import NumeraireOption
from ir_montecarlo.products.swap import Swap

pytestmark = [pytest.mark.validation, pytest.mark.slow]

BOND_MATURITIES = [0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 20.0]


@pytest.fixture(scope="module", params=["exact", "direct_simulation", "shift_extension"])
def scenario_simulation(request, curve, hw_simulation, config_factory):
    """Reference scenario built with each Hull-White scheme."""
    if request.param == "exact":
        return hw_simulation
    config = config_factory(
        "hull_white",
        n_paths=hw_simulation.n_paths,
        horizon=20.0,
        hull_white=HullWhiteConfig(variant=request.param),
    )
    return create_simulation(config, curve)


class TestBondPrices:

    def test_ten_year_bond(self, scenario_simulation, curve, tolerances):
        """Scenario acceptance: 10y bond within 5e-3 of the flat-curve discount factor."""
        value = Bond(10.0).price(scenario_simulation)
        assert abs(value - curve.discount_factor(10.0)) < tolerances.bond_deviation

    @pytest.mark.parametrize("maturity", BOND_MATURITIES)
    def test_bond_matches_curve(self, scenario_simulation, curve, tolerances, maturity):
        value = Bond(maturity).value(0.0, scenario_simulation)
        bound = max(tolerances.bond_deviation, 4 * value.standard_error())
        assert abs(value.average() - curve.discount_factor(maturity)) < bound

    def test_forward_bond_martingale(self, hw_simulation, curve, tolerances):
        """E[P(t, T) N(0)/N(t)] = P(0, T)."""
        deflated = (
            hw_simulation.discount_bond(5.0, 8.0)
            * hw_simulation.numeraire(0.0)
            / hw_simulation.numeraire(5.0)
        )
        bound = max(tolerances.bond_deviation, 4 * deflated.standard_error())
        assert abs(deflated.average() - curve.discount_factor(8.0)) < bound


class TestParSwaps:

    @pytest.mark.parametrize("start", [0.5, 2.0, 5.0, 9.5])
    def test_par_swap_is_worthless(self, scenario_simulation, curve, tolerances, start):
        schedule = Schedule.regular(start, 10, 0.5)
        swap = Swap(schedule, par_swap_rate(schedule, curve))
        value = swap.value(0.0, scenario_simulation)
        bound = max(tolerances.par_swap, 4 * value.standard_error())
        assert abs(value.average()) < bound


class TestNumeraireOption:

    def test_put_on_money_market_account(self, hw_simulation):
        put = NumeraireOption(0.5, 1.025).value(0.0, hw_simulation)
        assert 0.0 <= put.average() < 0.01
