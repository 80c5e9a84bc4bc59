"""
Tests for bond, swap, caplet, swaption and numeraire option valuation.

[T1] V(t) = N(t) E_t[Σ_{T_i > t} C_i / N(T_i)]
"""

import numpy as np
import pytest

from ir_montecarlo.analytic.swap_annuity import par_swap_rate, swap_annuity
from ir_montecarlo.config.settings import HullWhiteConfig
from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.models.factory import create_simulation
from ir_montecarlo.products.base import discounted_cash_flow, is_paid_after
from ir_montecarlo.products.bond import Bond
from ir_montecarlo.products.caplet import Caplet
from ir_montecarlo.products.numeraire_option import NumeraireOption
from ir_montecarlo.products.swap import Swap, SwapAnnuity, SwapLeg
from ir_montecarlo.products.swaption import Swaption
from ir_montecarlo.simulation.random_variable import RandomVariable


@pytest.fixture(scope="module")
def simulation(curve, config_factory):
    """Exact Hull-White, 2000 paths over 5y."""
    return create_simulation(config_factory("hull_white", n_paths=2000, horizon=5.0), curve)


@pytest.fixture(scope="module")
def deterministic(curve, config_factory):
    """Hull-White without volatility: every path follows the initial curve."""
    config = config_factory(
        "hull_white", n_paths=10, horizon=5.0, hull_white=HullWhiteConfig(volatility=0.0)
    )
    return create_simulation(config, curve)


class TestTimingRule:

    def test_is_paid_after(self):
        assert is_paid_after(1.0, 0.5)
        assert not is_paid_after(1.0, 1.0)
        assert not is_paid_after(1.0, 1.0 + 1e-12)
        assert not is_paid_after(0.5, 1.0)

    def test_cash_flow_at_evaluation_time_excluded(self, simulation):
        unit = RandomVariable.constant(1.0, simulation.n_paths)
        value = discounted_cash_flow(simulation, 2.0, 2.0, unit)
        np.testing.assert_array_equal(value.values, 0.0)


class TestBond:

    def test_pathwise_numeraire_ratio(self, simulation):
        value = Bond(4.0).value(1.0, simulation)
        expected = simulation.numeraire(1.0).values / simulation.numeraire(4.0).values
        np.testing.assert_allclose(value.values, expected)

    def test_matured_bond_is_worthless(self, simulation):
        assert Bond(2.0).value(2.0, simulation).average() == 0.0
        assert Bond(0.0).price(simulation) == 0.0

    def test_deterministic_bond(self, deterministic, curve, tolerances):
        assert Bond(3.5).price(deterministic) == pytest.approx(
            curve.discount_factor(3.5), abs=tolerances.analytical
        )

    def test_negative_maturity(self):
        with pytest.raises(ValueError, match="maturity"):
            Bond(-1.0)


class TestSwap:

    @pytest.fixture
    def schedule(self):
        return Schedule.regular(1.0, 6, 0.5)

    def test_swap_is_floating_minus_fixed_leg(self, simulation, schedule):
        swap = Swap(schedule, 0.045, notional=2.0)
        floating = SwapLeg(schedule, notional=2.0)
        fixed = SwapLeg(schedule, notional=2.0, spread=0.045, is_floating=False)
        np.testing.assert_allclose(
            swap.value(0.0, simulation).values,
            (floating.value(0.0, simulation) - fixed.value(0.0, simulation)).values,
            rtol=1e-10,
            atol=1e-14,
        )

    def test_per_period_rates(self, simulation, schedule):
        rates = [0.04, 0.045, 0.05, 0.05, 0.055, 0.06]
        assert Swap(schedule, rates).swap_rates.tolist() == rates
        with pytest.raises(ValueError, match="swap_rates"):
            Swap(schedule, [0.04, 0.05])

    def test_deterministic_par_swap_is_zero(self, deterministic, curve, schedule, tolerances):
        swap = Swap(schedule, par_swap_rate(schedule, curve))
        assert swap.price(deterministic) == pytest.approx(0.0, abs=tolerances.analytical)

    def test_floating_leg_with_notional_exchange(self, deterministic, schedule, tolerances):
        leg = SwapLeg(schedule, notional_exchange=True)
        assert leg.price(deterministic) == pytest.approx(0.0, abs=tolerances.analytical)

    def test_paid_coupons_excluded(self, simulation, schedule):
        full = SwapLeg(schedule, spread=0.05, is_floating=False)
        # At t=2.0 the coupons paid at 1.5 and 2.0 are gone
        late = full.value(2.0, simulation).average()
        remaining = sum(
            Bond(payment).value(2.0, simulation).average() * 0.05 * 0.5
            for payment in [2.5, 3.0, 3.5, 4.0]
        )
        assert late == pytest.approx(remaining, rel=1e-10)

    def test_swap_annuity(self, deterministic, curve, schedule, tolerances):
        annuity = SwapAnnuity(schedule).price(deterministic)
        assert annuity == pytest.approx(swap_annuity(schedule, curve), abs=tolerances.analytical)


class TestCaplet:

    def test_caplet_minus_floorlet_is_single_period_swap(self, simulation):
        caplet = Caplet(2.0, 0.5, 0.05).value(0.0, simulation)
        floorlet = Caplet(2.0, 0.5, 0.05, is_floorlet=True).value(0.0, simulation)
        swap = Swap(Schedule.regular(2.0, 1, 0.5), 0.05).value(0.0, simulation)
        np.testing.assert_allclose((caplet - floorlet).values, swap.values, atol=1e-14)

    def test_caplet_non_negative(self, simulation):
        assert np.all(Caplet(2.0, 0.5, 0.05).value(0.0, simulation).values >= 0)

    def test_deterministic_caplet_is_intrinsic(self, deterministic, curve):
        value = Caplet(2.0, 0.5, 0.04).price(deterministic)
        forward = curve.forward_rate(2.0, 2.5)
        assert value == pytest.approx(0.5 * (forward - 0.04) * curve.discount_factor(2.5))

    def test_daycount_fraction_scales_payoff(self, simulation):
        base = Caplet(2.0, 0.5, 0.05).price(simulation)
        scaled = Caplet(2.0, 0.5, 0.05, daycount_fraction=0.25).price(simulation)
        assert scaled == pytest.approx(base / 2.0)

    def test_payment_date(self):
        assert Caplet(2.0, 0.5, 0.05).payment_date == 2.5

    def test_invalid_period(self):
        with pytest.raises(ValueError, match="period_length"):
            Caplet(2.0, 0.0, 0.05)


class TestSwaption:

    @pytest.fixture
    def schedule(self):
        return Schedule.regular(2.0, 4, 0.5)

    def test_value_is_floored_exercise_value(self, simulation, schedule):
        swaption = Swaption(2.0, schedule, 0.05)
        exercise = swaption.exercise_value(simulation)
        expected = exercise.floor(0.0) * simulation.numeraire(0.0) / simulation.numeraire(2.0)
        np.testing.assert_allclose(swaption.value(0.0, simulation).values, expected.values)

    def test_swaption_dominates_swap(self, simulation, schedule):
        swaption = Swaption(2.0, schedule, 0.05).value(0.0, simulation)
        swap = Swap(schedule, 0.05).value(0.0, simulation)
        assert swaption.average() > swap.average() - 4 * (swaption - swap).standard_error()

    def test_deterministic_swaption(self, deterministic, curve, schedule):
        swaption = Swaption(2.0, schedule, 0.04).price(deterministic)
        swap = Swap(schedule, 0.04).price(deterministic)
        assert swaption == pytest.approx(swap, rel=1e-10)

    def test_after_exercise_date_worthless(self, simulation, schedule):
        assert Swaption(2.0, schedule, 0.05).value(2.0, simulation).average() == 0.0

    def test_fixing_before_exercise_rejected(self, schedule):
        with pytest.raises(ValueError, match="before exercise"):
            Swaption(2.5, schedule, 0.05)


class TestNumeraireOption:

    def test_put_call_parity(self, simulation):
        put = NumeraireOption(2.0, 1.1).value(0.0, simulation)
        call = NumeraireOption(2.0, 1.1, is_put=False).value(0.0, simulation)
        expected = 1.0 - 1.1 * simulation.numeraire(0.0) / simulation.numeraire(2.0)
        np.testing.assert_allclose((call - put).values, expected.values, atol=1e-14)

    def test_put_non_negative(self, simulation):
        assert NumeraireOption(2.0, 1.1).price(simulation) >= 0.0
