"""
Bermudan swaptions are worth at least the European with the same first exercise.

Checked across seeds and both regression samples. The least-squares value
is a lower bound of the true Bermudan only up to regression noise, so the
comparison allows three standard errors.

[T1] Longstaff & Schwartz (2001)
"""

import pytest

from ir_montecarlo.analytic.swap_annuity import par_swap_rate
from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.models.factory import create_simulation
from ir_montecarlo.products.bermudan import BermudanSwaption
from ir_montecarlo.products.swaption import Swaption

pytestmark = [pytest.mark.validation, pytest.mark.slow]

SEEDS = [1, 42, 3141, 2718]


@pytest.fixture(scope="module", params=SEEDS)
def seeded_simulation(request, curve, config_factory):
    return create_simulation(config_factory("hull_white", n_paths=4000, seed=request.param), curve)


class TestEarlyExerciseMonotonicity:

    @pytest.mark.parametrize("regression_sample", ["in_sample", "split"])
    @pytest.mark.parametrize("exercise_date", [1.0, 3.0, 5.0])
    def test_bermudan_at_least_european(
        self, seeded_simulation, curve, exercise_date, regression_sample
    ):
        schedule = Schedule.regular(exercise_date, 5, 0.5)
        rate = par_swap_rate(schedule, curve)
        bermudan = BermudanSwaption(
            schedule, rate, [True] * 5, regression_sample=regression_sample
        ).value(0.0, seeded_simulation)
        european = Swaption(exercise_date, schedule, rate).price(seeded_simulation)

        assert bermudan.average() >= european - 3 * bermudan.standard_error()

    def test_realized_cashflow_propagation(self, seeded_simulation, curve):
        schedule = Schedule.regular(2.0, 8, 0.5)
        rate = par_swap_rate(schedule, curve)
        bermudan = BermudanSwaption(
            schedule, rate, [True] * 8, propagation="realized_cashflow"
        ).value(0.0, seeded_simulation)
        european = Swaption(2.0, schedule, rate).price(seeded_simulation)

        assert bermudan.average() >= european - 3 * bermudan.standard_error()
