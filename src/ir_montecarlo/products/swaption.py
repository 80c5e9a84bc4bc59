"""
European swaption (physical settlement into a receiver-of-float swap).

[T1] Payoff at exercise T_e: max(Σ N δ_i (L_i(T_e) - K_i) P(T_e, T_pay,i), 0)
     i.e. the holder pays fixed K_i and receives the floating rate
"""

from dataclasses import dataclass

from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.products.base import Product, discounted_cash_flow
from ir_montecarlo.products.swap import RateLike, per_period, remaining_swap_value
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable


@dataclass(frozen=True, eq=False)
class Swaption(Product):
    """
    European option to enter a swap at exercise_date.

    Attributes
    ----------
    exercise_date : float
        Exercise time T_e
    schedule : Schedule
        Underlying swap schedule; every fixing must be at or after T_e
    swap_rates : float or array
        Fixed rate per period
    notional : float

    Examples
    --------
    >>> schedule = Schedule.regular(5.0, 10, 0.5)
    >>> Swaption(5.0, schedule, 0.05).price(simulation) > 0
    True
    """

    exercise_date: float
    schedule: Schedule
    swap_rates: RateLike
    notional: float = 1.0

    def __post_init__(self) -> None:
        if self.schedule.fixing_dates[0] < self.exercise_date - TIME_MATCH_TOLERANCE:
            raise ValueError(
                f"CRITICAL: first fixing {self.schedule.fixing_dates[0]} before exercise "
                f"date {self.exercise_date}"
            )
        object.__setattr__(
            self, "swap_rates", per_period(self.swap_rates, self.schedule.n_periods, "swap_rates")
        )

    def exercise_value(self, simulation: MonteCarloSimulation) -> RandomVariable:
        """Path-wise swap value at the exercise date, before flooring."""
        notionals = per_period(self.notional, self.schedule.n_periods, "notional")
        return remaining_swap_value(
            simulation, self.exercise_date, self.schedule, self.swap_rates, notionals
        )

    def value(self, evaluation_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        payoff = self.exercise_value(simulation).floor(0.0)
        return discounted_cash_flow(simulation, evaluation_time, self.exercise_date, payoff)
