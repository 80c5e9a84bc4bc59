"""
Swap legs, swaps and the Monte Carlo swap annuity.

[T1] Floating coupon: N δ_i (L_i(T_fix) + s), paid at T_pay
     (an Index fixed at T_fix replaces L_i when given)
[T1] Swap (receiver of float): Σ N δ_i (L_i - K_i)
[T1] Swap value from bonds at t <= T_fix:
     Σ N δ_i (L_i(t) - K_i) P(t, T_pay)
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.products.base import Product, discounted_cash_flow, is_paid_after
from ir_montecarlo.products.indices import Index
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable

RateLike = Union[float, Sequence[float], np.ndarray]


def per_period(values: RateLike, n_periods: int, name: str) -> np.ndarray:
    """Broadcast a scalar or per-period sequence to a read-only array of n_periods."""
    array = np.array(values, dtype=float).reshape(-1)
    if array.size == 1:
        array = np.full(n_periods, array[0])
    if array.size != n_periods:
        raise ValueError(f"CRITICAL: {name} has {array.size} entries, expected {n_periods}")
    array.setflags(write=False)
    return array


def remaining_swap_value(
    simulation: MonteCarloSimulation,
    time: float,
    schedule: Schedule,
    swap_rates: np.ndarray,
    notionals: np.ndarray,
) -> RandomVariable:
    """
    Path-wise value at time of the periods fixing at or after time.

    Uses the model's forward rates and discount bonds at time, so the result
    is the conditional value of the swap (no future information).

    Returns
    -------
    RandomVariable
        Value in currency units at time
    """
    value = RandomVariable.constant(0.0, simulation.n_paths)
    for i in range(schedule.n_periods):
        if schedule.fixing_dates[i] < time - TIME_MATCH_TOLERANCE:
            continue
        forward = simulation.forward_rate(time, schedule.period_starts[i], schedule.period_ends[i])
        bond = simulation.discount_bond(time, schedule.payment_dates[i])
        value = value + (forward - swap_rates[i]) * bond * (notionals[i] * schedule.accruals[i])
    return value


def floating_rate(
    simulation: MonteCarloSimulation,
    schedule: Schedule,
    period: int,
    index: Optional[Index] = None,
) -> RandomVariable:
    """Rate fixed for period: the index at the fixing date, or the period forward."""
    fixing = schedule.fixing_dates[period]
    if index is not None:
        return index.value(fixing, simulation)
    return simulation.forward_rate(
        fixing, schedule.period_starts[period], schedule.period_ends[period]
    )


@dataclass(frozen=True, eq=False)
class SwapLeg(Product):
    """
    Fixed or floating leg.

    Attributes
    ----------
    schedule : Schedule
        Periods of the leg
    notional : float
        Notional amount
    spread : float
        Floating spread, or the coupon rate of a fixed leg
    is_floating : bool
        Pay the forward rate fixed at each fixing date plus spread
    notional_exchange : bool
        Pay the notional at the first period start and receive it at the
        last payment date
    index : Index, optional
        Index paid instead of the period forward (floating legs only)
    """

    schedule: Schedule
    notional: float = 1.0
    spread: float = 0.0
    is_floating: bool = True
    notional_exchange: bool = False
    index: Optional[Index] = None

    def value(self, evaluation_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        schedule = self.schedule
        value = RandomVariable.constant(0.0, simulation.n_paths)
        for i in range(schedule.n_periods):
            payment = schedule.payment_dates[i]
            if not is_paid_after(payment, evaluation_time):
                continue
            rate = RandomVariable.constant(self.spread, simulation.n_paths)
            if self.is_floating:
                rate = rate + floating_rate(simulation, schedule, i, self.index)
            coupon = rate * (self.notional * schedule.accruals[i])
            value = value + discounted_cash_flow(simulation, evaluation_time, payment, coupon)

        if self.notional_exchange:
            notional = RandomVariable.constant(self.notional, simulation.n_paths)
            value = value - discounted_cash_flow(
                simulation, evaluation_time, schedule.period_starts[0], notional
            )
            value = value + discounted_cash_flow(
                simulation, evaluation_time, schedule.payment_dates[-1], notional
            )
        return value


@dataclass(frozen=True, eq=False)
class Swap(Product):
    """
    Swap receiving the floating rate and paying fixed swap_rates.

    Attributes
    ----------
    schedule : Schedule
        Common schedule of both legs
    swap_rates : float or array
        Fixed rate per period (scalar broadcast)
    notional : float
    index : Index, optional
        Index received instead of the period forward (e.g. a capped and
        floored CMS rate)

    Examples
    --------
    >>> schedule = Schedule.regular(0.0, 20, 0.5)
    >>> abs(Swap(schedule, par_swap_rate(schedule, curve)).price(simulation)) < 1.5e-3
    True
    """

    schedule: Schedule
    swap_rates: RateLike
    notional: float = 1.0
    index: Optional[Index] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "swap_rates", per_period(self.swap_rates, self.schedule.n_periods, "swap_rates")
        )

    def value(self, evaluation_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        schedule = self.schedule
        value = RandomVariable.constant(0.0, simulation.n_paths)
        for i in range(schedule.n_periods):
            payment = schedule.payment_dates[i]
            if not is_paid_after(payment, evaluation_time):
                continue
            rate = floating_rate(simulation, schedule, i, self.index)
            cash_flow = (rate - self.swap_rates[i]) * (self.notional * schedule.accruals[i])
            value = value + discounted_cash_flow(simulation, evaluation_time, payment, cash_flow)
        return value


@dataclass(frozen=True, eq=False)
class SwapAnnuity(Product):
    """
    Monte Carlo swap annuity Σ δ_i N(t)/N(T_pay,i).

    Attributes
    ----------
    schedule : Schedule
    """

    schedule: Schedule

    def value(self, evaluation_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        value = RandomVariable.constant(0.0, simulation.n_paths)
        for payment, accrual in zip(self.schedule.payment_dates, self.schedule.accruals):
            accrual_rv = RandomVariable.constant(accrual, simulation.n_paths)
            value = value + discounted_cash_flow(simulation, evaluation_time, payment, accrual_rv)
        return value
