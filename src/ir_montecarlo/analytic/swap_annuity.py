"""
Curve-based swap annuity and par swap rate.

[T1] Annuity: A(t) = Σ_{payments > t} δ_i P(T_{i+1}) / P(t)
[T1] Par swap rate: S = (P(T_0) - P(T_n)) / Σ δ_i P(T_{i+1})   (single curve)
"""

from typing import Sequence, Union

import numpy as np

from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.curves.yield_curve import DiscountCurveProvider

ScheduleLike = Union[Schedule, Sequence[float]]


def _as_schedule(schedule: ScheduleLike) -> Schedule:
    if isinstance(schedule, Schedule):
        return schedule
    tenor = np.asarray(schedule, dtype=float)
    if tenor.size < 2:
        raise ValueError(f"CRITICAL: tenor needs at least 2 dates, got {tenor.size}")
    return Schedule(period_starts=tenor[:-1], period_ends=tenor[1:])


def swap_annuity(
    schedule: ScheduleLike,
    curve: DiscountCurveProvider,
    evaluation_time: float = 0.0,
) -> float:
    """
    Annuity of a schedule on a discount curve.

    Only periods paid strictly after evaluation_time contribute; the sum is
    expressed in units of P(evaluation_time).

    Parameters
    ----------
    schedule : Schedule or sequence of float
        Schedule, or tenor dates T_0 < ... < T_n of a regular schedule
    curve : DiscountCurveProvider
        Discount curve
    evaluation_time : float, default 0.0

    Examples
    --------
    >>> curve = YieldCurve.from_forwards(0.5, [0.05] * 40)
    >>> round(swap_annuity([1.0, 1.5], curve), 6)
    0.4643
    """
    schedule = _as_schedule(schedule)
    value = 0.0
    for payment, accrual in zip(schedule.payment_dates, schedule.accruals):
        if payment <= evaluation_time:
            continue
        value += accrual * curve.discount_factor(payment)
    return value / curve.discount_factor(evaluation_time)


def par_swap_rate(schedule: ScheduleLike, curve: DiscountCurveProvider) -> float:
    """
    Fixed rate giving a zero-value swap on a single curve.

    [T1] S = Σ δ_i L_i P(T_{i+1}) / Σ δ_i P(T_{i+1}),  L_i the curve forward

    Examples
    --------
    >>> curve = YieldCurve.from_forwards(0.5, [0.05] * 40)
    >>> round(par_swap_rate([1.0, 1.5, 2.0], curve), 12)
    0.05
    """
    schedule = _as_schedule(schedule)
    floating = 0.0
    for start, end, payment, accrual in zip(
        schedule.period_starts,
        schedule.period_ends,
        schedule.payment_dates,
        schedule.accruals,
    ):
        forward = curve.forward_rate(start, end)
        floating += accrual * forward * curve.discount_factor(payment)
    return floating / swap_annuity(schedule, curve)
