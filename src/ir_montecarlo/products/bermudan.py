"""
Bermudan swaption by least-squares Monte Carlo.

Backward induction over the exercise dates e_J > ... > e_1, all values
relative to the numeraire:

1. Immediate value U_j = value of the remaining swap at e_j / N(e_j),
   computed from the model's forward rates and bonds at e_j
2. Continuation C_j estimated by least squares of the propagated target on
   a polynomial basis in the standardized remaining-swap par rate
   (C_J = 0 at the last date)
3. Exercise on a path iff U_j > C_j
4. Propagated target: max(U_j, C_j) (FITTED_MAXIMUM) or the realized
   value under the policy (REALIZED_CASHFLOW)

The reported value is always the realized value under the exercise policy,
V(t) = N(t) U_τ with τ the first exercise date.

[T1] Longstaff & Schwartz (2001). Valuing American options by simulation:
     a simple least-squares approach. Review of Financial Studies, 14(1).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from ir_montecarlo.config.settings import SETTINGS, ValuationConfig
from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.errors import InsufficientSamplesError
from ir_montecarlo.products.base import Product, is_paid_after
from ir_montecarlo.products.swap import RateLike, per_period
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable

logger = logging.getLogger(__name__)


class Propagation(Enum):
    """Value carried backward as the regression target."""

    FITTED_MAXIMUM = "fitted_maximum"
    REALIZED_CASHFLOW = "realized_cashflow"


class RegressionSample(Enum):
    """
    Paths used to fit the continuation regression.

    IN_SAMPLE: fit and report on all paths (small upward bias)
    SPLIT: fit on even paths, report the value on odd paths
    """

    IN_SAMPLE = "in_sample"
    SPLIT = "split"


@dataclass(frozen=True)
class BermudanResult:
    """
    Valuation result with the exercise policy.

    Attributes
    ----------
    value : RandomVariable
        Path-wise value at the evaluation time (reporting paths only)
    exercise_policy : tuple of np.ndarray
        Per exercise date, boolean per reporting path (aligned with
        value.values): exercise if still alive
    exercise_dates : tuple of float
        Exercise dates after the evaluation time, ascending
    """

    value: RandomVariable
    exercise_policy: tuple
    exercise_dates: tuple

    @property
    def first_exercise_index(self) -> np.ndarray:
        """Index into exercise_dates of the first exercise per path (-1: never)."""
        if not self.exercise_policy:
            return np.empty(0, dtype=int)
        policy = np.vstack(self.exercise_policy)
        exercised = policy.any(axis=0)
        return np.where(exercised, np.argmax(policy, axis=0), -1)

    def exercise_probabilities(self) -> np.ndarray:
        """Fraction of paths first exercising at each date."""
        first = self.first_exercise_index
        return np.array([np.mean(first == j) for j in range(len(self.exercise_dates))])


def _swap_at(
    simulation: MonteCarloSimulation,
    time: float,
    schedule: Schedule,
    swap_rates: np.ndarray,
    notionals: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Swap value and remaining par swap rate at time (periods fixing at or after time)."""
    floating = np.zeros(simulation.n_paths)
    fixed = np.zeros(simulation.n_paths)
    annuity = np.zeros(simulation.n_paths)
    for i in range(schedule.n_periods):
        if schedule.fixing_dates[i] < time - TIME_MATCH_TOLERANCE:
            continue
        forward = simulation.forward_rate(time, schedule.period_starts[i], schedule.period_ends[i])
        bond = simulation.discount_bond(time, schedule.payment_dates[i])
        weight = bond.values * (notionals[i] * schedule.accruals[i])
        floating += forward.values * weight
        fixed += swap_rates[i] * weight
        annuity += weight
    par_rate = np.divide(floating, annuity, out=np.zeros_like(floating), where=annuity != 0)
    return floating - fixed, par_rate


def _basis(par_rate: np.ndarray, degree: int) -> np.ndarray:
    """Polynomial basis 1, z, ..., z^degree in the standardized par rate z."""
    scale = par_rate.std()
    if scale > 0:
        z = (par_rate - par_rate.mean()) / scale
    else:
        z = np.zeros_like(par_rate)
    return np.vander(z, degree + 1, increasing=True)


@dataclass(frozen=True, eq=False)
class BermudanSwaption(Product):
    """
    Option to enter the remaining swap at any flagged period start.

    Attributes
    ----------
    schedule : Schedule
        Underlying swap schedule
    swap_rates : float or array
        Fixed rate per period
    exercise_flags : sequence of bool
        Per period: its start (fixing) date is an exercise date
    notionals : float or array
        Notional per period
    regression_degree : int, default 2
        Degree of the polynomial continuation basis
    propagation : Propagation, default FITTED_MAXIMUM
    regression_sample : RegressionSample, default IN_SAMPLE

    Examples
    --------
    >>> schedule = Schedule.regular(5.0, 10, 0.5)
    >>> bermudan = BermudanSwaption(schedule, 0.05, [True] * 10)
    >>> result = bermudan.value_with_policy(0.0, simulation)
    >>> result.value.average() >= Swaption(5.0, schedule, 0.05).price(simulation)
    True
    """

    schedule: Schedule
    swap_rates: RateLike
    exercise_flags: Sequence[bool]
    notionals: RateLike = 1.0
    regression_degree: int = 2
    propagation: Union[Propagation, str] = Propagation.FITTED_MAXIMUM
    regression_sample: Union[RegressionSample, str] = RegressionSample.IN_SAMPLE

    def __post_init__(self) -> None:
        n_periods = self.schedule.n_periods
        flags = tuple(bool(flag) for flag in self.exercise_flags)
        if len(flags) != n_periods:
            raise ValueError(
                f"CRITICAL: exercise_flags has {len(flags)} entries, expected {n_periods}"
            )
        if not any(flags):
            raise ValueError("CRITICAL: at least one exercise date is required")
        if self.regression_degree < 0:
            raise ValueError(
                f"CRITICAL: regression_degree must be >= 0, got {self.regression_degree}"
            )
        object.__setattr__(self, "exercise_flags", flags)
        object.__setattr__(self, "swap_rates", per_period(self.swap_rates, n_periods, "swap_rates"))
        object.__setattr__(self, "notionals", per_period(self.notionals, n_periods, "notionals"))
        object.__setattr__(self, "propagation", Propagation(self.propagation))
        object.__setattr__(self, "regression_sample", RegressionSample(self.regression_sample))

    @classmethod
    def from_config(
        cls,
        schedule: Schedule,
        swap_rates: RateLike,
        exercise_flags: Sequence[bool],
        notionals: RateLike = 1.0,
        config: Optional[ValuationConfig] = None,
    ) -> "BermudanSwaption":
        """
        Bermudan swaption with the regression settings of config.

        Parameters
        ----------
        config : ValuationConfig, optional
            Regression degree, propagation and regression sample
            (default: SETTINGS.valuation)
        """
        config = config or SETTINGS.valuation
        return cls(
            schedule,
            swap_rates,
            exercise_flags,
            notionals,
            regression_degree=config.regression_degree,
            propagation=config.propagation,
            regression_sample=config.regression_sample,
        )

    @property
    def exercise_dates(self) -> tuple:
        return tuple(
            float(date)
            for date, flag in zip(self.schedule.fixing_dates, self.exercise_flags)
            if flag
        )

    def value(self, evaluation_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        return self.value_with_policy(evaluation_time, simulation).value

    def value_with_policy(
        self,
        evaluation_time: float,
        simulation: MonteCarloSimulation,
    ) -> BermudanResult:
        """
        Backward induction; returns the value together with the exercise policy.

        Raises
        ------
        InsufficientSamplesError
            If a regression has fewer fitting paths than basis functions
        """
        n_paths = simulation.n_paths
        n_basis = self.regression_degree + 1
        if self.regression_sample is RegressionSample.SPLIT:
            fit_paths = np.arange(0, n_paths, 2)
            report_paths = np.arange(1, n_paths, 2)
        else:
            fit_paths = report_paths = np.arange(n_paths)

        dates = [date for date in self.exercise_dates if is_paid_after(date, evaluation_time)]
        realized = np.zeros(n_paths)
        target = np.zeros(n_paths)
        policy: list[np.ndarray] = []

        for position, date in enumerate(reversed(dates)):
            swap_value, par_rate = _swap_at(
                simulation, date, self.schedule, self.swap_rates, self.notionals
            )
            immediate = swap_value / simulation.numeraire(date).values

            if position == 0:
                continuation = np.zeros(n_paths)
            else:
                if fit_paths.size < n_basis:
                    raise InsufficientSamplesError(
                        f"CRITICAL: {fit_paths.size} regression samples for {n_basis} basis "
                        f"functions at exercise date {date}",
                        exercise_date=date,
                        n_samples=int(fit_paths.size),
                        n_basis=n_basis,
                    )
                basis = _basis(par_rate, self.regression_degree)
                coefficients, *_ = np.linalg.lstsq(
                    basis[fit_paths], target[fit_paths], rcond=None
                )
                continuation = basis @ coefficients

            exercise = immediate > continuation
            realized = np.where(exercise, immediate, realized)
            if self.propagation is Propagation.FITTED_MAXIMUM:
                target = np.where(exercise, immediate, continuation)
            else:
                target = realized
            policy.append(exercise)
            logger.debug(
                f"Exercise date {date}: {exercise.mean():.1%} of paths exercise"
            )

        value = realized * simulation.numeraire(evaluation_time).values
        return BermudanResult(
            value=RandomVariable(value[report_paths]),
            exercise_policy=tuple(exercise[report_paths] for exercise in reversed(policy)),
            exercise_dates=tuple(dates),
        )
