"""
Payment schedules as numeric date arrays.

Calendar and day-count conventions are resolved outside the engine; a
Schedule only carries the resulting year fractions.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ir_montecarlo.errors import InvalidConfigurationError


def _frozen_array(values: Sequence[float]) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Schedule:
    """
    Periods of an interest-rate leg.

    Attributes
    ----------
    period_starts : ndarray
        Start of each accrual period
    period_ends : ndarray
        End of each accrual period
    fixing_dates : ndarray
        Index fixing dates (default: period starts)
    payment_dates : ndarray
        Payment dates (default: period ends)
    accruals : ndarray
        Day-count fractions (default: period_ends - period_starts)
    """

    period_starts: np.ndarray
    period_ends: np.ndarray
    fixing_dates: Optional[np.ndarray] = None
    payment_dates: Optional[np.ndarray] = None
    accruals: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        """Fill defaults, freeze arrays and validate."""
        starts = _frozen_array(self.period_starts)
        ends = _frozen_array(self.period_ends)
        fixings = _frozen_array(starts if self.fixing_dates is None else self.fixing_dates)
        payments = _frozen_array(ends if self.payment_dates is None else self.payment_dates)
        accruals = _frozen_array(ends - starts if self.accruals is None else self.accruals)

        n_periods = len(starts)
        if n_periods == 0:
            raise InvalidConfigurationError("CRITICAL: schedule must have at least one period")
        for name, array in (
            ("period_ends", ends),
            ("fixing_dates", fixings),
            ("payment_dates", payments),
            ("accruals", accruals),
        ):
            if len(array) != n_periods:
                raise InvalidConfigurationError(
                    f"CRITICAL: {name} has {len(array)} entries, expected {n_periods}"
                )
        if np.any(ends <= starts):
            raise InvalidConfigurationError("CRITICAL: every period must end after it starts")
        if np.any(np.diff(starts) <= 0):
            raise InvalidConfigurationError("CRITICAL: period starts must be strictly increasing")

        object.__setattr__(self, "period_starts", starts)
        object.__setattr__(self, "period_ends", ends)
        object.__setattr__(self, "fixing_dates", fixings)
        object.__setattr__(self, "payment_dates", payments)
        object.__setattr__(self, "accruals", accruals)

    @classmethod
    def regular(cls, start: float, n_periods: int, period_length: float) -> "Schedule":
        """
        Create a regular schedule of n_periods periods of equal length.

        Examples
        --------
        >>> schedule = Schedule.regular(1.0, 4, 0.5)
        >>> schedule.payment_dates
        array([1.5, 2. , 2.5, 3. ])
        """
        if n_periods <= 0:
            raise InvalidConfigurationError(f"CRITICAL: n_periods must be > 0, got {n_periods}")
        if period_length <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: period_length must be > 0, got {period_length}"
            )
        starts = start + period_length * np.arange(n_periods)
        return cls(period_starts=starts, period_ends=starts + period_length)

    @property
    def n_periods(self) -> int:
        """Number of periods."""
        return len(self.period_starts)

    @property
    def tenor(self) -> np.ndarray:
        """Period boundaries T_0 < ... < T_n (assumes contiguous periods)."""
        return np.append(self.period_starts, self.period_ends[-1])
