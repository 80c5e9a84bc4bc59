"""
Simulation time grid and LIBOR tenor grid.

Both grids are immutable, strictly increasing and shared by reference across
every component of one simulation.
"""

from typing import Optional, Sequence

import numpy as np

from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.errors import InvalidConfigurationError


class TimeGrid:
    """
    Ordered simulation times t_0 < t_1 < ... < t_n.

    Parameters
    ----------
    times : Sequence[float]
        Strictly increasing, non-negative times

    Examples
    --------
    >>> grid = TimeGrid.uniform(0.0, 40, 0.5)
    >>> grid.n_steps, grid.time(40)
    (40, 20.0)
    """

    def __init__(self, times: Sequence[float]):
        array = np.array(times, dtype=float)
        if array.ndim != 1 or array.size == 0:
            raise InvalidConfigurationError(
                f"CRITICAL: {type(self).__name__} requires a non-empty 1-d sequence of times"
            )
        if not np.all(np.isfinite(array)):
            raise InvalidConfigurationError(
                f"CRITICAL: {type(self).__name__} times must be finite"
            )
        if array[0] < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: {type(self).__name__} times must be >= 0, got {array[0]}"
            )
        if np.any(np.diff(array) <= 0):
            raise InvalidConfigurationError(
                f"CRITICAL: {type(self).__name__} times must be strictly increasing"
            )
        array.setflags(write=False)
        self._times = array

    @classmethod
    def uniform(cls, start: float, n_steps: int, dt: float):
        """Create a grid of n_steps equal steps of length dt starting at start."""
        if n_steps < 0:
            raise InvalidConfigurationError(f"CRITICAL: n_steps must be >= 0, got {n_steps}")
        if dt <= 0:
            raise InvalidConfigurationError(f"CRITICAL: dt must be > 0, got {dt}")
        return cls(start + dt * np.arange(n_steps + 1))

    @property
    def times(self) -> np.ndarray:
        """Read-only array of all grid times."""
        return self._times

    @property
    def n_times(self) -> int:
        """Number of grid points."""
        return self._times.size

    @property
    def n_steps(self) -> int:
        """Number of steps (n_times - 1)."""
        return self._times.size - 1

    @property
    def first(self) -> float:
        return float(self._times[0])

    @property
    def last(self) -> float:
        return float(self._times[-1])

    def time(self, index: int) -> float:
        """Time at grid index."""
        return float(self._times[index])

    def time_step(self, index: int) -> float:
        """Length of step index, t_{index+1} - t_index."""
        return float(self._times[index + 1] - self._times[index])

    def index_of(self, t: float) -> Optional[int]:
        """
        Index of the grid point equal to t (within TIME_MATCH_TOLERANCE).

        Returns None when t is not a grid point.
        """
        index = int(np.searchsorted(self._times, t - TIME_MATCH_TOLERANCE))
        if index < self._times.size and abs(self._times[index] - t) <= TIME_MATCH_TOLERANCE:
            return index
        return None

    def floor_index(self, t: float) -> int:
        """
        Largest index with t_index <= t (grid points matched with tolerance).

        Returns -1 when t lies before the first grid point.
        """
        return int(np.searchsorted(self._times, t + TIME_MATCH_TOLERANCE, side="right")) - 1

    def contains(self, t: float) -> bool:
        """Whether t lies within [first, last] (with tolerance)."""
        return self.first - TIME_MATCH_TOLERANCE <= t <= self.last + TIME_MATCH_TOLERANCE

    def __len__(self) -> int:
        return self._times.size

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeGrid):
            return NotImplemented
        return self._times.shape == other._times.shape and bool(
            np.all(np.abs(self._times - other._times) <= TIME_MATCH_TOLERANCE)
        )

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._times.size, round(self.first, 8), round(self.last, 8)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_times={self.n_times}, first={self.first}, last={self.last})"


class TenorGrid(TimeGrid):
    """
    LIBOR period boundaries T_0 < T_1 < ... < T_N.

    Period i is [T_i, T_{i+1}); the grid holds N = n_periods forward rates.
    """

    def __init__(self, times: Sequence[float]):
        super().__init__(times)
        if self.n_times < 2:
            raise InvalidConfigurationError(
                "CRITICAL: TenorGrid requires at least two boundaries (one period)"
            )

    @property
    def n_periods(self) -> int:
        """Number of forward-rate periods."""
        return self.n_steps

    def period_length(self, index: int) -> float:
        """Length δ_i of period index."""
        return self.time_step(index)

    @property
    def period_lengths(self) -> np.ndarray:
        """All period lengths δ_0 ... δ_{N-1}."""
        return np.diff(self.times)

    def period_index(self, t: float) -> Optional[int]:
        """Index of the period starting at t, or None if t is not a period start."""
        index = self.index_of(t)
        if index is None or index >= self.n_periods:
            return None
        return index
