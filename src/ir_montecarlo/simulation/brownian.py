"""
Brownian increments driving the simulation.

[T1] dW_k ~ N(0, Δt_k) independently per (time step, factor, path)

Draw mapping (fixed): one numpy.random.default_rng(seed) stream fills an
array of shape (n_factors, n_steps, n_paths) in C order, so draw number
``(factor * n_steps + step) * n_paths + path`` is the increment of ``path``
on ``factor`` over ``step``. Factor 0 therefore receives the same
increments in every driver sharing seed, time grid and path count,
whatever the factor count.

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 3
"""

import threading
from typing import Optional

import numpy as np

from ir_montecarlo.errors import InvalidConfigurationError
from ir_montecarlo.simulation.grids import TimeGrid


class BrownianMotion:
    """
    Deterministic, seedable generator of Brownian increments.

    Parameters
    ----------
    time_grid : TimeGrid
        Simulation times (at least two points)
    n_factors : int
        Number of independent factors F
    n_paths : int
        Number of paths P
    seed : int
        Random seed; identical seed => bit-identical increments
    antithetic : bool, default False
        Use -Z of the first P/2 paths for the remaining P/2 paths.
        Requires an even path count.

    Examples
    --------
    >>> grid = TimeGrid.uniform(0.0, 4, 0.5)
    >>> brownian = BrownianMotion(grid, n_factors=2, n_paths=1000, seed=3141)
    >>> brownian.increments(0).shape
    (1000, 2)
    """

    def __init__(
        self,
        time_grid: TimeGrid,
        n_factors: int,
        n_paths: int,
        seed: int,
        antithetic: bool = False,
    ):
        if n_paths <= 0:
            raise InvalidConfigurationError(f"CRITICAL: n_paths must be > 0, got {n_paths}")
        if n_factors <= 0:
            raise InvalidConfigurationError(f"CRITICAL: n_factors must be > 0, got {n_factors}")
        if time_grid.n_times < 2:
            raise InvalidConfigurationError(
                f"CRITICAL: time grid must have at least 2 points, got {time_grid.n_times}"
            )
        if antithetic and n_paths % 2 != 0:
            raise InvalidConfigurationError(
                f"CRITICAL: n_paths must be even for antithetic, got {n_paths}"
            )

        self.time_grid = time_grid
        self.n_factors = n_factors
        self.n_paths = n_paths
        self.seed = seed
        self.antithetic = antithetic

        self._increments: Optional[np.ndarray] = None
        self._lock = threading.Lock()

    def _generate(self) -> np.ndarray:
        """Draw all increments, shape (n_steps, n_paths, n_factors)."""
        rng = np.random.default_rng(self.seed)
        n_steps = self.time_grid.n_steps

        if self.antithetic:
            half_paths = self.n_paths // 2
            z = rng.standard_normal((self.n_factors, n_steps, half_paths))
            z = np.concatenate([z, -z], axis=2)
        else:
            z = rng.standard_normal((self.n_factors, n_steps, self.n_paths))

        sqrt_dt = np.sqrt(np.diff(self.time_grid.times))
        increments = np.ascontiguousarray(
            np.transpose(z, (1, 2, 0)) * sqrt_dt[:, np.newaxis, np.newaxis]
        )
        increments.setflags(write=False)
        return increments

    def _all_increments(self) -> np.ndarray:
        if self._increments is None:
            with self._lock:
                if self._increments is None:
                    self._increments = self._generate()
        return self._increments

    def increments(self, time_index: int) -> np.ndarray:
        """
        Increments over step time_index, shape (n_paths, n_factors).

        Parameters
        ----------
        time_index : int
            Step index in [0, n_steps)

        Returns
        -------
        np.ndarray
            Read-only view of N(0,1) * sqrt(Δt) draws
        """
        if time_index < 0 or time_index >= self.time_grid.n_steps:
            raise IndexError(
                f"CRITICAL: time_index must be in [0, {self.time_grid.n_steps}), got {time_index}"
            )
        return self._all_increments()[time_index]

    def __repr__(self) -> str:
        return (
            f"BrownianMotion(n_factors={self.n_factors}, n_paths={self.n_paths}, "
            f"seed={self.seed}, antithetic={self.antithetic})"
        )
