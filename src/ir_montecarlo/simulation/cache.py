"""
Simulation cache: evolve a model once, then serve read-only path data.

Lifecycle: build (single writer, sequential in time, vectorized across
paths) -> immutable. Every valuation reads the same arrays; nothing is
recomputed or mutated after the build, so concurrent valuations are safe.

[T1] Monte Carlo value: V(t) = N(t) E_t[X / N(T)]

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 3
"""

import logging
import time as _time
from typing import Optional

import numpy as np

from ir_montecarlo.config.settings import SETTINGS, DiagnosticsConfig
from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.errors import (
    InvalidConfigurationError,
    NumericalInstabilityError,
    UnsupportedTenorError,
)
from ir_montecarlo.models.base import DiscountBond, ForwardRate, Observable
from ir_montecarlo.simulation.brownian import BrownianMotion
from ir_montecarlo.simulation.random_variable import RandomVariable
from ir_montecarlo.simulation.scheme import EulerScheme

logger = logging.getLogger(__name__)


class MonteCarloSimulation:
    """
    Immutable result of evolving a model along all paths.

    Use MonteCarloSimulation.build(model, brownian) rather than the
    constructor.

    Attributes
    ----------
    model : TermStructureModel
        The simulated model
    brownian : BrownianMotion
        The random driver
    build_seconds : float
        Wall-clock duration of the build

    Examples
    --------
    >>> simulation = MonteCarloSimulation.build(model, brownian)
    >>> simulation.discount_bond(0.0, 5.0).average()
    0.7788...
    """

    def __init__(
        self,
        model,
        brownian: BrownianMotion,
        states: np.ndarray,
        numeraires: np.ndarray,
        build_seconds: float = 0.0,
    ):
        states.setflags(write=False)
        numeraires.setflags(write=False)
        self.model = model
        self.brownian = brownian
        self._states = states
        self._numeraires = numeraires
        self.build_seconds = build_seconds

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        model,
        brownian: BrownianMotion,
        scheme: Optional[EulerScheme] = None,
        diagnostics: Optional[DiagnosticsConfig] = None,
    ) -> "MonteCarloSimulation":
        """
        Evolve model with the increments of brownian.

        Parameters
        ----------
        model : TermStructureModel
            Model to simulate
        brownian : BrownianMotion
            Driver on the model's time grid with the model's factor count
        scheme : EulerScheme, optional
            Evolution scheme (default: Euler)
        diagnostics : DiagnosticsConfig, optional
            Run the covariance PSD check before evolving (default:
            SETTINGS.diagnostics)

        Returns
        -------
        MonteCarloSimulation

        Raises
        ------
        InvalidConfigurationError
            If driver and model disagree on time grid or factor count
        NumericalInstabilityError
            If any state or numeraire becomes NaN/Inf or the numeraire
            is not strictly positive
        """
        if brownian.time_grid != model.time_grid:
            raise InvalidConfigurationError(
                f"CRITICAL: driver time grid {brownian.time_grid!r} does not match "
                f"model time grid {model.time_grid!r}"
            )
        if brownian.n_factors != model.n_factors:
            raise InvalidConfigurationError(
                f"CRITICAL: driver has {brownian.n_factors} factors, "
                f"model requires {model.n_factors}"
            )

        if diagnostics is None:
            diagnostics = SETTINGS.diagnostics
        if diagnostics.check_covariance_psd:
            covariance = getattr(model, "covariance", None)
            if covariance is not None:
                covariance.check_positive_semidefinite(diagnostics.psd_tolerance)

        scheme = scheme or EulerScheme()
        n_paths = brownian.n_paths
        n_times = model.time_grid.n_times

        logger.info(
            f"Building {type(model).__name__} simulation: {n_paths} paths, "
            f"{model.time_grid.n_steps} steps, {model.n_components} components, "
            f"seed {brownian.seed}"
        )
        started = _time.perf_counter()

        states = np.empty((n_times, n_paths, model.n_components))
        numeraires = np.empty((n_times, n_paths))

        state = np.broadcast_to(
            np.asarray(model.initial_state(), dtype=float),
            (n_paths, model.n_components),
        ).copy()
        states[0] = state
        numeraires[0] = model.numeraire(0, state)
        cls._check_step(0, states[0], numeraires[0], brownian)

        for time_index in range(model.time_grid.n_steps):
            state = scheme.step(model, time_index, state, brownian.increments(time_index))
            states[time_index + 1] = state
            numeraires[time_index + 1] = model.numeraire(time_index + 1, state)
            cls._check_step(time_index + 1, states[time_index + 1], numeraires[time_index + 1], brownian)

        elapsed = _time.perf_counter() - started
        logger.info(f"Simulation built in {elapsed:.2f}s")
        return cls(model, brownian, states, numeraires, build_seconds=elapsed)

    @staticmethod
    def _check_step(
        time_index: int,
        state: np.ndarray,
        numeraire: np.ndarray,
        brownian: BrownianMotion,
    ) -> None:
        if not np.all(np.isfinite(state)):
            raise NumericalInstabilityError(
                f"CRITICAL: non-finite state at time index {time_index} "
                f"({brownian.n_paths} paths, seed {brownian.seed})",
                time_index=time_index,
                n_paths=brownian.n_paths,
                seed=brownian.seed,
            )
        if not np.all(np.isfinite(numeraire)) or np.any(numeraire <= 0):
            raise NumericalInstabilityError(
                f"CRITICAL: non-finite or non-positive numeraire at time index {time_index} "
                f"({brownian.n_paths} paths, seed {brownian.seed})",
                time_index=time_index,
                n_paths=brownian.n_paths,
                seed=brownian.seed,
            )

    # -------------------------------------------------------------------------
    # Read-only accessors
    # -------------------------------------------------------------------------

    @property
    def time_grid(self):
        return self.model.time_grid

    @property
    def tenor_grid(self):
        return self.model.tenor_grid

    @property
    def n_paths(self) -> int:
        return self.brownian.n_paths

    @property
    def seed(self) -> int:
        return self.brownian.seed

    def time_index(self, t: float) -> int:
        """
        Index of the last grid time not after t.

        Raises
        ------
        UnsupportedTenorError
            If t lies outside the simulated time grid
        """
        if not self.time_grid.contains(t):
            raise UnsupportedTenorError(
                f"CRITICAL: time {t} outside simulated grid "
                f"[{self.time_grid.first}, {self.time_grid.last}]",
                time=t,
            )
        return max(self.time_grid.floor_index(t), 0)

    def state_at(self, time_index: int) -> np.ndarray:
        """Read-only state array at time_index, shape (n_paths, n_components)."""
        return self._states[time_index]

    def numeraire_at(self, time_index: int) -> RandomVariable:
        """Numeraire at a grid index."""
        return RandomVariable(self._numeraires[time_index])

    def numeraire(self, t: float) -> RandomVariable:
        """
        Numeraire at time t.

        Grid times return the cached value; times between two grid points
        interpolate log-linearly in the numeraire.
        """
        index = self.time_index(t)
        t_index = self.time_grid.time(index)
        if abs(t - t_index) <= TIME_MATCH_TOLERANCE or index == self.time_grid.n_steps:
            return RandomVariable(self._numeraires[index])

        t_next = self.time_grid.time(index + 1)
        weight = (t - t_index) / (t_next - t_index)
        log_numeraire = (1.0 - weight) * np.log(self._numeraires[index]) + weight * np.log(
            self._numeraires[index + 1]
        )
        return RandomVariable(np.exp(log_numeraire))

    def observable(self, t: float, target: Observable) -> RandomVariable:
        """Observable seen from the state at the last grid time not after t."""
        index = self.time_index(t)
        return RandomVariable(self.model.state_to_observable(index, self._states[index], target))

    def forward_rate(self, t: float, start: float, end: float) -> RandomVariable:
        """Forward rate for [start, end] observed at time t."""
        return self.observable(t, ForwardRate(start, end))

    def discount_bond(self, t: float, maturity: float) -> RandomVariable:
        """Discount bond P(t, maturity)."""
        return self.observable(t, DiscountBond(maturity))

    def __repr__(self) -> str:
        return (
            f"MonteCarloSimulation(model={type(self.model).__name__}, "
            f"n_paths={self.n_paths}, n_times={self.time_grid.n_times}, seed={self.seed})"
        )
