"""
LIBOR market model.

State: the simple-compounded forward rates L_i of the periods [T_i, T_{i+1}).

Theory
------
[T1] Initial state: L_i(0) = (P(T_i)/P(T_{i+1}) - 1) / δ_i
[T1] Spot measure drift:
     μ_i = l_i · Σ_{j=m(t)}^{i} δ_j s_j / (1 + δ_j L_j)
[T1] Terminal measure drift:
     μ_i = -l_i · Σ_{j=i+1}^{N-1} δ_j s_j / (1 + δ_j L_j)
     with l the loading in state space and s the absolute loading
     (s = l L for log-normal); log-normal adds the Itô term -½|l_i|²
[T1] Spot numeraire: N(t) = Π_{j<m} (1 + δ_j L_j) · (1 + L_m (t - T_m)),
     T_m <= t < T_{m+1}
     Linear accrual between tenor dates: bonds maturing off the tenor grid
     match a log-linear curve only to about 1e-4
[T1] Terminal numeraire: N(t) = P(t, T_N)

Forwards with T_i <= t are fixed: zero drift and zero loading.

See: Brigo & Mercurio (2006) "Interest Rate Models", Ch. 6
See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 3.7
"""

import logging
from typing import Union

import numpy as np

from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.curves.yield_curve import DiscountCurveProvider
from ir_montecarlo.errors import InvalidConfigurationError, UnsupportedTenorError
from ir_montecarlo.models.base import (
    DiscountBond,
    ForwardRate,
    Measure,
    Observable,
    broadcast_loading,
)
from ir_montecarlo.simulation.covariance import CovarianceStructure, StateSpace
from ir_montecarlo.simulation.grids import TenorGrid

logger = logging.getLogger(__name__)


class LIBORMarketModel:
    """
    LIBOR market model under the spot or terminal measure.

    Parameters
    ----------
    tenor_grid : TenorGrid
        Period boundaries T_0 < ... < T_N
    curve : DiscountCurveProvider
        Initial curve; seeds the initial forwards
    covariance : CovarianceStructure
        Factor loadings; its state_space sets the model's state space
    measure : Measure or str, default Measure.SPOT

    Examples
    --------
    >>> model = LIBORMarketModel(tenor_grid, curve, covariance)
    >>> model.initial_state()[:2]
    array([0.05, 0.05])
    """

    def __init__(
        self,
        tenor_grid: TenorGrid,
        curve: DiscountCurveProvider,
        covariance: CovarianceStructure,
        measure: Union[Measure, str] = Measure.SPOT,
    ):
        if covariance.tenor_grid != tenor_grid:
            raise InvalidConfigurationError(
                "CRITICAL: covariance structure and model must share the tenor grid"
            )
        time_grid = covariance.time_grid
        if time_grid.last > tenor_grid.last + TIME_MATCH_TOLERANCE:
            raise InvalidConfigurationError(
                f"CRITICAL: time grid ends at {time_grid.last}, after the last tenor "
                f"date {tenor_grid.last}"
            )
        if time_grid.first < tenor_grid.first - TIME_MATCH_TOLERANCE:
            raise InvalidConfigurationError(
                f"CRITICAL: time grid starts at {time_grid.first}, before the first "
                f"tenor date {tenor_grid.first}"
            )

        self.time_grid = time_grid
        self.tenor_grid = tenor_grid
        self.curve = curve
        self.covariance = covariance
        self.measure = Measure(measure)
        self.state_space = covariance.state_space
        self.n_components = tenor_grid.n_periods
        self.n_factors = covariance.n_factors

        self._period_lengths = tenor_grid.period_lengths
        self._fixings = tenor_grid.times[:-1]

        discount_factors = np.array([curve.discount_factor(t) for t in tenor_grid.times])
        initial = (discount_factors[:-1] / discount_factors[1:] - 1.0) / self._period_lengths
        if self.state_space is StateSpace.LOGNORMAL and np.any(initial <= 0):
            raise InvalidConfigurationError(
                "CRITICAL: log-normal LMM requires strictly positive initial forwards"
            )
        initial.setflags(write=False)
        self._initial_state = initial
        logger.debug(
            f"LMM initial forwards in [{initial.min():.6f}, {initial.max():.6f}] "
            f"on {self.n_components} periods"
        )

    # -------------------------------------------------------------------------
    # Dynamics
    # -------------------------------------------------------------------------

    def initial_state(self) -> np.ndarray:
        return self._initial_state

    def _alive(self, time_index: int) -> np.ndarray:
        return self._fixings - self.time_grid.time(time_index) > TIME_MATCH_TOLERANCE

    def factor_loading(self, time_index: int, state: np.ndarray) -> np.ndarray:
        """Loadings in state space, shape (n_paths, n_periods, n_factors)."""
        state = np.asarray(state)
        loading = self.covariance.factor_loading(time_index, state)
        return broadcast_loading(loading, state.shape[0])

    def drift(self, time_index: int, state: np.ndarray) -> np.ndarray:
        """Drift in state space, shape (n_paths, n_periods)."""
        state = np.asarray(state)
        loading = self.factor_loading(time_index, state)
        if self.state_space is StateSpace.LOGNORMAL:
            absolute_loading = loading * state[:, :, np.newaxis]
        else:
            absolute_loading = loading

        delta = self._period_lengths[np.newaxis, :]
        weights = (delta / (1.0 + delta * state))[:, :, np.newaxis]
        terms = weights * absolute_loading

        if self.measure is Measure.SPOT:
            # Fixed forwards carry zero loading, so summing from j=0 equals summing from m(t)
            summed = np.cumsum(terms, axis=1)
            drift = np.einsum("pif,pif->pi", loading, summed)
        else:
            summed = np.sum(terms, axis=1, keepdims=True) - np.cumsum(terms, axis=1)
            drift = -np.einsum("pif,pif->pi", loading, summed)

        if self.state_space is StateSpace.LOGNORMAL:
            drift = drift - 0.5 * np.einsum("pif,pif->pi", loading, loading)

        return np.where(self._alive(time_index)[np.newaxis, :], drift, 0.0)

    # -------------------------------------------------------------------------
    # Numeraire and observables
    # -------------------------------------------------------------------------

    def _period_index(self, t: float) -> int:
        """Index m with T_m <= t < T_{m+1} (N at or after T_N)."""
        return min(self.tenor_grid.floor_index(t), self.tenor_grid.n_periods)

    def _bond_to_next_tenor(self, t: float, m: int, state: np.ndarray) -> np.ndarray:
        """P(t, T_{m+1}) from the linear accrual of the current period."""
        return 1.0 / (1.0 + state[:, m] * (self.tenor_grid.time(m + 1) - t))

    def _bond_product(self, state: np.ndarray, first: int, last: int) -> np.ndarray:
        """Π_{j=first}^{last-1} 1/(1 + δ_j L_j), shape (n_paths,)."""
        delta = self._period_lengths[first:last]
        return np.prod(1.0 / (1.0 + delta * state[:, first:last]), axis=1)

    def numeraire(self, time_index: int, state: np.ndarray) -> np.ndarray:
        state = np.asarray(state)
        t = self.time_grid.time(time_index)
        n_periods = self.tenor_grid.n_periods
        m = self._period_index(t)

        if self.measure is Measure.SPOT:
            rolled = 1.0 / self._bond_product(state, 0, m)
            if m < n_periods:
                accrual = t - self.tenor_grid.time(m)
                rolled = rolled * (1.0 + state[:, m] * accrual)
            return rolled

        if m >= n_periods:
            return np.ones(state.shape[0])
        return self._bond_to_next_tenor(t, m, state) * self._bond_product(state, m + 1, n_periods)

    def _tenor_index(self, date: float, t: float) -> int:
        index = self.tenor_grid.index_of(date)
        if index is None:
            raise UnsupportedTenorError(
                f"CRITICAL: {date} is not a tenor date of the LMM",
                tenor=date,
                time=t,
            )
        return index

    def state_to_observable(
        self,
        time_index: int,
        state: np.ndarray,
        target: Observable,
    ) -> np.ndarray:
        """
        Forward rate or discount bond at time_index.

        Raises
        ------
        UnsupportedTenorError
            If a requested date is not a tenor date, or the forward period
            (bond maturity) starts (lies) before the observation time
        """
        state = np.asarray(state)
        t = self.time_grid.time(time_index)

        if isinstance(target, ForwardRate):
            if target.start < t - TIME_MATCH_TOLERANCE:
                raise UnsupportedTenorError(
                    f"CRITICAL: forward period starting at {target.start} is already "
                    f"fixed at time {t}",
                    tenor=target.start,
                    time=t,
                )
            first = self._tenor_index(target.start, t)
            last = self._tenor_index(target.end, t)
            growth = 1.0 / self._bond_product(state, first, last)
            return (growth - 1.0) / (target.end - target.start)

        if isinstance(target, DiscountBond):
            maturity = target.maturity
            if maturity < t - TIME_MATCH_TOLERANCE:
                raise UnsupportedTenorError(
                    f"CRITICAL: bond maturity {maturity} before observation time {t}",
                    tenor=maturity,
                    time=t,
                )
            if abs(maturity - t) <= TIME_MATCH_TOLERANCE:
                return np.ones(state.shape[0])
            last = self._tenor_index(maturity, t)
            m = self._period_index(t)
            if abs(self.tenor_grid.time(m) - t) <= TIME_MATCH_TOLERANCE:
                return self._bond_product(state, m, last)
            return self._bond_to_next_tenor(t, m, state) * self._bond_product(state, m + 1, last)

        raise TypeError(f"CRITICAL: unsupported observable {target!r}")

    def __repr__(self) -> str:
        return (
            f"LIBORMarketModel(n_periods={self.n_components}, n_factors={self.n_factors}, "
            f"measure={self.measure.value}, state_space={self.state_space.value})"
        )
