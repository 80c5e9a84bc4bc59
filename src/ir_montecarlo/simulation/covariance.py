"""
Volatility, correlation and covariance structures of the forward-rate curve.

A covariance structure maps a time index to factor loadings of shape
(n_components, n_factors); a state-dependent wrapper returns loadings of
shape (n_paths, n_components, n_factors) instead.

Theory
------
[T1] Covariance: C_ij(t) = Σ_f l_if(t) l_jf(t)
[T1] Exponential decay correlation: ρ_ij = exp(-β |T_i - T_j|)
[T1] Factor reduction: keep the F largest eigenpairs of ρ, l = v √λ,
     rows renormalized so that every component keeps unit variance
[T1] Hull-White equivalent normal LMM loading of L_i over [t_k, t_{k+1}):
     σ e^{-a(T_i - t_k)} √((e^{2aΔt} - 1)/(2aΔt)) (1 - e^{-aδ})/(aδ)

See: Brigo & Mercurio (2006) "Interest Rate Models", Ch. 6-7
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import numpy as np

from ir_montecarlo.config.tolerances import PSD_DIAGNOSTIC_TOLERANCE, TIME_MATCH_TOLERANCE
from ir_montecarlo.errors import InvalidConfigurationError
from ir_montecarlo.simulation.grids import TenorGrid, TimeGrid

logger = logging.getLogger(__name__)


class StateSpace(Enum):
    """Space in which the Euler scheme evolves a component."""

    NORMAL = "normal"
    LOGNORMAL = "lognormal"


# =============================================================================
# Volatility
# =============================================================================


class VolatilityModel(ABC):
    """Instantaneous volatility σ_i(t_k) of each forward-rate component."""

    def __init__(self, time_grid: TimeGrid, tenor_grid: TenorGrid):
        self.time_grid = time_grid
        self.tenor_grid = tenor_grid

    @abstractmethod
    def volatility(self, time_index: int) -> np.ndarray:
        """Volatilities of all components at time_index, shape (n_periods,)."""
        pass


class VolatilityFromMatrix(VolatilityModel):
    """
    Volatility given as a matrix sigma[time_index][component].

    Parameters
    ----------
    time_grid : TimeGrid
        Simulation times
    tenor_grid : TenorGrid
        Forward-rate periods
    matrix : array_like
        Shape (n_steps, n_periods) or (n_times, n_periods)
    """

    def __init__(self, time_grid: TimeGrid, tenor_grid: TenorGrid, matrix: np.ndarray):
        super().__init__(time_grid, tenor_grid)
        values = np.array(matrix, dtype=float)
        if values.ndim != 2 or values.shape[1] != tenor_grid.n_periods:
            raise InvalidConfigurationError(
                f"CRITICAL: volatility matrix must have {tenor_grid.n_periods} columns, "
                f"got shape {values.shape}"
            )
        if values.shape[0] not in (time_grid.n_steps, time_grid.n_times):
            raise InvalidConfigurationError(
                f"CRITICAL: volatility matrix must have {time_grid.n_steps} or "
                f"{time_grid.n_times} rows, got {values.shape[0]}"
            )
        if not np.all(np.isfinite(values)):
            raise InvalidConfigurationError("CRITICAL: volatility matrix must be finite")
        values.setflags(write=False)
        self._matrix = values

    @classmethod
    def hull_white_equivalent(
        cls,
        time_grid: TimeGrid,
        tenor_grid: TenorGrid,
        short_rate_volatility: float,
        mean_reversion: float,
    ) -> "VolatilityFromMatrix":
        """
        Normal LMM volatilities reproducing a constant-coefficient Hull-White model.

        Combined with HullWhiteLocalVolatility, a single factor and the spot
        measure, the normal LMM has the Hull-White forward-rate dynamics.

        Parameters
        ----------
        short_rate_volatility : float
            Hull-White σ
        mean_reversion : float
            Hull-White a (> 0)
        """
        if mean_reversion <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: mean_reversion must be > 0, got {mean_reversion}"
            )
        a = mean_reversion
        times = time_grid.times[:-1]
        dt = np.diff(time_grid.times)
        period_starts = tenor_grid.times[:-1]
        delta = tenor_grid.period_lengths

        time_to_maturity = period_starts[np.newaxis, :] - times[:, np.newaxis]
        step_factor = np.sqrt((np.exp(2 * a * dt) - 1) / (2 * a * dt))[:, np.newaxis]
        period_factor = ((1 - np.exp(-a * delta)) / (a * delta))[np.newaxis, :]

        matrix = (
            short_rate_volatility
            * np.exp(-a * np.maximum(time_to_maturity, 0.0))
            * step_factor
            * period_factor
        )
        # Fixed forwards carry no volatility
        matrix[time_to_maturity <= 0] = 0.0
        return cls(time_grid, tenor_grid, matrix)

    def volatility(self, time_index: int) -> np.ndarray:
        return self._matrix[time_index]


class ExponentialVolatility(VolatilityModel):
    """
    Parametric volatility σ(τ) = (a + bτ) e^{-cτ} + d in time to maturity τ.

    [T1] Rebonato (2002) abcd parametrization
    """

    def __init__(
        self,
        time_grid: TimeGrid,
        tenor_grid: TenorGrid,
        a: float,
        b: float,
        c: float,
        d: float,
    ):
        super().__init__(time_grid, tenor_grid)
        if c < 0:
            raise InvalidConfigurationError(f"CRITICAL: c must be >= 0, got {c}")
        self.a = a
        self.b = b
        self.c = c
        self.d = d

    def volatility(self, time_index: int) -> np.ndarray:
        tau = self.tenor_grid.times[:-1] - self.time_grid.time(time_index)
        sigma = (self.a + self.b * tau) * np.exp(-self.c * tau) + self.d
        return np.where(tau > 0, sigma, 0.0)


# =============================================================================
# Correlation
# =============================================================================


class ExponentialDecayCorrelation:
    """
    Correlation ρ_ij = exp(-decay |T_i - T_j|) reduced to n_factors factors.

    Parameters
    ----------
    tenor_grid : TenorGrid
        Forward-rate periods (component i fixes at T_i)
    n_factors : int
        Number of factors F, 1 <= F <= n_periods
    decay : float
        Correlation decay β >= 0; β = 0 is perfect correlation

    Examples
    --------
    >>> correlation = ExponentialDecayCorrelation(TenorGrid([0.0, 0.5, 1.0]), 1, 0.0)
    >>> correlation.factor_matrix
    array([[1.],
           [1.]])
    """

    def __init__(self, tenor_grid: TenorGrid, n_factors: int, decay: float = 0.0):
        if n_factors <= 0 or n_factors > tenor_grid.n_periods:
            raise InvalidConfigurationError(
                f"CRITICAL: n_factors must be in [1, {tenor_grid.n_periods}], got {n_factors}"
            )
        if decay < 0:
            raise InvalidConfigurationError(f"CRITICAL: decay must be >= 0, got {decay}")

        self.tenor_grid = tenor_grid
        self.n_factors = n_factors
        self.decay = decay

        fixings = tenor_grid.times[:-1]
        correlation = np.exp(-decay * np.abs(fixings[:, np.newaxis] - fixings[np.newaxis, :]))
        correlation.setflags(write=False)
        self.correlation = correlation

        factor_matrix = self._reduce(correlation, n_factors)
        factor_matrix.setflags(write=False)
        self.factor_matrix = factor_matrix

    @staticmethod
    def _reduce(correlation: np.ndarray, n_factors: int) -> np.ndarray:
        eigenvalues, eigenvectors = np.linalg.eigh(correlation)
        order = np.argsort(eigenvalues)[::-1][:n_factors]
        eigenvalues = np.maximum(eigenvalues[order], 0.0)
        loadings = eigenvectors[:, order] * np.sqrt(eigenvalues)[np.newaxis, :]

        norms = np.linalg.norm(loadings, axis=1)
        norms[norms == 0] = 1.0
        loadings = loadings / norms[:, np.newaxis]

        signs = np.where(loadings[0] < 0, -1.0, 1.0)
        return loadings * signs[np.newaxis, :]

    def reduced_correlation(self) -> np.ndarray:
        """Correlation implied by the reduced factor matrix."""
        return self.factor_matrix @ self.factor_matrix.T


# =============================================================================
# Covariance
# =============================================================================


class CovarianceStructure(ABC):
    """
    Factor loadings and covariance of the model components.

    Attributes
    ----------
    time_grid : TimeGrid
    tenor_grid : TenorGrid
    n_factors : int
    state_space : StateSpace
        Space in which the loadings act (log-space for LOGNORMAL)
    """

    time_grid: TimeGrid
    tenor_grid: TenorGrid
    n_factors: int
    state_space: StateSpace

    @property
    def is_state_dependent(self) -> bool:
        """Whether factor_loading depends on the current state."""
        return False

    @abstractmethod
    def factor_loading(self, time_index: int, state: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Factor loadings at time_index.

        Returns
        -------
        np.ndarray
            Shape (n_components, n_factors), or (n_paths, n_components,
            n_factors) for state-dependent structures given a state
        """
        pass

    def covariance(self, time_index: int, state: Optional[np.ndarray] = None) -> np.ndarray:
        """Instantaneous covariance l l^T (per path for state-dependent loadings)."""
        loading = self.factor_loading(time_index, state)
        return np.einsum("...if,...jf->...ij", loading, loading)

    def check_positive_semidefinite(
        self,
        tolerance: float = PSD_DIAGNOSTIC_TOLERANCE,
    ) -> bool:
        """
        Diagnostic: verify every deterministic covariance matrix is PSD.

        Logs a warning naming the first offending time index. Never called
        during path evolution.

        Returns
        -------
        bool
            True if the smallest eigenvalue at every step is >= -tolerance
        """
        for time_index in range(self.time_grid.n_steps):
            covariance = self.covariance(time_index)
            smallest = float(np.linalg.eigvalsh(covariance).min())
            if smallest < -tolerance:
                logger.warning(
                    f"Covariance not positive semi-definite at time index {time_index} "
                    f"(t={self.time_grid.time(time_index)}): smallest eigenvalue {smallest:.3e}"
                )
                return False
        return True


class CovarianceFromVolatilityAndCorrelation(CovarianceStructure):
    """
    Loadings l_i(t_k) = σ_i(t_k) f_i from a volatility and a correlation model.

    Components whose fixing T_i is not after t_k carry zero loading.

    Parameters
    ----------
    volatility : VolatilityModel
    correlation : ExponentialDecayCorrelation
    state_space : StateSpace, default NORMAL
        NORMAL: σ is an absolute volatility of L_i;
        LOGNORMAL: σ is the volatility of log L_i
    """

    def __init__(
        self,
        volatility: VolatilityModel,
        correlation: ExponentialDecayCorrelation,
        state_space: StateSpace = StateSpace.NORMAL,
    ):
        if correlation.tenor_grid != volatility.tenor_grid:
            raise InvalidConfigurationError(
                "CRITICAL: volatility and correlation must share the tenor grid"
            )
        self.volatility = volatility
        self.correlation = correlation
        self.time_grid = volatility.time_grid
        self.tenor_grid = volatility.tenor_grid
        self.n_factors = correlation.n_factors
        self.state_space = StateSpace(state_space)

        fixings = self.tenor_grid.times[:-1]
        loadings = np.zeros((self.time_grid.n_steps, self.tenor_grid.n_periods, self.n_factors))
        for time_index in range(self.time_grid.n_steps):
            alive = fixings - self.time_grid.time(time_index) > TIME_MATCH_TOLERANCE
            sigma = np.where(alive, volatility.volatility(time_index), 0.0)
            loadings[time_index] = sigma[:, np.newaxis] * correlation.factor_matrix
        loadings.setflags(write=False)
        self._loadings = loadings

    def factor_loading(self, time_index: int, state: Optional[np.ndarray] = None) -> np.ndarray:
        return self._loadings[time_index]


class HullWhiteLocalVolatility(CovarianceStructure):
    """
    Local-volatility wrapper scaling loadings by (1 + L_i δ).

    [T1] Under Hull-White, δ dL_i = (1 + δ L_i) (σ_P(t,T_i) - σ_P(t,T_{i+1})) dW,
         so a normal LMM with this scaling reproduces Hull-White dynamics.

    Parameters
    ----------
    base : CovarianceStructure
        State-independent covariance (normal state space)
    period_length : float
        Forward-rate period length δ
    """

    def __init__(self, base: CovarianceStructure, period_length: float):
        if period_length <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: period_length must be > 0, got {period_length}"
            )
        self.base = base
        self.period_length = period_length
        self.time_grid = base.time_grid
        self.tenor_grid = base.tenor_grid
        self.n_factors = base.n_factors
        self.state_space = base.state_space

    @property
    def is_state_dependent(self) -> bool:
        return True

    def factor_loading(self, time_index: int, state: Optional[np.ndarray] = None) -> np.ndarray:
        loading = self.base.factor_loading(time_index)
        if state is None:
            return loading
        scale = 1.0 + np.asarray(state) * self.period_length
        return loading[np.newaxis, :, :] * scale[:, :, np.newaxis]
