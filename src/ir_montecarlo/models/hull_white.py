"""
Hull-White short-rate model.

[T1] r(t) = x(t) + φ(t),  dx = -a x dt + σ(t) dW,  x(0) = 0
     φ is a deterministic shift fitted to the initial curve.

Three simulation schemes (HullWhiteVariant):

- EXACT: state [x, I = ∫x], two factors, exact Gaussian transition
  [T1] x_{k+1} = e x_k + ε_x,  I_{k+1} = I_k + (1-e)/a x_k + ε_I,  e = e^{-aΔ}
  [T1] Var ε_x = σ²(1 - e²)/(2a)
  [T1] Var ε_I = σ²/a² [Δ - 2(1-e)/a + (1-e²)/(2a)]
  [T1] Cov(ε_x, ε_I) = σ²/(2a²) (1-e)²
  [T1] N(t) = exp(I(t) + ½ Var I(t)) / P(0,t)
- DIRECT_SIMULATION: state [r, ln N], one factor, Euler on r with the
  discrete shift chosen so that E[1/N(t_k)] = P(0, t_k) on the grid
- SHIFT_EXTENSION: state [x, φ, ln N], one factor, exact OU step for x
  and the shift carried as a deterministic component

Bond reconstruction (all variants):
[T1] P(t,T) = P(0,T)/P(0,t) exp(-B(t,T) x - ½ B² y(t) - B ψ(t))
     B(t,T) = (1 - e^{-a(T-t)})/a,  y = Var x(t),  ψ = Cov(x(t), I(t))

See: Brigo & Mercurio (2006) "Interest Rate Models", Ch. 3.3
See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 3.3
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from ir_montecarlo.analytic.formulas import black_formula
from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.curves.yield_curve import DiscountCurveProvider
from ir_montecarlo.errors import InvalidConfigurationError, UnsupportedTenorError
from ir_montecarlo.models.base import (
    DiscountBond,
    ForwardRate,
    HullWhiteVariant,
    Observable,
    broadcast_loading,
)
from ir_montecarlo.simulation.covariance import StateSpace
from ir_montecarlo.simulation.grids import TenorGrid, TimeGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ShortRateVolatility:
    """
    Piecewise-constant short-rate volatility with constant mean reversion.

    Attributes
    ----------
    times : ndarray
        Breakpoints; σ(t) = volatilities[i] for times[i] <= t < times[i+1]
        (volatilities[0] before times[0])
    volatilities : ndarray
        Absolute short-rate volatilities (>= 0)
    mean_reversion : float
        Mean-reversion speed a (> 0)

    Examples
    --------
    >>> vol = ShortRateVolatility.constant(0.02, 0.1)
    >>> vol.volatility(3.0)
    0.02
    """

    times: np.ndarray
    volatilities: np.ndarray
    mean_reversion: float

    def __post_init__(self) -> None:
        """Validate and freeze."""
        times = np.array(self.times, dtype=float).reshape(-1)
        volatilities = np.array(self.volatilities, dtype=float).reshape(-1)
        if times.size == 0 or times.size != volatilities.size:
            raise InvalidConfigurationError(
                f"CRITICAL: times ({times.size}) and volatilities ({volatilities.size}) "
                "must be non-empty and of equal length"
            )
        if np.any(np.diff(times) <= 0):
            raise InvalidConfigurationError("CRITICAL: volatility times must be strictly increasing")
        if np.any(volatilities < 0):
            raise InvalidConfigurationError("CRITICAL: volatilities must be >= 0")
        if self.mean_reversion <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: mean_reversion must be > 0, got {self.mean_reversion}"
            )
        times.setflags(write=False)
        volatilities.setflags(write=False)
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "volatilities", volatilities)

    @classmethod
    def constant(cls, volatility: float, mean_reversion: float) -> "ShortRateVolatility":
        """Time-homogeneous σ and a."""
        return cls(np.array([0.0]), np.array([volatility]), mean_reversion)

    def volatility(self, t: float) -> float:
        """σ(t)."""
        index = int(np.searchsorted(self.times, t + TIME_MATCH_TOLERANCE, side="right")) - 1
        return float(self.volatilities[max(index, 0)])

    def _integrate(self, t: float, rate: float) -> float:
        """∫_0^t σ(s)² e^{-rate (t-s)} ds for piecewise-constant σ."""
        if t <= 0:
            return 0.0
        inner = self.times[(self.times > 0) & (self.times < t)]
        bounds = np.concatenate([[0.0], inner, [t]])
        total = 0.0
        for lower, upper in zip(bounds[:-1], bounds[1:]):
            sigma = self.volatility(lower)
            total += sigma**2 * (np.exp(-rate * (t - upper)) - np.exp(-rate * (t - lower))) / rate
        return total

    def short_rate_variance(self, t: float) -> float:
        """[T1] y(t) = Var x(t) = ∫_0^t σ(s)² e^{-2a(t-s)} ds."""
        return self._integrate(t, 2.0 * self.mean_reversion)


class HullWhiteModel:
    """
    Hull-White model on a simulation time grid.

    Parameters
    ----------
    time_grid : TimeGrid
        Simulation times
    tenor_grid : TenorGrid
        Period grid bounding the observables (last date = longest maturity)
    curve : DiscountCurveProvider
        Initial discount curve
    volatility : ShortRateVolatility
        σ(t) and a
    variant : HullWhiteVariant or str, default EXACT

    Notes
    -----
    σ is taken constant over each simulation step at its value at the step
    start; volatility breakpoints should lie on the time grid.

    Examples
    --------
    >>> model = HullWhiteModel(time_grid, tenor_grid, curve, ShortRateVolatility.constant(0.02, 0.1))
    >>> model.n_components, model.n_factors
    (2, 2)
    """

    def __init__(
        self,
        time_grid: TimeGrid,
        tenor_grid: TenorGrid,
        curve: DiscountCurveProvider,
        volatility: ShortRateVolatility,
        variant: Union[HullWhiteVariant, str] = HullWhiteVariant.EXACT,
    ):
        if time_grid.n_times < 2:
            raise InvalidConfigurationError(
                f"CRITICAL: time grid must have at least 2 points, got {time_grid.n_times}"
            )
        self.time_grid = time_grid
        self.tenor_grid = tenor_grid
        self.curve = curve
        self.volatility = volatility
        self.variant = HullWhiteVariant(variant)
        self.mean_reversion = volatility.mean_reversion
        self.state_space = StateSpace.NORMAL

        if self.variant is HullWhiteVariant.EXACT:
            self.n_components, self.n_factors = 2, 2
        elif self.variant is HullWhiteVariant.DIRECT_SIMULATION:
            self.n_components, self.n_factors = 2, 1
        else:
            self.n_components, self.n_factors = 3, 1

        a = self.mean_reversion
        self._dt = np.diff(time_grid.times)
        self._sigma = np.array([volatility.volatility(t) for t in time_grid.times[:-1]])
        self._decay = np.exp(-a * self._dt)
        self._discount_factors = np.array([curve.discount_factor(t) for t in time_grid.times])

        self._step_covariance = self._exact_step_covariance()
        self._state_covariance = self._propagate_covariance()
        self._exact_loading = np.array([self._cholesky(q) for q in self._step_covariance])

        self._shift: Optional[np.ndarray] = None
        if self.variant is HullWhiteVariant.DIRECT_SIMULATION:
            self._shift = self._fit_shift(1.0 - a * self._dt, self._sigma * np.sqrt(self._dt))
        elif self.variant is HullWhiteVariant.SHIFT_EXTENSION:
            self._shift = self._fit_shift(self._decay, np.sqrt(self._step_covariance[:, 0, 0]))

        logger.debug(
            f"Hull-White {self.variant.value}: a={a}, {time_grid.n_steps} steps, "
            f"terminal Var I={self._state_covariance[-1, 1, 1]:.6g}"
        )

    # -------------------------------------------------------------------------
    # Precomputation
    # -------------------------------------------------------------------------

    def _exact_step_covariance(self) -> np.ndarray:
        """Covariance of the [x, I] innovation over each step, shape (n_steps, 2, 2)."""
        a = self.mean_reversion
        dt, sigma2, e = self._dt, self._sigma**2, self._decay
        e2 = e**2
        var_x = sigma2 * (1.0 - e2) / (2.0 * a)
        var_i = sigma2 / a**2 * (dt - 2.0 * (1.0 - e) / a + (1.0 - e2) / (2.0 * a))
        cov = sigma2 / (2.0 * a**2) * (1.0 - e) ** 2
        q = np.empty((dt.size, 2, 2))
        q[:, 0, 0] = var_x
        q[:, 1, 1] = np.maximum(var_i, 0.0)
        q[:, 0, 1] = q[:, 1, 0] = cov
        return q

    def _transition(self, step: int) -> np.ndarray:
        e = self._decay[step]
        return np.array([[e, 0.0], [(1.0 - e) / self.mean_reversion, 1.0]])

    def _propagate_covariance(self) -> np.ndarray:
        """[T1] C_{k+1} = M C_k M^T + Q_k, C_0 = 0; C = Cov([x, I])."""
        covariance = np.zeros((self.time_grid.n_times, 2, 2))
        for step in range(self.time_grid.n_steps):
            m = self._transition(step)
            covariance[step + 1] = m @ covariance[step] @ m.T + self._step_covariance[step]
        return covariance

    @staticmethod
    def _cholesky(q: np.ndarray) -> np.ndarray:
        """Lower Cholesky factor of a 2x2 PSD matrix (tolerates singular q)."""
        l00 = np.sqrt(max(q[0, 0], 0.0))
        l10 = q[1, 0] / l00 if l00 > 0 else 0.0
        l11 = np.sqrt(max(q[1, 1] - l10**2, 0.0))
        return np.array([[l00, 0.0], [l10, l11]])

    def _fit_shift(self, decay: np.ndarray, shock: np.ndarray) -> np.ndarray:
        """
        Discrete shift φ_k such that E[1/N(t_k)] = P(0, t_k) on the grid.

        x_{k+1} = decay_k x_k + shock_k Z_k and ln N_k = ln N_0 + Σ_{j<k} (x_j + φ_j) Δ_j,
        so Σ_{j<k} φ_j Δ_j = ln P(0,t_0) - ln P(0,t_k) + ½ V_k with
        V_k = Var(Σ_{j<k} x_j Δ_j).
        """
        n_steps = self.time_grid.n_steps
        integral_variance = np.zeros(n_steps + 1)
        x_coefficients = np.zeros(n_steps)
        integral_coefficients = np.zeros(n_steps)
        for step in range(n_steps):
            integral_coefficients = integral_coefficients + self._dt[step] * x_coefficients
            integral_variance[step + 1] = float(np.sum(integral_coefficients**2))
            x_coefficients = decay[step] * x_coefficients
            x_coefficients[step] += shock[step]

        log_df = np.log(self._discount_factors)
        shift = np.empty(n_steps + 1)
        shift[:-1] = (-np.diff(log_df) + 0.5 * np.diff(integral_variance)) / self._dt
        # Last grid point has no following step to fit
        shift[-1] = shift[-2]
        shift.setflags(write=False)
        return shift

    # -------------------------------------------------------------------------
    # Dynamics
    # -------------------------------------------------------------------------

    def initial_state(self) -> np.ndarray:
        log_numeraire = -np.log(self._discount_factors[0])
        if self.variant is HullWhiteVariant.EXACT:
            return np.array([0.0, 0.0])
        if self.variant is HullWhiteVariant.DIRECT_SIMULATION:
            return np.array([self._shift[0], log_numeraire])
        return np.array([0.0, self._shift[0], log_numeraire])

    def drift(self, time_index: int, state: np.ndarray) -> np.ndarray:
        state = np.asarray(state)
        dt = self._dt[time_index]
        if self.variant is HullWhiteVariant.EXACT:
            m = self._transition(time_index) - np.eye(2)
            return state @ m.T / dt

        drift = np.zeros_like(state, dtype=float)

        shift_change = (self._shift[time_index + 1] - self._shift[time_index]) / dt
        if self.variant is HullWhiteVariant.DIRECT_SIMULATION:
            r = state[:, 0]
            drift[:, 0] = shift_change - self.mean_reversion * (r - self._shift[time_index])
            drift[:, 1] = r
            return drift

        x = state[:, 0]
        drift[:, 0] = (self._decay[time_index] - 1.0) * x / dt
        drift[:, 1] = shift_change
        drift[:, 2] = x + state[:, 1]
        return drift

    def factor_loading(self, time_index: int, state: np.ndarray) -> np.ndarray:
        n_paths = np.asarray(state).shape[0]
        sqrt_dt = np.sqrt(self._dt[time_index])

        if self.variant is HullWhiteVariant.EXACT:
            loading = self._exact_loading[time_index] / sqrt_dt
        elif self.variant is HullWhiteVariant.DIRECT_SIMULATION:
            loading = np.array([[self._sigma[time_index]], [0.0]])
        else:
            loading = np.array(
                [[np.sqrt(self._step_covariance[time_index, 0, 0]) / sqrt_dt], [0.0], [0.0]]
            )
        return broadcast_loading(loading, n_paths)

    def numeraire(self, time_index: int, state: np.ndarray) -> np.ndarray:
        state = np.asarray(state)
        if self.variant is HullWhiteVariant.EXACT:
            integral_variance = self._state_covariance[time_index, 1, 1]
            return np.exp(state[:, 1] + 0.5 * integral_variance) / self._discount_factors[time_index]
        return np.exp(state[:, -1])

    # -------------------------------------------------------------------------
    # Closed forms and observables
    # -------------------------------------------------------------------------

    def bond_coefficient(self, t: float, maturity: float) -> float:
        """[T1] B(t,T) = (1 - e^{-a(T-t)}) / a."""
        return (1.0 - np.exp(-self.mean_reversion * (maturity - t))) / self.mean_reversion

    def short_rate_deviation(self, time_index: int, state: np.ndarray) -> np.ndarray:
        """x(t_k) = r(t_k) - φ(t_k), shape (n_paths,)."""
        state = np.asarray(state)
        if self.variant is HullWhiteVariant.DIRECT_SIMULATION:
            return state[:, 0] - self._shift[time_index]
        return state[:, 0]

    def _discount_bond(self, time_index: int, state: np.ndarray, maturity: float) -> np.ndarray:
        t = self.time_grid.time(time_index)
        if maturity <= t + TIME_MATCH_TOLERANCE:
            return np.ones(np.asarray(state).shape[0])
        b = self.bond_coefficient(t, maturity)
        y = self._state_covariance[time_index, 0, 0]
        psi = self._state_covariance[time_index, 0, 1]
        ratio = self.curve.discount_factor(maturity) / self._discount_factors[time_index]
        x = self.short_rate_deviation(time_index, state)
        return ratio * np.exp(-b * x - 0.5 * b**2 * y - b * psi)

    def _check_date(self, date: float, t: float) -> None:
        if date < t - TIME_MATCH_TOLERANCE:
            raise UnsupportedTenorError(
                f"CRITICAL: date {date} before observation time {t}", tenor=date, time=t
            )
        if date > self.tenor_grid.last + TIME_MATCH_TOLERANCE:
            raise UnsupportedTenorError(
                f"CRITICAL: date {date} beyond the last tenor date {self.tenor_grid.last}",
                tenor=date,
                time=t,
            )

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
            If a date lies before the observation time or beyond the last
            tenor date
        """
        t = self.time_grid.time(time_index)
        if isinstance(target, DiscountBond):
            self._check_date(target.maturity, t)
            return self._discount_bond(time_index, state, target.maturity)
        if isinstance(target, ForwardRate):
            self._check_date(target.start, t)
            self._check_date(target.end, t)
            start_bond = self._discount_bond(time_index, state, target.start)
            end_bond = self._discount_bond(time_index, state, target.end)
            return (start_bond / end_bond - 1.0) / (target.end - target.start)
        raise TypeError(f"CRITICAL: unsupported observable {target!r}")

    def integrated_bond_squared_volatility(self, time: float, maturity: float) -> float:
        """
        Variance of ln P(time, maturity) seen from 0.

        [T1] ∫_0^t σ(s)² (B(s,T) - B(s,t))² ds = B(t,T)² y(t)
        """
        return self.bond_coefficient(time, maturity) ** 2 * self.volatility.short_rate_variance(time)

    def zero_bond_volatility(self, time: float, maturity: float) -> float:
        """Log-normal volatility of the forward bond P(time, maturity)."""
        if time <= 0:
            return 0.0
        return float(np.sqrt(self.integrated_bond_squared_volatility(time, maturity) / time))

    def analytic_caplet_value(
        self,
        maturity: float,
        period_length: float,
        strike: float,
        daycount_fraction: Optional[float] = None,
        is_floorlet: bool = False,
    ) -> float:
        """
        Closed-form caplet (floorlet) value as an option on 1/P(T, T+δ).

        [T1] δ (L - K)^+ = (1/P(T,T+δ) - (1 + δK))^+, and 1/P(T,T+δ) is
             log-normal under the T+δ forward measure with variance B² y(T)
        """
        daycount = period_length if daycount_fraction is None else daycount_fraction
        end = maturity + period_length
        bond_forward = self.curve.discount_factor(maturity) / self.curve.discount_factor(end)
        bond_strike = 1.0 + strike * period_length
        value = black_formula(
            bond_forward,
            self.zero_bond_volatility(maturity, end),
            maturity,
            bond_strike,
            payoff_unit=self.curve.discount_factor(end) * daycount / period_length,
            is_call=not is_floorlet,
        )
        return value

    def __repr__(self) -> str:
        return (
            f"HullWhiteModel(variant={self.variant.value}, "
            f"mean_reversion={self.mean_reversion}, n_times={self.time_grid.n_times})"
        )

