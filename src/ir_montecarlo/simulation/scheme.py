"""
Time-stepping scheme advancing every path by one grid step.

[T1] Euler-Maruyama in the model's state space:
     Y_{k+1} = Y_k + μ(t_k, X_k) Δt_k + l(t_k, X_k) ΔW_k,  Y = f(X)
     with f = identity (NORMAL) or f = log (LOGNORMAL)

No flooring or clamping is applied; non-finite values propagate and are
detected by the simulation cache.

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 6
"""

from enum import Enum
from typing import Union

import numpy as np

from ir_montecarlo.errors import InvalidConfigurationError
from ir_montecarlo.simulation.covariance import StateSpace


class Scheme(Enum):
    """Supported evolution schemes."""

    EULER = "euler"


def to_state_space(values: np.ndarray, state_space: StateSpace) -> np.ndarray:
    """Transform model values into the space the scheme evolves."""
    if state_space is StateSpace.LOGNORMAL:
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.log(values)
    return values


def from_state_space(values: np.ndarray, state_space: StateSpace) -> np.ndarray:
    """Inverse of to_state_space."""
    if state_space is StateSpace.LOGNORMAL:
        return np.exp(values)
    return values


class EulerScheme:
    """
    Euler scheme over a model implementing TermStructureModel.

    Parameters
    ----------
    scheme : Scheme or str, default Scheme.EULER
        Scheme identifier; anything other than EULER is rejected

    Examples
    --------
    >>> scheme = EulerScheme()
    >>> next_state = scheme.step(model, 0, state, brownian.increments(0))
    """

    def __init__(self, scheme: Union[Scheme, str] = Scheme.EULER):
        try:
            self.scheme = Scheme(scheme)
        except ValueError as e:
            raise InvalidConfigurationError(
                f"CRITICAL: unsupported scheme {scheme!r}; supported: "
                f"{[s.value for s in Scheme]}"
            ) from e

    def step(
        self,
        model,
        time_index: int,
        state: np.ndarray,
        increments: np.ndarray,
    ) -> np.ndarray:
        """
        Advance all paths from time_index to time_index + 1.

        Parameters
        ----------
        model : TermStructureModel
        time_index : int
            Index of the current grid time
        state : np.ndarray
            Current state, shape (n_paths, n_components)
        increments : np.ndarray
            Brownian increments, shape (n_paths, n_factors)

        Returns
        -------
        np.ndarray
            Next state, shape (n_paths, n_components)
        """
        dt = model.time_grid.time_step(time_index)
        drift = model.drift(time_index, state)
        loading = model.factor_loading(time_index, state)
        diffusion = np.einsum("pif,pf->pi", loading, increments)

        state_space = model.state_space
        transformed = to_state_space(state, state_space)
        return from_state_space(transformed + drift * dt + diffusion, state_space)

    def __repr__(self) -> str:
        return f"EulerScheme(scheme={self.scheme.value})"
