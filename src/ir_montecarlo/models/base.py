"""
Capability set shared by every term-structure model.

A model describes one step of its state dynamics in drift/loading form,
d X = μ(t, X) dt + l(t, X) dW, plus the numeraire and the observables
(forward rates, discount bonds) derived from a state. The simulation cache
owns the evolution; models hold no path data.

Closed set of models (ModelType): LMM and HULL_WHITE, the latter in one of
three HullWhiteVariant simulation schemes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union, runtime_checkable

import numpy as np

from ir_montecarlo.errors import InvalidConfigurationError
from ir_montecarlo.simulation.covariance import StateSpace
from ir_montecarlo.simulation.grids import TenorGrid, TimeGrid


class ModelType(Enum):
    """Supported term-structure models."""

    LMM = "lmm"
    HULL_WHITE = "hull_white"


class Measure(Enum):
    """Pricing measure of the LMM (determines drift and numeraire)."""

    SPOT = "spot"
    TERMINAL = "terminal"


class HullWhiteVariant(Enum):
    """
    Simulation scheme of the Hull-White model.

    EXACT: state [x, ∫x], exact Gaussian transition, two factors
    DIRECT_SIMULATION: state [r, ln N], Euler on the short rate
    SHIFT_EXTENSION: state [x, φ, ln N], exact OU plus deterministic shift
    """

    EXACT = "exact"
    DIRECT_SIMULATION = "direct_simulation"
    SHIFT_EXTENSION = "shift_extension"


@dataclass(frozen=True)
class ForwardRate:
    """Simple-compounded forward rate for the period [start, end]."""

    start: float
    end: float

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidConfigurationError(
                f"CRITICAL: forward end ({self.end}) must be after start ({self.start})"
            )


@dataclass(frozen=True)
class DiscountBond:
    """Zero-coupon bond paying 1 at maturity."""

    maturity: float


Observable = Union[ForwardRate, DiscountBond]


@runtime_checkable
class TermStructureModel(Protocol):
    """
    Protocol implemented by LIBORMarketModel and HullWhiteModel.

    All array arguments and results are vectorized over paths: a state has
    shape (n_paths, n_components).
    """

    time_grid: TimeGrid
    tenor_grid: TenorGrid
    n_components: int
    n_factors: int
    state_space: StateSpace

    def initial_state(self) -> np.ndarray:
        """State at the first grid time, shape (n_components,)."""
        ...

    def drift(self, time_index: int, state: np.ndarray) -> np.ndarray:
        """Drift in state space, shape (n_paths, n_components)."""
        ...

    def factor_loading(self, time_index: int, state: np.ndarray) -> np.ndarray:
        """Factor loadings in state space, shape (n_paths, n_components, n_factors)."""
        ...

    def numeraire(self, time_index: int, state: np.ndarray) -> np.ndarray:
        """Numeraire at time_index, shape (n_paths,)."""
        ...

    def state_to_observable(
        self,
        time_index: int,
        state: np.ndarray,
        target: Observable,
    ) -> np.ndarray:
        """Forward rate or discount bond seen at time_index, shape (n_paths,)."""
        ...


def broadcast_loading(loading: np.ndarray, n_paths: int) -> np.ndarray:
    """Broadcast a state-independent (n_components, n_factors) loading over paths."""
    if loading.ndim == 3:
        return loading
    return np.broadcast_to(loading, (n_paths,) + loading.shape)
