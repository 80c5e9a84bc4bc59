"""
Rate indices fixed on a simulation.

An index maps a fixing time t to the path-wise rate observed at t. Legs and
swaps take an index to pay something other than the forward of their own
period:

- LIBORIndex: forward rate of [t + offset, t + offset + δ] seen at t + offset
- ConstantMaturitySwapRate: par rate of a swap of fixed tenor starting at t
- CappedFlooredIndex, LaggedIndex, LinearCombinationIndex: wrappers

[T1] CMS rate: S(t) = (1 - P(t, t+m)) / Σ_k δ P(t, t + kδ)

Example (LIBOR in arrears minus LIBOR):
>>> libor = LIBORIndex(0.0, 0.5)
>>> index = LinearCombinationIndex((-1.0, 1.0), (libor, LaggedIndex(libor, 0.5)))
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable


class Index(ABC):
    """
    Abstract base class for rate indices.

    Subclasses must implement:
    - value(): path-wise fixing at a time
    """

    @abstractmethod
    def value(self, fixing_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        """
        Path-wise index fixing at fixing_time.

        Parameters
        ----------
        fixing_time : float
            Time at which the index is fixed
        simulation : MonteCarloSimulation

        Returns
        -------
        RandomVariable
            Rate (not discounted)
        """
        pass


@dataclass(frozen=True)
class LIBORIndex(Index):
    """
    Forward rate of a period starting period_start_offset after the fixing.

    Attributes
    ----------
    period_start_offset : float
        Offset of the period start (and the observation) from the fixing time
    period_length : float
        Length δ of the rate period
    """

    period_start_offset: float = 0.0
    period_length: float = 0.5

    def __post_init__(self) -> None:
        if self.period_length <= 0:
            raise ValueError(f"CRITICAL: period_length must be > 0, got {self.period_length}")

    def value(self, fixing_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        start = fixing_time + self.period_start_offset
        return simulation.forward_rate(start, start, start + self.period_length)


@dataclass(frozen=True)
class ConstantMaturitySwapRate(Index):
    """
    Par rate of a swap of fixed tenor starting at the fixing time.

    Attributes
    ----------
    tenor : float
        Swap tenor m (a multiple of period_length)
    period_length : float
        Fixed leg period δ

    Examples
    --------
    >>> cms = CappedFlooredIndex(ConstantMaturitySwapRate(10.0, 0.5), cap=0.1, floor=0.04)
    """

    tenor: float
    period_length: float = 0.5

    def __post_init__(self) -> None:
        if self.period_length <= 0:
            raise ValueError(f"CRITICAL: period_length must be > 0, got {self.period_length}")
        n_periods = round(self.tenor / self.period_length)
        if n_periods < 1 or abs(n_periods * self.period_length - self.tenor) > TIME_MATCH_TOLERANCE:
            raise ValueError(
                f"CRITICAL: tenor {self.tenor} is not a positive multiple of "
                f"period_length {self.period_length}"
            )

    @property
    def n_periods(self) -> int:
        return round(self.tenor / self.period_length)

    def value(self, fixing_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        annuity = RandomVariable.constant(0.0, simulation.n_paths)
        bond = annuity
        for k in range(1, self.n_periods + 1):
            bond = simulation.discount_bond(fixing_time, fixing_time + k * self.period_length)
            annuity = annuity + bond * self.period_length
        return (1.0 - bond) / annuity


@dataclass(frozen=True)
class CappedFlooredIndex(Index):
    """
    Index clipped to [floor, cap]; None leaves a side open.

    [T1] min(max(I, floor), cap)
    """

    index: Index
    cap: Optional[float] = None
    floor: Optional[float] = None

    def __post_init__(self) -> None:
        if self.cap is not None and self.floor is not None and self.floor > self.cap:
            raise ValueError(f"CRITICAL: floor {self.floor} above cap {self.cap}")

    def value(self, fixing_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        value = self.index.value(fixing_time, simulation)
        if self.floor is not None:
            value = value.floor(self.floor)
        if self.cap is not None:
            value = value.cap(self.cap)
        return value


@dataclass(frozen=True)
class LaggedIndex(Index):
    """Index fixed fixing_offset after the requested fixing time."""

    index: Index
    fixing_offset: float

    def value(self, fixing_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        return self.index.value(fixing_time + self.fixing_offset, simulation)


@dataclass(frozen=True)
class LinearCombinationIndex(Index):
    """
    Weighted sum of indices fixed at the same time.

    Attributes
    ----------
    weights : sequence of float
    indices : sequence of Index
    """

    weights: Sequence[float]
    indices: Sequence[Index]

    def __post_init__(self) -> None:
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        object.__setattr__(self, "indices", tuple(self.indices))
        if len(self.weights) != len(self.indices):
            raise ValueError(
                f"CRITICAL: {len(self.weights)} weights for {len(self.indices)} indices"
            )
        if not self.indices:
            raise ValueError("CRITICAL: at least one index is required")

    def value(self, fixing_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        value = RandomVariable.constant(0.0, simulation.n_paths)
        for weight, index in zip(self.weights, self.indices):
            value = value + index.value(fixing_time, simulation) * weight
        return value
