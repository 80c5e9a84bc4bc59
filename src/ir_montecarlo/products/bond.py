"""
Zero-coupon bond.

[T1] V(t) = N(t) E_t[1 / N(T)]
"""

from dataclasses import dataclass

from ir_montecarlo.products.base import Product, discounted_cash_flow
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable


@dataclass(frozen=True)
class Bond(Product):
    """
    Unit zero-coupon bond.

    Attributes
    ----------
    maturity : float
        Payment date (must lie on the simulation grid or within it)

    Examples
    --------
    >>> Bond(5.0).price(simulation)
    0.7812...
    """

    maturity: float

    def __post_init__(self) -> None:
        if self.maturity < 0:
            raise ValueError(f"CRITICAL: maturity must be >= 0, got {self.maturity}")

    def value(self, evaluation_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        unit = RandomVariable.constant(1.0, simulation.n_paths)
        return discounted_cash_flow(simulation, evaluation_time, self.maturity, unit)
