"""
Caplet and floorlet.

[T1] Caplet payoff: α (L(T, T+δ) - K)^+ paid at T+δ
[T1] Floorlet payoff: α (K - L(T, T+δ))^+ paid at T+δ
     α the daycount fraction, L fixed at T
"""

from dataclasses import dataclass
from typing import Optional

from ir_montecarlo.products.base import Product, discounted_cash_flow
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable


@dataclass(frozen=True)
class Caplet(Product):
    """
    Caplet (or floorlet) on the forward rate of [maturity, maturity + period_length].

    Attributes
    ----------
    maturity : float
        Fixing date T
    period_length : float
        Length δ of the rate period; payment at T + δ
    strike : float
        Strike rate K
    daycount_fraction : float, optional
        Accrual α of the payoff (default: period_length)
    is_floorlet : bool, default False
    """

    maturity: float
    period_length: float
    strike: float
    daycount_fraction: Optional[float] = None
    is_floorlet: bool = False

    def __post_init__(self) -> None:
        if self.period_length <= 0:
            raise ValueError(f"CRITICAL: period_length must be > 0, got {self.period_length}")
        if self.maturity < 0:
            raise ValueError(f"CRITICAL: maturity must be >= 0, got {self.maturity}")

    @property
    def payment_date(self) -> float:
        return self.maturity + self.period_length

    def value(self, evaluation_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        daycount = self.period_length if self.daycount_fraction is None else self.daycount_fraction
        forward = simulation.forward_rate(self.maturity, self.maturity, self.payment_date)
        if self.is_floorlet:
            payoff = (self.strike - forward).floor(0.0)
        else:
            payoff = (forward - self.strike).floor(0.0)
        return discounted_cash_flow(simulation, evaluation_time, self.payment_date, payoff * daycount)
