"""
Option on the numeraire (money-market account under the spot measure).

[T1] Put payoff at T: max(K - N(T)/N(0), 0)
"""

from dataclasses import dataclass

from ir_montecarlo.products.base import Product, discounted_cash_flow
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable


@dataclass(frozen=True)
class NumeraireOption(Product):
    """
    European option on the growth of the numeraire since time 0.

    Attributes
    ----------
    maturity : float
        Option maturity T (payment date)
    strike : float
        Strike on N(T)/N(0)
    is_put : bool, default True

    Examples
    --------
    >>> NumeraireOption(0.5, 1.025).price(simulation) >= 0
    True
    """

    maturity: float
    strike: float
    is_put: bool = True

    def value(self, evaluation_time: float, simulation: MonteCarloSimulation) -> RandomVariable:
        growth = simulation.numeraire(self.maturity) / simulation.numeraire_at(0)
        if self.is_put:
            payoff = (self.strike - growth).floor(0.0)
        else:
            payoff = (growth - self.strike).floor(0.0)
        return discounted_cash_flow(simulation, evaluation_time, self.maturity, payoff)
