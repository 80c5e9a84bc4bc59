"""
Base class for all products valued on a simulation.

All products inherit from Product and implement value(); price() is the
Monte Carlo average of the value at evaluation time 0.

[T1] V(t) = N(t) E_t[Σ_{T_i > t} C_i / N(T_i)]

Cash flows paid at or before the evaluation time are excluded.
"""

from abc import ABC, abstractmethod

from ir_montecarlo.config.tolerances import TIME_MATCH_TOLERANCE
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable


def is_paid_after(payment_time: float, evaluation_time: float) -> bool:
    """Whether a cash flow at payment_time is paid strictly after evaluation_time."""
    return payment_time > evaluation_time + TIME_MATCH_TOLERANCE


def discounted_cash_flow(
    simulation: MonteCarloSimulation,
    evaluation_time: float,
    payment_time: float,
    cash_flow: RandomVariable,
) -> RandomVariable:
    """
    Value at evaluation_time of cash_flow paid at payment_time.

    [T1] C N(t) / N(T), zero if T <= t
    """
    if not is_paid_after(payment_time, evaluation_time):
        return RandomVariable.constant(0.0, simulation.n_paths)
    return cash_flow * simulation.numeraire(evaluation_time) / simulation.numeraire(payment_time)


class Product(ABC):
    """
    Abstract base class for simulated products.

    Subclasses must implement:
    - value(): path-wise value at an evaluation time
    """

    @abstractmethod
    def value(
        self,
        evaluation_time: float,
        simulation: MonteCarloSimulation,
    ) -> RandomVariable:
        """
        Path-wise value at evaluation_time in units of currency at that time.

        Parameters
        ----------
        evaluation_time : float
            Valuation time (cash flows at or before it are excluded)
        simulation : MonteCarloSimulation
            Built simulation (read-only)

        Returns
        -------
        RandomVariable
        """
        pass

    def price(self, simulation: MonteCarloSimulation, evaluation_time: float = 0.0) -> float:
        """Monte Carlo estimate of the value (average over paths)."""
        return self.value(evaluation_time, simulation).average()
