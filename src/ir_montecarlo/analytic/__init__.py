"""
Closed-form benchmarks used to cross-check simulated values.
"""

from ir_montecarlo.analytic.formulas import (
    bachelier_implied_volatility,
    bachelier_option_value,
    black_formula,
    black_model_caplet_value,
)
from ir_montecarlo.analytic.swap_annuity import par_swap_rate, swap_annuity

__all__ = [
    "black_formula",
    "black_model_caplet_value",
    "bachelier_option_value",
    "bachelier_implied_volatility",
    "swap_annuity",
    "par_swap_rate",
]
