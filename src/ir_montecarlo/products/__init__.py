"""
Products valued on a Monte Carlo simulation.
"""

from ir_montecarlo.products.base import Product, discounted_cash_flow
from ir_montecarlo.products.bermudan import (
    BermudanResult,
    BermudanSwaption,
    Propagation,
    RegressionSample,
)
from ir_montecarlo.products.bond import Bond
from ir_montecarlo.products.caplet import Caplet
from ir_montecarlo.products.indices import (
    CappedFlooredIndex,
    ConstantMaturitySwapRate,
    Index,
    LaggedIndex,
    LIBORIndex,
    LinearCombinationIndex,
)
from ir_montecarlo.products.numeraire_option import NumeraireOption
from ir_montecarlo.products.portfolio import valuation_summary, value_products
from ir_montecarlo.products.swap import Swap, SwapAnnuity, SwapLeg
from ir_montecarlo.products.swaption import Swaption

__all__ = [
    "Product",
    "discounted_cash_flow",
    "Bond",
    "SwapLeg",
    "Swap",
    "SwapAnnuity",
    "Caplet",
    "Index",
    "LIBORIndex",
    "ConstantMaturitySwapRate",
    "CappedFlooredIndex",
    "LaggedIndex",
    "LinearCombinationIndex",
    "Swaption",
    "BermudanSwaption",
    "BermudanResult",
    "Propagation",
    "RegressionSample",
    "NumeraireOption",
    "value_products",
    "valuation_summary",
]
