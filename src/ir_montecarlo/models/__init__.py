"""
Term-structure models: LIBOR market model and Hull-White.
"""

from ir_montecarlo.models.base import (
    DiscountBond,
    ForwardRate,
    HullWhiteVariant,
    Measure,
    ModelType,
    TermStructureModel,
)
from ir_montecarlo.models.hull_white import HullWhiteModel, ShortRateVolatility
from ir_montecarlo.models.lmm import LIBORMarketModel

__all__ = [
    "TermStructureModel",
    "ModelType",
    "Measure",
    "HullWhiteVariant",
    "ForwardRate",
    "DiscountBond",
    "LIBORMarketModel",
    "HullWhiteModel",
    "ShortRateVolatility",
]
