"""
Market inputs consumed by the engine: the initial curve and schedules.
"""

from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.curves.yield_curve import (
    DiscountCurveProvider,
    InterpolationMethod,
    YieldCurve,
)

__all__ = [
    "DiscountCurveProvider",
    "InterpolationMethod",
    "YieldCurve",
    "Schedule",
]
