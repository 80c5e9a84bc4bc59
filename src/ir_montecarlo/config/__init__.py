"""
Configuration: frozen settings and centralized tolerances.
"""

from ir_montecarlo.config.settings import (
    SETTINGS,
    DiagnosticsConfig,
    HullWhiteConfig,
    LMMConfig,
    ModelConfig,
    Settings,
    SimulationConfig,
    ValuationConfig,
)
from ir_montecarlo.config.tolerances import TOLERANCE_REGISTRY, get_tolerance, mc_tolerance

__all__ = [
    "SETTINGS",
    "Settings",
    "ModelConfig",
    "SimulationConfig",
    "LMMConfig",
    "HullWhiteConfig",
    "ValuationConfig",
    "DiagnosticsConfig",
    "TOLERANCE_REGISTRY",
    "get_tolerance",
    "mc_tolerance",
]
