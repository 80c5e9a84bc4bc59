"""
ir-montecarlo: Monte Carlo simulation of the LIBOR market model and the
Hull-White short-rate model, with bond, swap, caplet, European and
Bermudan swaption valuation.

Quick Start
-----------
>>> from ir_montecarlo import ModelConfig, YieldCurve, create_simulation, Bond
>>> curve = YieldCurve.from_forwards(0.5, [0.05] * 40)
>>> simulation = create_simulation(ModelConfig(model_type="lmm"), curve)
>>> Bond(10.0).price(simulation)

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Configuration
# =============================================================================
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

# =============================================================================
# Market Inputs
# =============================================================================
from ir_montecarlo.curves.schedule import Schedule
from ir_montecarlo.curves.yield_curve import DiscountCurveProvider, YieldCurve

# =============================================================================
# Simulation
# =============================================================================
from ir_montecarlo.simulation import (
    BrownianMotion,
    CovarianceFromVolatilityAndCorrelation,
    ExponentialDecayCorrelation,
    ExponentialVolatility,
    HullWhiteLocalVolatility,
    RandomVariable,
    StateSpace,
    TenorGrid,
    TimeGrid,
    VolatilityFromMatrix,
)
from ir_montecarlo.simulation.cache import MonteCarloSimulation

# =============================================================================
# Models
# =============================================================================
from ir_montecarlo.models import (
    DiscountBond,
    ForwardRate,
    HullWhiteModel,
    HullWhiteVariant,
    LIBORMarketModel,
    Measure,
    ShortRateVolatility,
)
from ir_montecarlo.models.factory import create_model, create_simulation

# =============================================================================
# Products
# =============================================================================
from ir_montecarlo.products import (
    BermudanSwaption,
    Bond,
    Caplet,
    CappedFlooredIndex,
    ConstantMaturitySwapRate,
    Index,
    LaggedIndex,
    LIBORIndex,
    LinearCombinationIndex,
    NumeraireOption,
    Swap,
    SwapAnnuity,
    SwapLeg,
    Swaption,
    valuation_summary,
    value_products,
)

# =============================================================================
# Analytic Benchmarks
# =============================================================================
from ir_montecarlo.analytic import (
    bachelier_implied_volatility,
    bachelier_option_value,
    black_formula,
    par_swap_rate,
    swap_annuity,
)

# =============================================================================
# Errors
# =============================================================================
from ir_montecarlo.errors import (
    InsufficientSamplesError,
    InvalidConfigurationError,
    NumericalInstabilityError,
    TermStructureError,
    UnsupportedTenorError,
)

__all__ = [
    "__version__",
    # Configuration
    "SETTINGS",
    "Settings",
    "ModelConfig",
    "SimulationConfig",
    "LMMConfig",
    "HullWhiteConfig",
    "ValuationConfig",
    "DiagnosticsConfig",
    # Market inputs
    "DiscountCurveProvider",
    "YieldCurve",
    "Schedule",
    # Simulation
    "TimeGrid",
    "TenorGrid",
    "BrownianMotion",
    "RandomVariable",
    "StateSpace",
    "VolatilityFromMatrix",
    "ExponentialVolatility",
    "ExponentialDecayCorrelation",
    "CovarianceFromVolatilityAndCorrelation",
    "HullWhiteLocalVolatility",
    "MonteCarloSimulation",
    # Models
    "LIBORMarketModel",
    "HullWhiteModel",
    "HullWhiteVariant",
    "ShortRateVolatility",
    "Measure",
    "ForwardRate",
    "DiscountBond",
    "create_model",
    "create_simulation",
    # Products
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
    "NumeraireOption",
    "value_products",
    "valuation_summary",
    # Analytic
    "black_formula",
    "bachelier_option_value",
    "bachelier_implied_volatility",
    "swap_annuity",
    "par_swap_rate",
    # Errors
    "TermStructureError",
    "InvalidConfigurationError",
    "UnsupportedTenorError",
    "NumericalInstabilityError",
    "InsufficientSamplesError",
]
