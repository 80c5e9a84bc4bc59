"""
Centralized tolerance framework for term-structure Monte Carlo.

All tolerances are derived from precision requirements, not ad hoc tuning.

Tolerance Tiers:
    Tier 1 (Analytical): Machine-precision achievable, deterministic results
    Tier 2 (Grid): Time/tenor matching on floating-point grids
    Tier 3 (Stochastic): CLT-derived, Monte Carlo vs closed form
    Tier 4 (Cross-Model): Hull-White vs equivalent LMM parameterization

References:
    [T1] Higham (2002) "Accuracy and Stability of Numerical Algorithms"
    [T1] Glasserman (2003) Ch. 3-4 - Monte Carlo error bounds
    [T1] Brigo & Mercurio (2006) Ch. 3, 6 - Hull-White and LMM
"""

import numpy as np
from typing import Final

# =============================================================================
# Tier 1: Analytical Tolerances (Deterministic)
# =============================================================================

#: Deterministic identities (zero-volatility simulation reproduces the curve)
ANALYTICAL_TOLERANCE: Final[float] = 1e-10

#: Implied volatility root finding (brentq xtol)
IMPLIED_VOL_TOLERANCE: Final[float] = 1e-12

#: Most negative eigenvalue accepted by the covariance PSD diagnostic
PSD_DIAGNOSTIC_TOLERANCE: Final[float] = 1e-12


# =============================================================================
# Tier 2: Grid Tolerances
# =============================================================================

#: Two times closer than this are the same grid point (0.5y steps accumulate
#: ~1e-15 error over 40 steps)
TIME_MATCH_TOLERANCE: Final[float] = 1e-10


# =============================================================================
# Tier 3: Stochastic Tolerances (CLT-Derived)
# =============================================================================


def mc_tolerance(n_paths: int, sigma: float = 0.05, confidence: float = 3.0) -> float:
    """
    Calculate CLT-derived Monte Carlo tolerance.

    [T1] Standard error of MC estimate is σ/√N.
    3σ gives 99.7% confidence interval.

    Parameters
    ----------
    n_paths : int
        Number of Monte Carlo paths
    sigma : float
        Estimated path-wise standard deviation of the discounted payoff
        (default 0.05, typical for a unit-notional 10y zero bond)
    confidence : float
        Number of standard deviations (default 3 for 99.7% CI)

    Returns
    -------
    float
        Tolerance for MC vs analytical comparison

    Examples
    --------
    >>> mc_tolerance(20_000)
    0.00106...
    """
    return confidence * sigma / np.sqrt(n_paths)


#: Bond price vs curve discount factor (20k paths)
BOND_DEVIATION_TOLERANCE: Final[float] = 5e-3

#: Swap struck at par vs zero
PAR_SWAP_TOLERANCE: Final[float] = 1.5e-3


# =============================================================================
# Tier 4: Cross-Model Tolerances (Hull-White vs LMM)
# =============================================================================

#: Caplet Bachelier implied volatility, HW vs LMM and HW vs analytic
CAPLET_IMPLIED_VOL_TOLERANCE: Final[float] = 1e-3

#: European and Bermudan swaption values, HW vs LMM
SWAPTION_DEVIATION_TOLERANCE: Final[float] = 8e-3


# =============================================================================
# Tolerance Registry (For Dynamic Access)
# =============================================================================

TOLERANCE_REGISTRY: dict[str, float] = {
    # Tier 1: Analytical
    "analytical": ANALYTICAL_TOLERANCE,
    "implied_vol": IMPLIED_VOL_TOLERANCE,
    "psd_diagnostic": PSD_DIAGNOSTIC_TOLERANCE,
    # Tier 2: Grid
    "time_match": TIME_MATCH_TOLERANCE,
    # Tier 3: Stochastic
    "bond_deviation": BOND_DEVIATION_TOLERANCE,
    "par_swap": PAR_SWAP_TOLERANCE,
    # Tier 4: Cross-Model
    "caplet_implied_vol": CAPLET_IMPLIED_VOL_TOLERANCE,
    "swaption_deviation": SWAPTION_DEVIATION_TOLERANCE,
}


def get_tolerance(name: str) -> float:
    """
    Get tolerance by name from registry.

    Parameters
    ----------
    name : str
        Tolerance name (see TOLERANCE_REGISTRY keys)

    Returns
    -------
    float
        Tolerance value

    Raises
    ------
    KeyError
        If tolerance name not found
    """
    if name not in TOLERANCE_REGISTRY:
        available = ", ".join(sorted(TOLERANCE_REGISTRY.keys()))
        raise KeyError(f"Unknown tolerance '{name}'. Available: {available}")
    return TOLERANCE_REGISTRY[name]
