"""
Frozen configuration settings for term-structure simulation.

All configuration is immutable (frozen dataclasses) to ensure reproducibility:
identical settings + identical seed reproduce bit-identical paths.
See: config/tolerances.py for the tolerance tiers used by validation.

Enumerated choices (model type, measure, state space, Hull-White variant,
regression options) are stored as their string values and converted to the
corresponding enums by models/factory.py.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from ir_montecarlo.config.tolerances import PSD_DIAGNOSTIC_TOLERANCE
from ir_montecarlo.errors import InvalidConfigurationError

#: Default seed of the reference test setup
DEFAULT_SEED = 3141


def _resolve_seed() -> int:
    """
    Resolve the default random seed with environment variable override.

    Priority:
    1. IRMC_SEED environment variable (if set)
    2. Default: 3141

    Returns
    -------
    int
        Seed used when none is given explicitly
    """
    env_seed = os.environ.get("IRMC_SEED")
    if env_seed:
        try:
            return int(env_seed)
        except ValueError as e:
            raise InvalidConfigurationError(
                f"CRITICAL: IRMC_SEED must be an integer, got {env_seed!r}"
            ) from e
    return DEFAULT_SEED


# =============================================================================
# Simulation Configuration
# =============================================================================

@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable Monte Carlo configuration.

    Attributes
    ----------
    n_paths : int
        Number of simulation paths
    seed : int
        Random seed. Override the default with IRMC_SEED environment variable.
    time_step : float
        Simulation time step in years
    horizon : float
        Last simulation time in years
    antithetic : bool
        Mirror the first half of the Brownian increments
    """

    n_paths: int = 20_000
    seed: int = None  # type: ignore[assignment]  # Set in __post_init__
    time_step: float = 0.5
    horizon: float = 20.0
    antithetic: bool = False

    def __post_init__(self) -> None:
        """Resolve seed and validate dimensions."""
        # Frozen dataclass workaround: use object.__setattr__
        if self.seed is None:
            object.__setattr__(self, "seed", _resolve_seed())
        if self.n_paths <= 0:
            raise InvalidConfigurationError(f"CRITICAL: n_paths must be > 0, got {self.n_paths}")
        if self.time_step <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: time_step must be > 0, got {self.time_step}"
            )
        if self.horizon < self.time_step:
            raise InvalidConfigurationError(
                f"CRITICAL: horizon ({self.horizon}) must cover at least one time step "
                f"({self.time_step})"
            )

    @property
    def n_steps(self) -> int:
        """Number of simulation time steps."""
        return int(round(self.horizon / self.time_step))


# =============================================================================
# Model Configuration
# =============================================================================

@dataclass(frozen=True)
class LMMConfig:
    """
    Immutable LIBOR market model configuration.

    Attributes
    ----------
    period_length : float
        Length of each forward-rate period (tenor grid spacing)
    n_factors : int
        Number of Brownian factors after dimension reduction
    correlation_decay : float
        Exponential correlation decay; no effect for a single factor
    measure : str
        "spot" or "terminal"
    state_space : str
        "normal" or "lognormal"
    hull_white_local_volatility : bool
        Scale factor loadings by (1 + L * period_length), which makes a
        normal LMM reproduce Hull-White dynamics
    volatility_parameters : tuple of float, optional
        (a, b, c, d) of the parametric volatility (a + b tau) exp(-c tau) + d.
        None uses the Hull-White equivalent volatility of HullWhiteConfig.
    """

    period_length: float = 0.5
    n_factors: int = 1
    correlation_decay: float = 0.0
    measure: str = "spot"
    state_space: str = "normal"
    hull_white_local_volatility: bool = True
    volatility_parameters: Optional[tuple[float, float, float, float]] = None

    def __post_init__(self) -> None:
        """Validate parameters."""
        if self.period_length <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: period_length must be > 0, got {self.period_length}"
            )
        if self.n_factors <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: n_factors must be > 0, got {self.n_factors}"
            )
        if self.correlation_decay < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: correlation_decay must be >= 0, got {self.correlation_decay}"
            )
        if self.measure not in ("spot", "terminal"):
            raise InvalidConfigurationError(
                f"CRITICAL: measure must be 'spot' or 'terminal', got {self.measure!r}"
            )
        if self.state_space not in ("normal", "lognormal"):
            raise InvalidConfigurationError(
                f"CRITICAL: state_space must be 'normal' or 'lognormal', got {self.state_space!r}"
            )
        if self.hull_white_local_volatility and self.state_space != "normal":
            raise InvalidConfigurationError(
                "CRITICAL: hull_white_local_volatility requires the normal state space"
            )
        if self.volatility_parameters is not None and len(self.volatility_parameters) != 4:
            raise InvalidConfigurationError(
                "CRITICAL: volatility_parameters must be (a, b, c, d)"
            )


@dataclass(frozen=True)
class HullWhiteConfig:
    """
    Immutable Hull-White configuration (constant coefficients).

    Attributes
    ----------
    volatility : float
        Short-rate volatility sigma (absolute, normal)
    mean_reversion : float
        Mean-reversion speed a
    variant : str
        "exact", "direct_simulation" or "shift_extension"
    """

    volatility: float = 0.02
    mean_reversion: float = 0.1
    variant: str = "exact"

    def __post_init__(self) -> None:
        """Validate parameters."""
        if self.volatility < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: volatility must be >= 0, got {self.volatility}"
            )
        if self.mean_reversion <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: mean_reversion must be > 0, got {self.mean_reversion}"
            )
        if self.variant not in ("exact", "direct_simulation", "shift_extension"):
            raise InvalidConfigurationError(
                f"CRITICAL: unknown Hull-White variant {self.variant!r}"
            )


@dataclass(frozen=True)
class ModelConfig:
    """
    The configuration surface of one simulation.

    Usage
    -----
    >>> from ir_montecarlo.models.factory import create_simulation
    >>> config = ModelConfig(model_type="lmm")
    >>> simulation = create_simulation(config, curve)
    """

    model_type: str = "hull_white"
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    lmm: LMMConfig = LMMConfig()
    hull_white: HullWhiteConfig = HullWhiteConfig()

    def __post_init__(self) -> None:
        """Validate model type."""
        if self.model_type not in ("lmm", "hull_white"):
            raise InvalidConfigurationError(
                f"CRITICAL: model_type must be 'lmm' or 'hull_white', got {self.model_type!r}"
            )


# =============================================================================
# Valuation Configuration
# =============================================================================

@dataclass(frozen=True)
class ValuationConfig:
    """
    Immutable valuation configuration.

    Attributes
    ----------
    regression_degree : int
        Polynomial degree of the Bermudan continuation regression basis
    propagation : str
        "fitted_maximum" or "realized_cashflow"
    regression_sample : str
        "in_sample" (reuse pricing paths) or "split"
    max_workers : int, optional
        Thread pool size for concurrent product valuation (None = auto)
    """

    regression_degree: int = 2
    propagation: str = "fitted_maximum"
    regression_sample: str = "in_sample"
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate parameters."""
        if self.regression_degree < 0:
            raise InvalidConfigurationError(
                f"CRITICAL: regression_degree must be >= 0, got {self.regression_degree}"
            )
        if self.propagation not in ("fitted_maximum", "realized_cashflow"):
            raise InvalidConfigurationError(
                f"CRITICAL: unknown propagation {self.propagation!r}"
            )
        if self.regression_sample not in ("in_sample", "split"):
            raise InvalidConfigurationError(
                f"CRITICAL: unknown regression_sample {self.regression_sample!r}"
            )
        if self.max_workers is not None and self.max_workers <= 0:
            raise InvalidConfigurationError(
                f"CRITICAL: max_workers must be > 0, got {self.max_workers}"
            )


@dataclass(frozen=True)
class DiagnosticsConfig:
    """
    Optional runtime diagnostics.

    Attributes
    ----------
    check_covariance_psd : bool
        Verify positive semi-definiteness of covariance matrices before a build
    psd_tolerance : float
        Most negative eigenvalue accepted by the PSD check
    """

    check_covariance_psd: bool = False
    psd_tolerance: float = PSD_DIAGNOSTIC_TOLERANCE


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration combining all sub-configs.

    Usage
    -----
    >>> from ir_montecarlo.config.settings import SETTINGS
    >>> SETTINGS.model.simulation.n_paths
    20000
    """

    model: ModelConfig = field(default_factory=ModelConfig)
    valuation: ValuationConfig = ValuationConfig()
    diagnostics: DiagnosticsConfig = DiagnosticsConfig()


# Singleton instance - import this
SETTINGS = Settings()
