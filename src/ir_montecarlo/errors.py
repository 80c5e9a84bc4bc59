"""
Error kinds raised by the simulation engine.

NEVER fails silently - every error carries the context needed to reproduce
the failing configuration with the same seed.

- InvalidConfigurationError: non-positive dimensions, malformed grids
- UnsupportedTenorError: observable requested outside the model grid
- NumericalInstabilityError: NaN/Inf (or non-positive numeraire) during a build
- InsufficientSamplesError: regression underdetermined at an exercise date
"""

from typing import Optional


class TermStructureError(Exception):
    """Base class for all engine errors."""

    pass


class InvalidConfigurationError(TermStructureError, ValueError):
    """Raised at construction time, before any simulation work begins."""

    pass


class UnsupportedTenorError(TermStructureError, ValueError):
    """Raised when an observable is requested at a tenor the model cannot represent."""

    def __init__(
        self,
        message: str,
        tenor: Optional[float] = None,
        time: Optional[float] = None,
    ):
        super().__init__(message)
        self.tenor = tenor
        self.time = time


class NumericalInstabilityError(TermStructureError, ArithmeticError):
    """Raised when a simulation build produces NaN/Inf state or a non-positive numeraire."""

    def __init__(
        self,
        message: str,
        time_index: int,
        n_paths: int,
        seed: Optional[int] = None,
    ):
        super().__init__(message)
        self.time_index = time_index
        self.n_paths = n_paths
        self.seed = seed


class InsufficientSamplesError(TermStructureError, ValueError):
    """Raised when a regression has fewer samples than basis functions."""

    def __init__(
        self,
        message: str,
        exercise_date: float,
        n_samples: int,
        n_basis: int,
    ):
        super().__init__(message)
        self.exercise_date = exercise_date
        self.n_samples = n_samples
        self.n_basis = n_basis
