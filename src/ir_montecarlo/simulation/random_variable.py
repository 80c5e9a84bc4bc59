"""
Vectorized Monte Carlo random variable.

One realization per path. Every arithmetic operation returns a new instance
backed by a new read-only array, so instances can be shared freely between
threads and no published value is ever mutated.

[T1] Standard error of the mean: s / √P with s the sample standard deviation
"""

from dataclasses import dataclass
from typing import Callable, Union

import numpy as np

Operand = Union["RandomVariable", float, int, np.ndarray]


@dataclass(frozen=True, eq=False)
class RandomVariable:
    """
    Immutable path-wise Monte Carlo quantity.

    Attributes
    ----------
    values : np.ndarray
        Realizations, shape (n_paths,)

    Examples
    --------
    >>> x = RandomVariable(np.array([1.0, 2.0, 3.0]))
    >>> (x * 2 + 1).average()
    5.0
    """

    values: np.ndarray

    # Make numpy defer to the reflected operators below (np.float64 * rv)
    __array_ufunc__ = None

    def __post_init__(self) -> None:
        """Copy into a read-only float64 vector."""
        values = np.array(self.values, dtype=float, copy=True).reshape(-1)
        if values.size == 0:
            raise ValueError("CRITICAL: RandomVariable requires at least one realization")
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    @classmethod
    def constant(cls, value: float, n_paths: int) -> "RandomVariable":
        """Deterministic random variable with n_paths identical realizations."""
        return cls(np.full(n_paths, float(value)))

    @property
    def n_paths(self) -> int:
        """Number of realizations."""
        return self.values.size

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def average(self) -> float:
        """Sample mean."""
        return float(self.values.mean())

    def variance(self) -> float:
        """Sample variance (ddof=1; 0 for a single realization)."""
        if self.n_paths < 2:
            return 0.0
        return float(self.values.var(ddof=1))

    def standard_deviation(self) -> float:
        """Sample standard deviation."""
        return float(np.sqrt(self.variance()))

    def standard_error(self) -> float:
        """Standard error of the mean, s / √P."""
        return self.standard_deviation() / np.sqrt(self.n_paths)

    def confidence_interval(self, z: float = 1.96) -> tuple[float, float]:
        """Confidence interval of the mean (default 95%)."""
        mean = self.average()
        half_width = z * self.standard_error()
        return (mean - half_width, mean + half_width)

    def is_finite(self) -> bool:
        """Whether every realization is finite."""
        return bool(np.all(np.isfinite(self.values)))

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    @staticmethod
    def _operand(other: Operand) -> Union[np.ndarray, float]:
        if isinstance(other, RandomVariable):
            return other.values
        if isinstance(other, np.ndarray):
            return other
        return float(other)

    def _apply(self, other: Operand, op: Callable[[np.ndarray, object], np.ndarray]) -> "RandomVariable":
        operand = self._operand(other)
        if isinstance(operand, np.ndarray) and operand.size not in (1, self.n_paths):
            raise ValueError(
                f"CRITICAL: path count mismatch: {self.n_paths} vs {operand.size}"
            )
        return RandomVariable(op(self.values, operand))

    def __add__(self, other: Operand) -> "RandomVariable":
        return self._apply(other, np.add)

    def __radd__(self, other: Operand) -> "RandomVariable":
        return self._apply(other, lambda a, b: np.add(b, a))

    def __sub__(self, other: Operand) -> "RandomVariable":
        return self._apply(other, np.subtract)

    def __rsub__(self, other: Operand) -> "RandomVariable":
        return self._apply(other, lambda a, b: np.subtract(b, a))

    def __mul__(self, other: Operand) -> "RandomVariable":
        return self._apply(other, np.multiply)

    def __rmul__(self, other: Operand) -> "RandomVariable":
        return self._apply(other, lambda a, b: np.multiply(b, a))

    def __truediv__(self, other: Operand) -> "RandomVariable":
        return self._apply(other, np.divide)

    def __rtruediv__(self, other: Operand) -> "RandomVariable":
        return self._apply(other, lambda a, b: np.divide(b, a))

    def __neg__(self) -> "RandomVariable":
        return RandomVariable(-self.values)

    def floor(self, lower: Operand) -> "RandomVariable":
        """Path-wise max(self, lower)."""
        return self._apply(lower, np.maximum)

    def cap(self, upper: Operand) -> "RandomVariable":
        """Path-wise min(self, upper)."""
        return self._apply(upper, np.minimum)

    def exp(self) -> "RandomVariable":
        return RandomVariable(np.exp(self.values))

    def log(self) -> "RandomVariable":
        return RandomVariable(np.log(self.values))

    def __repr__(self) -> str:
        return (
            f"RandomVariable(n_paths={self.n_paths}, average={self.average():.6g}, "
            f"standard_error={self.standard_error():.3g})"
        )
