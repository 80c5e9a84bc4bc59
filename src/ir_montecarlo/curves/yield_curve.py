"""
Initial discount curve provider.

Curve construction is an external concern of the engine; this module ships
the narrow interface the engine consumes plus one concrete implementation:

- DiscountCurveProvider: discount_factor(t), forward_rate(start, end)
- YieldCurve: zero-rate curve with linear / log-linear interpolation
- YieldCurve.flat / YieldCurve.from_forwards for test and example setups

The engine calls the provider only to seed initial state (LMM forwards,
Hull-White drift fitting) and for analytic cross-checks, never during
path evolution.

Theory
------
[T1] Discount factor: P(t) = e^(-r(t) × t)
[T1] Simple forward: L(t₁,t₂) = (P(t₁)/P(t₂) - 1)/(t₂ - t₁)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Sequence

import numpy as np


class DiscountCurveProvider(Protocol):
    """Protocol defining the curve interface consumed by the engine."""

    def discount_factor(self, t: float) -> float:
        """Discount factor P(0, t)."""
        ...

    def forward_rate(self, t1: float, t2: float) -> float:
        """Simple-compounded forward rate for the period [t1, t2]."""
        ...


class InterpolationMethod(Enum):
    """Interpolation method for yield curve."""

    LINEAR = "linear"
    LOG_LINEAR = "log_linear"


@dataclass(frozen=True, eq=False)
class YieldCurve:
    """
    Zero-coupon yield curve representation.

    [T1] Zero-coupon yield curve with interpolation, continuous compounding.

    Attributes
    ----------
    maturities : ndarray
        Maturities in years
    rates : ndarray
        Zero rates at each maturity (continuous compounding)
    curve_type : str
        Curve construction method
    interpolation : InterpolationMethod
        Interpolation method for intermediate maturities
    """

    maturities: np.ndarray
    rates: np.ndarray
    curve_type: str = "custom"
    interpolation: InterpolationMethod = InterpolationMethod.LOG_LINEAR

    def __post_init__(self) -> None:
        """Validate curve data and freeze arrays."""
        maturities = np.array(self.maturities, dtype=float)
        rates = np.array(self.rates, dtype=float)
        if len(maturities) != len(rates):
            raise ValueError(
                f"Maturities ({len(maturities)}) and rates ({len(rates)}) "
                "must have same length"
            )
        if len(maturities) == 0:
            raise ValueError("Curve must have at least one point")
        if not np.all(np.diff(maturities) > 0):
            raise ValueError("Maturities must be strictly increasing")
        if maturities[0] <= 0:
            raise ValueError(f"Maturities must be positive, got {maturities[0]}")
        maturities.setflags(write=False)
        rates.setflags(write=False)
        object.__setattr__(self, "maturities", maturities)
        object.__setattr__(self, "rates", rates)

    @classmethod
    def flat(cls, rate: float) -> "YieldCurve":
        """
        Create a flat continuously-compounded curve.

        Examples
        --------
        >>> curve = YieldCurve.flat(0.04)
        >>> curve.discount_factor(5.0)  # e^(-0.04 * 5)
        0.8187...
        """
        return cls(
            maturities=np.array([1.0]),
            rates=np.array([rate]),
            curve_type="flat",
        )

    @classmethod
    def from_forwards(
        cls,
        period_length: float,
        forwards: Sequence[float],
    ) -> "YieldCurve":
        """
        Create a curve from consecutive simple-compounded forward rates.

        [T1] P(T_{i+1}) = P(T_i) / (1 + L_i × δ)

        Log-linear interpolation on discount factors reproduces each
        forward exactly on its period.

        Parameters
        ----------
        period_length : float
            Length δ of each forward period
        forwards : Sequence[float]
            Forward rates for [0, δ), [δ, 2δ), ...

        Examples
        --------
        >>> curve = YieldCurve.from_forwards(0.5, [0.05] * 40)
        >>> round(curve.forward_rate(2.0, 2.5), 12)
        0.05
        """
        if period_length <= 0:
            raise ValueError(f"period_length must be positive, got {period_length}")
        forwards = np.asarray(forwards, dtype=float)
        if forwards.size == 0:
            raise ValueError("At least one forward rate is required")

        maturities = period_length * np.arange(1, forwards.size + 1)
        discount_factors = np.cumprod(1.0 / (1.0 + forwards * period_length))
        rates = -np.log(discount_factors) / maturities

        return cls(
            maturities=maturities,
            rates=rates,
            curve_type="forwards",
            interpolation=InterpolationMethod.LOG_LINEAR,
        )

    def get_rate(self, t: float) -> float:
        """
        Get interpolated zero rate at maturity t.

        Extrapolation is flat in the zero rate at both ends.

        Parameters
        ----------
        t : float
            Maturity in years

        Returns
        -------
        float
            Zero rate at maturity t
        """
        if t <= 0:
            raise ValueError(f"Maturity must be positive, got {t}")

        if t <= self.maturities[0]:
            return float(self.rates[0])
        if t >= self.maturities[-1]:
            return float(self.rates[-1])

        if self.interpolation == InterpolationMethod.LINEAR:
            return float(np.interp(t, self.maturities, self.rates))

        # Log-linear on discount factors
        log_df = -self.maturities * self.rates
        log_df_t = np.interp(t, self.maturities, log_df)
        return float(-log_df_t / t)

    def discount_factor(self, t: float) -> float:
        """
        Calculate discount factor at maturity t.

        [T1] P(t) = e^(-r(t) × t)
        """
        if t <= 0:
            return 1.0
        return float(np.exp(-self.get_rate(t) * t))

    def discount_factors(self, maturities: np.ndarray) -> np.ndarray:
        """Calculate discount factors for multiple maturities."""
        return np.array([self.discount_factor(t) for t in np.asarray(maturities, dtype=float)])

    def forward_rate(self, t1: float, t2: float) -> float:
        """
        Calculate the simple-compounded forward rate between t1 and t2.

        [T1] L(t₁,t₂) = (P(t₁)/P(t₂) - 1)/(t₂ - t₁)

        Examples
        --------
        >>> curve = YieldCurve.from_forwards(0.5, [0.04, 0.06])
        >>> round(curve.forward_rate(0.5, 1.0), 12)
        0.06
        """
        if t2 <= t1:
            raise ValueError(f"t2 ({t2}) must be greater than t1 ({t1})")

        return (self.discount_factor(t1) / self.discount_factor(t2) - 1.0) / (t2 - t1)
