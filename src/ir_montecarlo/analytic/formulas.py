"""
Closed-form benchmark formulas for rate options.

Used to cross-check Monte Carlo values and to quote them as implied
volatilities; never called during path evolution.

References
----------
[T1] Black, F. (1976). The pricing of commodity contracts.
     Journal of Financial Economics, 3(1-2), 167-179.
[T1] Bachelier, L. (1900). Théorie de la spéculation.
[T1] Brigo & Mercurio (2006) "Interest Rate Models", Ch. 1, 3.3
"""

from typing import Optional

import numpy as np
from scipy import optimize, stats

from ir_montecarlo.config.tolerances import IMPLIED_VOL_TOLERANCE


def _validate_common(option_maturity: float, volatility: float) -> None:
    if option_maturity < 0:
        raise ValueError(f"CRITICAL: option_maturity must be >= 0, got {option_maturity}")
    if volatility < 0:
        raise ValueError(f"CRITICAL: volatility must be >= 0, got {volatility}")


def black_formula(
    forward: float,
    volatility: float,
    option_maturity: float,
    strike: float,
    payoff_unit: float = 1.0,
    is_call: bool = True,
) -> float:
    """
    Black (1976) value of an option on a log-normal forward.

    [T1] Call = U [F N(d1) - K N(d2)],  d1,2 = (ln(F/K) ± ½σ²T) / (σ√T)

    Parameters
    ----------
    forward : float
        Forward of the underlying (> 0)
    volatility : float
        Log-normal volatility σ
    option_maturity : float
        Option maturity T in years
    strike : float
        Strike K
    payoff_unit : float, default 1.0
        Discount factor times notional scaling of the payoff
    is_call : bool, default True
        Call if True, put otherwise

    Returns
    -------
    float
        Option value

    Examples
    --------
    >>> round(black_formula(0.05, 0.2, 1.0, 0.05), 6)
    0.003983
    """
    _validate_common(option_maturity, volatility)
    if forward <= 0:
        raise ValueError(f"CRITICAL: forward must be > 0, got {forward}")

    sign = 1.0 if is_call else -1.0
    if strike <= 0:
        # Log-normal forward is always above a non-positive strike
        return payoff_unit * max(sign * (forward - strike), 0.0)

    total_vol = volatility * np.sqrt(option_maturity)
    if total_vol == 0:
        return payoff_unit * max(sign * (forward - strike), 0.0)

    d1 = (np.log(forward / strike) + 0.5 * total_vol**2) / total_vol
    d2 = d1 - total_vol
    value = sign * (forward * stats.norm.cdf(sign * d1) - strike * stats.norm.cdf(sign * d2))
    return float(payoff_unit * value)


def black_model_caplet_value(
    forward: float,
    volatility: float,
    option_maturity: float,
    strike: float,
    period_length: float,
    discount_factor: float,
) -> float:
    """
    Black model caplet value.

    [T1] Caplet = δ P(0, T+δ) Black(L, K, σ, T)

    Parameters
    ----------
    forward : float
        Forward rate of the caplet period
    volatility : float
        Log-normal forward volatility
    option_maturity : float
        Fixing time T
    strike : float
        Caplet strike
    period_length : float
        Accrual fraction δ
    discount_factor : float
        Discount factor to the payment date
    """
    return black_formula(
        forward,
        volatility,
        option_maturity,
        strike,
        payoff_unit=period_length * discount_factor,
    )


def bachelier_option_value(
    forward: float,
    volatility: float,
    option_maturity: float,
    strike: float,
    payoff_unit: float = 1.0,
    is_call: bool = True,
) -> float:
    """
    Bachelier (normal model) option value.

    [T1] Call = U [(F - K) N(d) + σ√T n(d)],  d = (F - K) / (σ√T)

    Parameters
    ----------
    forward : float
        Forward of the underlying
    volatility : float
        Normal (absolute) volatility σ
    option_maturity : float
        Option maturity T
    strike : float
        Strike K
    payoff_unit : float, default 1.0
        Annuity or discount factor scaling the payoff
    is_call : bool, default True

    Examples
    --------
    >>> round(bachelier_option_value(0.05, 0.01, 1.0, 0.05), 8)
    0.00398942
    """
    _validate_common(option_maturity, volatility)

    sign = 1.0 if is_call else -1.0
    moneyness = sign * (forward - strike)
    total_vol = volatility * np.sqrt(option_maturity)
    if total_vol == 0:
        return payoff_unit * max(moneyness, 0.0)

    d = moneyness / total_vol
    value = moneyness * stats.norm.cdf(d) + total_vol * stats.norm.pdf(d)
    return float(payoff_unit * value)


def bachelier_implied_volatility(
    forward: float,
    option_maturity: float,
    strike: float,
    payoff_unit: float,
    option_value: float,
    is_call: bool = True,
    tolerance: float = IMPLIED_VOL_TOLERANCE,
) -> Optional[float]:
    """
    Normal volatility reproducing option_value under Bachelier.

    Solved with scipy.optimize.brentq; the Bachelier value is strictly
    increasing in σ for T > 0.

    Parameters
    ----------
    forward : float
        Forward of the underlying
    option_maturity : float
        Option maturity T (> 0)
    strike : float
        Strike K
    payoff_unit : float
        Annuity or discount factor scaling the payoff (> 0)
    option_value : float
        Value to invert
    is_call : bool, default True
    tolerance : float
        Root-finding tolerance on σ

    Returns
    -------
    float or None
        Implied normal volatility; 0.0 at or below intrinsic value,
        None if no volatility reproduces the value
    """
    if option_maturity <= 0:
        raise ValueError(f"CRITICAL: option_maturity must be > 0, got {option_maturity}")
    if payoff_unit <= 0:
        raise ValueError(f"CRITICAL: payoff_unit must be > 0, got {payoff_unit}")
    if not np.isfinite(option_value):
        return None

    intrinsic = bachelier_option_value(forward, 0.0, option_maturity, strike, payoff_unit, is_call)
    if option_value <= intrinsic:
        return 0.0

    def objective(volatility: float) -> float:
        return (
            bachelier_option_value(forward, volatility, option_maturity, strike, payoff_unit, is_call)
            - option_value
        )

    upper = max(abs(forward), abs(strike), 0.01)
    for _ in range(60):
        if objective(upper) > 0:
            break
        upper *= 2.0
    else:
        return None

    return float(optimize.brentq(objective, 0.0, upper, xtol=tolerance))
