"""
Closed-form prices under Black-Scholes dynamics.

Used as oracles for the Monte Carlo engine:
- European call and put
- Double digital (range binary) on the terminal spot
- Discretely monitored geometric-average Asian option

References
----------
[T1] Black, F., & Scholes, M. (1973). The pricing of options and corporate liabilities.
[T1] Kemna, A., & Vorst, A. (1990). A pricing method for options based on average asset values.
[T1] Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Section 4.5.
"""

import math

import numpy as np
from scipy import stats

from exotic_pricing.config.tolerances import PUT_CALL_PARITY_TOLERANCE
from exotic_pricing.errors import InvalidParameter
from exotic_pricing.options.payoffs.base import OptionType


def _calculate_d1_d2(
    spot: float,
    strike: float,
    rate: float,
    dividend: float,
    volatility: float,
    time_to_expiry: float,
) -> tuple[float, float]:
    """
    Calculate d1 and d2 parameters.

    [T1] d1 = (ln(S/K) + (r - q + σ²/2)T) / (σ√T)
    [T1] d2 = d1 - σ√T
    """
    sqrt_t = np.sqrt(time_to_expiry)
    vol_sqrt_t = volatility * sqrt_t

    d1 = (
        np.log(spot / strike) + (rate - dividend + 0.5 * volatility**2) * time_to_expiry
    ) / vol_sqrt_t

    d2 = d1 - vol_sqrt_t

    return d1, d2


def black_scholes_call(
    spot: float,
    strike: float,
    rate: float,
    dividend: float,
    volatility: float,
    time_to_expiry: float,
) -> float:
    """
    Price European call option using Black-Scholes.

    [T1] C = S*e^(-qT)*N(d1) - K*e^(-rT)*N(d2)

    Examples
    --------
    >>> round(black_scholes_call(100, 100, 0.05, 0.0, 0.20, 1.0), 4)
    10.4506
    """
    _validate_inputs(spot, strike, volatility, time_to_expiry)

    d1, d2 = _calculate_d1_d2(spot, strike, rate, dividend, volatility, time_to_expiry)

    call_price = (
        spot * np.exp(-dividend * time_to_expiry) * stats.norm.cdf(d1)
        - strike * np.exp(-rate * time_to_expiry) * stats.norm.cdf(d2)
    )

    return float(call_price)


def black_scholes_put(
    spot: float,
    strike: float,
    rate: float,
    dividend: float,
    volatility: float,
    time_to_expiry: float,
) -> float:
    """
    Price European put option using Black-Scholes.

    [T1] P = K*e^(-rT)*N(-d2) - S*e^(-qT)*N(-d1)

    Examples
    --------
    >>> round(black_scholes_put(100, 100, 0.05, 0.0, 0.20, 1.0), 4)
    5.5735
    """
    _validate_inputs(spot, strike, volatility, time_to_expiry)

    d1, d2 = _calculate_d1_d2(spot, strike, rate, dividend, volatility, time_to_expiry)

    put_price = (
        strike * np.exp(-rate * time_to_expiry) * stats.norm.cdf(-d2)
        - spot * np.exp(-dividend * time_to_expiry) * stats.norm.cdf(-d1)
    )

    return float(put_price)


def black_scholes_price(
    spot: float,
    strike: float,
    rate: float,
    dividend: float,
    volatility: float,
    time_to_expiry: float,
    option_type: OptionType,
) -> float:
    """Dispatch to call or put pricer."""
    if option_type == OptionType.CALL:
        return black_scholes_call(spot, strike, rate, dividend, volatility, time_to_expiry)
    return black_scholes_put(spot, strike, rate, dividend, volatility, time_to_expiry)


def put_call_parity_check(
    call_price: float,
    put_price: float,
    spot: float,
    strike: float,
    rate: float,
    dividend: float,
    time_to_expiry: float,
    tolerance: float = PUT_CALL_PARITY_TOLERANCE,
) -> tuple[bool, float]:
    """
    Verify put-call parity holds.

    [T1] Put-Call Parity: C - P = S*e^(-qT) - K*e^(-rT)

    Returns
    -------
    tuple[bool, float]
        (parity_holds, error)
    """
    actual_diff = call_price - put_price
    expected_diff = (
        spot * np.exp(-dividend * time_to_expiry)
        - strike * np.exp(-rate * time_to_expiry)
    )

    error = abs(actual_diff - expected_diff)
    parity_holds = error < tolerance

    return parity_holds, error


def double_digital_price(
    spot: float,
    lower: float,
    upper: float,
    rate: float,
    dividend: float,
    volatility: float,
    time_to_expiry: float,
    payout: float = 1.0,
) -> float:
    """
    Price a double digital paying ``payout`` when L < S(T) < U.

    [T1] V = payout * e^(-rT) * [N(d2(L)) - N(d2(U))]

    The barrier policy does not affect the price: S(T) hits either
    barrier exactly with probability zero.
    """
    if upper <= lower:
        raise InvalidParameter(
            f"CRITICAL: upper barrier must exceed lower barrier, got lower={lower}, upper={upper}"
        )
    _validate_inputs(spot, upper, volatility, time_to_expiry)

    _, d2_upper = _calculate_d1_d2(spot, upper, rate, dividend, volatility, time_to_expiry)
    if lower > 0:
        _, d2_lower = _calculate_d1_d2(spot, lower, rate, dividend, volatility, time_to_expiry)
        prob_above_lower = stats.norm.cdf(d2_lower)
    else:
        prob_above_lower = 1.0

    probability = prob_above_lower - stats.norm.cdf(d2_upper)
    return float(payout * np.exp(-rate * time_to_expiry) * probability)


def geometric_asian_price(
    spot: float,
    strike: float,
    rate: float,
    dividend: float,
    volatility: float,
    time_to_expiry: float,
    n_fixings: int,
    option_type: OptionType = OptionType.CALL,
) -> float:
    """
    Price a discretely monitored geometric-average Asian option.

    Fixings at t_i = i*T/N for i = 1..N. Under GBM log G is normal with

    [T1] μ_G = ln S + (r - q - σ²/2) Δt (N+1)/2
    [T1] σ²_G = σ² Δt (N+1)(2N+1) / (6N)

    so the option prices like a Black-Scholes option on a lognormal
    variable with forward exp(μ_G + σ²_G/2).

    Parameters
    ----------
    n_fixings : int
        Number of equally spaced monitoring dates (the path's step count)
    """
    _validate_inputs(spot, strike, volatility, time_to_expiry)
    if n_fixings < 1:
        raise InvalidParameter(f"CRITICAL: n_fixings must be >= 1, got {n_fixings}")

    dt = time_to_expiry / n_fixings
    nu = rate - dividend - 0.5 * volatility**2
    mu_g = math.log(spot) + nu * dt * (n_fixings + 1) / 2.0
    var_g = volatility**2 * dt * (n_fixings + 1) * (2 * n_fixings + 1) / (6.0 * n_fixings)
    sd_g = math.sqrt(var_g)

    forward_g = math.exp(mu_g + 0.5 * var_g)
    d2 = (mu_g - math.log(strike)) / sd_g
    d1 = d2 + sd_g
    df = math.exp(-rate * time_to_expiry)

    if option_type == OptionType.CALL:
        price = df * (forward_g * stats.norm.cdf(d1) - strike * stats.norm.cdf(d2))
    else:
        price = df * (strike * stats.norm.cdf(-d2) - forward_g * stats.norm.cdf(-d1))

    return float(price)


def _validate_inputs(
    spot: float,
    strike: float,
    volatility: float,
    time_to_expiry: float,
) -> None:
    """Validate closed-form inputs."""
    if spot <= 0:
        raise InvalidParameter(f"CRITICAL: spot must be > 0, got {spot}")
    if strike <= 0:
        raise InvalidParameter(f"CRITICAL: strike must be > 0, got {strike}")
    if volatility <= 0:
        raise InvalidParameter(f"CRITICAL: volatility must be > 0, got {volatility}")
    if time_to_expiry <= 0:
        raise InvalidParameter(f"CRITICAL: time_to_expiry must be > 0, got {time_to_expiry}")
