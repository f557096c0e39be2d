"""
Option analytics for ladder scoring.

This module provides pure functions for:
- Standard normal CDF/PDF
- Probability of exercise under Black-Scholes
- Greeks (delta, gamma, theta, vega)
- Conditional tail loss of a short option
- Hedged annualized yield of a cash-secured put

All functions assume a zero risk-free rate, which suits the crypto
underlyings these ladders are built on.

Formula Reference:
    d1 = [ln(S/K) + sigma^2 T / 2] / (sigma sqrt(T))
    d2 = d1 - sigma sqrt(T)
    where:
        S = Underlying reference price
        K = Strike price
        sigma = Annualized volatility (as decimal, e.g., 0.55 for 55%)
        T = Time to expiration in years

Probability of exercise:
    For calls: N(d2)
    For puts: N(-d2)
"""

import logging
import math

from .constants import DAYS_PER_YEAR, NEGLIGIBLE_PROBABILITY
from .models import Greeks

logger = logging.getLogger(__name__)

_SQRT_2PI = math.sqrt(2 * math.pi)


def _check_option_type(option_type: str) -> str:
    option_type = option_type.lower()
    if option_type not in ("call", "put"):
        raise ValueError(f"Option type must be 'call' or 'put', got {option_type}")
    return option_type


def normal_cdf(x: float) -> float:
    """
    Standard normal cumulative distribution function.

    Uses the error function: N(x) = 0.5 * (1 + erf(x / sqrt(2)))

    Args:
        x: Value to evaluate

    Returns:
        Probability that a standard normal RV is <= x
    """
    return 0.5 * (1 + math.erf(x / math.sqrt(2)))


def normal_pdf(x: float) -> float:
    """Standard normal probability density."""
    return math.exp(-0.5 * x * x) / _SQRT_2PI


def _d1_d2(S: float, K: float, T: float, sigma: float) -> tuple[float, float]:
    sqrt_t = math.sqrt(T)
    d1 = (math.log(S / K) + 0.5 * sigma * sigma * T) / (sigma * sqrt_t)
    return d1, d1 - sigma * sqrt_t


def probability_of_exercise(
    S: float, K: float, T: float, sigma: float, option_type: str = "put"
) -> float:
    """
    Probability that the option finishes in the money.

    Args:
        S: Underlying reference price
        K: Strike price
        T: Time to expiry in years
        sigma: Annualized volatility as decimal
        option_type: "call" or "put"

    Returns:
        Probability in [0, 1]; 0 when T or sigma is not positive
    """
    option_type = _check_option_type(option_type)
    if T <= 0 or sigma <= 0:
        return 0.0

    _, d2 = _d1_d2(S, K, T, sigma)
    return normal_cdf(d2) if option_type == "call" else normal_cdf(-d2)


def greeks(S: float, K: float, T: float, sigma: float, option_type: str = "put") -> Greeks:
    """
    Black-Scholes Greeks with r = 0.

    Vega is per 1-point change in volatility and theta is per calendar day.

    Args:
        S: Underlying reference price
        K: Strike price
        T: Time to expiry in years
        sigma: Annualized volatility as decimal
        option_type: "call" or "put"

    Returns:
        Greeks; all zero when T or sigma is not positive
    """
    option_type = _check_option_type(option_type)
    if T <= 0 or sigma <= 0:
        return Greeks()

    sqrt_t = math.sqrt(T)
    d1, _ = _d1_d2(S, K, T, sigma)
    pdf_d1 = normal_pdf(d1)
    cdf_d1 = normal_cdf(d1)

    return Greeks(
        delta=cdf_d1 if option_type == "call" else cdf_d1 - 1,
        gamma=pdf_d1 / (S * sigma * sqrt_t),
        theta=-(S * sigma * pdf_d1) / (2 * sqrt_t) / DAYS_PER_YEAR,
        vega=S * pdf_d1 * sqrt_t / 100,
    )


def conditional_tail_loss(
    S: float, K: float, T: float, sigma: float, option_type: str = "put"
) -> float:
    """
    Expected loss magnitude of a short option given exercise.

    For puts:  max(0, K N(-d2) - S N(-d1))
    For calls: max(0, S N(d1) - K N(d2))  (opportunity cost)

    Args:
        S: Underlying reference price
        K: Strike price
        T: Time to expiry in years
        sigma: Annualized volatility as decimal
        option_type: "call" or "put"

    Returns:
        Non-negative loss in quote currency; 0 when T or sigma is not
        positive or the exercise probability is negligible
    """
    option_type = _check_option_type(option_type)
    if T <= 0 or sigma <= 0:
        return 0.0

    d1, d2 = _d1_d2(S, K, T, sigma)

    if option_type == "put":
        tail_probability = normal_cdf(-d2)
        if tail_probability < NEGLIGIBLE_PROBABILITY:
            return 0.0
        return max(0.0, K * tail_probability - S * normal_cdf(-d1))

    tail_probability = normal_cdf(d2)
    if tail_probability < NEGLIGIBLE_PROBABILITY:
        return 0.0
    return max(0.0, S * normal_cdf(d1) - K * tail_probability)


def hedged_annual_yield(
    premium: float, reference_price: float, strike: float, days_to_expiry: float
) -> float:
    """
    Annualized yield of a put fully collateralized at the strike.

    (premium x reference_price / strike) x (365 / days_to_expiry) x 100

    Args:
        premium: Premium in underlying units
        reference_price: Underlying reference price
        strike: Strike price
        days_to_expiry: Days until expiry

    Returns:
        Yield in percent; 0 when days_to_expiry or strike is not positive
    """
    if days_to_expiry <= 0 or strike <= 0:
        return 0.0

    premium_quote = premium * reference_price
    return (premium_quote / strike) * (DAYS_PER_YEAR / days_to_expiry) * 100
