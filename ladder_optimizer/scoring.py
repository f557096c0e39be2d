"""
Raw ladder metrics for the six-factor optimizer.

Each leg contributes an expected value of

    ev = premium x (1 - P(ex)) - tail_loss x P(ex)

where tail_loss is the conditional loss of the short put given exercise.
The ladder aggregates are turned into a six-factor vector:

    1. Expected Value       - EV annualized over the mean DTE
    2. Volatility Edge      - mean (mark IV - volatility index) / index, floored at 0
    3. Risk/Return          - EV / sum of P(ex) x tail_loss
    4. Theta Efficiency     - sum of per-leg premium per day
    5. Kelly Fraction       - P(no exercise) - max P(ex) x avg loss / premium
    6. Diversification      - strike spread / reference price

The score is left at 0; batch normalization happens in ranking.py.
Legs may have different expiries: every quantity uses per-leg DTE and
reference price.
"""

import logging
from collections.abc import Sequence
from typing import Optional

from .constants import (
    DAYS_PER_YEAR,
    FALLBACK_VOLATILITY_INDEX,
    MIN_EXERCISE_PROBABILITY_FOR_LOSS,
)
from .models import CandidateLeg, ScoredLadder
from .pricing import conditional_tail_loss

logger = logging.getLogger(__name__)


def score_ladder(
    legs: Sequence[CandidateLeg], volatility_index: Optional[float] = None
) -> ScoredLadder:
    """
    Compute raw metrics and the factor vector for one leg group.

    Args:
        legs: Legs of the ladder (at least one)
        volatility_index: Market volatility index; None or 0 uses the fallback

    Returns:
        Unranked ScoredLadder (score 0, factors populated)

    Raises:
        ValueError: If legs is empty
    """
    if not legs:
        raise ValueError("A ladder must contain at least one leg")

    n = len(legs)
    vol_index = volatility_index or FALLBACK_VOLATILITY_INDEX

    total_ev = 0.0
    total_risk = 0.0
    total_premium = 0.0
    total_apy = 0.0
    vol_edge_sum = 0.0
    theta_sum = 0.0

    for leg in legs:
        sigma = leg.mark_iv / 100
        T = leg.days_to_expiry / DAYS_PER_YEAR
        p_itm = leg.probability_of_exercise
        tail_loss = conditional_tail_loss(leg.reference_price, leg.strike, T, sigma, "put")

        total_ev += leg.premium_quote * (1 - p_itm) - tail_loss * p_itm
        total_risk += p_itm * tail_loss
        total_premium += leg.premium_quote
        total_apy += leg.annualized_yield_pct
        vol_edge_sum += (leg.mark_iv - vol_index) / max(vol_index, 1)
        theta_sum += leg.premium_quote / leg.days_to_expiry

    avg_dte = sum(leg.days_to_expiry for leg in legs) / n
    ev_annual = total_ev * (DAYS_PER_YEAR / avg_dte)
    vol_edge = vol_edge_sum / n
    risk_return = total_ev / total_risk if total_risk > 0 else 0.0

    # Riskiest leg stands in for "some leg is exercised"
    max_pex = max(leg.probability_of_exercise for leg in legs)
    prob_all_otm = 1 - max_pex
    avg_loss = total_risk / max(max_pex, MIN_EXERCISE_PROBABILITY_FOR_LOSS)
    if total_premium > 0:
        kelly = max(0.0, prob_all_otm - max_pex * avg_loss / total_premium)
    else:
        kelly = 0.0

    strikes = [leg.strike for leg in legs]
    diversification = (max(strikes) - min(strikes)) / legs[0].reference_price

    return ScoredLadder(
        legs=tuple(legs),
        expected_value=total_ev,
        ev_annual=ev_annual,
        vol_edge=vol_edge,
        theta_efficiency=theta_sum,
        risk_return=risk_return,
        kelly=kelly,
        diversification=diversification,
        prob_all_otm=prob_all_otm,
        total_premium=total_premium,
        avg_apy=total_apy / n,
        factors=(
            ev_annual,
            max(0.0, vol_edge),
            risk_return,
            theta_sum,
            kelly,
            diversification,
        ),
    )
