"""
Candidate admission for the ladder optimizer.

Turns parsed option quotes into the ordered list of CandidateLeg values
the optimizer consumes. These are the caller-side filters: the optimizer
itself never re-applies them.

Filters (in order):
- Puts only, at least min_dte days to expiry
- Reference price / strike within [min_moneyness, max_moneyness]
- Probability of exercise at or below the cap
- Hedged annual yield within (min_apy, max_apy]
"""

import logging
from collections.abc import Iterable
from typing import Any, Optional

from .config import AdmissionConfig
from .constants import DAYS_PER_YEAR, POOL_SIZE_PER_LEG
from .models import CandidateLeg, OptionQuote
from .pricing import greeks, hedged_annual_yield, probability_of_exercise

logger = logging.getLogger(__name__)


def quote_analytics(quote: OptionQuote) -> dict[str, Any]:
    """
    Per-quote analytics shown alongside the option matrix.

    Returns:
        Dictionary with apy, premium_quote, probability_of_exercise and greeks
    """
    T = quote.dte / DAYS_PER_YEAR
    sigma = quote.mark_iv / 100
    return {
        "instrument": quote.instrument,
        "apy": hedged_annual_yield(quote.mark_price, quote.underlying_price, quote.strike, quote.dte),
        "premium_quote": quote.premium_quote,
        "probability_of_exercise": probability_of_exercise(
            quote.underlying_price, quote.strike, T, sigma, quote.option_type
        ),
        "greeks": greeks(quote.underlying_price, quote.strike, T, sigma, quote.option_type),
    }


def candidate_from_quote(
    quote: OptionQuote, admission: AdmissionConfig
) -> Optional[CandidateLeg]:
    """
    Admit a single quote as a candidate leg.

    Returns:
        CandidateLeg, or None if any admission filter rejects the quote
    """
    if not quote.is_put or quote.dte < admission.min_dte:
        return None

    moneyness = quote.moneyness
    if not admission.min_moneyness <= moneyness <= admission.max_moneyness:
        return None

    p_ex = probability_of_exercise(
        quote.underlying_price, quote.strike, quote.dte / DAYS_PER_YEAR, quote.mark_iv / 100, "put"
    )
    if p_ex > admission.max_exercise_probability:
        return None

    apy = hedged_annual_yield(quote.mark_price, quote.underlying_price, quote.strike, quote.dte)
    if not admission.min_apy < apy <= admission.max_apy:
        return None

    return CandidateLeg(
        strike=quote.strike,
        expiry=quote.expiry,
        days_to_expiry=quote.dte,
        mark_iv=quote.mark_iv,
        reference_price=quote.underlying_price,
        premium=quote.mark_price,
        premium_quote=quote.premium_quote,
        probability_of_exercise=p_ex,
        annualized_yield_pct=apy,
        moneyness_pct=(moneyness - 1) * 100,
        option_type="put",
        instrument=quote.instrument,
    )


def build_candidate_legs(
    quotes: Iterable[OptionQuote],
    admission: Optional[AdmissionConfig] = None,
    num_legs: int = 0,
) -> list[CandidateLeg]:
    """
    Admit quotes and order them by descending hedged yield.

    Args:
        quotes: Parsed option quotes
        admission: Admission filters (uses defaults if None)
        num_legs: Requested ladder size; 0 for Auto

    Returns:
        At most max(min_pool_size, num_legs * 4) legs, best yield first
    """
    admission = admission or AdmissionConfig()

    legs = []
    total = 0
    for quote in quotes:
        total += 1
        leg = candidate_from_quote(quote, admission)
        if leg is not None:
            legs.append(leg)

    legs.sort(key=lambda leg: leg.annualized_yield_pct, reverse=True)
    limit = max(admission.min_pool_size, num_legs * POOL_SIZE_PER_LEG)

    logger.debug(
        f"Admitted {len(legs)} of {total} quotes "
        f"(P(ex) cap {admission.max_exercise_probability:.0%}), keeping {min(limit, len(legs))}"
    )
    return legs[:limit]
