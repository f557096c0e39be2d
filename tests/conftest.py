"""Shared fixtures for ladder optimizer tests."""

from typing import Callable

import pytest

from ladder_optimizer.models import CandidateLeg
from ladder_optimizer.pricing import hedged_annual_yield, probability_of_exercise


def build_leg(
    strike: float,
    expiry: str = "27DEC24",
    dte: int = 30,
    iv: float = 55.0,
    premium: float = 0.01,
    reference_price: float = 60000.0,
    option_type: str = "put",
) -> CandidateLeg:
    """Build a candidate leg with P(ex) and yield derived from the pricing model."""
    return CandidateLeg(
        strike=strike,
        expiry=expiry,
        days_to_expiry=dte,
        mark_iv=iv,
        reference_price=reference_price,
        premium=premium,
        premium_quote=premium * reference_price,
        probability_of_exercise=probability_of_exercise(
            reference_price, strike, dte / 365, iv / 100, "put"
        ),
        annualized_yield_pct=hedged_annual_yield(premium, reference_price, strike, dte),
        moneyness_pct=(reference_price / strike - 1) * 100,
        option_type=option_type,
    )


@pytest.fixture
def make_leg() -> Callable[..., CandidateLeg]:
    """Factory for priced candidate legs."""
    return build_leg


@pytest.fixture
def scenario_legs() -> list[CandidateLeg]:
    """Three same-expiry puts on a 60000 reference price, best yield first."""
    l1 = build_leg(54000, iv=55.0, premium=0.01)
    l2 = build_leg(52000, iv=60.0, premium=0.008)
    l3 = build_leg(56000, iv=50.0, premium=0.015)
    return sorted([l1, l2, l3], key=lambda leg: leg.annualized_yield_pct, reverse=True)
