"""Ladder scoring dataclasses and the factor weighting table."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .candidate import CandidateLeg


class LadderFactor(Enum):
    """
    The six factors a ladder is ranked on, in weighting-table order.

    EXPECTED_VALUE: Annualized risk-adjusted P&L
    VOL_EDGE: Mark IV premium over the volatility index
    RISK_RETURN: Expected value per unit of conditional tail risk
    THETA: Aggregate premium decay per day
    KELLY: Position-sizing signal from edge and risk
    DIVERSIFICATION: Strike spread relative to the reference price
    """

    EXPECTED_VALUE = "Expected Value"
    VOL_EDGE = "Vol Edge"
    RISK_RETURN = "Risk/Return"
    THETA = "Theta"
    KELLY = "Kelly"
    DIVERSIFICATION = "Diversification"

    @classmethod
    def from_name(cls, name: str) -> "LadderFactor":
        """
        Look up a factor by member name ("expected_value") or label ("Expected Value").

        Raises:
            ValueError: If no factor matches
        """
        normalized = name.strip()
        for factor in cls:
            if normalized.upper() == factor.name or normalized == factor.value:
                return factor
        raise ValueError(f"Unknown ladder factor: {name}")


# Composite score weights; must sum to 1.0
FACTOR_WEIGHTS: dict[LadderFactor, float] = {
    LadderFactor.EXPECTED_VALUE: 0.30,
    LadderFactor.VOL_EDGE: 0.20,
    LadderFactor.RISK_RETURN: 0.20,
    LadderFactor.THETA: 0.15,
    LadderFactor.KELLY: 0.10,
    LadderFactor.DIVERSIFICATION: 0.05,
}


def validate_weights(weights: dict[LadderFactor, float]) -> None:
    """
    Check a weighting table covers every factor, is non-negative and sums to 1.

    Raises:
        ValueError: If the table is invalid
    """
    missing = [f.name.lower() for f in LadderFactor if f not in weights]
    if missing:
        raise ValueError(f"Missing weights for factors: {', '.join(missing)}")
    if any(w < 0 for w in weights.values()):
        raise ValueError("Factor weights must be non-negative")
    total = sum(weights.values())
    if abs(total - 1.0) > 0.001:
        raise ValueError(f"Factor weights must sum to 1.0, got {total:.4f}")


@dataclass(frozen=True)
class ScoredLadder:
    """
    A group of legs with its aggregate metrics and composite score.

    Built once by the scorer with score 0; the ranker returns a copy with
    score and top_factor filled in and the raw factor vector dropped.

    Attributes:
        legs: Legs of the ladder (1..MAX_LADDER_LEGS)
        expected_value: Sum of per-leg expected values, quote currency
        ev_annual: Expected value annualized over the mean DTE
        vol_edge: Mean (mark IV - volatility index) / volatility index
        theta_efficiency: Sum of per-leg premium per day
        risk_return: Expected value / total conditional risk
        kelly: Kelly fraction
        diversification: Strike spread / reference price of the first leg
        prob_all_otm: 1 - max probability of exercise across legs
        total_premium: Sum of premiums, quote currency
        avg_apy: Mean per-leg annualized yield, percent
        score: Composite score 0-10
        top_factor: Label of the largest weighted factor contribution
        factors: Raw factor vector, present only before ranking
    """

    legs: tuple[CandidateLeg, ...]
    expected_value: float
    ev_annual: float
    vol_edge: float
    theta_efficiency: float
    risk_return: float
    kelly: float
    diversification: float
    prob_all_otm: float
    total_premium: float
    avg_apy: float
    score: float = 0.0
    top_factor: Optional[str] = None
    factors: tuple[float, ...] = field(default=(), repr=False)

    @property
    def num_legs(self) -> int:
        return len(self.legs)

    @property
    def expiries(self) -> list[str]:
        """Distinct expiries in leg order."""
        return list(dict.fromkeys(leg.expiry for leg in self.legs))

    @property
    def is_mixed_expiry(self) -> bool:
        return len(self.expiries) > 1

    @property
    def is_ranked(self) -> bool:
        return self.top_factor is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "num_legs": self.num_legs,
            "legs": [leg.to_dict() for leg in self.legs],
            "score": round(self.score, 2),
            "top_factor": self.top_factor,
            "expected_value": round(self.expected_value, 2),
            "ev_annual": round(self.ev_annual, 2),
            "vol_edge": round(self.vol_edge, 4),
            "theta_efficiency": round(self.theta_efficiency, 2),
            "risk_return": round(self.risk_return, 4),
            "kelly": round(self.kelly, 4),
            "diversification": round(self.diversification, 4),
            "prob_all_otm_pct": round(self.prob_all_otm * 100, 2),
            "total_premium": round(self.total_premium, 2),
            "avg_apy_pct": round(self.avg_apy, 2),
            "expiries": self.expiries,
        }
