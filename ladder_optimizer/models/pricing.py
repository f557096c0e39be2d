"""Option analytics result dataclasses."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Greeks:
    """
    Black-Scholes sensitivities with a zero risk-free rate.

    Attributes:
        delta: dV/dS
        gamma: d2V/dS2
        theta: Value decay per calendar day
        vega: Value change per 1 volatility point
    """

    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "delta": round(self.delta, 4),
            "gamma": self.gamma,
            "theta": round(self.theta, 4),
            "vega": round(self.vega, 4),
        }
