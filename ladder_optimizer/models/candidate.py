"""Candidate leg and option quote dataclasses."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional

from ..constants import HIGHLIGHT_KEY_PREFIX


def format_strike(strike: float) -> str:
    """Render a strike without a trailing '.0' for whole numbers."""
    if float(strike).is_integer():
        return str(int(strike))
    return repr(float(strike))


@dataclass(frozen=True)
class OptionQuote:
    """
    A priced option parsed from an exchange book summary.

    Attributes:
        instrument: Exchange instrument name (e.g. BTC-27DEC24-60000-P)
        strike: Strike price in quote currency
        expiry: Expiry label (e.g. 27DEC24)
        expiry_at: Settlement datetime (UTC)
        option_type: "call" or "put"
        mark_price: Mark price in underlying units
        mark_iv: Mark implied volatility, percent
        underlying_price: Underlying (futures) reference price
        dte: Calendar days to expiry
    """

    instrument: str
    strike: float
    expiry: str
    expiry_at: datetime
    option_type: str
    mark_price: float
    mark_iv: float
    underlying_price: float
    dte: int

    @property
    def is_put(self) -> bool:
        return self.option_type == "put"

    @property
    def premium_quote(self) -> float:
        """Mark price expressed in quote currency."""
        return self.mark_price * self.underlying_price

    @property
    def moneyness(self) -> float:
        """Reference price divided by strike."""
        return self.underlying_price / self.strike


@dataclass(frozen=True)
class CandidateLeg:
    """
    A single priced option contract eligible for a ladder.

    Only put legs take part in optimization; the option_type tag records
    the type but the scoring math always treats a leg as a put.

    Attributes:
        strike: Strike price in quote currency
        expiry: Opaque expiry label (e.g. 27DEC24)
        days_to_expiry: Calendar days until expiry
        mark_iv: Annualized implied volatility, percent
        reference_price: Underlying reference (futures) price
        premium: Premium in underlying units
        premium_quote: Premium in quote currency
        probability_of_exercise: Probability of finishing ITM (0-1)
        annualized_yield_pct: Hedged annualized yield, percent
        moneyness_pct: Percentage offset of reference price over strike
        option_type: "put" or "call"
        instrument: Exchange instrument name, if known
    """

    strike: float
    expiry: str
    days_to_expiry: int
    mark_iv: float
    reference_price: float
    premium: float
    premium_quote: float
    probability_of_exercise: float
    annualized_yield_pct: float
    moneyness_pct: float = 0.0
    option_type: str = "put"
    instrument: Optional[str] = None

    @property
    def is_put(self) -> bool:
        return self.option_type == "put"

    @property
    def key(self) -> tuple[float, str]:
        """Identity of the leg within a candidate pool."""
        return (self.strike, self.expiry)

    @property
    def highlight_key(self) -> str:
        """Key used by display collaborators to highlight this leg."""
        return f"{HIGHLIGHT_KEY_PREFIX}-{format_strike(self.strike)}-{self.expiry}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CandidateLeg":
        """
        Build a leg from a serialized dictionary.

        Raises:
            ValueError: If a required field is missing or malformed
        """
        try:
            return cls(
                strike=float(data["strike"]),
                expiry=str(data["expiry"]),
                days_to_expiry=int(data["days_to_expiry"]),
                mark_iv=float(data["mark_iv"]),
                reference_price=float(data["reference_price"]),
                premium=float(data["premium"]),
                premium_quote=float(data["premium_quote"]),
                probability_of_exercise=float(data["probability_of_exercise"]),
                annualized_yield_pct=float(data["annualized_yield_pct"]),
                moneyness_pct=float(data.get("moneyness_pct", 0.0)),
                option_type=str(data.get("option_type", "put")).lower(),
                instrument=data.get("instrument"),
            )
        except KeyError as e:
            raise ValueError(f"Candidate leg is missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid candidate leg: {e}") from e
