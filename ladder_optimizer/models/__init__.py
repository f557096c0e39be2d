"""Data models for ladder optimization."""

from .candidate import CandidateLeg, OptionQuote, format_strike
from .ladder import FACTOR_WEIGHTS, LadderFactor, ScoredLadder, validate_weights
from .pricing import Greeks

__all__ = [
    # Candidates
    "CandidateLeg",
    "OptionQuote",
    "format_strike",
    # Pricing
    "Greeks",
    # Ladder
    "LadderFactor",
    "FACTOR_WEIGHTS",
    "ScoredLadder",
    "validate_weights",
]
