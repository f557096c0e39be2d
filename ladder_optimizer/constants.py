"""
Shared constants for ladder optimization.

This module centralizes configuration values used across multiple modules,
making it easier to tune parameters and ensure consistency.
"""

# =============================================================================
# Volatility Index
# =============================================================================

FALLBACK_VOLATILITY_INDEX = 57.0
"""Volatility index (DVOL-like) used when none is supplied."""


# =============================================================================
# Numerical Thresholds
# =============================================================================

NEGLIGIBLE_PROBABILITY = 1e-10
"""Tail probabilities below this are treated as zero."""

NEGLIGIBLE_RANGE = 1e-10
"""Factor ranges below this normalize to the neutral value."""

NEUTRAL_NORMALIZED_VALUE = 0.5
"""Normalized value assigned when every candidate ties on a factor."""

MIN_EXERCISE_PROBABILITY_FOR_LOSS = 0.01
"""Floor on max P(ex) when averaging loss for the Kelly fraction."""

DAYS_PER_YEAR = 365


# =============================================================================
# Ladder Size and Combinatorial Bounds
# =============================================================================

MAX_LADDER_LEGS = 5
"""Largest leg count considered by the optimizer and the Auto sweep."""

MAX_SCORE = 10.0
"""Composite scores are scaled to 0..MAX_SCORE."""

REPETITION_EXPIRY_POOL_CAP = 5
"""Upper bound on a same-expiry pool when legs may repeat."""

UNIQUE_EXPIRY_POOL_FLOOR = 8
"""Lower bound on a same-expiry pool when legs are distinct."""

REPETITION_CROSS_EXPIRY_CAP = 8
"""Top-yield legs used for cross-expiry ladders when legs may repeat."""

UNIQUE_CROSS_EXPIRY_CAP = 15
"""Top-yield legs used for cross-expiry ladders when legs are distinct."""


# =============================================================================
# Display
# =============================================================================

RECOMMENDED_SCORE_THRESHOLD = 5.0
"""Minimum composite score for a ladder's legs to be highlighted."""

HIGHLIGHT_KEY_PREFIX = "HP"
"""Prefix of highlight keys (hedged put cells)."""


# =============================================================================
# Candidate Admission Defaults
# =============================================================================

DEFAULT_MIN_DTE = 15
"""Minimum days to expiry for an admitted candidate."""

DEFAULT_MAX_EXERCISE_PROBABILITY = 0.40
"""Maximum probability of exercise for an admitted candidate."""

DEFAULT_MIN_MONEYNESS = 1.0
DEFAULT_MAX_MONEYNESS = 1.15
"""Admitted range of reference price / strike."""

DEFAULT_MIN_APY = 5.0
DEFAULT_MAX_APY = 200.0
"""Admitted (exclusive, inclusive] range of hedged annual yield, percent."""

DEFAULT_STRIKE_MULTIPLE = 1000.0
"""Quotes whose strike is not a multiple of this are ignored."""

DEFAULT_MIN_POOL_SIZE = 15
"""Candidate lists are truncated to max(this, num_legs * 4)."""

POOL_SIZE_PER_LEG = 4


# =============================================================================
# Refresh Scheduling
# =============================================================================

DEFAULT_REFRESH_INTERVAL_SECONDS = 15
"""Polling interval of the recomputation job."""

SETTLEMENT_HOUR_UTC = 8
"""Exchange settlement hour of option expiries."""
