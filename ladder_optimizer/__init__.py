"""Cash-secured put ladder optimizer.

Searches combinations of short put legs, scores each group on six
factors and returns the highest-ranked ladder.
"""

from .combinations import combinations, combinations_with_repetition, count_groups
from .config import AdmissionConfig, AppConfig, OptimizerConfig, RefreshConfig, load_config
from .exceptions import (
    CandidateSourceError,
    ConfigurationError,
    InstrumentParseError,
    LadderOptimizerError,
)
from .models import (
    FACTOR_WEIGHTS,
    CandidateLeg,
    Greeks,
    LadderFactor,
    OptionQuote,
    ScoredLadder,
)
from .optimizer import LadderOptimizer, build_optimal_ladder, recommended_keys
from .pricing import (
    conditional_tail_loss,
    greeks,
    hedged_annual_yield,
    normal_cdf,
    probability_of_exercise,
)
from .ranking import rank_ladders
from .scoring import score_ladder

__version__ = "1.0.0"

__all__ = [
    # Optimizer
    "LadderOptimizer",
    "build_optimal_ladder",
    "recommended_keys",
    "score_ladder",
    "rank_ladders",
    # Pricing
    "normal_cdf",
    "probability_of_exercise",
    "greeks",
    "conditional_tail_loss",
    "hedged_annual_yield",
    # Combinations
    "combinations",
    "combinations_with_repetition",
    "count_groups",
    # Models
    "CandidateLeg",
    "OptionQuote",
    "Greeks",
    "LadderFactor",
    "FACTOR_WEIGHTS",
    "ScoredLadder",
    # Configuration
    "AppConfig",
    "OptimizerConfig",
    "AdmissionConfig",
    "RefreshConfig",
    "load_config",
    # Exceptions
    "LadderOptimizerError",
    "ConfigurationError",
    "InstrumentParseError",
    "CandidateSourceError",
]
