"""
Ladder optimizer: combinatorial search for the best cash-secured put ladder.

This module provides:
- Candidate pool construction (deduplication, per-expiry buckets, top-yield pool)
- Same-expiry and cross-expiry leg-group generation
- Scoring and batch ranking of every generated group
- Auto mode, sweeping leg counts 1..max_legs for a global optimum
- Highlight keys for display collaborators

Running time is bounded by pool caps rather than parallelism: a same-expiry
bucket holds at most max(8, k + 5) legs (min(5, k + 2) with repetition)
and the cross-expiry pool the 15 (8) highest-yield legs.

Example:
    optimizer = LadderOptimizer()

    ladder = optimizer.build_optimal_ladder(
        legs=candidates,
        volatility_index=55.2,
        num_legs=3,
        allow_repetition=False,
    )
    if ladder is None:
        print("No ladder available")
    else:
        print(f"Score {ladder.score:.1f} ({ladder.top_factor})")
"""

import logging
from collections.abc import Sequence
from typing import Optional

from .combinations import combinations, combinations_with_repetition
from .config import OptimizerConfig
from .constants import (
    REPETITION_CROSS_EXPIRY_CAP,
    REPETITION_EXPIRY_POOL_CAP,
    RECOMMENDED_SCORE_THRESHOLD,
    UNIQUE_CROSS_EXPIRY_CAP,
    UNIQUE_EXPIRY_POOL_FLOOR,
)
from .models import CandidateLeg, ScoredLadder
from .ranking import rank_ladders
from .scoring import score_ladder

logger = logging.getLogger(__name__)


def per_expiry_cap(num_legs: int, allow_repetition: bool) -> int:
    """Largest same-expiry pool used for num_legs-sized groups."""
    if allow_repetition:
        return min(REPETITION_EXPIRY_POOL_CAP, num_legs + 2)
    return max(UNIQUE_EXPIRY_POOL_FLOOR, num_legs + 5)


def cross_expiry_cap(allow_repetition: bool) -> int:
    """Number of top-yield legs used for cross-expiry groups."""
    return REPETITION_CROSS_EXPIRY_CAP if allow_repetition else UNIQUE_CROSS_EXPIRY_CAP


def group_key(legs: Sequence[CandidateLeg]) -> tuple[tuple[float, str], ...]:
    """Order-independent identity of a leg group."""
    return tuple(sorted(leg.key for leg in legs))


def deduplicate_legs(legs: Sequence[CandidateLeg]) -> list[CandidateLeg]:
    """Keep the first leg seen for each (strike, expiry)."""
    unique: dict[tuple[float, str], CandidateLeg] = {}
    for leg in legs:
        unique.setdefault(leg.key, leg)
    return list(unique.values())


def recommended_keys(
    ladder: Optional[ScoredLadder], min_score: float = RECOMMENDED_SCORE_THRESHOLD
) -> set[str]:
    """
    Highlight keys of a ladder's legs when its score reaches min_score.

    Args:
        ladder: Ranked ladder or None
        min_score: Score threshold

    Returns:
        Set of "HP-<strike>-<expiry>" keys, empty below the threshold
    """
    if ladder is None or ladder.score < min_score:
        return set()
    return {leg.highlight_key for leg in ladder.legs}


class LadderOptimizer:
    """
    Finds the highest-scoring ladder of cash-secured puts.

    The optimizer holds no state between calls; overlapping calls are
    independent and the caller keeps whichever result arrives last.

    Example:
        optimizer = LadderOptimizer(OptimizerConfig(allow_repetition=True))
        best = optimizer.build_auto_ladder(candidates, volatility_index=None)
    """

    def __init__(self, config: Optional[OptimizerConfig] = None):
        """
        Initialize the optimizer.

        Args:
            config: Optimizer configuration (uses defaults if None)
        """
        self.config = config or OptimizerConfig()

    def _generate(
        self, pool: Sequence[CandidateLeg], num_legs: int, allow_repetition: bool
    ) -> list[list[CandidateLeg]]:
        if allow_repetition:
            return combinations_with_repetition(pool, num_legs)
        return combinations(pool, num_legs)

    def generate_candidates(
        self,
        legs: Sequence[CandidateLeg],
        volatility_index: Optional[float],
        num_legs: int,
        allow_repetition: bool = False,
    ) -> list[ScoredLadder]:
        """
        Build and score every same-expiry and cross-expiry leg group.

        Args:
            legs: Candidate legs, best yield first
            volatility_index: Market volatility index (None uses fallback)
            num_legs: Legs per ladder
            allow_repetition: Whether a leg may repeat within a ladder

        Returns:
            Unranked ScoredLadders, same-expiry groups first; empty when the
            pool cannot satisfy num_legs
        """
        self._check_num_legs(num_legs)
        vol_index = volatility_index or self.config.fallback_volatility_index

        puts = [leg for leg in legs if leg.is_put]
        if not allow_repetition and len(puts) < num_legs:
            return []
        if allow_repetition and not puts:
            return []

        pool = sorted(deduplicate_legs(puts), key=lambda leg: leg.annualized_yield_pct, reverse=True)

        by_expiry: dict[str, list[CandidateLeg]] = {}
        for leg in pool:
            by_expiry.setdefault(leg.expiry, []).append(leg)

        expiry_cap = per_expiry_cap(num_legs, allow_repetition)
        seen: set[tuple[tuple[float, str], ...]] = set()
        scored: list[ScoredLadder] = []

        for expiry, expiry_legs in by_expiry.items():
            bucket = sorted(expiry_legs, key=lambda leg: leg.strike, reverse=True)[:expiry_cap]
            if not allow_repetition and len(bucket) < num_legs:
                continue
            groups = self._generate(bucket, num_legs, allow_repetition)
            logger.debug(f"Expiry {expiry}: {len(bucket)} legs -> {len(groups)} groups")
            for group in groups:
                seen.add(group_key(group))
                scored.append(score_ladder(group, vol_index))

        top = pool[: cross_expiry_cap(allow_repetition)]
        if (allow_repetition and top) or (not allow_repetition and len(top) >= num_legs):
            cross_count = 0
            for group in self._generate(top, num_legs, allow_repetition):
                key = group_key(group)
                if key in seen:
                    continue
                seen.add(key)
                scored.append(score_ladder(group, vol_index))
                cross_count += 1
            logger.debug(f"Cross-expiry: {len(top)} legs -> {cross_count} new groups")

        return scored

    def build_optimal_ladder(
        self,
        legs: Sequence[CandidateLeg],
        volatility_index: Optional[float],
        num_legs: int,
        allow_repetition: bool = False,
    ) -> Optional[ScoredLadder]:
        """
        Return the top-ranked ladder of num_legs legs.

        Args:
            legs: Candidate legs, pre-sorted by descending yield
            volatility_index: Market volatility index (None uses fallback)
            num_legs: Legs per ladder (1..max_legs)
            allow_repetition: Whether a leg may repeat within a ladder

        Returns:
            Best ScoredLadder, or None when no ladder is available

        Raises:
            ValueError: If num_legs is outside 1..max_legs
        """
        candidates = self.generate_candidates(legs, volatility_index, num_legs, allow_repetition)
        if not candidates:
            logger.debug(f"No {num_legs}-leg ladder available from {len(legs)} legs")
            return None

        best = rank_ladders(candidates, self.config.weights)[0]

        logger.info(
            f"Best {num_legs}-leg ladder of {len(candidates)} candidates: "
            f"score={best.score:.2f}, top factor={best.top_factor}, "
            f"expiries={','.join(best.expiries)}"
        )
        return best

    def build_auto_ladder(
        self,
        legs: Sequence[CandidateLeg],
        volatility_index: Optional[float],
        allow_repetition: bool = False,
    ) -> Optional[ScoredLadder]:
        """
        Sweep leg counts 1..max_legs and keep the highest score.

        Scores are batch-relative per leg count; the first strictly higher
        score wins, so ties favour fewer legs.

        Returns:
            Best ScoredLadder across leg counts, or None
        """
        best: Optional[ScoredLadder] = None
        for num_legs in range(1, self.config.max_legs + 1):
            ladder = self.build_optimal_ladder(legs, volatility_index, num_legs, allow_repetition)
            if ladder is not None and (best is None or ladder.score > best.score):
                best = ladder
        return best

    def optimize(
        self, legs: Sequence[CandidateLeg], volatility_index: Optional[float]
    ) -> Optional[ScoredLadder]:
        """Run the configured mode (Auto or fixed leg count)."""
        if self.config.is_auto:
            return self.build_auto_ladder(legs, volatility_index, self.config.allow_repetition)
        return self.build_optimal_ladder(
            legs, volatility_index, self.config.num_legs, self.config.allow_repetition
        )

    def _check_num_legs(self, num_legs: int) -> None:
        if not 1 <= num_legs <= self.config.max_legs:
            raise ValueError(
                f"num_legs must be between 1 and {self.config.max_legs}, got {num_legs}"
            )


def build_optimal_ladder(
    legs: Sequence[CandidateLeg],
    volatility_index: Optional[float],
    num_legs: int,
    allow_repetition: bool = False,
) -> Optional[ScoredLadder]:
    """Module-level shortcut for LadderOptimizer().build_optimal_ladder()."""
    return LadderOptimizer().build_optimal_ladder(
        legs, volatility_index, num_legs, allow_repetition
    )
