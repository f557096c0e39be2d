"""
Batch ranking of scored ladders.

Each factor is min-max normalized across the whole candidate batch, so a
score only says how a ladder compares with the others generated in the
same call. A factor on which every candidate ties normalizes to 0.5.

    score = 10 x sum(weight_i x normalized_i), clamped to [0, 10]
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Optional

from .constants import MAX_SCORE, NEGLIGIBLE_RANGE, NEUTRAL_NORMALIZED_VALUE
from .models import FACTOR_WEIGHTS, LadderFactor, ScoredLadder, validate_weights

logger = logging.getLogger(__name__)


def rank_ladders(
    candidates: Sequence[ScoredLadder],
    weights: Optional[dict[LadderFactor, float]] = None,
) -> list[ScoredLadder]:
    """
    Normalize factors across candidates and assign composite scores.

    Args:
        candidates: Unranked ladders from score_ladder()
        weights: Factor weighting table (default: FACTOR_WEIGHTS)

    Returns:
        Ranked copies sorted by descending score; ties keep input order.
        Empty input gives an empty list.

    Raises:
        ValueError: If weights is invalid or a candidate is already ranked
            or lacks a full factor vector
    """
    if not candidates:
        return []

    if weights is None:
        weights = FACTOR_WEIGHTS
    else:
        validate_weights(weights)

    factors = list(LadderFactor)
    weight_row = [weights[f] for f in factors]
    n_factors = len(factors)

    for candidate in candidates:
        if candidate.is_ranked:
            raise ValueError("Ladder is already ranked; rank the unscored batch instead")
        if len(candidate.factors) != n_factors:
            raise ValueError(
                f"Expected {n_factors} factors per ladder, got {len(candidate.factors)}"
            )

    mins = [min(c.factors[i] for c in candidates) for i in range(n_factors)]
    maxs = [max(c.factors[i] for c in candidates) for i in range(n_factors)]

    ranked = []
    for candidate in candidates:
        total = 0.0
        top_contribution = 0.0
        top_index = 0

        for i in range(n_factors):
            spread = maxs[i] - mins[i]
            if spread > NEGLIGIBLE_RANGE:
                normalized = (candidate.factors[i] - mins[i]) / spread
            else:
                normalized = NEUTRAL_NORMALIZED_VALUE

            contribution = weight_row[i] * normalized
            total += contribution
            if contribution > top_contribution:
                top_contribution = contribution
                top_index = i

        ranked.append(
            replace(
                candidate,
                score=min(MAX_SCORE, max(0.0, total * MAX_SCORE)),
                top_factor=factors[top_index].value,
                factors=(),
            )
        )

    ranked.sort(key=lambda ladder: ladder.score, reverse=True)

    logger.debug(
        f"Ranked {len(ranked)} ladders: best={ranked[0].score:.2f}, "
        f"worst={ranked[-1].score:.2f}"
    )
    return ranked
