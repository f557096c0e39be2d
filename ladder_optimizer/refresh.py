"""Periodic ladder recomputation.

This module provides a service layer for APScheduler integration: a
background job pulls fresh candidates from a data-supplying source, runs
the optimizer, and publishes the result. The source owns all network
I/O; when it fails the last good snapshot is kept.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config import AppConfig
from .exceptions import CandidateSourceError
from .models import CandidateLeg, ScoredLadder
from .optimizer import LadderOptimizer, recommended_keys

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "ladder_refresh"


class CandidateSource(Protocol):
    """Supplies candidate legs and the volatility index."""

    def get_candidates(self) -> list[CandidateLeg]:
        ...

    def get_volatility_index(self) -> Optional[float]:
        ...


@dataclass(frozen=True)
class LadderSnapshot:
    """
    Result of one refresh cycle.

    Attributes:
        ladder: Best ladder, or None when no ladder is available
        highlight_keys: Keys of legs to highlight
        volatility_index: Volatility index supplied (None = fallback used)
        candidate_count: Number of candidate legs considered
        computed_at: When the snapshot was computed (UTC)
    """

    ladder: Optional[ScoredLadder]
    highlight_keys: frozenset[str] = field(default_factory=frozenset)
    volatility_index: Optional[float] = None
    candidate_count: int = 0
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class LadderRefreshService:
    """Recomputes the optimal ladder on a fixed interval.

    Wraps APScheduler BackgroundScheduler with a single interval job.
    refresh_once() can also be called directly.

    Attributes:
        latest: Most recent successful snapshot (None before the first)
        is_running: Whether the scheduler is running
    """

    def __init__(
        self,
        source: CandidateSource,
        config: Optional[AppConfig] = None,
        publish: Optional[Callable[[LadderSnapshot], None]] = None,
    ):
        """Initialize the refresh service.

        Args:
            source: Candidate and volatility index supplier
            config: Application configuration (uses defaults if None)
            publish: Called with each new snapshot
        """
        self.source = source
        self.config = config or AppConfig()
        self.publish = publish
        self.optimizer = LadderOptimizer(self.config.optimizer)
        self.latest: Optional[LadderSnapshot] = None
        self.scheduler: Optional[BackgroundScheduler] = None
        self.is_running = False

    def _volatility_index(self) -> Optional[float]:
        try:
            return self.source.get_volatility_index()
        except CandidateSourceError as e:
            logger.warning(f"Volatility index unavailable, using fallback: {e}")
            return None

    def refresh_once(self) -> Optional[LadderSnapshot]:
        """Pull candidates, optimize and publish one snapshot.

        Returns:
            The new snapshot, or the previous one if the source failed
        """
        try:
            legs = self.source.get_candidates()
        except CandidateSourceError as e:
            logger.error(f"Candidate refresh failed, keeping last result: {e}", exc_info=True)
            return self.latest

        volatility_index = self._volatility_index()
        ladder = self.optimizer.optimize(legs, volatility_index)

        snapshot = LadderSnapshot(
            ladder=ladder,
            highlight_keys=frozenset(
                recommended_keys(ladder, self.config.optimizer.recommend_score_threshold)
            ),
            volatility_index=volatility_index,
            candidate_count=len(legs),
        )
        self.latest = snapshot

        if ladder is None:
            logger.info(f"Refresh complete: no ladder available from {len(legs)} candidates")
        else:
            logger.info(
                f"Refresh complete: {ladder.num_legs}-leg ladder, score={ladder.score:.2f}"
            )

        if self.publish is not None:
            self.publish(snapshot)

        return snapshot

    def _run_job(self) -> None:
        try:
            self.refresh_once()
        except Exception as e:
            logger.error(f"Ladder refresh task failed: {e}", exc_info=True)

    def initialize(self) -> None:
        """Create the background scheduler and register the refresh job."""
        if self.scheduler is not None:
            logger.warning("Scheduler already initialized")
            return

        self.scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,
            },
            timezone="UTC",
        )
        self.scheduler.add_job(
            self._run_job,
            trigger=IntervalTrigger(seconds=self.config.refresh.interval_seconds),
            id=REFRESH_JOB_ID,
            name="Ladder Refresh",
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
        )
        logger.info(
            f"Refresh scheduler initialized: every {self.config.refresh.interval_seconds}s"
        )

    def start(self) -> None:
        """Start periodic refreshes.

        Raises:
            RuntimeError: If the scheduler fails to start
        """
        if self.is_running:
            logger.warning("Scheduler already running")
            return

        if self.scheduler is None:
            self.initialize()

        try:
            self.scheduler.start()
        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise RuntimeError(f"Failed to start scheduler: {e}") from e

        self.is_running = True
        logger.info("Refresh scheduler started")

    def shutdown(self, wait: bool = True) -> None:
        """Stop periodic refreshes.

        Args:
            wait: Whether to wait for a running refresh to complete
        """
        if not self.is_running or self.scheduler is None:
            logger.warning("Scheduler not running")
            return

        self.scheduler.shutdown(wait=wait)
        self.is_running = False
        logger.info("Refresh scheduler shut down")
