"""Tests for the periodic ladder refresh service.

Tests snapshot computation, last-good retention on source failures,
publishing, and scheduler lifecycle.
"""

from unittest.mock import Mock

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from ladder_optimizer.config import AppConfig, OptimizerConfig, RefreshConfig
from ladder_optimizer.exceptions import CandidateSourceError
from ladder_optimizer.refresh import REFRESH_JOB_ID, LadderRefreshService, LadderSnapshot


@pytest.fixture
def source(scenario_legs):
    """Create a mock candidate source."""
    source = Mock()
    source.get_candidates = Mock(return_value=scenario_legs)
    source.get_volatility_index = Mock(return_value=57.0)
    return source


@pytest.fixture
def config():
    """Two-leg configuration with a 30 second refresh."""
    return AppConfig(
        optimizer=OptimizerConfig(num_legs=2),
        refresh=RefreshConfig(interval_seconds=30),
    )


@pytest.fixture
def service(source, config):
    """Create a refresh service with a publish callback."""
    service = LadderRefreshService(source, config, publish=Mock())
    yield service
    if service.is_running:
        service.shutdown(wait=False)


class TestRefreshOnce:
    """Tests for LadderRefreshService.refresh_once."""

    def test_snapshot(self, service):
        """A refresh produces a ranked ladder and highlight keys."""
        snapshot = service.refresh_once()

        assert isinstance(snapshot, LadderSnapshot)
        assert snapshot.ladder is not None
        assert snapshot.ladder.num_legs == 2
        assert snapshot.highlight_keys == {"HP-54000-27DEC24", "HP-52000-27DEC24"}
        assert snapshot.volatility_index == 57.0
        assert snapshot.candidate_count == 3
        assert snapshot.computed_at.tzinfo is not None
        assert service.latest is snapshot

    def test_publishes_snapshot(self, service):
        """Each successful refresh is published."""
        snapshot = service.refresh_once()
        service.publish.assert_called_once_with(snapshot)

    def test_no_ladder_snapshot(self, service, source):
        """An empty candidate list publishes a snapshot without a ladder."""
        source.get_candidates.return_value = []

        snapshot = service.refresh_once()

        assert snapshot.ladder is None
        assert snapshot.highlight_keys == frozenset()
        service.publish.assert_called_once_with(snapshot)

    def test_source_failure_keeps_last_result(self, service, source):
        """A failing source leaves the previous snapshot in place."""
        first = service.refresh_once()
        source.get_candidates.side_effect = CandidateSourceError("exchange unavailable")

        assert service.refresh_once() is first
        assert service.latest is first
        assert service.publish.call_count == 1

    def test_failure_before_first_result(self, service, source):
        """Without a previous snapshot a failure returns None."""
        source.get_candidates.side_effect = CandidateSourceError("timeout")
        assert service.refresh_once() is None
        service.publish.assert_not_called()

    def test_volatility_index_failure_uses_fallback(self, service, source):
        """A missing volatility index falls back instead of failing."""
        source.get_volatility_index.side_effect = CandidateSourceError("no index")

        snapshot = service.refresh_once()

        assert snapshot.volatility_index is None
        assert snapshot.ladder == service.optimizer.build_optimal_ladder(
            source.get_candidates.return_value, 57, 2
        )

    def test_without_publish(self, source):
        """The publish callback is optional."""
        service = LadderRefreshService(source)
        assert service.refresh_once() is not None

    def test_job_logs_unexpected_errors(self, service, source):
        """The scheduled job does not propagate unexpected errors."""
        source.get_candidates.side_effect = RuntimeError("boom")
        service._run_job()
        assert service.latest is None


class TestSchedulerLifecycle:
    """Tests for scheduler initialization, start and shutdown."""

    def test_initialize_registers_job(self, service):
        """The refresh job uses the configured interval."""
        service.initialize()

        job = service.scheduler.get_job(REFRESH_JOB_ID)
        assert job is not None
        assert isinstance(job.trigger, IntervalTrigger)
        assert job.trigger.interval.total_seconds() == 30
        assert service.is_running is False

    def test_initialize_twice(self, service):
        """A second initialize keeps the existing scheduler."""
        service.initialize()
        scheduler = service.scheduler
        service.initialize()
        assert service.scheduler is scheduler

    def test_start_stop(self, service):
        """Scheduler lifecycle (start/stop)."""
        service.start()
        assert service.is_running is True

        service.shutdown()
        assert service.is_running is False

    def test_shutdown_when_not_running(self, service):
        """Shutting down an idle service is a no-op."""
        service.shutdown()
        assert service.is_running is False
