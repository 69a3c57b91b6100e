from unittest import mock

import pytest

from github_exporter.app.scheduler import RefreshScheduler
from github_exporter.errors import CollectorError, FetchError


def failing_orchestrator():
    orchestrator = mock.Mock()
    orchestrator.run.side_effect = CollectorError("notifications metrics", FetchError("boom"))
    return orchestrator


def test_run_once_propagates_failures():
    scheduler = RefreshScheduler(failing_orchestrator())

    with pytest.raises(CollectorError):
        scheduler.run_once()


def test_tick_logs_and_continues(caplog):
    scheduler = RefreshScheduler(failing_orchestrator())

    assert scheduler.tick() is False
    assert "Error fetching GitHub metrics: notifications metrics: boom" in caplog.text


def test_each_cycle_gets_its_own_deadline():
    orchestrator = mock.Mock()
    scheduler = RefreshScheduler(orchestrator, cycle_timeout=30)

    scheduler.run_once()

    ctx = orchestrator.run.call_args[0][0]
    assert 0 < ctx.remaining() <= 30


def test_run_forever_keeps_going_after_failures():
    orchestrator = failing_orchestrator()
    scheduler = RefreshScheduler(orchestrator)

    def stop_after_three(*args):
        if orchestrator.run.call_count >= 3:
            scheduler.stop()
        raise CollectorError("issue metrics", FetchError("boom"))

    orchestrator.run.side_effect = stop_after_three
    scheduler.run_forever(0.001)

    assert orchestrator.run.call_count == 3


def test_stop_cancels_the_cycle_in_flight():
    orchestrator = mock.Mock()
    scheduler = RefreshScheduler(orchestrator)
    seen = []

    def run(ctx):
        scheduler.stop()
        seen.append(ctx.cancelled)

    orchestrator.run.side_effect = run
    scheduler.run_once()

    assert seen == [True]
