"""Tests for the background job scheduler wrapper."""

import pytest

from rto_dashboard.analysis.ai_analysis import FeedbackAnalyzer
from rto_dashboard.jobs.scheduler import (
    FEEDBACK_ANALYSIS_JOB_ID,
    JobScheduler,
    schedule_feedback_analysis,
)
from rto_dashboard.monitoring.metrics import MetricsAggregator
from rto_dashboard.tracing.cost_tracker import CostTracker


def _scheduler() -> tuple[JobScheduler, MetricsAggregator]:
    aggregator = MetricsAggregator()
    return JobScheduler(aggregator=aggregator, timezone="UTC"), aggregator


async def _ok():
    return {"processed": 3, "failed": 0}


async def _boom():
    raise RuntimeError("upstream unavailable")


def test_add_job_requires_exactly_one_schedule():
    scheduler, _ = _scheduler()
    with pytest.raises(ValueError):
        scheduler.add_job(_ok, job_id="nothing")
    with pytest.raises(ValueError):
        scheduler.add_job(_ok, job_id="both", cron="0 1 * * *", interval_minutes=5)


def test_list_jobs():
    scheduler, _ = _scheduler()
    scheduler.add_job(_ok, job_id="nightly", cron="0 1 * * *")
    scheduler.add_job(_ok, job_id="frequent", interval_minutes=10)
    jobs = {j["id"]: j for j in scheduler.list_jobs()}
    assert jobs["nightly"]["schedule"] == "0 1 * * *"
    assert jobs["frequent"]["schedule"] == "every 10 minutes"
    assert jobs["nightly"]["status"] == "Scheduled"
    assert jobs["nightly"]["last_run_at"] is None


def test_remove_job():
    scheduler, _ = _scheduler()
    scheduler.add_job(_ok, job_id="nightly", cron="0 1 * * *")
    scheduler.remove_job("nightly")
    assert scheduler.list_jobs() == []


async def test_run_now_success_updates_metrics():
    scheduler, aggregator = _scheduler()
    scheduler.add_job(_ok, job_id="nightly", cron="0 1 * * *")
    result = await scheduler.run_now("nightly")
    assert result == {"processed": 3, "failed": 0}
    assert aggregator.get_counter("background_jobs_total") == 1
    assert aggregator.get_counter("background_jobs_failed_total") == 0
    assert aggregator.get_gauge("background_jobs_success_rate") == 100
    job = scheduler.list_jobs()[0]
    assert job["status"] == "Completed"
    assert job["last_run_at"] is not None


async def test_failing_job_is_recorded_not_raised():
    scheduler, aggregator = _scheduler()
    scheduler.add_job(_ok, job_id="good", interval_minutes=5)
    scheduler.add_job(_boom, job_id="bad", interval_minutes=5)
    await scheduler.run_now("good")
    assert await scheduler.run_now("bad") is None
    assert aggregator.get_counter("background_jobs_failed_total") == 1
    assert aggregator.get_gauge("background_jobs_success_rate") == 50
    bad = next(j for j in scheduler.list_jobs() if j["id"] == "bad")
    assert bad["status"] == "Failed"
    assert "upstream unavailable" in bad["last_result"]


async def test_run_unknown_job():
    scheduler, _ = _scheduler()
    with pytest.raises(KeyError):
        await scheduler.run_now("missing")


async def test_start_and_stop():
    scheduler, _ = _scheduler()
    scheduler.add_job(_ok, job_id="frequent", interval_minutes=10)
    scheduler.start()
    try:
        assert scheduler.running
        assert scheduler.list_jobs()[0]["next_run_at"] is not None
    finally:
        scheduler.stop()
    assert not scheduler.running


async def test_feedback_analysis_job(client, mock_compliance_api):
    scheduler, aggregator = _scheduler()
    analyzer = FeedbackAnalyzer(api_key="", tracker=CostTracker(monthly_limit_usd=10))
    job_id = schedule_feedback_analysis(scheduler, client, analyzer, cron="0 1 * * *")
    assert job_id == FEEDBACK_ANALYSIS_JOB_ID

    result = await scheduler.run_now(job_id)
    assert result == {"processed": 2, "failed": 0}
    assert aggregator.get_counter("background_jobs_total") == 1
