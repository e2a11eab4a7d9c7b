"""
APScheduler-based background job scheduler.

Example:
    from rto_dashboard.jobs.scheduler import JobScheduler

    scheduler = JobScheduler(timezone="Australia/Sydney")
    scheduler.add_job(process_feedback, job_id="feedback_ai_analysis", cron="0 1 * * *")
    scheduler.start()
    ...
    scheduler.stop()

Every run is counted in the metrics store (``background_jobs_total``,
``background_jobs_failed_total`` and the ``background_jobs_success_rate``
gauge). A failing job is logged and recorded, never re-raised into
APScheduler.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from rto_dashboard.analysis.ai_analysis import FeedbackAnalyzer, process_pending_feedback
from rto_dashboard.clients.compliance import ComplianceClient
from rto_dashboard.config import settings
from rto_dashboard.monitoring.metrics import MetricsAggregator, metrics

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]

FEEDBACK_ANALYSIS_JOB_ID = "feedback_ai_analysis"


@dataclass
class JobRecord:
    job_id: str
    func: JobFunc
    schedule: str
    status: str = "Scheduled"
    last_run_at: str | None = None
    last_result: str | None = None


class JobScheduler:
    """Thin wrapper over ``AsyncIOScheduler`` with run bookkeeping.

    Args:
        aggregator: Metrics store for job counters (default: process-wide store)
        timezone: Timezone for cron schedules
    """

    def __init__(
        self,
        aggregator: MetricsAggregator | None = None,
        timezone: str | None = None,
    ):
        self._metrics = aggregator or metrics
        self._timezone = timezone or settings.scheduler_timezone
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._jobs: dict[str, JobRecord] = {}
        self._running = False

    def add_job(
        self,
        func: JobFunc,
        job_id: str,
        cron: str | None = None,
        interval_minutes: int | None = None,
    ) -> str:
        """Register ``func`` on a cron expression OR a fixed interval, not both."""
        if cron is None and interval_minutes is None:
            raise ValueError("Must specify interval_minutes or cron")
        if cron is not None and interval_minutes is not None:
            raise ValueError("Cannot specify both interval_minutes and cron")

        if cron is not None:
            trigger = CronTrigger.from_crontab(cron, timezone=self._timezone)
            schedule = cron
        else:
            trigger = IntervalTrigger(minutes=interval_minutes)
            schedule = f"every {interval_minutes} minutes"

        self._jobs[job_id] = JobRecord(job_id=job_id, func=func, schedule=schedule)
        self._scheduler.add_job(
            self._run_tracked,
            trigger=trigger,
            args=[job_id],
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Scheduled job %s (%s, %s)", job_id, schedule, self._timezone)
        return job_id

    def remove_job(self, job_id: str) -> None:
        self._scheduler.remove_job(job_id)
        self._jobs.pop(job_id, None)

    async def _run_tracked(self, job_id: str) -> Any:
        record = self._jobs[job_id]
        record.status = "Running"
        logger.info("Starting job %s", job_id)
        self._metrics.increment_counter("background_jobs_total")
        try:
            result = await record.func()
        except Exception as e:
            logger.exception("Job %s failed", job_id)
            self._metrics.increment_counter("background_jobs_failed_total")
            record.status = "Failed"
            record.last_result = f"Error: {e}"
            result = None
        else:
            record.status = "Completed"
            record.last_result = str(result)
            logger.info("Job %s completed: %s", job_id, result)
        finally:
            record.last_run_at = datetime.now(timezone.utc).isoformat()
            self._update_success_rate()
        return result

    def _update_success_rate(self) -> None:
        total = self._metrics.get_counter("background_jobs_total")
        failed = self._metrics.get_counter("background_jobs_failed_total")
        rate = (total - failed) / total * 100 if total else 100.0
        self._metrics.set_gauge("background_jobs_success_rate", rate)

    async def run_now(self, job_id: str) -> Any:
        if job_id not in self._jobs:
            raise KeyError(f"Unknown job: {job_id}")
        return await self._run_tracked(job_id)

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job_id, record in self._jobs.items():
            job = self._scheduler.get_job(job_id)
            next_run = getattr(job, "next_run_time", None) if job else None
            jobs.append({
                "id": job_id,
                "schedule": record.schedule,
                "status": record.status,
                "last_run_at": record.last_run_at,
                "last_result": record.last_result,
                "next_run_at": next_run.isoformat() if next_run else None,
            })
        return jobs

    def start(self) -> None:
        if self._running:
            return
        self._scheduler.start()
        self._running = True
        logger.info("Job scheduler started with %d jobs", len(self._jobs))

    def stop(self) -> None:
        if not self._running:
            return
        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Job scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running


def schedule_feedback_analysis(
    scheduler: JobScheduler,
    client: ComplianceClient,
    analyzer: FeedbackAnalyzer,
    cron: str | None = None,
) -> str:
    async def run() -> dict:
        return await process_pending_feedback(client, analyzer)

    return scheduler.add_job(
        run,
        job_id=FEEDBACK_ANALYSIS_JOB_ID,
        cron=cron or settings.feedback_analysis_cron,
    )


job_scheduler = JobScheduler()


def get_scheduler() -> JobScheduler:
    return job_scheduler
