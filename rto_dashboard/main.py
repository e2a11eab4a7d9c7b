"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rto_dashboard.analysis.ai_analysis import feedback_analyzer
from rto_dashboard.clients.compliance import compliance_client
from rto_dashboard.config import settings
from rto_dashboard.jobs.scheduler import job_scheduler, schedule_feedback_analysis
from rto_dashboard.monitoring.middleware import RequestMetricsMiddleware
from rto_dashboard.routes.dashboard import router as dashboard_router
from rto_dashboard.routes.feedback import router as feedback_router
from rto_dashboard.routes.health import router as health_router
from rto_dashboard.routes.jobs import router as jobs_router
from rto_dashboard.routes.monitoring import router as monitoring_router
from rto_dashboard.tracing.setup import init_tracing, shutdown_tracing

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

schedule_feedback_analysis(job_scheduler, compliance_client, feedback_analyzer)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_tracing()
    if settings.scheduler_enabled:
        job_scheduler.start()
    else:
        logger.info("Background scheduler disabled (SCHEDULER_ENABLED=false)")
    yield
    job_scheduler.stop()
    shutdown_tracing()
    await compliance_client.close()


app = FastAPI(
    title="RTO Compliance Dashboard Service",
    version="0.1.0",
    description="Dashboard metrics, monitoring and feedback analysis for RTO compliance",
    lifespan=lifespan,
)

app.add_middleware(RequestMetricsMiddleware)

app.include_router(health_router)
app.include_router(monitoring_router)
app.include_router(dashboard_router, prefix="/api/v1/dashboard")
app.include_router(feedback_router, prefix="/api/v1/feedback")
app.include_router(jobs_router, prefix="/api/v1/jobs")
