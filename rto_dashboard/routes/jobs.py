"""Background job listing and manual trigger endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from rto_dashboard.auth import require_auth
from rto_dashboard.jobs.scheduler import FEEDBACK_ANALYSIS_JOB_ID, JobScheduler, get_scheduler
from rto_dashboard.models.schemas import JobRunResponse

router = APIRouter()


@router.get("")
async def list_jobs(
    scheduler: JobScheduler = Depends(get_scheduler),
    _token: str = Depends(require_auth),
):
    return {"running": scheduler.running, "jobs": scheduler.list_jobs()}


@router.post("/feedback-analysis/run", response_model=JobRunResponse)
async def run_feedback_analysis(
    scheduler: JobScheduler = Depends(get_scheduler),
    _token: str = Depends(require_auth),
):
    try:
        result = await scheduler.run_now(FEEDBACK_ANALYSIS_JOB_ID)
    except KeyError as e:
        raise HTTPException(status_code=404, detail="Feedback analysis job is not registered") from e
    result = result or {}
    return JobRunResponse(
        job_id=FEEDBACK_ANALYSIS_JOB_ID,
        processed=result.get("processed", 0),
        failed=result.get("failed", 0),
    )
