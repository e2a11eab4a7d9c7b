"""Dashboard summary endpoint."""

from fastapi import APIRouter, Depends

from rto_dashboard.clients.compliance import ComplianceClient, get_client
from rto_dashboard.dashboard.composer import DashboardComposer, DashboardMetrics

router = APIRouter()


@router.get("/metrics", response_model=DashboardMetrics, response_model_by_alias=True)
async def dashboard_metrics(client: ComplianceClient = Depends(get_client)):
    """Always 200: upstream failures yield all-zero metrics."""
    return await DashboardComposer(client).get_metrics()
