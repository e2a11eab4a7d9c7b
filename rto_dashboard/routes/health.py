"""Health check endpoint."""

import logging

from fastapi import APIRouter, Depends

from rto_dashboard.clients.compliance import ComplianceClient, get_client
from rto_dashboard.config import settings
from rto_dashboard.models.schemas import HealthResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(client: ComplianceClient = Depends(get_client)):
    return HealthResponse(
        status="ok",
        service="rto-compliance-dashboard",
        compliance_api_connected=await client.ping(),
        ai_providers={"openai": bool(settings.openai_api_key)},
    )
