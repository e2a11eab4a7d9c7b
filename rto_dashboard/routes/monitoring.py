"""Metrics exposition, status page and alert endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from rto_dashboard.clients.compliance import ComplianceClient, get_client, list_total
from rto_dashboard.monitoring.metrics import MetricsAggregator, get_metrics
from rto_dashboard.monitoring.status import evaluate_alerts, system_status

router = APIRouter()
logger = logging.getLogger(__name__)

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4"


@router.get("/metrics", response_class=PlainTextResponse)
async def prometheus_metrics(aggregator: MetricsAggregator = Depends(get_metrics)):
    return PlainTextResponse(aggregator.export_prometheus(), media_type=PROMETHEUS_CONTENT_TYPE)


@router.get("/api/v1/monitoring/metrics")
async def metrics_json(
    aggregator: MetricsAggregator = Depends(get_metrics),
    client: ComplianceClient = Depends(get_client),
):
    try:
        active_users = list_total(await client.list_users(per_page=1, status="Active"))
        aggregator.set_gauge("active_users_total", active_users)
    except Exception as e:
        logger.error("Error getting active user count: %s", e)
    return aggregator.export_json()


@router.get("/api/v1/monitoring/status")
async def status_page(
    aggregator: MetricsAggregator = Depends(get_metrics),
    client: ComplianceClient = Depends(get_client),
):
    return system_status(aggregator.export_json(), upstream_ok=await client.ping())


@router.get("/api/v1/monitoring/alerts")
async def alerts(aggregator: MetricsAggregator = Depends(get_metrics)):
    firing = evaluate_alerts(aggregator.export_json())
    return {
        "alert_count": len(firing),
        "alerts": [a.to_dict() for a in firing],
    }
