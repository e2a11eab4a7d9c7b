"""Feedback analysis, insights and AI cost endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from rto_dashboard.analysis.ai_analysis import FeedbackAnalyzer, get_analyzer
from rto_dashboard.analysis.insights import compute_insights
from rto_dashboard.analysis.sentiment import analyze_with_keywords
from rto_dashboard.auth import require_auth
from rto_dashboard.clients.compliance import ComplianceClient, get_client
from rto_dashboard.models.schemas import AnalyzeFeedbackRequest, AnalyzeFeedbackResponse
from rto_dashboard.monitoring.metrics import MetricsAggregator, get_metrics
from rto_dashboard.tracing.cost_tracker import cost_tracker

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/analyze", response_model=AnalyzeFeedbackResponse)
async def analyze_feedback(
    request: AnalyzeFeedbackRequest,
    analyzer: FeedbackAnalyzer = Depends(get_analyzer),
    aggregator: MetricsAggregator = Depends(get_metrics),
):
    aggregator.increment_counter("feedback_submissions_total")
    if request.use_ai:
        result = await analyzer.analyze(request.text)
    else:
        result = analyze_with_keywords(request.text)
    aggregator.increment_counter("feedback_analyses_total")
    return AnalyzeFeedbackResponse(**result.to_dict())


@router.get("/insights")
async def feedback_insights(
    type: str | None = Query(default=None, pattern="^(learner|employer|industry)$"),
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    training_product_id: str | None = None,
    client: ComplianceClient = Depends(get_client),
):
    filters = {}
    if type:
        filters["type"] = type
    if training_product_id:
        filters["trainingProductId"] = training_product_id
    try:
        body = await client.list_feedback(**filters)
    except Exception as e:
        logger.error("Failed to list feedback for insights: %s", e)
        raise HTTPException(status_code=502, detail="Compliance API unavailable") from e
    return compute_insights(body.get("data") or [], date_from=date_from, date_to=date_to)


@router.get("/ai-cost")
async def ai_cost(_token: str = Depends(require_auth)):
    return cost_tracker.get_summary()
