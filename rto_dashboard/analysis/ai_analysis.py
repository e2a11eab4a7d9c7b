"""Feedback sentiment analysis: LLM first, keyword scoring as the fallback."""

import json
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from rto_dashboard.analysis.sentiment import MAX_THEMES, SentimentResult, analyze_with_keywords
from rto_dashboard.clients.compliance import ComplianceClient
from rto_dashboard.config import settings
from rto_dashboard.monitoring.metrics import MetricsAggregator, metrics
from rto_dashboard.tracing.cost_tracker import CostTracker, cost_tracker
from rto_dashboard.tracing.setup import get_langfuse_handler

logger = logging.getLogger(__name__)

LLM_CONFIDENCE = 0.9
PENDING_BATCH_SIZE = 100

SYSTEM_PROMPT = (
    "You are an AI that analyzes training feedback. Analyze the sentiment "
    "(from -1 to 1, where -1 is very negative, 0 is neutral, and 1 is very positive) "
    "and extract 3-5 key themes or topics mentioned. Return the response in JSON "
    'format: {"sentiment": number, "themes": string[]}'
)


def _create_llm() -> BaseChatModel:
    return ChatOpenAI(
        model=settings.openai_model,
        temperature=0.3,
        max_tokens=200,
        api_key=settings.openai_api_key,
        model_kwargs={"response_format": {"type": "json_object"}},
    )


def parse_llm_response(content: str) -> SentimentResult:
    """Parse the model's JSON reply; raises ValueError on malformed output."""
    try:
        data = json.loads(content or "{}")
    except json.JSONDecodeError as e:
        raise ValueError(f"LLM returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("LLM response is not a JSON object")

    sentiment = float(data.get("sentiment") or 0)
    themes = data.get("themes")
    themes = [str(t) for t in themes][:MAX_THEMES] if isinstance(themes, list) else []
    return SentimentResult(
        sentiment=max(-1.0, min(1.0, sentiment)),
        themes=themes,
        confidence=LLM_CONFIDENCE,
    )


class FeedbackAnalyzer:
    def __init__(
        self,
        llm: BaseChatModel | None = None,
        tracker: CostTracker | None = None,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        self._llm = llm
        self._tracker = tracker or cost_tracker
        self._api_key = settings.openai_api_key if api_key is None else api_key
        self._model = model or settings.openai_model

    def llm_available(self) -> bool:
        if self._llm is None and not self._api_key:
            return False
        if self._tracker.limit_reached():
            logger.warning("AI monthly cost limit reached, using keyword analysis")
            return False
        return True

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = _create_llm()
        return self._llm

    async def _analyze_with_llm(self, text: str) -> SentimentResult:
        handler = get_langfuse_handler()
        config = {"callbacks": [handler]} if handler else {}
        response = await self._get_llm().ainvoke(
            [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=text)],
            config=config,
        )
        usage = getattr(response, "usage_metadata", None) or {}
        self._tracker.record(
            model=self._model,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            operation="feedback_sentiment",
        )
        return parse_llm_response(response.content)

    async def analyze(self, text: str | None) -> SentimentResult:
        if not text or not text.strip():
            return SentimentResult()

        if self.llm_available():
            try:
                return await self._analyze_with_llm(text)
            except Exception as e:
                logger.warning("LLM sentiment analysis failed, falling back to keywords: %s", e)

        return analyze_with_keywords(text)


async def process_pending_feedback(
    client: ComplianceClient,
    analyzer: FeedbackAnalyzer,
    aggregator: MetricsAggregator | None = None,
) -> dict:
    """Analyse feedback rows that have comments but no sentiment yet."""
    aggregator = aggregator or metrics
    try:
        body = await client.list_feedback(per_page=PENDING_BATCH_SIZE)
    except Exception:
        logger.exception("Failed to list pending feedback")
        return {"processed": 0, "failed": 0}

    pending = [
        row for row in body.get("data") or []
        if row.get("comments") and row.get("sentiment") is None
    ]
    logger.info("Found %d feedback items to analyze", len(pending))

    processed = 0
    failed = 0
    for row in pending:
        try:
            result = await analyzer.analyze(row["comments"])
            await client.update_feedback(
                row["id"], {"sentiment": result.sentiment, "themes": result.themes}
            )
            processed += 1
            aggregator.increment_counter("feedback_analyses_total")
        except Exception as e:
            logger.error("Failed to analyze feedback %s: %s", row.get("id"), e)
            failed += 1

    logger.info("Feedback analysis complete: %d processed, %d failed", processed, failed)
    return {"processed": processed, "failed": failed}


feedback_analyzer = FeedbackAnalyzer()


def get_analyzer() -> FeedbackAnalyzer:
    return feedback_analyzer
