"""Dashboard summary metrics composed from the compliance API list endpoints.

``overall_compliance`` is a simplified composite: the mean of standards
coverage and a placeholder score of 100 (no policies due) or 80 (some due).
``mapped_standards`` counts returned standards rather than real mappings, and
``credentials_expiring`` / ``incomplete_products`` are not yet wired to data.
"""

import asyncio
import math
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from rto_dashboard.clients.compliance import ComplianceClient, list_total

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
REVIEW_WINDOW = timedelta(days=30)
NO_POLICIES_DUE_SCORE = 100
POLICIES_DUE_SCORE = 80


class DashboardMetrics(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    overall_compliance: int = 0
    policies_due_review: int = 0
    credentials_expiring: int = 0
    incomplete_products: int = 0
    mapped_standards: int = 0
    total_standards: int = 0


def _parse_date(value) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def count_policies_due(policies: list[dict], now: datetime) -> int:
    """Policies whose review date lies in [now, now + 30 days]."""
    window_end = now + REVIEW_WINDOW
    due = 0
    for policy in policies:
        review_date = _parse_date(policy.get("reviewDate"))
        if review_date is not None and now <= review_date <= window_end:
            due += 1
    return due


def overall_compliance(mapped: int, total: int, policies_due: int) -> int:
    coverage = mapped / total * 100 if total else 0
    review_score = NO_POLICIES_DUE_SCORE if policies_due == 0 else POLICIES_DUE_SCORE
    # round half up
    return math.floor((coverage + review_score) / 2 + 0.5)


class DashboardComposer:
    def __init__(
        self,
        client: ComplianceClient,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def get_metrics(self) -> DashboardMetrics:
        try:
            standards_body, policies_body, _users_body, _products_body = await asyncio.gather(
                self._client.list_standards(per_page=PAGE_SIZE),
                self._client.list_policies(per_page=PAGE_SIZE),
                self._client.list_users(per_page=PAGE_SIZE),
                self._client.list_training_products(per_page=PAGE_SIZE),
            )

            standards = standards_body.get("data") or []
            policies = policies_body.get("data") or []

            total_standards = list_total(standards_body)
            mapped_standards = len(standards)
            policies_due = count_policies_due(policies, self._clock())

            return DashboardMetrics(
                overall_compliance=overall_compliance(mapped_standards, total_standards, policies_due),
                policies_due_review=policies_due,
                credentials_expiring=0,
                incomplete_products=0,
                mapped_standards=mapped_standards,
                total_standards=total_standards,
            )
        except Exception:
            logger.exception("Failed to compose dashboard metrics")
            return DashboardMetrics()
