"""AI analysis cost tracking against a monthly spend limit."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

from rto_dashboard.config import settings

MODEL_PRICING = {
    "gpt-4o-mini": {"input": 0.15 / 1_000_000, "output": 0.60 / 1_000_000},
    "gpt-4o": {"input": 2.50 / 1_000_000, "output": 10.00 / 1_000_000},
    "gpt-3.5-turbo": {"input": 0.50 / 1_000_000, "output": 1.50 / 1_000_000},
}

WARNING_PERCENT = 80


@dataclass
class CostRecord:
    timestamp: datetime
    model: str
    input_tokens: int
    output_tokens: int
    cost_usd: float
    operation: str


@dataclass
class CostTracker:
    monthly_limit_usd: float = field(default_factory=lambda: settings.ai_monthly_limit_usd)
    records: deque = field(default_factory=lambda: deque(maxlen=10000))

    def record(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        operation: str,
        timestamp: datetime | None = None,
    ) -> float:
        pricing = MODEL_PRICING.get(model, {"input": 0, "output": 0})
        cost = input_tokens * pricing["input"] + output_tokens * pricing["output"]
        self.records.append(
            CostRecord(
                timestamp=timestamp or datetime.now(timezone.utc),
                model=model,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost_usd=cost,
                operation=operation,
            )
        )
        return cost

    def _current_month(self, now: datetime | None = None) -> list[CostRecord]:
        now = now or datetime.now(timezone.utc)
        return [
            r for r in self.records
            if r.timestamp.year == now.year and r.timestamp.month == now.month
        ]

    def monthly_cost(self, now: datetime | None = None) -> float:
        return sum(r.cost_usd for r in self._current_month(now))

    def percent_used(self, now: datetime | None = None) -> float:
        if self.monthly_limit_usd <= 0:
            return 100.0
        return self.monthly_cost(now) / self.monthly_limit_usd * 100

    def limit_reached(self, now: datetime | None = None) -> bool:
        return self.percent_used(now) >= 100

    def status(self, now: datetime | None = None) -> str:
        used = self.percent_used(now)
        if used >= 100:
            return "limit_reached"
        if used >= WARNING_PERCENT:
            return "warning"
        return "ok"

    def get_summary(self, now: datetime | None = None) -> dict:
        month = self._current_month(now)
        total_cost = sum(r.cost_usd for r in month)

        by_model: dict[str, dict] = {}
        for r in month:
            if r.model not in by_model:
                by_model[r.model] = {"count": 0, "cost_usd": 0.0, "input_tokens": 0, "output_tokens": 0}
            by_model[r.model]["count"] += 1
            by_model[r.model]["cost_usd"] += r.cost_usd
            by_model[r.model]["input_tokens"] += r.input_tokens
            by_model[r.model]["output_tokens"] += r.output_tokens

        return {
            "total_tokens": sum(r.input_tokens + r.output_tokens for r in month),
            "estimated_cost": round(total_cost, 6),
            "monthly_limit": self.monthly_limit_usd,
            "percent_used": round(self.percent_used(now), 2),
            "status": self.status(now),
            "total_requests": len(month),
            "by_model": by_model,
            "recent": [
                {
                    "timestamp": r.timestamp.isoformat(),
                    "model": r.model,
                    "cost_usd": round(r.cost_usd, 6),
                    "operation": r.operation,
                }
                for r in list(self.records)[-20:]
            ],
        }


cost_tracker = CostTracker()
