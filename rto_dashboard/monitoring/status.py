"""Alert evaluation and status-page summary over a metrics JSON snapshot."""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from rto_dashboard.config import settings


@dataclass
class AlertThresholds:
    error_rate_percent: float = 5.0
    p95_ms: float = 2000.0
    memory_percent: float = 90.0
    job_failure_percent: float = 10.0

    @classmethod
    def from_settings(cls) -> "AlertThresholds":
        return cls(
            error_rate_percent=settings.alert_error_rate_percent,
            p95_ms=settings.alert_p95_ms,
            memory_percent=settings.alert_memory_percent,
            job_failure_percent=settings.alert_job_failure_percent,
        )


@dataclass
class Alert:
    name: str
    severity: str  # "critical" or "warning"
    message: str
    value: float
    threshold: float
    status: str = "firing"
    timestamp: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


def evaluate_alerts(snapshot: dict, thresholds: AlertThresholds | None = None) -> list[Alert]:
    thresholds = thresholds or AlertThresholds.from_settings()
    now = datetime.now(timezone.utc).isoformat()
    alerts: list[Alert] = []

    error_rate = snapshot["application"]["error_rate"]
    if error_rate > thresholds.error_rate_percent:
        alerts.append(Alert(
            name="high_error_rate",
            severity="critical",
            message=f"Error rate is {error_rate:.2f}% (threshold: {thresholds.error_rate_percent:g}%)",
            value=error_rate,
            threshold=thresholds.error_rate_percent,
            timestamp=now,
        ))

    p95 = snapshot["application"]["response_time"]["p95"]
    if p95 > thresholds.p95_ms:
        alerts.append(Alert(
            name="slow_response_time",
            severity="warning",
            message=f"P95 response time is {p95:.0f}ms (threshold: {thresholds.p95_ms:.0f}ms)",
            value=p95,
            threshold=thresholds.p95_ms,
            timestamp=now,
        ))

    memory_percent = snapshot["infrastructure"]["memory"].get("percent", 0)
    if memory_percent > thresholds.memory_percent:
        alerts.append(Alert(
            name="high_memory_usage",
            severity="warning",
            message=f"Memory usage at {memory_percent:.1f}% (threshold: {thresholds.memory_percent:g}%)",
            value=memory_percent,
            threshold=thresholds.memory_percent,
            timestamp=now,
        ))

    jobs = snapshot["background_jobs"]
    if jobs["total"]:
        failure_rate = 100 - jobs["success_rate"]
        if failure_rate > thresholds.job_failure_percent:
            alerts.append(Alert(
                name="high_job_failure_rate",
                severity="warning",
                message=(
                    f"Background job failure rate at {failure_rate:.1f}% "
                    f"(threshold: {thresholds.job_failure_percent:g}%)"
                ),
                value=failure_rate,
                threshold=thresholds.job_failure_percent,
                timestamp=now,
            ))

    return alerts


def system_status(
    snapshot: dict,
    upstream_ok: bool,
    thresholds: AlertThresholds | None = None,
) -> dict:
    thresholds = thresholds or AlertThresholds.from_settings()
    overall = "operational"
    api = {"status": "operational", "uptime": snapshot["uptime"]}

    if upstream_ok:
        compliance_api = {"status": "operational", "message": "Compliance API reachable"}
    else:
        overall = "major_outage"
        compliance_api = {"status": "major_outage", "message": "Compliance API unavailable"}

    error_rate = snapshot["application"]["error_rate"]
    p95 = snapshot["application"]["response_time"]["p95"]

    if error_rate > thresholds.error_rate_percent:
        api["status"] = "degraded_performance"
        api["message"] = f"Error rate elevated: {error_rate:.2f}%"
    if p95 > thresholds.p95_ms:
        api["status"] = "degraded_performance"
        api["message"] = f"Response times elevated: {p95:.0f}ms"
    if api["status"] != "operational" and overall != "major_outage":
        overall = "degraded_performance"

    return {
        "overall": overall,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"api": api, "compliance_api": compliance_api},
    }
