"""Tests for alert evaluation and the status page summary."""

from rto_dashboard.monitoring.status import AlertThresholds, evaluate_alerts, system_status

THRESHOLDS = AlertThresholds()


def _snapshot(error_rate=0.0, p95=100.0, memory_percent=10.0, jobs_total=0, job_success=100.0):
    return {
        "uptime": 12.5,
        "application": {
            "error_rate": error_rate,
            "response_time": {"p50": 50.0, "p95": p95, "p99": p95, "mean": 60.0},
        },
        "infrastructure": {"memory": {"rss": 1024, "percent": memory_percent}},
        "background_jobs": {"total": jobs_total, "failed": 0, "success_rate": job_success},
    }


def test_no_alerts_when_healthy():
    assert evaluate_alerts(_snapshot(), THRESHOLDS) == []


def test_high_error_rate_is_critical():
    alerts = evaluate_alerts(_snapshot(error_rate=12.5), THRESHOLDS)
    assert [a.name for a in alerts] == ["high_error_rate"]
    assert alerts[0].severity == "critical"
    assert alerts[0].threshold == 5.0
    assert "12.50%" in alerts[0].message


def test_slow_p95_and_memory_alerts():
    alerts = evaluate_alerts(_snapshot(p95=2500, memory_percent=95), THRESHOLDS)
    assert {a.name for a in alerts} == {"slow_response_time", "high_memory_usage"}
    assert all(a.severity == "warning" for a in alerts)


def test_job_failure_alert_only_after_jobs_ran():
    assert evaluate_alerts(_snapshot(jobs_total=0, job_success=0), THRESHOLDS) == []
    alerts = evaluate_alerts(_snapshot(jobs_total=10, job_success=80), THRESHOLDS)
    assert [a.name for a in alerts] == ["high_job_failure_rate"]
    assert alerts[0].value == 20


def test_alert_to_dict():
    alert = evaluate_alerts(_snapshot(error_rate=50), THRESHOLDS)[0].to_dict()
    assert alert["status"] == "firing"
    assert alert["timestamp"]


def test_status_operational():
    status = system_status(_snapshot(), upstream_ok=True, thresholds=THRESHOLDS)
    assert status["overall"] == "operational"
    assert status["components"]["compliance_api"]["status"] == "operational"


def test_status_degraded_on_error_rate():
    status = system_status(_snapshot(error_rate=9), upstream_ok=True, thresholds=THRESHOLDS)
    assert status["overall"] == "degraded_performance"
    assert "Error rate elevated" in status["components"]["api"]["message"]


def test_status_major_outage_wins():
    status = system_status(_snapshot(p95=5000), upstream_ok=False, thresholds=THRESHOLDS)
    assert status["overall"] == "major_outage"
    assert status["components"]["api"]["status"] == "degraded_performance"
