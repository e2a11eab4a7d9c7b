"""Process-wide application, infrastructure and business metrics.

Counters, gauges and histograms keyed by metric name plus label set, with a
bounded window of request durations for percentile reporting. Output is
available as Prometheus text exposition or a JSON snapshot.
"""

import math
import os
import re
import resource
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

from rto_dashboard.config import settings

Labels = dict[str, str] | None

HISTOGRAM_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, math.inf)

DEFAULT_METRICS = (
    # Application
    ("http_requests_total", "counter", "Total HTTP requests"),
    ("http_request_duration_seconds", "histogram", "HTTP request duration in seconds"),
    ("http_errors_total", "counter", "Total HTTP errors"),
    # Business
    ("active_users_total", "gauge", "Total active users"),
    ("feedback_submissions_total", "counter", "Total feedback submissions"),
    ("feedback_analyses_total", "counter", "Total feedback sentiment analyses"),
    ("policy_views_total", "counter", "Total policy views"),
    # Background jobs
    ("background_jobs_total", "counter", "Total background jobs"),
    ("background_jobs_failed_total", "counter", "Total failed background jobs"),
    ("background_jobs_success_rate", "gauge", "Background job success rate percentage"),
    # Infrastructure
    ("process_cpu_usage_percent", "gauge", "Process CPU usage percentage"),
    ("process_memory_peak_rss_bytes", "gauge", "Peak resident set size of the process in bytes"),
    ("process_uptime_seconds", "gauge", "Process uptime in seconds"),
)

_UUID_SEGMENT = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
_NUMERIC_SEGMENT = re.compile(r"^\d+$")
_HYPHENATED_ID_SEGMENT = re.compile(r"^(?=.*\d)[A-Za-z0-9]+(?:-[A-Za-z0-9]+)+$")
_OPAQUE_ID_SEGMENT = re.compile(r"^(?=.*\d)[A-Za-z0-9_]{20,}$")


def _is_identifier(segment: str) -> bool:
    return bool(
        _UUID_SEGMENT.match(segment)
        or _NUMERIC_SEGMENT.match(segment)
        or _HYPHENATED_ID_SEGMENT.match(segment)
        or _OPAQUE_ID_SEGMENT.match(segment)
    )


def normalize_path(path: str) -> str:
    """Replace id-like path segments with ``:id`` to bound label cardinality."""
    return "/".join(":id" if seg and _is_identifier(seg) else seg for seg in path.split("/"))


def _percentile(sorted_samples: list[float], p: float) -> float:
    index = math.ceil(p / 100 * len(sorted_samples)) - 1
    return sorted_samples[max(0, index)]


def _escape_label_value(value) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_labels(labels: tuple[tuple[str, str], ...]) -> str:
    return ",".join(f'{k}="{_escape_label_value(v)}"' for k, v in labels)


def _format_value(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class MetricInfo:
    name: str
    type: str
    help: str


@dataclass
class Histogram:
    count: int = 0
    sum: float = 0.0
    buckets: dict[float, int] = field(
        default_factory=lambda: {b: 0 for b in HISTOGRAM_BUCKETS}
    )

    def observe(self, value: float) -> None:
        self.count += 1
        self.sum += value
        for bound in self.buckets:
            if value <= bound:
                self.buckets[bound] += 1


class MetricsAggregator:
    """In-memory metrics store.

    Every public method takes the instance lock, so request handlers running
    in FastAPI's thread pool and the event loop can share one aggregator.
    """

    def __init__(
        self,
        max_samples: int | None = None,
        error_status_threshold: int | None = None,
    ) -> None:
        self._max_samples = settings.metrics_max_samples if max_samples is None else max_samples
        self._error_threshold = (
            settings.error_status_threshold
            if error_status_threshold is None else error_status_threshold
        )
        self._lock = threading.Lock()
        self._init_state()

    def _init_state(self) -> None:
        self._registry: dict[str, MetricInfo] = {}
        self._counters: dict[str, dict[tuple, float]] = {}
        self._gauges: dict[str, dict[tuple, float]] = {}
        self._histograms: dict[str, dict[tuple, Histogram]] = {}
        self._samples: deque[float] = deque(maxlen=self._max_samples)
        self._request_count = 0
        self._error_count = 0
        self._start_time = time.monotonic()
        self._cpu_start = time.process_time()
        for name, metric_type, help_text in DEFAULT_METRICS:
            self._register(name, metric_type, help_text)

    def _register(self, name: str, metric_type: str, help_text: str) -> None:
        if name not in self._registry:
            self._registry[name] = MetricInfo(name=name, type=metric_type, help=help_text)

    @staticmethod
    def _key(labels: Labels) -> tuple:
        return tuple(sorted((labels or {}).items()))

    # ── Counters / gauges ────────────────────────────────────────
    def _increment(self, name: str, delta: float, labels: Labels) -> None:
        self._register(name, "counter", f"Custom counter: {name}")
        series = self._counters.setdefault(name, {})
        key = self._key(labels)
        series[key] = series.get(key, 0) + delta

    def _set(self, name: str, value: float, labels: Labels) -> None:
        self._register(name, "gauge", f"Custom gauge: {name}")
        self._gauges.setdefault(name, {})[self._key(labels)] = value

    def increment_counter(self, name: str, delta: float = 1, labels: Labels = None) -> None:
        with self._lock:
            self._increment(name, delta, labels)

    def set_gauge(self, name: str, value: float, labels: Labels = None) -> None:
        with self._lock:
            self._set(name, value, labels)

    def get_counter(self, name: str, labels: Labels = None) -> float:
        """Sum of a counter across label sets, or a single series when labels are given."""
        with self._lock:
            series = self._counters.get(name, {})
            if labels is not None:
                return series.get(self._key(labels), 0)
            return sum(series.values())

    def get_gauge(self, name: str, labels: Labels = None) -> float:
        with self._lock:
            return self._gauges.get(name, {}).get(self._key(labels), 0)

    def series(self, name: str) -> dict[tuple, float]:
        with self._lock:
            return dict(self._counters.get(name) or self._gauges.get(name) or {})

    # ── Requests ─────────────────────────────────────────────────
    def record_request(self, method: str, path: str, status_code: int, duration_ms: float) -> None:
        route = normalize_path(path)
        with self._lock:
            self._request_count += 1
            self._increment(
                "http_requests_total", 1,
                {"method": method, "path": route, "status": str(status_code)},
            )
            histogram = self._histograms.setdefault("http_request_duration_seconds", {})
            key = self._key({"method": method, "path": route})
            histogram.setdefault(key, Histogram()).observe(duration_ms / 1000)

            if status_code >= self._error_threshold:
                self._error_count += 1
                self._increment(
                    "http_errors_total", 1,
                    {"method": method, "path": route, "status": str(status_code)},
                )

            self._samples.append(float(duration_ms))

    def get_error_rate(self) -> float:
        with self._lock:
            if self._request_count == 0:
                return 0.0
            return self._error_count / self._request_count * 100

    def get_request_rate(self) -> float:
        with self._lock:
            uptime = time.monotonic() - self._start_time
            if uptime <= 0:
                return 0.0
            return self._request_count / uptime

    def get_response_time_percentiles(self) -> dict:
        with self._lock:
            samples = sorted(self._samples)
        if not samples:
            return {"p50": 0, "p95": 0, "p99": 0, "mean": 0, "count": 0}
        return {
            "p50": _percentile(samples, 50),
            "p95": _percentile(samples, 95),
            "p99": _percentile(samples, 99),
            "mean": sum(samples) / len(samples),
            "count": len(samples),
        }

    # ── Infrastructure ───────────────────────────────────────────
    def update_infrastructure_metrics(self) -> dict:
        with self._lock:
            uptime = time.monotonic() - self._start_time
            cpu_seconds = time.process_time() - self._cpu_start
            cpu_percent = min(100.0, cpu_seconds / uptime * 100) if uptime > 0 else 0.0
            # ru_maxrss is the peak RSS, in kilobytes on Linux
            rss_bytes = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss * 1024
            self._set("process_cpu_usage_percent", cpu_percent, None)
            self._set("process_memory_peak_rss_bytes", rss_bytes, None)
            self._set("process_uptime_seconds", uptime, None)
        return {
            "cpu_percent": cpu_percent,
            "rss_bytes": rss_bytes,
            "memory_percent": _memory_percent(rss_bytes),
            "uptime": uptime,
        }

    # ── Export ───────────────────────────────────────────────────
    def export_prometheus(self) -> str:
        self.update_infrastructure_metrics()
        lines: list[str] = []
        with self._lock:
            for name, info in self._registry.items():
                if info.type == "histogram":
                    continue
                lines.append(f"# HELP {name} {info.help}")
                lines.append(f"# TYPE {name} {info.type}")
                store = self._counters if info.type == "counter" else self._gauges
                series = store.get(name) or {(): 0}
                for labels, value in series.items():
                    label_str = _format_labels(labels)
                    if label_str:
                        lines.append(f"{name}{{{label_str}}} {_format_value(value)}")
                    else:
                        lines.append(f"{name} {_format_value(value)}")

            for name, series in self._histograms.items():
                info = self._registry[name]
                lines.append(f"# HELP {name} {info.help}")
                lines.append(f"# TYPE {name} histogram")
                for labels, hist in series.items():
                    label_str = _format_labels(labels)
                    for bound, count in hist.buckets.items():
                        le = "+Inf" if bound == math.inf else str(bound)
                        bucket_labels = f'{label_str},le="{le}"' if label_str else f'le="{le}"'
                        lines.append(f"{name}_bucket{{{bucket_labels}}} {count}")
                    suffix = f"{{{label_str}}}" if label_str else ""
                    lines.append(f"{name}_sum{suffix} {_format_value(hist.sum)}")
                    lines.append(f"{name}_count{suffix} {hist.count}")

        return "\n".join(lines) + "\n"

    def export_json(self) -> dict:
        infra = self.update_infrastructure_metrics()
        percentiles = self.get_response_time_percentiles()
        error_rate = self.get_error_rate()
        request_rate = self.get_request_rate()

        jobs_total = self.get_counter("background_jobs_total")
        jobs_failed = self.get_counter("background_jobs_failed_total")
        with self._lock:
            total_requests = self._request_count
            total_errors = self._error_count

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": infra["uptime"],
            "application": {
                "request_rate": request_rate,
                "total_requests": total_requests,
                "total_errors": total_errors,
                "error_rate": error_rate,
                "response_time": {
                    "p50": percentiles["p50"],
                    "p95": percentiles["p95"],
                    "p99": percentiles["p99"],
                    "mean": percentiles["mean"],
                },
            },
            "infrastructure": {
                "cpu": {"usage": infra["cpu_percent"]},
                "memory": {
                    "rss": infra["rss_bytes"],
                    "percent": infra["memory_percent"],
                },
                "uptime": infra["uptime"],
            },
            "business": {
                "active_users": self.get_gauge("active_users_total"),
                "feedback_submissions": self.get_counter("feedback_submissions_total"),
                "feedback_analyses": self.get_counter("feedback_analyses_total"),
                "policy_views": self.get_counter("policy_views_total"),
            },
            "background_jobs": {
                "total": jobs_total,
                "failed": jobs_failed,
                "success_rate": self.get_gauge("background_jobs_success_rate")
                if jobs_total else 100.0,
            },
        }

    def reset(self) -> None:
        with self._lock:
            self._init_state()


def _memory_percent(rss_bytes: float) -> float:
    try:
        total = os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (ValueError, OSError, AttributeError):
        return 0.0
    return rss_bytes / total * 100 if total > 0 else 0.0


metrics = MetricsAggregator()


def get_metrics() -> MetricsAggregator:
    """FastAPI dependency returning the process-wide aggregator."""
    return metrics
