"""Shared test fixtures with mocked compliance API responses.

Mock data matches the compliance API list shape:
- list bodies are {"data": [...], "meta": {"total": ...}}
- dates are ISO-8601 strings with a trailing "Z"
"""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
import respx

from rto_dashboard.clients.compliance import ComplianceClient
from rto_dashboard.monitoring.metrics import metrics

MOCK_API_URL = "http://localhost:3000"

NOW = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


# ── Mock Data ────────────────────────────────────────────────────────

MOCK_STANDARDS = {
    "data": [
        {"id": "std-1", "code": "1.1", "title": "Training and assessment strategies"},
        {"id": "std-2", "code": "1.2", "title": "Trainer competency"},
        {"id": "std-3", "code": "1.3", "title": "Assessment validation"},
    ],
    "meta": {"page": 1, "perPage": 100, "total": 4, "totalPages": 1},
}

MOCK_POLICIES = {
    "data": [
        {"id": "pol-1", "title": "Complaints Policy", "reviewDate": _iso(NOW + timedelta(days=10))},
        {"id": "pol-2", "title": "Privacy Policy", "reviewDate": _iso(NOW + timedelta(days=30))},
        {"id": "pol-3", "title": "Assessment Policy", "reviewDate": _iso(NOW + timedelta(days=31))},
        {"id": "pol-4", "title": "Refund Policy", "reviewDate": _iso(NOW - timedelta(days=1))},
        {"id": "pol-5", "title": "Draft Policy", "reviewDate": None},
    ],
    "meta": {"page": 1, "perPage": 100, "total": 5, "totalPages": 1},
}

MOCK_USERS = {
    "data": [
        {"id": "usr-1", "name": "Alex Trainer", "status": "Active"},
        {"id": "usr-2", "name": "Sam Assessor", "status": "Active"},
    ],
    "meta": {"page": 1, "perPage": 100, "total": 2, "totalPages": 1},
}

MOCK_TRAINING_PRODUCTS = {
    "data": [
        {"id": "tp-1", "code": "BSB50420", "name": "Diploma of Leadership and Management"},
    ],
    "meta": {"page": 1, "perPage": 100, "total": 1, "totalPages": 1},
}

MOCK_FEEDBACK = {
    "data": [
        {
            "id": "fb-1", "type": "learner", "rating": 5,
            "comments": "Excellent trainer, very helpful and knowledgeable.",
            "sentiment": None, "themes": [],
            "submittedAt": _iso(NOW - timedelta(days=5)),
        },
        {
            "id": "fb-2", "type": "employer", "rating": 2,
            "comments": "The assessment was confusing and the schedule felt rushed.",
            "sentiment": None, "themes": [],
            "submittedAt": _iso(NOW - timedelta(days=40)),
        },
        {
            "id": "fb-3", "type": "learner", "rating": 4,
            "comments": "Good course.",
            "sentiment": 0.2, "themes": ["Course Content"],
            "submittedAt": _iso(NOW - timedelta(days=45)),
        },
        {
            "id": "fb-4", "type": "industry", "rating": None,
            "comments": None,
            "sentiment": None, "themes": [],
            "submittedAt": _iso(NOW - timedelta(days=2)),
        },
    ],
    "meta": {"page": 1, "perPage": 100, "total": 4, "totalPages": 1},
}


# ── Fixtures ─────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def mock_compliance_api():
    with respx.mock(base_url=MOCK_API_URL, assert_all_called=False) as respx_mock:
        respx_mock.post("/api/v1/auth/login").mock(
            return_value=httpx.Response(200, json={
                "access_token": "mock-jwt-token",
                "refresh_token": "mock-refresh-token",
                "expires_in": 900,
                "token_type": "Bearer",
            })
        )
        respx_mock.get("/health").mock(
            return_value=httpx.Response(200, json={"status": "ok"})
        )
        respx_mock.get("/api/v1/standards").mock(
            return_value=httpx.Response(200, json=MOCK_STANDARDS)
        )
        respx_mock.get("/api/v1/policies").mock(
            return_value=httpx.Response(200, json=MOCK_POLICIES)
        )
        respx_mock.get("/api/v1/users").mock(
            return_value=httpx.Response(200, json=MOCK_USERS)
        )
        respx_mock.get("/api/v1/training-products").mock(
            return_value=httpx.Response(200, json=MOCK_TRAINING_PRODUCTS)
        )
        respx_mock.get("/api/v1/feedback").mock(
            return_value=httpx.Response(200, json=MOCK_FEEDBACK)
        )
        respx_mock.patch(path__regex=r"^/api/v1/feedback/(?P<feedback_id>[\w-]+)$").mock(
            side_effect=lambda request, feedback_id: httpx.Response(
                200, json={"id": feedback_id}
            )
        )

        yield respx_mock


@pytest.fixture
async def client(mock_compliance_api):
    c = ComplianceClient(
        access_token="test-token",
        base_url=MOCK_API_URL,
        email="admin@example.com",
        password="secret",
    )
    yield c
    await c.close()


@pytest.fixture
def now() -> datetime:
    return NOW
