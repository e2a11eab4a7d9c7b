"""Async HTTP client for the RTO compliance REST API."""

import logging

import httpx

from rto_dashboard.config import settings

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def list_total(body: dict) -> int:
    """Total row count from a paginated list body, falling back to the page length."""
    for key in ("meta", "pagination"):
        meta = body.get(key) or {}
        if meta.get("total") is not None:
            return int(meta["total"])
    return len(body.get("data") or [])


class ComplianceClient:
    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> None:
        self._base_url = (base_url or settings.compliance_api_url).rstrip("/")
        self._bearer_token: str | None = access_token or settings.compliance_api_token or None
        self._email = email if email is not None else settings.compliance_api_email
        self._password = password if password is not None else settings.compliance_api_password
        self._client = httpx.AsyncClient(timeout=30.0)

    async def _authenticate(self) -> str:
        if not (self._email and self._password):
            raise RuntimeError("Compliance API credentials are not configured")
        resp = await self._client.post(
            f"{self._base_url}/api/v1/auth/login",
            json={"email": self._email, "password": self._password},
        )
        resp.raise_for_status()
        self._bearer_token = resp.json()["access_token"]
        logger.info("Authenticated with compliance API as %s", self._email)
        return self._bearer_token

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self._bearer_token}"}

    def _can_login(self) -> bool:
        return bool(self._email and self._password)

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        if not self._bearer_token and self._can_login():
            await self._authenticate()
        url = f"{self._base_url}{path}"
        resp = await self._client.request(method, url, headers=self._headers(), **kwargs)
        if resp.status_code == 401 and self._can_login():
            await self._authenticate()
            resp = await self._client.request(method, url, headers=self._headers(), **kwargs)
        resp.raise_for_status()
        return resp.json()

    async def _list(self, path: str, per_page: int, filters: dict) -> dict:
        params = {"perPage": min(per_page, MAX_PAGE_SIZE), **filters}
        return await self._request("GET", path, params=params)

    # ── Lists ───────────────────────────────────────────────────────
    async def list_standards(self, per_page: int = MAX_PAGE_SIZE, **filters) -> dict:
        return await self._list("/api/v1/standards", per_page, filters)

    async def list_policies(self, per_page: int = MAX_PAGE_SIZE, **filters) -> dict:
        return await self._list("/api/v1/policies", per_page, filters)

    async def list_users(self, per_page: int = MAX_PAGE_SIZE, **filters) -> dict:
        return await self._list("/api/v1/users", per_page, filters)

    async def list_training_products(self, per_page: int = MAX_PAGE_SIZE, **filters) -> dict:
        return await self._list("/api/v1/training-products", per_page, filters)

    async def list_feedback(self, per_page: int = MAX_PAGE_SIZE, **filters) -> dict:
        return await self._list("/api/v1/feedback", per_page, filters)

    # ── Feedback ────────────────────────────────────────────────────
    async def update_feedback(self, feedback_id: str, fields: dict) -> dict:
        return await self._request("PATCH", f"/api/v1/feedback/{feedback_id}", json=fields)

    async def ping(self) -> bool:
        try:
            resp = await self._client.get(f"{self._base_url}/health")
        except httpx.HTTPError as e:
            logger.warning("Compliance API health check failed: %s", e)
            return False
        return resp.status_code == 200

    async def close(self) -> None:
        await self._client.aclose()


# ── Default singleton (used by FastAPI routes and scheduled jobs) ───
compliance_client = ComplianceClient()


def get_client() -> ComplianceClient:
    return compliance_client
