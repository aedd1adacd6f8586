"""Client for the external DTR (daily time record) employee API."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from app.core.config import Settings

logger = logging.getLogger(__name__)


class DtrApiError(Exception):
    pass


class DtrApiClient:
    def __init__(self) -> None:
        self.initialized = False
        self.base_url = ""
        self.token = ""
        self.timeout = 10

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.DTR_API_BASE_URL or not settings.DTR_API_TOKEN:
            logger.warning("DTR API credentials missing — DtrApiClient not initialized")
            return

        self.base_url = settings.DTR_API_BASE_URL.rstrip("/")
        self.token = settings.DTR_API_TOKEN
        self.timeout = settings.DTR_API_TIMEOUT
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False
        self.base_url = ""
        self.token = ""

    async def search_employees(self, search_term: str) -> list[dict[str, Any]]:
        try:
            response = await self._request("/api/employees", {"search": search_term})
        except Exception as e:
            logger.error("DTR API: Employee search failed (term=%r): %s", search_term, e)
            return []

        return response.get("data") or []

    async def get_employee_by_id(self, employee_id: int) -> dict[str, Any] | None:
        try:
            response = await self._request(f"/api/employees/{employee_id}")
        except Exception as e:
            logger.error("DTR API: Get employee by ID failed (id=%s): %s", employee_id, e)
            return None

        return response.get("data") or None

    async def list_employees(self) -> list[dict[str, Any]]:
        response = await self._request("/api/employees")
        return response.get("data") or []

    async def _request(self, endpoint: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        if not self.initialized:
            raise DtrApiError("DtrApiClient not initialized")

        url = f"{self.base_url}{endpoint}"
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, headers=headers, params=params) as response:
                if 200 <= response.status < 300:
                    return await response.json()

                if response.status == 404:
                    return {"data": []}

                if response.status in (401, 403):
                    logger.error("DTR API: Authentication failed (status=%d, endpoint=%s)", response.status, endpoint)
                    raise DtrApiError("DTR API authentication failed")

                raise DtrApiError(f"DTR API request failed: {response.status}")

    async def check_connection(self) -> bool:
        if not self.initialized:
            return False

        try:
            await self._request("/api/employees", {"search": ""})
            return True
        except Exception:
            logger.exception("DTR API connection check failed")
            return False


dtr_client = DtrApiClient()
