from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import BaseModel

from reportsync.core.config import Settings
from reportsync.core.errors import RemoteUnavailableError
from reportsync.models.category import Category

logger = logging.getLogger(__name__)


class RemoteResponse(BaseModel):
    success: bool = False
    data: Any = None
    message: Optional[str] = None


class RemoteService(Protocol):
    async def create_report(self, payload: Dict[str, Any]) -> RemoteResponse: ...

    async def list_reports(self, filters: Optional[Dict[str, str]] = None) -> RemoteResponse: ...

    async def list_map_reports(self, filters: Optional[Dict[str, str]] = None) -> RemoteResponse: ...

    async def list_my_reports(self) -> RemoteResponse: ...

    async def get_category(self, category_id: str) -> Optional[Category]: ...

    async def list_categories(self) -> List[Category]: ...

    async def health(self) -> bool: ...


class HttpRemoteService:
    """
    Backend client. Every reply is the envelope {success, data, message};
    transport failures and non-2xx answers raise RemoteUnavailableError.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"Content-Type": "application/json"}
        if settings.api_token:
            headers["Authorization"] = f"Bearer {settings.api_token}"
        self.client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.remote_timeout_seconds,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        await self.client.aclose()

    # -------------------------
    # Helpers
    # -------------------------
    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> RemoteResponse:
        try:
            r = await self.client.request(method, path, json=json, params=params or None)
        except httpx.HTTPError as exc:
            raise RemoteUnavailableError(f"{method} {path} failed: {exc!r}") from exc

        try:
            body = r.json()
        except ValueError:
            body = {}

        if r.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            raise RemoteUnavailableError(
                message or f"HTTP error! status: {r.status_code}",
                status_code=r.status_code,
            )

        if not isinstance(body, dict):
            raise RemoteUnavailableError(f"{method} {path} returned a non-envelope body")
        return RemoteResponse(**body)

    # -------------------------
    # Reports
    # -------------------------
    async def create_report(self, payload: Dict[str, Any]) -> RemoteResponse:
        return await self._request("POST", "/reports", json=payload)

    async def list_reports(self, filters: Optional[Dict[str, str]] = None) -> RemoteResponse:
        return await self._request("GET", "/reports", params=filters)

    async def list_map_reports(self, filters: Optional[Dict[str, str]] = None) -> RemoteResponse:
        return await self._request("GET", "/reports/mapa", params=filters)

    async def list_my_reports(self) -> RemoteResponse:
        return await self._request("GET", "/users/reports")

    # -------------------------
    # Categories
    # -------------------------
    async def get_category(self, category_id: str) -> Optional[Category]:
        try:
            res = await self._request("GET", f"/categories/{category_id}")
        except RemoteUnavailableError as exc:
            if exc.status_code == 404:
                return None
            raise
        if not res.success or not res.data:
            return None
        return Category.model_validate(res.data)

    async def list_categories(self) -> List[Category]:
        res = await self._request("GET", "/categories")
        if not res.success:
            raise RemoteUnavailableError(res.message or "category listing rejected")
        return [Category.model_validate(c) for c in (res.data or [])]

    async def health(self) -> bool:
        try:
            await self._request("GET", "/health")
        except RemoteUnavailableError:
            logger.info("API not reachable, running in offline mode")
            return False
        return True
