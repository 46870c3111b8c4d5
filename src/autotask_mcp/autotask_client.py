"""Async client for the Autotask REST API."""

from __future__ import annotations

from typing import Any

import httpx

from .errors import AutotaskApiError
from .filters import Filter, ensure_filter, to_wire

ZONE_INFORMATION_URL = "https://webservices.autotask.net/atservicesrest/v1.0/zoneInformation"
API_PATH = "/atservicesrest/v1.0"


async def discover_zone_url(
    username: str,
    *,
    timeout_seconds: float = 15.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Look up the zone (webservicesN) base URL for an API user."""
    async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
        resp = await client.get(ZONE_INFORMATION_URL, params={"user": username})
        if resp.status_code >= 400:
            raise AutotaskApiError(
                status_code=resp.status_code,
                method="GET",
                url=str(resp.request.url),
                response_text=(resp.text or "").strip(),
            )
        data = resp.json()
    url = data.get("url") if isinstance(data, dict) else None
    if not url:
        raise AutotaskApiError(
            status_code=resp.status_code,
            method="GET",
            url=ZONE_INFORMATION_URL,
            response_text=f"No zone URL for user {username!r}",
        )
    return str(url)


def api_base_url(url: str) -> str:
    """Normalize a zone URL to the versioned REST root."""
    url = url.rstrip("/")
    if url.endswith(API_PATH):
        return url
    if url.endswith("/atservicesrest"):
        return url + "/v1.0"
    return url + API_PATH


class AutotaskClient:
    """Thin wrapper around Autotask's REST API.

    Entity names are the REST resource names (``Companies``, ``Tickets``,
    ``Resources`` ...). Child collections such as ticket notes are created
    through their parent (``Tickets/{id}/Notes``) and queried through their
    own entity (``TicketNotes``).
    """

    def __init__(
        self,
        *,
        base_url: str,
        username: str,
        secret: str,
        integration_code: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=api_base_url(base_url),
            headers={
                "ApiIntegrationCode": integration_code,
                "UserName": username,
                "Secret": secret,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        method = method.upper()
        url_path = path if path.startswith("/") else f"/{path}"

        resp = await self._client.request(method, url_path, params=params, json=json_body)
        if resp.status_code >= 400:
            raise AutotaskApiError(
                status_code=resp.status_code,
                method=method,
                url=str(resp.request.url),
                response_text=(resp.text or "").strip(),
            )

        data = resp.json()
        if not isinstance(data, dict):
            raise AutotaskApiError(
                status_code=resp.status_code,
                method=method,
                url=str(resp.request.url),
                response_text=f"Unexpected JSON type: {type(data).__name__}",
            )
        return data

    async def get(self, entity: str, entity_id: int) -> dict[str, Any] | None:
        """Fetch one record; a response without ``item`` means not found."""
        data = await self.request_json("GET", f"/{entity}/{entity_id}")
        item = data.get("item")
        return item if isinstance(item, dict) else None

    async def query(
        self,
        entity: str,
        filters: list[Filter],
        *,
        max_records: int,
        include_fields: list[str] | None = None,
    ) -> dict[str, Any]:
        """POST ``/{entity}/query`` and return the raw response body.

        An empty filter list is replaced by ``id >= 0``; the API rejects an
        empty filter array.
        """
        body: dict[str, Any] = {
            "filter": to_wire(ensure_filter(filters)),
            "MaxRecords": max_records,
        }
        if include_fields:
            body["IncludeFields"] = include_fields
        return await self.request_json("POST", f"/{entity}/query", json_body=body)

    async def list(
        self,
        entity: str,
        filters: list[Filter],
        *,
        max_records: int,
        include_fields: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        data = await self.query(
            entity, filters, max_records=max_records, include_fields=include_fields
        )
        items = data.get("items")
        return list(items) if isinstance(items, list) else []

    async def create(
        self,
        entity: str,
        payload: dict[str, Any],
        *,
        parent: tuple[str, int] | None = None,
    ) -> int:
        """Create a record and return its new id."""
        path = f"/{entity}" if parent is None else f"/{parent[0]}/{parent[1]}/{entity}"
        data = await self.request_json("POST", path, json_body=payload)
        return self._item_id(data, "POST", path)

    async def update(self, entity: str, payload: dict[str, Any]) -> int:
        """PATCH a record; ``payload`` must carry its ``id``."""
        path = f"/{entity}"
        data = await self.request_json("PATCH", path, json_body=payload)
        return self._item_id(data, "PATCH", path)

    async def threshold_info(self) -> dict[str, Any]:
        return await self.request_json("GET", "/ThresholdInformation")

    @staticmethod
    def _item_id(data: dict[str, Any], method: str, path: str) -> int:
        item_id = data.get("itemId")
        if not isinstance(item_id, int):
            raise AutotaskApiError(
                status_code=200,
                method=method,
                url=path,
                response_text=f"Response has no itemId: {data!r}",
            )
        return item_id
