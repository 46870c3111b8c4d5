"""In-memory stand-ins for the Autotask client and the service context."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from autotask_mcp.errors import RemoteOperationError
from autotask_mcp.pagination import PaginationConfig, resolve_pagination


class FakeClient:
    """Records calls and replays canned query responses in order."""

    def __init__(self, pages: list[Any] | None = None) -> None:
        self.pages = list(pages or [])
        self.queries: list[dict[str, Any]] = []
        self.created: list[dict[str, Any]] = []
        self.updated: list[dict[str, Any]] = []
        self.records: dict[tuple[str, int], dict[str, Any]] = {}
        self.error: Exception | None = None
        self.next_id = 1000

    async def query(
        self,
        entity: str,
        filters: list[Any],
        *,
        max_records: int,
        include_fields: list[str] | None = None,
    ) -> Any:
        if self.error is not None:
            raise self.error
        self.queries.append(
            {
                "entity": entity,
                "filters": list(filters),
                "max_records": max_records,
                "include_fields": include_fields,
            }
        )
        if not self.pages:
            return {"items": [], "pageDetails": {"count": 0}}
        return self.pages.pop(0)

    async def get(self, entity: str, entity_id: int) -> dict[str, Any] | None:
        if self.error is not None:
            raise self.error
        return self.records.get((entity, entity_id))

    async def create(
        self, entity: str, payload: dict[str, Any], *, parent: tuple[str, int] | None = None
    ) -> int:
        if self.error is not None:
            raise self.error
        self.created.append({"entity": entity, "payload": payload, "parent": parent})
        self.next_id += 1
        return self.next_id

    async def update(self, entity: str, payload: dict[str, Any]) -> int:
        if self.error is not None:
            raise self.error
        self.updated.append({"entity": entity, "payload": payload})
        return int(payload["id"])


class FakeContext:
    def __init__(self, client: FakeClient) -> None:
        self.client = client
        self.log = structlog.get_logger("tests.services")
        self.endpoints: list[str] = []

    def get_client(self) -> FakeClient:
        return self.client

    async def run(self, request: Callable[[], Awaitable[Any]], endpoint: str) -> Any:
        self.endpoints.append(endpoint)
        return await request()

    def resolve_pagination(self, page_size: int | None, default_page_size: int) -> PaginationConfig:
        return resolve_pagination(page_size, default_page_size)

    def map_error(self, exc: Exception, operation: str) -> RemoteOperationError:
        return RemoteOperationError(operation=operation, message=str(exc), code="MAPPED")


def items(start: int, count: int, **extra: Any) -> list[dict[str, Any]]:
    return [{"id": start + i, **extra} for i in range(count)]


def page(start: int, count: int, **extra: Any) -> dict[str, Any]:
    return {"items": items(start, count, **extra), "pageDetails": {"count": count}}
