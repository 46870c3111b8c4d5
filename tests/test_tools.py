from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable

import httpx
import pytest
from mcp.server.fastmcp.exceptions import ToolError

from autotask_mcp.autotask_client import AutotaskClient
from autotask_mcp.context import AutotaskServiceContext
from autotask_mcp.errors import InputValidationError, RemoteOperationError
from autotask_mcp.mcp_server import AppContext, create_mcp_server
from autotask_mcp.rate_limiter import RateLimiter, ThresholdInfo
from autotask_mcp.services import SearchPage, Services
from autotask_mcp.settings import Settings
from autotask_mcp.tools import MODULE_TOOLS, build_registry, dispatch, search_message

Route = Callable[[httpx.Request], httpx.Response]


class FakeAutotask:
    """Routes requests by (method, path suffix) and keeps what was sent."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, response: Route) -> None:
        self.routes[(method, path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/atservicesrest/v1.0")
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, text=f"no route for {request.method} {path}")
        return route(request)


@pytest.fixture
def autotask() -> FakeAutotask:
    return FakeAutotask()


@pytest.fixture
async def app(autotask_env: None, autotask: FakeAutotask) -> AsyncIterator[AppContext]:
    settings = Settings()
    client = AutotaskClient(
        base_url=str(settings.autotask_api_url),
        username=settings.autotask_username,
        secret=settings.autotask_secret,
        integration_code=settings.autotask_integration_code,
        transport=httpx.MockTransport(autotask),
    )
    context = AutotaskServiceContext(client, RateLimiter())
    yield AppContext(
        settings=settings,
        client=client,
        context=context,
        services=Services.create(context),
        api_url=str(settings.autotask_api_url),
    )
    await client.aclose()


def rows(count: int) -> Route:
    return lambda _: httpx.Response(
        200, json={"items": [{"id": i + 1} for i in range(count)], "pageDetails": {"count": count}}
    )


def test_search_messages() -> None:
    assert search_message(SearchPage([{}] * 3, 50, False, False), "companies", "x") == (
        "Found 3 companies"
    )
    bounded = search_message(SearchPage([{}] * 50, 50, False, False), "companies", "searchTerm")
    assert bounded.startswith("Returning 50 companies (results may be truncated).")
    assert "pageSize: -1" in bounded
    capped = search_message(SearchPage([{}] * 100, 100, True, False), "projects", "status")
    assert "API max: 100" in capped
    safety = search_message(SearchPage([{}] * 15000, 15000, True, True), "contacts", "companyID")
    assert "safety limit of 15000" in safety


def test_registry_respects_modules() -> None:
    registry = build_registry(["system", "ticket"])
    assert "autotask_test_connection" in registry
    assert "autotask_create_ticket_note" in registry
    assert "autotask_search_companies" not in registry

    everything = build_registry(MODULE_TOOLS)
    assert all(name.startswith("autotask_") for name in everything)
    assert {spec.module for spec in everything.values()} == set(MODULE_TOOLS)


async def test_unknown_tool(app: AppContext) -> None:
    with pytest.raises(ToolError, match="Unknown tool: autotask_nope"):
        await dispatch(build_registry(["system"]), "autotask_nope", {}, app)


async def test_unknown_field_fails_before_any_request(
    app: AppContext, autotask: FakeAutotask
) -> None:
    registry = build_registry(["company"])
    with pytest.raises(InputValidationError, match="serchTerm"):
        await dispatch(registry, "autotask_search_companies", {"serchTerm": "acme"}, app)
    assert autotask.requests == []


async def test_search_companies_found(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("POST", "/Companies/query", rows(3))
    result = await dispatch(
        build_registry(["company"]), "autotask_search_companies", {"searchTerm": "acme"}, app
    )
    assert result.message == "Found 3 companies"
    assert [r["id"] for r in result.data] == [1, 2, 3]

    body = json.loads(autotask.requests[0].content)
    assert body["MaxRecords"] == 50
    assert body["filter"] == [{"op": "contains", "field": "companyName", "value": "acme"}]


async def test_search_full_page_suggests_unlimited(
    app: AppContext, autotask: FakeAutotask
) -> None:
    autotask.on("POST", "/Contacts/query", rows(10))
    result = await dispatch(
        build_registry(["contact"]), "autotask_search_contacts", {"pageSize": 10}, app
    )
    assert result.message.startswith("Returning 10 contacts (results may be truncated).")


async def test_create_ticket_note(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("POST", "/Tickets/12/Notes", lambda _: httpx.Response(200, json={"itemId": 77}))
    result = await dispatch(
        build_registry(["ticket"]),
        "autotask_create_ticket_note",
        {"ticketId": 12, "description": "  Replaced the switch  ", "publish": 2},
        app,
    )
    assert result.data == {"id": 77}
    assert result.message == "Successfully created ticket note with ID: 77"
    assert json.loads(autotask.requests[0].content) == {
        "Description": "Replaced the switch",
        "Publish": 2,
        "NoteType": 1,
    }


async def test_update_ticket(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("PATCH", "/Tickets", lambda _: httpx.Response(200, json={"itemId": 42}))
    result = await dispatch(
        build_registry(["ticket"]),
        "autotask_update_ticket",
        {"ticketId": 42, "status": 5},
        app,
    )
    assert result.message == "Ticket 42 updated successfully"
    assert result.data == {"id": 42, "updatedFields": ["status"]}
    assert json.loads(autotask.requests[0].content) == {"id": 42, "Status": 5}


async def test_get_missing_resource(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("GET", "/Resources/9", lambda _: httpx.Response(200, json={"item": None}))
    result = await dispatch(
        build_registry(["resource"]), "autotask_get_resource", {"resourceId": 9}, app
    )
    assert result.data is None
    assert result.message == "Resource not found"


async def test_remote_error_is_mapped(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("GET", "/Tickets/5", lambda _: httpx.Response(403, text="Forbidden"))
    with pytest.raises(RemoteOperationError) as exc_info:
        await dispatch(
            build_registry(["ticket"]), "autotask_get_ticket_details", {"ticketID": 5}, app
        )
    assert exc_info.value.code == "FORBIDDEN"
    assert exc_info.value.status_code == 403


async def test_connection_updates_rate_limiter(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on(
        "GET",
        "/ThresholdInformation",
        lambda _: httpx.Response(
            200,
            json={
                "externalRequestThreshold": 10000,
                "requestThresholdTimeframe": 60,
                "currentTimeframeRequestCount": 120,
            },
        ),
    )
    registry = build_registry(["system"])
    result = await dispatch(registry, "autotask_test_connection", None, app)
    assert result.message == "Successfully connected to Autotask API"
    assert result.data["request_count"] == 120

    status = await dispatch(registry, "autotask_get_rate_limit_status", {}, app)
    assert status.data["threshold"]["requestLimit"] == 10000
    assert status.message.startswith("API usage: 120/10000")


async def test_connection_lifts_a_blocked_gate(app: AppContext, autotask: FakeAutotask) -> None:
    limiter = app.context.rate_limiter
    limiter.update_threshold(ThresholdInfo(request_count=9990, request_limit=10000))
    autotask.on(
        "GET",
        "/ThresholdInformation",
        lambda _: httpx.Response(
            200, json={"externalRequestThreshold": 10000, "currentTimeframeRequestCount": 5}
        ),
    )
    result = await dispatch(build_registry(["system"]), "autotask_test_connection", None, app)

    assert result.data["request_count"] == 5
    assert not limiter.blocked


async def test_server_lists_closed_schemas_with_annotations(autotask_env: None) -> None:
    server = create_mcp_server(Settings())
    tools = {tool.name: tool for tool in await server.list_tools()}

    search = tools["autotask_search_tickets"]
    assert search.inputSchema["additionalProperties"] is False
    assert "pageSize" in search.inputSchema["properties"]
    assert search.annotations is not None
    assert search.annotations.readOnlyHint is True

    create = tools["autotask_create_ticket"]
    assert create.annotations is not None
    assert create.annotations.readOnlyHint is False
    assert create.annotations.idempotentHint is False


async def test_disabled_modules_are_not_listed(
    autotask_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("AUTOTASK_DISABLED_TOOLS", "quote, expense")
    server = create_mcp_server(Settings())
    names = {tool.name for tool in await server.list_tools()}
    assert "autotask_search_quotes" not in names
    assert "autotask_get_expense_report" not in names
    assert "autotask_search_tickets" in names


async def test_get_company(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on(
        "GET", "/Companies/0", lambda _: httpx.Response(200, json={"item": {"id": 0}})
    )
    result = await dispatch(
        build_registry(["company"]), "autotask_get_company", {"companyId": 0}, app
    )
    assert result.data == {"id": 0}
    assert result.message == "Company retrieved successfully"


async def test_search_tasks_caps_at_api_max(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("POST", "/Tasks/query", rows(100))
    result = await dispatch(
        build_registry(["task"]), "autotask_search_tasks", {"projectID": 4, "pageSize": -1}, app
    )
    assert result.message == (
        "Returning 100 tasks (results may be truncated, API max: 100). Add filters "
        "(searchTerm, projectID, status, assignedResourceID) to narrow results."
    )
    body = json.loads(autotask.requests[0].content)
    assert body["MaxRecords"] == 100
    assert body["filter"] == [{"op": "eq", "field": "projectID", "value": 4}]


async def test_create_task(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("POST", "/Projects/4/Tasks", lambda _: httpx.Response(200, json={"itemId": 31}))
    result = await dispatch(
        build_registry(["task"]),
        "autotask_create_task",
        {"projectID": 4, "title": "Cut over DNS", "status": 1, "taskType": 1},
        app,
    )
    assert result.message == "Successfully created task with ID: 31"
    assert json.loads(autotask.requests[0].content) == {
        "projectID": 4,
        "title": "Cut over DNS",
        "status": 1,
        "taskType": 1,
    }


async def test_create_time_entry(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("POST", "/TimeEntries", lambda _: httpx.Response(200, json={"itemId": 9}))
    result = await dispatch(
        build_registry(["time"]),
        "autotask_create_time_entry",
        {
            "resourceID": 3,
            "ticketID": 12,
            "dateWorked": "2025-03-01",
            "hoursWorked": 1.5,
            "summaryNotes": "Swapped PSU",
        },
        app,
    )
    assert result.data == {"id": 9}
    assert result.message == "Successfully created time entry with ID: 9"
    assert json.loads(autotask.requests[0].content)["ticketID"] == 12


async def test_time_entry_needs_exactly_one_target(
    app: AppContext, autotask: FakeAutotask
) -> None:
    base = {"resourceID": 3, "dateWorked": "2025-03-01", "hoursWorked": 1, "summaryNotes": "x"}
    registry = build_registry(["time"])
    for extra in ({}, {"ticketID": 1, "taskID": 2}):
        with pytest.raises(InputValidationError, match="exactly one of ticketID or taskID"):
            await dispatch(registry, "autotask_create_time_entry", {**base, **extra}, app)
    assert autotask.requests == []


async def test_search_invoices(app: AppContext, autotask: FakeAutotask) -> None:
    autotask.on("POST", "/Invoices/query", rows(2))
    result = await dispatch(
        build_registry(["invoice"]),
        "autotask_search_invoices",
        {"companyID": 0, "invoiceNumber": "INV-1001"},
        app,
    )
    assert result.message == "Found 2 invoices"
    body = json.loads(autotask.requests[0].content)
    assert body["MaxRecords"] == 25
    assert body["filter"] == [
        {"op": "eq", "field": "companyID", "value": 0},
        {"op": "eq", "field": "invoiceNumber", "value": "INV-1001"},
    ]
