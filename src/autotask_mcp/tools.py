"""Tool registry and dispatch.

Every tool is a ``ToolSpec``: a closed input schema plus an async handler.
``dispatch`` validates the raw arguments against the schema, hands the
validated model to the handler and returns a ``ToolResult``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from mcp.server.fastmcp.exceptions import ToolError

from . import schemas as s
from .errors import AutotaskApiError, InputValidationError
from .models import ConnectionStatus, CreatedRecord, ToolResult
from .rate_limiter import ThresholdInfo
from .services import SearchPage, Services
from .validation import ToolInput, validate_input

if TYPE_CHECKING:
    from .mcp_server import AppContext

log = structlog.get_logger(__name__)

Handler = Callable[[Any, "AppContext"], Awaitable[ToolResult]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    module: str
    title: str
    description: str
    schema: type[ToolInput]
    handler: Handler
    read_only: bool = True
    destructive: bool = False
    idempotent: bool = True


def search_message(page: SearchPage, noun: str, hint: str) -> str:
    if not page.may_be_truncated:
        return f"Found {page.count} {noun}"
    if page.exhaustive:
        return (
            f"Returning {page.count} {noun} (results may be truncated at the safety limit "
            f"of {page.limit}). Add filters ({hint}) to narrow results."
        )
    if page.unlimited:
        return (
            f"Returning {page.count} {noun} (results may be truncated, API max: {page.limit}). "
            f"Add filters ({hint}) to narrow results."
        )
    return (
        f"Returning {page.count} {noun} (results may be truncated). "
        f"To see all results, use pageSize: -1 or add filters ({hint})."
    )


# -- handler factories ---------------------------------------------------------


def _search(
    method: Callable[[Services], Callable[..., Awaitable[SearchPage]]], noun: str, hint: str
) -> Handler:
    async def handle(args: ToolInput, app: AppContext) -> ToolResult:
        page = await method(app.services)(**args.model_dump(exclude_none=True))
        return ToolResult(data=page.items, message=search_message(page, noun, hint))

    return handle


def _get(
    method: Callable[[Services], Callable[..., Awaitable[dict[str, Any] | None]]], label: str
) -> Handler:
    async def handle(args: ToolInput, app: AppContext) -> ToolResult:
        record = await method(app.services)(**args.model_dump())
        if record is None:
            return ToolResult(data=None, message=f"{label} not found")
        return ToolResult(data=record, message=f"{label} retrieved successfully")

    return handle


def _create(method: Callable[[Services], Callable[..., Awaitable[int]]], label: str) -> Handler:
    async def handle(args: ToolInput, app: AppContext) -> ToolResult:
        new_id = await method(app.services)(args.model_dump(by_alias=True, exclude_none=True))
        return ToolResult(
            data=CreatedRecord(id=new_id).model_dump(),
            message=f"Successfully created {label} with ID: {new_id}",
        )

    return handle


def _create_note(
    method: Callable[[Services], Callable[..., Awaitable[int]]], parent: str
) -> Handler:
    async def handle(args: ToolInput, app: AppContext) -> ToolResult:
        new_id = await method(app.services)(**args.model_dump(exclude_none=True))
        return ToolResult(
            data=CreatedRecord(id=new_id).model_dump(),
            message=f"Successfully created {parent} note with ID: {new_id}",
        )

    return handle


async def _update_company(args: s.UpdateCompanyInput, app: AppContext) -> ToolResult:
    updates = args.model_dump(by_alias=True, exclude_none=True, exclude={"id"})
    await app.services.companies.update_company(args.id, updates)
    return ToolResult(
        data={"id": args.id}, message=f"Successfully updated company ID: {args.id}"
    )


async def _update_ticket(args: s.UpdateTicketInput, app: AppContext) -> ToolResult:
    updates = args.model_dump(by_alias=True, exclude_none=True, exclude={"ticket_id"})
    await app.services.tickets.update_ticket(args.ticket_id, updates)
    return ToolResult(
        data={"id": args.ticket_id, "updatedFields": sorted(updates)},
        message=f"Ticket {args.ticket_id} updated successfully",
    )


async def _test_connection(_: s.NoInput, app: AppContext) -> ToolResult:
    # Not gated: this is how a blocked gate learns the allowance has recovered.
    try:
        raw = await app.client.threshold_info()
    except (AutotaskApiError, httpx.HTTPError) as exc:
        raise app.context.map_error(exc, "test_connection") from exc

    info = ThresholdInfo.from_api(raw)
    app.context.rate_limiter.update_threshold(info)
    status = ConnectionStatus(
        connected=True,
        api_url=app.api_url,
        request_count=info.request_count,
        request_limit=info.request_limit,
    )
    return ToolResult(
        data=status.model_dump(), message="Successfully connected to Autotask API"
    )


async def _rate_limit_status(_: s.NoInput, app: AppContext) -> ToolResult:
    status = app.context.rate_limiter.status()
    threshold = status["threshold"]
    if threshold is None:
        message = "No API usage information yet; run autotask_test_connection to fetch it"
    else:
        message = (
            f"API usage: {threshold['requestCount']}/{threshold['requestLimit']} "
            f"({threshold['percentageUsed']}%), "
            f"{status['activeRequests']} active, {status['queuedRequests']} queued"
        )
    return ToolResult(data=status, message=message)


# -- tool tables ---------------------------------------------------------------


def _system_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_test_connection",
            module="system",
            title="Test Connection",
            description="Test the connection to Autotask API",
            schema=s.NoInput,
            handler=_test_connection,
        ),
        ToolSpec(
            name="autotask_get_rate_limit_status",
            module="system",
            title="Get Rate Limit Status",
            description=(
                "Get current API rate limit status including usage thresholds, active "
                "requests, and queue depth."
            ),
            schema=s.NoInput,
            handler=_rate_limit_status,
        ),
    ]


def _company_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_get_company",
            module="company",
            title="Get Company",
            description="Get a company by ID",
            schema=s.GetCompanyInput,
            handler=_get(lambda sv: sv.companies.get_company, "Company"),
        ),
        ToolSpec(
            name="autotask_search_companies",
            module="company",
            title="Search Companies",
            description=(
                "Search for companies in Autotask. Returns ONLY the first 50 matching "
                "companies by default; set pageSize: -1 to get all of them. 'searchTerm' "
                "matches company names, 'isActive' filters on status."
            ),
            schema=s.SearchCompaniesInput,
            handler=_search(
                lambda sv: sv.companies.search_companies, "companies", "searchTerm, isActive"
            ),
        ),
        ToolSpec(
            name="autotask_create_company",
            module="company",
            title="Create Company",
            description="Create a new company in Autotask",
            schema=s.CreateCompanyInput,
            handler=_create(lambda sv: sv.companies.create_company, "company"),
            read_only=False,
            idempotent=False,
        ),
        ToolSpec(
            name="autotask_update_company",
            module="company",
            title="Update Company",
            description="Update an existing company in Autotask",
            schema=s.UpdateCompanyInput,
            handler=_update_company,
            read_only=False,
        ),
        ToolSpec(
            name="autotask_get_company_note",
            module="company",
            title="Get Company Note",
            description="Get a specific company note by company ID and note ID",
            schema=s.GetCompanyNoteInput,
            handler=_get(lambda sv: sv.companies.get_company_note, "Company note"),
        ),
        ToolSpec(
            name="autotask_search_company_notes",
            module="company",
            title="Search Company Notes",
            description="Search for notes on a specific company. Returns 25 notes by default (max: 100).",
            schema=s.SearchCompanyNotesInput,
            handler=_search(
                lambda sv: sv.companies.search_company_notes, "company notes", "companyId"
            ),
        ),
        ToolSpec(
            name="autotask_create_company_note",
            module="company",
            title="Create Company Note",
            description="Create a new note for a company",
            schema=s.CreateCompanyNoteInput,
            handler=_create_note(lambda sv: sv.companies.create_company_note, "company"),
            read_only=False,
            idempotent=False,
        ),
    ]


def _contact_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_search_contacts",
            module="contact",
            title="Search Contacts",
            description=(
                "Search for contacts in Autotask. Returns ONLY the first 50 matching contacts "
                "by default; set pageSize: -1 to get all of them. Use filters (searchTerm, "
                "companyID, isActive) to narrow results."
            ),
            schema=s.SearchContactsInput,
            handler=_search(
                lambda sv: sv.contacts.search_contacts,
                "contacts",
                "searchTerm, companyID, isActive",
            ),
        ),
        ToolSpec(
            name="autotask_create_contact",
            module="contact",
            title="Create Contact",
            description="Create a new contact in Autotask",
            schema=s.CreateContactInput,
            handler=_create(lambda sv: sv.contacts.create_contact, "contact"),
            read_only=False,
            idempotent=False,
        ),
    ]


def _ticket_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_search_tickets",
            module="ticket",
            title="Search Tickets",
            description=(
                "Search for tickets in Autotask. Returns ONLY the first 50 matching tickets by "
                "default; set pageSize: -1 to get all of them. Closed tickets are excluded "
                "unless a status is given. Results carry summary fields only; use "
                "autotask_get_ticket_details for full ticket data."
            ),
            schema=s.SearchTicketsInput,
            handler=_search(
                lambda sv: sv.tickets.search_tickets,
                "tickets",
                "searchTerm, companyID, status, assignedResourceID",
            ),
        ),
        ToolSpec(
            name="autotask_get_ticket_details",
            module="ticket",
            title="Get Ticket Details",
            description=(
                "Get detailed information for a specific ticket by ID. Long text is trimmed "
                "unless fullDetails is true."
            ),
            schema=s.GetTicketDetailsInput,
            handler=_get(lambda sv: sv.tickets.get_ticket, "Ticket"),
        ),
        ToolSpec(
            name="autotask_create_ticket",
            module="ticket",
            title="Create Ticket",
            description="Create a new ticket in Autotask",
            schema=s.CreateTicketInput,
            handler=_create(lambda sv: sv.tickets.create_ticket, "ticket"),
            read_only=False,
            idempotent=False,
        ),
        ToolSpec(
            name="autotask_update_ticket",
            module="ticket",
            title="Update Ticket",
            description="Update an existing ticket in Autotask using PATCH semantics for core fields",
            schema=s.UpdateTicketInput,
            handler=_update_ticket,
            read_only=False,
        ),
        ToolSpec(
            name="autotask_get_ticket_note",
            module="ticket",
            title="Get Ticket Note",
            description="Get a specific ticket note by ticket ID and note ID",
            schema=s.GetTicketNoteInput,
            handler=_get(lambda sv: sv.tickets.get_ticket_note, "Ticket note"),
        ),
        ToolSpec(
            name="autotask_search_ticket_notes",
            module="ticket",
            title="Search Ticket Notes",
            description="Search for notes on a specific ticket. Returns 25 notes by default (max: 100).",
            schema=s.SearchTicketNotesInput,
            handler=_search(lambda sv: sv.tickets.search_ticket_notes, "ticket notes", "ticketId"),
        ),
        ToolSpec(
            name="autotask_create_ticket_note",
            module="ticket",
            title="Create Ticket Note",
            description="Create a new note for a ticket",
            schema=s.CreateTicketNoteInput,
            handler=_create_note(lambda sv: sv.tickets.create_ticket_note, "ticket"),
            read_only=False,
            idempotent=False,
        ),
    ]


def _project_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_search_projects",
            module="project",
            title="Search Projects",
            description=(
                "Search for projects in Autotask. Returns 25 projects by default (max: 100). "
                "Use filters (searchTerm, companyID, status, projectManagerResourceID) to "
                "narrow results."
            ),
            schema=s.SearchProjectsInput,
            handler=_search(
                lambda sv: sv.projects.search_projects,
                "projects",
                "searchTerm, companyID, status, projectManagerResourceID",
            ),
        ),
        ToolSpec(
            name="autotask_create_project",
            module="project",
            title="Create Project",
            description="Create a new project in Autotask",
            schema=s.CreateProjectInput,
            handler=_create(lambda sv: sv.projects.create_project, "project"),
            read_only=False,
            idempotent=False,
        ),
        ToolSpec(
            name="autotask_get_project_note",
            module="project",
            title="Get Project Note",
            description="Get a specific project note by project ID and note ID",
            schema=s.GetProjectNoteInput,
            handler=_get(lambda sv: sv.projects.get_project_note, "Project note"),
        ),
        ToolSpec(
            name="autotask_search_project_notes",
            module="project",
            title="Search Project Notes",
            description="Search for notes on a specific project. Returns 25 notes by default (max: 100).",
            schema=s.SearchProjectNotesInput,
            handler=_search(
                lambda sv: sv.projects.search_project_notes, "project notes", "projectId"
            ),
        ),
        ToolSpec(
            name="autotask_create_project_note",
            module="project",
            title="Create Project Note",
            description="Create a new note for a project",
            schema=s.CreateProjectNoteInput,
            handler=_create_note(lambda sv: sv.projects.create_project_note, "project"),
            read_only=False,
            idempotent=False,
        ),
    ]


def _task_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_search_tasks",
            module="task",
            title="Search Tasks",
            description=(
                "Search for project tasks in Autotask. Returns 25 tasks by default (max: 100). "
                "Use filters (searchTerm, projectID, status, assignedResourceID) to narrow "
                "results."
            ),
            schema=s.SearchTasksInput,
            handler=_search(
                lambda sv: sv.tasks.search_tasks,
                "tasks",
                "searchTerm, projectID, status, assignedResourceID",
            ),
        ),
        ToolSpec(
            name="autotask_create_task",
            module="task",
            title="Create Task",
            description="Create a new project task in Autotask",
            schema=s.CreateTaskInput,
            handler=_create(lambda sv: sv.tasks.create_task, "task"),
            read_only=False,
            idempotent=False,
        ),
    ]


def _time_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_create_time_entry",
            module="time",
            title="Create Time Entry",
            description=(
                "Create a time entry in Autotask against either a ticket (ticketID) or a "
                "project task (taskID)"
            ),
            schema=s.CreateTimeEntryInput,
            handler=_create(lambda sv: sv.time_entries.create_time_entry, "time entry"),
            read_only=False,
            idempotent=False,
        ),
    ]


def _resource_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_search_resources",
            module="resource",
            title="Search Resources",
            description=(
                "Search for resources (users/technicians) in Autotask. Returns ONLY the first "
                "25 matching resources by default; set pageSize: -1 to get all of them. Use "
                "filters (searchTerm, email, isActive, resourceType) to narrow results."
            ),
            schema=s.SearchResourcesInput,
            handler=_search(
                lambda sv: sv.resources.search_resources,
                "resources",
                "searchTerm, email, isActive, resourceType",
            ),
        ),
        ToolSpec(
            name="autotask_get_resource",
            module="resource",
            title="Get Resource",
            description="Get a resource (user/technician) by ID",
            schema=s.GetResourceInput,
            handler=_get(lambda sv: sv.resources.get_resource, "Resource"),
        ),
    ]


def _contract_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_search_contracts",
            module="contract",
            title="Search Contracts",
            description=(
                "Search for contracts in Autotask. Returns ONLY the first 25 matching contracts "
                "by default; pageSize: -1 returns up to 500. Use filters (searchTerm, "
                "companyID, status) to narrow results."
            ),
            schema=s.SearchContractsInput,
            handler=_search(
                lambda sv: sv.contracts.search_contracts,
                "contracts",
                "searchTerm, companyID, status",
            ),
        ),
        ToolSpec(
            name="autotask_get_contract",
            module="contract",
            title="Get Contract",
            description="Get a contract by ID",
            schema=s.GetContractInput,
            handler=_get(lambda sv: sv.contracts.get_contract, "Contract"),
        ),
    ]


def _config_item_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_search_configuration_items",
            module="config-item",
            title="Search Configuration Items",
            description=(
                "Search for configuration items (CIs) in Autotask. Returns ONLY the first 25 "
                "matching items by default; pageSize: -1 returns up to 500. Use filters "
                "(searchTerm, companyID, isActive, productID) to narrow results."
            ),
            schema=s.SearchConfigurationItemsInput,
            handler=_search(
                lambda sv: sv.configuration_items.search_configuration_items,
                "configuration items",
                "searchTerm, companyID, isActive, productID",
            ),
        ),
        ToolSpec(
            name="autotask_get_configuration_item",
            module="config-item",
            title="Get Configuration Item",
            description="Get a configuration item by ID",
            schema=s.GetConfigurationItemInput,
            handler=_get(
                lambda sv: sv.configuration_items.get_configuration_item, "Configuration item"
            ),
        ),
    ]


def _expense_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_get_expense_report",
            module="expense",
            title="Get Expense Report",
            description="Get an expense report by ID",
            schema=s.GetExpenseReportInput,
            handler=_get(lambda sv: sv.expenses.get_expense_report, "Expense report"),
        ),
        ToolSpec(
            name="autotask_search_expense_reports",
            module="expense",
            title="Search Expense Reports",
            description=(
                "Search for expense reports. Returns 25 reports by default; pageSize: -1 "
                "returns up to 500. Use filters (submitterId, status) to narrow results."
            ),
            schema=s.SearchExpenseReportsInput,
            handler=_search(
                lambda sv: sv.expenses.search_expense_reports,
                "expense reports",
                "submitterId, status",
            ),
        ),
        ToolSpec(
            name="autotask_create_expense_report",
            module="expense",
            title="Create Expense Report",
            description="Create a new expense report",
            schema=s.CreateExpenseReportInput,
            handler=_create(lambda sv: sv.expenses.create_expense_report, "expense report"),
            read_only=False,
            idempotent=False,
        ),
    ]


def _quote_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_get_quote",
            module="quote",
            title="Get Quote",
            description="Get a quote by ID",
            schema=s.GetQuoteInput,
            handler=_get(lambda sv: sv.quotes.get_quote, "Quote"),
        ),
        ToolSpec(
            name="autotask_search_quotes",
            module="quote",
            title="Search Quotes",
            description=(
                "Search for quotes in Autotask. Returns 25 quotes by default (max: 100). Use "
                "filters (companyId, contactId, opportunityId, searchTerm) to narrow results."
            ),
            schema=s.SearchQuotesInput,
            handler=_search(
                lambda sv: sv.quotes.search_quotes,
                "quotes",
                "companyId, contactId, opportunityId, searchTerm",
            ),
        ),
        ToolSpec(
            name="autotask_create_quote",
            module="quote",
            title="Create Quote",
            description="Create a new quote in Autotask",
            schema=s.CreateQuoteInput,
            handler=_create(lambda sv: sv.quotes.create_quote, "quote"),
            read_only=False,
            idempotent=False,
        ),
    ]


def _invoice_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="autotask_search_invoices",
            module="invoice",
            title="Search Invoices",
            description=(
                "Search for invoices in Autotask. Returns ONLY the first 25 matching invoices "
                "by default; pageSize: -1 returns up to 500. Use filters (companyID, "
                "invoiceNumber, isVoided) to narrow results."
            ),
            schema=s.SearchInvoicesInput,
            handler=_search(
                lambda sv: sv.invoices.search_invoices,
                "invoices",
                "companyID, invoiceNumber, isVoided",
            ),
        ),
    ]


MODULE_TOOLS: dict[str, Callable[[], list[ToolSpec]]] = {
    "system": _system_tools,
    "company": _company_tools,
    "contact": _contact_tools,
    "ticket": _ticket_tools,
    "project": _project_tools,
    "resource": _resource_tools,
    "contract": _contract_tools,
    "task": _task_tools,
    "time": _time_tools,
    "config-item": _config_item_tools,
    "expense": _expense_tools,
    "quote": _quote_tools,
    "invoice": _invoice_tools,
}


def build_registry(modules: Iterable[str]) -> dict[str, ToolSpec]:
    registry: dict[str, ToolSpec] = {}
    for module in modules:
        for spec in MODULE_TOOLS[module]():
            registry[spec.name] = spec
    return registry


async def dispatch(
    registry: dict[str, ToolSpec], name: str, arguments: Any, app: AppContext
) -> ToolResult:
    spec = registry.get(name)
    if spec is None:
        raise ToolError(f"Unknown tool: {name}")

    try:
        args = validate_input(spec.schema, arguments)
    except InputValidationError as exc:
        log.info("tool.invalid_input", tool=name, problems=len(exc.violations))
        raise

    log.debug("tool.call", tool=name)
    return await spec.handler(args, app)
