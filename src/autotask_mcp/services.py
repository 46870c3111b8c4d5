"""Entity services.

Each service receives a ``ServiceContext`` and never touches the rate limiter
or the error mapping directly; everything remote goes through
``context.run`` and every remote failure is re-raised through
``context.map_error``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, TypeVar

import httpx

from .context import ServiceContext
from .errors import AutotaskApiError, InputValidationError, OperationNotSupportedError
from .filters import (
    BeginsWith,
    CommonField,
    Contains,
    Eq,
    Filter,
    Gt,
    Gte,
    Lte,
    Ne,
    NotExist,
    Or,
    check_fields,
)
from .notes import NotePayloadParams, build_note_payload, validate_description, validate_title
from .pagination import (
    COMPANY_MAX_PAGES,
    CONTACT_MAX_PAGES,
    MAX_PAGE_SIZE,
    RESOURCE_MAX_PAGES,
    TICKET_MAX_PAGES,
    UNLIMITED_BATCH_SIZE,
    PaginationConfig,
    cap_results,
    extract_items,
    fetch_all_pages,
)

T = TypeVar("T")

PROJECTS_API_MAX = 100
QUOTES_API_MAX = 100
NOTES_API_MAX = 100
TASKS_API_MAX = 100

# Ticket statuses treated as closed when a search names no status.
CLOSED_TICKET_STATUSES = (5, 20, 21, 24, 26, 27)


@dataclass(frozen=True, slots=True)
class SearchPage:
    """One search result set.

    ``limit`` is the most records this call could have returned; a result
    that reaches it may have been cut short.
    """

    items: list[dict[str, Any]]
    limit: int
    unlimited: bool
    exhaustive: bool = False

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def may_be_truncated(self) -> bool:
        return self.count >= self.limit


# -- shared plumbing -----------------------------------------------------------


async def _call(
    context: ServiceContext,
    operation: str,
    endpoint: str,
    request: Callable[[], Awaitable[T]],
) -> T:
    try:
        return await context.run(request, endpoint)
    except (AutotaskApiError, httpx.HTTPError) as exc:
        raise context.map_error(exc, operation) from exc


async def _fetch_single(
    context: ServiceContext,
    operation: str,
    entity: str,
    filters: list[Filter],
    max_records: int,
    *,
    include_fields: list[str] | None = None,
) -> list[dict[str, Any]]:
    client = context.get_client()
    response = await _call(
        context,
        operation,
        entity,
        lambda: client.query(
            entity, filters, max_records=max_records, include_fields=include_fields
        ),
    )
    items = extract_items(response)
    if items is None:
        context.log.warning("pagination.malformed_response", entity=entity, page=1)
        return []
    return cap_results(items, max_records, entity=entity)


async def _fetch_every_page(
    context: ServiceContext,
    operation: str,
    entity: str,
    filters: list[Filter],
    *,
    max_pages: int,
    include_fields: list[str] | None = None,
) -> list[dict[str, Any]]:
    client = context.get_client()

    async def fetch_page(max_records: int, after_id: int | None) -> Any:
        page_filters = list(filters)
        if after_id is not None:
            page_filters.append(Gt(CommonField.ID, after_id))
        return await _call(
            context,
            operation,
            entity,
            lambda: client.query(
                entity, page_filters, max_records=max_records, include_fields=include_fields
            ),
        )

    return await fetch_all_pages(fetch_page, entity=entity, max_pages=max_pages)


async def _search(
    context: ServiceContext,
    operation: str,
    entity: str,
    filters: list[Filter],
    config: PaginationConfig,
    *,
    fields: type[StrEnum],
    max_pages: int | None = None,
    ceiling: int = MAX_PAGE_SIZE,
    include_fields: list[str] | None = None,
) -> SearchPage:
    """Run a search under a resolved pagination config.

    Unlimited mode walks every page when the entity has a ``max_pages``
    safety bound and otherwise asks for a single page of ``ceiling`` records.
    Every condition must name a ``fields`` member or a common field.
    """
    check_fields(filters, fields)
    if config.unlimited and max_pages is not None:
        items = await _fetch_every_page(
            context,
            operation,
            entity,
            filters,
            max_pages=max_pages,
            include_fields=include_fields,
        )
        limit = max_pages * UNLIMITED_BATCH_SIZE
        exhaustive = True
    else:
        limit = ceiling if config.unlimited else min(config.page_size or ceiling, ceiling)
        exhaustive = False
        items = await _fetch_single(
            context, operation, entity, filters, limit, include_fields=include_fields
        )

    context.log.info(
        "autotask.search",
        entity=entity,
        count=len(items),
        page_size=None if exhaustive else limit,
        unlimited=config.unlimited,
    )
    return SearchPage(
        items=items, limit=limit, unlimited=config.unlimited, exhaustive=exhaustive
    )


async def _get(
    context: ServiceContext, operation: str, entity: str, entity_id: int
) -> dict[str, Any] | None:
    client = context.get_client()
    return await _call(context, operation, entity, lambda: client.get(entity, entity_id))


async def _get_child(
    context: ServiceContext,
    operation: str,
    entity: str,
    parent_field: StrEnum,
    parent_id: int,
    child_id: int,
) -> dict[str, Any] | None:
    items = await _fetch_single(
        context,
        operation,
        entity,
        [Eq(parent_field, parent_id), Eq(CommonField.ID, child_id)],
        1,
    )
    return items[0] if items else None


async def _create(
    context: ServiceContext,
    operation: str,
    entity: str,
    payload: dict[str, Any],
    *,
    parent: tuple[str, int] | None = None,
) -> int:
    client = context.get_client()
    item_id = await _call(
        context, operation, entity, lambda: client.create(entity, payload, parent=parent)
    )
    context.log.info("autotask.created", entity=entity, id=item_id)
    return item_id


async def _update(
    context: ServiceContext, operation: str, entity: str, payload: dict[str, Any]
) -> int:
    client = context.get_client()
    item_id = await _call(context, operation, entity, lambda: client.update(entity, payload))
    context.log.info("autotask.updated", entity=entity, id=item_id)
    return item_id


def _rename(payload: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    return {mapping.get(key, key): value for key, value in payload.items()}


def _truncate(text: Any, limit: int, suffix: str) -> Any:
    if isinstance(text, str) and len(text) > limit:
        return text[:limit] + suffix
    return text


def _any_of(conditions: Iterable[Filter]) -> Filter:
    items = tuple(conditions)
    return items[0] if len(items) == 1 else Or(items)


# -- companies -----------------------------------------------------------------


class CompanyField(StrEnum):
    ID = "id"
    COMPANY_NAME = "companyName"
    IS_ACTIVE = "isActive"


class CompanyNoteField(StrEnum):
    ID = "id"
    COMPANY_ID = "companyID"


class CompanyService:
    default_page_size = 50

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def get_company(self, company_id: int) -> dict[str, Any] | None:
        return await _get(self._context, "get_company", "Companies", company_id)

    async def search_companies(
        self,
        *,
        search_term: str | None = None,
        is_active: bool | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if search_term:
            filters.append(Contains(CompanyField.COMPANY_NAME, search_term))
        if is_active is not None:
            filters.append(Eq(CompanyField.IS_ACTIVE, is_active))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        return await _search(
            self._context,
            "search_companies",
            "Companies",
            filters,
            config,
            fields=CompanyField,
            max_pages=COMPANY_MAX_PAGES,
        )

    async def create_company(self, payload: dict[str, Any]) -> int:
        return await _create(self._context, "create_company", "Companies", payload)

    async def update_company(self, company_id: int, updates: dict[str, Any]) -> int:
        return await _update(
            self._context, "update_company", "Companies", {"id": company_id, **updates}
        )

    async def get_company_note(self, company_id: int, note_id: int) -> dict[str, Any] | None:
        return await _get_child(
            self._context,
            "get_company_note",
            "CompanyNotes",
            CompanyNoteField.COMPANY_ID,
            company_id,
            note_id,
        )

    async def search_company_notes(
        self, company_id: int, *, page_size: int | None = None
    ) -> SearchPage:
        config = self._context.resolve_pagination(page_size, 25)
        return await _search(
            self._context,
            "search_company_notes",
            "CompanyNotes",
            [Eq(CompanyNoteField.COMPANY_ID, company_id)],
            config,
            fields=CompanyNoteField,
            ceiling=NOTES_API_MAX,
        )

    async def create_company_note(
        self,
        company_id: int,
        *,
        description: str,
        title: str | None = None,
        action_type: int | None = None,
    ) -> int:
        violations = validate_description(description) + validate_title(title)
        if violations:
            raise InputValidationError(violations)

        payload: dict[str, Any] = {"Description": description.strip()}
        if title and title.strip():
            payload["Title"] = title.strip()
        if action_type is not None:
            payload["ActionType"] = action_type
        return await _create(
            self._context,
            "create_company_note",
            "Notes",
            payload,
            parent=("Companies", company_id),
        )


# -- contacts ------------------------------------------------------------------


class ContactField(StrEnum):
    ID = "id"
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL_ADDRESS = "emailAddress"
    COMPANY_ID = "companyID"
    IS_ACTIVE = "isActive"


class ContactService:
    default_page_size = 50

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def search_contacts(
        self,
        *,
        search_term: str | None = None,
        company_id: int | None = None,
        is_active: int | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if search_term:
            filters.append(
                _any_of(
                    Contains(field, search_term)
                    for field in (
                        ContactField.FIRST_NAME,
                        ContactField.LAST_NAME,
                        ContactField.EMAIL_ADDRESS,
                    )
                )
            )
        # companyID 0 is the system company, so test for None explicitly.
        if company_id is not None:
            filters.append(Eq(ContactField.COMPANY_ID, company_id))
        if is_active is not None:
            filters.append(Eq(ContactField.IS_ACTIVE, is_active))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        return await _search(
            self._context,
            "search_contacts",
            "Contacts",
            filters,
            config,
            fields=ContactField,
            max_pages=CONTACT_MAX_PAGES,
        )

    async def create_contact(self, payload: dict[str, Any]) -> int:
        return await _create(self._context, "create_contact", "Contacts", payload)


# -- tickets -------------------------------------------------------------------


class TicketField(StrEnum):
    ID = "id"
    TICKET_NUMBER = "ticketNumber"
    STATUS = "status"
    COMPANY_ID = "companyID"
    ASSIGNED_RESOURCE_ID = "assignedResourceID"
    CREATE_DATE = "createDate"
    LAST_ACTIVITY_DATE = "lastActivityDate"


class TicketNoteField(StrEnum):
    ID = "id"
    TICKET_ID = "ticketID"


TICKET_SUMMARY_FIELDS = [
    "id",
    "ticketNumber",
    "title",
    "description",
    "status",
    "priority",
    "companyID",
    "contactID",
    "assignedResourceID",
    "createDate",
    "lastActivityDate",
    "dueDateTime",
    "completedDate",
    "estimatedHours",
    "ticketType",
    "source",
    "issueType",
    "subIssueType",
    "resolution",
]

_DETAILS_HINT = "... [truncated - use get_ticket_details for full text]"


def summarize_ticket(ticket: dict[str, Any]) -> dict[str, Any]:
    """Keep only the summary fields of a search hit, with long text cut."""
    summary = {key: ticket[key] for key in TICKET_SUMMARY_FIELDS if key in ticket}
    if summary.get("description") is not None:
        summary["description"] = _truncate(summary["description"], 200, _DETAILS_HINT)
    if summary.get("resolution") is not None:
        summary["resolution"] = _truncate(summary["resolution"], 100, _DETAILS_HINT)
    return summary


def optimize_ticket(ticket: dict[str, Any]) -> dict[str, Any]:
    """Trim the heavy parts of a full ticket record."""
    optimized = dict(ticket)
    optimized["description"] = _truncate(ticket.get("description"), 500, "... [truncated]")
    optimized["resolution"] = _truncate(ticket.get("resolution"), 300, "... [truncated]")
    optimized["userDefinedFields"] = []
    if ticket.get("purchaseOrderNumber"):
        optimized["purchaseOrderNumber"] = _truncate(ticket["purchaseOrderNumber"], 50, "...")
    return optimized


class TicketService:
    default_page_size = 50

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def get_ticket(self, ticket_id: int, *, full_details: bool = False) -> dict[str, Any] | None:
        ticket = await _get(self._context, "get_ticket", "Tickets", ticket_id)
        if ticket is None or full_details:
            return ticket
        return optimize_ticket(ticket)

    async def search_tickets(
        self,
        *,
        search_term: str | None = None,
        company_id: int | None = None,
        status: int | None = None,
        assigned_resource_id: int | None = None,
        unassigned: bool | None = None,
        create_date_from: str | None = None,
        create_date_to: str | None = None,
        last_activity_date_from: str | None = None,
        last_activity_date_to: str | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if search_term:
            filters.append(BeginsWith(TicketField.TICKET_NUMBER, search_term))
        if status is not None:
            filters.append(Eq(TicketField.STATUS, status))
        else:
            filters.extend(Ne(TicketField.STATUS, s) for s in CLOSED_TICKET_STATUSES)
        if unassigned:
            filters.append(NotExist(TicketField.ASSIGNED_RESOURCE_ID))
        elif assigned_resource_id is not None:
            filters.append(Eq(TicketField.ASSIGNED_RESOURCE_ID, assigned_resource_id))
        if company_id is not None:
            filters.append(Eq(TicketField.COMPANY_ID, company_id))
        if create_date_from:
            filters.append(Gte(TicketField.CREATE_DATE, create_date_from))
        if create_date_to:
            filters.append(Lte(TicketField.CREATE_DATE, create_date_to))
        if last_activity_date_from:
            filters.append(Gte(TicketField.LAST_ACTIVITY_DATE, last_activity_date_from))
        if last_activity_date_to:
            filters.append(Lte(TicketField.LAST_ACTIVITY_DATE, last_activity_date_to))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        page = await _search(
            self._context,
            "search_tickets",
            "Tickets",
            filters,
            config,
            fields=TicketField,
            max_pages=TICKET_MAX_PAGES,
            include_fields=TICKET_SUMMARY_FIELDS,
        )
        return replace(page, items=[summarize_ticket(t) for t in page.items])

    async def create_ticket(self, payload: dict[str, Any]) -> int:
        return await _create(self._context, "create_ticket", "Tickets", payload)

    async def update_ticket(self, ticket_id: int, updates: dict[str, Any]) -> int:
        """PATCH a ticket; ``updates`` uses the camelCase tool field names."""
        payload: dict[str, Any] = {"id": ticket_id}
        for key, value in updates.items():
            payload[key[:1].upper() + key[1:]] = value
        return await _update(self._context, "update_ticket", "Tickets", payload)

    async def get_ticket_note(self, ticket_id: int, note_id: int) -> dict[str, Any] | None:
        return await _get_child(
            self._context,
            "get_ticket_note",
            "TicketNotes",
            TicketNoteField.TICKET_ID,
            ticket_id,
            note_id,
        )

    async def search_ticket_notes(
        self, ticket_id: int, *, page_size: int | None = None
    ) -> SearchPage:
        config = self._context.resolve_pagination(page_size, 25)
        return await _search(
            self._context,
            "search_ticket_notes",
            "TicketNotes",
            [Eq(TicketNoteField.TICKET_ID, ticket_id)],
            config,
            fields=TicketNoteField,
            ceiling=NOTES_API_MAX,
        )

    async def create_ticket_note(
        self,
        ticket_id: int,
        *,
        description: str,
        title: str | None = None,
        note_type: int | None = None,
        publish: int | None = None,
        creator_resource_id: int | None = None,
    ) -> int:
        payload = build_note_payload(
            NotePayloadParams(
                description=description,
                title=title,
                publish=publish,
                note_type=note_type,
                creator_resource_id=creator_resource_id,
            )
        )
        return await _create(
            self._context, "create_ticket_note", "Notes", payload, parent=("Tickets", ticket_id)
        )


# -- projects ------------------------------------------------------------------


class ProjectField(StrEnum):
    ID = "id"
    PROJECT_NAME = "projectName"
    COMPANY_ID = "companyID"
    STATUS = "status"
    PROJECT_MANAGER_RESOURCE_ID = "projectManagerResourceID"


class ProjectNoteField(StrEnum):
    ID = "id"
    PROJECT_ID = "projectID"


PROJECT_SUMMARY_FIELDS = [
    "id",
    "projectName",
    "projectNumber",
    "description",
    "status",
    "projectType",
    "department",
    "companyID",
    "projectManagerResourceID",
    "startDateTime",
    "endDateTime",
    "actualHours",
    "estimatedHours",
    "laborEstimatedRevenue",
    "createDate",
    "completedDate",
    "contractID",
    "originalEstimatedRevenue",
]


class ProjectService:
    default_page_size = 25

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def search_projects(
        self,
        *,
        search_term: str | None = None,
        company_id: int | None = None,
        status: int | None = None,
        project_manager_resource_id: int | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if search_term:
            filters.append(Contains(ProjectField.PROJECT_NAME, search_term))
        if company_id is not None:
            filters.append(Eq(ProjectField.COMPANY_ID, company_id))
        if status is not None:
            filters.append(Eq(ProjectField.STATUS, status))
        if project_manager_resource_id is not None:
            filters.append(
                Eq(ProjectField.PROJECT_MANAGER_RESOURCE_ID, project_manager_resource_id)
            )

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        page = await _search(
            self._context,
            "search_projects",
            "Projects",
            filters,
            config,
            fields=ProjectField,
            ceiling=PROJECTS_API_MAX,
            include_fields=PROJECT_SUMMARY_FIELDS,
        )
        items = [
            {**p, "description": _truncate(p.get("description"), 500, "... [truncated]")}
            if "description" in p
            else p
            for p in page.items
        ]
        return replace(page, items=items)

    async def create_project(self, payload: dict[str, Any]) -> int:
        payload = _rename(payload, {"startDate": "startDateTime", "endDate": "endDateTime"})
        return await _create(self._context, "create_project", "Projects", payload)

    async def get_project_note(self, project_id: int, note_id: int) -> dict[str, Any] | None:
        return await _get_child(
            self._context,
            "get_project_note",
            "ProjectNotes",
            ProjectNoteField.PROJECT_ID,
            project_id,
            note_id,
        )

    async def search_project_notes(
        self, project_id: int, *, page_size: int | None = None
    ) -> SearchPage:
        config = self._context.resolve_pagination(page_size, 25)
        return await _search(
            self._context,
            "search_project_notes",
            "ProjectNotes",
            [Eq(ProjectNoteField.PROJECT_ID, project_id)],
            config,
            fields=ProjectNoteField,
            ceiling=NOTES_API_MAX,
        )

    async def create_project_note(
        self,
        project_id: int,
        *,
        description: str,
        title: str | None = None,
        note_type: int | None = None,
        publish: int | None = None,
        creator_resource_id: int | None = None,
    ) -> int:
        payload = build_note_payload(
            NotePayloadParams(
                description=description,
                title=title,
                publish=publish,
                note_type=note_type,
                creator_resource_id=creator_resource_id,
            )
        )
        return await _create(
            self._context,
            "create_project_note",
            "Notes",
            payload,
            parent=("Projects", project_id),
        )


# -- tasks ---------------------------------------------------------------------


class TaskField(StrEnum):
    ID = "id"
    TITLE = "title"
    PROJECT_ID = "projectID"
    STATUS = "status"
    ASSIGNED_RESOURCE_ID = "assignedResourceID"


TASK_SUMMARY_FIELDS = [
    "id",
    "title",
    "description",
    "status",
    "projectID",
    "assignedResourceID",
    "creatorResourceID",
    "createDateTime",
    "startDateTime",
    "endDateTime",
    "estimatedHours",
    "hoursToBeScheduled",
    "remainingHours",
    "percentComplete",
    "priorityLabel",
    "taskType",
    "lastActivityDateTime",
    "completedDateTime",
]


def summarize_task(task: dict[str, Any]) -> dict[str, Any]:
    summary = {**task, "userDefinedFields": []}
    if "description" in task:
        summary["description"] = _truncate(task["description"], 400, "... [truncated]")
    return summary


class TaskService:
    default_page_size = 25

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def search_tasks(
        self,
        *,
        search_term: str | None = None,
        project_id: int | None = None,
        status: int | None = None,
        assigned_resource_id: int | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if search_term:
            filters.append(Contains(TaskField.TITLE, search_term))
        if project_id is not None:
            filters.append(Eq(TaskField.PROJECT_ID, project_id))
        if status is not None:
            filters.append(Eq(TaskField.STATUS, status))
        if assigned_resource_id is not None:
            filters.append(Eq(TaskField.ASSIGNED_RESOURCE_ID, assigned_resource_id))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        page = await _search(
            self._context,
            "search_tasks",
            "Tasks",
            filters,
            config,
            fields=TaskField,
            ceiling=TASKS_API_MAX,
            include_fields=TASK_SUMMARY_FIELDS,
        )
        return replace(page, items=[summarize_task(t) for t in page.items])

    async def create_task(self, payload: dict[str, Any]) -> int:
        # Tasks are created under their project.
        return await _create(
            self._context,
            "create_task",
            "Tasks",
            payload,
            parent=("Projects", payload["projectID"]),
        )


# -- time entries --------------------------------------------------------------


class TimeEntryService:
    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def create_time_entry(self, payload: dict[str, Any]) -> int:
        return await _create(self._context, "create_time_entry", "TimeEntries", payload)


# -- resources -----------------------------------------------------------------


class ResourceField(StrEnum):
    ID = "id"
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    USER_NAME = "userName"
    EMAIL = "email"
    IS_ACTIVE = "isActive"
    RESOURCE_TYPE = "resourceType"


class ResourceService:
    """Resources are always read through a raw ``Resources/query``."""

    default_page_size = 25

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def get_resource(self, resource_id: int) -> dict[str, Any] | None:
        return await _get(self._context, "get_resource", "Resources", resource_id)

    async def search_resources(
        self,
        *,
        search_term: str | None = None,
        email: str | None = None,
        is_active: bool | None = None,
        resource_type: int | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if email:
            # Autotask user names are often the local part of the address.
            user_name = email.split("@", 1)[0]
            filters.append(
                Or((Eq(ResourceField.USER_NAME, user_name), Eq(ResourceField.EMAIL, email)))
            )
        if search_term:
            filters.append(
                _any_of(
                    Contains(field, search_term)
                    for field in (
                        ResourceField.FIRST_NAME,
                        ResourceField.LAST_NAME,
                        ResourceField.USER_NAME,
                    )
                )
            )
        if is_active is not None:
            filters.append(Eq(ResourceField.IS_ACTIVE, is_active))
        if resource_type is not None:
            filters.append(Eq(ResourceField.RESOURCE_TYPE, resource_type))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        return await _search(
            self._context,
            "search_resources",
            "Resources",
            filters,
            config,
            fields=ResourceField,
            max_pages=RESOURCE_MAX_PAGES,
        )


# -- contracts -----------------------------------------------------------------


class ContractField(StrEnum):
    ID = "id"
    CONTRACT_NAME = "contractName"
    COMPANY_ID = "companyID"
    STATUS = "status"


class ContractService:
    default_page_size = 25

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def get_contract(self, contract_id: int) -> dict[str, Any] | None:
        return await _get(self._context, "get_contract", "Contracts", contract_id)

    async def search_contracts(
        self,
        *,
        search_term: str | None = None,
        company_id: int | None = None,
        status: int | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if search_term:
            filters.append(Contains(ContractField.CONTRACT_NAME, search_term))
        if company_id is not None:
            filters.append(Eq(ContractField.COMPANY_ID, company_id))
        if status is not None:
            filters.append(Eq(ContractField.STATUS, status))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        return await _search(
            self._context, "search_contracts", "Contracts", filters, config, fields=ContractField
        )


# -- configuration items -------------------------------------------------------


class ConfigurationItemField(StrEnum):
    ID = "id"
    REFERENCE_TITLE = "referenceTitle"
    COMPANY_ID = "companyID"
    IS_ACTIVE = "isActive"
    PRODUCT_ID = "productID"


class ConfigurationItemService:
    default_page_size = 25

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def get_configuration_item(self, configuration_item_id: int) -> dict[str, Any] | None:
        return await _get(
            self._context, "get_configuration_item", "ConfigurationItems", configuration_item_id
        )

    async def search_configuration_items(
        self,
        *,
        search_term: str | None = None,
        company_id: int | None = None,
        is_active: bool | None = None,
        product_id: int | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if search_term:
            filters.append(Contains(ConfigurationItemField.REFERENCE_TITLE, search_term))
        if company_id is not None:
            filters.append(Eq(ConfigurationItemField.COMPANY_ID, company_id))
        if is_active is not None:
            filters.append(Eq(ConfigurationItemField.IS_ACTIVE, is_active))
        if product_id is not None:
            filters.append(Eq(ConfigurationItemField.PRODUCT_ID, product_id))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        return await _search(
            self._context,
            "search_configuration_items",
            "ConfigurationItems",
            filters,
            config,
            fields=ConfigurationItemField,
        )


# -- expenses ------------------------------------------------------------------


class ExpenseReportField(StrEnum):
    ID = "id"
    SUBMITTER_ID = "submitterID"
    STATUS = "status"


_EXPENSE_ITEMS_UNSUPPORTED = "Expense items API not yet implemented - requires child entity handling"


class ExpenseService:
    default_page_size = 25

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def get_expense_report(self, report_id: int) -> dict[str, Any] | None:
        return await _get(self._context, "get_expense_report", "Expenses", report_id)

    async def search_expense_reports(
        self,
        *,
        submitter_id: int | None = None,
        status: int | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if submitter_id is not None:
            filters.append(Eq(ExpenseReportField.SUBMITTER_ID, submitter_id))
        if status is not None:
            filters.append(Eq(ExpenseReportField.STATUS, status))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        return await _search(
            self._context,
            "search_expense_reports",
            "Expenses",
            filters,
            config,
            fields=ExpenseReportField,
        )

    async def create_expense_report(self, payload: dict[str, Any]) -> int:
        payload = _rename(payload, {"submitterId": "submitterID", "weekEndingDate": "weekEnding"})
        return await _create(self._context, "create_expense_report", "Expenses", payload)

    async def get_expense_item(self, report_id: int, item_id: int) -> dict[str, Any] | None:
        raise OperationNotSupportedError(_EXPENSE_ITEMS_UNSUPPORTED)

    async def search_expense_items(
        self, report_id: int, *, page_size: int | None = None
    ) -> SearchPage:
        raise OperationNotSupportedError(_EXPENSE_ITEMS_UNSUPPORTED)

    async def create_expense_item(self, report_id: int, payload: dict[str, Any]) -> int:
        raise OperationNotSupportedError(_EXPENSE_ITEMS_UNSUPPORTED)


# -- quotes --------------------------------------------------------------------


class QuoteField(StrEnum):
    ID = "id"
    NAME = "name"
    DESCRIPTION = "description"
    COMPANY_ID = "companyID"
    CONTACT_ID = "contactID"
    OPPORTUNITY_ID = "opportunityID"


class QuoteService:
    default_page_size = 25

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def get_quote(self, quote_id: int) -> dict[str, Any] | None:
        return await _get(self._context, "get_quote", "Quotes", quote_id)

    async def search_quotes(
        self,
        *,
        company_id: int | None = None,
        contact_id: int | None = None,
        opportunity_id: int | None = None,
        search_term: str | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if company_id is not None:
            filters.append(Eq(QuoteField.COMPANY_ID, company_id))
        if contact_id is not None:
            filters.append(Eq(QuoteField.CONTACT_ID, contact_id))
        if opportunity_id is not None:
            filters.append(Eq(QuoteField.OPPORTUNITY_ID, opportunity_id))
        if search_term:
            filters.append(
                _any_of(
                    Contains(field, search_term)
                    for field in (QuoteField.NAME, QuoteField.DESCRIPTION)
                )
            )

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        return await _search(
            self._context,
            "search_quotes",
            "Quotes",
            filters,
            config,
            fields=QuoteField,
            ceiling=QUOTES_API_MAX,
        )

    async def create_quote(self, payload: dict[str, Any]) -> int:
        payload = _rename(
            payload,
            {"companyId": "companyID", "contactId": "contactID", "opportunityId": "opportunityID"},
        )
        return await _create(self._context, "create_quote", "Quotes", payload)


# -- invoices ------------------------------------------------------------------


class InvoiceField(StrEnum):
    ID = "id"
    COMPANY_ID = "companyID"
    INVOICE_NUMBER = "invoiceNumber"
    IS_VOIDED = "isVoided"


class InvoiceService:
    default_page_size = 25

    def __init__(self, context: ServiceContext) -> None:
        self._context = context

    async def search_invoices(
        self,
        *,
        company_id: int | None = None,
        invoice_number: str | None = None,
        is_voided: bool | None = None,
        page_size: int | None = None,
    ) -> SearchPage:
        filters: list[Filter] = []
        if company_id is not None:
            filters.append(Eq(InvoiceField.COMPANY_ID, company_id))
        if invoice_number:
            filters.append(Eq(InvoiceField.INVOICE_NUMBER, invoice_number))
        if is_voided is not None:
            filters.append(Eq(InvoiceField.IS_VOIDED, is_voided))

        config = self._context.resolve_pagination(page_size, self.default_page_size)
        return await _search(
            self._context, "search_invoices", "Invoices", filters, config, fields=InvoiceField
        )


# -- bundle --------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Services:
    companies: CompanyService
    contacts: ContactService
    tickets: TicketService
    projects: ProjectService
    resources: ResourceService
    contracts: ContractService
    configuration_items: ConfigurationItemService
    tasks: TaskService
    time_entries: TimeEntryService
    expenses: ExpenseService
    quotes: QuoteService
    invoices: InvoiceService

    @classmethod
    def create(cls, context: ServiceContext) -> Services:
        return cls(
            companies=CompanyService(context),
            contacts=ContactService(context),
            tickets=TicketService(context),
            projects=ProjectService(context),
            resources=ResourceService(context),
            contracts=ContractService(context),
            configuration_items=ConfigurationItemService(context),
            tasks=TaskService(context),
            time_entries=TimeEntryService(context),
            expenses=ExpenseService(context),
            quotes=QuoteService(context),
            invoices=InvoiceService(context),
        )
