"""Input contracts for every tool, grouped by entity."""

from __future__ import annotations

from typing import Annotated, ClassVar

from pydantic import Field, StrictBool
from pydantic.types import NonNegativeFloat

from .notes import MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH, NOTE_TYPES, PUBLISH_LEVELS
from .validation import (
    BinaryFlag,
    DateString,
    Email,
    IsoDateTime,
    NonNegativeId,
    PageSizeLimited,
    PageSizeMedium,
    PageSizeStandard,
    Phone,
    PositiveId,
    Refinement,
    SearchTerm,
    ToolInput,
    bounded_str,
    int_choice,
    ordered_dates,
    require_update_fields,
)

COMPANY_ID_HELP = "Company ID (0 = default/system company)"

NoteTitle = bounded_str(MAX_TITLE_LENGTH, "Note title")
NoteContent = bounded_str(MAX_DESCRIPTION_LENGTH, "Note content")
NoteType = int_choice(NOTE_TYPES, "Note type")
PublishLevel = int_choice(PUBLISH_LEVELS, "Publish level")

CompanyName = bounded_str(100, "Company name")
Address = bounded_str(128, "Address")
City = bounded_str(50, "City")
State = bounded_str(25, "State")
PostalCode = bounded_str(20, "Postal code")
PersonName = bounded_str(50, "Name")
JobTitle = bounded_str(50, "Job title")
TicketTitle = bounded_str(255, "Ticket title")
TicketText = bounded_str(8000, "Ticket description")
Resolution = bounded_str(8000, "Resolution")
ProjectName = bounded_str(100, "Project name")
ProjectText = bounded_str(8000, "Project description")
QuoteName = bounded_str(100, "Quote name")
QuoteText = bounded_str(8000, "Quote description")
ReportName = bounded_str(100, "Expense report name")
ReportText = bounded_str(2000, "Expense report description")
TaskTitle = bounded_str(255, "Task title")
TaskText = bounded_str(8000, "Task description")
TimeNotes = bounded_str(8000, "Time entry notes")
InvoiceNumber = bounded_str(50, "Invoice number")

ResourceType = int_choice({1: "Employee", 2: "Contractor", 3: "Temporary"}, "Resource type")
ContractStatus = int_choice({1: "In Effect", 3: "Terminated"}, "Contract status")
TaskType = int_choice({1: "Fixed Work", 2: "Fixed Duration"}, "Task type")
HoursWorked = Annotated[
    float, Field(gt=0, le=24, description="Hours worked, more than 0 and at most 24")
]


class NoInput(ToolInput):
    pass


# -- companies -----------------------------------------------------------------


class GetCompanyInput(ToolInput):
    company_id: NonNegativeId = Field(alias="companyId", description=COMPANY_ID_HELP)


class SearchCompaniesInput(ToolInput):
    search_term: SearchTerm | None = Field(default=None, alias="searchTerm")
    is_active: StrictBool | None = Field(
        default=None,
        alias="isActive",
        description="true for active companies only, false for inactive only. Omit for both.",
    )
    page_size: PageSizeStandard | None = Field(default=None, alias="pageSize")


class CreateCompanyInput(ToolInput):
    company_name: CompanyName = Field(alias="companyName")
    company_type: PositiveId = Field(
        alias="companyType", description="1=Customer, 2=Lead, 3=Prospect, 4=Dead, 6=Cancellation, 7=Vendor, 8=Partner"
    )
    phone: Phone
    owner_resource_id: PositiveId = Field(alias="ownerResourceID")
    address1: Address | None = None
    city: City | None = None
    state: State | None = None
    postal_code: PostalCode | None = Field(default=None, alias="postalCode")


class UpdateCompanyInput(ToolInput):
    id: NonNegativeId = Field(description=COMPANY_ID_HELP)
    company_name: CompanyName | None = Field(default=None, alias="companyName")
    phone: Phone | None = None
    address1: Address | None = None
    city: City | None = None
    state: State | None = None
    postal_code: PostalCode | None = Field(default=None, alias="postalCode")
    is_active: StrictBool | None = Field(default=None, alias="isActive")

    refinements: ClassVar[tuple[Refinement, ...]] = (
        require_update_fields(
            "id",
            "At least one field must be provided for update "
            "(companyName, phone, address1, city, state, postalCode, isActive)",
        ),
    )


class GetCompanyNoteInput(ToolInput):
    company_id: NonNegativeId = Field(alias="companyId", description=COMPANY_ID_HELP)
    note_id: PositiveId = Field(alias="noteId")


class SearchCompanyNotesInput(ToolInput):
    company_id: NonNegativeId = Field(alias="companyId", description=COMPANY_ID_HELP)
    page_size: PageSizeLimited | None = Field(default=None, alias="pageSize")


class CreateCompanyNoteInput(ToolInput):
    company_id: NonNegativeId = Field(alias="companyId", description=COMPANY_ID_HELP)
    title: NoteTitle | None = None
    description: NoteContent
    action_type: PositiveId | None = Field(default=None, alias="actionType")


# -- contacts ------------------------------------------------------------------


class SearchContactsInput(ToolInput):
    search_term: SearchTerm | None = Field(default=None, alias="searchTerm")
    company_id: NonNegativeId | None = Field(default=None, alias="companyID", description=COMPANY_ID_HELP)
    is_active: BinaryFlag | None = Field(
        default=None, alias="isActive", description="1 = active, 0 = inactive"
    )
    page_size: PageSizeStandard | None = Field(default=None, alias="pageSize")


class CreateContactInput(ToolInput):
    company_id: NonNegativeId = Field(alias="companyID", description=COMPANY_ID_HELP)
    first_name: PersonName = Field(alias="firstName")
    last_name: PersonName = Field(alias="lastName")
    email_address: Email | None = Field(default=None, alias="emailAddress")
    phone: Phone | None = None
    title: JobTitle | None = None


# -- tickets -------------------------------------------------------------------


class SearchTicketsInput(ToolInput):
    search_term: SearchTerm | None = Field(
        default=None, alias="searchTerm", description="Ticket number prefix, e.g. T2025"
    )
    company_id: NonNegativeId | None = Field(default=None, alias="companyID", description=COMPANY_ID_HELP)
    status: PositiveId | None = Field(
        default=None,
        description=(
            "Ticket status ID. Open: 1=New, 2=In Progress, 7=Waiting Customer, 8=Waiting Vendor, "
            "9=Escalated. Closed: 5=Complete, 20=Inactive, 21=Cancelled, 24=Rejected, "
            "26=Internal Rejected, 27=Client Rejected. Omit to search only open tickets."
        ),
    )
    assigned_resource_id: PositiveId | None = Field(default=None, alias="assignedResourceID")
    unassigned: StrictBool | None = Field(
        default=None, description="true to return only tickets with no assigned resource"
    )
    create_date_from: IsoDateTime | None = Field(default=None, alias="createDateFrom")
    create_date_to: IsoDateTime | None = Field(default=None, alias="createDateTo")
    last_activity_date_from: IsoDateTime | None = Field(default=None, alias="lastActivityDateFrom")
    last_activity_date_to: IsoDateTime | None = Field(default=None, alias="lastActivityDateTo")
    page_size: PageSizeStandard | None = Field(default=None, alias="pageSize")

    refinements: ClassVar[tuple[Refinement, ...]] = (
        ordered_dates(
            "create_date_from",
            "create_date_to",
            path="createDateTo",
            message="createDateTo must be on or after createDateFrom",
        ),
        ordered_dates(
            "last_activity_date_from",
            "last_activity_date_to",
            path="lastActivityDateTo",
            message="lastActivityDateTo must be on or after lastActivityDateFrom",
        ),
    )


class GetTicketDetailsInput(ToolInput):
    ticket_id: PositiveId = Field(alias="ticketID")
    full_details: StrictBool = Field(
        default=False,
        alias="fullDetails",
        description="Return every field untruncated (default: false for optimized data)",
    )


class CreateTicketInput(ToolInput):
    company_id: NonNegativeId = Field(alias="companyID", description=COMPANY_ID_HELP)
    title: TicketTitle
    description: TicketText
    status: PositiveId | None = None
    priority: PositiveId | None = None
    assigned_resource_id: PositiveId | None = Field(default=None, alias="assignedResourceID")
    contact_id: PositiveId | None = Field(default=None, alias="contactID")


class UpdateTicketInput(ToolInput):
    ticket_id: PositiveId = Field(alias="ticketId")
    status: PositiveId | None = None
    priority: PositiveId | None = None
    queue_id: PositiveId | None = Field(default=None, alias="queueID")
    assigned_resource_id: PositiveId | None = Field(default=None, alias="assignedResourceID")
    due_date_time: IsoDateTime | None = Field(default=None, alias="dueDateTime")
    title: TicketTitle | None = None
    description: TicketText | None = None
    resolution: Resolution | None = None

    refinements: ClassVar[tuple[Refinement, ...]] = (
        require_update_fields(
            "ticket_id",
            "At least one field must be provided for update (status, priority, queueID, "
            "assignedResourceID, dueDateTime, title, description, resolution)",
        ),
    )


class GetTicketNoteInput(ToolInput):
    ticket_id: PositiveId = Field(alias="ticketId")
    note_id: PositiveId = Field(alias="noteId")


class SearchTicketNotesInput(ToolInput):
    ticket_id: PositiveId = Field(alias="ticketId")
    page_size: PageSizeLimited | None = Field(default=None, alias="pageSize")


class CreateTicketNoteInput(ToolInput):
    ticket_id: PositiveId = Field(alias="ticketId")
    title: NoteTitle | None = None
    description: NoteContent
    note_type: NoteType | None = Field(default=None, alias="noteType")
    publish: PublishLevel | None = None


# -- projects ------------------------------------------------------------------


class SearchProjectsInput(ToolInput):
    search_term: SearchTerm | None = Field(default=None, alias="searchTerm")
    company_id: NonNegativeId | None = Field(default=None, alias="companyID", description=COMPANY_ID_HELP)
    status: PositiveId | None = None
    project_manager_resource_id: PositiveId | None = Field(
        default=None, alias="projectManagerResourceID"
    )
    page_size: PageSizeLimited | None = Field(default=None, alias="pageSize")


class CreateProjectInput(ToolInput):
    company_id: NonNegativeId = Field(alias="companyID", description=COMPANY_ID_HELP)
    project_name: ProjectName = Field(alias="projectName")
    description: ProjectText | None = None
    status: PositiveId
    start_date: DateString | None = Field(default=None, alias="startDate")
    end_date: DateString | None = Field(default=None, alias="endDate")
    project_manager_resource_id: PositiveId | None = Field(
        default=None, alias="projectManagerResourceID"
    )
    estimated_hours: NonNegativeFloat | None = Field(default=None, alias="estimatedHours")

    refinements: ClassVar[tuple[Refinement, ...]] = (
        ordered_dates(
            "start_date",
            "end_date",
            path="endDate",
            message="Project end date must be on or after start date",
        ),
    )


class GetProjectNoteInput(ToolInput):
    project_id: PositiveId = Field(alias="projectId")
    note_id: PositiveId = Field(alias="noteId")


class SearchProjectNotesInput(ToolInput):
    project_id: PositiveId = Field(alias="projectId")
    page_size: PageSizeLimited | None = Field(default=None, alias="pageSize")


class CreateProjectNoteInput(ToolInput):
    project_id: PositiveId = Field(alias="projectId")
    title: NoteTitle | None = None
    description: NoteContent
    note_type: NoteType | None = Field(default=None, alias="noteType")
    publish: PublishLevel | None = None


# -- tasks ---------------------------------------------------------------------


class SearchTasksInput(ToolInput):
    search_term: SearchTerm | None = Field(
        default=None, alias="searchTerm", description="Matches the task title"
    )
    project_id: PositiveId | None = Field(default=None, alias="projectID")
    status: PositiveId | None = None
    assigned_resource_id: PositiveId | None = Field(default=None, alias="assignedResourceID")
    page_size: PageSizeLimited | None = Field(default=None, alias="pageSize")


class CreateTaskInput(ToolInput):
    project_id: PositiveId = Field(alias="projectID")
    title: TaskTitle
    description: TaskText | None = None
    status: PositiveId
    task_type: TaskType | None = Field(default=None, alias="taskType")
    assigned_resource_id: PositiveId | None = Field(default=None, alias="assignedResourceID")
    estimated_hours: NonNegativeFloat | None = Field(default=None, alias="estimatedHours")
    start_date_time: IsoDateTime | None = Field(default=None, alias="startDateTime")
    end_date_time: IsoDateTime | None = Field(default=None, alias="endDateTime")

    refinements: ClassVar[tuple[Refinement, ...]] = (
        ordered_dates(
            "start_date_time",
            "end_date_time",
            path="endDateTime",
            message="Task end must be on or after its start",
        ),
    )


# -- time entries --------------------------------------------------------------


class CreateTimeEntryInput(ToolInput):
    resource_id: PositiveId = Field(alias="resourceID")
    ticket_id: PositiveId | None = Field(default=None, alias="ticketID")
    task_id: PositiveId | None = Field(default=None, alias="taskID")
    date_worked: DateString = Field(alias="dateWorked")
    hours_worked: HoursWorked = Field(alias="hoursWorked")
    summary_notes: TimeNotes = Field(alias="summaryNotes")
    internal_notes: TimeNotes | None = Field(default=None, alias="internalNotes")
    start_date_time: IsoDateTime | None = Field(default=None, alias="startDateTime")
    end_date_time: IsoDateTime | None = Field(default=None, alias="endDateTime")
    is_non_billable: StrictBool | None = Field(default=None, alias="isNonBillable")

    refinements: ClassVar[tuple[Refinement, ...]] = (
        Refinement(
            "ticketID",
            "Provide exactly one of ticketID or taskID",
            lambda m: (m.ticket_id is None) != (m.task_id is None),
        ),
        ordered_dates(
            "start_date_time",
            "end_date_time",
            path="endDateTime",
            message="Time entry end must be on or after its start",
        ),
    )


# -- resources -----------------------------------------------------------------


class SearchResourcesInput(ToolInput):
    search_term: SearchTerm | None = Field(
        default=None, alias="searchTerm", description="Matches first name, last name or user name"
    )
    email: Email | None = Field(
        default=None, description="Filter by email address or the user name before the @"
    )
    is_active: StrictBool | None = Field(default=None, alias="isActive")
    resource_type: ResourceType | None = Field(default=None, alias="resourceType")
    page_size: PageSizeMedium | None = Field(default=None, alias="pageSize")


class GetResourceInput(ToolInput):
    resource_id: PositiveId = Field(alias="resourceId")


# -- contracts -----------------------------------------------------------------


class SearchContractsInput(ToolInput):
    search_term: SearchTerm | None = Field(default=None, alias="searchTerm")
    company_id: NonNegativeId | None = Field(default=None, alias="companyID", description=COMPANY_ID_HELP)
    status: ContractStatus | None = None
    page_size: PageSizeMedium | None = Field(default=None, alias="pageSize")


class GetContractInput(ToolInput):
    contract_id: PositiveId = Field(alias="contractId")


# -- configuration items -------------------------------------------------------


class SearchConfigurationItemsInput(ToolInput):
    search_term: SearchTerm | None = Field(
        default=None, alias="searchTerm", description="Matches the CI reference title"
    )
    company_id: NonNegativeId | None = Field(default=None, alias="companyID", description=COMPANY_ID_HELP)
    is_active: StrictBool | None = Field(default=None, alias="isActive")
    product_id: PositiveId | None = Field(default=None, alias="productID")
    page_size: PageSizeMedium | None = Field(default=None, alias="pageSize")


class GetConfigurationItemInput(ToolInput):
    configuration_item_id: PositiveId = Field(alias="configurationItemId")


# -- expenses ------------------------------------------------------------------


class GetExpenseReportInput(ToolInput):
    report_id: PositiveId = Field(alias="reportId")


class SearchExpenseReportsInput(ToolInput):
    submitter_id: PositiveId | None = Field(
        default=None, alias="submitterId", description="Submitter resource ID"
    )
    status: PositiveId | None = None
    page_size: PageSizeMedium | None = Field(default=None, alias="pageSize")


class CreateExpenseReportInput(ToolInput):
    name: ReportName
    description: ReportText | None = None
    submitter_id: PositiveId = Field(alias="submitterId")
    week_ending_date: DateString = Field(alias="weekEndingDate")


# -- quotes --------------------------------------------------------------------


class GetQuoteInput(ToolInput):
    quote_id: PositiveId = Field(alias="quoteId")


class SearchQuotesInput(ToolInput):
    company_id: NonNegativeId | None = Field(default=None, alias="companyId", description=COMPANY_ID_HELP)
    contact_id: PositiveId | None = Field(default=None, alias="contactId")
    opportunity_id: PositiveId | None = Field(default=None, alias="opportunityId")
    search_term: SearchTerm | None = Field(default=None, alias="searchTerm")
    page_size: PageSizeLimited | None = Field(default=None, alias="pageSize")


class CreateQuoteInput(ToolInput):
    name: QuoteName | None = None
    description: QuoteText | None = None
    company_id: NonNegativeId = Field(alias="companyId", description=COMPANY_ID_HELP)
    contact_id: PositiveId | None = Field(default=None, alias="contactId")
    opportunity_id: PositiveId | None = Field(default=None, alias="opportunityId")
    effective_date: DateString | None = Field(default=None, alias="effectiveDate")
    expiration_date: DateString | None = Field(default=None, alias="expirationDate")

    refinements: ClassVar[tuple[Refinement, ...]] = (
        ordered_dates(
            "effective_date",
            "expiration_date",
            path="expirationDate",
            message="Expiration date must be on or after effective date",
        ),
    )


# -- invoices ------------------------------------------------------------------


class SearchInvoicesInput(ToolInput):
    company_id: NonNegativeId | None = Field(default=None, alias="companyID", description=COMPANY_ID_HELP)
    invoice_number: InvoiceNumber | None = Field(default=None, alias="invoiceNumber")
    is_voided: StrictBool | None = Field(default=None, alias="isVoided")
    page_size: PageSizeMedium | None = Field(default=None, alias="pageSize")
