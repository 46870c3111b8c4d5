from __future__ import annotations

import pytest

from autotask_mcp import schemas as s
from autotask_mcp.errors import InputValidationError
from autotask_mcp.validation import tool_input_schema, validate_input


def problems(schema: type, raw: object) -> list[tuple[str | None, str]]:
    with pytest.raises(InputValidationError) as exc_info:
        validate_input(schema, raw)
    return [(v.path, v.message) for v in exc_info.value.violations]


def test_unknown_field_is_rejected() -> None:
    found = problems(s.SearchCompaniesInput, {"searchTerm": "acme", "serchTerm": "typo"})
    assert found == [
        ("serchTerm", "Unrecognized field; check the spelling against the tool schema")
    ]


def test_snake_case_names_are_not_accepted() -> None:
    found = problems(s.SearchCompaniesInput, {"page_size": 10})
    assert [path for path, _ in found] == ["page_size"]


def test_none_arguments_mean_empty_object() -> None:
    args = validate_input(s.SearchCompaniesInput, None)
    assert args.search_term is None
    assert args.page_size is None


def test_company_id_zero_is_valid() -> None:
    args = validate_input(s.SearchContactsInput, {"companyID": 0})
    assert args.company_id == 0
    assert "company_id" in args.model_fields_set

    omitted = validate_input(s.SearchContactsInput, {})
    assert omitted.company_id is None
    assert "company_id" not in omitted.model_fields_set


def test_company_note_accepts_company_zero() -> None:
    args = validate_input(s.CreateCompanyNoteInput, {"companyId": 0, "description": "hello"})
    assert args.company_id == 0


def test_other_ids_reject_zero() -> None:
    found = problems(s.GetTicketDetailsInput, {"ticketID": 0})
    assert found == [("ticketID", "ID must be a positive integer")]


def test_ids_must_be_integers() -> None:
    found = problems(s.GetResourceInput, {"resourceId": "12"})
    assert [path for path, _ in found] == ["resourceId"]


@pytest.mark.parametrize("page_size", [-1, 0, 1, 500])
def test_page_size_bounds_accept(page_size: int) -> None:
    assert validate_input(s.SearchTicketsInput, {"pageSize": page_size}).page_size == page_size


def test_page_size_rejects_other_negatives() -> None:
    found = problems(s.SearchTicketsInput, {"pageSize": -7})
    assert found == [("pageSize", "Page size must be -1 (unlimited) or a positive integer")]


def test_limited_page_size_ceiling() -> None:
    found = problems(s.SearchProjectsInput, {"pageSize": 101})
    assert found == [("pageSize", "Page size cannot exceed 100")]


def test_project_end_date_before_start_date() -> None:
    raw = {
        "companyID": 1,
        "projectName": "Migration",
        "status": 1,
        "startDate": "2025-02-01",
        "endDate": "2025-01-01",
    }
    assert problems(s.CreateProjectInput, raw) == [
        ("endDate", "Project end date must be on or after start date")
    ]


def test_project_equal_dates_pass() -> None:
    raw = {
        "companyID": 1,
        "projectName": "Migration",
        "status": 1,
        "startDate": "2025-02-01",
        "endDate": "2025-02-01",
    }
    assert validate_input(s.CreateProjectInput, raw).end_date == "2025-02-01"


def test_refinements_wait_for_field_rules() -> None:
    raw = {
        "companyID": 1,
        "projectName": "Migration",
        "status": 1,
        "startDate": "2025-02-01",
        "endDate": "2025-13-01",
    }
    found = problems(s.CreateProjectInput, raw)
    assert found == [("endDate", "Date must be a valid date")]


def test_ticket_date_ranges() -> None:
    found = problems(
        s.SearchTicketsInput,
        {
            "createDateFrom": "2025-03-01T00:00:00Z",
            "createDateTo": "2025-02-01T00:00:00Z",
            "lastActivityDateFrom": "2025-03-01T00:00:00Z",
            "lastActivityDateTo": "2025-02-01T00:00:00Z",
        },
    )
    assert [path for path, _ in found] == ["createDateTo", "lastActivityDateTo"]


def test_violations_keep_field_order() -> None:
    found = problems(s.CreateContactInput, {"companyID": -1, "firstName": "", "lastName": "x" * 51})
    assert [path for path, _ in found] == ["companyID", "firstName", "lastName"]


def test_partial_update_needs_a_field() -> None:
    found = problems(s.UpdateTicketInput, {"ticketId": 42})
    assert len(found) == 1
    assert found[0][0] is None
    assert found[0][1].startswith("At least one field must be provided for update")


def test_partial_update_with_one_field() -> None:
    args = validate_input(s.UpdateTicketInput, {"ticketId": 42, "status": 5})
    assert args.status == 5


def test_company_update_keyed_by_zero() -> None:
    args = validate_input(s.UpdateCompanyInput, {"id": 0, "phone": "555-0100"})
    assert args.id == 0
    assert problems(s.UpdateCompanyInput, {"id": 0})[0][0] is None


def test_strings_are_trimmed() -> None:
    args = validate_input(s.CreateTicketInput, {"companyID": 0, "title": "  VPN down ", "description": "x"})
    assert args.title == "VPN down"
    found = problems(s.CreateTicketInput, {"companyID": 0, "title": "   ", "description": "x"})
    assert found == [("title", "Ticket title cannot be empty")]


def test_note_enums() -> None:
    found = problems(
        s.CreateTicketNoteInput, {"ticketId": 1, "description": "d", "noteType": 7, "publish": 4}
    )
    assert [path for path, _ in found] == ["noteType", "publish"]


def test_email_is_normalised() -> None:
    args = validate_input(s.SearchResourcesInput, {"email": " Jane.Doe@Example.com "})
    assert args.email == "jane.doe@example.com"
    assert problems(s.SearchResourcesInput, {"email": "not-an-email"})[0][0] == "email"


def test_binary_flag() -> None:
    assert validate_input(s.SearchContactsInput, {"isActive": 1}).is_active == 1
    assert problems(s.SearchContactsInput, {"isActive": 2}) == [
        ("isActive", "isActive must be 0 (inactive) or 1 (active)")
    ]


def test_json_schema_uses_wire_names_and_is_closed() -> None:
    schema = tool_input_schema(s.SearchContactsInput)
    assert schema["type"] == "object"
    assert schema["additionalProperties"] is False
    assert set(schema["properties"]) == {"searchTerm", "companyID", "isActive", "pageSize"}
    assert "title" not in schema


def test_json_schema_required_fields() -> None:
    schema = tool_input_schema(s.CreateTicketNoteInput)
    assert set(schema["required"]) == {"ticketId", "description"}


@pytest.mark.parametrize("hours", [0, -1, 24.5])
def test_hours_worked_bounds(hours: float) -> None:
    found = problems(
        s.CreateTimeEntryInput,
        {
            "resourceID": 3,
            "taskID": 5,
            "dateWorked": "2025-03-01",
            "hoursWorked": hours,
            "summaryNotes": "x",
        },
    )
    assert [path for path, _ in found] == ["hoursWorked"]


def test_task_end_before_start() -> None:
    found = problems(
        s.CreateTaskInput,
        {
            "projectID": 4,
            "title": "Migrate",
            "status": 1,
            "startDateTime": "2025-05-02T09:00:00Z",
            "endDateTime": "2025-05-01T09:00:00Z",
        },
    )
    assert found == [("endDateTime", "Task end must be on or after its start")]


def test_task_type_choices() -> None:
    found = problems(s.CreateTaskInput, {"projectID": 4, "title": "T", "status": 1, "taskType": 3})
    assert found[0][0] == "taskType"
    assert "1 (Fixed Work)" in found[0][1]
