"""Note payload construction shared by ticket, project and company notes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import InputValidationError, Violation

MAX_DESCRIPTION_LENGTH = 32000
MAX_TITLE_LENGTH = 250

# 1 = Internal Only, 2 = All Autotask Users, 3 = Everyone (portal visible)
PUBLISH_LEVELS: dict[int, str] = {
    1: "Internal Only",
    2: "All Autotask Users",
    3: "Everyone",
}
NOTE_TYPES: dict[int, str] = {
    1: "General",
    2: "Appointment",
    3: "Task",
    4: "Ticket",
    5: "Project",
    6: "Opportunity",
}

DEFAULT_PUBLISH = 1
DEFAULT_NOTE_TYPE = 1


@dataclass(frozen=True, slots=True)
class NotePayloadParams:
    description: str | None
    title: str | None = None
    publish: int | None = None
    note_type: int | None = None
    creator_resource_id: int | None = None


def validate_description(description: str | None) -> list[Violation]:
    if description is None or not description.strip():
        return [Violation("description", "description is required and cannot be empty")]
    if len(description) > MAX_DESCRIPTION_LENGTH:
        return [
            Violation(
                "description",
                f"Note description exceeds maximum length of {MAX_DESCRIPTION_LENGTH} "
                f"characters. Current length: {len(description)}",
            )
        ]
    return []


def validate_title(title: str | None) -> list[Violation]:
    if title is not None and len(title.strip()) > MAX_TITLE_LENGTH:
        return [
            Violation("title", f"Note title cannot exceed {MAX_TITLE_LENGTH} characters")
        ]
    return []


def _in_enum(value: Any, allowed: dict[int, str]) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value in allowed


def build_note_payload(params: NotePayloadParams) -> dict[str, Any]:
    """Validate note parameters and render the PascalCase REST payload.

    Defaults are applied first and the defaulted value is then validated, so
    an explicit out-of-range value is always reported.
    """
    violations = validate_description(params.description)
    violations += validate_title(params.title)

    publish = DEFAULT_PUBLISH if params.publish is None else params.publish
    if not _in_enum(publish, PUBLISH_LEVELS):
        violations.append(
            Violation(
                "publish",
                f"Invalid publish level: {publish}. Must be 1 (Internal Only), "
                "2 (All Autotask Users), or 3 (Everyone)",
            )
        )

    note_type = DEFAULT_NOTE_TYPE if params.note_type is None else params.note_type
    if not _in_enum(note_type, NOTE_TYPES):
        violations.append(
            Violation(
                "noteType",
                f"Invalid note type: {note_type}. Must be 1-6 "
                "(General, Appointment, Task, Ticket, Project, Opportunity)",
            )
        )

    if violations:
        raise InputValidationError(violations)

    description = params.description or ""
    payload: dict[str, Any] = {
        "Description": description.strip(),
        "Publish": publish,
        "NoteType": note_type,
    }
    if params.title and params.title.strip():
        payload["Title"] = params.title.strip()
    if params.creator_resource_id is not None:
        payload["CreatorResourceID"] = params.creator_resource_id
    return payload
