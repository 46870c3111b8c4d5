from __future__ import annotations

import pytest

from autotask_mcp.errors import InputValidationError
from autotask_mcp.notes import (
    MAX_DESCRIPTION_LENGTH,
    NotePayloadParams,
    build_note_payload,
)


def test_defaults_are_applied() -> None:
    payload = build_note_payload(NotePayloadParams(description="Called the customer"))
    assert payload == {"Description": "Called the customer", "Publish": 1, "NoteType": 1}


def test_full_payload_is_pascal_case() -> None:
    payload = build_note_payload(
        NotePayloadParams(
            description="  Rebooted the firewall  ",
            title=" Update ",
            publish=3,
            note_type=4,
            creator_resource_id=29682885,
        )
    )
    assert payload == {
        "Description": "Rebooted the firewall",
        "Publish": 3,
        "NoteType": 4,
        "Title": "Update",
        "CreatorResourceID": 29682885,
    }


@pytest.mark.parametrize("description", ["", " ", None])
def test_blank_description_fails(description: str | None) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        build_note_payload(NotePayloadParams(description=description))
    assert [v.path for v in exc_info.value.violations] == ["description"]


def test_description_length_boundary() -> None:
    ok = build_note_payload(NotePayloadParams(description="x" * MAX_DESCRIPTION_LENGTH))
    assert len(ok["Description"]) == MAX_DESCRIPTION_LENGTH

    with pytest.raises(InputValidationError) as exc_info:
        build_note_payload(NotePayloadParams(description="x" * (MAX_DESCRIPTION_LENGTH + 1)))
    assert "32001" in str(exc_info.value)


@pytest.mark.parametrize(("publish", "note_type", "paths"), [
    (4, 1, ["publish"]),
    (0, 1, ["publish"]),
    (1, 7, ["noteType"]),
    (1, 0, ["noteType"]),
    (9, 9, ["publish", "noteType"]),
])
def test_explicit_out_of_range_values_fail(publish: int, note_type: int, paths: list[str]) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        build_note_payload(
            NotePayloadParams(description="valid", publish=publish, note_type=note_type)
        )
    assert [v.path for v in exc_info.value.violations] == paths


def test_all_violations_are_reported_together() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        build_note_payload(
            NotePayloadParams(description="", title="t" * 251, publish=5, note_type=0)
        )
    assert [v.path for v in exc_info.value.violations] == [
        "description",
        "title",
        "publish",
        "noteType",
    ]


def test_blank_title_is_dropped() -> None:
    payload = build_note_payload(NotePayloadParams(description="d", title="   "))
    assert "Title" not in payload
