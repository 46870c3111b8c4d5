"""Declarative tool-input contracts.

Each tool declares a closed pydantic model (unknown keys are rejected) built
from the annotated field types below. Rules that span several fields are
plain ``Refinement`` records on the model class; they are checked only once
every field-level rule has passed, and each one names the field it reports
against.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Annotated, Any, ClassVar, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StringConstraints,
    ValidationError,
)
from pydantic_core import PydanticCustomError

from .errors import InputValidationError, Violation

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")


# -- identifiers ---------------------------------------------------------------


def _positive_id(value: int) -> int:
    if value <= 0:
        raise PydanticCustomError("positive_id", "ID must be a positive integer")
    return value


def _non_negative_id(value: int) -> int:
    if value < 0:
        raise PydanticCustomError("non_negative_id", "ID must be 0 or a positive integer")
    return value


PositiveId = Annotated[
    StrictInt, AfterValidator(_positive_id), Field(json_schema_extra={"minimum": 1})
]
# Company references: 0 is the default/system company, not "unset".
NonNegativeId = Annotated[
    StrictInt, AfterValidator(_non_negative_id), Field(json_schema_extra={"minimum": 0})
]


# -- page sizes ----------------------------------------------------------------


def _page_size(maximum: int) -> Callable[[int], int]:
    def check(value: int) -> int:
        if value < -1:
            raise PydanticCustomError(
                "page_size", "Page size must be -1 (unlimited) or a positive integer"
            )
        if value > maximum:
            raise PydanticCustomError(
                "page_size", "Page size cannot exceed {maximum}", {"maximum": maximum}
            )
        return value

    return check


PageSizeStandard = Annotated[
    StrictInt,
    AfterValidator(_page_size(500)),
    Field(
        description="Number of results to return. Default: 50. Set to -1 for all results (max 500 per page).",
        json_schema_extra={"minimum": -1, "maximum": 500},
    ),
]
PageSizeMedium = Annotated[
    StrictInt,
    AfterValidator(_page_size(500)),
    Field(
        description="Number of results to return. Default: 25. Max: 500. Set to -1 for more.",
        json_schema_extra={"minimum": -1, "maximum": 500},
    ),
]
PageSizeLimited = Annotated[
    StrictInt,
    AfterValidator(_page_size(100)),
    Field(
        description="Number of results to return. Default: 25. Max: 100 (API limited).",
        json_schema_extra={"minimum": -1, "maximum": 100},
    ),
]


# -- strings -------------------------------------------------------------------


def bounded_str(max_length: int, label: str) -> Any:
    """A trimmed, non-empty string of at most ``max_length`` characters."""

    def check(value: str) -> str:
        if not value:
            raise PydanticCustomError("empty_string", "{label} cannot be empty", {"label": label})
        if len(value) > max_length:
            raise PydanticCustomError(
                "string_too_long",
                "{label} cannot exceed {max_length} characters",
                {"label": label, "max_length": max_length},
            )
        return value

    return Annotated[
        str,
        StringConstraints(strip_whitespace=True),
        AfterValidator(check),
        Field(json_schema_extra={"minLength": 1, "maxLength": max_length}),
    ]


def _search_term(value: str) -> str:
    if not value:
        raise PydanticCustomError("empty_string", "Search term cannot be empty")
    return value


SearchTerm = Annotated[
    str,
    StringConstraints(strip_whitespace=True),
    AfterValidator(_search_term),
    Field(description="Text to search for. Matching is entity specific (names, numbers)."),
]


def _email(value: str) -> str:
    if not _EMAIL_RE.match(value):
        raise PydanticCustomError("email", "Invalid email format. Example: user@example.com")
    return value.lower()


Email = Annotated[str, StringConstraints(strip_whitespace=True), AfterValidator(_email)]


def _phone(value: str) -> str:
    if not _PHONE_RE.match(value):
        raise PydanticCustomError(
            "phone", "Phone must contain only digits, spaces, hyphens, and parentheses"
        )
    return value


Phone = Annotated[str, StringConstraints(strip_whitespace=True), AfterValidator(_phone)]


# -- dates ---------------------------------------------------------------------


def _date_string(value: str) -> str:
    if not _DATE_RE.match(value):
        raise PydanticCustomError("date_format", "Date must be in YYYY-MM-DD format")
    try:
        date.fromisoformat(value)
    except ValueError:
        raise PydanticCustomError("date_value", "Date must be a valid date") from None
    return value


def _iso_datetime(value: str) -> str:
    try:
        if not _DATETIME_RE.match(value):
            raise ValueError(value)
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise PydanticCustomError(
            "datetime_format", "Must be ISO 8601 format (e.g., 2025-09-17T16:30:00Z)"
        ) from None
    return value


DateString = Annotated[
    str, AfterValidator(_date_string), Field(json_schema_extra={"format": "date"})
]
IsoDateTime = Annotated[
    str, AfterValidator(_iso_datetime), Field(json_schema_extra={"format": "date-time"})
]


def _binary_flag(value: int) -> int:
    if value not in (0, 1):
        raise PydanticCustomError("binary_flag", "isActive must be 0 (inactive) or 1 (active)")
    return value


BinaryFlag = Annotated[StrictInt, AfterValidator(_binary_flag)]


def int_choice(choices: dict[int, str], label: str) -> Any:
    """An integer restricted to ``choices``; the message lists every option."""
    options = ", ".join(f"{k} ({v})" for k, v in choices.items())

    def check(value: int) -> int:
        if value not in choices:
            raise PydanticCustomError(
                "int_choice", "{label} must be one of {options}", {"label": label, "options": options}
            )
        return value

    return Annotated[
        StrictInt, AfterValidator(check), Field(json_schema_extra={"enum": list(choices)})
    ]


# -- cross-field rules ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Refinement:
    path: str | None
    message: str
    check: Callable[[Any], bool]


def _parse_moment(value: str) -> datetime:
    if _DATE_RE.match(value):
        return datetime.combine(date.fromisoformat(value), datetime.min.time())
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def ordered_dates(start: str, end: str, *, path: str, message: str) -> Refinement:
    """``end`` must be on or after ``start`` when both are present."""

    def check(model: BaseModel) -> bool:
        first = getattr(model, start)
        last = getattr(model, end)
        if first is None or last is None:
            return True
        a, b = _parse_moment(first), _parse_moment(last)
        if (a.tzinfo is None) != (b.tzinfo is None):
            a, b = a.replace(tzinfo=None), b.replace(tzinfo=None)
        return b >= a

    return Refinement(path, message, check)


def require_update_fields(key: str, message: str) -> Refinement:
    """Reject partial updates that carry nothing but the identifying key."""

    def check(model: BaseModel) -> bool:
        return any(
            getattr(model, name) is not None for name in model.model_fields_set if name != key
        )

    return Refinement(None, message, check)


# -- engine --------------------------------------------------------------------


class ToolInput(BaseModel):
    """Base for every tool's input contract."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    refinements: ClassVar[tuple[Refinement, ...]] = ()


SchemaT = TypeVar("SchemaT", bound=ToolInput)


def _violation(error: Any) -> Violation:
    path = ".".join(str(p) for p in error["loc"]) or None
    if error["type"] == "extra_forbidden":
        return Violation(path, "Unrecognized field; check the spelling against the tool schema")
    if error["type"] == "missing":
        return Violation(path, "Field required")
    return Violation(path, error["msg"])


def validate_input(schema: type[SchemaT], raw: Any) -> SchemaT:
    """Validate raw tool arguments, or raise with every violation in order."""
    try:
        model = schema.model_validate({} if raw is None else raw)
    except ValidationError as exc:
        raise InputValidationError([_violation(e) for e in exc.errors()]) from None

    violations = [Violation(r.path, r.message) for r in schema.refinements if not r.check(model)]
    if violations:
        raise InputValidationError(violations)
    return model


def tool_input_schema(schema: type[ToolInput]) -> dict[str, Any]:
    """JSON Schema for the tool surface, keyed by the wire (camelCase) names."""
    json_schema = schema.model_json_schema(by_alias=True)
    json_schema.pop("title", None)
    return json_schema
