"""Typed query filters for the Autotask ``/{Entity}/query`` endpoint.

Conditions are small frozen dataclasses. Leaf conditions only accept a field
from an entity's ``StrEnum`` of known field names, so a misspelt field fails
when the filter is built rather than as a remote 400.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar


class CommonField(StrEnum):
    ID = "id"


@dataclass(frozen=True, slots=True)
class _Condition:
    op: ClassVar[str]

    field: StrEnum
    value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.field, StrEnum):
            raise TypeError(
                f"{type(self).__name__} field must be a known entity field, got {self.field!r}"
            )

    def to_wire(self) -> dict[str, Any]:
        return {"op": self.op, "field": str(self.field), "value": self.value}


class Eq(_Condition):
    op = "eq"


class Ne(_Condition):
    op = "noteq"


class Gt(_Condition):
    op = "gt"


class Gte(_Condition):
    op = "gte"


class Lt(_Condition):
    op = "lt"


class Lte(_Condition):
    op = "lte"


class BeginsWith(_Condition):
    op = "beginsWith"


class Contains(_Condition):
    op = "contains"


class NotExist(_Condition):
    op = "notExist"

    def to_wire(self) -> dict[str, Any]:
        return {"op": self.op, "field": str(self.field)}


@dataclass(frozen=True, slots=True)
class _Group:
    op: ClassVar[str]

    items: tuple[Filter, ...]

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError(f"{type(self).__name__} needs at least one condition")

    def to_wire(self) -> dict[str, Any]:
        return {"op": self.op, "items": [item.to_wire() for item in self.items]}


class Or(_Group):
    op = "or"


class And(_Group):
    op = "and"


Filter = Eq | Ne | Gt | Gte | Lt | Lte | BeginsWith | Contains | NotExist | Or | And


def default_filter() -> list[Filter]:
    """A trivially-true filter; the API rejects an empty filter array."""
    return [Gte(CommonField.ID, 0)]


def ensure_filter(filters: list[Filter]) -> list[Filter]:
    return list(filters) if filters else default_filter()


def to_wire(filters: list[Filter]) -> list[dict[str, Any]]:
    return [f.to_wire() for f in filters]


def check_fields(filters: list[Filter], fields: type[StrEnum]) -> None:
    """Reject conditions naming a field that belongs to another entity."""
    for f in filters:
        if isinstance(f, _Group):
            check_fields(list(f.items), fields)
        elif not isinstance(f.field, (fields, CommonField)):
            raise TypeError(f"{f.field!r} is not a {fields.__name__} field")
