"""Domain errors."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(eq=False, slots=True)
class AutotaskApiError(RuntimeError):
    """Raised when the Autotask REST API returns a non-success response."""

    status_code: int
    method: str
    url: str
    response_text: str

    def __str__(self) -> str:
        return (
            f"Autotask API error {self.status_code} for {self.method} {self.url}: "
            f"{self.response_text}"
        )


@dataclass(frozen=True, slots=True)
class Violation:
    """A single failed input rule. ``path`` is None for whole-input rules."""

    path: str | None
    message: str

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class InputValidationError(ValueError):
    """Tool input failed one or more rules.

    The violations keep the order in which the rules were evaluated, so the
    caller can fix everything in one round-trip.
    """

    def __init__(self, violations: Iterable[Violation]) -> None:
        self.violations: tuple[Violation, ...] = tuple(violations)
        super().__init__(str(self))

    def __str__(self) -> str:
        lines = "\n".join(f"- {v}" for v in self.violations)
        return f"Invalid input ({len(self.violations)} problem(s)):\n{lines}"

    @classmethod
    def single(cls, path: str | None, message: str) -> InputValidationError:
        return cls([Violation(path, message)])


class RemoteOperationError(RuntimeError):
    """A remote failure mapped to something an agent can act on."""

    def __init__(
        self,
        *,
        operation: str,
        message: str,
        code: str,
        status_code: int | None = None,
    ) -> None:
        self.operation = operation
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(f"{operation} failed [{code}]: {message}")


class OperationNotSupportedError(NotImplementedError):
    """The operation has no backing in the remote API yet."""


class RateLimitBlockedError(RuntimeError):
    """Outbound calls are refused until the API usage window resets."""
