"""Capabilities injected into every entity service."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

import httpx
import structlog

from .autotask_client import AutotaskClient
from .errors import AutotaskApiError, RemoteOperationError
from .pagination import PaginationConfig, resolve_pagination
from .rate_limiter import RateLimiter, ThresholdInfo

T = TypeVar("T")

_STATUS_CODES: dict[int, str] = {
    400: "INVALID_REQUEST",
    401: "AUTH_FAILED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    422: "INVALID_REQUEST",
    429: "RATE_LIMITED",
}


class ServiceContext(Protocol):
    log: Any

    def get_client(self) -> AutotaskClient: ...

    async def run(self, request: Callable[[], Awaitable[T]], endpoint: str) -> T: ...

    def resolve_pagination(self, page_size: int | None, default_page_size: int) -> PaginationConfig: ...

    def map_error(self, exc: Exception, operation: str) -> RemoteOperationError: ...


def error_code(exc: Exception) -> tuple[str, int | None]:
    if isinstance(exc, AutotaskApiError):
        status = exc.status_code
        if status in _STATUS_CODES:
            return _STATUS_CODES[status], status
        if status >= 500:
            return "SERVER_ERROR", status
        return "UNKNOWN", status
    if isinstance(exc, httpx.HTTPError):
        return "NETWORK_ERROR", None
    return "UNKNOWN", None


class AutotaskServiceContext:
    """Production context: shared client, shared rate-limit gate."""

    def __init__(self, client: AutotaskClient, rate_limiter: RateLimiter) -> None:
        self._client = client
        self._rate_limiter = rate_limiter
        self._last_blocked_check: float | None = None
        self.log = structlog.get_logger("autotask_mcp.services")

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    def get_client(self) -> AutotaskClient:
        return self._client

    async def run(self, request: Callable[[], Awaitable[T]], endpoint: str) -> T:
        if self._rate_limiter.blocked and self._blocked_check_due():
            # Threshold reads bypass the gate so a block can lift.
            await self.refresh_thresholds()
        result = await self._rate_limiter.run(request, endpoint)
        if self._rate_limiter.should_check_thresholds():
            await self.refresh_thresholds()
        return result

    def _blocked_check_due(self) -> bool:
        now = time.monotonic()
        last = self._last_blocked_check
        if last is not None and now - last < self._rate_limiter.config.blocked_recheck_seconds:
            return False
        self._last_blocked_check = now
        return True

    async def refresh_thresholds(self) -> ThresholdInfo | None:
        """Pull current API usage into the gate; failures keep the old snapshot."""
        try:
            data = await self._client.threshold_info()
        except (AutotaskApiError, httpx.HTTPError) as exc:
            self.log.warning("rate_limit.threshold_check_failed", error=str(exc))
            return None
        info = ThresholdInfo.from_api(data)
        self._rate_limiter.update_threshold(info)
        return info

    def resolve_pagination(self, page_size: int | None, default_page_size: int) -> PaginationConfig:
        return resolve_pagination(page_size, default_page_size)

    def map_error(self, exc: Exception, operation: str) -> RemoteOperationError:
        code, status = error_code(exc)
        message = str(exc) or type(exc).__name__
        self.log.error(
            "autotask.request_failed",
            operation=operation,
            code=code,
            status_code=status,
            error=message,
        )
        return RemoteOperationError(
            operation=operation, message=message, code=code, status_code=status
        )
