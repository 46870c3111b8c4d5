"""Outbound call gate for the Autotask API.

Autotask allows a small number of concurrent threads per integration and a
rolling hourly request allowance. The gate:

* allows 2 calls in flight, dropping to 1 once usage passes 50%,
* asks for fresh threshold information every 19 calls (every 9 above 80%),
* refuses calls outright while fewer than 100 requests remain, re-reading
  usage at most every 5 seconds until the allowance recovers.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from .errors import RateLimitBlockedError

log = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ThresholdInfo:
    request_count: int
    request_limit: int
    timeframe_minutes: int | None = None

    @property
    def percentage_used(self) -> float:
        if self.request_limit <= 0:
            return 0.0
        return self.request_count / self.request_limit * 100

    @property
    def calls_remaining(self) -> int:
        return self.request_limit - self.request_count

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ThresholdInfo:
        return cls(
            request_count=int(data.get("currentTimeframeRequestCount") or 0),
            request_limit=int(data.get("externalRequestThreshold") or 0),
            timeframe_minutes=data.get("requestThresholdTimeframe"),
        )


@dataclass(frozen=True, slots=True)
class RateLimiterConfig:
    max_concurrent_requests: int = 2
    threshold_check_interval: int = 19
    critical_check_interval: int = 9
    high_usage_threshold: float = 50.0
    critical_usage_threshold: float = 80.0
    minimum_calls_remaining: int = 100
    blocked_recheck_seconds: float = 5.0


class RateLimiter:
    def __init__(self, config: RateLimiterConfig | None = None) -> None:
        self._config = config or RateLimiterConfig()
        self._max_concurrent = self._config.max_concurrent_requests
        self._active = 0
        self._waiting = 0
        self._cond = asyncio.Condition()
        self._calls_since_check = 0
        self._threshold: ThresholdInfo | None = None
        self._high_usage = False
        self._blocked = False

    @property
    def threshold(self) -> ThresholdInfo | None:
        return self._threshold

    @property
    def blocked(self) -> bool:
        return self._blocked

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    def should_check_thresholds(self) -> bool:
        interval = self._config.threshold_check_interval
        if (
            self._threshold is not None
            and self._threshold.percentage_used >= self._config.critical_usage_threshold
        ):
            interval = self._config.critical_check_interval
        return self._calls_since_check >= interval

    def update_threshold(self, info: ThresholdInfo) -> None:
        self._threshold = info
        self._calls_since_check = 0

        was_blocked = self._blocked
        self._blocked = info.calls_remaining < self._config.minimum_calls_remaining
        log.info(
            "rate_limit.threshold",
            request_count=info.request_count,
            request_limit=info.request_limit,
            percentage_used=round(info.percentage_used, 1),
            calls_remaining=info.calls_remaining,
        )
        if self._blocked:
            if not was_blocked:
                log.error(
                    "rate_limit.blocked",
                    calls_remaining=info.calls_remaining,
                    minimum=self._config.minimum_calls_remaining,
                )
            return
        if was_blocked:
            log.info("rate_limit.unblocked", calls_remaining=info.calls_remaining)

        was_high = self._high_usage
        self._high_usage = info.percentage_used >= self._config.high_usage_threshold
        if self._high_usage and not was_high:
            log.warning("rate_limit.single_thread", percentage_used=round(info.percentage_used, 1))
            self._max_concurrent = 1
        elif was_high and not self._high_usage:
            log.info("rate_limit.restored", max_concurrent=self._config.max_concurrent_requests)
            self._max_concurrent = self._config.max_concurrent_requests

    async def run(self, request: Callable[[], Awaitable[T]], endpoint: str | None = None) -> T:
        """Run ``request`` once a slot is free."""
        if self._blocked:
            remaining = self._threshold.calls_remaining if self._threshold else 0
            raise RateLimitBlockedError(
                f"API rate limit protection: fewer than {self._config.minimum_calls_remaining} "
                f"calls remaining ({remaining} left). Wait for the usage window to reset."
            )

        async with self._cond:
            self._waiting += 1
            try:
                await self._cond.wait_for(lambda: self._active < self._max_concurrent)
            finally:
                self._waiting -= 1
            self._active += 1
            self._calls_since_check += 1

        log.debug("rate_limit.execute", endpoint=endpoint, active=self._active)
        try:
            return await request()
        finally:
            async with self._cond:
                self._active -= 1
                self._cond.notify_all()

    def status(self) -> dict[str, Any]:
        info = self._threshold
        return {
            "activeRequests": self._active,
            "maxConcurrentRequests": self._max_concurrent,
            "queuedRequests": self._waiting,
            "isHighUsage": self._high_usage,
            "isBlocked": self._blocked,
            "apiCallsSinceCheck": self._calls_since_check,
            "callsRemaining": info.calls_remaining if info else None,
            "threshold": (
                {
                    "requestCount": info.request_count,
                    "requestLimit": info.request_limit,
                    "percentageUsed": round(info.percentage_used, 1),
                    "timeframeMinutes": info.timeframe_minutes,
                }
                if info
                else None
            ),
        }
