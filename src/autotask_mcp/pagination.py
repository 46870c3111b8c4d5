"""Page-size resolution and the page loops shared by entity services.

``pageSize`` semantics for every search tool:

* absent or ``0``: the entity's default page size
* ``1..500``: an explicit cap (larger values are clamped to 500)
* ``-1``: unlimited; each entity decides whether that means one ceiling-sized
  page or walking every page up to a safety bound
* anything else negative is rejected
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from .errors import InputValidationError

log = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 500
UNLIMITED = -1
UNLIMITED_BATCH_SIZE = 500

# Safety bounds for exhaustive pagination. These are tunable heuristics, not
# limits published by Autotask.
RESOURCE_MAX_PAGES = 20
CONTACT_MAX_PAGES = 30
COMPANY_MAX_PAGES = 50
TICKET_MAX_PAGES = 100

# fetch_page(max_records, after_id) -> raw query response
PageFetcher = Callable[[int, int | None], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class PaginationConfig:
    page_size: int | None
    unlimited: bool


def resolve_pagination(page_size: int | None, default_page_size: int) -> PaginationConfig:
    """Resolve a requested ``pageSize`` against an entity default."""
    if page_size is None or page_size == 0:
        return PaginationConfig(page_size=default_page_size, unlimited=False)
    if page_size == UNLIMITED:
        return PaginationConfig(page_size=None, unlimited=True)
    if page_size < 0:
        raise InputValidationError.single(
            "pageSize",
            f"Page size must be -1 (unlimited) or a positive integer, got {page_size}",
        )
    if page_size > MAX_PAGE_SIZE:
        log.warning("pagination.clamped", requested=page_size, page_size=MAX_PAGE_SIZE)
        return PaginationConfig(page_size=MAX_PAGE_SIZE, unlimited=False)
    return PaginationConfig(page_size=page_size, unlimited=False)


def extract_items(response: Any) -> list[dict[str, Any]] | None:
    """Return the ``items`` container of a query response, or None if malformed."""
    if not isinstance(response, dict):
        return None
    items = response.get("items")
    if not isinstance(items, list):
        return None
    return items


def cap_results(
    items: list[dict[str, Any]], page_size: int, *, entity: str
) -> list[dict[str, Any]]:
    """Enforce the caller's limit; the API sometimes returns more than asked."""
    if len(items) > page_size:
        log.warning(
            "pagination.truncated",
            entity=entity,
            returned=len(items),
            page_size=page_size,
        )
        return items[:page_size]
    return items


async def fetch_all_pages(
    fetch_page: PageFetcher,
    *,
    entity: str,
    max_pages: int,
    batch_size: int = UNLIMITED_BATCH_SIZE,
) -> list[dict[str, Any]]:
    """Walk pages sequentially until the data runs out or a bound is hit.

    The API gives no reliable "has next" signal, so a page shorter than
    ``batch_size`` is taken as the last one. Each following page is requested
    with the id of the last record seen, which the fetcher turns into an
    ``id > after_id`` condition.

    Every exit returns what has been accumulated so far. A malformed page ends
    the stream rather than discarding earlier pages.
    """
    records: list[dict[str, Any]] = []
    page = 1
    after_id: int | None = None

    while True:
        response = await fetch_page(batch_size, after_id)
        items = extract_items(response)
        if items is None:
            log.warning(
                "pagination.malformed_response",
                entity=entity,
                page=page,
                response_type=type(response).__name__,
            )
            break
        if not items:
            break

        records.extend(items)
        if len(items) < batch_size:
            break

        if page >= max_pages:
            log.warning(
                "pagination.safety_limit",
                entity=entity,
                pages=page,
                records=len(records),
            )
            break

        last_id = items[-1].get("id")
        if not isinstance(last_id, int):
            log.warning("pagination.missing_cursor", entity=entity, page=page)
            break
        after_id = last_id
        page += 1

    log.debug("pagination.done", entity=entity, pages=page, records=len(records))
    return records
