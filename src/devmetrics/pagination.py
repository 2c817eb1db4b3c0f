"""Page-number pagination over remote list endpoints.

A page source is any callable ``page_request(page_number) -> Page``. Page numbers
start at 1. Iteration stops at the first empty page, after the last page
reported by the source, or when a page request fails; failures are logged and
the records accumulated so far are kept.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, TypeVar

from .errors import ApiError
from .models import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")

PageRequest = Callable[[int], Page[T]]
RecordFilter = Callable[[T], bool]


def iter_pages(page_request: PageRequest) -> Iterator[Page[T]]:
    """Yield non-empty pages from ``page_request`` until the source is exhausted.

    The returned generator is lazy and cannot be restarted. ``ApiError`` from a
    single page halts iteration; ``AuthenticationError`` and other exceptions
    propagate to the caller.
    """
    page_number = 1
    while True:
        try:
            page = page_request(page_number)
        except ApiError as exc:
            logger.warning(
                "Halting pagination after page %d failed: %s",
                page_number,
                exc,
                extra={"page": page_number, "error": str(exc)},
            )
            return

        if not page.records:
            return

        yield page

        if not page.has_more_pages:
            return

        page_number += 1


def fetch_all(page_request: PageRequest, record_filter: Optional[RecordFilter] = None) -> List[T]:
    """Collect records from every page, applying ``record_filter`` per page.

    Records are returned in the order the pages deliver them. When
    ``record_filter`` is ``None`` every record is accepted.
    """
    records: List[T] = []
    pages_read = 0

    for page in iter_pages(page_request):
        pages_read += 1
        if record_filter is None:
            accepted = list(page.records)
        else:
            accepted = [record for record in page.records if record_filter(record)]
        records.extend(accepted)

        if not accepted and not page.has_more_pages:
            break

    logger.debug("Fetched paginated records", extra={"pages": pages_read, "records": len(records)})
    return records
