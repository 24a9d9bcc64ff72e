"""Record-store interface consumed by the sync, and cursor pagination over it."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, Optional, Protocol

from .models import DatabaseSchema, Page, QueryResult
from .retry import RetryPolicy, with_retry

LOGGER = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Narrow view of a paginated table store (implemented by :class:`NotionClient`)."""

    def get_database_schema(self, database_id: str) -> DatabaseSchema:
        ...

    def query_database(
        self,
        database_id: str,
        *,
        start_cursor: Optional[str] = None,
        page_size: int = 100,
        filter: Optional[Dict[str, Any]] = None,
    ) -> QueryResult:
        ...

    def update_page(self, page_id: str, properties: Dict[str, Any]) -> Page:
        ...


def iter_pages(
    store: RecordStore,
    database_id: str,
    retry_policy: RetryPolicy,
    *,
    page_size: int = 100,
    filter: Optional[Dict[str, Any]] = None,
    sleep: Optional[Callable[[float], None]] = None,
    logger: Optional[logging.Logger] = None,
) -> Iterator[Page]:
    """Yield every record of ``database_id`` in the order the store returns them.

    Each page request is wrapped in the retry policy. Errors that survive the
    retries propagate and end the iteration.
    """
    log = logger or LOGGER
    cursor: Optional[str] = None
    batch_number = 0

    while True:
        batch = with_retry(
            lambda: store.query_database(
                database_id, start_cursor=cursor, page_size=page_size, filter=filter
            ),
            retry_policy,
            sleep=sleep,
            logger=log,
        )
        batch_number += 1
        log.debug(
            "Fetched batch %s of %s with %s records.",
            batch_number,
            database_id,
            len(batch.results),
        )
        for page in batch.results:
            yield page

        if not batch.has_more or not batch.next_cursor:
            break
        cursor = batch.next_cursor
