"""
Paginated fetch of message actions.

The service answers a fetch with at most one page of actions and, when it
stopped early, a cursor for the rest of the range. ``ActionCollector``
follows the cursor chain until the service reports the range exhausted and
returns every action in arrival order with the status of the last page.

Pages are requested strictly one after another because each request is
built from the previous response. A failing page fails the whole fetch;
actions collected so far are dropped, and cancellation of the calling task
propagates without a result.
"""

from __future__ import annotations

import logging

from .builder import RequestBuilder
from .exceptions import PaginationLimitError, ValidationError
from .executor import RequestExecutor
from .keyset import Keyset, KeysetStore
from .logging_utils import ActionsLoggerAdapter
from .types import (
    Continue,
    Exhausted,
    FetchMessageActionsResult,
    FetchRange,
    MessageAction,
    Page,
    PageCursor,
)

logger = logging.getLogger(__name__)


class ActionCollector:
    """Runs the fetch loop for one channel at a time.

    Holds no per-fetch state, so one collector serves any number of
    concurrent fetches.

    Args:
        executor: Performs each page request
        keysets: Resolves the keyset when the caller passes none
        builder: Builds page requests (default: ``RequestBuilder()``)
        max_pages: Fail with ``PaginationLimitError`` instead of requesting
            more than this many pages; None for no bound
    """

    def __init__(
        self,
        executor: RequestExecutor,
        keysets: KeysetStore,
        builder: RequestBuilder | None = None,
        max_pages: int | None = None,
    ) -> None:
        if max_pages is not None and max_pages < 1:
            raise ValidationError("max_pages", "must be at least 1", str(max_pages))
        self.executor = executor
        self.keysets = keysets
        self.builder = builder or RequestBuilder()
        self.max_pages = max_pages

    async def fetch(
        self,
        channel: str,
        fetch_range: FetchRange | None = None,
        limit: int | None = None,
        keyset: Keyset | None = None,
        using: str | None = None,
    ) -> FetchMessageActionsResult:
        """Fetch every action of ``channel`` within ``fetch_range``.

        ``limit`` caps the first page only; afterwards the limit carried by
        the server's cursor applies. None or 0 leaves the cap to the server.

        Raises:
            ValidationError: Empty channel, negative limit or no keyset
            PaginationLimitError: More than ``max_pages`` pages were needed
            TransportError, ServerError, DeserializationError: From the executor
        """
        keyset = keyset or self.keysets.resolve(using)
        if not channel:
            raise ValidationError("channel", "must not be empty")
        if limit is not None and limit < 0:
            raise ValidationError("limit", "must not be negative", str(limit))

        log = ActionsLoggerAdapter(logger, {"channel": channel, "user_id": keyset.user_id})
        cursor = PageCursor.initial(fetch_range or FetchRange(), limit)
        actions: tuple[MessageAction, ...] = ()
        pages = 0

        while True:
            if self.max_pages is not None and pages >= self.max_pages:
                log.warning(f"Stopping fetch after {pages} pages, more were available")
                raise PaginationLimitError(channel, self.max_pages)

            params = self.builder.build_fetch(keyset, channel, cursor)
            page: Page = await self.executor.execute(params, Page.from_dict)
            pages += 1
            actions = actions + page.actions
            log.debug(f"Fetched page {pages} with {len(page.actions)} action(s)")

            match page.continuation:
                case Continue(cursor=next_cursor):
                    log.debug(
                        f"Continuing from start={next_cursor.start} "
                        f"end={next_cursor.end} limit={next_cursor.limit}"
                    )
                    cursor = next_cursor
                case Exhausted():
                    log.info(f"Fetched {len(actions)} action(s) in {pages} page(s)")
                    return FetchMessageActionsResult(actions=actions, status=page.status)
