"""
Message actions client.

Wires the keyset store, request builder, executor and fetch loop together
and exposes the three operations applications use.
"""

from __future__ import annotations

import logging
from typing import Any

from .builder import RequestBuilder
from .collector import ActionCollector
from .config import ClientConfig
from .encoding import JsonPayloadEncoder, PayloadEncoder
from .executor import AiohttpRequestExecutor, RequestExecutor
from .keyset import Keyset, KeysetStore
from .types import (
    AddMessageActionResult,
    DeleteMessageActionResult,
    FetchMessageActionsResult,
    FetchRange,
    Timetoken,
)

logger = logging.getLogger(__name__)


class MessageActionsClient:
    """Add, list and remove actions on published messages.

    Every operation takes an explicit ``keyset`` or the name of a stored
    one via ``using``; with neither, the store's default keyset is used.

    Example:
        >>> keysets = KeysetStore.from_env()
        >>> async with MessageActionsClient(keysets) as client:
        ...     added = await client.add_message_action(
        ...         "reaction", "smiley_face", "room1", Timetoken(15610547826970040)
        ...     )
        ...     result = await client.fetch_message_actions("room1", limit=100)
    """

    def __init__(
        self,
        keysets: KeysetStore,
        config: ClientConfig | None = None,
        executor: RequestExecutor | None = None,
        encoder: PayloadEncoder | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            keysets: Source of credentials
            config: Client configuration (default: ``ClientConfig()``)
            executor: Transport; an ``AiohttpRequestExecutor`` is created and
                owned by the client when omitted
            encoder: Request body encoder (default: JSON)
        """
        self.config = config or ClientConfig()
        self.keysets = keysets
        self._owns_executor = executor is None
        self.executor: RequestExecutor = executor or AiohttpRequestExecutor(self.config)
        self.builder = RequestBuilder(encoder or JsonPayloadEncoder())
        self.collector = ActionCollector(
            self.executor,
            keysets,
            builder=self.builder,
            max_pages=self.config.max_pages,
        )

    async def fetch_message_actions(
        self,
        channel: str,
        from_: Timetoken | None = None,
        to: Timetoken | None = None,
        limit: int | None = None,
        keyset: Keyset | None = None,
        using: str | None = None,
    ) -> FetchMessageActionsResult:
        """Fetch all actions of ``channel``, walking back from ``from_`` to ``to``.

        Without ``from_`` the service starts at the current time. Without
        ``to`` or ``limit`` there is no lower bound and the service keeps
        returning pages going back in time until the channel has no more
        actions. Pages are merged into one result.
        """
        return await self.collector.fetch(
            channel,
            FetchRange(from_=from_, to=to),
            limit=limit,
            keyset=keyset,
            using=using,
        )

    async def add_message_action(
        self,
        type: str,
        value: str,
        channel: str,
        message_timetoken: Timetoken | None,
        keyset: Keyset | None = None,
        using: str | None = None,
    ) -> AddMessageActionResult:
        """Post an action on the message published at ``message_timetoken``.

        The service does not check that the parent message exists, but it
        rejects a second identical (type, value) from the same user on the
        same message.
        """
        keyset = keyset or self.keysets.resolve(using)
        params = self.builder.build_add(keyset, channel, message_timetoken, type, value)
        logger.debug(f"Adding {type}={value} on {channel}/{message_timetoken}")
        return await self.executor.execute(params, AddMessageActionResult.from_dict)

    async def delete_message_action(
        self,
        channel: str,
        message_timetoken: Timetoken | None,
        action_timetoken: Timetoken | None,
        keyset: Keyset | None = None,
        using: str | None = None,
    ) -> DeleteMessageActionResult:
        """Remove the caller's action(s) posted at ``action_timetoken``.

        More than one action is removed if the same user posted several on
        the parent message within the same timetoken.
        """
        keyset = keyset or self.keysets.resolve(using)
        params = self.builder.build_delete(keyset, channel, message_timetoken, action_timetoken)
        logger.debug(f"Deleting action {action_timetoken} on {channel}/{message_timetoken}")
        return await self.executor.execute(params, DeleteMessageActionResult.from_dict)

    async def close(self) -> None:
        """Close the executor if the client created it."""
        if self._owns_executor and isinstance(self.executor, AiohttpRequestExecutor):
            await self.executor.close()

    async def __aenter__(self) -> MessageActionsClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
