"""
Shared test configuration and fixtures.

Provides keysets and a scripted executor that replays canned response
bodies (or raises canned errors) in order, recording every request.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from message_actions import Keyset, KeysetStore
from message_actions.builder import RequestParams


def action_body(
    n: int,
    type: str = "reaction",
    value: str | None = None,
    uuid: str = "user-1",
    message_timetoken: str = "15000",
) -> dict[str, Any]:
    """Wire shape of one message action."""
    return {
        "type": type,
        "value": value or f"value-{n}",
        "uuid": uuid,
        "actionTimetoken": str(20000 + n),
        "messageTimetoken": message_timetoken,
    }


def page_body(
    actions: list[dict[str, Any]],
    more: dict[str, Any] | None = None,
    status: Any = 200,
) -> dict[str, Any]:
    """Wire shape of one fetch response."""
    body: dict[str, Any] = {"status": status, "data": actions}
    if more is not None:
        body["more"] = more
    return body


class ScriptedExecutor:
    """Executor replaying canned responses.

    Each entry is either a response body (passed to the deserializer) or an
    exception instance (raised).
    """

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.calls: list[RequestParams] = []

    async def execute(self, params: RequestParams, deserialize: Callable[[Any], Any]) -> Any:
        self.calls.append(params)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {params}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return deserialize(response)


@pytest.fixture
def keyset() -> Keyset:
    return Keyset(subscribe_key="sub-c-test", user_id="user-1", publish_key="pub-c-test")


@pytest.fixture
def keysets(keyset: Keyset) -> KeysetStore:
    store = KeysetStore()
    store.add("main", keyset, use_as_default=True)
    return store
