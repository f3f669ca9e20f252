"""Tests for the paginated fetch loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest
from conftest import ScriptedExecutor, action_body, page_body

from message_actions import (
    ActionCollector,
    FetchRange,
    KeysetStore,
    PaginationLimitError,
    ServerError,
    Timetoken,
    TransportError,
    ValidationError,
)


def more(start: str, end: str, limit: int | None = None) -> dict[str, Any]:
    cursor: dict[str, Any] = {"url": "/v1/message-actions/...", "start": start, "end": end}
    if limit is not None:
        cursor["limit"] = limit
    return cursor


class TestSinglePage:
    """A response without a cursor ends the fetch."""

    @pytest.mark.asyncio
    async def test_returns_page_actions_and_status(self, keysets: KeysetStore) -> None:
        """One page, one request, that page's actions and status."""
        executor = ScriptedExecutor([page_body([action_body(1), action_body(2)], status=200)])
        collector = ActionCollector(executor, keysets)

        result = await collector.fetch("room1")

        assert [a.value for a in result.actions] == ["value-1", "value-2"]
        assert result.status == 200
        assert len(executor.calls) == 1

    @pytest.mark.asyncio
    async def test_first_request_uses_range_and_limit(self, keysets: KeysetStore) -> None:
        """The caller's range and limit shape the first request."""
        executor = ScriptedExecutor([page_body([])])
        collector = ActionCollector(executor, keysets)

        await collector.fetch(
            "room1", FetchRange(from_=Timetoken(15000), to=Timetoken(100)), limit=25
        )

        params = executor.calls[0]
        assert params.channel == "room1"
        assert params.start == Timetoken(15000)
        assert params.end == Timetoken(100)
        assert params.limit == 25

    @pytest.mark.asyncio
    async def test_zero_limit_means_server_default(self, keysets: KeysetStore) -> None:
        """A zero limit is not sent."""
        executor = ScriptedExecutor([page_body([])])
        collector = ActionCollector(executor, keysets)

        await collector.fetch("room1", limit=0)

        assert executor.calls[0].limit is None
        assert "limit" not in executor.calls[0].to_request().query

    @pytest.mark.asyncio
    async def test_empty_channel_history(self, keysets: KeysetStore) -> None:
        """No actions at all is an empty result, not an error."""
        executor = ScriptedExecutor([page_body([], status="OK")])
        collector = ActionCollector(executor, keysets)

        result = await collector.fetch("room1")

        assert result.actions == ()
        assert result.status == "OK"


class TestMultiPage:
    """Cursor-following across several pages."""

    @pytest.mark.asyncio
    async def test_merges_pages_in_order(self, keysets: KeysetStore) -> None:
        """Pages are concatenated in arrival order; the last status wins."""
        executor = ScriptedExecutor(
            [
                page_body(
                    [action_body(1), action_body(2), action_body(3)],
                    more=more("14000", "100", 3),
                    status="first",
                ),
                page_body(
                    [action_body(4), action_body(5)],
                    more=more("13000", "100", 3),
                    status="second",
                ),
                page_body([action_body(6)], status="third"),
            ]
        )
        collector = ActionCollector(executor, keysets)

        result = await collector.fetch(
            "room1", FetchRange(from_=Timetoken(15000), to=Timetoken(100)), limit=3
        )

        assert [a.value for a in result.actions] == [f"value-{n}" for n in range(1, 7)]
        assert result.status == "third"
        assert len(executor.calls) == 3

        second, third = executor.calls[1], executor.calls[2]
        assert (second.start, second.end, second.limit) == (
            Timetoken(14000),
            Timetoken(100),
            3,
        )
        assert (third.start, third.end, third.limit) == (
            Timetoken(13000),
            Timetoken(100),
            3,
        )

    @pytest.mark.asyncio
    async def test_empty_page_with_cursor_continues(self, keysets: KeysetStore) -> None:
        """An empty page that carries a cursor is progress, not the end."""
        executor = ScriptedExecutor(
            [
                page_body([], more=more("14000", "0", 10)),
                page_body([], more=more("13000", "0", 10)),
                page_body([action_body(1)]),
            ]
        )
        collector = ActionCollector(executor, keysets)

        result = await collector.fetch("room1")

        assert len(executor.calls) == 3
        assert [a.value for a in result.actions] == ["value-1"]

    @pytest.mark.asyncio
    async def test_server_limit_overrides_caller_limit(self, keysets: KeysetStore) -> None:
        """The cursor's limit replaces the caller's from the second request on."""
        executor = ScriptedExecutor(
            [
                page_body([action_body(1)], more=more("14000", "0", 50)),
                page_body([action_body(2)], more=more("13000", "0", 50)),
                page_body([]),
            ]
        )
        collector = ActionCollector(executor, keysets)

        await collector.fetch("room1", limit=5)

        assert [call.limit for call in executor.calls] == [5, 50, 50]

    @pytest.mark.asyncio
    async def test_cursor_without_limit_clears_limit(self, keysets: KeysetStore) -> None:
        """A cursor with no limit does not carry the caller's limit forward."""
        executor = ScriptedExecutor(
            [
                page_body([action_body(1)], more=more("14000", "0")),
                page_body([]),
            ]
        )
        collector = ActionCollector(executor, keysets)

        await collector.fetch("room1", limit=5)

        assert executor.calls[1].limit is None

    @pytest.mark.asyncio
    async def test_two_page_scenario(self, keysets: KeysetStore) -> None:
        """room1 from 15000: one action, then an empty final page."""
        executor = ScriptedExecutor(
            [
                page_body([action_body(1)], more={"start": "14990", "end": "0", "limit": 10}),
                page_body([], status="OK"),
            ]
        )
        collector = ActionCollector(executor, keysets)

        result = await collector.fetch(
            "room1", FetchRange(from_=Timetoken(15000), to=None), limit=10
        )

        assert len(executor.calls) == 2
        assert len(result.actions) == 1
        assert result.actions[0].action_timetoken == Timetoken(20001)
        assert result.status == "OK"
        assert executor.calls[1].start == Timetoken(14990)
        assert executor.calls[1].end == Timetoken(0)


class TestFailures:
    """Errors abort the whole fetch."""

    @pytest.mark.asyncio
    async def test_failing_second_page_discards_first(self, keysets: KeysetStore) -> None:
        """No partial result escapes when a later page fails."""
        executor = ScriptedExecutor(
            [
                page_body(
                    [action_body(1), action_body(2), action_body(3)],
                    more=more("14000", "0", 3),
                ),
                ServerError(500, "Internal error"),
                page_body([action_body(4)]),
            ]
        )
        collector = ActionCollector(executor, keysets)

        with pytest.raises(ServerError) as exc_info:
            await collector.fetch("room1")

        assert exc_info.value.status_code == 500
        assert len(executor.calls) == 2

    @pytest.mark.asyncio
    async def test_error_propagates_unchanged(self, keysets: KeysetStore) -> None:
        """The executor's exception object reaches the caller as is."""
        error = TransportError("https://example.invalid", TimeoutError())
        executor = ScriptedExecutor([error])
        collector = ActionCollector(executor, keysets)

        with pytest.raises(TransportError) as exc_info:
            await collector.fetch("room1")

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_empty_channel_fails_before_request(self, keysets: KeysetStore) -> None:
        executor = ScriptedExecutor([])
        collector = ActionCollector(executor, keysets)

        with pytest.raises(ValidationError) as exc_info:
            await collector.fetch("")

        assert exc_info.value.field == "channel"
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_missing_keyset_fails_before_request(self) -> None:
        executor = ScriptedExecutor([])
        collector = ActionCollector(executor, KeysetStore())

        with pytest.raises(ValidationError):
            await collector.fetch("room1")

        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_negative_limit_rejected(self, keysets: KeysetStore) -> None:
        collector = ActionCollector(ScriptedExecutor([]), keysets)

        with pytest.raises(ValidationError):
            await collector.fetch("room1", limit=-1)


class TestPageBound:
    """The optional max_pages bound."""

    @pytest.mark.asyncio
    async def test_bound_stops_endless_cursor_chain(self, keysets: KeysetStore) -> None:
        """A server that always returns a cursor is cut off."""
        executor = ScriptedExecutor(
            [page_body([action_body(n)], more=more("14000", "0", 1)) for n in range(5)]
        )
        collector = ActionCollector(executor, keysets, max_pages=3)

        with pytest.raises(PaginationLimitError) as exc_info:
            await collector.fetch("room1")

        assert exc_info.value.max_pages == 3
        assert len(executor.calls) == 3

    @pytest.mark.asyncio
    async def test_bound_not_hit_when_exhausted_in_time(self, keysets: KeysetStore) -> None:
        executor = ScriptedExecutor(
            [
                page_body([action_body(1)], more=more("14000", "0", 1)),
                page_body([action_body(2)]),
            ]
        )
        collector = ActionCollector(executor, keysets, max_pages=2)

        result = await collector.fetch("room1")

        assert len(result.actions) == 2

    def test_bound_must_be_positive(self, keysets: KeysetStore) -> None:
        with pytest.raises(ValidationError):
            ActionCollector(ScriptedExecutor([]), keysets, max_pages=0)


class BlockingExecutor:
    """Answers the first request with a cursor, then hangs."""

    def __init__(self) -> None:
        self.calls = 0
        self.blocked = asyncio.Event()

    async def execute(self, params: Any, deserialize: Any) -> Any:
        self.calls += 1
        if self.calls == 1:
            return deserialize(page_body([action_body(1)], more=more("14000", "0", 1)))
        self.blocked.set()
        await asyncio.Event().wait()


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, keysets: KeysetStore) -> None:
        """Cancelling mid-fetch raises CancelledError and issues no more requests."""
        executor = BlockingExecutor()
        collector = ActionCollector(executor, keysets)

        task = asyncio.create_task(collector.fetch("room1"))
        await executor.blocked.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert executor.calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_fetches_are_independent(self, keysets: KeysetStore) -> None:
        """Two fetches through one collector keep separate cursors and results."""
        room_a = ScriptedExecutor(
            [
                page_body([action_body(1)], more=more("14000", "0", 1)),
                page_body([action_body(2)]),
            ]
        )
        room_b = ScriptedExecutor([page_body([action_body(9)])])

        class RoutingExecutor:
            async def execute(self, params: Any, deserialize: Any) -> Any:
                await asyncio.sleep(0)
                target = room_a if params.channel == "a" else room_b
                return await target.execute(params, deserialize)

        collector = ActionCollector(RoutingExecutor(), keysets)

        result_a, result_b = await asyncio.gather(
            collector.fetch("a"), collector.fetch("b")
        )

        assert [a.value for a in result_a.actions] == ["value-1", "value-2"]
        assert [a.value for a in result_b.actions] == ["value-9"]


class TestLogging:
    @pytest.mark.asyncio
    async def test_records_carry_channel_and_user(
        self, keysets: KeysetStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Fetch log records name the channel and the keyset's user."""
        executor = ScriptedExecutor([page_body([action_body(1)])])
        collector = ActionCollector(executor, keysets)

        with caplog.at_level(logging.DEBUG, logger="message_actions.collector"):
            await collector.fetch("room1")

        assert caplog.records
        for record in caplog.records:
            assert record.channel == "room1"
            assert record.user_id == "user-1"
