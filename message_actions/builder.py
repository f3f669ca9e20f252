"""
Request construction for message action endpoints.

Builders validate their inputs and return immutable parameter objects.
Parameter objects know how to render themselves as a transport-neutral
``Request``; the executor turns that into an HTTP call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from urllib.parse import quote

from .encoding import JsonPayloadEncoder, PayloadEncoder
from .exceptions import ValidationError
from .keyset import Keyset
from .types import PageCursor, Timetoken

API_PREFIX = "/v1/message-actions"


@dataclass(frozen=True)
class Request:
    """An HTTP request relative to the service origin."""

    method: str
    path: str
    query: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    content_type: str | None = None


def _segment(value: str) -> str:
    return quote(value, safe="")


class RequestParams(ABC):
    """Base for all endpoint parameter objects."""

    keyset: Keyset

    @abstractmethod
    def to_request(self) -> Request:
        """Render the parameters as a request."""

    def _base_query(self) -> dict[str, str]:
        query = {"uuid": self.keyset.user_id}
        if self.keyset.auth_key:
            query["auth"] = self.keyset.auth_key
        return query

    def _channel_path(self, channel: str) -> str:
        return (
            f"{API_PREFIX}/{_segment(self.keyset.subscribe_key)}"
            f"/channel/{_segment(channel)}"
        )


@dataclass(frozen=True)
class FetchMessageActionsParams(RequestParams):
    keyset: Keyset
    channel: str
    start: Timetoken | None = None
    end: Timetoken | None = None
    limit: int | None = None

    def to_request(self) -> Request:
        query = self._base_query()
        if self.start is not None:
            query["start"] = str(self.start)
        if self.end is not None:
            query["end"] = str(self.end)
        if self.limit:
            query["limit"] = str(self.limit)
        return Request(method="GET", path=self._channel_path(self.channel), query=query)


@dataclass(frozen=True)
class AddMessageActionParams(RequestParams):
    keyset: Keyset
    channel: str
    message_timetoken: Timetoken
    body: bytes
    content_type: str = JsonPayloadEncoder.content_type

    def to_request(self) -> Request:
        return Request(
            method="POST",
            path=f"{self._channel_path(self.channel)}/message/{self.message_timetoken}",
            query=self._base_query(),
            body=self.body,
            content_type=self.content_type,
        )


@dataclass(frozen=True)
class DeleteMessageActionParams(RequestParams):
    keyset: Keyset
    channel: str
    message_timetoken: Timetoken
    action_timetoken: Timetoken

    def to_request(self) -> Request:
        return Request(
            method="DELETE",
            path=(
                f"{self._channel_path(self.channel)}/message/{self.message_timetoken}"
                f"/action/{self.action_timetoken}"
            ),
            query=self._base_query(),
        )


def _require(condition: bool, field_name: str, reason: str) -> None:
    if not condition:
        raise ValidationError(field_name, reason)


class RequestBuilder:
    """Validates arguments and builds endpoint parameters."""

    def __init__(self, encoder: PayloadEncoder | None = None):
        self.encoder = encoder or JsonPayloadEncoder()

    def build_fetch(
        self,
        keyset: Keyset | None,
        channel: str,
        cursor: PageCursor | None = None,
    ) -> FetchMessageActionsParams:
        """Build parameters for one page of a fetch.

        Channel validation happens once per fetch, in the collector.
        """
        _require(keyset is not None, "keyset", "must not be None")
        cursor = cursor or PageCursor()
        return FetchMessageActionsParams(
            keyset=keyset,
            channel=channel,
            start=cursor.start,
            end=cursor.end,
            limit=cursor.limit,
        )

    def build_add(
        self,
        keyset: Keyset | None,
        channel: str,
        message_timetoken: Timetoken | None,
        type: str,
        value: str,
    ) -> AddMessageActionParams:
        _require(keyset is not None, "keyset", "must not be None")
        _require(bool(channel), "channel", "must not be empty")
        _require(bool(type), "message action type", "must not be empty")
        _require(bool(value), "message action value", "must not be empty")
        _require(message_timetoken is not None, "message timetoken", "must not be None")

        body = self.encoder.encode({"type": type, "value": value})
        return AddMessageActionParams(
            keyset=keyset,
            channel=channel,
            message_timetoken=message_timetoken,
            body=body,
            content_type=getattr(self.encoder, "content_type", JsonPayloadEncoder.content_type),
        )

    def build_delete(
        self,
        keyset: Keyset | None,
        channel: str,
        message_timetoken: Timetoken | None,
        action_timetoken: Timetoken | None,
    ) -> DeleteMessageActionParams:
        _require(keyset is not None, "keyset", "must not be None")
        _require(bool(channel), "channel", "must not be empty")
        _require(message_timetoken is not None, "message timetoken", "must not be None")
        _require(action_timetoken is not None, "action timetoken", "must not be None")

        return DeleteMessageActionParams(
            keyset=keyset,
            channel=channel,
            message_timetoken=message_timetoken,
            action_timetoken=action_timetoken,
        )
