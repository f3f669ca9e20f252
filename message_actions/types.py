"""
Message action types and data classes.

Defines timetokens, message actions, page cursors and the results
returned by fetch, add and delete operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import ValidationError

TIMETOKEN_MAX = 2**64

# Server status is usually the HTTP code echoed in the body.
ResponseStatus = int | str | None


def _require_mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"expected {what} to be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True, order=True)
class Timetoken:
    """A point in the message stream, as a 64-bit count of 100ns ticks.

    Timetokens travel as decimal strings on the wire.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError("timetoken", "must be an integer", repr(self.value))
        if not 0 <= self.value < TIMETOKEN_MAX:
            raise ValidationError("timetoken", "out of 64-bit range", str(self.value))

    @classmethod
    def parse(cls, raw: str | int) -> Timetoken:
        """Parse a timetoken from its decimal form."""
        if isinstance(raw, int):
            return cls(raw)
        text = str(raw).strip()
        if not (text.isascii() and text.isdigit()):
            raise ValidationError("timetoken", "not a decimal number", str(raw))
        return cls(int(text))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class MessageAction:
    """A single annotation attached to a parent message.

    The service keeps at most one (type, value) pair per actor per
    parent message.
    """

    type: str
    value: str
    actor_id: str
    action_timetoken: Timetoken
    message_timetoken: Timetoken | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape."""
        data: dict[str, Any] = {
            "type": self.type,
            "value": self.value,
            "uuid": self.actor_id,
            "actionTimetoken": str(self.action_timetoken),
        }
        if self.message_timetoken is not None:
            data["messageTimetoken"] = str(self.message_timetoken)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MessageAction:
        """Deserialize from the wire shape."""
        data = _require_mapping(data, "message action")
        message_timetoken = None
        if data.get("messageTimetoken") is not None:
            message_timetoken = Timetoken.parse(data["messageTimetoken"])

        return cls(
            type=data["type"],
            value=data["value"],
            actor_id=data["uuid"],
            action_timetoken=Timetoken.parse(data["actionTimetoken"]),
            message_timetoken=message_timetoken,
        )


@dataclass(frozen=True)
class FetchRange:
    """Range to walk, newest first: ``from_`` is later than ``to``.

    Omitting ``from_`` starts at the current time; omitting ``to`` walks
    back without a lower bound.
    """

    from_: Timetoken | None = None
    to: Timetoken | None = None

    def __post_init__(self) -> None:
        if self.from_ is not None and self.to is not None and not self.from_ > self.to:
            raise ValidationError(
                "range", "from must be later than to", f"{self.from_}..{self.to}"
            )


@dataclass(frozen=True)
class PageCursor:
    """Request window for one page of actions."""

    start: Timetoken | None = None
    end: Timetoken | None = None
    limit: int | None = None

    @classmethod
    def initial(cls, fetch_range: FetchRange, limit: int | None = None) -> PageCursor:
        """Cursor for the first request of a fetch."""
        return cls(start=fetch_range.from_, end=fetch_range.to, limit=limit or None)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PageCursor:
        """Parse the server's ``more`` object."""
        data = _require_mapping(data, "more")
        limit = data.get("limit")
        return cls(
            start=Timetoken.parse(data["start"]),
            end=Timetoken.parse(data["end"]),
            limit=int(limit) if limit is not None else None,
        )


@dataclass(frozen=True)
class Exhausted:
    """No more pages remain."""


@dataclass(frozen=True)
class Continue:
    """The server stopped early; fetch again with ``cursor``."""

    cursor: PageCursor


Continuation = Exhausted | Continue


@dataclass(frozen=True)
class Page:
    """One fetch response."""

    actions: tuple[MessageAction, ...] = ()
    continuation: Continuation = field(default_factory=Exhausted)
    status: ResponseStatus = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Page:
        """Deserialize a fetch response body."""
        raw_actions = data.get("data") or []
        if not isinstance(raw_actions, list):
            raise TypeError(f"expected a list of actions, got {type(raw_actions).__name__}")

        more = data.get("more")
        continuation: Continuation = Exhausted()
        if more:
            continuation = Continue(PageCursor.from_dict(more))

        return cls(
            actions=tuple(MessageAction.from_dict(item) for item in raw_actions),
            continuation=continuation,
            status=data.get("status"),
        )


@dataclass(frozen=True)
class FetchMessageActionsResult:
    """All actions of a fetch, in the order pages arrived.

    ``status`` is the status of the last page.
    """

    actions: tuple[MessageAction, ...] = ()
    status: ResponseStatus = None


@dataclass(frozen=True)
class AddMessageActionResult:
    """The action as stored by the service."""

    action: MessageAction
    status: ResponseStatus = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AddMessageActionResult:
        data = _require_mapping(data, "response")
        return cls(action=MessageAction.from_dict(data["data"]), status=data.get("status"))


@dataclass(frozen=True)
class DeleteMessageActionResult:
    status: ResponseStatus = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeleteMessageActionResult:
        return cls(status=data.get("status"))
