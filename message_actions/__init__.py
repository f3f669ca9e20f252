"""
Message Actions

Client library for annotating published messages with actions such as
read receipts, reactions and custom tags.

Provides:
- Add and delete of single actions
- Fetch of all actions in a channel range, following the service's
  page cursors until the range is exhausted
- Named keysets loaded from code, environment or YAML
- An aiohttp transport with a pluggable executor seam

Usage:

    >>> from message_actions import KeysetStore, MessageActionsClient, Timetoken
    >>> keysets = KeysetStore.from_env()
    >>> async with MessageActionsClient(keysets) as client:
    ...     result = await client.fetch_message_actions(
    ...         "room1", from_=Timetoken(15610547826970040), limit=100
    ...     )
    ...     for action in result.actions:
    ...         print(action.type, action.value, action.actor_id)
"""

from .builder import (
    AddMessageActionParams,
    DeleteMessageActionParams,
    FetchMessageActionsParams,
    Request,
    RequestBuilder,
    RequestParams,
)
from .client import MessageActionsClient
from .collector import ActionCollector
from .config import ClientConfig
from .encoding import JsonPayloadEncoder, PayloadEncoder
from .exceptions import (
    AuthorizationError,
    DeserializationError,
    KeysetNotFoundError,
    MessageActionsError,
    PaginationLimitError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
)
from .executor import AiohttpRequestExecutor, RequestExecutor
from .keyset import Keyset, KeysetStore
from .logging_utils import configure_structured_logging
from .types import (
    AddMessageActionResult,
    Continuation,
    Continue,
    DeleteMessageActionResult,
    Exhausted,
    FetchMessageActionsResult,
    FetchRange,
    MessageAction,
    Page,
    PageCursor,
    Timetoken,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "MessageActionsClient",
    "ActionCollector",
    "ClientConfig",
    # Types
    "Timetoken",
    "MessageAction",
    "FetchRange",
    "PageCursor",
    "Continuation",
    "Continue",
    "Exhausted",
    "Page",
    "FetchMessageActionsResult",
    "AddMessageActionResult",
    "DeleteMessageActionResult",
    # Requests
    "Request",
    "RequestParams",
    "RequestBuilder",
    "FetchMessageActionsParams",
    "AddMessageActionParams",
    "DeleteMessageActionParams",
    "RequestExecutor",
    "AiohttpRequestExecutor",
    "PayloadEncoder",
    "JsonPayloadEncoder",
    # Keysets
    "Keyset",
    "KeysetStore",
    # Exceptions
    "MessageActionsError",
    "ValidationError",
    "KeysetNotFoundError",
    "TransportError",
    "ServerError",
    "AuthorizationError",
    "RateLimitError",
    "DeserializationError",
    "PaginationLimitError",
    # Logging
    "configure_structured_logging",
]
