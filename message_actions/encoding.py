"""Payload encoding for request bodies."""

from __future__ import annotations

import json
from typing import Any, Protocol


class PayloadEncoder(Protocol):
    """Turns a mapping into a request body."""

    content_type: str

    def encode(self, payload: dict[str, Any]) -> bytes: ...


class JsonPayloadEncoder:
    """Compact UTF-8 JSON, the service's body format."""

    content_type = "application/json"

    def encode(self, payload: dict[str, Any]) -> bytes:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
