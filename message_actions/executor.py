"""
Request execution.

``RequestExecutor`` is the seam between request construction and the
network: one call is one round trip. ``AiohttpRequestExecutor`` is the
default implementation.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import aiohttp

from .builder import RequestParams
from .config import ClientConfig
from .exceptions import (
    AuthorizationError,
    DeserializationError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Deserializer = Callable[[Any], T]


class RequestExecutor(Protocol):
    """Performs one request and turns the response body into a result.

    Implementations raise ``TransportError``, ``ServerError`` (or a
    subclass) or ``DeserializationError``; they do not retry.
    """

    async def execute(self, params: RequestParams, deserialize: Deserializer[T]) -> T: ...


def _error_message(body: Any) -> str | None:
    """Pull the human-readable message out of an error body."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if body.get("message"):
        return str(body["message"])
    return None


class AiohttpRequestExecutor:
    """Executes requests with an ``aiohttp.ClientSession``.

    The session is created lazily and closed by ``close()``, unless one
    was passed in, in which case the caller owns it.

    Example:
        >>> async with AiohttpRequestExecutor(ClientConfig()) as executor:
        ...     page = await executor.execute(params, Page.from_dict)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.config.user_agent},
            )
            self._owns_session = True
        return self._session

    async def execute(self, params: RequestParams, deserialize: Deserializer[T]) -> T:
        request = params.to_request()
        url = f"{self.config.base_url}{request.path}"
        headers = {}
        if request.content_type:
            headers["Content-Type"] = request.content_type

        session = self._get_session()
        logger.debug(f"{request.method} {url} query={request.query}")

        try:
            async with session.request(
                request.method,
                url,
                params=request.query,
                data=request.body,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
            ) as response:
                status = response.status
                raw = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{request.method} {url} failed: {type(e).__name__}: {e}")
            raise TransportError(url, e) from e

        try:
            body = json.loads(raw) if raw else None
        except ValueError:
            body = None

        if not 200 <= status < 300:
            message = _error_message(body)
            logger.warning(f"{request.method} {url} returned {status}: {message}")
            error_body = body if body is not None else raw.decode("utf-8", errors="replace")
            if status == 403:
                raise AuthorizationError(status, message, error_body)
            if status == 429:
                raise RateLimitError(status, message, error_body)
            raise ServerError(status, message, error_body)

        if not isinstance(body, dict):
            raise DeserializationError(
                "response body is not a JSON object", raw.decode("utf-8", errors="replace")
            )

        try:
            return deserialize(body)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise DeserializationError(f"{type(e).__name__}: {e}", body) from e

    async def close(self) -> None:
        """Close the session if this executor created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> AiohttpRequestExecutor:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
