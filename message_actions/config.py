"""
Client configuration.

Configuration can be provided directly or via environment variables:

Environment Variables:
    MESSAGE_ACTIONS_ORIGIN: Service host (default: ps.pndsn.com)
    MESSAGE_ACTIONS_SSL: Use https (default: true)
    MESSAGE_ACTIONS_TIMEOUT: Per-request timeout in seconds (default: 10)
    MESSAGE_ACTIONS_MAX_PAGES: Page bound for fetches, 0 for unbounded (default: 1000)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = "ps.pndsn.com"
DEFAULT_REQUEST_TIMEOUT = 10.0  # seconds
DEFAULT_MAX_PAGES = 1000
DEFAULT_USER_AGENT = "message-actions-python/0.1.0"


@dataclass
class ClientConfig:
    """Configuration for the message actions client.

    Attributes:
        origin: Service host name, without scheme
        ssl: Use https when True
        request_timeout: Timeout for one round trip (seconds)
        max_pages: Upper bound on pages per fetch; None for unbounded
        user_agent: Value of the User-Agent header
    """

    origin: str = DEFAULT_ORIGIN
    ssl: bool = True
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_pages: int | None = DEFAULT_MAX_PAGES
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def base_url(self) -> str:
        scheme = "https" if self.ssl else "http"
        return f"{scheme}://{self.origin.rstrip('/')}"

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Create configuration from environment variables."""
        config = cls(
            origin=os.environ.get("MESSAGE_ACTIONS_ORIGIN", DEFAULT_ORIGIN),
            ssl=os.environ.get("MESSAGE_ACTIONS_SSL", "true").lower() not in ("0", "false", "no"),
        )

        timeout_str = os.environ.get("MESSAGE_ACTIONS_TIMEOUT")
        if timeout_str:
            try:
                config.request_timeout = float(timeout_str)
            except ValueError:
                logger.warning(f"Ignoring invalid MESSAGE_ACTIONS_TIMEOUT: {timeout_str}")

        max_pages_str = os.environ.get("MESSAGE_ACTIONS_MAX_PAGES")
        if max_pages_str:
            try:
                max_pages = int(max_pages_str)
                config.max_pages = max_pages if max_pages > 0 else None
            except ValueError:
                logger.warning(f"Ignoring invalid MESSAGE_ACTIONS_MAX_PAGES: {max_pages_str}")

        return config
