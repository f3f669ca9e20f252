"""
Keyset resolution.

A keyset bundles the keys and user id a request is made with. The store
keeps named keysets and a default, and can be filled from code, from
environment variables or from a YAML settings file:

```yaml
keysets:
  default: main
  main:
    subscribe_key: "sub-c-..."
    publish_key: "pub-c-..."
    user_id: "alice"
    auth_key: "token"   # Optional
```
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import KeysetNotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_KEYSET_NAME = "default"


@dataclass(frozen=True)
class Keyset:
    """Credentials for one tenant of the service."""

    subscribe_key: str
    user_id: str
    publish_key: str | None = None
    auth_key: str | None = None

    def __post_init__(self) -> None:
        if not self.subscribe_key:
            raise ValidationError("subscribe_key", "must not be empty")
        if not self.user_id:
            raise ValidationError("user_id", "must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Keyset:
        return cls(
            subscribe_key=data.get("subscribe_key", ""),
            user_id=data.get("user_id", ""),
            publish_key=data.get("publish_key"),
            auth_key=data.get("auth_key"),
        )


class KeysetStore:
    """Named keysets with an optional default.

    Example:
        >>> store = KeysetStore()
        >>> store.add("main", Keyset(subscribe_key="sub-c-1", user_id="alice"), use_as_default=True)
        >>> store.resolve().user_id
        'alice'
    """

    def __init__(self) -> None:
        self._keysets: dict[str, Keyset] = {}
        self._default_name: str | None = None

    def add(self, name: str, keyset: Keyset, use_as_default: bool = False) -> None:
        """Register a keyset under ``name``.

        The first keyset added becomes the default unless another one is
        explicitly marked with ``use_as_default``.
        """
        if not name:
            raise ValidationError("keyset name", "must not be empty")
        self._keysets[name] = keyset
        if use_as_default or self._default_name is None:
            self._default_name = name

    def remove(self, name: str) -> Keyset:
        if name not in self._keysets:
            raise KeysetNotFoundError(name)
        keyset = self._keysets.pop(name)
        if self._default_name == name:
            self._default_name = None
        return keyset

    @property
    def default_name(self) -> str | None:
        return self._default_name

    def names(self) -> list[str]:
        return list(self._keysets)

    def resolve(self, using: str | None = None) -> Keyset:
        """Return the keyset named ``using``, or the default when ``using`` is None.

        Raises:
            KeysetNotFoundError: If the name is unknown or no default is set
        """
        name = using if using is not None else self._default_name
        if name is None:
            raise KeysetNotFoundError()
        try:
            return self._keysets[name]
        except KeyError:
            raise KeysetNotFoundError(name) from None

    @classmethod
    def from_env(cls) -> KeysetStore:
        """Create a store holding one default keyset from environment variables.

        Required env vars:
            MESSAGE_ACTIONS_SUBSCRIBE_KEY
            MESSAGE_ACTIONS_USER_ID

        Optional env vars:
            MESSAGE_ACTIONS_PUBLISH_KEY
            MESSAGE_ACTIONS_AUTH_KEY
        """
        subscribe_key = os.environ.get("MESSAGE_ACTIONS_SUBSCRIBE_KEY")
        user_id = os.environ.get("MESSAGE_ACTIONS_USER_ID")

        if not subscribe_key:
            raise ValidationError(
                "MESSAGE_ACTIONS_SUBSCRIBE_KEY", "environment variable required"
            )
        if not user_id:
            raise ValidationError("MESSAGE_ACTIONS_USER_ID", "environment variable required")

        store = cls()
        store.add(
            DEFAULT_KEYSET_NAME,
            Keyset(
                subscribe_key=subscribe_key,
                user_id=user_id,
                publish_key=os.environ.get("MESSAGE_ACTIONS_PUBLISH_KEY"),
                auth_key=os.environ.get("MESSAGE_ACTIONS_AUTH_KEY"),
            ),
            use_as_default=True,
        )
        return store

    @classmethod
    def from_yaml(cls, path: Path | str) -> KeysetStore:
        """Load keysets from the ``keysets`` section of a YAML settings file.

        A missing file or section yields an empty store.
        """
        config_path = Path(path)
        store = cls()
        if not config_path.exists():
            logger.debug(f"Keyset file not found: {config_path}")
            return store

        config = yaml.safe_load(config_path.read_text()) or {}
        raw_section = config.get("keysets") or {}
        if not isinstance(raw_section, dict):
            raise ValidationError("keysets", "must be a mapping")
        section: dict[str, Any] = dict(raw_section)
        default_name = section.pop("default", None)
        if default_name is not None and not isinstance(default_name, str):
            raise ValidationError(
                "keysets.default", "must be the name of a keyset", str(default_name)
            )

        for name, data in section.items():
            if data is not None and not isinstance(data, dict):
                raise ValidationError(f"keysets.{name}", "must be a mapping", str(data))
            store.add(name, Keyset.from_dict(data or {}))

        if default_name is not None:
            if default_name not in section:
                raise KeysetNotFoundError(default_name)
            store._default_name = default_name

        logger.info(f"Loaded {len(section)} keyset(s) from {config_path}")
        return store
