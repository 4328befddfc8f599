"""Shared broker client keyed by credential and base URL."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from agentdock.broker.base import ConnectionBroker
from agentdock.broker.composio import ComposioClient
from agentdock.config import Settings

logger = logging.getLogger(__name__)

BrokerFactory = Callable[[str, str | None], ConnectionBroker]


def _clean(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def resolve_api_key(composio: Mapping[str, Any] | None, settings: Settings) -> str | None:
    """Config document value first, then the COMPOSIO_API_KEY setting."""
    return _clean((composio or {}).get("apiKey")) or _clean(settings.composio_api_key)


def resolve_base_url(composio: Mapping[str, Any] | None, settings: Settings) -> str | None:
    return _clean((composio or {}).get("baseUrl")) or _clean(settings.composio_base_url)


class BrokerClientCache:
    """Holds at most one client; a credential change replaces it wholesale."""

    def __init__(self, settings: Settings, factory: BrokerFactory | None = None) -> None:
        self._settings = settings
        self._factory = factory or self._default_factory
        self._entry: tuple[str, str | None, ConnectionBroker] | None = None
        self._lock = threading.Lock()

    def _default_factory(self, api_key: str, base_url: str | None) -> ConnectionBroker:
        return ComposioClient(
            api_key,
            base_url,
            timeout_seconds=self._settings.composio_timeout_seconds,
        )

    def get(self, composio: Mapping[str, Any] | None = None) -> ConnectionBroker | None:
        """Return the shared client, or None when no API key is configured."""
        api_key = resolve_api_key(composio, self._settings)
        if not api_key:
            logger.warning("Composio API key not configured")
            return None
        base_url = resolve_base_url(composio, self._settings)

        entry = self._entry
        if entry is not None and entry[0] == api_key and entry[1] == base_url:
            return entry[2]

        with self._lock:
            entry = self._entry
            if entry is not None and entry[0] == api_key and entry[1] == base_url:
                return entry[2]
            client = self._factory(api_key, base_url)
            self._entry = (api_key, base_url, client)
        logger.info("Composio client initialized")
        return client

    def reset(self) -> None:
        with self._lock:
            self._entry = None
