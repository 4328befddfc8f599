"""Application context owning the broker client, recipes and config store."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from agentdock.agents.config_store import ConfigStore
from agentdock.agents.entries import composio_section
from agentdock.broker.base import ConnectionBroker
from agentdock.broker.cache import BrokerClientCache, BrokerFactory, resolve_api_key
from agentdock.config import Settings, get_settings
from agentdock.connections.service import EntityResolver, resolve_entity_id
from agentdock.onboarding.recipes import DEFAULT_CATALOG, RecipeCatalog


@dataclass
class AppContext:
    settings: Settings
    config_store: ConfigStore
    broker_cache: BrokerClientCache
    catalog: RecipeCatalog = DEFAULT_CATALOG
    entity_resolver: EntityResolver | None = None
    # Serialises the registry check and config write of concurrent provisioning.
    provisioning_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        broker_factory: BrokerFactory | None = None,
        catalog: RecipeCatalog | None = None,
        entity_resolver: EntityResolver | None = None,
    ) -> AppContext:
        return cls(
            settings=settings,
            config_store=ConfigStore(settings.resolved_config_path()),
            broker_cache=BrokerClientCache(settings, factory=broker_factory),
            catalog=catalog or DEFAULT_CATALOG,
            entity_resolver=entity_resolver,
        )

    async def composio_config(self) -> dict[str, Any]:
        snapshot = await self.config_store.aload()
        return composio_section(snapshot.document)

    async def broker_client(self) -> ConnectionBroker | None:
        """Shared broker client, or None when no credential is configured."""
        return self.broker_cache.get(await self.composio_config())

    def invalidate_broker(self) -> None:
        self.broker_cache.reset()

    async def integration_enabled(self) -> bool:
        composio = await self.composio_config()
        if composio.get("enabled") is True or int(self.settings.composio_enabled) == 1:
            return True
        return resolve_api_key(composio, self.settings) is not None

    async def max_accounts_per_user(self) -> int:
        configured = (await self.composio_config()).get("maxAccountsPerUser")
        if isinstance(configured, int) and not isinstance(configured, bool) and configured > 0:
            return configured
        return self.settings.composio_max_accounts_per_user

    def resolve_entity_id(self, explicit: str | None = None) -> str:
        return resolve_entity_id(
            explicit,
            self.entity_resolver,
            default=self.settings.composio_default_entity_id.strip() or "default",
        )


@lru_cache(maxsize=1)
def get_context() -> AppContext:
    return AppContext.from_settings(get_settings())


def reset_context() -> None:
    """Drop the process context so the next call rebuilds it from settings."""
    get_context.cache_clear()
