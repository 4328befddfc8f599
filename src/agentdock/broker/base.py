"""Connection broker capability consumed by the orchestrator."""

from __future__ import annotations

from typing import Any, Protocol

from agentdock.broker.models import ConnectedAccount, InitiateResult


class ConnectionBroker(Protocol):
    """Account operations a broker exposes per entity and app."""

    async def initiate(
        self,
        *,
        entity_id: str,
        app_name: str,
        redirect_uri: str | None = None,
    ) -> InitiateResult: ...

    async def get(self, *, connected_account_id: str) -> ConnectedAccount: ...

    async def delete(self, *, connected_account_id: str) -> None: ...

    async def execute(
        self,
        *,
        entity_id: str,
        action_name: str,
        params: dict[str, Any] | None = None,
        connected_account_id: str | None = None,
    ) -> dict[str, Any]: ...

    async def list_connections_for_entity(self, entity_id: str) -> list[ConnectedAccount]: ...
