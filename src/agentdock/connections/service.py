"""Connection orchestrator: list, connect, batch connect, status, disconnect, execute."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from agentdock.broker.base import ConnectionBroker
from agentdock.broker.models import ConnectedAccount, InitiateResult
from agentdock.errors import (
    IntegrationUnavailableError,
    InvalidRequestError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ENTITY_ID = "default"
DEFAULT_MAX_ACCOUNTS_PER_USER = 20
EMPTY_CONNECTIONS_HINT = (
    "No services connected yet. Use the connect action to link services "
    "like Gmail, Outlook, Google Calendar, etc."
)

EntityResolver = Callable[[], str | None]


def resolve_entity_id(
    explicit: str | None,
    resolver: EntityResolver | None = None,
    default: str = DEFAULT_ENTITY_ID,
) -> str:
    """Explicit value, then the caller's resolver, then the default entity."""
    if explicit is not None and explicit.strip():
        return explicit.strip()
    if resolver is not None:
        resolved = resolver()
        if resolved is not None and resolved.strip():
            return resolved.strip()
    return default


def normalize_name(value: object, field_name: str) -> str:
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise InvalidRequestError(f"{field_name} must be a string")
    cleaned = value.strip()
    if not cleaned:
        raise InvalidRequestError(f"{field_name} required")
    return cleaned.upper()


def _require_client(client: ConnectionBroker | None) -> ConnectionBroker:
    if client is None:
        raise IntegrationUnavailableError()
    return client


async def _call(description: str, call: Callable[[], Awaitable[T]]) -> T:
    try:
        return await call()
    except UpstreamError as exc:
        logger.error("Failed to %s: %s", description, exc)
        raise
    except Exception as exc:
        logger.error("Failed to %s: %s", description, exc)
        raise UpstreamError(str(exc)) from exc


@dataclass(frozen=True, slots=True)
class ConnectionListing:
    entity_id: str
    connections: list[ConnectedAccount] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.connections

    def to_dict(self) -> dict[str, object]:
        if self.empty:
            return {"connections": [], "message": EMPTY_CONNECTIONS_HINT}
        return {
            "connections": [account.to_dict() for account in self.connections],
            "entityId": self.entity_id,
        }


@dataclass(frozen=True, slots=True)
class ConnectResult:
    app_name: str
    initiated: InitiateResult

    def to_dict(self) -> dict[str, object]:
        return {"appName": self.app_name, **self.initiated.to_dict()}


@dataclass(frozen=True, slots=True)
class BatchItem:
    """One outcome of a batch connect; exactly one of initiated/error is set."""

    app_name: str
    initiated: InitiateResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        if self.initiated is None:
            return {
                "appName": self.app_name,
                "connectedAccountId": None,
                "redirectUrl": None,
                "error": self.error,
            }
        return {
            "appName": self.app_name,
            "connectedAccountId": self.initiated.connected_account_id,
            "redirectUrl": self.initiated.redirect_url,
            "error": None,
        }


async def list_connections(
    client: ConnectionBroker | None, entity_id: str
) -> ConnectionListing:
    broker = _require_client(client)
    accounts = await _call(
        f"list connected accounts for entity {entity_id}",
        lambda: broker.list_connections_for_entity(entity_id),
    )
    return ConnectionListing(entity_id=entity_id, connections=list(accounts))


async def connect(
    client: ConnectionBroker | None,
    entity_id: str,
    app_name: str | None,
    redirect_uri: str | None = None,
) -> ConnectResult:
    broker = _require_client(client)
    normalized = normalize_name(app_name, "appName")
    initiated = await _call(
        f"initiate connection for {normalized} (entity: {entity_id})",
        lambda: broker.initiate(
            entity_id=entity_id,
            app_name=normalized,
            redirect_uri=redirect_uri or None,
        ),
    )
    return ConnectResult(app_name=normalized, initiated=initiated)


async def connect_multiple(
    client: ConnectionBroker | None,
    entity_id: str,
    app_names: Sequence[str] | None,
    redirect_uri: str | None = None,
    *,
    max_accounts: int = DEFAULT_MAX_ACCOUNTS_PER_USER,
) -> list[BatchItem]:
    """Initiate one connection per app concurrently, preserving input order.

    The batch is rejected before any broker call when it is empty or larger
    than ``max_accounts``. Each item fails on its own.
    """
    broker = _require_client(client)
    names = list(app_names or [])
    if not names:
        raise InvalidRequestError("appNames required for connect_multiple")
    if len(names) > max_accounts:
        raise InvalidRequestError(f"Cannot connect more than {max_accounts} services at once")

    outcomes = await asyncio.gather(
        *(connect(broker, entity_id, name, redirect_uri) for name in names),
        return_exceptions=True,
    )

    items: list[BatchItem] = []
    for name, outcome in zip(names, outcomes, strict=True):
        label = str(name or "").strip().upper()
        if isinstance(outcome, ConnectResult):
            items.append(BatchItem(app_name=outcome.app_name, initiated=outcome.initiated))
        elif isinstance(outcome, Exception):
            items.append(BatchItem(app_name=label, error=str(outcome)))
        else:
            raise outcome
    failed = sum(1 for item in items if not item.ok)
    if failed:
        logger.warning(
            "connect_multiple for entity %s: %d of %d failed", entity_id, failed, len(items)
        )
    return items


async def status(client: ConnectionBroker | None, connected_account_id: str) -> ConnectedAccount:
    broker = _require_client(client)
    account_id = (connected_account_id or "").strip()
    if not account_id:
        raise InvalidRequestError("connectedAccountId required")
    return await _call(
        f"get connection status for {account_id}",
        lambda: broker.get(connected_account_id=account_id),
    )


async def disconnect(
    client: ConnectionBroker | None, connected_account_id: str
) -> dict[str, object]:
    broker = _require_client(client)
    account_id = (connected_account_id or "").strip()
    if not account_id:
        raise InvalidRequestError("connectedAccountId required")
    await _call(
        f"delete connection {account_id}",
        lambda: broker.delete(connected_account_id=account_id),
    )
    return {"deleted": True, "connectedAccountId": account_id}


async def execute(
    client: ConnectionBroker | None,
    entity_id: str,
    action_name: str | None,
    params: dict[str, Any] | None = None,
    connected_account_id: str | None = None,
) -> dict[str, Any]:
    broker = _require_client(client)
    normalized = normalize_name(action_name, "actionName")
    return await _call(
        f"execute action {normalized} for entity {entity_id}",
        lambda: broker.execute(
            entity_id=entity_id,
            action_name=normalized,
            params=dict(params or {}),
            connected_account_id=connected_account_id or None,
        ),
    )
