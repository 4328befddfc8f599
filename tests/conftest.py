import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from agentdock.broker.models import ConnectedAccount, ConnectionStatus, InitiateResult
from agentdock.config import Settings, get_settings
from agentdock.context import AppContext, reset_context


class FakeBroker:
    """In-process broker recording every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.accounts: dict[str, tuple[str, ConnectedAccount]] = {}
        self.fail_apps: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.execute_result: dict[str, Any] = {"successful": True, "data": {}}
        self.redirect_urls: dict[str, str] = {}

    def add_account(
        self,
        entity_id: str,
        account_id: str,
        app_name: str,
        status: ConnectionStatus | str = ConnectionStatus.ACTIVE,
    ) -> None:
        self.accounts[account_id] = (
            entity_id,
            ConnectedAccount(id=account_id, app_name=app_name, status=status),
        )

    async def initiate(
        self, *, entity_id: str, app_name: str, redirect_uri: str | None = None
    ) -> InitiateResult:
        self.calls.append(
            (
                "initiate",
                {"entity_id": entity_id, "app_name": app_name, "redirect_uri": redirect_uri},
            )
        )
        if app_name in self.delays:
            await asyncio.sleep(self.delays[app_name])
        if app_name in self.fail_apps:
            raise self.fail_apps[app_name]
        account_id = f"acc-{app_name.lower()}"
        self.add_account(entity_id, account_id, app_name, ConnectionStatus.INITIATED)
        return InitiateResult(
            connected_account_id=account_id,
            redirect_url=self.redirect_urls.get(
                app_name, f"https://auth.example/{app_name.lower()}"
            ),
        )

    async def get(self, *, connected_account_id: str) -> ConnectedAccount:
        self.calls.append(("get", {"connected_account_id": connected_account_id}))
        if connected_account_id not in self.accounts:
            raise RuntimeError(f"connected account {connected_account_id} not found")
        return self.accounts[connected_account_id][1]

    async def delete(self, *, connected_account_id: str) -> None:
        self.calls.append(("delete", {"connected_account_id": connected_account_id}))
        if connected_account_id not in self.accounts:
            raise RuntimeError(f"connected account {connected_account_id} not found")
        del self.accounts[connected_account_id]

    async def execute(
        self,
        *,
        entity_id: str,
        action_name: str,
        params: dict[str, Any] | None = None,
        connected_account_id: str | None = None,
    ) -> dict[str, Any]:
        self.calls.append(
            (
                "execute",
                {
                    "entity_id": entity_id,
                    "action_name": action_name,
                    "params": params,
                    "connected_account_id": connected_account_id,
                },
            )
        )
        return dict(self.execute_result)

    async def list_connections_for_entity(self, entity_id: str) -> list[ConnectedAccount]:
        self.calls.append(("list", {"entity_id": entity_id}))
        return [account for owner, account in self.accounts.values() if owner == entity_id]


@pytest.fixture(autouse=True)
def test_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("AGENTDOCK_STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("AGENTDOCK_CONFIG_PATH", str(tmp_path / "state" / "agentdock.json"))
    monkeypatch.setenv("AGENTDOCK_DEFAULT_WORKSPACE", str(tmp_path / "workspace"))
    monkeypatch.setenv("COMPOSIO_ENABLED", "0")
    monkeypatch.setenv("COMPOSIO_API_KEY", "")
    monkeypatch.setenv("COMPOSIO_BASE_URL", "")
    monkeypatch.setenv("COMPOSIO_MAX_ACCOUNTS_PER_USER", "20")
    get_settings.cache_clear()
    reset_context()
    yield
    get_settings.cache_clear()
    reset_context()


@pytest.fixture
def fake_broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def make_context(
    monkeypatch: pytest.MonkeyPatch, fake_broker: FakeBroker
) -> Callable[..., AppContext]:
    def _make(*, api_key: str = "test-key", **env: str) -> AppContext:
        monkeypatch.setenv("COMPOSIO_API_KEY", api_key)
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()
        return AppContext.from_settings(
            Settings(), broker_factory=lambda _key, _url: fake_broker
        )

    return _make


@pytest.fixture
def context(make_context: Callable[..., AppContext]) -> AppContext:
    return make_context()
