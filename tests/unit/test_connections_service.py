import asyncio

import pytest

from agentdock.broker.models import ConnectionStatus
from agentdock.connections import service
from agentdock.errors import (
    IntegrationUnavailableError,
    InvalidRequestError,
    UpstreamError,
)


def test_resolve_entity_id_precedence() -> None:
    assert service.resolve_entity_id(" u1 ", lambda: "session") == "u1"
    assert service.resolve_entity_id("", lambda: "session") == "session"
    assert service.resolve_entity_id(None, lambda: "  ") == service.DEFAULT_ENTITY_ID
    assert service.resolve_entity_id(None) == "default"


@pytest.mark.asyncio
async def test_every_operation_requires_a_client() -> None:
    with pytest.raises(IntegrationUnavailableError, match="Composio is not configured"):
        await service.list_connections(None, "u1")
    with pytest.raises(IntegrationUnavailableError):
        await service.connect(None, "u1", "gmail")
    with pytest.raises(IntegrationUnavailableError):
        await service.connect_multiple(None, "u1", ["gmail"])
    with pytest.raises(IntegrationUnavailableError):
        await service.status(None, "acc-1")
    with pytest.raises(IntegrationUnavailableError):
        await service.disconnect(None, "acc-1")
    with pytest.raises(IntegrationUnavailableError):
        await service.execute(None, "u1", "GMAIL_SEND_EMAIL")


@pytest.mark.asyncio
async def test_list_connections_empty_has_hint(fake_broker) -> None:
    listing = await service.list_connections(fake_broker, "u1")
    assert listing.empty
    assert listing.to_dict() == {"connections": [], "message": service.EMPTY_CONNECTIONS_HINT}


@pytest.mark.asyncio
async def test_list_connections_reports_entity(fake_broker) -> None:
    fake_broker.add_account("u1", "acc-1", "GMAIL")
    fake_broker.add_account("u2", "acc-2", "SLACK")
    listing = await service.list_connections(fake_broker, "u1")
    assert listing.to_dict() == {
        "connections": [{"id": "acc-1", "appName": "GMAIL", "status": "ACTIVE"}],
        "entityId": "u1",
    }


@pytest.mark.asyncio
async def test_connect_normalizes_app_name(fake_broker) -> None:
    result = await service.connect(fake_broker, "u1", "  gmail ", "app://cb")
    assert result.app_name == "GMAIL"
    assert result.to_dict() == {
        "appName": "GMAIL",
        "connectedAccountId": "acc-gmail",
        "redirectUrl": "https://auth.example/gmail",
    }
    assert fake_broker.calls == [
        ("initiate", {"entity_id": "u1", "app_name": "GMAIL", "redirect_uri": "app://cb"})
    ]


@pytest.mark.asyncio
async def test_connect_rejects_blank_app_name_without_broker_call(fake_broker) -> None:
    with pytest.raises(InvalidRequestError, match="appName required"):
        await service.connect(fake_broker, "u1", "   ")
    assert fake_broker.calls == []


@pytest.mark.asyncio
async def test_connect_wraps_broker_failure(fake_broker) -> None:
    fake_broker.fail_apps["GMAIL"] = RuntimeError("toolkit disabled")
    with pytest.raises(UpstreamError, match="toolkit disabled"):
        await service.connect(fake_broker, "u1", "gmail")


@pytest.mark.asyncio
async def test_connect_multiple_rejects_empty_batch(fake_broker) -> None:
    with pytest.raises(InvalidRequestError, match="appNames required"):
        await service.connect_multiple(fake_broker, "u1", [])
    with pytest.raises(InvalidRequestError):
        await service.connect_multiple(fake_broker, "u1", None)
    assert fake_broker.calls == []


@pytest.mark.asyncio
async def test_connect_multiple_rejects_oversized_batch(fake_broker) -> None:
    names = [f"APP{i}" for i in range(4)]
    with pytest.raises(InvalidRequestError, match="Cannot connect more than 3 services at once"):
        await service.connect_multiple(fake_broker, "u1", names, max_accounts=3)
    assert fake_broker.calls == []


@pytest.mark.asyncio
async def test_connect_multiple_accepts_batch_at_cap(fake_broker) -> None:
    names = [f"APP{i}" for i in range(3)]
    items = await service.connect_multiple(fake_broker, "u1", names, max_accounts=3)
    assert [item.app_name for item in items] == names
    assert all(item.ok for item in items)


@pytest.mark.asyncio
async def test_connect_multiple_isolates_failures_and_keeps_order(fake_broker) -> None:
    fake_broker.fail_apps["OUTLOOK"] = RuntimeError("toolkit not enabled")
    # The first item finishes last; results must still follow input order.
    fake_broker.delays["GMAIL"] = 0.05

    items = await service.connect_multiple(fake_broker, "u1", ["gmail", "outlook", "slack"])

    assert [item.to_dict() for item in items] == [
        {
            "appName": "GMAIL",
            "connectedAccountId": "acc-gmail",
            "redirectUrl": "https://auth.example/gmail",
            "error": None,
        },
        {
            "appName": "OUTLOOK",
            "connectedAccountId": None,
            "redirectUrl": None,
            "error": "toolkit not enabled",
        },
        {
            "appName": "SLACK",
            "connectedAccountId": "acc-slack",
            "redirectUrl": "https://auth.example/slack",
            "error": None,
        },
    ]


@pytest.mark.asyncio
async def test_connect_multiple_runs_items_concurrently(fake_broker) -> None:
    for name in ("A", "B", "C"):
        fake_broker.delays[name] = 0.2
    loop = asyncio.get_running_loop()
    started = loop.time()
    items = await service.connect_multiple(fake_broker, "u1", ["a", "b", "c"])
    assert len(items) == 3
    assert loop.time() - started < 0.5


@pytest.mark.asyncio
async def test_connect_multiple_blank_item_fails_alone(fake_broker) -> None:
    items = await service.connect_multiple(fake_broker, "u1", ["gmail", "  "])
    assert items[0].ok
    assert not items[1].ok
    assert items[1].error == "appName required"


@pytest.mark.asyncio
async def test_status_is_not_cached(fake_broker) -> None:
    fake_broker.add_account("u1", "acc-1", "GMAIL", ConnectionStatus.INITIATED)
    first = await service.status(fake_broker, "acc-1")
    fake_broker.add_account("u1", "acc-1", "GMAIL", ConnectionStatus.EXPIRED)
    second = await service.status(fake_broker, "acc-1")
    assert first.status is ConnectionStatus.INITIATED
    assert second.status is ConnectionStatus.EXPIRED
    assert [name for name, _ in fake_broker.calls] == ["get", "get"]


@pytest.mark.asyncio
async def test_status_requires_account_id(fake_broker) -> None:
    with pytest.raises(InvalidRequestError, match="connectedAccountId required"):
        await service.status(fake_broker, "  ")


@pytest.mark.asyncio
async def test_disconnect_confirms_deletion(fake_broker) -> None:
    fake_broker.add_account("u1", "acc-1", "GMAIL")
    assert await service.disconnect(fake_broker, "acc-1") == {
        "deleted": True,
        "connectedAccountId": "acc-1",
    }
    assert "acc-1" not in fake_broker.accounts


@pytest.mark.asyncio
async def test_disconnect_missing_account_surfaces_broker_error(fake_broker) -> None:
    with pytest.raises(UpstreamError, match="connected account acc-404 not found"):
        await service.disconnect(fake_broker, "acc-404")


@pytest.mark.asyncio
async def test_execute_uppercases_action_and_defaults_params(fake_broker) -> None:
    result = await service.execute(fake_broker, "u1", "gmail_fetch_emails")
    assert result == {"successful": True, "data": {}}
    assert fake_broker.calls == [
        (
            "execute",
            {
                "entity_id": "u1",
                "action_name": "GMAIL_FETCH_EMAILS",
                "params": {},
                "connected_account_id": None,
            },
        )
    ]


@pytest.mark.asyncio
async def test_execute_passes_account_and_params(fake_broker) -> None:
    await service.execute(
        fake_broker, "u1", "GMAIL_SEND_EMAIL", {"to": "a@b.c"}, "acc-1"
    )
    _, call = fake_broker.calls[0]
    assert call["params"] == {"to": "a@b.c"}
    assert call["connected_account_id"] == "acc-1"


@pytest.mark.asyncio
async def test_execute_rejects_blank_action(fake_broker) -> None:
    with pytest.raises(InvalidRequestError, match="actionName required"):
        await service.execute(fake_broker, "u1", "")


@pytest.mark.asyncio
async def test_connect_multiple_non_string_item_fails_alone(fake_broker) -> None:
    names: list = ["gmail", 42, None]
    items = await service.connect_multiple(fake_broker, "u1", names)
    assert [item.app_name for item in items] == ["GMAIL", "42", ""]
    assert items[0].ok
    assert items[1].error == "appName must be a string"
    assert items[2].error == "appName required"
    assert [name for name, _ in fake_broker.calls] == ["initiate"]
