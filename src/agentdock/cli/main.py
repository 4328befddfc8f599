"""Click CLI group: recipes, onboard, connection and tool commands."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click

from agentdock.config import get_settings
from agentdock.connections import service as connections
from agentdock.context import get_context
from agentdock.errors import AgentDockError
from agentdock.logging import configure_logging
from agentdock.onboarding.handlers import dispatch
from agentdock.tools import build_tool_registry


def _emit(payload: dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    if payload.get("ok") is False:
        sys.exit(1)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL.")
def cli(log_level: str | None) -> None:
    """AgentDock CLI."""
    configure_logging(log_level or get_settings().log_level)


@cli.command()
def recipes() -> None:
    """List onboarding recipes."""
    _emit(asyncio.run(dispatch("onboard.recipes", {}, get_context())))


@cli.command()
@click.option("--user", "user_name", required=True, help="The user's display name.")
@click.option("--bot", "bot_name", required=True, help="The agent's display name.")
@click.option("--recipe", "recipe_id", required=True, help="Recipe id (see `recipes`).")
@click.option("--entity", "entity_id", default=None, help="Composio entity id.")
def onboard(user_name: str, bot_name: str, recipe_id: str, entity_id: str | None) -> None:
    """Create an agent from a recipe."""
    params: dict[str, Any] = {"userName": user_name, "botName": bot_name, "recipeId": recipe_id}
    if entity_id:
        params["entityId"] = entity_id
    _emit(asyncio.run(dispatch("onboard.simple", params, get_context())))


@cli.group("connections")
def connections_group() -> None:
    """Manage Composio connections."""


async def _run_connection_op(op: str, **kwargs: Any) -> dict[str, Any]:
    context = get_context()
    entity_id = context.resolve_entity_id(kwargs.pop("entity_id", None))
    try:
        client = await context.broker_client()
        if op == "list":
            return {"ok": True, **(await connections.list_connections(client, entity_id)).to_dict()}
        if op == "connect":
            result = await connections.connect(client, entity_id, **kwargs)
            return {"ok": True, **result.to_dict()}
        if op == "status":
            account = await connections.status(client, **kwargs)
            return {"ok": True, **account.to_dict()}
        if op == "disconnect":
            return {"ok": True, **(await connections.disconnect(client, **kwargs))}
    except AgentDockError as exc:
        return {"ok": False, "error": {"code": exc.code, "message": str(exc)}}
    raise click.UsageError(f"unknown operation: {op}")


@connections_group.command("list")
@click.option("--entity", "entity_id", default=None)
def connections_list(entity_id: str | None) -> None:
    """List connected accounts for an entity."""
    _emit(asyncio.run(_run_connection_op("list", entity_id=entity_id)))


@connections_group.command("connect")
@click.argument("app_name")
@click.option("--entity", "entity_id", default=None)
@click.option("--redirect-uri", default=None)
def connections_connect(app_name: str, entity_id: str | None, redirect_uri: str | None) -> None:
    """Start an OAuth connection and print the authorization URL."""
    _emit(
        asyncio.run(
            _run_connection_op(
                "connect", entity_id=entity_id, app_name=app_name, redirect_uri=redirect_uri
            )
        )
    )


@connections_group.command("status")
@click.argument("connected_account_id")
def connections_status(connected_account_id: str) -> None:
    """Show the broker's current status for a connected account."""
    _emit(asyncio.run(_run_connection_op("status", connected_account_id=connected_account_id)))


@connections_group.command("disconnect")
@click.argument("connected_account_id")
def connections_disconnect(connected_account_id: str) -> None:
    """Delete a connected account at the broker."""
    _emit(
        asyncio.run(_run_connection_op("disconnect", connected_account_id=connected_account_id))
    )

@cli.group("tools")
def tools_group() -> None:
    """Inspect and call agent tools."""


async def _list_tools() -> dict[str, Any]:
    registry = await build_tool_registry(get_context())
    return {"ok": True, "tools": registry.schemas()}


async def _call_tool(name: str, args: dict[str, Any]) -> dict[str, Any]:
    registry = await build_tool_registry(get_context())
    try:
        result = await registry.call(name, args)
    except AgentDockError as exc:
        return {"ok": False, "error": {"code": exc.code, "message": str(exc)}}
    return {"ok": True, "result": result}


@tools_group.command("list")
def tools_list() -> None:
    """Print the schemas of the enabled tools."""
    _emit(asyncio.run(_list_tools()))


@tools_group.command("call")
@click.argument("name")
@click.argument("args_json", default="{}")
def tools_call(name: str, args_json: str) -> None:
    """Call a tool with a JSON object of arguments."""
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}", param_hint="ARGS_JSON") from exc
    if not isinstance(args, dict):
        raise click.BadParameter("must be a JSON object", param_hint="ARGS_JSON")
    _emit(asyncio.run(_call_tool(name, args)))



def main() -> None:
    cli()


if __name__ == "__main__":
    main()
