"""Composio agent tool: manage service connections and run actions.

Registered by ``agentdock.tools.build_tool_registry``, which backs the
``agentdock tools`` CLI commands.
"""

from __future__ import annotations

from typing import Any

from agentdock.connections import service as connections
from agentdock.context import AppContext
from agentdock.errors import IntegrationUnavailableError, InvalidRequestError
from agentdock.tools.registry import ToolDef, ToolRegistry

COMPOSIO_ACTIONS = (
    "list_connections",
    "connect",
    "connect_multiple",
    "status",
    "disconnect",
    "execute",
)

COMPOSIO_DESCRIPTION = """Manage external service connections and execute actions via Composio.

ACTIONS:
- list_connections: List all connected services for the current user
- connect: Initiate OAuth connection to a single service (returns auth URL for user)
- connect_multiple: Initiate connections to multiple services at once (returns auth URLs)
- status: Check status of a pending connection
- disconnect: Remove a connected service
- execute: Execute an action on a connected service

CONNECT FLOW:
1. Use connect or connect_multiple with the desired app name(s)
2. Send the returned auth URL(s) to the user
3. User clicks the link and authorizes in their browser
4. Connection becomes ACTIVE once authorized

SUPPORTED APPS (common):
- Email: GMAIL, OUTLOOK, OUTLOOK365
- Calendar: GOOGLECALENDAR, OUTLOOKCALENDAR
- Productivity: SLACK, NOTION, ASANA, JIRA, LINEAR, CLICKUP
- Developer: GITHUB, GITLAB
- Storage: GOOGLEDRIVE, DROPBOX, ONEDRIVE
- CRM: SALESFORCE, HUBSPOT

EXECUTE EXAMPLES:
- Gmail send: execute(actionName="GMAIL_SEND_EMAIL", params={to, subject, body})
- Gmail read: execute(actionName="GMAIL_FETCH_EMAILS", params={max_results: 5})
- Calendar list: execute(actionName="GOOGLECALENDAR_LIST_EVENTS", params={timeMin, timeMax})"""

COMPOSIO_PARAMETERS: dict[str, object] = {
    "type": "object",
    "properties": {
        "action": {"type": "string", "enum": list(COMPOSIO_ACTIONS)},
        "entityId": {
            "type": "string",
            "description": "User entity ID. Defaults to the current session user.",
        },
        "appName": {
            "type": "string",
            "description": "App/toolkit name (e.g. GMAIL, OUTLOOK, GOOGLECALENDAR, SLACK).",
        },
        "appNames": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Multiple app names for connect_multiple action.",
        },
        "connectedAccountId": {
            "type": "string",
            "description": "Connected account ID for status/disconnect.",
        },
        "redirectUri": {"type": "string", "description": "OAuth redirect URI."},
        "actionName": {
            "type": "string",
            "description": "Composio action name to execute (e.g. GMAIL_SEND_EMAIL).",
        },
        "params": {
            "type": "object",
            "additionalProperties": True,
            "description": "Parameters for execute action.",
        },
    },
    "required": ["action"],
}


def _read_str(args: dict[str, Any], key: str, *, required: bool = False) -> str | None:
    value = args.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    if required:
        raise InvalidRequestError(f"{key} required")
    return None


def _read_str_list(args: dict[str, Any], key: str) -> list[str] | None:
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidRequestError(f"{key} must be a list of strings")
    return [item.strip() for item in value if item.strip()]


def make_composio_handler(context: AppContext):
    async def handler(args: dict[str, Any]) -> dict[str, Any]:
        action = _read_str(args, "action", required=True)
        client = await context.broker_client()
        if client is None:
            raise IntegrationUnavailableError()
        entity_id = context.resolve_entity_id(_read_str(args, "entityId"))
        redirect_uri = _read_str(args, "redirectUri")

        if action == "list_connections":
            listing = await connections.list_connections(client, entity_id)
            return listing.to_dict()

        if action == "connect":
            app_name = _read_str(args, "appName", required=True)
            result = await connections.connect(client, entity_id, app_name, redirect_uri)
            return {
                **result.to_dict(),
                "authUrl": result.initiated.redirect_url,
                "message": f"Send the following link to the user to authorize {result.app_name}:",
            }

        if action == "connect_multiple":
            app_names = _read_str_list(args, "appNames")
            if app_names is None:
                single = _read_str(args, "appName")
                app_names = [single] if single else []
            items = await connections.connect_multiple(
                client,
                entity_id,
                app_names,
                redirect_uri,
                max_accounts=await context.max_accounts_per_user(),
            )
            return {
                "connections": [
                    {**item.to_dict(), "authUrl": item.to_dict()["redirectUrl"]}
                    for item in items
                ],
                "message": (
                    "Send the following auth links to the user. "
                    "They should click each one to authorize the service:"
                ),
            }

        if action == "status":
            account_id = _read_str(args, "connectedAccountId", required=True)
            account = await connections.status(client, account_id or "")
            return account.to_dict()

        if action == "disconnect":
            account_id = _read_str(args, "connectedAccountId", required=True)
            confirmation = await connections.disconnect(client, account_id or "")
            return {**confirmation, "message": "Service disconnected successfully."}

        if action == "execute":
            action_name = _read_str(args, "actionName", required=True)
            raw_params = args.get("params")
            if raw_params is not None and not isinstance(raw_params, dict):
                raise InvalidRequestError("params must be an object")
            return await connections.execute(
                client,
                entity_id,
                action_name,
                raw_params,
                _read_str(args, "connectedAccountId"),
            )

        raise InvalidRequestError(f"Unknown composio action: {action}")

    return handler


async def register_composio_tool(registry: ToolRegistry, context: AppContext) -> bool:
    """Register the tool when the integration is enabled or a key is configured."""
    if not await context.integration_enabled():
        return False
    registry.add(
        ToolDef(
            name="composio",
            label="Composio",
            description=COMPOSIO_DESCRIPTION,
            handler=make_composio_handler(context),
            parameters=COMPOSIO_PARAMETERS,
        )
    )
    return True
