"""Onboarding request handlers: recipes, auth.initiate, auth.status, simple.

Handlers never raise. Each returns either ``{"ok": True, ...}`` or
``{"ok": False, "error": {"code": ..., "message": ...}}``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, ConfigDict, StringConstraints, ValidationError

from agentdock.connections import service as connections
from agentdock.context import AppContext
from agentdock.errors import INVALID_REQUEST, UNAVAILABLE, AgentDockError, UpstreamError
from agentdock.logging import bind_context, clear_context
from agentdock.onboarding.provisioning import ProvisionRequest, provision_agent

logger = logging.getLogger(__name__)

NonEmptyString = Annotated[str, StringConstraints(min_length=1)]

Handler = Callable[[dict[str, Any], AppContext], Awaitable[dict[str, Any]]]


class _Params(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


P = TypeVar("P", bound=_Params)


class RecipesParams(_Params):
    pass


class AuthInitiateParams(_Params):
    appName: NonEmptyString
    entityId: NonEmptyString
    redirectUri: str | None = None


class AuthStatusParams(_Params):
    connectedAccountId: NonEmptyString


class SimpleParams(_Params):
    userName: NonEmptyString
    botName: NonEmptyString
    recipeId: NonEmptyString
    entityId: str | None = None


def error_shape(code: str, message: str) -> dict[str, Any]:
    return {"ok": False, "error": {"code": code, "message": message}}


def format_validation_errors(exc: ValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = "/".join(str(item) for item in error.get("loc", ()))
        message = str(error.get("msg", "invalid"))
        parts.append(f"at /{location}: {message}" if location else message)
    return "; ".join(parts) or "invalid params"


def _validate(
    model: type[P], method: str, params: dict[str, Any] | None
) -> P | dict[str, Any]:
    try:
        return model.model_validate(params if params is not None else {})
    except ValidationError as exc:
        return error_shape(
            INVALID_REQUEST,
            f"invalid {method} params: {format_validation_errors(exc)}",
        )


async def handle_recipes(params: dict[str, Any], context: AppContext) -> dict[str, Any]:
    parsed = _validate(RecipesParams, "onboard.recipes", params)
    if isinstance(parsed, dict):
        return parsed
    return {"ok": True, "recipes": [recipe.summary() for recipe in context.catalog.list()]}


async def handle_auth_initiate(params: dict[str, Any], context: AppContext) -> dict[str, Any]:
    parsed = _validate(AuthInitiateParams, "onboard.auth.initiate", params)
    if isinstance(parsed, dict):
        return parsed
    entity_id = parsed.entityId.strip()
    bind_context(entity_id=entity_id)
    try:
        client = await context.broker_client()
        result = await connections.connect(
            client,
            entity_id,
            parsed.appName,
            (parsed.redirectUri or "").strip() or None,
        )
    except UpstreamError as exc:
        return error_shape(UNAVAILABLE, f"Composio connection failed: {exc}")
    except AgentDockError as exc:
        return error_shape(exc.code, str(exc))
    return {
        "ok": True,
        "redirectUrl": result.initiated.redirect_url,
        "connectedAccountId": result.initiated.connected_account_id,
    }


async def handle_auth_status(params: dict[str, Any], context: AppContext) -> dict[str, Any]:
    parsed = _validate(AuthStatusParams, "onboard.auth.status", params)
    if isinstance(parsed, dict):
        return parsed
    bind_context(connected_account_id=parsed.connectedAccountId)
    try:
        client = await context.broker_client()
        account = await connections.status(client, parsed.connectedAccountId)
    except UpstreamError as exc:
        return error_shape(UNAVAILABLE, f"Composio status check failed: {exc}")
    except AgentDockError as exc:
        return error_shape(exc.code, str(exc))
    return {"ok": True, "connectedAccountId": account.id, "status": str(account.status)}


async def handle_simple(params: dict[str, Any], context: AppContext) -> dict[str, Any]:
    parsed = _validate(SimpleParams, "onboard.simple", params)
    if isinstance(parsed, dict):
        return parsed
    request = ProvisionRequest(
        user_name=parsed.userName,
        bot_name=parsed.botName,
        recipe_id=parsed.recipeId,
        entity_id=parsed.entityId,
    )
    bind_context(recipe_id=parsed.recipeId.strip())
    try:
        result = await provision_agent(request, context)
    except AgentDockError as exc:
        return error_shape(exc.code, str(exc))
    except OSError as exc:
        logger.exception("onboard.simple failed")
        return error_shape(UNAVAILABLE, f"onboarding failed: {exc}")
    return {"ok": True, **result.to_dict()}


HANDLERS: dict[str, Handler] = {
    "onboard.recipes": handle_recipes,
    "onboard.auth.initiate": handle_auth_initiate,
    "onboard.auth.status": handle_auth_status,
    "onboard.simple": handle_simple,
}


async def dispatch(
    method: str, params: dict[str, Any] | None, context: AppContext
) -> dict[str, Any]:
    handler = HANDLERS.get(method)
    if handler is None:
        return error_shape(INVALID_REQUEST, f"unknown method: {method}")
    clear_context()
    bind_context(method=method)
    return await handler(params if params is not None else {}, context)
