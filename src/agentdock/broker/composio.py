"""Composio REST client implementing the connection broker capability."""

from __future__ import annotations

from typing import Any

import httpx

from agentdock.broker.models import (
    ConnectedAccount,
    ConnectionStatus,
    InitiateResult,
    decode_connected_account,
    decode_execute_result,
    decode_initiate_result,
)
from agentdock.errors import BrokerResponseError, UpstreamError

DEFAULT_BASE_URL = "https://backend.composio.dev"


def _text_id(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


class ComposioClient:
    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        *,
        timeout_seconds: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._integration_ids: dict[str, str] = {}

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-api-key": self._api_key,
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_seconds,
            transport=self._transport,
        ) as client:
            try:
                response = await client.request(
                    method, path, params=params, json=payload, headers=self._headers()
                )
            except httpx.HTTPError as exc:
                raise UpstreamError(f"{method} {path} failed: {exc}") from exc
        if response.status_code >= 400:
            raise UpstreamError(
                self._error_detail(response), status_code=response.status_code
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BrokerResponseError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("message", "error", "detail"):
                value = body.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
                if isinstance(value, dict) and isinstance(value.get("message"), str):
                    return str(value["message"]).strip()
        return response.text.strip()[:400] or response.reason_phrase

    async def _integration_id(self, app_name: str) -> str:
        """Integration id for an app, creating a Composio-managed one if none exists."""
        app_key = app_name.lower()
        cached = self._integration_ids.get(app_key)
        if cached:
            return cached
        body = await self._request("GET", "/api/v1/integrations", params={"appName": app_key})
        items = body.get("items", []) if isinstance(body, dict) else body
        if not isinstance(items, list):
            raise BrokerResponseError("integration listing is not a list")
        integration_id = ""
        for item in items:
            if isinstance(item, dict) and _text_id(item.get("id")):
                integration_id = _text_id(item["id"])
                break
        if not integration_id:
            app = await self._request("GET", f"/api/v1/apps/{app_key}")
            app_id = _text_id(app.get("appId")) if isinstance(app, dict) else ""
            if not app_id:
                raise BrokerResponseError(f"app {app_name} has no appId")
            created = await self._request(
                "POST",
                "/api/v1/integrations",
                payload={
                    "name": f"{app_key}_integration",
                    "appId": app_id,
                    "useComposioAuth": True,
                },
            )
            integration_id = _text_id(created.get("id")) if isinstance(created, dict) else ""
            if not integration_id:
                raise BrokerResponseError(f"integration for {app_name} has no id")
        self._integration_ids[app_key] = integration_id
        return integration_id

    async def initiate(
        self,
        *,
        entity_id: str,
        app_name: str,
        redirect_uri: str | None = None,
    ) -> InitiateResult:
        payload: dict[str, Any] = {
            "integrationId": await self._integration_id(app_name),
            "userUuid": entity_id,
            "data": {},
        }
        if redirect_uri:
            payload["redirectUri"] = redirect_uri
        body = await self._request("POST", "/api/v1/connectedAccounts", payload=payload)
        return decode_initiate_result(body)

    async def get(self, *, connected_account_id: str) -> ConnectedAccount:
        body = await self._request("GET", f"/api/v1/connectedAccounts/{connected_account_id}")
        return decode_connected_account(
            body,
            fallback_id=connected_account_id,
            default_status=ConnectionStatus.INITIATED,
        )

    async def delete(self, *, connected_account_id: str) -> None:
        await self._request("DELETE", f"/api/v1/connectedAccounts/{connected_account_id}")

    async def execute(
        self,
        *,
        entity_id: str,
        action_name: str,
        params: dict[str, Any] | None = None,
        connected_account_id: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"entityId": entity_id, "input": params or {}}
        if connected_account_id:
            payload["connectedAccountId"] = connected_account_id
        body = await self._request(
            "POST", f"/api/v2/actions/{action_name}/execute", payload=payload
        )
        return decode_execute_result(body)

    async def list_connections_for_entity(self, entity_id: str) -> list[ConnectedAccount]:
        body = await self._request(
            "GET", "/api/v1/connectedAccounts", params={"user_uuid": entity_id}
        )
        if isinstance(body, dict):
            items = body.get("items", [])
        else:
            items = body
        if not isinstance(items, list):
            raise BrokerResponseError("connected account listing is not a list")
        return [decode_connected_account(item) for item in items]
