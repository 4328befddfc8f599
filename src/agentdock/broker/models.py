"""Connected-account data models and strict decoding of broker payloads."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from agentdock.errors import BrokerResponseError


class ConnectionStatus(StrEnum):
    INITIATED = "INITIATED"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"


@dataclass(frozen=True, slots=True)
class ConnectedAccount:
    id: str
    app_name: str
    # Values outside ConnectionStatus are kept as the broker reported them.
    status: ConnectionStatus | str
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "appName": self.app_name,
            "status": str(self.status),
        }
        if self.created_at:
            payload["createdAt"] = self.created_at
        if self.updated_at:
            payload["updatedAt"] = self.updated_at
        return payload


@dataclass(frozen=True, slots=True)
class InitiateResult:
    connected_account_id: str
    # Empty when the broker needs no interactive step.
    redirect_url: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "connectedAccountId": self.connected_account_id,
            "redirectUrl": self.redirect_url,
        }


def _text(value: object, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return default


def _status(value: object, default: ConnectionStatus) -> ConnectionStatus | str:
    if not isinstance(value, str) or not value.strip():
        return default
    reported = value.strip()
    try:
        return ConnectionStatus(reported.upper())
    except ValueError:
        return reported


def decode_connected_account(
    raw: object,
    *,
    fallback_id: str = "",
    default_status: ConnectionStatus = ConnectionStatus.ACTIVE,
) -> ConnectedAccount:
    """Decode one account record as reported by the broker.

    String fields tolerate numbers and booleans and otherwise fall back to
    empty values. ``appName`` falls back to ``app``. A missing or non-string
    status becomes ``default_status``; an unrecognised one is passed through
    unchanged.
    """
    if not isinstance(raw, dict):
        raise BrokerResponseError("connected account payload is not an object")
    account_id = _text(raw.get("id")) or fallback_id
    if not account_id:
        raise BrokerResponseError("connected account payload has no id")
    return ConnectedAccount(
        id=account_id,
        app_name=_text(raw.get("appName")) or _text(raw.get("app")),
        status=_status(raw.get("status"), default_status),
        created_at=_text(raw.get("createdAt")),
        updated_at=_text(raw.get("updatedAt")),
    )


def decode_initiate_result(raw: object) -> InitiateResult:
    if not isinstance(raw, dict):
        raise BrokerResponseError("initiate payload is not an object")
    account_id = _text(raw.get("connectedAccountId")) or _text(raw.get("id"))
    if not account_id:
        raise BrokerResponseError("initiate payload has no connectedAccountId")
    return InitiateResult(
        connected_account_id=account_id,
        redirect_url=_text(raw.get("redirectUrl")),
    )


def decode_execute_result(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise BrokerResponseError("execute payload is not an object")
    return raw
