"""Connection broker capability, payload decoding and client cache."""

from agentdock.broker.base import ConnectionBroker
from agentdock.broker.cache import BrokerClientCache, resolve_api_key, resolve_base_url
from agentdock.broker.models import (
    ConnectedAccount,
    ConnectionStatus,
    InitiateResult,
    decode_connected_account,
    decode_initiate_result,
)

__all__ = [
    "BrokerClientCache",
    "ConnectedAccount",
    "ConnectionBroker",
    "ConnectionStatus",
    "InitiateResult",
    "decode_connected_account",
    "decode_initiate_result",
    "resolve_api_key",
    "resolve_base_url",
]
