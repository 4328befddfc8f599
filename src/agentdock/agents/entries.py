"""Agent registry entries inside the configuration document.

Every ``apply_*`` helper returns a new document and leaves its input
untouched, so a request can build the next configuration step by step and
only persist the final value.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from agentdock.agents.ids import normalize_agent_id

DEFAULT_MODEL_PROVIDER = "minimax"
DEFAULT_MODEL_ID = "MiniMax-M2.5"
DEFAULT_MODEL_REF = f"{DEFAULT_MODEL_PROVIDER}/{DEFAULT_MODEL_ID}"
DEFAULT_MODEL_PROVIDER_CONFIG: dict[str, Any] = {
    "baseUrl": "https://api.minimax.io/anthropic",
    "api": "anthropic-messages",
    "models": [
        {
            "id": DEFAULT_MODEL_ID,
            "name": "MiniMax M2.5",
            "contextWindow": 200000,
            "maxTokens": 8192,
        }
    ],
}


@dataclass(frozen=True, slots=True)
class AgentConfigEntry:
    agent_id: str
    name: str = ""
    workspace_dir: str = ""
    agent_dir: str = ""
    model: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AgentConfigEntry:
        def _str(key: str) -> str:
            value = raw.get(key)
            return value if isinstance(value, str) else ""

        return cls(
            agent_id=_str("id"),
            name=_str("name"),
            workspace_dir=_str("workspace"),
            agent_dir=_str("agentDir"),
            model=_str("model"),
        )


def list_agent_entries(document: dict[str, Any]) -> list[dict[str, Any]]:
    agents = document.get("agents")
    if not isinstance(agents, dict):
        return []
    entries = agents.get("list")
    if not isinstance(entries, list):
        return []
    return [entry for entry in entries if isinstance(entry, dict)]


def find_agent_entry_index(entries: list[dict[str, Any]], agent_id: str) -> int:
    target = normalize_agent_id(agent_id)
    for index, entry in enumerate(entries):
        raw_id = entry.get("id")
        if isinstance(raw_id, str) and normalize_agent_id(raw_id) == target:
            return index
    return -1


def get_agent_entry(document: dict[str, Any], agent_id: str) -> AgentConfigEntry | None:
    entries = list_agent_entries(document)
    index = find_agent_entry_index(entries, agent_id)
    if index < 0:
        return None
    return AgentConfigEntry.from_dict(entries[index])


def _section(document: dict[str, Any], key: str) -> dict[str, Any]:
    value = document.get(key)
    if not isinstance(value, dict):
        value = {}
        document[key] = value
    return value


def apply_agent_config(
    document: dict[str, Any],
    *,
    agent_id: str,
    name: str | None = None,
    workspace: str | None = None,
    agent_dir: str | None = None,
    model: str | None = None,
) -> dict[str, Any]:
    """Add or update one agent entry, creating it when missing."""
    updated = copy.deepcopy(document)
    agents = _section(updated, "agents")
    entries = agents.get("list")
    if not isinstance(entries, list):
        entries = []
        agents["list"] = entries
    index = find_agent_entry_index(list_agent_entries(updated), agent_id)
    if index >= 0:
        entry = list_agent_entries(updated)[index]
    else:
        entry = {"id": agent_id}
        entries.append(entry)
    if name:
        entry["name"] = name
    if workspace:
        entry["workspace"] = workspace
    if agent_dir:
        entry["agentDir"] = agent_dir
    if model:
        entry["model"] = model
    return updated


def resolve_workspace_root(document: dict[str, Any], default: str) -> str:
    agents = document.get("agents")
    defaults = agents.get("defaults") if isinstance(agents, dict) else None
    configured = defaults.get("workspace") if isinstance(defaults, dict) else None
    if isinstance(configured, str) and configured.strip():
        return configured.strip()
    return default


def resolve_agent_dir(document: dict[str, Any], agent_id: str, state_dir: Path) -> Path:
    entry = get_agent_entry(document, agent_id)
    if entry is not None and entry.agent_dir.strip():
        return Path(entry.agent_dir.strip()).expanduser()
    return state_dir / "agents" / normalize_agent_id(agent_id) / "agent"


def resolve_transcripts_dir(state_dir: Path, agent_id: str) -> Path:
    return state_dir / "agents" / normalize_agent_id(agent_id) / "sessions"


def apply_default_model_config(document: dict[str, Any], agent_id: str) -> dict[str, Any]:
    """Register the default model provider and assign its model to the agent.

    An existing provider section is merged, not replaced: its other keys
    (``apiKey`` in particular) and models are kept, and the default model is
    appended only when no model with the same id is listed.
    """
    updated = copy.deepcopy(document)
    providers = _section(_section(updated, "models"), "providers")
    provider = _section(providers, DEFAULT_MODEL_PROVIDER)
    provider["baseUrl"] = DEFAULT_MODEL_PROVIDER_CONFIG["baseUrl"]
    provider["api"] = DEFAULT_MODEL_PROVIDER_CONFIG["api"]
    models = provider.get("models")
    if not isinstance(models, list):
        models = []
        provider["models"] = models
    if not any(isinstance(item, dict) and item.get("id") == DEFAULT_MODEL_ID for item in models):
        models.extend(copy.deepcopy(DEFAULT_MODEL_PROVIDER_CONFIG["models"]))
    model = _section(_section(_section(updated, "agents"), "defaults"), "model")
    model["primary"] = DEFAULT_MODEL_REF
    return apply_agent_config(updated, agent_id=agent_id, model=DEFAULT_MODEL_REF)


def enable_composio(document: dict[str, Any]) -> dict[str, Any]:
    updated = copy.deepcopy(document)
    _section(updated, "composio")["enabled"] = True
    return updated


def composio_section(document: dict[str, Any]) -> dict[str, Any]:
    value = document.get("composio")
    return value if isinstance(value, dict) else {}
