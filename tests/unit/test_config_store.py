import json
from pathlib import Path

import pytest

from agentdock.agents.config_store import ConfigStore
from agentdock.errors import ConfigConflictError, ConfigError


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    snapshot = ConfigStore(tmp_path / "cfg.json").load()
    assert snapshot.document == {}
    assert snapshot.revision == ""


def test_write_then_load_round_trip(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "nested" / "cfg.json")
    revision = store.write({"agents": {"list": [{"id": "helper"}]}})
    snapshot = store.load()
    assert snapshot.document == {"agents": {"list": [{"id": "helper"}]}}
    assert snapshot.revision == revision
    assert store.current_revision() == revision
    assert list(store.path.parent.iterdir()) == [store.path]


def test_stale_revision_is_rejected(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "cfg.json")
    stale = store.load().revision
    store.write({"composio": {"enabled": True}})
    with pytest.raises(ConfigConflictError):
        store.write({"agents": {}}, expected_revision=stale)
    assert json.loads(store.path.read_text()) == {"composio": {"enabled": True}}


def test_matching_revision_is_accepted(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "cfg.json")
    first = store.write({"a": 1})
    second = store.write({"a": 2}, expected_revision=first)
    assert second != first
    assert store.load().document == {"a": 2}


def test_invalid_json_is_a_config_error(tmp_path: Path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError, match="invalid config"):
        ConfigStore(path).load()


def test_non_object_document_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]")
    with pytest.raises(ConfigError, match="top level must be an object"):
        ConfigStore(path).load()


def test_blank_file_loads_empty(tmp_path: Path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text("\n")
    snapshot = ConfigStore(path).load()
    assert snapshot.document == {}
    assert snapshot.revision


@pytest.mark.asyncio
async def test_async_wrappers(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "cfg.json")
    revision = await store.awrite({"x": True})
    snapshot = await store.aload()
    assert snapshot.document == {"x": True}
    assert snapshot.revision == revision
