import pytest

from agentdock.broker.cache import BrokerClientCache, resolve_api_key, resolve_base_url
from agentdock.broker.composio import ComposioClient
from agentdock.config import Settings, get_settings


def _settings(monkeypatch: pytest.MonkeyPatch, **env: str) -> Settings:
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    return get_settings()


def test_no_key_means_integration_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    cache = BrokerClientCache(_settings(monkeypatch))
    assert cache.get() is None
    assert cache.get({"apiKey": "   "}) is None


def test_config_key_wins_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _settings(monkeypatch, COMPOSIO_API_KEY="env-key", COMPOSIO_BASE_URL="https://env")
    assert resolve_api_key({"apiKey": " cfg-key "}, settings) == "cfg-key"
    assert resolve_api_key({}, settings) == "env-key"
    assert resolve_base_url({"baseUrl": "https://cfg"}, settings) == "https://cfg"
    assert resolve_base_url(None, settings) == "https://env"


def test_same_key_and_url_reuse_client(monkeypatch: pytest.MonkeyPatch) -> None:
    cache = BrokerClientCache(_settings(monkeypatch, COMPOSIO_API_KEY="key-1"))
    first = cache.get()
    assert isinstance(first, ComposioClient)
    assert cache.get() is first
    assert cache.get({"apiKey": "key-1"}) is first


def test_changed_credentials_replace_client(monkeypatch: pytest.MonkeyPatch) -> None:
    built: list[tuple[str, str | None]] = []

    def factory(api_key: str, base_url: str | None) -> object:
        built.append((api_key, base_url))
        return object()

    cache = BrokerClientCache(_settings(monkeypatch), factory=factory)  # type: ignore[arg-type]
    first = cache.get({"apiKey": "a"})
    second = cache.get({"apiKey": "b"})
    third = cache.get({"apiKey": "b", "baseUrl": "https://self-hosted"})
    assert first is not second
    assert second is not third
    assert cache.get({"apiKey": "b", "baseUrl": "https://self-hosted"}) is third
    assert built == [("a", None), ("b", None), ("b", "https://self-hosted")]


def test_reset_forces_new_client(monkeypatch: pytest.MonkeyPatch) -> None:
    cache = BrokerClientCache(_settings(monkeypatch, COMPOSIO_API_KEY="key-1"))
    first = cache.get()
    cache.reset()
    assert cache.get() is not first
