"""Application configuration contract."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")
    state_dir: str = Field(alias="AGENTDOCK_STATE_DIR", default="~/.agentdock")
    config_path: str = Field(alias="AGENTDOCK_CONFIG_PATH", default="")
    default_workspace: str = Field(
        alias="AGENTDOCK_DEFAULT_WORKSPACE", default="~/.agentdock/workspace"
    )

    composio_enabled: int = Field(alias="COMPOSIO_ENABLED", default=0)
    composio_api_key: str = Field(alias="COMPOSIO_API_KEY", default="")
    composio_base_url: str = Field(alias="COMPOSIO_BASE_URL", default="")
    composio_timeout_seconds: int = Field(alias="COMPOSIO_TIMEOUT_SECONDS", default=30)
    composio_max_accounts_per_user: int = Field(
        alias="COMPOSIO_MAX_ACCOUNTS_PER_USER", default=20
    )
    composio_default_entity_id: str = Field(
        alias="COMPOSIO_DEFAULT_ENTITY_ID", default="default"
    )

    # Security: bind host defaults to loopback
    bind_host: str = Field(alias="BIND_HOST", default="127.0.0.1")

    def resolved_state_dir(self) -> Path:
        return Path(self.state_dir).expanduser()

    def resolved_config_path(self) -> Path:
        if self.config_path.strip():
            return Path(self.config_path.strip()).expanduser()
        return self.resolved_state_dir() / "agentdock.json"


def validate_settings_for_env(settings: Settings) -> None:
    import logging as _logging
    import warnings

    _logger = _logging.getLogger(__name__)

    # Warn if binding to 0.0.0.0 in production
    if settings.app_env == "prod" and settings.bind_host == "0.0.0.0":
        msg = (
            "SECURITY WARNING: BIND_HOST=0.0.0.0 in production. "
            "This exposes the API to all network interfaces. "
            "Set BIND_HOST=127.0.0.1 and use a reverse proxy."
        )
        _logger.warning(msg)
        warnings.warn(msg, stacklevel=2)

    if settings.app_env != "prod":
        return

    missing: list[str] = []
    if not settings.resolved_state_dir().is_absolute():
        missing.append("AGENTDOCK_STATE_DIR(absolute path required)")
    if settings.config_path.strip() and not settings.resolved_config_path().is_absolute():
        missing.append("AGENTDOCK_CONFIG_PATH(absolute path required)")
    if int(settings.composio_enabled) == 1 and not settings.composio_api_key.strip():
        missing.append("COMPOSIO_API_KEY")
    if settings.composio_max_accounts_per_user < 1:
        missing.append("COMPOSIO_MAX_ACCOUNTS_PER_USER(positive value)")

    if missing:
        keys = ", ".join(sorted(set(missing)))
        raise ValueError(f"invalid production configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
