"""Root settings model for agentsync configuration."""

from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from agentsync.config.models.observability import LoggingConfig
from agentsync.config.models.paths import PathsConfig
from agentsync.config.models.workspaces import WorkspaceConfig
from agentsync.sync.exceptions import ConfigurationError

# TOML configuration consumed by TomlConfigSettingsSource
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Set the TOML configuration to be used by Settings."""
    global _toml_config
    _toml_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source that reads from the loaded TOML configuration."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        value = _toml_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return _toml_config.copy()


def _default_workspaces() -> dict[str, WorkspaceConfig]:
    return {"staging": WorkspaceConfig(), "production": WorkspaceConfig()}


class Settings(BaseSettings):
    """Root configuration object.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{AGENTSYNC_ENV}.toml (environment overrides)
    4. AGENTSYNC_* environment variables (runtime overrides)
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTSYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="agentsync", description="Application name for logging")
    default_workspace: str = Field(default="staging", description="Workspace used when none is given")

    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging settings")
    paths: PathsConfig = Field(default_factory=PathsConfig, description="Filesystem layout")
    workspaces: dict[str, WorkspaceConfig] = Field(
        default_factory=_default_workspaces,
        description="Remote workspaces keyed by name",
    )
    promotions: dict[str, str] = Field(
        default_factory=lambda: {"production": "staging"},
        description="Workspace that must hold the same local state before a push, keyed by target",
    )

    def get_workspace(self, name: str | None = None) -> WorkspaceConfig:
        """Look up a workspace, falling back to the default workspace.

        Raises:
            ConfigurationError: If the workspace is not configured
        """
        workspace = name or self.default_workspace
        try:
            return self.workspaces[workspace]
        except KeyError:
            known = ", ".join(sorted(self.workspaces)) or "none"
            raise ConfigurationError(
                f"Workspace '{workspace}' is not configured (known: {known})"
            ) from None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority (highest first): constructor args, AGENTSYNC_* env vars, TOML."""
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
