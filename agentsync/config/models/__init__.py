"""Configuration section models."""

from agentsync.config.models.observability import LoggingConfig
from agentsync.config.models.paths import PathsConfig
from agentsync.config.models.workspaces import WorkspaceConfig

__all__ = ["LoggingConfig", "PathsConfig", "WorkspaceConfig"]
