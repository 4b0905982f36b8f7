"""Exception hierarchy for the synchronization engine.

All errors raised by agentsync inherit from AgentSyncError so callers can
decide per agent whether to abort or skip and continue.
"""

from typing import Any


class AgentSyncError(Exception):
    """Base exception for all agentsync errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class FragmentNotFoundError(AgentSyncError):
    """Raised when a prompt section references a fragment the store cannot resolve."""

    def __init__(self, identifier: str, directory: str | None = None) -> None:
        location = f" at {directory}" if directory else ""
        super().__init__(f"Prompt section not found: {identifier}{location}")
        self.identifier = identifier
        self.directory = directory


class VariableValidationError(AgentSyncError):
    """Raised when placeholders are neither declared nor known system names."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(f"Variable validation failed: {', '.join(errors)}")
        self.errors = list(errors)


class MalformedRemoteDocumentError(AgentSyncError):
    """Raised when a remote document lacks structure the engine requires."""

    def __init__(self, document: str, field: str | None = None, detail: str | None = None) -> None:
        message = f"Malformed remote {document} document"
        if field:
            message += f": field '{field}'"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.document = document
        self.field = field


class AgentConfigError(AgentSyncError):
    """Raised when agent.json is missing, unparsable or fails validation."""


class MetadataError(AgentSyncError):
    """Raised when a workspace sync-metadata file is invalid."""


class RemoteClientError(AgentSyncError):
    """Raised when the remote API returns an error response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ConfigurationError(AgentSyncError):
    """Raised when settings are missing or inconsistent (e.g. unknown workspace)."""


class SyncConflictError(AgentSyncError):
    """Raised when a push would overwrite remote changes made since the last sync."""

    def __init__(self, agent_name: str, workspace: str, conflict_paths: list[str]) -> None:
        super().__init__(
            f"Remote agent '{agent_name}' in {workspace} changed since the last sync "
            f"({', '.join(conflict_paths) or 'metadata only'}); resolve or push with force"
        )
        self.agent_name = agent_name
        self.workspace = workspace
        self.conflict_paths = conflict_paths


class PromotionError(AgentSyncError):
    """Raised when a push skips the workspace an agent must be promoted from."""

    def __init__(self, agent_name: str, workspace: str, source_workspace: str, reason: str) -> None:
        super().__init__(
            f"Cannot push '{agent_name}' to {workspace}: {reason}. "
            f"Push to {source_workspace} first"
        )
        self.agent_name = agent_name
        self.workspace = workspace
        self.source_workspace = source_workspace
