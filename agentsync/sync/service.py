"""Diff, push and status orchestration for agents and their workspaces.

Ties the local collaborators (agent.json, metadata file, prompt fragments)
and the remote client to the detection and resolution engine.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agentsync.agents.loader import AGENT_CONFIG_FILENAME, load_agent_config
from agentsync.agents.transformer import to_remote_agent, to_remote_llm
from agentsync.client.client import RemoteAgentClient
from agentsync.config.models.workspaces import WorkspaceConfig
from agentsync.config.settings import Settings
from agentsync.observability.logging import get_logger
from agentsync.sync.detector import calculate_version_drift, detect, local_fingerprint
from agentsync.sync.exceptions import (
    AgentSyncError,
    MalformedRemoteDocumentError,
    MetadataError,
    PromotionError,
    SyncConflictError,
)
from agentsync.sync.fragments import FileFragmentStore, FragmentStore
from agentsync.sync.hashing import Fingerprint, fingerprints_equal
from agentsync.sync.metadata import SyncMetadata, read_metadata, update_metadata
from agentsync.sync.models import (
    ConflictDetectionResult,
    OutOfSync,
    RemoteVersion,
    ResolutionResult,
    ResolutionStrategy,
    VersionDrift,
)
from agentsync.sync.remote_shape import config_fingerprint
from agentsync.sync.resolver import (
    format_field_conflicts,
    format_prompt_conflict,
    generate_prompt_diff,
    resolve,
    unified_prompt_diff,
)

logger = get_logger(__name__)

ClientFactory = Callable[[WorkspaceConfig], RemoteAgentClient]


class DiffReport(BaseModel):
    """Outcome of comparing one agent against one workspace."""

    model_config = ConfigDict(frozen=True)

    agent_name: str
    workspace: str
    metadata: SyncMetadata
    detection: ConflictDetectionResult
    local_changes: bool
    resolution: ResolutionResult | None = None
    version_drift: VersionDrift | None = None

    def render(self, full: bool = False) -> str:
        """Human-readable report; ``full`` shows line diffs instead of a preview."""
        lines = [f"Agent '{self.agent_name}' in {self.workspace}"]
        detection = self.detection

        if not isinstance(detection, OutOfSync):
            lines.append(detection.message)
            last_sync = self.metadata.last_sync.isoformat() if self.metadata.last_sync else "Unknown"
            lines.append(f"Last synced: {last_sync}")
            if self.local_changes:
                lines.append("Local changes have not been pushed yet.")
        else:
            lines.append("Conflicts detected")
            lines.append(f"Local Config Hash:  {detection.local_hash}")
            lines.append(f"Remote Config Hash: {detection.remote_hash}")
            lines.append(f"Stored Hash:        {self.metadata.config_hash or 'None'}")
            lines.append("")
            if detection.field_conflicts:
                lines.append(format_field_conflicts(detection.field_conflicts))
            if detection.prompt_conflict is not None:
                conflict = detection.prompt_conflict
                if full:
                    lines.append(generate_prompt_diff(conflict.local_prompt, conflict.remote_prompt))
                    lines.append("")
                    lines.append("Unified Prompt Diff:\n")
                    lines.append(unified_prompt_diff(conflict.local_prompt, conflict.remote_prompt))
                else:
                    lines.append(format_prompt_conflict(conflict))

        if self.version_drift is not None:
            lines.append("")
            lines.append(f"Version: {self.version_drift.message}")

        if self.resolution is not None:
            lines.append("")
            lines.append(self.resolution.message)
        return "\n".join(lines)


class PushResult(BaseModel):
    """Outcome of a push; ``pushed`` is false when the workspace was already in sync."""

    model_config = ConfigDict(frozen=True)

    agent_name: str
    workspace: str
    metadata: SyncMetadata
    pushed: bool


class WorkspaceStatus(BaseModel):
    """Recorded sync state of one agent in one workspace."""

    model_config = ConfigDict(frozen=True)

    workspace: str
    agent_id: str | None = None
    config_hash: str | None = None
    last_sync: datetime | None = None
    in_sync: bool = Field(default=False, description="Local fingerprint equals the recorded one")


class AgentStatus(BaseModel):
    """Local fingerprint of an agent next to its per-workspace sync state."""

    model_config = ConfigDict(frozen=True)

    agent_name: str
    local_hash: str | None = None
    error: str | None = Field(default=None, description="Why the local fingerprint is unavailable")
    workspaces: list[WorkspaceStatus] = Field(default_factory=list)

    def render(self) -> str:
        lines = [f"Agent '{self.agent_name}'"]
        if self.error:
            lines.append(f"  Error: {self.error}")
        else:
            lines.append(f"  Local Hash: {self.local_hash}")
        for entry in self.workspaces:
            if entry.agent_id is None:
                lines.append(f"  {entry.workspace}: never pushed")
                continue
            state = "in sync" if entry.in_sync else "out of sync"
            last_sync = entry.last_sync.isoformat() if entry.last_sync else "Unknown"
            lines.append(f"  {entry.workspace}: {state} (agent {entry.agent_id}, last sync {last_sync})")
        return "\n".join(lines)


def _remote_versions(entries: list[dict]) -> list[RemoteVersion]:
    try:
        return [RemoteVersion.model_validate(entry) for entry in entries]
    except ValidationError as e:
        raise MalformedRemoteDocumentError("agent versions", detail=str(e)) from e


class SyncService:
    """Compares, pushes and reports on agents under the configured agents directory."""

    def __init__(
        self,
        settings: Settings,
        store: FragmentStore | None = None,
        client_factory: ClientFactory | None = None,
    ):
        """Initialize the service.

        Args:
            settings: Loaded settings (paths, workspaces and promotions)
            store: Fragment store; defaults to the configured prompts directory
            client_factory: Builds a client for a workspace
        """
        self._settings = settings
        self._store = store or FileFragmentStore(settings.paths.prompts_dir)
        self._client_factory = client_factory or RemoteAgentClient.from_workspace

    def agent_dir(self, agent_name: str) -> Path:
        """Directory of an agent."""
        return self._settings.paths.agent_dir(agent_name)

    def list_agents(self) -> list[str]:
        """Names of agent directories holding an agent.json, sorted."""
        agents_dir = self._settings.paths.agents_dir
        if not agents_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in agents_dir.iterdir()
            if entry.is_dir() and (entry / AGENT_CONFIG_FILENAME).is_file()
        )

    async def diff(
        self,
        agent_name: str,
        workspace: str | None = None,
        strategy: ResolutionStrategy | str | None = None,
        check_versions: bool = False,
    ) -> DiffReport:
        """Detect drift of one agent and optionally resolve it.

        With ``check_versions`` the remote version history is also compared
        with the version recorded at the last push.

        Raises:
            AgentConfigError: If agent.json cannot be loaded
            MetadataError: If the agent has never been pushed to the workspace
            RemoteClientError: If the remote service rejects a request
            FragmentNotFoundError: If the local prompt cannot be composed
        """
        workspace = workspace or self._settings.default_workspace
        workspace_config = self._settings.get_workspace(workspace)
        agent_dir = self.agent_dir(agent_name)

        config = load_agent_config(agent_dir)
        metadata = read_metadata(agent_dir, workspace)
        if not metadata.agent_id or not metadata.llm_id:
            raise MetadataError(
                f"Agent metadata incomplete in {workspace}. Run push to sync."
            )

        version_drift = None
        async with self._client_factory(workspace_config) as client:
            remote_agent = await client.get_agent(metadata.agent_id)
            remote_llm = await client.get_llm(metadata.llm_id)
            if check_versions:
                versions = _remote_versions(await client.get_agent_versions(metadata.agent_id))
                version_drift = calculate_version_drift(metadata.remote_version, versions)

        detection = detect(config, remote_agent, remote_llm, metadata.config_hash, self._store)
        local_changes = not fingerprints_equal(
            local_fingerprint(config, self._store), metadata.config_hash
        )

        resolution = None
        if strategy is not None and detection.has_conflict:
            resolution = resolve(config, remote_agent, remote_llm, strategy, agent_dir)

        return DiffReport(
            agent_name=agent_name,
            workspace=workspace,
            metadata=metadata,
            detection=detection,
            local_changes=local_changes,
            resolution=resolution,
            version_drift=version_drift,
        )

    def _check_promotion(
        self,
        agent_name: str,
        workspace: str,
        current_hash: Fingerprint,
        force: bool,
    ) -> None:
        """Require the source workspace to hold the same local state first.

        A source workspace that was never synced blocks the push even when
        forced; a fingerprint mismatch only blocks unforced pushes.
        """
        source = self._settings.promotions.get(workspace)
        if source is None:
            return

        source_metadata = read_metadata(self.agent_dir(agent_name), source)
        if not source_metadata.agent_id or not source_metadata.config_hash:
            raise PromotionError(agent_name, workspace, source, f"not synced to {source}")

        if not fingerprints_equal(current_hash, source_metadata.config_hash) and not force:
            raise PromotionError(
                agent_name,
                workspace,
                source,
                f"local changes differ from {source} "
                f"(local {current_hash}, {source} {source_metadata.config_hash})",
            )

        logger.info(
            "promotion_validated",
            agent_name=agent_name,
            workspace=workspace,
            source_workspace=source,
            source_agent_id=source_metadata.agent_id,
            forced=force,
        )

    async def push(
        self,
        agent_name: str,
        workspace: str | None = None,
        force: bool = False,
    ) -> PushResult:
        """Create or update the remote agent and record the pushed fingerprint.

        Pushing to a workspace with a configured promotion source requires the
        source to hold the same fingerprint. When the local fingerprint equals
        the recorded one nothing is sent. Unless ``force`` is set, an agent
        that already exists remotely is checked for field or prompt drift first.

        Raises:
            PromotionError: If the promotion source is missing or differs
            SyncConflictError: If the remote drifted and force is not set
            VariableValidationError: If prompt variables are inconsistent
        """
        workspace = workspace or self._settings.default_workspace
        workspace_config = self._settings.get_workspace(workspace)
        agent_dir = self.agent_dir(agent_name)

        config = load_agent_config(agent_dir)
        current_hash = local_fingerprint(config, self._store)
        self._check_promotion(agent_name, workspace, current_hash, force)

        metadata = read_metadata(agent_dir, workspace)
        if (
            not force
            and metadata.config_hash is not None
            and fingerprints_equal(current_hash, metadata.config_hash)
        ):
            logger.info(
                "agent_already_in_sync",
                agent_name=agent_name,
                workspace=workspace,
                agent_id=metadata.agent_id,
                config_hash=metadata.config_hash,
            )
            return PushResult(
                agent_name=agent_name, workspace=workspace, metadata=metadata, pushed=False
            )

        llm_payload = to_remote_llm(config, self._store)

        async with self._client_factory(workspace_config) as client:
            if metadata.agent_id and metadata.llm_id and not force:
                detection = detect(
                    config,
                    await client.get_agent(metadata.agent_id),
                    await client.get_llm(metadata.llm_id),
                    metadata.config_hash,
                    self._store,
                )
                # A null stored fingerprint is OutOfSync without any differences
                if isinstance(detection, OutOfSync) and detection.conflict_paths():
                    raise SyncConflictError(agent_name, workspace, detection.conflict_paths())

            if metadata.llm_id:
                await client.update_llm(metadata.llm_id, llm_payload)
                llm_id = metadata.llm_id
            else:
                llm_id = (await client.create_llm(llm_payload))["llm_id"]

            agent_payload = to_remote_agent(config, llm_id)
            if metadata.agent_id:
                remote_agent = await client.update_agent(metadata.agent_id, agent_payload)
                agent_id = metadata.agent_id
            else:
                remote_agent = await client.create_agent(agent_payload)
                agent_id = remote_agent["agent_id"]

        # Fingerprint of the payloads sent, not of the response
        config_hash = config_fingerprint(agent_payload, llm_payload)
        updates = {
            "agent_id": agent_id,
            "llm_id": llm_id,
            "config_hash": config_hash,
            "last_sync": datetime.now(UTC),
        }
        version = remote_agent.get("version")
        if isinstance(version, int) and not isinstance(version, bool) and version >= 0:
            updates["remote_version"] = version

        updated = update_metadata(agent_dir, workspace, **updates)
        logger.info(
            "agent_pushed",
            agent_name=agent_name,
            workspace=workspace,
            agent_id=agent_id,
            llm_id=llm_id,
            config_hash=config_hash,
            remote_version=updated.remote_version,
            forced=force,
        )
        return PushResult(agent_name=agent_name, workspace=workspace, metadata=updated, pushed=True)

    def status(self, agent_name: str, workspaces: list[str] | None = None) -> AgentStatus:
        """Compare the local fingerprint with each workspace's recorded one.

        Reads local files only. A local fingerprint that cannot be computed
        is reported on the status instead of raised.
        """
        agent_dir = self.agent_dir(agent_name)
        names = workspaces or list(self._settings.workspaces)

        local_hash = None
        error = None
        try:
            config = load_agent_config(agent_dir)
            local_hash = local_fingerprint(config, self._store)
        except AgentSyncError as e:
            error = str(e)
            logger.warning("agent_status_unavailable", agent_name=agent_name, error=error)

        entries = []
        for name in names:
            metadata = read_metadata(agent_dir, name)
            in_sync = (
                local_hash is not None
                and metadata.config_hash is not None
                and fingerprints_equal(local_hash, metadata.config_hash)
            )
            entries.append(
                WorkspaceStatus(
                    workspace=name,
                    agent_id=metadata.agent_id,
                    config_hash=metadata.config_hash,
                    last_sync=metadata.last_sync,
                    in_sync=in_sync,
                )
            )

        return AgentStatus(agent_name=agent_name, local_hash=local_hash, error=error, workspaces=entries)

    def status_all(self, workspaces: list[str] | None = None) -> list[AgentStatus]:
        """Status of every agent under the agents directory."""
        return [self.status(name, workspaces) for name in self.list_agents()]
