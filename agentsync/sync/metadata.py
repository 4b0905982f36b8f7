"""Per-workspace sync metadata (``<agent_dir>/<workspace>.json``).

The record tracks which remote resources an agent maps to in one workspace
and the fingerprint of the remote configuration at the last sync. Its
schema is strict: unknown fields are rejected.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agentsync.observability.logging import get_logger
from agentsync.sync.exceptions import MetadataError

logger = get_logger(__name__)

WORKSPACE_NAME_PATTERN = r"^[a-z][a-z0-9_-]*$"

GITOPS_FIELDS: frozenset[str] = frozenset({
    "source_commit",
    "source_branch",
    "deployed_by",
    "workflow_run_id",
    "deployed_at",
})


class SyncMetadata(BaseModel):
    """Sync state of one agent in one workspace."""

    model_config = ConfigDict(extra="forbid")

    workspace: str = Field(..., pattern=WORKSPACE_NAME_PATTERN, description="Workspace name")
    agent_id: str | None = Field(default=None, description="Remote agent ID")
    llm_id: str | None = Field(default=None, description="Remote LLM ID")
    kb_id: str | None = Field(default=None, description="Remote knowledge base ID")
    last_sync: datetime | None = Field(default=None, description="Time of last sync")
    config_hash: str | None = Field(default=None, description="Remote fingerprint at last sync")
    remote_version: int | None = Field(default=None, ge=0, description="Remote version number")

    # GitOps provenance, omitted from the file when unset
    source_commit: str | None = None
    source_branch: str | None = None
    deployed_by: str | None = None
    workflow_run_id: str | None = None
    deployed_at: str | None = None

    def to_document(self) -> dict[str, Any]:
        """Dump for writing; core fields stay as null, provenance is omitted when unset."""
        document = self.model_dump(mode="json")
        return {
            key: value
            for key, value in document.items()
            if not (key in GITOPS_FIELDS and value is None)
        }


def metadata_path(agent_dir: Path | str, workspace: str) -> Path:
    """Path of the metadata file for a workspace."""
    return Path(agent_dir) / f"{workspace}.json"


def metadata_exists(agent_dir: Path | str, workspace: str) -> bool:
    """Whether a metadata file exists for the workspace."""
    return metadata_path(agent_dir, workspace).is_file()


def read_metadata(agent_dir: Path | str, workspace: str) -> SyncMetadata:
    """Read metadata, returning an empty record if the file does not exist.

    Raises:
        MetadataError: If the file is not JSON or does not match the schema
    """
    path = metadata_path(agent_dir, workspace)
    if not path.is_file():
        return SyncMetadata(workspace=workspace)

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise MetadataError(f"Invalid JSON in metadata file {path.name}: {e}") from e

    try:
        metadata = SyncMetadata.model_validate(document)
    except ValidationError as e:
        messages = ", ".join(error["msg"] for error in e.errors())
        raise MetadataError(f"Invalid metadata schema in {path.name}: {messages}") from e

    if metadata.workspace != workspace:
        raise MetadataError(
            f"Metadata file {path.name} belongs to workspace '{metadata.workspace}'"
        )
    return metadata


def write_metadata(agent_dir: Path | str, metadata: SyncMetadata) -> Path:
    """Write metadata, creating the agent directory if needed."""
    path = metadata_path(agent_dir, metadata.workspace)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(metadata.to_document(), indent=2) + "\n", encoding="utf-8")
    logger.debug("metadata_written", path=str(path), workspace=metadata.workspace)
    return path


def update_metadata(agent_dir: Path | str, workspace: str, **updates: Any) -> SyncMetadata:
    """Merge updates into the stored record and write it back.

    The workspace of an existing record cannot be changed.

    Raises:
        MetadataError: If the merged record does not match the schema
    """
    existing = read_metadata(agent_dir, workspace)
    merged = {**existing.model_dump(), **updates, "workspace": workspace}
    try:
        metadata = SyncMetadata.model_validate(merged)
    except ValidationError as e:
        messages = ", ".join(error["msg"] for error in e.errors())
        raise MetadataError(f"Invalid metadata update: {messages}") from e

    write_metadata(agent_dir, metadata)
    return metadata
