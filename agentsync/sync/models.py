"""Value types produced by conflict detection and resolution.

All models are frozen: a detection result is owned by its caller for the
duration of one comparison and never mutated after construction.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from agentsync.agents.models import AgentConfig


class FieldConflict(BaseModel):
    """A single setting whose local and remote values differ."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Dotted path, e.g. agent.voice_speed")
    local_value: Any = Field(default=None, description="Local value, None if absent")
    remote_value: Any = Field(default=None, description="Remote value, None if absent")

    @property
    def field(self) -> str:
        """Last segment of the path."""
        return self.path.rsplit(".", 1)[-1]


class PromptConflict(BaseModel):
    """Full prompt texts on both sides, kept for line-level diffing."""

    model_config = ConfigDict(frozen=True)

    field: Literal["prompt"] = "prompt"
    local_prompt: str
    remote_prompt: str
    local_hash: str
    remote_hash: str


class InSync(BaseModel):
    """Remote has not drifted since the last recorded sync."""

    model_config = ConfigDict(frozen=True)

    has_conflict: Literal[False] = False
    message: str = "Configuration is in sync with remote"


class OutOfSync(BaseModel):
    """Remote differs from the last recorded sync."""

    model_config = ConfigDict(frozen=True)

    has_conflict: Literal[True] = True
    local_hash: str
    remote_hash: str
    field_conflicts: list[FieldConflict] = Field(default_factory=list)
    prompt_conflict: PromptConflict | None = None

    def conflict_paths(self) -> list[str]:
        """Paths of every field conflict, plus ``llm.general_prompt`` if prompts differ."""
        paths = [conflict.path for conflict in self.field_conflicts]
        if self.prompt_conflict is not None:
            paths.append("llm.general_prompt")
        return paths


ConflictDetectionResult = InSync | OutOfSync


class ResolutionStrategy(str, Enum):
    """Operator-chosen policy for settling a detected conflict.

    - USE_LOCAL: keep local, caller force-pushes to remote
    - USE_REMOTE: pull remote values into the local agent.json
    - MANUAL: a human edits agent.json and re-runs detection
    """

    USE_LOCAL = "use-local"
    USE_REMOTE = "use-remote"
    MANUAL = "manual"


class ResolutionResult(BaseModel):
    """Outcome of applying a resolution strategy."""

    model_config = ConfigDict(frozen=True)

    strategy: ResolutionStrategy
    resolved_config: AgentConfig | None = None
    message: str


class RemoteVersion(BaseModel):
    """One entry of a remote agent's version history."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(..., ge=0)
    is_published: bool = False


class VersionDrift(BaseModel):
    """Stored version number compared with the remote version history."""

    model_config = ConfigDict(frozen=True)

    has_drift: bool
    stored_version: int | None
    remote_version: int = Field(..., description="Highest remote version, 0 if none")
    versions_behind: int = Field(
        default=0,
        description="Remote latest minus stored; negative when stored is ahead",
    )
    message: str
