"""Filesystem layout configuration."""

from pathlib import Path

from pydantic import BaseModel, Field


class PathsConfig(BaseModel):
    """Where agent definitions and prompt fragments live."""

    agents_dir: Path = Field(
        default=Path("agents"),
        description="Directory holding one subdirectory per agent",
    )
    prompts_dir: Path = Field(
        default=Path("prompts"),
        description="Root directory of prompt fragment files",
    )

    def agent_dir(self, agent_name: str) -> Path:
        """Directory of a single agent."""
        return self.agents_dir / agent_name
