"""Remote workspace configuration."""

from pydantic import BaseModel, Field, SecretStr

DEFAULT_BASE_URL = "https://api.retellai.com"


class WorkspaceConfig(BaseModel):
    """Connection settings for one remote workspace (e.g. staging)."""

    api_key: SecretStr | None = Field(default=None, description="Workspace API key")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Remote API base URL")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
