"""Read and write agent.json files."""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from agentsync.agents.models import AgentConfig
from agentsync.observability.logging import get_logger
from agentsync.sync.exceptions import AgentConfigError

logger = get_logger(__name__)

AGENT_CONFIG_FILENAME = "agent.json"


def _format_validation_error(error: ValidationError) -> str:
    return ", ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in error.errors()
    )


def agent_config_path(agent_dir: Path | str) -> Path:
    """Path of agent.json inside an agent directory."""
    return Path(agent_dir) / AGENT_CONFIG_FILENAME


def agent_config_exists(agent_dir: Path | str) -> bool:
    """Whether the agent directory contains agent.json."""
    return agent_config_path(agent_dir).is_file()


def load_agent_config(agent_dir: Path | str) -> AgentConfig:
    """Load and validate agent.json.

    Raises:
        AgentConfigError: If the file is missing, not JSON, or invalid
    """
    path = agent_config_path(agent_dir)
    if not path.is_file():
        raise AgentConfigError(f"{AGENT_CONFIG_FILENAME} not found in {agent_dir}")

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise AgentConfigError(f"Invalid JSON in {AGENT_CONFIG_FILENAME}: {e}") from e

    try:
        config = AgentConfig.model_validate(document)
    except ValidationError as e:
        raise AgentConfigError(
            f"Agent config validation failed: {_format_validation_error(e)}"
        ) from e

    logger.debug("agent_config_loaded", path=str(path), agent_name=config.agent_name)
    return config


def save_agent_config(agent_dir: Path | str, config: AgentConfig | dict[str, Any]) -> Path:
    """Validate and write agent.json, creating the directory if needed.

    Returns:
        Path of the written file

    Raises:
        AgentConfigError: If the configuration does not validate
    """
    if not isinstance(config, AgentConfig):
        try:
            config = AgentConfig.model_validate(config)
        except ValidationError as e:
            raise AgentConfigError(
                f"Agent config validation failed: {_format_validation_error(e)}"
            ) from e

    path = agent_config_path(agent_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_document(), indent=2) + "\n", encoding="utf-8")

    logger.info("agent_config_saved", path=str(path), agent_name=config.agent_name)
    return path
