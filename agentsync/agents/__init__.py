"""Local agent definitions: models and agent.json persistence."""

from agentsync.agents.loader import (
    AGENT_CONFIG_FILENAME,
    agent_config_exists,
    load_agent_config,
    save_agent_config,
)
from agentsync.agents.models import (
    OVERRIDE_SENTINEL,
    AgentConfig,
    DynamicVariable,
    LlmConfig,
    OverrideValue,
    PostCallAnalysisField,
    PromptConfig,
    PronunciationEntry,
    StaticValue,
)

__all__ = [
    "AGENT_CONFIG_FILENAME",
    "OVERRIDE_SENTINEL",
    "AgentConfig",
    "DynamicVariable",
    "LlmConfig",
    "OverrideValue",
    "PostCallAnalysisField",
    "PromptConfig",
    "PronunciationEntry",
    "StaticValue",
    "agent_config_exists",
    "load_agent_config",
    "save_agent_config",
]
