"""Transform local agent configuration into remote API payloads.

The remote service splits an agent in two: an LLM resource (model, prompt,
tools) and an agent resource (voice and behavior) that references the LLM by
ID. The LLM must therefore be created or updated first.
"""

from typing import Any

from agentsync.agents.models import AgentConfig
from agentsync.observability.logging import get_logger
from agentsync.sync.composer import assemble, substitute_static
from agentsync.sync.exceptions import VariableValidationError
from agentsync.sync.fragments import FragmentStore
from agentsync.sync.variables import classify_prompt, validate_variables

logger = get_logger(__name__)

DEFAULT_START_SPEAKER = "agent"
RESPONSE_ENGINE_TYPE = "retell-llm"


def _without_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def build_prompt(config: AgentConfig, store: FragmentStore) -> str:
    """Compose and validate the prompt that would be pushed.

    Raises:
        FragmentNotFoundError: If a section fragment is missing
        VariableValidationError: With every offending variable at once
    """
    prompt_config = config.llm_config.prompt_config
    if prompt_config is None:
        return config.llm_config.general_prompt or ""

    text = assemble(store, prompt_config)
    errors = validate_variables(text, prompt_config)
    if errors:
        logger.warning(
            "variable_validation_failed",
            agent_name=config.agent_name,
            error_count=len(errors),
        )
        raise VariableValidationError(errors)
    return substitute_static(text, classify_prompt(text, prompt_config))


def llm_payload(config: AgentConfig, prompt: str) -> dict[str, Any]:
    """LLM resource fields for a given final prompt."""
    llm_config = config.llm_config
    return _without_none({
        "start_speaker": DEFAULT_START_SPEAKER,
        "model": llm_config.model,
        "temperature": llm_config.temperature,
        "general_prompt": prompt,
        "begin_message": llm_config.begin_message,
        "general_tools": llm_config.tools,
    })


def agent_settings(config: AgentConfig) -> dict[str, Any]:
    """Agent resource fields, excluding the response engine reference."""
    dumped = config.model_dump(mode="json", exclude={"llm_config"})
    return _without_none(dumped)


def to_remote_llm(config: AgentConfig, store: FragmentStore) -> dict[str, Any]:
    """Build the LLM create/update payload."""
    payload = llm_payload(config, build_prompt(config, store))
    logger.debug(
        "llm_payload_built",
        agent_name=config.agent_name,
        composed=config.llm_config.is_composed,
        prompt_chars=len(payload["general_prompt"]),
    )
    return payload


def to_remote_agent(config: AgentConfig, llm_id: str) -> dict[str, Any]:
    """Build the agent create/update payload referencing an existing LLM."""
    payload = agent_settings(config)
    payload["response_engine"] = {"type": RESPONSE_ENGINE_TYPE, "llm_id": llm_id}
    return payload
