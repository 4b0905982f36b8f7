"""Test factories for agent configurations and remote documents."""

from typing import Any

from agentsync.agents.models import AgentConfig


class AgentConfigFactory:
    """Factory for creating AgentConfig instances for testing."""

    @staticmethod
    def document(
        *,
        agent_name: str = "Support Bot",
        voice_id: str = "11labs-Adrian",
        general_prompt: str | None = "You are a helpful assistant.",
        prompt_config: dict[str, Any] | None = None,
        llm: dict[str, Any] | None = None,
        **fields: Any,
    ) -> dict[str, Any]:
        """Create a raw agent.json document.

        Args:
            agent_name: Display name
            voice_id: Voice identity
            general_prompt: Literal prompt (ignored when prompt_config is given)
            prompt_config: Composable prompt specification
            llm: Extra llm_config fields
            **fields: Extra agent-level fields
        """
        llm_config: dict[str, Any] = {"model": "gpt-4o-mini", "temperature": 0.7}
        if prompt_config is not None:
            llm_config["prompt_config"] = prompt_config
        else:
            llm_config["general_prompt"] = general_prompt
        llm_config.update(llm or {})

        return {
            "agent_name": agent_name,
            "voice_id": voice_id,
            "language": "en-US",
            "voice_speed": 1.0,
            **fields,
            "llm_config": llm_config,
        }

    @classmethod
    def create(cls, **kwargs: Any) -> AgentConfig:
        """Create a validated AgentConfig with sensible defaults."""
        return AgentConfig.model_validate(cls.document(**kwargs))


class RemoteDocumentFactory:
    """Factory for remote agent and LLM documents mirroring a local config."""

    @staticmethod
    def agent(config: AgentConfig, **overrides: Any) -> dict[str, Any]:
        """Remote agent document as the service would return it."""
        document = config.model_dump(mode="json", exclude={"llm_config"}, exclude_none=True)
        document.update({
            "agent_id": "agent_123",
            "last_modification_timestamp": 1_700_000_000_000,
            "response_engine": {"type": "retell-llm", "llm_id": "llm_456"},
        })
        document.update(overrides)
        return document

    @staticmethod
    def llm(config: AgentConfig, prompt: str | None = None, **overrides: Any) -> dict[str, Any]:
        """Remote LLM document as the service would return it."""
        llm_config = config.llm_config
        document: dict[str, Any] = {
            "llm_id": "llm_456",
            "last_modification_timestamp": 1_700_000_000_000,
            "start_speaker": "agent",
            "model": llm_config.model,
            "temperature": llm_config.temperature,
            "general_prompt": prompt if prompt is not None else llm_config.general_prompt,
        }
        if llm_config.begin_message is not None:
            document["begin_message"] = llm_config.begin_message
        if llm_config.tools is not None:
            document["general_tools"] = llm_config.tools
        document.update(overrides)
        return document
