"""Tests for agent configuration models."""

import pytest
from pydantic import ValidationError

from agentsync.agents.models import (
    AgentConfig,
    LlmConfig,
    OverrideValue,
    PromptConfig,
    StaticValue,
    parse_variable_value,
)
from tests.factories.agents import AgentConfigFactory


class TestVariableValues:
    """Tests for variable value parsing and serialization."""

    def test_sentinel_parses_to_override(self) -> None:
        """The OVERRIDE string becomes an OverrideValue."""
        assert parse_variable_value("OVERRIDE") == OverrideValue()

    def test_other_strings_are_static(self) -> None:
        """Any other string is a literal value."""
        assert parse_variable_value("Acme") == StaticValue(value="Acme")
        assert parse_variable_value("override") == StaticValue(value="override")

    def test_prompt_config_round_trip(self) -> None:
        """Variables serialize back to their on-disk strings."""
        config = PromptConfig.model_validate({
            "sections": ["intro"],
            "variables": {"company": "Acme", "caller": "OVERRIDE"},
        })

        assert isinstance(config.variables["caller"], OverrideValue)
        assert config.model_dump()["variables"] == {"company": "Acme", "caller": "OVERRIDE"}

    def test_tagged_form_accepted(self) -> None:
        """Already-tagged values are accepted."""
        config = PromptConfig.model_validate({
            "sections": ["intro"],
            "variables": {"company": {"kind": "static", "value": "Acme"}},
        })
        assert config.variables["company"] == StaticValue(value="Acme")


class TestPromptConfig:
    """Tests for PromptConfig validation."""

    def test_sections_required(self) -> None:
        """At least one section is required."""
        with pytest.raises(ValidationError):
            PromptConfig.model_validate({"sections": []})

    def test_dynamic_variable_defaults(self) -> None:
        """Dynamic variables default to string type."""
        config = PromptConfig.model_validate({"sections": ["a"], "dynamic_variables": {"n": {}}})
        assert config.dynamic_variables["n"].type == "string"
        assert config.dynamic_variables["n"].description == ""

    def test_unknown_keys_rejected(self) -> None:
        """Typos in the prompt configuration are caught."""
        with pytest.raises(ValidationError):
            PromptConfig.model_validate({"sections": ["a"], "variable": {}})


class TestLlmConfig:
    """Tests for the exactly-one-prompt rule."""

    def test_literal_prompt(self) -> None:
        """A literal prompt alone is valid."""
        config = LlmConfig(general_prompt="Hi")
        assert config.is_composed is False

    def test_composed_prompt(self) -> None:
        """A prompt configuration alone is valid."""
        config = LlmConfig.model_validate({"prompt_config": {"sections": ["a"]}})
        assert config.is_composed is True

    def test_both_rejected(self) -> None:
        """Both prompt forms together are rejected."""
        with pytest.raises(ValidationError, match="cannot define both"):
            LlmConfig.model_validate({"general_prompt": "Hi", "prompt_config": {"sections": ["a"]}})

    def test_neither_rejected(self) -> None:
        """A prompt is required."""
        with pytest.raises(ValidationError, match="must define either"):
            LlmConfig(model="gpt-4o")

    def test_temperature_range(self) -> None:
        """Temperature is bounded."""
        with pytest.raises(ValidationError):
            LlmConfig(general_prompt="Hi", temperature=2.5)


class TestAgentConfig:
    """Tests for AgentConfig."""

    def test_factory_defaults(self) -> None:
        """The factory builds a valid agent."""
        config = AgentConfigFactory.create()
        assert config.agent_name == "Support Bot"
        assert config.llm_config.general_prompt == "You are a helpful assistant."

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("voice_speed", 0.4),
            ("voice_speed", 2.1),
            ("responsiveness", 1.5),
            ("interruption_sensitivity", -0.1),
            ("backchannel_frequency", 1.1),
        ],
    )
    def test_ranges_enforced(self, field: str, value: float) -> None:
        """Numeric knobs are range-checked."""
        with pytest.raises(ValidationError):
            AgentConfigFactory.create(**{field: value})

    def test_unknown_field_rejected(self) -> None:
        """Unknown top-level keys are rejected."""
        with pytest.raises(ValidationError):
            AgentConfigFactory.create(voice_sped=1.0)

    def test_required_fields(self) -> None:
        """agent_name, voice_id and llm_config are required."""
        with pytest.raises(ValidationError):
            AgentConfig.model_validate({"agent_name": "Bot"})

    def test_post_call_analysis_type(self) -> None:
        """Analysis fields have a closed set of types."""
        with pytest.raises(ValidationError):
            AgentConfigFactory.create(
                post_call_analysis_data=[{"name": "n", "type": "date", "description": "d"}]
            )

    def test_to_document_omits_none(self) -> None:
        """Documents leave out unset fields."""
        document = AgentConfigFactory.create().to_document()
        assert "webhook_url" not in document
        assert "prompt_config" not in document["llm_config"]
        assert document["voice_speed"] == 1.0
