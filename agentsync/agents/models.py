"""Agent configuration models.

These models describe one agent as it is kept on disk in agent.json: voice
and behavior settings plus a nested LLM configuration whose prompt is either
a literal string or a composable prompt specification.
"""

from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

OVERRIDE_SENTINEL = "OVERRIDE"


class StaticValue(BaseModel):
    """Variable with a literal value, substituted at composition time."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["static"] = "static"
    value: str = Field(..., description="Literal replacement text")


class OverrideValue(BaseModel):
    """Variable left in place for the remote service to fill per call."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["override"] = "override"


VariableValue = Annotated[StaticValue | OverrideValue, Field(discriminator="kind")]


def parse_variable_value(raw: Any) -> Any:
    """Map the on-disk string form onto the tagged variable value."""
    if isinstance(raw, str):
        if raw == OVERRIDE_SENTINEL:
            return OverrideValue()
        return StaticValue(value=raw)
    return raw


class DynamicVariable(BaseModel):
    """Variable the remote service extracts at run time."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(default="string", description="Value type (string, number, boolean)")
    description: str = Field(default="", description="What the value represents")


class PromptConfig(BaseModel):
    """Composable prompt: ordered fragments, overrides and variable declarations."""

    model_config = ConfigDict(extra="forbid")

    sections: list[str] = Field(
        ...,
        min_length=1,
        description="Fragment identifiers in presentation order",
    )
    overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Literal text replacing a fragment, keyed by identifier",
    )
    variables: dict[str, VariableValue] = Field(
        default_factory=dict,
        description="Declared variables: literal value or OVERRIDE",
    )
    dynamic_variables: dict[str, DynamicVariable] = Field(
        default_factory=dict,
        description="Variables extracted by the remote service during a call",
    )

    @field_validator("variables", mode="before")
    @classmethod
    def _parse_variables(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {name: parse_variable_value(raw) for name, raw in value.items()}
        return value

    @field_serializer("variables")
    def _serialize_variables(self, variables: dict[str, StaticValue | OverrideValue]) -> dict[str, str]:
        return {
            name: OVERRIDE_SENTINEL if isinstance(declared, OverrideValue) else declared.value
            for name, declared in variables.items()
        }


class LlmConfig(BaseModel):
    """LLM settings; exactly one of general_prompt or prompt_config is set."""

    model_config = ConfigDict(extra="forbid")

    model: str | None = Field(default=None, description="Model identifier")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    begin_message: str | None = Field(default=None, description="First agent utterance")
    tools: list[dict[str, Any]] | None = Field(default=None, description="Tool definitions")
    general_prompt: str | None = Field(default=None, description="Literal prompt")
    prompt_config: PromptConfig | None = Field(default=None, description="Composed prompt")

    @model_validator(mode="after")
    def _exactly_one_prompt(self) -> "LlmConfig":
        if self.general_prompt is not None and self.prompt_config is not None:
            raise ValueError("llm_config cannot define both general_prompt and prompt_config")
        if self.general_prompt is None and self.prompt_config is None:
            raise ValueError("llm_config must define either general_prompt or prompt_config")
        return self

    @property
    def is_composed(self) -> bool:
        """Whether the prompt is built from fragments."""
        return self.prompt_config is not None


class PronunciationEntry(BaseModel):
    """Custom pronunciation for one word."""

    word: str
    pronunciation: str


class PostCallAnalysisField(BaseModel):
    """Data point extracted from a call transcript after it ends."""

    name: str
    type: Literal["string", "number", "boolean", "json"]
    description: str


class AgentConfig(BaseModel):
    """Authoritative local description of one agent."""

    model_config = ConfigDict(extra="forbid")

    agent_name: str = Field(..., min_length=1, description="Display name")
    voice_id: str = Field(..., min_length=1, description="Voice identity")
    voice_speed: float | None = Field(default=None, ge=0.5, le=2.0)
    voice_temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    responsiveness: float | None = Field(default=None, ge=0.0, le=1.0)
    interruption_sensitivity: float | None = Field(default=None, ge=0.0, le=1.0)
    language: str | None = Field(default=None, description="Locale, e.g. en-US")
    enable_backchannel: bool | None = None
    backchannel_frequency: float | None = Field(default=None, ge=0.0, le=1.0)
    ambient_sound: str | None = None
    boosted_keywords: list[str] | None = None
    pronunciation_dictionary: list[PronunciationEntry] | None = None
    normalize_for_speech: bool | None = None
    webhook_url: str | None = None
    post_call_analysis_data: list[PostCallAnalysisField] | None = None
    llm_config: LlmConfig = Field(..., description="LLM settings and prompt")

    def to_document(self) -> dict[str, Any]:
        """Dump to the plain JSON document written to agent.json."""
        return self.model_dump(mode="json", exclude_none=True)
