"""Placeholder extraction, classification and validation.

Every ``{{name}}`` placeholder in a prompt falls into exactly one category:

- STATIC: declared with a literal value, substituted at composition time
- OVERRIDE: declared as OVERRIDE, left for the remote service per call
- DYNAMIC: declared in dynamic_variables, extracted by the remote service
- SYSTEM: not declared locally, filled in by the remote service runtime

Classification is driven by occurrence: declared names that never appear in
the text are not reported.
"""

import re
from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from agentsync.agents.models import (
    DynamicVariable,
    OverrideValue,
    PromptConfig,
    StaticValue,
)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")

SYSTEM_VARIABLES: frozenset[str] = frozenset({
    "user_number",
    "call_id",
    "agent_id",
    "retell_llm_dynamic_variables",
})

# Timezone-qualified names such as current_time_America/New_York
SYSTEM_VARIABLE_PREFIXES: tuple[str, ...] = ("current_time_", "current_date_")


class VariableCategory(str, Enum):
    """Substitution class of a placeholder."""

    STATIC = "static"
    OVERRIDE = "override"
    DYNAMIC = "dynamic"
    SYSTEM = "system"


class ClassifiedVariable(BaseModel):
    """One placeholder name with its category and declaration details."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: VariableCategory
    value: str | None = Field(default=None, description="Literal value (static only)")
    value_type: str | None = Field(default=None, description="Declared type (dynamic only)")
    description: str | None = Field(default=None, description="Declared description (dynamic only)")


class VariableClassification(BaseModel):
    """Partition of the placeholders found in a text."""

    model_config = ConfigDict(frozen=True)

    static: list[ClassifiedVariable] = Field(default_factory=list)
    override: list[ClassifiedVariable] = Field(default_factory=list)
    dynamic: list[ClassifiedVariable] = Field(default_factory=list)
    system: list[ClassifiedVariable] = Field(default_factory=list)

    def names(self, category: VariableCategory) -> list[str]:
        """Names classified under the given category, in first-seen order."""
        return [variable.name for variable in getattr(self, category.value)]

    def category_of(self, name: str) -> VariableCategory | None:
        """Category of a name, or None if it did not occur in the text."""
        for category in VariableCategory:
            if name in self.names(category):
                return category
        return None

    @property
    def static_values(self) -> dict[str, str]:
        """Mapping of static variable name to replacement text."""
        return {variable.name: variable.value or "" for variable in self.static}


def extract_placeholders(text: str) -> list[str]:
    """Return unique placeholder names in first-seen order."""
    return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(text)))


def is_system_variable(name: str) -> bool:
    """Whether a name is a recognized service-provided variable."""
    return name in SYSTEM_VARIABLES or name.startswith(SYSTEM_VARIABLE_PREFIXES)


def classify(
    text: str,
    variables: Mapping[str, StaticValue | OverrideValue],
    dynamic_variables: Mapping[str, DynamicVariable],
) -> VariableClassification:
    """Bucket every placeholder in ``text`` into exactly one category.

    Priority: dynamic, then override, then static, else system.
    """
    buckets: dict[VariableCategory, list[ClassifiedVariable]] = {
        category: [] for category in VariableCategory
    }

    for name in extract_placeholders(text):
        declared = variables.get(name)
        if name in dynamic_variables:
            dynamic = dynamic_variables[name]
            classified = ClassifiedVariable(
                name=name,
                category=VariableCategory.DYNAMIC,
                value_type=dynamic.type,
                description=dynamic.description,
            )
        elif isinstance(declared, OverrideValue):
            classified = ClassifiedVariable(name=name, category=VariableCategory.OVERRIDE)
        elif isinstance(declared, StaticValue):
            classified = ClassifiedVariable(
                name=name,
                category=VariableCategory.STATIC,
                value=declared.value,
            )
        else:
            classified = ClassifiedVariable(name=name, category=VariableCategory.SYSTEM)
        buckets[classified.category].append(classified)

    return VariableClassification(
        static=buckets[VariableCategory.STATIC],
        override=buckets[VariableCategory.OVERRIDE],
        dynamic=buckets[VariableCategory.DYNAMIC],
        system=buckets[VariableCategory.SYSTEM],
    )


def classify_prompt(text: str, prompt_config: PromptConfig) -> VariableClassification:
    """Classify placeholders against a prompt configuration's declarations."""
    return classify(text, prompt_config.variables, prompt_config.dynamic_variables)


def get_unaccounted_variables(text: str, prompt_config: PromptConfig) -> list[str]:
    """Placeholders that are undeclared and not recognized system names."""
    classification = classify_prompt(text, prompt_config)
    return [
        name
        for name in classification.names(VariableCategory.SYSTEM)
        if not is_system_variable(name)
    ]


def validate_variables(text: str, prompt_config: PromptConfig) -> list[str]:
    """Check placeholder declarations against the assembled prompt text.

    ``text`` must be the assembled text before static substitution, otherwise
    static variables would already have been replaced.

    Returns:
        Every error found; empty when the declarations are consistent
    """
    errors = [
        f'Variable "{name}" is used in prompt but not defined in variables or dynamic_variables'
        for name in get_unaccounted_variables(text, prompt_config)
    ]

    for name in prompt_config.variables:
        if name in prompt_config.dynamic_variables:
            errors.append(
                f'Variable "{name}" is declared in both variables and dynamic_variables'
            )

    used = set(extract_placeholders(text))
    declared = list(prompt_config.variables) + [
        name for name in prompt_config.dynamic_variables if name not in prompt_config.variables
    ]
    for name in declared:
        if name not in used:
            errors.append(f'Variable "{name}" is declared but never used in prompt')

    return errors
