"""Prompt composition from ordered fragments.

Fragments are resolved in section order (inline override first, then
the fragment store), joined with a blank line, and only STATIC placeholders
are substituted. Override, dynamic and system placeholders are left verbatim
for the remote service.
"""

import re

from agentsync.agents.models import AgentConfig, PromptConfig
from agentsync.observability.logging import get_logger
from agentsync.sync.fragments import FragmentStore
from agentsync.sync.variables import VariableClassification, classify_prompt

logger = get_logger(__name__)

SECTION_SEPARATOR = "\n\n"


def assemble(store: FragmentStore, prompt_config: PromptConfig) -> str:
    """Join resolved fragment bodies without any substitution.

    Raises:
        FragmentNotFoundError: On the first fragment the store cannot resolve
    """
    bodies: list[str] = []
    for identifier in prompt_config.sections:
        if identifier in prompt_config.overrides:
            bodies.append(prompt_config.overrides[identifier])
        else:
            bodies.append(store.load(identifier))
    return SECTION_SEPARATOR.join(bodies)


def substitute_static(text: str, classification: VariableClassification) -> str:
    """Replace ``{{name}}`` for static variables only, in a single pass."""
    values = classification.static_values
    if not values:
        return text

    # Names may contain regex metacharacters (e.g. "/" or ".")
    pattern = re.compile(
        r"\{\{(" + "|".join(re.escape(name) for name in values) + r")\}\}"
    )
    return pattern.sub(lambda match: values[match.group(1)], text)


def compose(store: FragmentStore, prompt_config: PromptConfig) -> str:
    """Build the final prompt text from a prompt configuration.

    Args:
        store: Fragment store used for sections without an override
        prompt_config: Sections, overrides and variable declarations

    Returns:
        Composed prompt text

    Raises:
        FragmentNotFoundError: If any referenced fragment is missing
    """
    text = assemble(store, prompt_config)
    classification = classify_prompt(text, prompt_config)
    prompt = substitute_static(text, classification)

    logger.debug(
        "prompt_composed",
        sections=len(prompt_config.sections),
        static=len(classification.static),
        override=len(classification.override),
        dynamic=len(classification.dynamic),
        system=len(classification.system),
    )
    return prompt


def resolve_prompt(config: AgentConfig, store: FragmentStore) -> str:
    """Return the prompt an agent would send: composed or literal."""
    llm_config = config.llm_config
    if llm_config.prompt_config is not None:
        return compose(store, llm_config.prompt_config)
    return llm_config.general_prompt or ""
