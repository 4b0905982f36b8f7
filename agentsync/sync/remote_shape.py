"""Harmonized ``{agent, llm}`` shape hashed on both sides of a comparison.

Only fields that affect agent behavior participate; server-managed metadata
such as IDs and modification timestamps is excluded. Absent and null values
are dropped so an omitted field and an explicit null hash identically.
"""

from collections.abc import Mapping
from typing import Any

from agentsync.sync.exceptions import MalformedRemoteDocumentError
from agentsync.sync.hashing import Fingerprint, fingerprint

AGENT_FIELDS: tuple[str, ...] = (
    "agent_name",
    "voice_id",
    "voice_speed",
    "voice_temperature",
    "responsiveness",
    "interruption_sensitivity",
    "language",
    "enable_backchannel",
    "backchannel_frequency",
    "ambient_sound",
    "boosted_keywords",
    "pronunciation_dictionary",
    "normalize_for_speech",
    "webhook_url",
    "post_call_analysis_data",
)

LLM_FIELDS: tuple[str, ...] = (
    "model",
    "temperature",
    "general_prompt",
    "begin_message",
    "general_tools",
    "start_speaker",
    "default_dynamic_variables",
)


def require_document(document: Any, name: str) -> Mapping[str, Any]:
    """Return the document if it is a mapping.

    Raises:
        MalformedRemoteDocumentError: If the document is not key-value shaped
    """
    if not isinstance(document, Mapping):
        raise MalformedRemoteDocumentError(
            name, detail=f"expected an object, got {type(document).__name__}"
        )
    return document


def _extract(document: Mapping[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    return {field: document[field] for field in fields if document.get(field) is not None}


def extract_agent_fields(agent_doc: Any) -> dict[str, Any]:
    """Behavior-relevant fields of a remote agent document."""
    return _extract(require_document(agent_doc, "agent"), AGENT_FIELDS)


def extract_llm_fields(llm_doc: Any) -> dict[str, Any]:
    """Behavior-relevant fields of a remote LLM document."""
    return _extract(require_document(llm_doc, "llm"), LLM_FIELDS)


def config_shape(agent_doc: Any, llm_doc: Any) -> dict[str, Any]:
    """Combine agent and LLM documents into the hashed shape."""
    return {
        "agent": extract_agent_fields(agent_doc),
        "llm": extract_llm_fields(llm_doc),
    }


def config_fingerprint(agent_doc: Any, llm_doc: Any) -> Fingerprint:
    """Fingerprint of a complete agent as the remote service holds it."""
    return fingerprint(config_shape(agent_doc, llm_doc))


def llm_fingerprint(llm_doc: Any) -> Fingerprint:
    """Fingerprint of the LLM part alone."""
    return fingerprint(extract_llm_fields(llm_doc))
