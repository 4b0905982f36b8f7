"""Conflict detection between a local agent and its remote counterpart.

Detection compares the stored fingerprint (recorded at the last sync) with
a fingerprint of the current remote state. Only when the remote has drifted
are field-level and prompt-level differences computed.

A local edit that has not been pushed yet is reported as in sync: a
conflict means the remote changed since the last recorded sync. Callers
that want to know about local drift compare ``local_fingerprint`` with the
stored fingerprint separately.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from agentsync.agents.models import AgentConfig
from agentsync.agents.transformer import agent_settings, llm_payload
from agentsync.observability.logging import get_logger
from agentsync.sync.composer import resolve_prompt
from agentsync.sync.exceptions import MalformedRemoteDocumentError
from agentsync.sync.fragments import FragmentStore
from agentsync.sync.hashing import (
    Fingerprint,
    canonicalize,
    fingerprint_prompt,
    fingerprints_equal,
)
from agentsync.sync.models import (
    ConflictDetectionResult,
    FieldConflict,
    InSync,
    OutOfSync,
    PromptConflict,
    RemoteVersion,
    VersionDrift,
)
from agentsync.sync.remote_shape import config_fingerprint, require_document

logger = get_logger(__name__)

AGENT_SCALAR_FIELDS: tuple[str, ...] = (
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
    "normalize_for_speech",
    "webhook_url",
)

LLM_SCALAR_FIELDS: tuple[str, ...] = ("model", "temperature", "begin_message")

AGENT_ARRAY_FIELDS: tuple[str, ...] = (
    "boosted_keywords",
    "pronunciation_dictionary",
    "post_call_analysis_data",
)


def _values_equal(local: Any, remote: Any) -> bool:
    return canonicalize(local) == canonicalize(remote)


def _compare(conflicts: list[FieldConflict], path: str, local: Any, remote: Any) -> None:
    if not _values_equal(local, remote):
        conflicts.append(FieldConflict(path=path, local_value=local, remote_value=remote))


def _as_array(value: Any) -> Any:
    return [] if value is None else value


def compare_fields(
    config: AgentConfig,
    remote_agent_doc: Mapping[str, Any],
    remote_llm_doc: Mapping[str, Any],
) -> list[FieldConflict]:
    """Compare every comparable field; the prompt is handled separately.

    Missing and null values compare equal; a missing array equals an empty one.
    """
    local_agent = agent_settings(config)
    llm_config = config.llm_config
    conflicts: list[FieldConflict] = []

    for field in AGENT_SCALAR_FIELDS:
        _compare(conflicts, f"agent.{field}", local_agent.get(field), remote_agent_doc.get(field))

    local_llm = {
        "model": llm_config.model,
        "temperature": llm_config.temperature,
        "begin_message": llm_config.begin_message,
    }
    for field in LLM_SCALAR_FIELDS:
        _compare(conflicts, f"llm.{field}", local_llm[field], remote_llm_doc.get(field))

    for field in AGENT_ARRAY_FIELDS:
        _compare(
            conflicts,
            f"agent.{field}",
            _as_array(local_agent.get(field)),
            _as_array(remote_agent_doc.get(field)),
        )
    _compare(
        conflicts,
        "llm.tools",
        _as_array(llm_config.tools),
        _as_array(remote_llm_doc.get("general_tools")),
    )
    return conflicts


def remote_prompt_text(remote_llm_doc: Mapping[str, Any]) -> str:
    """Prompt text held remotely; absent means empty.

    Raises:
        MalformedRemoteDocumentError: If general_prompt is present but not text
    """
    prompt = remote_llm_doc.get("general_prompt")
    if prompt is None:
        return ""
    if not isinstance(prompt, str):
        raise MalformedRemoteDocumentError(
            "llm", "general_prompt", f"expected a string, got {type(prompt).__name__}"
        )
    return prompt


def detect_prompt_conflict(local_prompt: str, remote_llm_doc: Mapping[str, Any]) -> PromptConflict | None:
    """Prompt conflict if the normalized prompt fingerprints differ."""
    remote_prompt = remote_prompt_text(remote_llm_doc)
    local_hash = fingerprint_prompt(local_prompt)
    remote_hash = fingerprint_prompt(remote_prompt)
    if fingerprints_equal(local_hash, remote_hash):
        return None
    return PromptConflict(
        local_prompt=local_prompt,
        remote_prompt=remote_prompt,
        local_hash=local_hash,
        remote_hash=remote_hash,
    )


def local_fingerprint(config: AgentConfig, store: FragmentStore) -> Fingerprint:
    """Fingerprint of the local agent as it would exist remotely after a push."""
    return _local_fingerprint(config, resolve_prompt(config, store))


def _local_fingerprint(config: AgentConfig, prompt: str) -> Fingerprint:
    return config_fingerprint(agent_settings(config), llm_payload(config, prompt))


def detect(
    config: AgentConfig,
    remote_agent_doc: Any,
    remote_llm_doc: Any,
    stored_hash: Fingerprint | None,
    store: FragmentStore,
) -> ConflictDetectionResult:
    """Detect whether the remote agent drifted since the last recorded sync.

    Args:
        config: Local agent configuration
        remote_agent_doc: Agent document fetched from the remote service
        remote_llm_doc: LLM document fetched from the remote service
        stored_hash: Fingerprint recorded at the last sync, if any
        store: Fragment store for composing the local prompt

    Returns:
        InSync, or OutOfSync with field and prompt conflicts

    Raises:
        FragmentNotFoundError: If the local prompt cannot be composed
        MalformedRemoteDocumentError: If a remote document is not usable
    """
    agent_doc = require_document(remote_agent_doc, "agent")
    llm_doc = require_document(remote_llm_doc, "llm")

    remote_hash = config_fingerprint(agent_doc, llm_doc)
    local_prompt = resolve_prompt(config, store)
    local_hash = _local_fingerprint(config, local_prompt)

    if stored_hash is not None and fingerprints_equal(stored_hash, remote_hash):
        logger.info("agent_in_sync", agent_name=config.agent_name, remote_hash=remote_hash)
        return InSync()

    field_conflicts = compare_fields(config, agent_doc, llm_doc)
    prompt_conflict = detect_prompt_conflict(local_prompt, llm_doc)

    logger.info(
        "agent_out_of_sync",
        agent_name=config.agent_name,
        stored_hash=stored_hash,
        local_hash=local_hash,
        remote_hash=remote_hash,
        field_conflicts=len(field_conflicts),
        prompt_conflict=prompt_conflict is not None,
    )
    return OutOfSync(
        local_hash=local_hash,
        remote_hash=remote_hash,
        field_conflicts=field_conflicts,
        prompt_conflict=prompt_conflict,
    )


def calculate_version_drift(
    stored_version: int | None,
    remote_versions: Sequence[RemoteVersion],
) -> VersionDrift:
    """Compare the version recorded at the last sync with the remote history.

    A missing stored version (new agent) or an empty history is never drift.
    A stored version ahead of the remote latest is reported as drift with a
    negative ``versions_behind``.
    """
    if not remote_versions:
        return VersionDrift(
            has_drift=False,
            stored_version=stored_version,
            remote_version=0,
            message="No versions found on remote",
        )

    latest = max(entry.version for entry in remote_versions)
    if stored_version is None:
        return VersionDrift(
            has_drift=False,
            stored_version=None,
            remote_version=latest,
            message=f"No stored version (new agent); remote latest is version {latest}",
        )

    behind = latest - stored_version
    if behind == 0:
        message = f"Stored version {stored_version} matches remote latest"
    elif behind > 0:
        message = f"Remote is {behind} version(s) ahead of stored version {stored_version}"
        published = [entry.version for entry in remote_versions if entry.is_published]
        if published and max(published) > stored_version:
            message += f", including published version {max(published)}"
    else:
        message = (
            f"Stored version {stored_version} is ahead of remote latest {latest} "
            "(metadata inconsistency)"
        )

    return VersionDrift(
        has_drift=behind != 0,
        stored_version=stored_version,
        remote_version=latest,
        versions_behind=behind,
        message=message,
    )


def has_version_drift(stored_version: int | None, remote_versions: Sequence[RemoteVersion]) -> bool:
    """Whether the remote history moved past (or behind) the stored version."""
    return calculate_version_drift(stored_version, remote_versions).has_drift
