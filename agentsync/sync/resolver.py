"""Conflict resolution strategies and human-readable conflict reports.

The resolver never talks to the remote service: for ``use-local`` the
caller force-pushes, for ``use-remote`` the merged configuration is written
to the local agent.json, and ``manual`` leaves the edit to a human.
"""

import difflib
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from agentsync.agents.loader import save_agent_config
from agentsync.agents.models import AgentConfig
from agentsync.observability.logging import get_logger
from agentsync.sync.exceptions import MalformedRemoteDocumentError
from agentsync.sync.models import (
    FieldConflict,
    PromptConflict,
    ResolutionResult,
    ResolutionStrategy,
)
from agentsync.sync.remote_shape import AGENT_FIELDS, require_document

logger = get_logger(__name__)

PROMPT_PREVIEW_CHARS = 500
DIFF_COLUMN_WIDTH = 40
DIFF_CELL_CHARS = 35

USE_LOCAL_MESSAGE = (
    "Local configuration will be used. Run push with --force to overwrite remote."
)
USE_REMOTE_MESSAGE = (
    "Remote configuration has been pulled and saved to agent.json. "
    "Review the changes and run push to sync."
)
MANUAL_MESSAGE = (
    "Conflicts detected. Please review the differences and manually edit agent.json, "
    "then run push."
)

# Local llm_config key -> remote LLM document key
LLM_FIELD_MAP: tuple[tuple[str, str], ...] = (
    ("model", "model"),
    ("temperature", "temperature"),
    ("begin_message", "begin_message"),
    ("tools", "general_tools"),
)


def merge_remote(config: AgentConfig, remote_agent_doc: Any, remote_llm_doc: Any) -> AgentConfig:
    """Build a configuration where every remote-defined value wins.

    Local values are kept only where the remote value is absent. A local
    prompt_config is always preserved; a remote literal prompt only replaces
    a local literal prompt.

    Raises:
        MalformedRemoteDocumentError: If remote values do not form a valid config
    """
    agent_doc = require_document(remote_agent_doc, "agent")
    llm_doc = require_document(remote_llm_doc, "llm")

    merged = config.to_document()
    for field in AGENT_FIELDS:
        if agent_doc.get(field) is not None:
            merged[field] = agent_doc[field]

    llm = dict(merged["llm_config"])
    for local_key, remote_key in LLM_FIELD_MAP:
        if llm_doc.get(remote_key) is not None:
            llm[local_key] = llm_doc[remote_key]
    if config.llm_config.prompt_config is None and llm_doc.get("general_prompt") is not None:
        llm["general_prompt"] = llm_doc["general_prompt"]
    merged["llm_config"] = llm

    try:
        return AgentConfig.model_validate(merged)
    except ValidationError as e:
        raise MalformedRemoteDocumentError("agent", detail=str(e.errors()[0]["msg"])) from e


def resolve(
    config: AgentConfig,
    remote_agent_doc: Any,
    remote_llm_doc: Any,
    strategy: ResolutionStrategy | str,
    agent_dir: Path | str,
) -> ResolutionResult:
    """Apply a resolution strategy.

    Args:
        config: Local agent configuration
        remote_agent_doc: Remote agent document
        remote_llm_doc: Remote LLM document
        strategy: use-local, use-remote or manual
        agent_dir: Agent directory that receives agent.json for use-remote

    Returns:
        Resolution result with the resolved configuration where applicable

    Raises:
        ValueError: If the strategy is unknown
        MalformedRemoteDocumentError: If remote values cannot be merged
    """
    strategy = ResolutionStrategy(strategy)
    logger.info("resolving_conflict", agent_name=config.agent_name, strategy=strategy.value)

    if strategy is ResolutionStrategy.USE_LOCAL:
        return ResolutionResult(
            strategy=strategy,
            resolved_config=config,
            message=USE_LOCAL_MESSAGE,
        )

    if strategy is ResolutionStrategy.USE_REMOTE:
        resolved = merge_remote(config, remote_agent_doc, remote_llm_doc)
        save_agent_config(agent_dir, resolved)
        return ResolutionResult(
            strategy=strategy,
            resolved_config=resolved,
            message=USE_REMOTE_MESSAGE,
        )

    return ResolutionResult(strategy=strategy, message=MANUAL_MESSAGE)


def format_value(value: Any) -> str:
    """Render a conflict value for display."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, dict | list):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def _truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3] + "..."


def _indent(text: str, spaces: int) -> str:
    prefix = " " * spaces
    return "\n".join(prefix + line for line in text.split("\n"))


def preview(prompt: str, max_chars: int = PROMPT_PREVIEW_CHARS) -> str:
    """First ``max_chars`` characters of a prompt, marked when truncated."""
    if len(prompt) <= max_chars:
        return prompt
    return prompt[:max_chars] + "\n... (truncated)"


def format_field_conflicts(conflicts: Sequence[FieldConflict]) -> str:
    """Aligned local/remote listing of field conflicts."""
    lines = ["Field Conflicts:\n"]
    for conflict in conflicts:
        lines.append(f"  {conflict.path}:")
        lines.append(f"    Local:  {format_value(conflict.local_value)}")
        lines.append(f"    Remote: {format_value(conflict.remote_value)}")
        lines.append("")
    return "\n".join(lines)


def format_prompt_conflict(conflict: PromptConflict, max_chars: int = PROMPT_PREVIEW_CHARS) -> str:
    """Fingerprints plus a bounded preview of both prompt texts."""
    lines = [
        "Prompt Conflict:\n",
        f"  Local Hash:  {conflict.local_hash}",
        f"  Remote Hash: {conflict.remote_hash}",
        "",
        "  Local Prompt (preview):",
        _indent(preview(conflict.local_prompt, max_chars), 4),
        "",
        "  Remote Prompt (preview):",
        _indent(preview(conflict.remote_prompt, max_chars), 4),
        "",
    ]
    if len(conflict.local_prompt) > max_chars or len(conflict.remote_prompt) > max_chars:
        lines.append(
            f"  (Showing first {max_chars} characters. Use --full to see complete prompts)"
        )
    return "\n".join(lines)


def generate_prompt_diff(local_prompt: str, remote_prompt: str) -> str:
    """Side-by-side line diff; differing line pairs are marked with ``> ``."""
    local_lines = local_prompt.split("\n")
    remote_lines = remote_prompt.split("\n")

    lines = [
        "Detailed Prompt Diff:\n",
        "  " + "LOCAL".ljust(DIFF_COLUMN_WIDTH) + "| REMOTE",
        "  " + "-" * 80,
    ]
    for index in range(max(len(local_lines), len(remote_lines))):
        local_line = local_lines[index] if index < len(local_lines) else ""
        remote_line = remote_lines[index] if index < len(remote_lines) else ""
        marker = "  " if local_line == remote_line else "> "
        lines.append(
            f"{marker}{_truncate(local_line, DIFF_CELL_CHARS).ljust(DIFF_COLUMN_WIDTH)}"
            f"| {_truncate(remote_line, DIFF_CELL_CHARS)}"
        )
    return "\n".join(lines)


def unified_prompt_diff(local_prompt: str, remote_prompt: str) -> str:
    """Unified diff from remote to local, empty when the prompts match."""
    diff = difflib.unified_diff(
        remote_prompt.splitlines(),
        local_prompt.splitlines(),
        fromfile="remote",
        tofile="local",
        lineterm="",
    )
    return "\n".join(diff)
