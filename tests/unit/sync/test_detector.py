"""Tests for conflict detection."""

import pytest

from agentsync.agents.models import AgentConfig
from agentsync.sync.detector import (
    calculate_version_drift,
    compare_fields,
    detect,
    detect_prompt_conflict,
    has_version_drift,
    local_fingerprint,
    remote_prompt_text,
)
from agentsync.sync.exceptions import FragmentNotFoundError, MalformedRemoteDocumentError
from agentsync.sync.fragments import InMemoryFragmentStore
from agentsync.sync.hashing import fingerprint_prompt
from agentsync.sync.models import InSync, OutOfSync, RemoteVersion
from agentsync.sync.remote_shape import config_fingerprint
from tests.factories.agents import AgentConfigFactory, RemoteDocumentFactory

STALE_HASH = "sha256:" + "0" * 64


@pytest.fixture
def config() -> AgentConfig:
    return AgentConfigFactory.create()


class TestDetect:
    """Tests for detect."""

    def test_in_sync_when_stored_matches_remote(
        self, config: AgentConfig, memory_store: InMemoryFragmentStore
    ) -> None:
        """Matching stored and remote fingerprints report in sync."""
        agent_doc = RemoteDocumentFactory.agent(config)
        llm_doc = RemoteDocumentFactory.llm(config)
        stored = config_fingerprint(agent_doc, llm_doc)

        result = detect(config, agent_doc, llm_doc, stored, memory_store)

        assert isinstance(result, InSync)
        assert result.has_conflict is False

    def test_in_sync_short_circuit_ignores_local_edits(
        self, config: AgentConfig, memory_store: InMemoryFragmentStore
    ) -> None:
        """Local-only edits do not count as a conflict."""
        agent_doc = RemoteDocumentFactory.agent(config, voice_speed=1.2)
        llm_doc = RemoteDocumentFactory.llm(config, general_prompt="Something else")
        stored = config_fingerprint(agent_doc, llm_doc)

        result = detect(config, agent_doc, llm_doc, stored, memory_store)

        assert isinstance(result, InSync)

    def test_single_field_conflict(
        self, config: AgentConfig, memory_store: InMemoryFragmentStore
    ) -> None:
        """Only the differing field is reported."""
        agent_doc = RemoteDocumentFactory.agent(config, voice_speed=1.2)
        llm_doc = RemoteDocumentFactory.llm(config)

        result = detect(config, agent_doc, llm_doc, STALE_HASH, memory_store)

        assert isinstance(result, OutOfSync)
        assert len(result.field_conflicts) == 1
        conflict = result.field_conflicts[0]
        assert conflict.path == "agent.voice_speed"
        assert conflict.field == "voice_speed"
        assert conflict.local_value == 1.0
        assert conflict.remote_value == 1.2
        assert result.prompt_conflict is None
        assert result.conflict_paths() == ["agent.voice_speed"]

    def test_hashes_reported(
        self, config: AgentConfig, memory_store: InMemoryFragmentStore
    ) -> None:
        """Out-of-sync results carry local and remote fingerprints."""
        agent_doc = RemoteDocumentFactory.agent(config, language="de-DE")
        llm_doc = RemoteDocumentFactory.llm(config)

        result = detect(config, agent_doc, llm_doc, STALE_HASH, memory_store)

        assert isinstance(result, OutOfSync)
        assert result.remote_hash == config_fingerprint(agent_doc, llm_doc)
        assert result.local_hash == local_fingerprint(config, memory_store)
        assert result.local_hash != result.remote_hash

    def test_null_stored_hash_never_in_sync(
        self, config: AgentConfig, memory_store: InMemoryFragmentStore
    ) -> None:
        """Without a stored fingerprint detection always compares fields."""
        agent_doc = RemoteDocumentFactory.agent(config)
        llm_doc = RemoteDocumentFactory.llm(config)

        result = detect(config, agent_doc, llm_doc, None, memory_store)

        assert isinstance(result, OutOfSync)
        assert result.field_conflicts == []
        assert result.prompt_conflict is None
        assert result.local_hash == result.remote_hash

    def test_prompt_conflict(
        self, config: AgentConfig, memory_store: InMemoryFragmentStore
    ) -> None:
        """Different prompts yield a prompt conflict with both texts."""
        agent_doc = RemoteDocumentFactory.agent(config)
        llm_doc = RemoteDocumentFactory.llm(config, prompt="You are rude.")

        result = detect(config, agent_doc, llm_doc, STALE_HASH, memory_store)

        assert isinstance(result, OutOfSync)
        assert result.field_conflicts == []
        assert result.prompt_conflict is not None
        assert result.prompt_conflict.local_prompt == "You are a helpful assistant."
        assert result.prompt_conflict.remote_prompt == "You are rude."
        assert result.conflict_paths() == ["llm.general_prompt"]

    def test_composed_prompt_compared(self, memory_store: InMemoryFragmentStore) -> None:
        """The composed local prompt is compared with the remote prompt."""
        config = AgentConfigFactory.create(
            prompt_config={"sections": ["intro"], "variables": {"x": "Acme"}}
        )
        agent_doc = RemoteDocumentFactory.agent(config)
        llm_doc = RemoteDocumentFactory.llm(config, prompt="Hello Acme")

        result = detect(config, agent_doc, llm_doc, STALE_HASH, memory_store)

        assert isinstance(result, OutOfSync)
        assert result.prompt_conflict is None

    def test_missing_fragment_aborts(self) -> None:
        """A missing fragment propagates instead of reporting no conflict."""
        config = AgentConfigFactory.create(prompt_config={"sections": ["a", "missing/b"]})
        store = InMemoryFragmentStore({"a": "A"})
        agent_doc = RemoteDocumentFactory.agent(config)
        llm_doc = RemoteDocumentFactory.llm(config, prompt="A")

        with pytest.raises(FragmentNotFoundError, match="missing/b"):
            detect(config, agent_doc, llm_doc, STALE_HASH, store)

    @pytest.mark.parametrize("agent_doc", [None, [], "agent"])
    def test_malformed_agent_document(
        self, config: AgentConfig, memory_store: InMemoryFragmentStore, agent_doc: object
    ) -> None:
        """Non-object remote documents are rejected."""
        with pytest.raises(MalformedRemoteDocumentError):
            detect(config, agent_doc, RemoteDocumentFactory.llm(config), None, memory_store)

    def test_malformed_prompt_type(
        self, config: AgentConfig, memory_store: InMemoryFragmentStore
    ) -> None:
        """A non-string remote prompt is a hard error."""
        agent_doc = RemoteDocumentFactory.agent(config)
        llm_doc = RemoteDocumentFactory.llm(config, general_prompt=["not", "text"])

        with pytest.raises(MalformedRemoteDocumentError, match="general_prompt"):
            detect(config, agent_doc, llm_doc, STALE_HASH, memory_store)


class TestCompareFields:
    """Tests for compare_fields."""

    def test_missing_equals_null(self) -> None:
        """An omitted remote field equals a local None."""
        config = AgentConfigFactory.create()
        agent_doc = RemoteDocumentFactory.agent(config, webhook_url=None)
        assert compare_fields(config, agent_doc, RemoteDocumentFactory.llm(config)) == []

    def test_missing_array_equals_empty(self) -> None:
        """A missing array equals an empty one."""
        config = AgentConfigFactory.create(boosted_keywords=[])
        agent_doc = RemoteDocumentFactory.agent(config)
        agent_doc.pop("boosted_keywords", None)
        assert compare_fields(config, agent_doc, RemoteDocumentFactory.llm(config)) == []

    def test_integral_float_equals_int(self) -> None:
        """1.0 locally equals 1 remotely."""
        config = AgentConfigFactory.create()
        agent_doc = RemoteDocumentFactory.agent(config, voice_speed=1)
        assert compare_fields(config, agent_doc, RemoteDocumentFactory.llm(config)) == []

    def test_array_and_llm_conflicts(self) -> None:
        """Array and LLM fields use their own paths."""
        config = AgentConfigFactory.create(
            boosted_keywords=["Acme"],
            llm={"tools": [{"type": "end_call", "name": "end_call"}]},
        )
        agent_doc = RemoteDocumentFactory.agent(config, boosted_keywords=["Acme", "Widget"])
        llm_doc = RemoteDocumentFactory.llm(config, model="gpt-4o", general_tools=[])

        paths = [conflict.path for conflict in compare_fields(config, agent_doc, llm_doc)]

        assert paths == ["llm.model", "agent.boosted_keywords", "llm.tools"]

    def test_server_fields_ignored(self) -> None:
        """IDs and timestamps do not produce conflicts."""
        config = AgentConfigFactory.create()
        agent_doc = RemoteDocumentFactory.agent(config, agent_id="other", version=7)
        assert compare_fields(config, agent_doc, RemoteDocumentFactory.llm(config)) == []


class TestPromptConflict:
    """Tests for prompt extraction and comparison."""

    def test_absent_remote_prompt_is_empty(self) -> None:
        """A missing remote prompt reads as empty text."""
        assert remote_prompt_text({}) == ""

    def test_whitespace_and_line_endings_ignored(self) -> None:
        """Normalized prompts compare equal."""
        assert detect_prompt_conflict("line\nnext", {"general_prompt": "line\r\nnext\n"}) is None

    def test_conflict_fingerprints(self) -> None:
        """Prompt conflict fingerprints are normalized prompt fingerprints."""
        conflict = detect_prompt_conflict("local", {"general_prompt": "remote"})
        assert conflict is not None
        assert conflict.field == "prompt"
        assert conflict.local_hash == fingerprint_prompt("local")
        assert conflict.remote_hash == fingerprint_prompt("remote")


def versions(*numbers: int, published: tuple[int, ...] = ()) -> list[RemoteVersion]:
    return [RemoteVersion(version=n, is_published=n in published) for n in numbers]


class TestVersionDrift:
    """Tests for calculate_version_drift."""

    def test_matching_version(self) -> None:
        """A stored version equal to the remote latest is not drift."""
        drift = calculate_version_drift(5, versions(3, 4, 5))

        assert drift.has_drift is False
        assert drift.versions_behind == 0
        assert drift.remote_version == 5
        assert "matches remote" in drift.message

    def test_remote_ahead(self) -> None:
        """Newer remote versions are counted."""
        drift = calculate_version_drift(3, versions(3, 4, 5))

        assert drift.has_drift is True
        assert drift.versions_behind == 2
        assert "2 version(s) ahead" in drift.message

    def test_published_version_mentioned(self) -> None:
        """A published version newer than the stored one is called out."""
        drift = calculate_version_drift(1, versions(1, 2, 3, published=(3,)))
        assert "published version 3" in drift.message

    def test_older_published_version_not_mentioned(self) -> None:
        """Published versions at or below the stored one are not news."""
        drift = calculate_version_drift(1, versions(1, 2, published=(1,)))
        assert "published" not in drift.message

    def test_no_stored_version(self) -> None:
        """A new agent has no stored version and no drift."""
        drift = calculate_version_drift(None, versions(0, 1))

        assert drift.has_drift is False
        assert drift.stored_version is None
        assert drift.remote_version == 1
        assert "new agent" in drift.message

    def test_empty_history(self) -> None:
        """No remote versions is not drift."""
        drift = calculate_version_drift(3, [])

        assert drift.has_drift is False
        assert drift.remote_version == 0
        assert drift.message == "No versions found on remote"

    def test_stored_ahead_of_remote(self) -> None:
        """A stored version past the remote latest is an inconsistency."""
        drift = calculate_version_drift(10, versions(5, 6))

        assert drift.has_drift is True
        assert drift.versions_behind == -4
        assert "inconsistency" in drift.message

    def test_unordered_history(self) -> None:
        """The latest version is the maximum, not the last entry."""
        drift = calculate_version_drift(7, versions(7, 3, 5))
        assert drift.remote_version == 7
        assert has_version_drift(7, versions(7, 3, 5)) is False
