"""Async client for the remote voice-agent API.

Remote documents are returned as plain mappings; the sync engine reads
their fields defensively.

Usage:
    from agentsync.client import RemoteAgentClient

    async with RemoteAgentClient.from_workspace(settings.get_workspace("staging")) as client:
        agent_doc = await client.get_agent(metadata.agent_id)
        llm_doc = await client.get_llm(metadata.llm_id)
"""

from typing import Any

import httpx

from agentsync.config.models.workspaces import DEFAULT_BASE_URL, WorkspaceConfig
from agentsync.observability.logging import get_logger
from agentsync.sync.exceptions import MalformedRemoteDocumentError, RemoteClientError

logger = get_logger(__name__)


class RemoteAgentClient:
    """Async client for agent and LLM resources.

    Attributes:
        base_url: Base URL of the remote API
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: Workspace API key sent as a bearer token
            base_url: Base URL of the remote API
            timeout: Request timeout in seconds
            transport: Optional transport (e.g. httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_workspace(
        cls,
        workspace: WorkspaceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "RemoteAgentClient":
        """Create a client from workspace settings."""
        api_key = workspace.api_key.get_secret_value() if workspace.api_key else None
        return cls(
            api_key=api_key,
            base_url=workspace.base_url,
            timeout=workspace.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "RemoteAgentClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        document: str,
        json: dict[str, Any] | None = None,
        expect: type[dict[str, Any]] | type[list[Any]] = dict,
    ) -> Any:
        response = await self._client.request(
            method=method,
            url=path,
            headers=self._headers(),
            json=json,
        )

        if response.status_code >= 400:
            try:
                details: Any = response.json()
            except ValueError:
                details = None
            message = response.text
            if isinstance(details, dict) and details.get("message"):
                message = str(details["message"])
            logger.warning(
                "remote_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise RemoteClientError(
                message=message or f"HTTP {response.status_code}",
                status_code=response.status_code,
                details=details,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedRemoteDocumentError(document, detail="response is not JSON") from e
        if not isinstance(data, expect):
            kind = "an object" if expect is dict else "an array"
            raise MalformedRemoteDocumentError(
                document, detail=f"expected {kind}, got {type(data).__name__}"
            )

        logger.debug("remote_request_completed", method=method, path=path)
        return data

    @staticmethod
    def _require_id(data: dict[str, Any], document: str, field: str) -> dict[str, Any]:
        if not data.get(field):
            raise MalformedRemoteDocumentError(document, field, "missing identifier")
        return data

    # Agents
    async def get_agent(self, agent_id: str) -> dict[str, Any]:
        """Fetch an agent document."""
        return await self._request("GET", f"/get-agent/{agent_id}", document="agent")

    async def create_agent(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create an agent; the response must carry its agent_id."""
        data = await self._request("POST", "/create-agent", document="agent", json=payload)
        return self._require_id(data, "agent", "agent_id")

    async def update_agent(self, agent_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update an agent."""
        return await self._request(
            "PATCH", f"/update-agent/{agent_id}", document="agent", json=payload
        )

    async def get_agent_versions(self, agent_id: str) -> list[dict[str, Any]]:
        """Fetch the version history of an agent."""
        versions = await self._request(
            "GET", f"/get-agent-versions/{agent_id}", document="agent versions", expect=list
        )
        if not all(isinstance(entry, dict) for entry in versions):
            raise MalformedRemoteDocumentError("agent versions", detail="expected objects")
        return versions

    # LLMs
    async def get_llm(self, llm_id: str) -> dict[str, Any]:
        """Fetch an LLM document."""
        return await self._request("GET", f"/get-retell-llm/{llm_id}", document="llm")

    async def create_llm(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create an LLM; the response must carry its llm_id."""
        data = await self._request("POST", "/create-retell-llm", document="llm", json=payload)
        return self._require_id(data, "llm", "llm_id")

    async def update_llm(self, llm_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update an LLM."""
        return await self._request(
            "PATCH", f"/update-retell-llm/{llm_id}", document="llm", json=payload
        )
