"""Test factories for creating test data."""

from tests.factories.agents import AgentConfigFactory, RemoteDocumentFactory

__all__ = [
    "AgentConfigFactory",
    "RemoteDocumentFactory",
]
