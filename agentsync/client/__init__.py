"""Remote API client.

Usage:
    from agentsync.client import RemoteAgentClient
"""

from agentsync.client.client import RemoteAgentClient

__all__ = ["RemoteAgentClient"]
