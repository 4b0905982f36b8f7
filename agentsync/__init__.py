"""AgentSync: declarative voice-agent configuration synced across environments.

Local agent definitions (agent.json plus reusable prompt fragments) are
fingerprinted, composed and compared against what the remote service holds
in each named workspace, so drift can be detected and resolved.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
