"""Synchronization engine: fingerprints, prompt composition, conflict handling.

Submodules are imported directly (e.g. ``from agentsync.sync.detector import
detect``) to keep the package free of import cycles with ``agentsync.agents``.
"""
