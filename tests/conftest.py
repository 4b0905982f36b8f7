"""Shared test fixtures for the agentsync test suite."""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from agentsync.config import get_settings
from agentsync.config.settings import set_toml_config
from agentsync.sync.fragments import FileFragmentStore, InMemoryFragmentStore


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "[logging]\\nlevel = 'DEBUG'",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


@pytest.fixture
def prompts_dir(tmp_path: Path) -> Path:
    """Prompts directory with a few fragments."""
    root = tmp_path / "prompts"
    (root / "base").mkdir(parents=True)
    (root / "base" / "greeting.txt").write_text("Hello from {{company_name}}.")
    (root / "base" / "closing.txt").write_text("Goodbye, {{customer_name}}.")
    (root / "policy.txt").write_text("Current time: {{current_time_America/New_York}}")
    return root


@pytest.fixture
def file_store(prompts_dir: Path) -> FileFragmentStore:
    """File-backed fragment store over prompts_dir."""
    return FileFragmentStore(prompts_dir)


@pytest.fixture
def memory_store() -> InMemoryFragmentStore:
    """In-memory fragment store with a few fragments."""
    return InMemoryFragmentStore({
        "intro": "Hello {{x}}",
        "base/greeting": "Hello from {{company_name}}.",
        "base/closing": "Goodbye, {{customer_name}}.",
    })


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache and loaded TOML before and after each test."""
    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})
