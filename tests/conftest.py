"""
Pytest configuration and shared fixtures for svnrepo tests.

This module provides common test fixtures, configuration, and utilities
used across all svnrepo test modules.
"""

import logging
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from svnrepo.config.loader import ConfigLoader, RepositoryConfig, Settings
from svnrepo.repository.cache import CacheStore
from svnrepo.repository.svn import SVNRepository
from svnrepo.testing.fake_svn import FakeSvnTree

# Configure pytest-asyncio - auto mode is configured in pyproject.toml

BASE_URL = "https://x.test/plugins"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def config_loader() -> ConfigLoader:
    """Create a configuration loader instance."""
    return ConfigLoader()


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """Settings with the cache in a temporary directory."""
    return Settings(cache_dir=str(temp_dir / "cache"), listing_timeout=5, http_timeout=1)


@pytest.fixture
def cache_store(temp_dir: Path) -> CacheStore:
    """Create a cache store in a temporary directory."""
    return CacheStore(temp_dir / "store")


@pytest.fixture
def svn_tree() -> FakeSvnTree:
    """In-memory plugin tree with two providers."""
    return FakeSvnTree({
        BASE_URL: ["foo/", "bar/"],
        f"{BASE_URL}/foo/tags": ["1.0/", "2.0/"],
        f"{BASE_URL}/bar/tags": ["0.1/"],
    })


@pytest.fixture
def plugin_config_data() -> dict[str, Any]:
    """Repository definition in configuration-file form."""
    return {
        "url": f"{BASE_URL}/",
        "provider-paths": ["/"],
        "package-paths": ["/tags/", "/trunk"],
        "package-types": {"wordpress-plugin": "acme-plugin"},
    }


@pytest.fixture
def plugin_config(plugin_config_data: dict[str, Any]) -> RepositoryConfig:
    """Repository configuration for the in-memory plugin tree."""
    return RepositoryConfig.model_validate(plugin_config_data)


@pytest.fixture
def repository(plugin_config: RepositoryConfig, settings: Settings, svn_tree: FakeSvnTree) -> SVNRepository:
    """Repository over the in-memory plugin tree."""
    return SVNRepository(plugin_config, settings, listing_client=svn_tree, name="test-plugins")


@pytest.fixture
def caplog_debug(caplog):
    """Configure caplog for debug level logging."""
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests."""
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


# Markers for test categorization
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Add unit test marker to test files in unit/ directory
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        # Add integration test marker to test files in integration/ directory
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
