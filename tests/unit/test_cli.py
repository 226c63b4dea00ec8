"""Tests for CLI functionality."""

import json
import logging
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from svnrepo.cli.main import SvnRepoCLIContext, cli
from svnrepo.errors import ProviderListingError, RepositoryError
from svnrepo.package import PackageRecord


def _package(version, reference):
    return PackageRecord.from_dict({
        "name": "wordpress-plugin/foo",
        "version": version,
        "type": "wordpress-plugin",
        "source": {"type": "svn", "url": "https://plugins.svn.wordpress.org/foo/", "reference": reference},
        "dist": {"url": f"https://downloads.wordpress.org/plugin/foo.{version}.zip"},
    })


class TestCLI:
    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    @pytest.fixture
    def manager(self):
        """Activated manager stand-in."""
        manager = MagicMock()
        manager.get_provider_names = AsyncMock(return_value={"plugins": ["wordpress-plugin/foo", "wordpress-plugin/bar"]})
        manager.what_provides = AsyncMock(return_value=[_package("1.0", "tags/1.0")])
        manager.search = AsyncMock(return_value=[{"name": "wordpress-plugin/foo", "description": "Foo"}])
        return manager

    @pytest.fixture
    def patched_manager(self, manager):
        with patch.object(SvnRepoCLIContext, "create_manager", return_value=manager):
            yield manager

    def test_cli_help(self, runner):
        """Test CLI help command."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Virtual package repositories" in result.output

    def test_providers_json(self, runner, patched_manager):
        result = runner.invoke(cli, ["providers", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "providers": {"plugins": ["wordpress-plugin/foo", "wordpress-plugin/bar"]}
        }

    def test_providers_table(self, runner, patched_manager):
        result = runner.invoke(cli, ["providers"])

        assert result.exit_code == 0
        assert "2 providers" in result.output

    def test_providers_single_repository(self, runner, patched_manager):
        repository = MagicMock()
        repository.get_provider_names = AsyncMock(return_value=["wordpress-theme/twentyten"])
        patched_manager.get_repository.return_value = repository

        result = runner.invoke(cli, ["providers", "-r", "themes", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"providers": {"themes": ["wordpress-theme/twentyten"]}}
        patched_manager.get_repository.assert_called_once_with("themes")

    def test_show_json(self, runner, patched_manager):
        result = runner.invoke(cli, ["show", "wordpress-plugin/foo", "--format", "json"])

        assert result.exit_code == 0
        packages = json.loads(result.output)["packages"]
        assert packages[0]["version"] == "1.0"
        assert packages[0]["source"]["reference"] == "tags/1.0"
        patched_manager.what_provides.assert_awaited_once_with("wordpress-plugin/foo")

    def test_show_table(self, runner, patched_manager):
        result = runner.invoke(cli, ["show", "wordpress-plugin/foo"])

        assert result.exit_code == 0
        assert "1.0" in result.output

    def test_show_nothing_found(self, runner, patched_manager):
        patched_manager.what_provides.return_value = []

        result = runner.invoke(cli, ["show", "wordpress-plugin/nothing"])

        assert result.exit_code == 0
        assert "No packages found" in result.output

    def test_show_listing_failure(self, runner, patched_manager):
        patched_manager.what_provides.side_effect = ProviderListingError("https://x.test", "timed out")

        result = runner.invoke(cli, ["show", "wordpress-plugin/foo"])

        assert result.exit_code == 1
        assert "Error during package lookup" in result.output

    def test_search_json(self, runner, patched_manager):
        result = runner.invoke(cli, ["search", "foo", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"results": [{"name": "wordpress-plugin/foo", "description": "Foo"}]}

    def test_search_no_results(self, runner, patched_manager):
        patched_manager.search.return_value = []

        result = runner.invoke(cli, ["search", "nothing"])

        assert result.exit_code == 0
        assert "No results found" in result.output

    def test_invalid_config_file(self, runner):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write("[repositories]\ngems = true\n")
            config_path = f.name

        try:
            result = runner.invoke(cli, ["--config", config_path, "providers"])
            assert result.exit_code == 1
            assert "Configuration error" in result.output
        finally:
            Path(config_path).unlink()

    def test_config_init_command(self, runner):
        """Test config init command."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "test_config.toml"

            result = runner.invoke(
                cli, ["config", "init", "--output", str(config_path)]
            )
            assert result.exit_code == 0
            assert config_path.exists()

    def test_config_validate_command_valid(self, runner):
        """Test config validate command with valid config."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write('[settings]\nminimum_stability = "stable"\n\n[repositories]\nthemes = true\n')
            config_path = f.name

        try:
            result = runner.invoke(cli, ["config", "validate", config_path])
            assert result.exit_code == 0
            assert "valid" in result.output.lower()
        finally:
            Path(config_path).unlink()

    def test_config_validate_command_invalid(self, runner):
        """Test config validate command with invalid config."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write("invalid toml content [unclosed")
            invalid_config = f.name

        try:
            result = runner.invoke(cli, ["config", "validate", invalid_config])
            assert result.exit_code != 0
        finally:
            Path(invalid_config).unlink()

    def test_cache_clear_command(self, runner, patched_manager):
        plugins = MagicMock()
        plugins.name = "plugins"
        plugins.cache_store.clear.return_value = 2
        patched_manager.repositories = {"plugins": plugins}

        result = runner.invoke(cli, ["cache", "clear"])

        assert result.exit_code == 0
        assert "plugins: removed 2 cache entries" in result.output

    def test_cache_clear_unknown_repository(self, runner, patched_manager):
        patched_manager.get_repository.side_effect = RepositoryError("Repository not active: gems")

        result = runner.invoke(cli, ["cache", "clear", "-r", "gems"])

        assert result.exit_code == 1
        assert "Repository not active" in result.output


class TestLogLevel:
    @pytest.fixture(autouse=True)
    def restore_root_level(self):
        root = logging.getLogger()
        level = root.level
        yield
        root.setLevel(level)

    def test_settings_log_level_applied(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text('[settings]\nlog_level = "error"\n')

        context = SvnRepoCLIContext()
        context.config_path = str(config_path)
        config = context.load_config()

        assert config.settings.log_level == "error"
        assert logging.getLogger().level == logging.ERROR

    def test_verbose_keeps_debug_level(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text('[settings]\nlog_level = "ERROR"\n')
        logging.getLogger().setLevel(logging.DEBUG)

        context = SvnRepoCLIContext()
        context.config_path = str(config_path)
        context.verbose = True
        context.load_config()

        assert logging.getLogger().level == logging.DEBUG
