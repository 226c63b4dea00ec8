"""Tests for the repository manager."""

import pytest

from svnrepo.config.loader import ProjectConfig
from svnrepo.errors import (
    ConfigurationError,
    MetadataUnavailableError,
    ProviderListingError,
    RepositoryError,
    SvnRepoErrorCode,
)
from svnrepo.repository.manager import (
    RepositoryManager,
    create_repository,
    get_repository_type,
    register_repository_type,
)
from svnrepo.repository.svn import SVNRepository
from svnrepo.testing import FakeSvnTree

BASE_URL = "https://x.test/plugins"
BAD_URL = "https://bad.test/plugins"
BROKEN_URL = "https://broken.test/plugins"

NO_BUILTINS = {"plugins": False, "core": False}


def _custom(url, name=None, **extra):
    definition = {
        "url": url,
        "package-paths": ["/tags/", "/trunk"],
        "package-types": {"wordpress-plugin": "acme-plugin"},
        **extra,
    }
    if name:
        definition["name"] = name
    return definition


@pytest.fixture
def svn_tree(svn_tree):
    svn_tree.fail(BAD_URL, "svn: E175002: Unable to connect")
    svn_tree.add_directory(BROKEN_URL, ["foo/"])
    svn_tree.fail(f"{BROKEN_URL}/foo/tags", "svn: E175002: Unable to connect")
    return svn_tree


class TestRepositoryTypes:
    def test_builtin_types(self):
        assert get_repository_type("svn") is SVNRepository
        assert get_repository_type("wp-svn") is SVNRepository

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError) as exc_info:
            get_repository_type("zip")
        assert exc_info.value.code == SvnRepoErrorCode.UNKNOWN_REPOSITORY_TYPE

    def test_register_type(self, plugin_config, settings, svn_tree):
        class CustomRepository(SVNRepository):
            pass

        register_repository_type("custom-svn", CustomRepository)
        plugin_config = plugin_config.with_overrides({"type": "custom-svn"})

        repository = create_repository(plugin_config, settings=settings, listing_client=svn_tree)

        assert isinstance(repository, CustomRepository)


class TestRepositoryDefinitions:
    """Test cases for activation order and validation."""

    def test_defaults(self):
        names = [name for name, _ in RepositoryManager(ProjectConfig()).repository_definitions()]
        assert names == ["plugins", "core"]

    def test_configured_builtins_first(self):
        config = ProjectConfig(repositories={"themes": True, "core": False})
        names = [name for name, _ in RepositoryManager(config).repository_definitions()]

        assert names == ["themes", "plugins"]

    def test_builtin_overrides(self):
        config = ProjectConfig(repositories={"plugins": {"cache-ttl": 60}, "core": False})
        (name, repo_config), = RepositoryManager(config).repository_definitions()

        assert name == "plugins"
        assert repo_config.cache_ttl == 60
        assert repo_config.package_paths == ["/tags/", "/trunk"]

    def test_unknown_builtin(self):
        config = ProjectConfig(repositories={"gems": True})

        with pytest.raises(ConfigurationError, match="gems"):
            RepositoryManager(config).repository_definitions()

    def test_custom_names(self):
        config = ProjectConfig(
            repositories=NO_BUILTINS,
            custom=[_custom(BASE_URL), _custom(BASE_URL, name="acme")],
        )
        names = [name for name, _ in RepositoryManager(config).repository_definitions()]

        assert names == ["custom-0", "acme"]

    def test_invalid_custom(self):
        config = ProjectConfig(repositories=NO_BUILTINS, custom=[_custom(BASE_URL, **{"provider-paths": "/"})])

        with pytest.raises(ConfigurationError, match="custom.0"):
            RepositoryManager(config).repository_definitions()


class TestActivation:
    def test_activate(self, settings, svn_tree):
        config = ProjectConfig(settings=settings, repositories=NO_BUILTINS, custom=[_custom(BASE_URL, name="acme")])
        manager = RepositoryManager(config, listing_client=svn_tree)

        repositories = manager.activate()

        assert [repo.name for repo in repositories] == ["acme"]
        assert manager.get_repository("acme").listing is svn_tree
        # activation lists nothing
        assert svn_tree.calls == []

    def test_user_vendor_aliases(self, settings, svn_tree):
        config = ProjectConfig(
            settings=settings,
            vendors={"wpackagist-plugin": "wordpress-plugin"},
            repositories=NO_BUILTINS,
            custom=[_custom(BASE_URL, name="acme")],
        )
        manager = RepositoryManager(config, listing_client=svn_tree)
        manager.activate()

        assert list(manager.get_repository("acme").vendor_map.vendors) == ["acme-plugin", "wpackagist-plugin"]

    def test_all_vendors_disabled(self, settings, svn_tree):
        config = ProjectConfig(
            settings=settings,
            vendors={"acme-plugin": False},
            repositories=NO_BUILTINS,
            custom=[_custom(BASE_URL)],
        )

        with pytest.raises(ConfigurationError) as exc_info:
            RepositoryManager(config, listing_client=svn_tree).activate()
        assert exc_info.value.code == SvnRepoErrorCode.MISSING_VENDORS

    def test_unknown_custom_type(self, settings, svn_tree):
        config = ProjectConfig(settings=settings, repositories=NO_BUILTINS, custom=[_custom(BASE_URL, type="zip")])

        with pytest.raises(ConfigurationError, match="Unknown repository type"):
            RepositoryManager(config, listing_client=svn_tree).activate()

    def test_get_repository_not_active(self):
        with pytest.raises(RepositoryError):
            RepositoryManager(ProjectConfig()).get_repository("plugins")


def _search_unavailable(query, repository):
    raise MetadataUnavailableError("https://api.test/search", "HTTP 503")


class TestQueries:
    """Test cases for queries across repositories."""

    @pytest.fixture
    def manager(self, settings, svn_tree):
        config = ProjectConfig(
            settings=settings,
            repositories=NO_BUILTINS,
            custom=[
                _custom(BASE_URL, name="good"),
                _custom(BROKEN_URL, name="broken", **{"search-handler": _search_unavailable}),
            ],
        )
        manager = RepositoryManager(config, listing_client=svn_tree)
        manager.activate()
        return manager

    @pytest.fixture
    def unreachable_manager(self, settings, svn_tree):
        config = ProjectConfig(
            settings=settings,
            repositories=NO_BUILTINS,
            custom=[_custom(BASE_URL, name="good"), _custom(BAD_URL, name="bad")],
        )
        manager = RepositoryManager(config, listing_client=svn_tree)
        manager.activate()
        return manager

    async def test_version_listing_failure_is_skipped(self, manager, caplog):
        packages = await manager.what_provides("acme-plugin/foo")

        assert [p.version for p in packages] == ["1.0", "2.0", "dev-trunk"]
        assert "Repository broken failed to provide acme-plugin/foo" in caplog.text

    async def test_lookup_results_per_repository(self, manager):
        results = await manager.lookup("acme-plugin/foo")
        assert list(results) == ["good"]

    async def test_failing_search_handler_is_skipped(self, manager, caplog):
        assert await manager.search("bar") == [{"name": "acme-plugin/bar"}]
        assert "Search in repository broken failed" in caplog.text

    async def test_provider_listing_failure_aborts_lookup(self, unreachable_manager):
        with pytest.raises(ProviderListingError) as exc_info:
            await unreachable_manager.what_provides("acme-plugin/foo")

        assert exc_info.value.data["repository"] == "bad"

    async def test_provider_listing_failure_aborts_search(self, unreachable_manager):
        with pytest.raises(ProviderListingError):
            await unreachable_manager.search("bar")

    async def test_load_providers_raises(self, unreachable_manager):
        with pytest.raises(ProviderListingError):
            await unreachable_manager.load_providers()

    async def test_provider_names(self, settings, svn_tree):
        config = ProjectConfig(settings=settings, repositories=NO_BUILTINS, custom=[_custom(BASE_URL, name="good")])
        manager = RepositoryManager(config, listing_client=svn_tree)
        manager.activate()

        assert await manager.load_providers() == {"good": 2}
        assert await manager.get_provider_names() == {"good": ["acme-plugin/foo", "acme-plugin/bar"]}

    def test_stats(self, manager):
        stats = manager.get_repository_stats()

        assert stats["repositories"] == 2
        assert set(stats["active"]) == {"good", "broken"}
        assert stats["active"]["good"]["state"] == "uninitialized"
