"""
Repository Manager for svnrepo.

This module activates the configured repositories (builtin and custom),
resolves vendors once per activation, and fans package queries out to every
active repository.
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from ..builtin import BUILTIN_REPOSITORIES, DEFAULT_REPOSITORIES
from ..config.loader import ProjectConfig, RepositoryConfig
from ..errors import (
    ConfigurationError,
    ProviderListingError,
    RepositoryError,
    SvnRepoErrorCode,
    TransportError,
)
from ..package import PackageRecord
from ..vendors import VendorResolver
from .svn import AcceptCallable, ProvidesResult, SVNRepository, gather_or_cancel

logger = logging.getLogger(__name__)

RepositoryType = Callable[..., SVNRepository]

_repository_types: dict[str, RepositoryType] = {}


def register_repository_type(type_name: str, factory: RepositoryType) -> None:
    """Register a repository class (or factory) under a type tag."""
    _repository_types[type_name] = factory
    logger.debug(f"Registered repository type: {type_name}")


def get_repository_type(type_name: str) -> RepositoryType:
    """
    Look up the factory registered for a type tag.

    Raises:
        ConfigurationError: If no factory is registered under ``type_name``
    """
    try:
        return _repository_types[type_name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown repository type: {type_name}",
            SvnRepoErrorCode.UNKNOWN_REPOSITORY_TYPE,
            type=type_name,
            known=sorted(_repository_types),
        ) from None


def create_repository(config: RepositoryConfig, **kwargs: Any) -> SVNRepository:
    """Create a repository of the type named in its configuration."""
    return get_repository_type(config.type)(config, **kwargs)


register_repository_type("svn", SVNRepository)
register_repository_type("wp-svn", SVNRepository)


class RepositoryManager:
    """Central manager for SVN repositories."""

    def __init__(
        self,
        config: ProjectConfig | None = None,
        listing_client: Any | None = None,
    ):
        """
        Initialize repository manager.

        Args:
            config: Project configuration
            listing_client: Listing client shared by every repository;
                by default each repository creates its own
        """
        self.config = config or ProjectConfig()
        self.settings = self.config.settings
        self.vendor_resolver = VendorResolver(self.config.vendors)
        self.listing_client = listing_client
        self.repositories: dict[str, SVNRepository] = {}

    def repository_definitions(self) -> list[tuple[str, RepositoryConfig]]:
        """
        Repository configurations in activation order.

        Builtin repositories named in the configuration come first, then the
        default builtin repositories not mentioned, then custom ones.

        Raises:
            ConfigurationError: If a repository definition is invalid
        """
        switches: dict[str, bool | dict[str, Any]] = dict(self.config.repositories)
        for name in DEFAULT_REPOSITORIES:
            switches.setdefault(name, True)

        definitions = []
        for name, switch in switches.items():
            if name not in BUILTIN_REPOSITORIES:
                raise ConfigurationError(f"Unknown builtin repository: {name}", repository=name)
            if not switch:
                logger.debug(f"Builtin repository {name} is disabled")
                continue

            repo_config = BUILTIN_REPOSITORIES[name](self.settings)
            if isinstance(switch, dict):
                repo_config = self._validated(name, lambda: repo_config.with_overrides(switch))
            definitions.append((name, repo_config))

        for index, definition in enumerate(self.config.custom):
            repo_config = self._validated(
                f"custom.{index}", lambda: RepositoryConfig.model_validate(definition)
            )
            definitions.append((repo_config.name or f"custom-{index}", repo_config))

        return definitions

    def _validated(self, name: str, build: Callable[[], RepositoryConfig]) -> RepositoryConfig:
        try:
            return build()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid repository {name}: {e}", repository=name) from e

    def activate(self) -> list[SVNRepository]:
        """
        Create every configured repository.

        Returns:
            The active repositories

        Raises:
            ConfigurationError: If any repository is misconfigured
        """
        logger.info("Activating repositories")
        repositories: dict[str, SVNRepository] = {}

        for name, repo_config in self.repository_definitions():
            vendor_map = self.vendor_resolver.resolve(repo_config.package_types)
            repositories[name] = create_repository(
                repo_config,
                settings=self.settings,
                vendor_map=vendor_map,
                listing_client=self.listing_client,
                name=name,
            )
            logger.debug(f"Activated repository {name} with vendors {list(vendor_map.vendors)}")

        self.repositories = repositories
        logger.info(f"Activated {len(repositories)} repositories")
        return list(repositories.values())

    def get_repository(self, name: str) -> SVNRepository:
        try:
            return self.repositories[name]
        except KeyError:
            raise RepositoryError(f"Repository not active: {name}", repository=name) from None

    async def load_providers(self) -> dict[str, int]:
        """
        Load the providers of every repository.

        Returns:
            Number of providers per repository

        Raises:
            ProviderListingError: If any repository cannot list its providers
        """
        repositories = list(self.repositories.values())
        results = await gather_or_cancel(*(repo.load_providers() for repo in repositories))
        return {repo.name: len(providers) for repo, providers in zip(repositories, results)}

    async def lookup(self, name: str, accept: AcceptCallable | None = None) -> dict[str, ProvidesResult]:
        """
        Lookup result of ``name`` in every repository.

        A repository whose versions cannot be listed is left out of the
        result.

        Raises:
            ProviderListingError: If a repository cannot list its providers
        """
        results = {}
        for repo_name, repo in self.repositories.items():
            try:
                results[repo_name] = await repo.lookup(name, accept)
            except ProviderListingError:
                raise
            except (RepositoryError, TransportError) as e:
                logger.error(f"Repository {repo_name} failed to provide {name}: {e}")
        return results

    async def what_provides(self, name: str, accept: AcceptCallable | None = None) -> list[PackageRecord]:
        """
        Packages for ``vendor/name`` from every repository.

        A repository whose versions cannot be listed contributes no
        packages; the others are still queried. Provider listing failures
        propagate.
        """
        packages = []
        for result in (await self.lookup(name, accept)).values():
            packages.extend(result.packages)
        return packages

    async def search(self, query: str) -> list[dict[str, Any]]:
        """Search every repository and concatenate the results."""
        results = []
        for repo_name, repo in self.repositories.items():
            try:
                found = await repo.search(query)
            except ProviderListingError:
                raise
            except (RepositoryError, TransportError) as e:
                logger.error(f"Search in repository {repo_name} failed: {e}")
                continue
            if isinstance(found, list):
                results.extend(found)
        return results

    async def get_provider_names(self) -> dict[str, list[str]]:
        """Vendor-qualified provider names per repository."""
        return {
            repo_name: await repo.get_provider_names()
            for repo_name, repo in self.repositories.items()
        }

    def get_repository_stats(self) -> dict[str, Any]:
        """
        Get repository statistics.

        Returns:
            Statistics per active repository
        """
        return {
            "repositories": len(self.repositories),
            "vendors": dict(self.config.vendors),
            "active": {name: repo.get_stats() for name, repo in self.repositories.items()},
        }
