"""
SVN repository.

Adapts an SVN tree of providers and their tags/trunk directories into
package records. Providers are listed once per activation (or loaded from
the provider cache); versions are listed per provider on first request and
kept for the lifetime of the repository.

Hooks that may reach the network (package filter, cache handler, search
handler) run in worker threads so they never block the event loop.
"""

import asyncio
import logging
import posixpath
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from ..config.loader import RepositoryConfig, Settings
from ..errors import (
    InvalidURLError,
    PackageConstructionError,
    ProviderListingError,
    TransportError,
    VersionListingError,
)
from ..package import PackageRecord
from ..vendors import VendorMap, resolve_vendors
from ..versioning import STABILITIES, VersionNormalizer, parse_stability
from .cache import CacheStore, ProviderCache, cache_dir_name
from .listing import ListingClient
from .synthesizer import PackageSynthesizer, VersionEntry

logger = logging.getLogger(__name__)

AcceptCallable = Callable[[str, str], bool]


class RepositoryState(Enum):
    """Activation state of a repository."""
    UNINITIALIZED = "uninitialized"
    PROVIDERS_LOADING = "providers_loading"
    PROVIDERS_LOADED = "providers_loaded"


class ProvidesStatus(Enum):
    """Outcome of a package lookup."""
    NOT_MY_VENDOR = "not_my_vendor"
    NO_SUCH_PACKAGE = "no_such_package"
    FOUND = "found"


@dataclass
class ProvidesResult:
    """Packages found for a name, with the reason when there are none."""
    status: ProvidesStatus
    packages: list[PackageRecord] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.packages)


async def gather_or_cancel(*aws: Any) -> list[Any]:
    """
    Gather awaitables, cancelling the others as soon as one fails.

    The first exception propagates unchanged.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def validate_urls(urls: list[str], repository: str | None = None) -> list[str]:
    """
    Keep the URLs that carry a scheme, without trailing slashes.

    Raises:
        InvalidURLError: If no URL is left
    """
    valid = []
    for url in urls:
        if isinstance(url, str) and urlparse(url).scheme:
            valid.append(url.rstrip("/"))
        else:
            logger.warning(f"Ignoring invalid repository URL {url!r}")

    if not valid:
        raise InvalidURLError(urls, repository)
    return valid


class SVNRepository:
    """Virtual package repository backed by an SVN tree."""

    def __init__(
        self,
        config: RepositoryConfig,
        settings: Settings | None = None,
        vendor_map: VendorMap | None = None,
        listing_client: ListingClient | Any | None = None,
        cache_store: CacheStore | None = None,
        name: str | None = None,
    ) -> None:
        """
        Initialize SVN repository.

        Args:
            config: Repository configuration
            settings: Global settings
            vendor_map: Resolved vendors; defaults to the configured package
                types without user aliases
            listing_client: Client used for remote listings
            cache_store: Store for the provider cache
            name: Display name of the repository

        Raises:
            ConfigurationError: If no valid URL or no vendor is configured
        """
        self.config = config
        self.settings = settings or Settings()
        self.name = name or config.name or str(config.url)
        self.urls = validate_urls(config.urls, self.name)
        self.vendor_map = vendor_map or resolve_vendors(config.package_types)

        self.listing = listing_client or ListingClient(
            trust_cert=config.trust_cert,
            timeout=self.settings.listing_timeout,
            svn_binary=self.settings.svn_binary,
        )
        self.cache_store = cache_store or CacheStore(
            Path(self.settings.cache_dir).expanduser() / cache_dir_name(self.urls[0])
        )
        self.cache_ttl = config.resolve_cache_ttl(self.settings)
        self.provider_cache = ProviderCache(
            self.cache_store, config.cache_file, self.cache_ttl, config.cache_handler
        )

        self.normalizer = VersionNormalizer()
        self.synthesizer = PackageSynthesizer(
            self.vendor_map,
            config.package_defaults,
            config.package_overrides,
            config.package_filter,
            owner=self,
        )

        self.state = RepositoryState.UNINITIALIZED
        self._providers: dict[str, str] | None = None
        self._versions: dict[str, dict[str, VersionEntry]] = {}
        self._packages: dict[str, dict[str, PackageRecord]] = {}
        self._lock = asyncio.Lock()

    @property
    def default_vendor(self) -> str:
        return self.vendor_map.default_vendor

    @property
    def providers(self) -> dict[str, str]:
        """Loaded provider map (empty before activation)."""
        return dict(self._providers or {})

    async def load_providers(self) -> dict[str, str]:
        """
        Ensure the provider map is loaded.

        Concurrent and repeated calls issue one set of listing calls.

        Returns:
            Provider name to provider URL map

        Raises:
            ProviderListingError: If any provider listing fails
        """
        if self._providers is not None:
            return self._providers

        async with self._lock:
            if self._providers is not None:
                return self._providers

            self.state = RepositoryState.PROVIDERS_LOADING
            try:
                self.cache_store.gc(self.cache_ttl, self.settings.cache_files_maxsize)
                providers = await asyncio.to_thread(self.provider_cache.load, self)
                if providers is None:
                    providers = await self._list_providers()
                self.provider_cache.save(providers)
            except BaseException:
                self.state = RepositoryState.UNINITIALIZED
                raise

            self._providers = providers
            self.state = RepositoryState.PROVIDERS_LOADED
            logger.info(f"Loaded {len(providers)} providers for {self.name}")
            return providers

    async def get_provider_names(self) -> list[str]:
        """Every provider, qualified with the default vendor."""
        providers = await self.load_providers()
        return [f"{self.default_vendor}/{name}" for name in providers]

    async def lookup(self, name: str, accept: AcceptCallable | None = None) -> ProvidesResult:
        """
        Find the packages provided for ``vendor/name``.

        Args:
            name: Vendor-qualified package name
            accept: ``accept(name, stability)`` deciding which versions are
                synthesized; defaults to the configured minimum stability

        Returns:
            Lookup result

        Raises:
            ProviderListingError: If the providers cannot be loaded
            VersionListingError: If the versions of the provider cannot be listed
        """
        vendor, sep, provider_name = name.partition("/")
        if not sep or "/" in provider_name or vendor not in self.vendor_map:
            return ProvidesResult(ProvidesStatus.NOT_MY_VENDOR)

        providers = await self.load_providers()
        if provider_name not in providers:
            return ProvidesResult(ProvidesStatus.NO_SUCH_PACKAGE)

        provider_url = providers[provider_name]
        versions = self._versions.get(name)
        if versions is None:
            versions = await self._list_versions(name, provider_name, provider_url)
            self._versions[name] = versions

        accept = accept or self._default_accept
        cached = self._packages.setdefault(name, {})
        packages = []
        for version, entry in versions.items():
            if not accept(name, parse_stability(version)):
                continue
            if version not in cached:
                try:
                    cached[version] = await asyncio.to_thread(
                        self.synthesizer.synthesize, provider_name, entry, vendor, provider_url
                    )
                except PackageConstructionError as e:
                    logger.warning(f"Skipping {name} {version}: {e.message}")
                    continue
            packages.append(cached[version])

        return ProvidesResult(ProvidesStatus.FOUND, packages)

    async def what_provides(self, name: str, accept: AcceptCallable | None = None) -> list[PackageRecord]:
        """Packages provided for ``vendor/name``; empty when not ours."""
        return (await self.lookup(name, accept)).packages

    async def search(self, query: str) -> list[dict[str, Any]] | Any:
        """
        Search the repository.

        A query equal to one of our vendors lists every provider under that
        vendor. Otherwise the search handler runs; when it returns the query
        unchanged, provider names are matched against the query words.

        Returns:
            List of ``{"name": ...}`` results, or whatever the search handler returns
        """
        if query in self.vendor_map:
            providers = await self.load_providers()
            return [{"name": f"{query}/{name}"} for name in providers]

        results = await asyncio.to_thread(self.config.search_handler, query, self)
        if results != query:
            return results

        return await self._generic_search(query)

    async def _generic_search(self, query: str) -> list[dict[str, Any]]:
        words = query.lower().split()
        names = await self.get_provider_names()
        return [
            {"name": name} for name in names
            if not words or any(word in name.lower() for word in words)
        ]

    def _default_accept(self, name: str, stability: str) -> bool:
        return STABILITIES[stability] <= STABILITIES[self.settings.minimum_stability]

    async def _list_providers(self) -> dict[str, str]:
        results = await gather_or_cancel(*(self._list_base_url(url) for url in self.urls))
        providers: dict[str, str] = {}
        for result in results:
            providers.update(result)
        return providers

    async def _list_base_url(self, base_url: str) -> dict[str, str]:
        logger.info(f"Fetching providers from {base_url}")
        providers: dict[str, str] = {}

        for path in self.config.provider_paths:
            url = f"{base_url}/{path.lstrip('/')}".rstrip("/")
            if path.endswith("/"):
                try:
                    names = await self.listing.ls(url)
                except TransportError as e:
                    raise ProviderListingError(url, e.message, self.name) from e
                for name in names:
                    self._add_provider(providers, name, path, f"{url}/{name}")
            else:
                self._add_provider(providers, posixpath.basename(path), path, url)

        return providers

    def _add_provider(self, providers: dict[str, str], name: str, rel_path: str, abs_url: str) -> None:
        filtered = self.config.name_filter(name, rel_path, abs_url)
        if filtered:
            providers[filtered] = abs_url

    async def _list_versions(self, name: str, provider_name: str, provider_url: str) -> dict[str, VersionEntry]:
        results = await gather_or_cancel(
            *(self._list_package_path(name, provider_name, provider_url, path)
              for path in self.config.package_paths)
        )
        versions: dict[str, VersionEntry] = {}
        for result in results:
            versions.update(result)
        return versions

    async def _list_package_path(
        self, name: str, provider_name: str, provider_url: str, path: str
    ) -> dict[str, VersionEntry]:
        rel_path = path.strip("/")
        found: dict[str, VersionEntry] = {}

        if path.endswith("/"):
            url = f"{provider_url}/{rel_path}" if rel_path else provider_url
            logger.info(f"Fetching available versions for {name}")
            try:
                raw_versions = await self.listing.ls(url)
            except TransportError as e:
                raise VersionListingError(name, url, e.message) from e

            for raw in raw_versions:
                version = self._filter_version(raw, provider_name, path, provider_url)
                if version:
                    found[version] = VersionEntry(version, f"{rel_path}/{raw}".strip("/"))
        else:
            version = self._filter_version(posixpath.basename(path), provider_name, path, provider_url)
            if version:
                found[version] = VersionEntry(version, "/", rel_path)

        return found

    def _filter_version(self, raw: str, provider_name: str, path: str, provider_url: str) -> str | None:
        version = self.normalizer.fix(raw)
        version = self.config.version_filter(version, provider_name, path, provider_url)
        return version or None

    def get_stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "urls": self.urls,
            "state": self.state.value,
            "vendors": dict(self.vendor_map.vendors),
            "providers": len(self._providers or {}),
            "packages": sum(len(p) for p in self._packages.values()),
        }
