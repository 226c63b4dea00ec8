"""
Shared behaviour of the wordpress.org plugin and theme directories.

Both directories expose an SVN tree with one provider per slug and a JSON
API describing each slug. The API enriches synthesized packages, answers
searches, and its "newest" feed keeps the provider cache fresh without
re-listing tens of thousands of providers.
"""

import html
import json
import logging
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import quote_plus

from ..config.loader import RepositoryConfig, Settings
from ..errors import CacheError, MetadataUnavailableError
from ..hooks import FunctionHook
from ..http import flatten_request, get_json
from ..package import PackageRecord

if TYPE_CHECKING:
    from ..repository.cache import CacheStore

logger = logging.getLogger(__name__)

NEWEST_FILE = "newest.json"

_TAGS = re.compile(r"<[^>]+>")


def truncate(text: str, length: int = 100) -> str:
    """Strip markup and shorten ``text`` to ``length`` characters."""
    text = html.unescape(_TAGS.sub("", text or "")).strip()
    if len(text) <= length:
        return text
    return text[: length - 3].rstrip() + "..."


class DirectoryRepository:
    """Base for repositories mirrored from a wordpress.org directory."""

    kind = ""
    svn_url = ""
    api_url = ""
    newest_num = 0
    package_types: dict[str, str | list[str]] = {}
    package_paths = ["/"]
    trust_cert = False

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._info: dict[str, Any] = {}

    def config(self) -> RepositoryConfig:
        """Repository configuration with this directory's hooks bound."""
        return RepositoryConfig.model_validate({
            "url": self.svn_url,
            "package-paths": list(self.package_paths),
            "package-types": dict(self.package_types),
            "package-filter": FunctionHook(self.filter_package),
            "search-handler": FunctionHook(self.search),
            "cache-handler": FunctionHook(self.cache),
            "cache-ttl": "config",
            "trust-cert": self.trust_cert,
        })

    # API access

    def query(self, action: str, request: dict[str, Any]) -> Any:
        return get_json(
            self.api_url,
            params=flatten_request(action, request),
            timeout=self.settings.http_timeout,
            context=f"{self.kind} API",
        )

    def fetch_info(self, slug: str) -> Any:
        raise NotImplementedError

    def get_info(self, slug: str) -> Any:
        """
        Metadata of a slug; falsy when the directory no longer lists it.

        Only successful answers are memoized, so a failed lookup is retried
        the next time the slug is filtered.

        Raises:
            MetadataUnavailableError: If the API cannot be queried
        """
        if slug not in self._info:
            logger.debug(f"Requesting more information about {slug} {self.kind}")
            self._info[slug] = self.fetch_info(slug)
        return self._info[slug]

    def newest_slugs(self) -> list[str]:
        raise NotImplementedError

    # Hooks

    def filter_package(self, package: PackageRecord, repository: Any = None) -> None:
        """Add dist, description, authors and support links from the API."""
        info = self.get_info(package.short_name)
        if not info:
            package.abandoned = True
            return

        version = self.dist_version(package.source_reference)
        suffix = f".{version}" if version else ""
        package.set_dist(
            f"https://downloads.wordpress.org/{self.kind}/{quote_plus(package.short_name + suffix)}.zip"
        )
        self.apply_info(package, info)

        slug = quote_plus(package.short_name)
        package.support = self.support_links(slug)
        package.homepage = f"https://wordpress.org/{self.kind}s/{slug}/"

    def dist_version(self, reference: str) -> str:
        return re.sub(r"[/ ]", "", reference)

    def apply_info(self, package: PackageRecord, info: dict[str, Any]) -> None:
        raise NotImplementedError

    def support_links(self, slug: str) -> dict[str, str]:
        return {
            "forum": f"https://wordpress.org/support/{self.kind}/{slug}/",
            "source": f"https://{self.kind}s.trac.wordpress.org/browser/{slug}/",
            "docs": f"https://wordpress.org/{self.kind}s/{slug}/",
        }

    def search(self, query: str, repository: Any = None) -> list[dict[str, Any]] | str:
        """
        Search the directory API.

        Returns:
            Search results, or ``query`` itself to fall back to matching
            provider names
        """
        logger.debug(f"Searching {self.api_url} for {query}")
        try:
            results = self.query(f"query_{self.kind}s", {"search": query})
        except MetadataUnavailableError as e:
            logger.warning(f"{self.kind} search failed, matching provider names instead: {e}")
            return query

        items = results.get(f"{self.kind}s") if isinstance(results, dict) else None
        if not items:
            return query

        vendor = repository.default_vendor if repository is not None else next(iter(self.package_types))
        return [
            {
                "name": f"{vendor}/{item['slug']}",
                "description": truncate(self.search_description(item)),
                "url": item.get("homepage"),
            }
            for item in items
        ]

    def search_description(self, item: dict[str, Any]) -> str:
        return item.get("description") or ""

    def cache(
        self, providers: dict[str, str] | bool, store: "CacheStore", repository: Any = None
    ) -> dict[str, str] | bool:
        """
        Keep a cached provider map fresh with the directory's newest feed.

        Slugs that appeared in the feed since the last run are added to the
        map. If every slug in the feed is new, more may have been missed and
        the map is discarded to force a full listing.

        Returns:
            The updated provider map, or False to force a live listing
        """
        try:
            newest = self.newest_slugs()
        except MetadataUnavailableError as e:
            logger.warning(f"Could not fetch newest {self.kind}s, invalidating provider cache: {e}")
            return False

        last_raw = store.read(NEWEST_FILE) if isinstance(providers, dict) else None
        if isinstance(providers, dict) and last_raw:
            try:
                last_newest = json.loads(last_raw)
            except ValueError:
                last_newest = None

            if last_newest and isinstance(last_newest, list):
                seen = set(last_newest)
                new_slugs = [slug for slug in newest if slug not in seen]
                if len(new_slugs) < self.newest_num:
                    base_url = repository.urls[0] if repository is not None else self.svn_url.rstrip("/")
                    providers = dict(providers)
                    for slug in new_slugs:
                        providers[slug] = f"{base_url}/{slug}"
                    logger.debug(f"Added {len(new_slugs)} new {self.kind}s to the provider cache")
                else:
                    providers = False
            else:
                providers = False

        try:
            store.write(NEWEST_FILE, json.dumps(newest))
        except CacheError as e:
            logger.warning(f"Could not store newest {self.kind}s: {e}")
        return providers
