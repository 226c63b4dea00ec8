"""The wordpress.org plugin directory."""

import re
from typing import Any
from urllib.parse import quote

from ..config.loader import RepositoryConfig, Settings
from ..http import get_json
from ..package import PackageRecord
from .directory import DirectoryRepository

INFO_URL = "https://api.wordpress.org/plugins/info/1.0/"


def _keywords(tags: Any) -> list[str]:
    if isinstance(tags, dict):
        return [str(tag) for tag in tags.values()]
    return [str(tag) for tag in tags or []]


class WordPressPlugins(DirectoryRepository):
    """Plugins from https://plugins.svn.wordpress.org/."""

    kind = "plugin"
    svn_url = "https://plugins.svn.wordpress.org/"
    api_url = "https://api.wordpress.org/plugins/info/1.2/"
    newest_num = 100
    package_types = {
        "wordpress-plugin": "wordpress-plugin",
        "wordpress-muplugin": "wordpress-muplugin",
    }
    package_paths = ["/tags/", "/trunk"]

    def fetch_info(self, slug: str) -> Any:
        return get_json(
            f"{INFO_URL}{quote(slug)}.json",
            timeout=self.settings.http_timeout,
            context="plugin API",
            missing_ok=True,
        )

    def dist_version(self, reference: str) -> str:
        return re.sub(r"tags|trunk|[/ ]", "", reference)

    def apply_info(self, package: PackageRecord, info: dict[str, Any]) -> None:
        if info.get("short_description"):
            package.description = info["short_description"]
        contributors = info.get("contributors")
        if contributors and isinstance(contributors, dict):
            package.authors = [
                {"name": name, "homepage": homepage}
                for name, homepage in contributors.items()
            ]
        if info.get("tags"):
            package.keywords = _keywords(info["tags"])

    def search_description(self, item: dict[str, Any]) -> str:
        return item.get("short_description") or ""

    def newest_slugs(self) -> list[str]:
        response = self.query("query_plugins", {
            "browse": "new",
            "per_page": self.newest_num,
            "fields": {
                "description": False,
                "sections": False,
                "contributors": False,
                "versions": False,
                "ratings": False,
                "homepage": False,
                "short_description": False,
                "icons": False,
            },
        })
        plugins = response.get("plugins") if isinstance(response, dict) else None
        return [plugin["slug"] for plugin in plugins or [] if isinstance(plugin, dict) and "slug" in plugin]


def create_config(settings: Settings | None = None) -> RepositoryConfig:
    return WordPressPlugins(settings).config()
