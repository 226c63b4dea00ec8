"""The wordpress.org theme directory."""

from typing import Any

from ..config.loader import RepositoryConfig, Settings
from ..package import PackageRecord
from .directory import DirectoryRepository


class WordPressThemes(DirectoryRepository):
    """Themes from https://themes.svn.wordpress.org/."""

    kind = "theme"
    svn_url = "https://themes.svn.wordpress.org/"
    api_url = "https://api.wordpress.org/themes/info/1.1/"
    newest_num = 50
    package_types = {"wordpress-theme": "wordpress-theme"}
    trust_cert = True

    def fetch_info(self, slug: str) -> Any:
        info = self.query("theme_information", {"slug": slug})
        # unknown themes come back as false or as an error object
        if not isinstance(info, dict) or "error" in info:
            return None
        return info

    def apply_info(self, package: PackageRecord, info: dict[str, Any]) -> None:
        sections = info.get("sections")
        if isinstance(sections, dict) and sections.get("description"):
            package.description = sections["description"]

        author = info.get("author")
        if isinstance(author, dict):
            author = author.get("display_name") or author.get("user_nicename")
        if author:
            package.authors = [{"name": str(author)}]

        tags = info.get("tags")
        if tags:
            package.keywords = [str(tag) for tag in (tags.values() if isinstance(tags, dict) else tags)]

    def newest_slugs(self) -> list[str]:
        response = self.query("query_themes", {
            "browse": "new",
            "per_page": self.newest_num,
            "fields": {
                "name": False,
                "version": False,
                "rating": False,
                "downloaded": False,
                "downloadlink": False,
                "last_updated": False,
                "homepage": False,
                "tags": False,
                "template": False,
                "screenshot_url": False,
                "preview_url": False,
                "author": False,
                "description": False,
            },
        })
        themes = response.get("themes") if isinstance(response, dict) else None
        return [theme["slug"] for theme in themes or [] if isinstance(theme, dict) and "slug" in theme]


def create_config(settings: Settings | None = None) -> RepositoryConfig:
    return WordPressThemes(settings).config()
