"""
WordPress core.

The core trees have no provider directory: the tree root is the single
provider, named by the name filter.
"""

import re
from typing import Any
from urllib.parse import quote_plus

from ..config.loader import RepositoryConfig, Settings
from ..package import PackageRecord

CORE_DESCRIPTION = "WordPress is web software you can use to create a beautiful website, blog, or app."


def filter_core_name(name: str, path: str = "", url: str = "") -> str | None:
    if name == "":
        return "wordpress"
    return None


def filter_develop_name(name: str, path: str = "", url: str = "") -> str | None:
    if name == "":
        return "develop"
    return None


def _release(reference: str) -> str:
    return re.sub(r"tags|[/ ]", "", reference)


def filter_core_package(package: PackageRecord, repository: Any = None) -> None:
    """Add the release zip and project links to a core package."""
    version = _release(package.source_reference)
    if version not in ("", "trunk"):
        package.set_dist(f"https://wordpress.org/wordpress{quote_plus('-' + version)}.zip")

    package.description = CORE_DESCRIPTION
    package.support = {
        "forum": "https://wordpress.org/support/",
        "source": "https://core.trac.wordpress.org/browser/" + (package.source_reference.strip("/") or "trunk"),
        "docs": "https://codex.wordpress.org/Main_Page",
    }
    package.homepage = "https://wordpress.org/"


def filter_develop_package(package: PackageRecord, repository: Any = None) -> None:
    package.homepage = "https://wordpress.org/"
    package.description = "WordPress develop repo offering source files, unit tests, and i18n tools."


def create_core_config(settings: Settings | None = None) -> RepositoryConfig:
    return RepositoryConfig.model_validate({
        "url": "https://core.svn.wordpress.org/",
        "provider-paths": [""],
        "package-paths": ["/tags/", "/trunk"],
        "package-types": {"wordpress-core": ["wordpress", "wordpress-core"]},
        "name-filter": filter_core_name,
        "package-filter": filter_core_package,
    })


def create_develop_config(settings: Settings | None = None) -> RepositoryConfig:
    return RepositoryConfig.model_validate({
        "url": "https://develop.svn.wordpress.org/",
        "provider-paths": [""],
        "package-paths": ["/tags/", "/trunk"],
        "package-types": {"wordpress-develop": ["wordpress", "wordpress-core"]},
        "name-filter": filter_develop_name,
        "package-filter": filter_develop_package,
    })
