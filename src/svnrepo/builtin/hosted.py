"""
Repositories hosted by WordPress VIP and WordPress.com.

Neither tree has tags: every provider offers a single ``dev-master``
version checked out from its root.
"""

from typing import Any

from ..config.loader import RepositoryConfig, Settings
from ..package import PackageRecord

RELEASE_CANDIDATES = "release-candidates"


def master_version(version: str, *args: Any) -> str:
    return "dev-master"


def filter_vip_name(name: str, path: str = "", url: str = "") -> str:
    """Release candidates live in their own directory and get a ``-rc`` suffix."""
    if name == RELEASE_CANDIDATES:
        return ""
    if path == f"{RELEASE_CANDIDATES}/":
        return f"{name}-rc"
    return name


def filter_wpcom_name(name: str, path: str = "", url: str = "") -> str:
    if name == ".ignore":
        return ""
    return name


def filter_wpcom_package(package: PackageRecord, repository: Any = None) -> None:
    package.type = "wordpress-theme"


def create_vip_config(settings: Settings | None = None) -> RepositoryConfig:
    return RepositoryConfig.model_validate({
        "url": "https://vip-svn.wordpress.com/plugins/",
        "provider-paths": ["/", f"{RELEASE_CANDIDATES}/"],
        "package-paths": [""],
        "package-types": {"wordpress-plugin": "wordpress-vip"},
        "name-filter": filter_vip_name,
        "version-filter": master_version,
    })


def create_wpcom_themes_config(settings: Settings | None = None) -> RepositoryConfig:
    return RepositoryConfig.model_validate({
        "url": "https://wpcom-themes.svn.automattic.com/",
        "provider-paths": ["/"],
        "package-paths": [""],
        "package-types": {"wordpress-com-theme": "wordpress-com"},
        "name-filter": filter_wpcom_name,
        "version-filter": master_version,
        "package-filter": filter_wpcom_package,
    })
