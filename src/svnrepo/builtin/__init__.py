"""
Builtin repository definitions.

Each entry maps a builtin repository name to a factory building its
configuration from the global settings.
"""

from collections.abc import Callable

from ..config.loader import RepositoryConfig, Settings
from . import core, hosted, plugins, themes

RepositoryFactory = Callable[[Settings | None], RepositoryConfig]

BUILTIN_REPOSITORIES: dict[str, RepositoryFactory] = {
    "plugins": plugins.create_config,
    "themes": themes.create_config,
    "core": core.create_core_config,
    "develop": core.create_develop_config,
    "wpcom-themes": hosted.create_wpcom_themes_config,
    "vip-plugins": hosted.create_vip_config,
}

# enabled unless set to false
DEFAULT_REPOSITORIES = ("plugins", "core")

__all__ = ["BUILTIN_REPOSITORIES", "DEFAULT_REPOSITORIES", "RepositoryFactory"]
