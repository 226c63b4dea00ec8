"""Configuration models and loading."""

from .loader import ConfigLoader, ProjectConfig, RepositoryConfig, Settings

__all__ = ["ConfigLoader", "ProjectConfig", "RepositoryConfig", "Settings"]
