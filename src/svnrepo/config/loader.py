"""
Configuration loading and validation for svnrepo.

This module provides configuration loading from TOML files with environment
variable substitution, the pydantic models for settings and repositories,
and validation returning readable messages.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Literal

import toml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import ConfigurationError
from ..hooks import FunctionHook, Hook, NoopHook, as_hook
from ..versioning import STABILITIES, filter_trunk

logger = logging.getLogger(__name__)

BUILTIN_REPOSITORY_NAMES = ("plugins", "themes", "core", "develop", "wpcom-themes", "vip-plugins")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """Global settings shared by every repository."""

    cache_dir: str = "~/.svnrepo/cache"
    cache_files_ttl: int = 15552000
    cache_files_maxsize: int = 300 * 1024 * 1024
    minimum_stability: str = "dev"
    listing_timeout: int = 300
    http_timeout: int = 15
    svn_binary: str = "svn"
    log_level: str = "WARNING"

    class Config:
        extra = "allow"


class RepositoryConfig(BaseModel):
    """Configuration for one SVN repository."""

    type: str = "svn"
    name: str | None = None
    url: str | list[str] | None = None
    provider_paths: list[str] = Field(default_factory=lambda: ["/"], alias="provider-paths")
    package_paths: list[str] = Field(default_factory=lambda: ["/"], alias="package-paths")
    package_types: dict[str, str | list[str]] = Field(default_factory=dict, alias="package-types")

    # Hooks
    name_filter: Hook = Field(default_factory=NoopHook, alias="name-filter")
    version_filter: Hook = Field(default_factory=lambda: FunctionHook(filter_trunk), alias="version-filter")
    package_filter: Hook = Field(default_factory=NoopHook, alias="package-filter")
    search_handler: Hook = Field(default_factory=NoopHook, alias="search-handler")
    cache_handler: Hook = Field(default_factory=NoopHook, alias="cache-handler")

    package_defaults: dict[str, Any] = Field(default_factory=dict, alias="package-defaults")
    package_overrides: dict[str, Any] = Field(default_factory=dict, alias="package-overrides")

    # Cache configuration
    cache_ttl: int | Literal["config"] = Field(0, alias="cache-ttl")
    cache_file: str = Field("providers.json", alias="cache-file")

    trust_cert: bool = Field(False, alias="trust-cert")

    class Config:
        extra = "allow"
        populate_by_name = True
        arbitrary_types_allowed = True

    @field_validator(
        "name_filter", "version_filter", "package_filter", "search_handler", "cache_handler",
        mode="before",
    )
    @classmethod
    def _coerce_hook(cls, value: Any) -> Hook:
        return as_hook(value)

    @property
    def urls(self) -> list[str]:
        if not self.url:
            return []
        if isinstance(self.url, str):
            return [self.url]
        return list(self.url)

    def resolve_cache_ttl(self, settings: Settings) -> int:
        """Cache TTL in seconds; ``"config"`` defers to the global setting."""
        if self.cache_ttl == "config":
            return settings.cache_files_ttl
        return int(self.cache_ttl or 0)

    def with_overrides(self, overrides: dict[str, Any]) -> "RepositoryConfig":
        """
        Copy this configuration with some keys replaced.

        Args:
            overrides: Keys to replace, in either snake or kebab case

        Returns:
            New repository configuration
        """
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(self.model_extra or {})
        data.update({key.replace("-", "_"): value for key, value in overrides.items()})
        return type(self).model_validate(data)


class ProjectConfig(BaseModel):
    """Complete svnrepo configuration schema."""

    version: str = "0.1.0"
    settings: Settings = Field(default_factory=Settings)
    vendors: dict[str, str | bool] = Field(default_factory=dict)
    repositories: dict[str, bool | dict[str, Any]] = Field(default_factory=dict)
    custom: list[dict[str, Any]] = Field(default_factory=list)

    class Config:
        extra = "allow"


class ConfigLoader:
    """Configuration loader with environment variable substitution."""

    def __init__(self) -> None:
        """Initialize configuration loader."""
        self.env_var_pattern = re.compile(r"\$\{([^}]+)\}")

    def load_from_file(self, config_path: str | Path) -> dict[str, Any]:
        """
        Load configuration from TOML file.

        Args:
            config_path: Path to configuration file

        Returns:
            Configuration dictionary with environment variable substitution

        Raises:
            ConfigurationError: If configuration cannot be loaded or is invalid
        """
        try:
            config_path = Path(config_path).expanduser().resolve()

            if not config_path.exists():
                raise ConfigurationError(f"Configuration file not found: {config_path}")

            logger.info(f"Loading configuration from {config_path}")

            with open(config_path) as f:
                config_data = toml.load(f)

            config_data = self._substitute_env_vars(config_data)

            errors = self.validate_config(config_data)
            if errors:
                raise ConfigurationError(
                    f"Configuration validation failed: {'; '.join(errors)}"
                )

            logger.info("Configuration loaded successfully")
            return config_data

        except toml.TomlDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file: {e}") from e

    def load_defaults(self) -> dict[str, Any]:
        """
        Load default configuration.

        Returns:
            Default configuration dictionary
        """
        default_config = ProjectConfig()
        default_config.repositories = {"plugins": True, "core": True}
        return default_config.model_dump()

    def load_from_dict(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """
        Load configuration from dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            Processed configuration with environment variable substitution

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_data = self._substitute_env_vars(config_dict)

        errors = self.validate_config(config_data)
        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}"
            )

        return config_data

    def to_project_config(self, config_data: dict[str, Any]) -> ProjectConfig:
        """Build the project model from a validated configuration dictionary."""
        try:
            return ProjectConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def validate_config(self, config_data: dict[str, Any]) -> list[str]:
        """
        Validate configuration against schema.

        Args:
            config_data: Configuration to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        try:
            ProjectConfig(**config_data)
        except ValidationError as e:
            for error in e.errors():
                field_path = ".".join(str(x) for x in error["loc"])
                errors.append(f"{field_path}: {error['msg']}")

        errors.extend(self._validate_settings(config_data.get("settings", {})))
        errors.extend(self._validate_repositories(config_data.get("repositories", {})))
        errors.extend(self._validate_custom(config_data.get("custom", [])))

        return errors

    def _substitute_env_vars(self, obj: Any) -> Any:
        """
        Recursively substitute environment variables in configuration.

        Args:
            obj: Configuration object (dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, dict):
            return {key: self._substitute_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._substitute_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            return self._substitute_env_vars_in_string(obj)
        else:
            return obj

    def _substitute_env_vars_in_string(self, text: str) -> str:
        """
        Substitute environment variables in a string.

        Supports formats:
        - ${VAR} - Required variable (raises error if not found)
        - ${VAR:-default} - Variable with default value
        - ${VAR:default} - Variable with default value (alternative syntax)

        Args:
            text: String potentially containing environment variable references

        Returns:
            String with environment variables substituted

        Raises:
            ConfigurationError: If required environment variable is missing
        """

        def replace_var(match):
            var_expr = match.group(1)

            if ":-" in var_expr:
                var_name, default_value = var_expr.split(":-", 1)
            elif ":" in var_expr and not var_expr.startswith(":"):
                var_name, default_value = var_expr.split(":", 1)
            else:
                var_name = var_expr
                default_value = None

            env_value = os.environ.get(var_name.strip())

            if env_value is not None:
                return env_value
            elif default_value is not None:
                return default_value
            else:
                raise ConfigurationError(
                    f"Required environment variable not found: {var_name}"
                )

        return self.env_var_pattern.sub(replace_var, text)

    def _validate_settings(self, settings: Any) -> list[str]:
        """Validate global settings."""
        errors = []
        if not isinstance(settings, dict):
            return errors

        stability = settings.get("minimum_stability", "dev")
        if stability not in STABILITIES:
            errors.append(
                f"settings.minimum_stability: must be one of {list(STABILITIES)}"
            )

        log_level = settings.get("log_level", "WARNING")
        if not isinstance(log_level, str) or log_level.upper() not in LOG_LEVELS:
            errors.append(f"settings.log_level: must be one of {list(LOG_LEVELS)}")

        for key in ("cache_files_ttl", "cache_files_maxsize", "listing_timeout", "http_timeout"):
            value = settings.get(key)
            if isinstance(value, int) and value < 0:
                errors.append(f"settings.{key}: must not be negative")

        return errors

    def _validate_repositories(self, repositories: Any) -> list[str]:
        """Validate builtin repository switches."""
        errors = []
        if not isinstance(repositories, dict):
            return errors

        for name, value in repositories.items():
            if name not in BUILTIN_REPOSITORY_NAMES:
                errors.append(
                    f"repositories.{name}: unknown builtin repository, must be one of "
                    f"{list(BUILTIN_REPOSITORY_NAMES)}"
                )
            if not isinstance(value, bool | dict):
                errors.append(f"repositories.{name}: must be a boolean or a table")

        return errors

    def _validate_custom(self, custom: Any) -> list[str]:
        """Validate custom repository definitions."""
        errors = []
        if not isinstance(custom, list):
            return errors

        for index, definition in enumerate(custom):
            if not isinstance(definition, dict):
                errors.append(f"custom.{index}: must be a table")
                continue

            if not definition.get("url"):
                errors.append(f"custom.{index}: missing required field 'url'")

            types = definition.get("package-types", definition.get("package_types"))
            if not types:
                errors.append(f"custom.{index}: missing required field 'package-types'")
            elif not isinstance(types, dict):
                errors.append(f"custom.{index}.package-types: must be a table")

            for key in ("provider-paths", "package-paths"):
                paths = definition.get(key, definition.get(key.replace("-", "_")))
                if paths is not None and not isinstance(paths, list):
                    errors.append(f"custom.{index}.{key}: must be a list")

        return errors

    def save_config(self, config_data: dict[str, Any], config_path: str | Path) -> None:
        """
        Save configuration to TOML file.

        Args:
            config_data: Configuration to save
            config_path: Path to save configuration file

        Raises:
            ConfigurationError: If configuration cannot be saved
        """
        try:
            config_path = Path(config_path).expanduser().resolve()
            config_path.parent.mkdir(parents=True, exist_ok=True)

            errors = self.validate_config(config_data)
            if errors:
                raise ConfigurationError(
                    f"Cannot save invalid configuration: {'; '.join(errors)}"
                )

            with open(config_path, "w") as f:
                toml.dump(config_data, f)

            logger.info(f"Configuration saved to {config_path}")

        except OSError as e:
            raise ConfigurationError(f"Error saving configuration file: {e}") from e

    def get_default_config_path(self) -> Path:
        """
        Get default configuration file path.

        Returns:
            Default configuration path
        """
        return Path.home() / ".svnrepo" / "config.toml"

    def create_example_config(self, config_path: str | Path) -> None:
        """
        Create example configuration file.

        Args:
            config_path: Path to create example configuration

        Raises:
            ConfigurationError: If example configuration cannot be created
        """
        example_config = {
            "version": "0.1.0",
            "settings": {
                "cache_dir": "~/.svnrepo/cache",
                "cache_files_ttl": 15552000,
                "minimum_stability": "dev",
                "listing_timeout": 300,
                "http_timeout": 15,
                "log_level": "WARNING",
            },
            "vendors": {
                "wpackagist-plugin": "wordpress-plugin",
                "wordpress-muplugin": False,
            },
            "repositories": {
                "plugins": True,
                "core": True,
                "themes": {"cache-ttl": 86400},
                "develop": False,
            },
            "custom": [
                {
                    "url": "https://svn.example.com/plugins/",
                    "provider-paths": ["/"],
                    "package-paths": ["/tags/", "/trunk"],
                    "package-types": {"wordpress-plugin": "example-plugin"},
                    "cache-ttl": 3600,
                }
            ],
        }

        self.save_config(example_config, config_path)
