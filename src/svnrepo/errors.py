"""
svnrepo error types and codes.

This module defines the error taxonomy for the virtual SVN package
repository: configuration errors raised at activation, transport errors
raised by listing and metadata calls, and the repository-level errors that
wrap them with the failing URL or provider.
"""

from enum import IntEnum
from typing import Any


class SvnRepoErrorCode(IntEnum):
    """svnrepo error codes, grouped by category."""

    INTERNAL_ERROR = 1

    # Transport errors (1xxx)
    TRANSPORT_ERROR = 1000
    LISTING_FAILED = 1001
    LISTING_TIMEOUT = 1002
    METADATA_UNAVAILABLE = 1003

    # Configuration errors (2xxx)
    CONFIGURATION_ERROR = 2000
    INVALID_URL = 2001
    MISSING_VENDORS = 2002
    UNKNOWN_REPOSITORY_TYPE = 2003

    # Cache errors (3xxx)
    CACHE_ERROR = 3000

    # Repository errors (4xxx)
    REPOSITORY_ERROR = 4000
    PROVIDER_LISTING_FAILED = 4001
    VERSION_LISTING_FAILED = 4002

    # Package synthesis errors (5xxx)
    FILTER_HOOK_ERROR = 5000
    PACKAGE_CONSTRUCTION_FAILED = 5001


class SvnRepoError(Exception):
    """Base exception for svnrepo errors."""

    def __init__(
        self,
        code: SvnRepoErrorCode,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize svnrepo error.

        Args:
            code: Error code from SvnRepoErrorCode enum
            message: Human-readable error message
            data: Additional error context (optional)
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = {key: value for key, value in (data or {}).items() if value is not None}

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to a serializable dictionary.

        Returns:
            Dictionary with code, message and context data
        """
        return {
            "code": int(self.code),
            "name": self.code.name,
            "message": self.message,
            "data": self.data,
        }

    def __repr__(self) -> str:
        """String representation of error."""
        return f"{type(self).__name__}({self.code.name}, {self.message!r}, data={self.data})"


class ConfigurationError(SvnRepoError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        code: SvnRepoErrorCode = SvnRepoErrorCode.CONFIGURATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(code, message, kwargs)


class InvalidURLError(ConfigurationError):
    """No usable base URL was configured for a repository."""

    def __init__(self, urls: Any, repository: str | None = None) -> None:
        message = f"No valid URLs for SVN repository: {urls!r}"
        if repository:
            message = f"No valid URLs for SVN repository '{repository}': {urls!r}"
        super().__init__(
            message, SvnRepoErrorCode.INVALID_URL, urls=urls, repository=repository
        )


class TransportError(SvnRepoError):
    """Transport-related errors."""

    def __init__(
        self,
        message: str,
        code: SvnRepoErrorCode = SvnRepoErrorCode.TRANSPORT_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(code, message, kwargs)

    @property
    def url(self) -> str | None:
        return self.data.get("url")


class ListingError(TransportError):
    """An `svn` command exited with an error."""

    def __init__(
        self,
        url: str,
        reason: str,
        returncode: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            f"Failed to list {url}: {reason}",
            SvnRepoErrorCode.LISTING_FAILED,
            url=url,
            reason=reason,
            returncode=returncode,
            **kwargs,
        )


class ListingTimeoutError(TransportError):
    """An `svn` command did not finish before its deadline."""

    def __init__(self, url: str, timeout: float, **kwargs: Any) -> None:
        super().__init__(
            f"Listing {url} timed out after {timeout}s",
            SvnRepoErrorCode.LISTING_TIMEOUT,
            url=url,
            timeout=timeout,
            **kwargs,
        )


class MetadataUnavailableError(TransportError):
    """A metadata API request failed or returned undecodable data."""

    def __init__(self, url: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            f"Could not retrieve {url}: {reason}",
            SvnRepoErrorCode.METADATA_UNAVAILABLE,
            url=url,
            reason=reason,
            **kwargs,
        )


class CacheError(SvnRepoError):
    """Cache-related errors."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(SvnRepoErrorCode.CACHE_ERROR, message, kwargs)


class RepositoryError(SvnRepoError):
    """Repository-related errors."""

    def __init__(
        self,
        message: str,
        code: SvnRepoErrorCode = SvnRepoErrorCode.REPOSITORY_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(code, message, kwargs)


class ProviderListingError(RepositoryError):
    """The provider listing for a repository could not be retrieved."""

    def __init__(self, url: str, reason: str, repository: str | None = None) -> None:
        message = f"SVN Error: Could not retrieve provider listing from {url}. {reason}"
        super().__init__(
            message,
            SvnRepoErrorCode.PROVIDER_LISTING_FAILED,
            url=url,
            repository=repository,
        )


class VersionListingError(RepositoryError):
    """The version listing for one provider could not be retrieved."""

    def __init__(self, package_name: str, url: str, reason: str) -> None:
        super().__init__(
            f"SVN Error: Could not retrieve package listing for {package_name}. {reason}",
            SvnRepoErrorCode.VERSION_LISTING_FAILED,
            package=package_name,
            url=url,
        )


class FilterHookError(SvnRepoError):
    """A package filter hook failed in a way that still allows the package."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(SvnRepoErrorCode.FILTER_HOOK_ERROR, message, kwargs)


class PackageConstructionError(SvnRepoError):
    """A package record could not be built for one version."""

    def __init__(self, package_name: str, version: str, reason: str) -> None:
        super().__init__(
            SvnRepoErrorCode.PACKAGE_CONSTRUCTION_FAILED,
            f"Could not build package {package_name} {version}: {reason}",
            {"package": package_name, "version": version, "reason": reason},
        )
