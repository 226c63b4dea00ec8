"""
SVN repository implementation for svnrepo.

This package lists providers and versions from SVN trees, caches provider
listings and synthesizes package records.
"""

from .cache import CacheStore, ProviderCache
from .listing import ListingClient, parse_svn_list
from .manager import RepositoryManager, create_repository, register_repository_type
from .svn import ProvidesResult, ProvidesStatus, RepositoryState, SVNRepository
from .synthesizer import PackageSynthesizer, VersionEntry

__all__ = [
    "CacheStore",
    "ListingClient",
    "PackageSynthesizer",
    "ProviderCache",
    "ProvidesResult",
    "ProvidesStatus",
    "RepositoryManager",
    "RepositoryState",
    "SVNRepository",
    "VersionEntry",
    "create_repository",
    "parse_svn_list",
    "register_repository_type",
]
