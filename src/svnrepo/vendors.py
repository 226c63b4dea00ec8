"""
Virtual vendor resolution.

Vendors are virtual namespaces: the vendor a package is requested under
decides the package type it is installed as. A repository declares default
vendors per type; users may add alias vendors and disable vendors.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import ConfigurationError, SvnRepoErrorCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VendorMap:
    """Resolved vendor configuration for one repository instance."""

    types: Mapping[str, tuple[str, ...]]
    vendors: Mapping[str, str] = field(init=False)

    def __post_init__(self) -> None:
        index: dict[str, str] = {}
        for package_type, vendors in self.types.items():
            for vendor in vendors:
                index.setdefault(vendor, package_type)
        object.__setattr__(self, "types", MappingProxyType(dict(self.types)))
        object.__setattr__(self, "vendors", MappingProxyType(index))

    def __contains__(self, vendor: object) -> bool:
        return vendor in self.vendors

    def __len__(self) -> int:
        return len(self.vendors)

    def type_of(self, vendor: str) -> str | None:
        """Package type for a vendor, or None if the vendor is not ours."""
        return self.vendors.get(vendor)

    @property
    def default_vendor(self) -> str:
        """The first vendor, used for display in provider listings."""
        return next(iter(self.vendors))

    def aliases_of(self, vendor: str) -> list[str]:
        """Other vendors that map to the same package type as ``vendor``."""
        package_type = self.type_of(vendor)
        if package_type is None:
            return []
        return [name for name in self.types[package_type] if name != vendor]


def _as_vendor_list(value: str | Iterable[str]) -> list[str]:
    if isinstance(value, str):
        return [value]
    return list(value)


def split_user_vendors(user_vendors: Mapping[str, Any] | None) -> tuple[dict[str, str], set[str]]:
    """
    Split a user vendor mapping into aliases and disabled vendors.

    Args:
        user_vendors: ``{vendor: existing_vendor_or_type}``; a falsy value
            disables the vendor

    Returns:
        Tuple of (aliases, disabled)
    """
    aliases: dict[str, str] = {}
    disabled: set[str] = set()
    for vendor, target in (user_vendors or {}).items():
        if target:
            aliases[vendor] = str(target)
        else:
            disabled.add(vendor)
    return aliases, disabled


def resolve_vendors(
    default_types: Mapping[str, str | Iterable[str]],
    aliases: Mapping[str, str] | None = None,
    disabled: Iterable[str] | None = None,
) -> VendorMap:
    """
    Merge repository default vendors with user aliases and disablements.

    An alias applies to a type when its target is one of the type's default
    vendors, or the type name itself.

    Args:
        default_types: ``{type: vendor or [vendors]}`` declared by the repository
        aliases: ``{alias_vendor: target}`` declared by the user
        disabled: vendors the user turned off

    Returns:
        The resolved vendor map

    Raises:
        ConfigurationError: If the repository declares no types
    """
    if not default_types:
        raise ConfigurationError(
            "Repository has no package types / vendors defined",
            SvnRepoErrorCode.MISSING_VENDORS,
        )

    aliases = aliases or {}
    disabled = set(disabled or ())
    resolved: dict[str, tuple[str, ...]] = {}

    for package_type, defaults in default_types.items():
        default_vendors = _as_vendor_list(defaults)
        alias_vendors = [
            alias for alias, target in aliases.items()
            if target in default_vendors or target == package_type
        ]
        vendors = list(dict.fromkeys(default_vendors + alias_vendors))
        resolved[package_type] = tuple(v for v in vendors if v not in disabled)

    vendor_map = VendorMap(resolved)
    if not len(vendor_map):
        raise ConfigurationError(
            "All vendors of the repository are disabled",
            SvnRepoErrorCode.MISSING_VENDORS,
            types=list(default_types),
        )

    logger.debug(f"Resolved vendors: {dict(vendor_map.vendors)}")
    return vendor_map


class VendorResolver:
    """Resolves vendor maps from a user vendor configuration.

    One resolver belongs to one activation; it does not share state between
    instances, so two managers with different user vendors never see each
    other's aliases.
    """

    def __init__(self, user_vendors: Mapping[str, Any] | None = None) -> None:
        self.aliases, self.disabled = split_user_vendors(user_vendors)

    def resolve(self, default_types: Mapping[str, str | Iterable[str]]) -> VendorMap:
        return resolve_vendors(default_types, self.aliases, self.disabled)
