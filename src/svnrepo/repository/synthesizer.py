"""
Package synthesis.

Turns one discovered version of a provider into a ``PackageRecord``: the
base record is merged with repository defaults and overrides, linked to the
same provider under alias vendors, and passed through the package filter.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..errors import FilterHookError, PackageConstructionError, TransportError
from ..hooks import Hook, NoopHook
from ..package import Link, PackageRecord
from ..vendors import VendorMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionEntry:
    """A version discovered under a provider.

    ``path`` is the sub-path of the provider URL the source URL points at;
    ``reference`` is relative to that URL.
    """
    version: str
    reference: str
    path: str = ""

    def source_url(self, provider_url: str) -> str:
        if self.path:
            return f"{provider_url}/{self.path}/"
        return f"{provider_url}/"


class PackageSynthesizer:
    """Builds package records for one repository."""

    def __init__(
        self,
        vendor_map: VendorMap,
        defaults: Mapping[str, Any] | None = None,
        overrides: Mapping[str, Any] | None = None,
        package_filter: Hook | None = None,
        owner: Any = None,
    ) -> None:
        """
        Initialize package synthesizer.

        Args:
            vendor_map: Resolved vendors of the repository
            defaults: Fields filled in where the base record has none
            overrides: Fields that replace the base record's
            package_filter: Hook called with each finished record and ``owner``
            owner: Repository passed to the package filter
        """
        self.vendor_map = vendor_map
        self.defaults = dict(defaults or {})
        self.overrides = dict(overrides or {})
        self.package_filter = package_filter or NoopHook()
        self.owner = owner

    def base_record(
        self, provider_name: str, entry: VersionEntry, vendor: str, provider_url: str
    ) -> dict[str, Any]:
        data = {
            "name": f"{vendor}/{provider_name}",
            "version": entry.version,
            "type": self.vendor_map.type_of(vendor),
            "source": {
                "type": "svn",
                "url": entry.source_url(provider_url),
                "reference": entry.reference or "/",
            },
        }
        data = {**self.defaults, **data}
        return {**data, **self.overrides}

    def synthesize(
        self, provider_name: str, entry: VersionEntry, vendor: str, provider_url: str
    ) -> PackageRecord:
        """
        Build the record for one version of a provider.

        Args:
            provider_name: Provider name without vendor
            entry: Version and reference of the record
            vendor: Vendor the record is requested under
            provider_url: Base URL of the provider

        Returns:
            The finished package record

        Raises:
            PackageConstructionError: If the record cannot be built or the
                package filter fails unrecoverably
        """
        data = self.base_record(provider_name, entry, vendor, provider_url)

        try:
            package = PackageRecord.from_dict(data)
        except ValueError as e:
            raise PackageConstructionError(data.get("name", provider_name), entry.version, str(e)) from e

        package.replaces = self.replaces_links(package, provider_name)

        try:
            self.package_filter(package, self.owner)
        except (FilterHookError, TransportError) as e:
            logger.warning(f"Package filter failed for {package.name} {package.version}: {e}")
        except Exception as e:
            raise PackageConstructionError(package.name, package.version, f"package filter raised {e!r}") from e

        return package

    def replaces_links(self, package: PackageRecord, provider_name: str) -> list[Link]:
        """Links from ``package`` to the same provider under every alias vendor."""
        if len(self.vendor_map) <= 1:
            return []

        return [
            Link(
                source=package.name,
                target=f"{alias}/{provider_name}",
                constraint=f"= {package.version_normalized}",
                description=f"'{self.vendor_map.type_of(alias)}' alias for",
                pretty_constraint=package.version,
            )
            for alias in self.vendor_map.aliases_of(package.vendor)
        ]
