"""
Package records produced by SVN repositories.

A package record is one installable version of a provider under one vendor.
Records are built from plain dictionaries (the shape used by repository
defaults and overrides) and are handed to the dependency resolver.
"""

from dataclasses import dataclass, field
from typing import Any

from .versioning import InvalidVersionError, parse_stability, parse_version


@dataclass
class Source:
    """VCS location of a package version."""
    url: str
    reference: str
    type: str = "svn"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "url": self.url, "reference": self.reference}


@dataclass
class Dist:
    """Archive location of a package version."""
    url: str
    type: str = "zip"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "url": self.url}


@dataclass(frozen=True)
class Link:
    """A same-version equivalence between two vendor-qualified names."""
    source: str
    target: str
    constraint: str
    description: str
    pretty_constraint: str | None = None

    def __str__(self) -> str:
        return f"{self.source} {self.description} {self.target} ({self.pretty_constraint or self.constraint})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "constraint": self.constraint,
            "description": self.description,
        }


@dataclass
class PackageRecord:
    """A synthesized package version."""
    name: str
    version: str
    version_normalized: str
    type: str
    source: Source
    dist: Dist | None = None
    description: str | None = None
    authors: list[dict[str, str]] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    homepage: str | None = None
    support: dict[str, str] = field(default_factory=dict)
    require: dict[str, str] = field(default_factory=dict)
    abandoned: bool | str = False
    replaces: list[Link] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def vendor(self) -> str:
        return self.name.split("/", 1)[0]

    @property
    def short_name(self) -> str:
        return self.name.split("/", 1)[-1]

    @property
    def stability(self) -> str:
        return parse_stability(self.version)

    @property
    def source_reference(self) -> str:
        return self.source.reference

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackageRecord":
        """
        Build a record from its dictionary form.

        Args:
            data: Dictionary with at least ``name``, ``version``, ``type`` and
                ``source``

        Returns:
            The package record

        Raises:
            ValueError: If required fields are missing or malformed
        """
        try:
            name = data["name"]
            version = str(data["version"])
            source = data["source"]
        except KeyError as e:
            raise ValueError(f"missing required field {e}") from e

        if not isinstance(name, str) or name.count("/") != 1:
            raise ValueError(f"invalid package name {name!r}")
        if not isinstance(source, dict) or not source.get("url"):
            raise ValueError("source must be a mapping with a url")
        if not source.get("reference"):
            raise ValueError("source reference cannot be empty")

        try:
            version_normalized = parse_version(version)
        except InvalidVersionError as e:
            raise ValueError(str(e)) from e

        dist = data.get("dist")
        if dist and (not isinstance(dist, dict) or not dist.get("url")):
            raise ValueError("dist must be a mapping with a url")

        try:
            return cls(
                name=name,
                version=version,
                version_normalized=version_normalized,
                type=data.get("type") or "library",
                source=Source(
                    url=source["url"],
                    reference=source["reference"],
                    type=source.get("type", "svn"),
                ),
                dist=Dist(url=dist["url"], type=dist.get("type", "zip")) if dist else None,
                description=data.get("description"),
                authors=list(data.get("authors", [])),
                keywords=list(data.get("keywords", [])),
                homepage=data.get("homepage"),
                support=dict(data.get("support", {})),
                require=dict(data.get("require", {})),
                abandoned=data.get("abandoned", False),
                extra=dict(data.get("extra", {})),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"malformed package field: {e}") from e

    def set_dist(self, url: str, dist_type: str = "zip") -> None:
        self.dist = Dist(url=url, type=dist_type)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "version_normalized": self.version_normalized,
            "type": self.type,
            "source": self.source.to_dict(),
        }
        if self.dist:
            data["dist"] = self.dist.to_dict()
        for key in ("description", "homepage"):
            if getattr(self, key):
                data[key] = getattr(self, key)
        for key in ("authors", "keywords", "support", "require", "extra"):
            if getattr(self, key):
                data[key] = getattr(self, key)
        if self.abandoned:
            data["abandoned"] = self.abandoned
        if self.replaces:
            data["replace"] = {link.target: link.pretty_constraint or link.constraint for link in self.replaces}
        return data
