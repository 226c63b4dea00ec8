"""
Version normalization for SVN path fragments.

Tag directories in SVN repositories are named by humans, so they do not
always parse as resolver versions. This module validates raw names against
the resolver version grammar (semantic-version-like numbers with stability
modifiers, dates, and ``dev-`` branches) and sanitizes the ones that do not.
"""

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK = "dev-default"

# Lower value means more stable
STABILITIES = {
    "stable": 0,
    "RC": 5,
    "beta": 10,
    "alpha": 15,
    "dev": 20,
}

MODIFIER_TOKENS = (
    "stable", "beta", "b", "RC", "alpha", "a", "patch", "pl", "p",
    "dev", "master", "trunk", "default",
)

_MODIFIER = r"[._-]?(?:(stable|beta|b|RC|alpha|a|patch|pl|p)((?:[.-]?\d+)*)?)?([.-]?dev)?"
_STABILITY_FLAG = re.compile(r"@(?:stable|RC|beta|alpha|dev)$", re.IGNORECASE)
_ALIAS = re.compile(r"^([^,\s]+) +as +([^,\s]+)$")
_BUILD_METADATA = re.compile(r"^([^,\s+]+)\+[^\s]+$")
_CLASSICAL = re.compile(r"^v?(\d{1,5})(\.\d+)?(\.\d+)?(\.\d+)?" + _MODIFIER + r"$", re.IGNORECASE)
_DATETIME = re.compile(r"^v?(\d{4}(?:[.:-]?\d{2}){1,6}(?:[.:-]?\d{1,3})?)" + _MODIFIER + r"$", re.IGNORECASE)
_DEV_SUFFIX = re.compile(r"^(.*?)[.-]?dev$", re.IGNORECASE)
_NUMERIC_BRANCH = re.compile(r"^v?(\d+)(\.(?:\d+|[xX*]))?(\.(?:\d+|[xX*]))?(\.(?:\d+|[xX*]))?$", re.IGNORECASE)
_STABILITY_SUFFIX = re.compile(_MODIFIER + r"(?:\+.*)?$", re.IGNORECASE)

_DISALLOWED_CHARS = re.compile(r"[^.\-_a-zA-Z0-9]")
_NON_MODIFIER_WORDS = re.compile(
    r"\b(?!(?:" + "|".join(MODIFIER_TOKENS) + r")\b)[a-z]+",
    re.IGNORECASE,
)


class InvalidVersionError(ValueError):
    """Raised when a string is not a valid resolver version."""


def _expand_stability(stability: str) -> str:
    stability = stability.lower()
    if stability == "a":
        return "alpha"
    if stability == "b":
        return "beta"
    if stability in ("p", "pl"):
        return "patch"
    if stability == "rc":
        return "RC"
    return stability


def _normalize_branch(name: str) -> str:
    name = name.strip()
    if name in ("master", "trunk", "default"):
        return f"dev-{name}"

    match = _NUMERIC_BRANCH.match(name)
    if match:
        parts = []
        for index in range(1, 5):
            part = match.group(index)
            part = (part or "x").replace("*", "x").replace("X", "x")
            parts.append(part.lstrip(".").replace("x", "9999999"))
        return ".".join(parts) + "-dev"

    return f"dev-{name}"


def parse_version(version: str) -> str:
    """
    Normalize a version string to the resolver's canonical form.

    Args:
        version: Version string, e.g. ``1.2``, ``v2.0-beta1``, ``dev-trunk``

    Returns:
        Canonical version, e.g. ``1.2.0.0``, ``2.0.0.0-beta1``, ``dev-trunk``

    Raises:
        InvalidVersionError: If the string does not follow the grammar
    """
    original = version
    version = version.strip()

    alias = _ALIAS.match(version)
    if alias:
        version = alias.group(1)

    flag = _STABILITY_FLAG.search(version)
    if flag:
        version = version[: flag.start()]

    if version in ("master", "trunk", "default"):
        version = f"dev-{version}"

    if version.lower().startswith("dev-"):
        return "dev-" + version[4:]

    build = _BUILD_METADATA.match(version)
    if build:
        version = build.group(1)

    match = _CLASSICAL.match(version)
    if match:
        normalized = match.group(1) + "".join(
            match.group(i) or ".0" for i in (2, 3, 4)
        )
        index = 5
    else:
        match = _DATETIME.match(version)
        if match:
            normalized = re.sub(r"\D", ".", match.group(1))
            index = 2

    if match:
        modifier = match.group(index)
        if modifier:
            if modifier == "stable":
                return normalized
            number = match.group(index + 1) or ""
            normalized += "-" + _expand_stability(modifier) + number.lstrip(".-")
        if match.group(index + 2):
            normalized += "-dev"
        return normalized

    dev = _DEV_SUFFIX.match(version)
    if dev:
        branch = _normalize_branch(dev.group(1))
        if not branch.startswith("dev-"):
            return branch

    raise InvalidVersionError(f'Invalid version string "{original}"')


def is_valid_version(version: str) -> bool:
    """Check whether a string passes strict version validation."""
    try:
        parse_version(version)
    except InvalidVersionError:
        return False
    return True


def fix_version(version: str, fallback: str = "") -> str:
    """
    Try to fix a version so that the resolver accepts it.

    A version that already validates is returned unchanged. Otherwise
    disallowed characters are stripped, then any run of letters that is not
    a stability or branch modifier, and the result is validated again.

    Args:
        version: Raw version fragment taken from an SVN path
        fallback: Value returned when the version cannot be fixed

    Returns:
        A valid version string, or ``fallback``
    """
    if is_valid_version(version):
        return version

    sanitized = _DISALLOWED_CHARS.sub("", version)
    sanitized = _NON_MODIFIER_WORDS.sub("", sanitized)

    if is_valid_version(sanitized):
        logger.debug(f"Sanitized version {version!r} to {sanitized!r}")
        return sanitized

    logger.debug(f"Could not fix version {version!r}, using {fallback!r}")
    return fallback


def filter_trunk(version: str, *args: object) -> str:
    """Default version filter: ``trunk`` is the development head."""
    return re.sub(r"^trunk$", "dev-trunk", version)


def parse_stability(version: str) -> str:
    """
    Determine the stability tier of a version.

    Args:
        version: Version string (raw or normalized)

    Returns:
        One of ``stable``, ``RC``, ``beta``, ``alpha``, ``dev``
    """
    version = re.sub(r"#.+$", "", version)
    if version.startswith("dev-") or version.endswith("-dev"):
        return "dev"

    match = _STABILITY_SUFFIX.search(version.lower())
    if match is None:
        return "stable"
    if match.group(3):
        return "dev"

    modifier = match.group(1)
    if modifier in ("beta", "b"):
        return "beta"
    if modifier in ("alpha", "a"):
        return "alpha"
    if modifier == "rc":
        return "RC"
    return "stable"


def is_stability_acceptable(version: str, minimum_stability: str = "dev") -> bool:
    """Check whether a version is at least as stable as ``minimum_stability``."""
    try:
        limit = STABILITIES[minimum_stability]
    except KeyError as e:
        raise ValueError(f"Unknown stability: {minimum_stability}") from e
    return STABILITIES[parse_stability(version)] <= limit


class VersionNormalizer:
    """Turns raw SVN path fragments into resolver-parsable versions."""

    def __init__(self, fallback: str = DEFAULT_FALLBACK) -> None:
        self.fallback = fallback

    def fix(self, raw: str) -> str:
        """Validate or sanitize ``raw``; never raises."""
        return fix_version(raw, self.fallback)

    def normalize(self, raw: str) -> str:
        """Fix ``raw`` and apply the default ``trunk`` convention."""
        return filter_trunk(self.fix(raw))

    def canonical(self, version: str) -> str:
        """Canonical form of an already fixed version."""
        return parse_version(version)


def normalize_version(raw: str, fallback: str = DEFAULT_FALLBACK) -> str:
    """Module-level shortcut for ``VersionNormalizer(fallback).normalize(raw)``."""
    return VersionNormalizer(fallback).normalize(raw)
