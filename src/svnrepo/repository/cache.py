"""
Provider cache.

Provider listings of large SVN repositories take minutes to retrieve, so the
provider-name to URL map is persisted between runs. Writes are suppressed
when the content is unchanged, so the TTL keeps counting from the first time
a listing was stored.
"""

import hashlib
import json
import logging
import re
import time
from pathlib import Path
from typing import Any

from ..errors import CacheError
from ..hooks import Hook, NoopHook

logger = logging.getLogger(__name__)


def cache_dir_name(url: str) -> str:
    """Directory name for the cache of a repository rooted at ``url``."""
    return re.sub(r"[^a-z0-9.]", "-", url, flags=re.IGNORECASE)


class CacheStore:
    """Key-value byte store backed by files in one directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser()

    def _path(self, key: str) -> Path:
        return self.root / re.sub(r"[^a-z0-9._]", "-", key, flags=re.IGNORECASE)

    def read(self, key: str) -> str | None:
        """Read an entry; a missing or unreadable entry reads as None."""
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            contents = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Could not read cache entry {path}: {e}")
            return None
        logger.debug(f"Reading {path} from cache")
        return contents

    def write(self, key: str, contents: str) -> None:
        """
        Write an entry atomically.

        Raises:
            CacheError: If the entry cannot be written
        """
        path = self._path(key)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            temp_file = path.with_suffix(path.suffix + ".tmp")
            temp_file.write_text(contents, encoding="utf-8")
            temp_file.replace(path)
        except OSError as e:
            raise CacheError(f"Failed to write cache entry {path}: {e}", path=str(path)) from e
        logger.debug(f"Writing {path} into cache")

    def sha256(self, key: str) -> str | None:
        """SHA-256 of an entry's contents, or None if the entry is missing."""
        path = self._path(key)
        try:
            return hashlib.sha256(path.read_bytes()).hexdigest()
        except OSError:
            return None

    def remove(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def clear(self) -> int:
        """Remove every entry; returns the number removed."""
        if not self.root.is_dir():
            return 0
        removed = 0
        for path in self.root.iterdir():
            if path.is_file():
                path.unlink()
                removed += 1
        return removed

    def gc(self, ttl: int, max_size: int) -> int:
        """
        Remove stale entries.

        Entries older than ``ttl`` seconds are removed, then the oldest
        entries until the store is no larger than ``max_size`` bytes.

        Args:
            ttl: Maximum entry age in seconds (0 disables the age check)
            max_size: Maximum total size in bytes (0 disables the size check)

        Returns:
            Number of entries removed
        """
        if not self.root.is_dir():
            return 0

        entries = []
        for path in self.root.iterdir():
            if path.is_file():
                stat = path.stat()
                entries.append((stat.st_mtime, stat.st_size, path))

        removed = 0
        now = time.time()
        if ttl > 0:
            for mtime, size, path in list(entries):
                if now - mtime > ttl:
                    path.unlink(missing_ok=True)
                    entries.remove((mtime, size, path))
                    removed += 1

        if max_size > 0:
            entries.sort()
            total = sum(size for _, size, _ in entries)
            while entries and total > max_size:
                _, size, path = entries.pop(0)
                path.unlink(missing_ok=True)
                total -= size
                removed += 1

        if removed:
            logger.debug(f"Removed {removed} stale entries from {self.root}")
        return removed


def encode_providers(providers: dict[str, str]) -> str:
    """Serialize a provider map deterministically."""
    return json.dumps(providers, sort_keys=True, separators=(",", ":"))


class ProviderCache:
    """Persists the provider-name to base-URL map of one repository."""

    def __init__(
        self,
        store: CacheStore,
        cache_file: str = "providers.json",
        ttl: int = 0,
        handler: Hook | None = None,
    ) -> None:
        """
        Initialize provider cache.

        Args:
            store: Backing store
            cache_file: Key the provider map is stored under
            ttl: Seconds entries are kept; 0 disables persistence
            handler: Custom invalidation hook, called with the loaded map
                (or False), the store and the owning repository
        """
        self.store = store
        self.cache_file = cache_file
        self.ttl = ttl
        self.handler = handler or NoopHook()
        self.last_hash: str | None = None

    def load(self, owner: Any = None) -> dict[str, str] | None:
        """
        Load the provider map.

        Returns:
            The provider map, or None when a live listing is required
        """
        self.last_hash = self.store.sha256(self.cache_file) if self.ttl > 0 else None
        providers: dict[str, str] | bool = False

        if self.last_hash is not None:
            providers = self._decode(self.store.read(self.cache_file))

        if self.handler:
            providers = self.handler(providers, self.store, owner)

        if isinstance(providers, dict):
            logger.debug(f"Using {len(providers)} cached providers from {self.cache_file}")
            return providers
        return None

    def save(self, providers: dict[str, str]) -> bool:
        """
        Write the provider map if persistence is on and it changed.

        Returns:
            True if the entry was written
        """
        if self.ttl <= 0:
            return False

        contents = encode_providers(providers)
        if hashlib.sha256(contents.encode("utf-8")).hexdigest() == self.last_hash:
            logger.debug(f"Provider cache {self.cache_file} unchanged, not writing")
            return False

        try:
            self.store.write(self.cache_file, contents)
        except CacheError as e:
            logger.error(f"Could not save provider cache: {e}")
            return False
        self.last_hash = hashlib.sha256(contents.encode("utf-8")).hexdigest()
        return True

    def _decode(self, raw: str | None) -> dict[str, str] | bool:
        if raw is None:
            return False
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Ignoring corrupt provider cache {self.cache_file}: {e}")
            return False
        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            logger.warning(f"Ignoring malformed provider cache {self.cache_file}")
            return False
        return data
