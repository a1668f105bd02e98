"""
clouddns/repositories/ip_cache_repository.py

Responsibility: Persists the last successfully applied address per DNS record
as one flat file per record under the cache directory.
Does NOT: decide when to update, make HTTP calls, or delete cache entries.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path

from clouddns.cloudflare.dns_provider import DnsRecord
from clouddns.exceptions import CacheError

logger = logging.getLogger(__name__)

# Every maximal run of characters outside [A-Za-z0-9-] collapses to one "_"
_UNSAFE_RUN = re.compile(r"[^A-Za-z0-9-]+")


def sanitize_name(text: str) -> str:
    """
    Turns a free-form name into a filesystem-safe fragment.

    ASCII letters, digits and hyphens are kept; every run of other
    characters becomes a single underscore. Distinct names may map to the
    same fragment, which only costs an extra cache miss.

    Args:
        text: Any string, e.g. "home.example.com".

    Returns:
        The sanitized fragment, e.g. "home_example_com".
    """
    return _UNSAFE_RUN.sub("_", text)


def cache_key(record: DnsRecord, record_type: str) -> str:
    """
    Returns the cache file name for a record within an address family.

    Args:
        record: The configured DNS record.
        record_type: "A" or "AAAA".

    Returns:
        A file name such as "cached_ip_A_home_example_com_abc123.txt".
    """
    safe_key = f"{record_type}_{sanitize_name(record.name)}_{sanitize_name(record.record_id)}"
    return f"cached_ip_{safe_key}.txt"


class IpCacheRepository:
    """
    Reads and writes cached addresses, one file per cache key.

    A repository built without a base path is disabled: reads always miss
    and writes are rejected. There is no locking; within one run every
    record task owns a distinct key.

    File I/O is blocking and is offloaded via asyncio.to_thread so sibling
    record tasks keep running.
    """

    def __init__(self, base_path: str | os.PathLike[str] | None) -> None:
        """
        Initialises the repository.

        Args:
            base_path: Cache directory. None or "" disables caching.
        """
        self._base_path = Path(base_path) if base_path else None

    @property
    def enabled(self) -> bool:
        return self._base_path is not None

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def read(self, key: str) -> str | None:
        """
        Returns the cached address for `key`.

        Args:
            key: A file name produced by cache_key().

        Returns:
            The trimmed cached address, or None when caching is disabled or
            the key has never been written.

        Raises:
            CacheError: If the file exists but cannot be read.
        """
        if self._base_path is None:
            return None
        return await asyncio.to_thread(self._read_file, self._base_path / key)

    async def write(self, key: str, address: str) -> None:
        """
        Stores `address` as the cached value for `key`.

        The file is replaced atomically so a reader never sees a partial
        address.

        Args:
            key: A file name produced by cache_key().
            address: The address that was just applied at the provider.

        Returns:
            None

        Raises:
            CacheError: If caching is disabled or the file cannot be written.
        """
        if self._base_path is None:
            raise CacheError("Cannot write cache file: no cache directory configured.")
        await asyncio.to_thread(self._write_file, self._base_path, key, address.strip())

    # ---------------------------------------------------------------------------
    # Internal helpers (sync, run via asyncio.to_thread)
    # ---------------------------------------------------------------------------

    @staticmethod
    def _read_file(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            # First run for this record
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheError(f"Failed to read cache file {path}: {exc}") from exc

    @staticmethod
    def _write_file(base_path: Path, key: str, content: str) -> None:
        temp_path: str | None = None
        try:
            base_path.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=base_path, prefix=".cached_ip_", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_path, 0o644)
            os.replace(temp_path, base_path / key)
            temp_path = None
        except OSError as exc:
            raise CacheError(f"Failed to write cache file {base_path / key}: {exc}") from exc
        finally:
            if temp_path is not None:
                try:
                    os.unlink(temp_path)
                except OSError:
                    logger.debug("Could not remove temp cache file %s", temp_path)
