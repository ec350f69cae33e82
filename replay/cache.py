"""Local filesystem cache for partitions fetched from remote sources.

Cache keys mirror the remote location, e.g.:
    s3/net.energyhub.assets/public/audit-data/2016/01/01.jsonl.gz
    gs/replay-data/2016/01/01.jsonl.gz
    https/example.com/data/2016/01/01.jsonl.gz
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def cache_key(path: str) -> str:
    """Derive a cache key from a remote partition path.

    "s3://bucket/a/b.jsonl.gz" becomes "s3/bucket/a/b.jsonl.gz".
    """
    scheme, sep, rest = path.partition("://")
    if not sep:
        return path.lstrip("/")
    parts = [part for part in rest.split("/") if part not in ("", ".", "..")]
    return "/".join([scheme, *parts])


class PartitionCache:
    """Byte cache rooted at a local directory."""

    def __init__(self, local_root: Path | str = "data/cache") -> None:
        self.local_root = Path(local_root)

    # =========================================================================
    # Public API
    # =========================================================================

    def get_bytes(self, key: str) -> bytes | None:
        """Get cached partition bytes by key, or None on a miss."""
        local = self._local_path(key)
        if local.exists():
            logger.debug(f"Cache hit: {key}")
            return local.read_bytes()
        return None

    def put_bytes(self, key: str, content: bytes) -> None:
        """Write partition bytes to the cache.

        The bytes go to a temporary file beside the entry, which is then
        renamed into place. An interrupted write never leaves a truncated
        entry behind.

        Raises:
            OSError: If the cache directory cannot be written.
        """
        local = self._local_path(key)
        local.parent.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(
            dir=local.parent, prefix=f".{local.name}.", suffix=".tmp", delete=False
        )
        tmp_path = Path(tmp.name)
        try:
            with tmp:
                tmp.write(content)
            tmp_path.replace(local)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"Cached {len(content)} bytes: {key}")

    def has_local(self, key: str) -> bool:
        """Check whether a key exists in the cache."""
        return self._local_path(key).exists()

    def local_path(self, key: str) -> Path:
        """Return the local filesystem path for a cache key."""
        return self._local_path(key)

    # =========================================================================
    # Internal
    # =========================================================================

    def _local_path(self, key: str) -> Path:
        return self.local_root / key
