"""Partition sources: fetch raw partition bytes from disk or object storage.

A source answers one question: given a partition path, what are its bytes?
A missing partition is reported as None so callers can tell "no data for
that day" apart from a failed read, which raises SourceIOError.

Supported data source prefixes:
    /tmp/ehub_data                      local directory
    gs://bucket/prefix                  Google Cloud Storage
    s3://bucket/prefix                  public S3 bucket, over HTTPS
    https://host/prefix                 any HTTP(S) server
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx

from replay.cache import PartitionCache, cache_key
from replay.config import Settings
from replay.errors import SourceIOError

logger = logging.getLogger(__name__)


def split_bucket_path(path: str) -> tuple[str, str]:
    """Split "scheme://bucket/key" into (bucket, key).

    Raises:
        SourceIOError: If the path has no bucket or no key.
    """
    _scheme, _sep, rest = path.partition("://")
    bucket, _sep, key = rest.partition("/")
    if not bucket or not key:
        raise SourceIOError(path, f"the file ({path}) path was invalid")
    return bucket, key


class PartitionSource:
    """Base class for partition sources."""

    async def fetch(self, path: str) -> bytes | None:
        """Fetch the raw bytes of a partition.

        Args:
            path: Full partition path, e.g. "/tmp/ehub_data/2016/01/01.jsonl.gz".

        Returns:
            The partition bytes, or None if the partition does not exist.

        Raises:
            SourceIOError: If the partition exists but cannot be read.
        """
        raise NotImplementedError


class LocalSource(PartitionSource):
    """Read partitions from the local filesystem."""

    async def fetch(self, path: str) -> bytes | None:
        file_path = Path(path)
        try:
            data = await asyncio.to_thread(file_path.read_bytes)
        except FileNotFoundError:
            logger.debug(f"Local file not found: {path}")
            return None
        except OSError as e:
            raise SourceIOError(path, f"error reading file ({path}): {e}") from e
        logger.debug(f"Read {len(data)} bytes from {path}")
        return data


class GCSSource(PartitionSource):
    """Read partitions from Google Cloud Storage (gs://bucket/key)."""

    def __init__(self, client: Any = None) -> None:
        self._client = client

    def _get_client(self, path: str) -> Any:
        """Lazily create the storage client on first use."""
        if self._client is not None:
            return self._client
        try:
            from google.cloud.storage import Client

            self._client = Client()
        except Exception as e:
            raise SourceIOError(
                path, f"setting up Google Cloud Storage client: {e}"
            ) from e
        return self._client

    async def fetch(self, path: str) -> bytes | None:
        bucket_name, key = split_bucket_path(path)
        client = self._get_client(path)
        try:
            blob = client.bucket(bucket_name).blob(key)
            if not await asyncio.to_thread(blob.exists):
                logger.debug(f"GCS object not found: {path}")
                return None
            data: bytes = await asyncio.to_thread(blob.download_as_bytes)
        except Exception as e:
            raise SourceIOError(path, f"error reading GCS object ({path}): {e}") from e
        logger.debug(f"Downloaded {len(data)} bytes from {path}")
        return data


class HTTPSource(PartitionSource):
    """Read partitions over HTTP(S). A 404 response means not found."""

    def __init__(
        self,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            timeout: HTTP request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.timeout = timeout
        self.transport = transport

    def get_url(self, path: str) -> str:
        return path

    async def fetch(self, path: str) -> bytes | None:
        url = self.get_url(path)
        logger.debug(f"Fetching {url}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(url, follow_redirects=True)
                if response.status_code == 404:
                    logger.debug(f"Not found: {url}")
                    return None
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceIOError(
                path, f"HTTP error fetching ({path}): {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise SourceIOError(path, f"error fetching ({path}): {e}") from e
        logger.debug(f"Downloaded {len(response.content)} bytes from {url}")
        return response.content


class S3Source(HTTPSource):
    """Read partitions from a public S3 bucket (s3://bucket/key).

    Objects are requested anonymously over HTTPS. Buckets are addressed
    virtual-hosted style, except dotted names such as "net.energyhub.assets",
    which the wildcard certificate of the regional endpoint does not cover
    and which are addressed path style.

    S3 answers 403 rather than 404 for a missing key when the bucket does
    not allow anonymous listing, so a missing day then raises SourceIOError.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.region = region

    def get_url(self, path: str) -> str:
        """Map "s3://bucket/key" to its HTTPS endpoint URL."""
        bucket, key = split_bucket_path(path)
        if "." in bucket:
            return f"https://s3.{self.region}.amazonaws.com/{bucket}/{key}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{key}"


class CachedSource(PartitionSource):
    """Serve partitions from a local cache, falling back to a remote source."""

    def __init__(self, source: PartitionSource, cache: PartitionCache) -> None:
        self.source = source
        self.cache = cache

    async def fetch(self, path: str) -> bytes | None:
        key = cache_key(path)
        try:
            cached = self.cache.get_bytes(key)
        except OSError as e:
            raise SourceIOError(path, f"error reading cached partition ({key}): {e}") from e
        if cached is not None:
            return cached

        data = await self.source.fetch(path)
        if data is not None:
            try:
                self.cache.put_bytes(key, data)
            except OSError as e:
                logger.warning(f"Cache write failed for {key}: {e}")
        return data


def source_for(data_source: str, settings: Settings) -> PartitionSource:
    """Pick the partition source for a data source location.

    Remote sources are wrapped in a CachedSource when settings.cache_dir
    is set.
    """
    source: PartitionSource
    if data_source.startswith("s3://"):
        source = S3Source(region=settings.s3_region, timeout=settings.fetch_timeout)
    elif data_source.startswith("gs://"):
        source = GCSSource()
    elif data_source.startswith(("http://", "https://")):
        source = HTTPSource(timeout=settings.fetch_timeout)
    else:
        return LocalSource()

    if settings.cache_dir is not None:
        logger.debug(f"Partition cache enabled: {settings.cache_dir}")
        source = CachedSource(source, PartitionCache(settings.cache_dir))
    return source
