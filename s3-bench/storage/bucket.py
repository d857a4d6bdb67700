"""
Bucket client: create, put, get, delete and URL construction for one bucket.
"""

import logging
from typing import Dict, Optional
from urllib.parse import quote

import aiohttp
from botocore.awsrequest import AWSRequest

from configuration import HTTP_CONFLICT
from storage.config import ClientConfig
from storage.errors import BucketError, raise_for_status
from storage.fetcher import MergedStream, RangeFetcher
from storage.regions import Region

logger = logging.getLogger(__name__)

CREATE_BUCKET_TEMPLATE = (
    '<CreateBucketConfiguration xmlns="http://s3.amazonaws.com/doc/2006-03-01/">'
    "<LocationConstraint>{constraint}</LocationConstraint>"
    "</CreateBucketConfiguration>"
)


class ResponseStream:
    """Lazily consumed body of a GET response. The caller must close it."""

    def __init__(self, response: aiohttp.ClientResponse):
        self._response = response
        self.content_length: Optional[int] = response.content_length

    async def read(self, n: int = -1) -> bytes:
        return await self._response.content.read(n)

    async def close(self):
        # Fully drained connections go back to the pool; others are dropped
        if self._response.content.at_eof():
            self._response.release()
        else:
            self._response.close()

    def __aiter__(self):
        return self._response.content.iter_any().__aiter__()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class Bucket:
    """Operations scoped to one named bucket in one region.

    A bucket holds no mutable state beyond its construction arguments, so one
    instance can be shared by concurrent callers.

    Attributes:
        name: Globally unique bucket name
        region: Region the bucket lives in
        transport: Signing transport used for every request
        config: Client configuration (scheme, diagnostics, chunk size)
    """

    def __init__(self, name: str, region: Region, transport, config: ClientConfig = None):
        self.name = name
        self.region = region
        self.transport = transport
        self.config = config or ClientConfig()

    def __repr__(self):
        return f"Bucket(name={self.name!r}, region={self.region.name!r})"

    def url(self, *paths: str) -> str:
        """Build ``<scheme>://<bucket>.<endpoint>/<joined paths>``."""
        parts = [p.lstrip("/") for p in paths if p.lstrip("/")]
        path = quote("/" + "/".join(parts), safe="/~")
        return f"{self.config.scheme}://{self.name}.{self.region.endpoint}{path}"

    async def do(
        self, method: str, path: str, headers: Dict[str, str] = None, body: bytes = b""
    ) -> aiohttp.ClientResponse:
        """Send a signed request and return the successful response.

        The response body is left unread; the caller must release it.

        Raises:
            BucketError: If the store answers with a status outside [200, 300)
        """
        url = self.url(path)
        request = AWSRequest(method=method, url=url, headers=headers or {}, data=body)

        response = await self.transport.roundtrip(request)

        logger.debug(f"{method} {url} => {response.status}")
        await raise_for_status(response, method, url, debug=self.config.debug)
        return response

    async def create(self, exist_ok: bool = False):
        """Create the bucket, declaring the region's location constraint if it has one.

        Args:
            exist_ok: Treat 409 (bucket already exists) as success
        """
        body = b""
        if self.region.location_constraint:
            body = CREATE_BUCKET_TEMPLATE.format(
                constraint=self.region.location_constraint
            ).encode("utf-8")

        try:
            response = await self.do("PUT", "/", body=body)
        except BucketError as e:
            if exist_ok and e.status == HTTP_CONFLICT:
                logger.warning(f"Bucket {self.name} already exists, reusing it")
                return
            raise

        response.release()
        logger.info(f"Created bucket {self.name} in {self.region.name}")

    async def put(self, key: str, body: bytes, acl: str):
        response = await self.do("PUT", "/" + key, {"x-amz-acl": acl}, body)
        response.release()

    async def get(self, key: str) -> ResponseStream:
        """Start a GET for ``key`` and return its body as a stream."""
        response = await self.do("GET", "/" + key)
        return ResponseStream(response)

    async def multi_get(self, key: str, concurrency: int) -> MergedStream:
        """Fetch ``key`` as ``concurrency`` parallel byte ranges merged into one stream."""
        fetcher = RangeFetcher(
            self.transport, concurrency, chunk_size=self.config.chunk_size, debug=self.config.debug
        )
        return await fetcher.fetch(self.url(key))

    async def delete(self, *keys: str):
        """Delete each key in order, stopping at the first failure.

        Called without keys, deletes the bucket itself.
        """
        for key in keys or ("",):
            response = await self.do("DELETE", "/" + key)
            response.release()
            logger.debug(f"Deleted {self.url(key)}")
