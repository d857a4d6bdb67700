"""
Scoped bucket lifecycle: create on entry, delete objects and bucket on every exit path.
"""

import logging
import time
from typing import Sequence

import aiohttp

from configuration import BUCKET_PREFIX, OBJECT_KEY
from storage.bucket import Bucket
from storage.errors import BucketError
from storage.regions import Region

logger = logging.getLogger(__name__)


class ProvisioningError(Exception):
    """The benchmark bucket for a region could not be created."""

    def __init__(self, bucket: Bucket, cause: BaseException):
        self.bucket = bucket
        self.cause = cause
        super().__init__(f"Could not create bucket {bucket.name} in {bucket.region.name}: {cause}")


def bucket_name(region: Region, suffix: str = None) -> str:
    """Name a transient bucket; the time-derived suffix keeps concurrent runs apart."""
    if suffix is None:
        suffix = str(time.time_ns())
    return f"{BUCKET_PREFIX}-{region.name}-{suffix}"


class BucketLifecycle:
    """Async context manager owning a benchmark bucket.

    Entering creates the bucket (an existing bucket with the same name is
    reused). Leaving deletes ``keys`` and then the bucket when ``cleanup`` is
    set, whether the body finished normally or raised.
    """

    def __init__(self, bucket: Bucket, cleanup: bool = True, keys: Sequence[str] = (OBJECT_KEY,)):
        self.bucket = bucket
        self.cleanup = cleanup
        self.keys = tuple(keys)

    async def __aenter__(self) -> Bucket:
        try:
            await self.bucket.create(exist_ok=True)
        except (BucketError, aiohttp.ClientError) as e:
            raise ProvisioningError(self.bucket, e) from e
        return self.bucket

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.cleanup:
            await self.teardown()
        return False

    async def teardown(self):
        """Delete the benchmark objects, then the bucket. Failures are logged, not raised."""
        # One key at a time, so a key that was never written does not keep the others
        for key in self.keys:
            try:
                await self.bucket.delete(key)
            except (BucketError, aiohttp.ClientError) as e:
                logger.warning(f"Could not delete {key} in {self.bucket.name}: {e}")

        try:
            await self.bucket.delete()
            logger.info(f"Deleted bucket {self.bucket.name}")
        except (BucketError, aiohttp.ClientError) as e:
            logger.error(f"Could not delete bucket {self.bucket.name}: {e}")
