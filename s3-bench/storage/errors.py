"""
Error taxonomy for object store access.
"""

import logging
from typing import Optional

import aiohttp
from aiohttp import ClientError

logger = logging.getLogger(__name__)

# Network failures (DNS, refused connections, timeouts) surface as aiohttp's own
# exceptions; they are never wrapped.
TransportError = ClientError


class StorageError(Exception):
    """Base class for errors raised by the storage layer."""


class CredentialsError(StorageError):
    """No usable signing credentials were found in the environment."""


class BucketError(StorageError):
    """A bucket operation received a non-2xx response.

    Attributes:
        status: HTTP status code returned by the store
        method: HTTP method of the failed request
        url: URL of the failed request
        body: Raw response body, only kept when diagnostics are enabled
    """

    def __init__(self, status: int, method: str = "", url: str = "", body: Optional[bytes] = None):
        self.status = status
        self.method = method
        self.url = url
        self.body = body
        super().__init__(f"{method} {url} failed with status {status}".strip())


class FetchError(StorageError):
    """A concurrent range fetch failed.

    ``range_index`` is None when the object length could not be determined.
    """

    def __init__(self, range_index: Optional[int], cause: BaseException):
        self.range_index = range_index
        self.cause = cause
        if range_index is None:
            message = f"Could not determine object length: {cause}"
        else:
            message = f"Range {range_index} failed: {cause}"
        super().__init__(message)


def is_success(status: int) -> bool:
    return 200 <= status < 300


async def raise_for_status(response: aiohttp.ClientResponse, method: str, url: str, debug: bool = False):
    """Raise BucketError for a non-2xx response, releasing its connection first."""
    if is_success(response.status):
        return

    try:
        body = await response.read()
    except ClientError as e:
        logger.debug(f"Could not read failure body for {method} {url}: {e}")
        body = b""
    finally:
        response.release()

    if debug:
        logger.debug(f"{method} {url} failure body:\n{body.decode('utf-8', errors='replace')}")

    raise BucketError(response.status, method, url, body if debug else None)
