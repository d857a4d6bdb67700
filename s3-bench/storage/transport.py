"""
HTTP transports: a plain sender over a shared aiohttp session and a signing decorator.
"""

import logging

import aiohttp
from botocore.awsrequest import AWSRequest
from yarl import URL

from storage.config import ClientConfig
from storage.signer import RequestSigner

logger = logging.getLogger(__name__)


def create_session(config: ClientConfig) -> aiohttp.ClientSession:
    """Create the pooled HTTP session shared by every request of a run.

    Must be called from within a running event loop.
    """
    connector = aiohttp.TCPConnector(limit=config.max_connections)
    timeout = aiohttp.ClientTimeout(
        total=None,
        connect=config.connect_timeout,
        sock_read=config.read_timeout,
    )
    logger.debug(f"Created HTTP session (pool={config.max_connections} connections)")
    return aiohttp.ClientSession(connector=connector, timeout=timeout, auto_decompress=False)


class HTTPTransport:
    """Sends prepared requests over a shared session.

    The session pools connections and is safe for many in-flight requests,
    so one transport can serve every bucket and range worker.
    """

    def __init__(self, session: aiohttp.ClientSession):
        self.session = session

    async def roundtrip(self, request: AWSRequest) -> aiohttp.ClientResponse:
        """Send ``request`` and return the response with its body unread."""
        # The URL is already percent-encoded and must match what was signed
        url = URL(request.url, encoded=True)
        return await self.session.request(
            request.method,
            url,
            headers=dict(request.headers.items()),
            data=request.data or None,
            allow_redirects=False,
        )


class SignedTransport:
    """Signs every request exactly once before handing it to the wrapped transport."""

    def __init__(self, transport, signer: RequestSigner):
        self.transport = transport
        self.signer = signer

    async def roundtrip(self, request: AWSRequest) -> aiohttp.ClientResponse:
        self.signer.sign(request)
        return await self.transport.roundtrip(request)
