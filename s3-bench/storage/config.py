"""
Client configuration passed explicitly to transports, buckets and fetchers.
"""

from dataclasses import dataclass

from configuration import (
    STORE_SCHEME,
    DEBUG,
    MAX_POOL_CONNECTIONS,
    CONNECT_TIMEOUT_SECONDS,
    READ_TIMEOUT_SECONDS,
    STREAM_CHUNK_SIZE,
)


@dataclass(frozen=True)
class ClientConfig:
    """Immutable settings shared by every request of a benchmark run.

    Attributes:
        scheme: URL scheme for bucket URLs
        debug: Log each request and keep raw failure bodies on errors
        max_connections: Connection pool size of the shared HTTP session
        connect_timeout: Seconds allowed to establish a connection
        read_timeout: Seconds allowed between socket reads
        chunk_size: Bytes read per chunk when streaming response bodies
    """

    scheme: str = "https"
    debug: bool = False
    max_connections: int = MAX_POOL_CONNECTIONS
    connect_timeout: float = CONNECT_TIMEOUT_SECONDS
    read_timeout: float = READ_TIMEOUT_SECONDS
    chunk_size: int = STREAM_CHUNK_SIZE

    @classmethod
    def from_environment(cls, debug: bool = None) -> "ClientConfig":
        """Build a config from the module-level defaults in ``configuration``."""
        return cls(
            scheme=STORE_SCHEME,
            debug=DEBUG if debug is None else debug,
        )
