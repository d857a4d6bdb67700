"""
Signed HTTP access to S3-compatible object stores.
"""

from .errors import (
    StorageError,
    CredentialsError,
    BucketError,
    FetchError,
    TransportError,
)
from .regions import Region, REGIONS, get_region, filter_regions
from .config import ClientConfig
from .signer import RequestSigner, load_credentials
from .transport import HTTPTransport, SignedTransport, create_session
from .bucket import Bucket, ResponseStream
from .fetcher import ByteRange, MergedStream, RangeFetcher, partition

__all__ = [
    'StorageError',
    'CredentialsError',
    'BucketError',
    'FetchError',
    'TransportError',
    'Region',
    'REGIONS',
    'get_region',
    'filter_regions',
    'ClientConfig',
    'RequestSigner',
    'load_credentials',
    'HTTPTransport',
    'SignedTransport',
    'create_session',
    'Bucket',
    'ResponseStream',
    'ByteRange',
    'MergedStream',
    'RangeFetcher',
    'partition',
]
