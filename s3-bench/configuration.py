"""
Configuration constants for the S3 region benchmark.

This module contains all configuration parameters including:
- Object store defaults (scheme, ACL, bucket naming)
- Benchmark parameters (runs, payload size, concurrency)
- HTTP transport settings (pool size, timeouts, chunk size)
- File size constants and conversion factors
"""

import os

# =============================================================================
# OBJECT STORE CONFIGURATION
# =============================================================================

# Scheme used to build bucket URLs (virtual-hosted style)
STORE_SCHEME: str = os.getenv("S3_BENCH_SCHEME", "https")

# Canned ACL sent with every PUT
OBJECT_ACL: str = os.getenv("S3_BENCH_ACL", "bucket-owner-full-control")

# Buckets are named <prefix>-<region>-<suffix>
BUCKET_PREFIX: str = "s3-bench"
OBJECT_KEY: str = "random.dat"

# Diagnostics: log every request and dump raw failure bodies
DEBUG: bool = bool(os.getenv("DEBUG", ""))

# =============================================================================
# BENCHMARK PARAMETERS
# =============================================================================

DEFAULT_RUNS: int = 3
DEFAULT_PAYLOAD_KB: int = 5000
DEFAULT_REGION_FILTER: str = "."
DEFAULT_CLEANUP: bool = True
DEFAULT_MULTI_GET_CONCURRENCY: int = 4

# =============================================================================
# HTTP TRANSPORT
# =============================================================================

MAX_POOL_CONNECTIONS: int = 100
CONNECT_TIMEOUT_SECONDS: float = 10.0
READ_TIMEOUT_SECONDS: float = 120.0
STREAM_CHUNK_SIZE: int = 64 * 1024

# =============================================================================
# HTTP STATUS CODES
# =============================================================================

HTTP_PARTIAL_CONTENT: int = 206
HTTP_CONFLICT: int = 409

# =============================================================================
# FILE SIZE CONSTANTS
# =============================================================================

BYTES_PER_KB: int = 1024

# =============================================================================
# CLI DEFAULTS
# =============================================================================

RESULTS_FILENAME_PREFIX: str = "s3bench"
