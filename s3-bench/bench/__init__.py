"""
Benchmark harness: payload generation, bucket lifecycle and the region loop.
"""

from .payload import generate_payload
from .lifecycle import BucketLifecycle, ProvisioningError, bucket_name
from .runner import BenchmarkSettings, BenchmarkRunner, RegionBenchmark, PayloadMismatchError

__all__ = [
    'generate_payload',
    'BucketLifecycle',
    'ProvisioningError',
    'bucket_name',
    'BenchmarkSettings',
    'BenchmarkRunner',
    'RegionBenchmark',
    'PayloadMismatchError',
]
