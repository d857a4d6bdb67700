"""
Basic data structures for the S3 benchmark.
"""

import time


class ThroughputRecord:
    """Result of one benchmark phase (all runs of one operation in one region)."""

    FIELDS = [
        'region', 'bucket', 'operation', 'runs', 'bytes', 'duration_s',
        'throughput_bps', 'concurrency', 'start_ts', 'end_ts',
    ]

    def __init__(self, region, bucket, operation, runs, bytes_transferred, duration_s,
                 throughput_bps, concurrency: int = 1, start_ts: float = None, end_ts: float = None):
        self.region = region
        self.bucket = bucket
        self.operation = operation
        self.runs = runs
        self.bytes = bytes_transferred
        self.duration_s = duration_s
        self.throughput_bps = throughput_bps
        self.concurrency = concurrency
        self.start_ts = start_ts or time.time()
        self.end_ts = end_ts or time.time()

    def to_dict(self):
        return {field: getattr(self, field) for field in self.FIELDS}

    def __repr__(self):
        return (
            f"ThroughputRecord(region={self.region!r}, operation={self.operation!r}, "
            f"bytes={self.bytes}, throughput_bps={self.throughput_bps:.1f})"
        )
