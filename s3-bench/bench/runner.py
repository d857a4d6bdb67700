"""
Benchmark harness: timed PUT, serial GET and parallel GET phases per region.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import aiohttp
from botocore.credentials import Credentials

from bench.lifecycle import BucketLifecycle, ProvisioningError, bucket_name
from common.metrics_utils import calculate_throughput, format_bytes, format_rate
from configuration import (
    DEFAULT_RUNS,
    DEFAULT_REGION_FILTER,
    DEFAULT_CLEANUP,
    DEFAULT_MULTI_GET_CONCURRENCY,
    OBJECT_KEY,
    OBJECT_ACL,
)
from persistence.parquet import ParquetPersistence
from persistence.record import ThroughputRecord
from storage.bucket import Bucket
from storage.config import ClientConfig
from storage.regions import REGIONS, Region, filter_regions
from storage.signer import RequestSigner, load_credentials
from storage.transport import HTTPTransport, SignedTransport, create_session

logger = logging.getLogger(__name__)


class PayloadMismatchError(Exception):
    """Bytes read back from the store differ from the payload that was written."""


@dataclass(frozen=True)
class BenchmarkSettings:
    """Parameters of one benchmark run across regions."""

    runs: int = DEFAULT_RUNS
    region_filter: str = DEFAULT_REGION_FILTER
    cleanup: bool = DEFAULT_CLEANUP
    concurrency: int = DEFAULT_MULTI_GET_CONCURRENCY
    verify: bool = False
    object_key: str = OBJECT_KEY
    acl: str = OBJECT_ACL


class RegionBenchmark:
    """Runs the PUT, GET and multi-GET phases against one provisioned bucket."""

    def __init__(self, bucket: Bucket, payload: bytes, settings: BenchmarkSettings):
        self.bucket = bucket
        self.payload = payload
        self.settings = settings
        self._digest = hashlib.sha256(payload).digest() if settings.verify else None

    def _record(self, operation: str, start_ts: float, duration: float, concurrency: int = 1) -> ThroughputRecord:
        total_bytes = len(self.payload) * self.settings.runs
        throughput = calculate_throughput(total_bytes, duration)
        return ThroughputRecord(
            region=self.bucket.region.name,
            bucket=self.bucket.name,
            operation=operation,
            runs=self.settings.runs,
            bytes_transferred=total_bytes,
            duration_s=duration,
            throughput_bps=throughput,
            concurrency=concurrency,
            start_ts=start_ts,
            end_ts=start_ts + duration,
        )

    async def _drain(self, stream) -> None:
        """Consume a read stream, checking its size (and digest when verifying)."""
        received = 0
        digest = hashlib.sha256() if self._digest is not None else None
        async for chunk in stream:
            received += len(chunk)
            if digest is not None:
                digest.update(chunk)

        if received != len(self.payload):
            raise PayloadMismatchError(
                f"Read {received} bytes from {self.bucket.url(self.settings.object_key)}, "
                f"expected {len(self.payload)}"
            )
        if digest is not None and digest.digest() != self._digest:
            raise PayloadMismatchError(
                f"Content of {self.bucket.url(self.settings.object_key)} differs from the payload"
            )

    async def bench_put(self) -> ThroughputRecord:
        start_ts = time.time()
        started = time.perf_counter()

        for _ in range(self.settings.runs):
            await self.bucket.put(self.settings.object_key, self.payload, self.settings.acl)
            logger.info(f"Wrote {self.bucket.url(self.settings.object_key)}")

        record = self._record("put", start_ts, time.perf_counter() - started)
        logger.info(
            f"Wrote {format_bytes(record.bytes)} in {record.duration_s:.3f}s "
            f"({format_rate(record.throughput_bps)})"
        )
        return record

    async def bench_get(self) -> ThroughputRecord:
        start_ts = time.time()
        started = time.perf_counter()

        for _ in range(self.settings.runs):
            async with await self.bucket.get(self.settings.object_key) as stream:
                await self._drain(stream)

        record = self._record("get", start_ts, time.perf_counter() - started)
        logger.info(
            f"Read (in serial) {format_bytes(record.bytes)} in {record.duration_s:.3f}s "
            f"({format_rate(record.throughput_bps)})"
        )
        return record

    async def bench_multi_get(self) -> ThroughputRecord:
        concurrency = self.settings.concurrency
        start_ts = time.time()
        started = time.perf_counter()

        for _ in range(self.settings.runs):
            async with await self.bucket.multi_get(self.settings.object_key, concurrency) as stream:
                await self._drain(stream)

        record = self._record("multi_get", start_ts, time.perf_counter() - started, concurrency)
        logger.info(
            f"Read (in parallel, {concurrency} ranges) {format_bytes(record.bytes)} "
            f"in {record.duration_s:.3f}s ({format_rate(record.throughput_bps)})"
        )
        return record

    async def run(self) -> List[ThroughputRecord]:
        return [
            await self.bench_put(),
            await self.bench_get(),
            await self.bench_multi_get(),
        ]


class BenchmarkRunner:
    """Benchmarks every region matching the filter, one region at a time.

    A region whose bucket cannot be created is logged and skipped. Any other
    failure ends the run; the region's bucket is still torn down first.
    """

    def __init__(
        self,
        payload: bytes,
        settings: BenchmarkSettings = None,
        config: ClientConfig = None,
        regions: Sequence[Region] = REGIONS,
        credentials: Credentials = None,
        session: aiohttp.ClientSession = None,
        persistence: Optional[ParquetPersistence] = None,
    ):
        self.payload = payload
        self.settings = settings or BenchmarkSettings()
        self.config = config or ClientConfig.from_environment()
        self.regions = filter_regions(self.settings.region_filter, tuple(regions))
        # Fails fast with CredentialsError before any request is made
        self.credentials = credentials or load_credentials()
        self.session = session
        self.persistence = persistence
        self.skipped: List[str] = []

        logger.info(
            f"Initialized benchmark runner: {len(self.regions)} regions, "
            f"{self.settings.runs} runs per operation"
        )

    async def run(self) -> List[ThroughputRecord]:
        """Benchmark all selected regions and return their records."""
        owns_session = self.session is None
        session = self.session or create_session(self.config)
        transport = HTTPTransport(session)

        records: List[ThroughputRecord] = []
        try:
            for region in self.regions:
                region_records = await self.run_region(region, transport)
                records.extend(region_records)
                if self.persistence is not None:
                    for record in region_records:
                        self.persistence.store_record(record)
        finally:
            if owns_session:
                await session.close()

        return records

    async def run_region(self, region: Region, transport: HTTPTransport) -> List[ThroughputRecord]:
        logger.info(f"Testing region {region.name}")

        signed = SignedTransport(transport, RequestSigner(self.credentials, region.name))
        bucket = Bucket(bucket_name(region), region, signed, self.config)

        try:
            async with BucketLifecycle(bucket, cleanup=self.settings.cleanup, keys=(self.settings.object_key,)):
                return await RegionBenchmark(bucket, self.payload, self.settings).run()
        except ProvisioningError as e:
            logger.error(f"Skipping region {region.name}: {e}")
            self.skipped.append(region.name)
            return []
