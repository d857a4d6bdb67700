"""
Concurrent range fetcher: downloads one object as N parallel byte ranges and
reassembles them into a single ordered stream.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import aiohttp
from botocore.awsrequest import AWSRequest

from configuration import HTTP_PARTIAL_CONTENT, STREAM_CHUNK_SIZE
from storage.errors import BucketError, FetchError, raise_for_status

logger = logging.getLogger(__name__)

# Queue markers: end of one range, and the stream closed under a waiting reader
_END_OF_RANGE = None
_CLOSED = object()


@dataclass(frozen=True)
class ByteRange:
    """One range fetch job; ``end`` is inclusive as in the Range header."""

    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def header(self) -> str:
        return f"bytes={self.start}-{self.end}"


def partition(length: int, count: int) -> List[ByteRange]:
    """Split [0, length) into contiguous, non-overlapping ranges of near-equal size.

    At most ``count`` ranges are produced and never more than ``length``, so no
    range is empty. The last range absorbs the remainder.

    Raises:
        ValueError: If count < 1 or length < 0
    """
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")
    if length < 0:
        raise ValueError(f"length must not be negative, got {length}")
    if length == 0:
        return []

    count = min(count, length)
    size = length // count
    ranges = []
    for index in range(count):
        start = index * size
        end = length - 1 if index == count - 1 else start + size - 1
        ranges.append(ByteRange(index, start, end))
    return ranges


class MergedStream:
    """Ordered stream over the ranges of a concurrent fetch.

    Each range has its own queue of chunks. The stream drains queue 0 to its
    end marker, then queue 1, and so on, so bytes come out in object order no
    matter which worker finishes first. A failed fetch is delivered as a
    FetchError on the next read; closing the stream makes a pending or later
    read raise ValueError.
    """

    def __init__(self, url: str, ranges: List[ByteRange], content_length: int):
        self.url = url
        self.ranges = ranges
        self.content_length = content_length
        self._queues: List[asyncio.Queue] = [asyncio.Queue() for _ in ranges]
        self._current = 0
        self._buffer = b""
        self._error: Optional[FetchError] = None
        self._workers: List[asyncio.Task] = []
        self._supervisor: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _start(self, workers: List[asyncio.Task], supervisor: asyncio.Task):
        self._workers = workers
        self._supervisor = supervisor

    def _push(self, index: int, chunk: Optional[bytes]):
        self._queues[index].put_nowait(chunk)

    def _fail(self, error: FetchError):
        if self._error is not None:
            return
        self._error = error
        # Wake the consumer whichever range it is waiting on
        for queue in self._queues:
            queue.put_nowait(error)

    async def _next_chunk(self) -> bytes:
        """Return the next chunk in object order, or b"" at the end of the object."""
        while self._current < len(self._queues):
            if self._closed:
                raise ValueError("read from closed stream")
            if self._error is not None:
                raise self._error

            item = await self._queues[self._current].get()
            if item is _CLOSED:
                raise ValueError("read from closed stream")
            if isinstance(item, FetchError):
                raise item
            if item is _END_OF_RANGE:
                self._current += 1
                continue
            return item
        return b""

    async def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes, or everything that remains when ``n`` is negative."""
        if self._closed:
            raise ValueError("read from closed stream")

        if n < 0:
            chunks = [self._buffer]
            self._buffer = b""
            while True:
                chunk = await self._next_chunk()
                if not chunk:
                    return b"".join(chunks)
                chunks.append(chunk)

        if not self._buffer:
            self._buffer = await self._next_chunk()
        data, self._buffer = self._buffer[:n], self._buffer[n:]
        return data

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        if self._buffer:
            data, self._buffer = self._buffer, b""
            return data
        chunk = await self._next_chunk()
        if not chunk:
            raise StopAsyncIteration
        return chunk

    async def close(self):
        """Abandon outstanding work and wait until every worker has let go of its connection."""
        if self._closed:
            return
        self._closed = True
        for queue in self._queues:
            queue.put_nowait(_CLOSED)

        tasks = [t for t in self._workers + [self._supervisor] if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._buffer = b""
        logger.debug(f"Closed merged stream for {self.url}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class RangeFetcher:
    """Fetches one object faster than a serial GET by reading byte ranges in parallel.

    Every request goes through ``transport``, which is expected to sign it.
    """

    def __init__(self, transport, concurrency: int, chunk_size: int = STREAM_CHUNK_SIZE, debug: bool = False):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.transport = transport
        self.concurrency = concurrency
        self.chunk_size = chunk_size
        self.debug = debug

    async def probe_length(self, url: str) -> int:
        """Determine the object length with a HEAD request.

        Raises:
            FetchError: If the request fails or no Content-Length is returned
        """
        try:
            response = await self.transport.roundtrip(AWSRequest(method="HEAD", url=url))
            await raise_for_status(response, "HEAD", url, debug=self.debug)
        except (BucketError, aiohttp.ClientError) as e:
            raise FetchError(None, e) from e

        try:
            length = response.headers.get("Content-Length")
            if length is None:
                raise FetchError(None, ValueError(f"HEAD {url} returned no Content-Length"))
            return int(length)
        except ValueError as e:
            raise FetchError(None, e) from e
        finally:
            response.release()

    async def fetch(self, url: str) -> MergedStream:
        """Start fetching ``url`` and return the stream its ranges are merged into.

        The length probe happens before this returns; range downloads run in
        the background until the stream is consumed or closed.
        """
        length = await self.probe_length(url)
        ranges = partition(length, self.concurrency)
        stream = MergedStream(url, ranges, length)

        workers = [
            asyncio.create_task(self._fetch_range(url, byte_range, length, stream))
            for byte_range in ranges
        ]
        supervisor = asyncio.create_task(self._supervise(workers, stream))
        stream._start(workers, supervisor)

        logger.debug(f"Fetching {url} ({length} bytes) as {len(ranges)} ranges")
        return stream

    async def _supervise(self, workers: List[asyncio.Task], stream: MergedStream):
        """Wait for every worker; on the first failure cancel the rest and fail the stream."""
        try:
            await asyncio.gather(*workers)
        except Exception as e:
            if not isinstance(e, FetchError):
                e = FetchError(None, e)
            logger.error(f"Parallel fetch of {stream.url} failed: {e}")
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            stream._fail(e)

    async def _fetch_range(self, url: str, byte_range: ByteRange, total: int, stream: MergedStream):
        request = AWSRequest(method="GET", url=url, headers={"Range": byte_range.header})
        try:
            response = await self.transport.roundtrip(request)
        except Exception as e:
            raise FetchError(byte_range.index, e) from e

        completed = False
        try:
            whole_object = byte_range.start == 0 and byte_range.length == total
            if response.status != HTTP_PARTIAL_CONTENT and not (response.status == 200 and whole_object):
                raise FetchError(byte_range.index, BucketError(response.status, "GET", url))

            received = 0
            async for chunk in response.content.iter_chunked(self.chunk_size):
                received += len(chunk)
                if received > byte_range.length:
                    break
                stream._push(byte_range.index, chunk)

            if received != byte_range.length:
                raise FetchError(
                    byte_range.index,
                    ValueError(f"expected {byte_range.length} bytes, received {received}"),
                )
            completed = True
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(byte_range.index, e) from e
        finally:
            if completed:
                response.release()
            else:
                response.close()

        stream._push(byte_range.index, _END_OF_RANGE)
