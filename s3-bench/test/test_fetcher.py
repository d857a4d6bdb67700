"""
Tests for the concurrent range fetcher against an in-process S3 stand-in.
"""

import asyncio
import os
import sys
import unittest

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bench.payload import generate_payload
from mock_store import MockObjectStore, create_test_session, make_bucket
from storage.errors import BucketError, CredentialsError, FetchError
from storage.fetcher import ByteRange, MergedStream, RangeFetcher


class RefusingSigner:
    """Signs like ``signer`` but fails for one Range header."""

    def __init__(self, signer, refused_range: str):
        self.signer = signer
        self.refused_range = refused_range

    def sign(self, request):
        if request.headers.get("Range") == self.refused_range:
            raise CredentialsError("credentials expired")
        return self.signer.sign(request)


class TestMergedStream(unittest.IsolatedAsyncioTestCase):

    async def test_close_wakes_waiting_reader(self):
        stream = MergedStream("https://bench.example/random.dat", [ByteRange(0, 0, 9)], 10)
        reader = asyncio.ensure_future(stream.read())
        await asyncio.sleep(0)

        await stream.close()

        with self.assertRaises(ValueError):
            await asyncio.wait_for(reader, timeout=3)


class TestRangeFetcher(unittest.IsolatedAsyncioTestCase):
    """Parallel GET must return exactly the bytes of a serial GET."""

    async def asyncSetUp(self):
        self.store = MockObjectStore()
        await self.store.start()
        self.session = create_test_session()
        self.bucket = make_bucket(self.store, self.session)
        await self.bucket.create()

    async def asyncTearDown(self):
        await self.session.close()
        await self.store.close()

    async def put_object(self, size: int, key: str = "random.dat") -> bytes:
        payload = generate_payload(size, seed=size)
        await self.bucket.put(key, payload, "private")
        return payload

    async def test_matches_serial_get(self):
        for size in (1, 5, 1000, 65537, 1048576):
            payload = await self.put_object(size)
            for concurrency in range(1, 9):
                with self.subTest(size=size, concurrency=concurrency):
                    async with await self.bucket.multi_get("random.dat", concurrency) as stream:
                        self.assertEqual(stream.content_length, size)
                        data = await stream.read()
                    self.assertEqual(data, payload)

    async def test_sends_one_range_request_per_range(self):
        await self.put_object(4000)

        async with await self.bucket.multi_get("random.dat", 4) as stream:
            await stream.read()

        ranges = sorted(
            headers["Range"] for method, _, key, headers in self.store.requests
            if method == "GET" and key == "random.dat"
        )
        self.assertEqual(ranges, ["bytes=0-999", "bytes=1000-1999", "bytes=2000-2999", "bytes=3000-3999"])
        self.assertEqual(self.store.count("HEAD", "random.dat"), 1)

    async def test_small_reads_and_iteration(self):
        payload = await self.put_object(10000)

        async with await self.bucket.multi_get("random.dat", 3) as stream:
            head = await stream.read(10)
            rest = b"".join([chunk async for chunk in stream])
            self.assertEqual(await stream.read(10), b"")
        self.assertEqual(head + rest, payload)

    async def test_zero_length_object(self):
        await self.put_object(0)

        async with await self.bucket.multi_get("random.dat", 4) as stream:
            self.assertEqual(stream.ranges, [])
            self.assertEqual(await stream.read(), b"")

        self.assertEqual(self.store.count("GET", "random.dat"), 0)

    async def test_range_failure_names_the_range(self):
        size = 100000
        await self.put_object(size)
        self.store.failing_range_starts = {2 * (size // 4)}

        stream = await self.bucket.multi_get("random.dat", 4)
        try:
            with self.assertRaises(FetchError) as ctx:
                await stream.read()
        finally:
            await stream.close()

        self.assertEqual(ctx.exception.range_index, 2)
        self.assertIsInstance(ctx.exception.cause, BucketError)
        self.assertEqual(ctx.exception.cause.status, 500)
        self.assertTrue(all(task.done() for task in stream._workers))

    async def test_missing_object(self):
        with self.assertRaises(FetchError) as ctx:
            await self.bucket.multi_get("missing.dat", 4)

        self.assertIsNone(ctx.exception.range_index)
        self.assertEqual(ctx.exception.cause.status, 404)
        self.assertEqual(self.store.count("GET", "missing.dat"), 0)

    async def test_early_close_stops_workers(self):
        size = 400000
        await self.put_object(size)
        self.store.stall_range_starts = {r * (size // 4) for r in (1, 2, 3)}

        stream = await self.bucket.multi_get("random.dat", 4)
        first = await stream.read(100)
        self.assertEqual(len(first), 100)

        await asyncio.wait_for(stream.close(), timeout=5)

        self.assertTrue(stream.closed)
        self.assertTrue(all(task.done() for task in stream._workers))
        with self.assertRaises(ValueError):
            await stream.read()

    async def test_close_while_another_task_reads(self):
        await self.put_object(400000)
        self.store.stall_range_starts = {0}

        stream = await self.bucket.multi_get("random.dat", 4)
        reader = asyncio.ensure_future(stream.read())
        await asyncio.sleep(0.1)
        self.assertFalse(reader.done())

        await asyncio.wait_for(stream.close(), timeout=5)

        with self.assertRaises(ValueError):
            await asyncio.wait_for(reader, timeout=3)
        self.assertTrue(all(task.done() for task in stream._workers))

    async def test_signing_failure_names_the_range(self):
        await self.put_object(4000)
        transport = self.bucket.transport
        transport.signer = RefusingSigner(transport.signer, "bytes=2000-2999")

        stream = await self.bucket.multi_get("random.dat", 4)
        try:
            with self.assertRaises(FetchError) as ctx:
                await stream.read()
        finally:
            await stream.close()

        self.assertEqual(ctx.exception.range_index, 2)
        self.assertIsInstance(ctx.exception.cause, CredentialsError)
        self.assertIn("Range 2 failed", str(ctx.exception))

    async def test_close_is_idempotent(self):
        await self.put_object(1000)

        stream = await self.bucket.multi_get("random.dat", 2)
        await stream.close()
        await stream.close()
        self.assertTrue(stream.closed)

    def test_rejects_invalid_concurrency(self):
        with self.assertRaises(ValueError):
            RangeFetcher(transport=None, concurrency=0)


if __name__ == '__main__':
    unittest.main()
