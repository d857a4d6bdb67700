"""
Tests for throughput math, size formatting, result summaries and payloads.
"""

import os
import sys
import tempfile
import unittest

import pandas as pd

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bench.payload import generate_payload
from common.metrics_utils import (
    calculate_throughput,
    format_bytes,
    format_rate,
    records_to_dataframe,
    summarize_records,
)
from persistence.parquet import ParquetPersistence
from persistence.record import ThroughputRecord


def make_record(region, operation, total_bytes, duration):
    return ThroughputRecord(
        region=region,
        bucket=f"s3-bench-{region}-1",
        operation=operation,
        runs=3,
        bytes_transferred=total_bytes,
        duration_s=duration,
        throughput_bps=calculate_throughput(total_bytes, duration),
    )


class TestThroughput(unittest.TestCase):

    def test_calculate_throughput(self):
        self.assertEqual(calculate_throughput(3000, 1.5), 2000)
        self.assertEqual(calculate_throughput(3000, 0), 0.0)
        self.assertEqual(calculate_throughput(3000, -1), 0.0)

    def test_format_bytes(self):
        cases = [
            (0, "0 B"),
            (9, "9 B"),
            (512, "512 B"),
            (1000, "1.0 kB"),
            (5120000, "5.1 MB"),
            (15360000, "15 MB"),
            (2.5e9, "2.5 GB"),
        ]
        for value, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(format_bytes(value), expected)

    def test_format_rate(self):
        self.assertEqual(format_rate(5120000), "5.1 MB/s")


class TestSummaries(unittest.TestCase):

    def test_records_to_dataframe(self):
        frame = records_to_dataframe([make_record("eu-west-1", "put", 3000, 1.0)])
        self.assertEqual(list(frame.columns), ThroughputRecord.FIELDS)
        self.assertEqual(frame.iloc[0]["bytes"], 3000)

    def test_summarize_groups_by_region_and_operation(self):
        records = [
            make_record("eu-west-1", "put", 3000, 1.0),
            make_record("eu-west-1", "put", 3000, 2.0),
            make_record("eu-west-1", "get", 6000, 1.0),
            make_record("us-west-2", "put", 1000, 4.0),
        ]

        summary = summarize_records(records)

        self.assertEqual(
            list(summary.index),
            [("eu-west-1", "put"), ("eu-west-1", "get"), ("us-west-2", "put")],
        )
        self.assertEqual(summary.loc[("eu-west-1", "put"), "bytes"], 6000)
        self.assertEqual(summary.loc[("eu-west-1", "put"), "throughput_bps"], 2000)
        self.assertEqual(summary.loc[("us-west-2", "put"), "throughput_bps"], 250)

    def test_summarize_empty(self):
        summary = summarize_records([])
        self.assertTrue(summary.empty)
        self.assertIn("throughput_bps", summary.columns)

    def test_record_dict(self):
        record = make_record("eu-west-1", "multi_get", 3000, 1.0)
        data = record.to_dict()
        self.assertEqual(set(data), set(ThroughputRecord.FIELDS))
        self.assertEqual(data["concurrency"], 1)
        self.assertIn("multi_get", repr(record))


class TestParquetPersistence(unittest.TestCase):

    def test_nothing_to_save(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertIsNone(ParquetPersistence(tmpdir).save_to_file())
            self.assertEqual(os.listdir(tmpdir), [])

    def test_save_records(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_dir = os.path.join(tmpdir, "results")
            persistence = ParquetPersistence(output_dir)
            persistence.store_record(make_record("eu-west-1", "put", 3000, 1.0))
            persistence.store_record(make_record("eu-west-1", "get", 3000, 0.5))

            path = persistence.save_to_file("run")

            self.assertEqual(os.path.dirname(path), output_dir)
            self.assertTrue(os.path.basename(path).startswith("run_"))
            frame = pd.read_parquet(path)
            self.assertEqual(list(frame.columns), ThroughputRecord.FIELDS)
            self.assertEqual(list(frame["throughput_bps"]), [3000.0, 6000.0])


class TestPayload(unittest.TestCase):

    def test_size(self):
        self.assertEqual(len(generate_payload(5000 * 1024)), 5000 * 1024)
        self.assertEqual(generate_payload(0), b"")

    def test_seeded_payload_is_reproducible(self):
        self.assertEqual(generate_payload(4096, seed=7), generate_payload(4096, seed=7))
        self.assertNotEqual(generate_payload(4096, seed=7), generate_payload(4096, seed=8))

    def test_negative_size(self):
        with self.assertRaises(ValueError):
            generate_payload(-1)


if __name__ == '__main__':
    unittest.main()
