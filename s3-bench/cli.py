import os
import sys
import logging
import argparse

import uvloop

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from configuration import (
    DEFAULT_RUNS, DEFAULT_PAYLOAD_KB, DEFAULT_REGION_FILTER, DEFAULT_CLEANUP,
    DEFAULT_MULTI_GET_CONCURRENCY, BYTES_PER_KB, OBJECT_ACL, DEBUG
)

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False):
    """Set up logging (only if not already configured)."""
    if not logging.root.handlers:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)

    for name in ('botocore', 'aiohttp.access', 'asyncio'):
        logging.getLogger(name).setLevel(logging.WARNING)


class S3BenchmarkCLI:
    """CLI interface for the S3 region throughput benchmark."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            description='Measure S3 write and read throughput per region',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Three runs of a 5000 KB payload in every region
  python cli.py

  # Only the EU and US west regions, 1 MB payload, keep the buckets
  python cli.py --filter 'eu-|us-west' --payload 1024 --no-cleanup

  # Eight parallel ranges for multi-GET, verify content, save results
  python cli.py --concurrency 8 --verify --output-dir results
            """
        )

        parser.add_argument('--runs', type=int, default=DEFAULT_RUNS,
                            help=f'Number of times to run each test (default: {DEFAULT_RUNS})')
        parser.add_argument('--payload', type=int, default=DEFAULT_PAYLOAD_KB,
                            help=f'Payload size in KB (default: {DEFAULT_PAYLOAD_KB})')
        parser.add_argument('--filter', type=str, default=DEFAULT_REGION_FILTER,
                            help=f'Regex to filter region names (default: {DEFAULT_REGION_FILTER!r})')
        parser.add_argument('--cleanup', action=argparse.BooleanOptionalAction, default=DEFAULT_CLEANUP,
                            help='Remove objects and buckets after the tests (default: on)')
        parser.add_argument('--concurrency', type=int, default=DEFAULT_MULTI_GET_CONCURRENCY,
                            help=f'Parallel ranges for multi-GET (default: {DEFAULT_MULTI_GET_CONCURRENCY})')
        parser.add_argument('--acl', type=str, default=OBJECT_ACL,
                            help=f'Canned ACL for uploaded objects (default: {OBJECT_ACL})')
        parser.add_argument('--verify', action='store_true',
                            help='Check that every read returns the uploaded payload')
        parser.add_argument('--output-dir', type=str, default=None,
                            help='Directory for a Parquet file with the results')
        parser.add_argument('--debug', action='store_true', default=DEBUG,
                            help='Log every request and raw failure responses (also enabled by DEBUG=1)')

        return parser

    def _validate(self, args):
        if args.runs < 1:
            self.parser.error('--runs must be at least 1')
        if args.payload < 1:
            self.parser.error('--payload must be at least 1 KB')
        if args.concurrency < 1:
            self.parser.error('--concurrency must be at least 1')

    async def run_benchmark(self, args):
        """Run the benchmark across all matching regions."""
        from bench.payload import generate_payload
        from bench.runner import BenchmarkRunner, BenchmarkSettings
        from common.metrics_utils import format_rate, summarize_records
        from persistence.parquet import ParquetPersistence
        from storage.config import ClientConfig
        from storage.errors import CredentialsError
        from storage.signer import load_credentials

        logger.info("=== S3 Region Benchmark ===")

        settings = BenchmarkSettings(
            runs=args.runs,
            region_filter=args.filter,
            cleanup=args.cleanup,
            concurrency=args.concurrency,
            verify=args.verify,
            acl=args.acl,
        )
        persistence = ParquetPersistence(args.output_dir) if args.output_dir else None

        try:
            credentials = load_credentials()
        except CredentialsError as e:
            logger.error(f"Cannot sign requests: {e}")
            return 1

        runner = BenchmarkRunner(
            payload=generate_payload(args.payload * BYTES_PER_KB),
            settings=settings,
            config=ClientConfig.from_environment(debug=args.debug),
            credentials=credentials,
            persistence=persistence,
        )
        if not runner.regions:
            logger.error(f"No regions match filter {args.filter!r}")
            return 1

        logger.info(f"Running {args.runs} iterations per region")

        try:
            records = await runner.run()
        except Exception as e:
            logger.error(f"Benchmark failed: {e}")
            return 1
        finally:
            if persistence is not None:
                parquet_file = persistence.save_to_file()
                if parquet_file:
                    logger.info(f"Detailed results saved to: {parquet_file}")

        logger.info("=== Benchmark Results ===")
        summary = summarize_records(records)
        for (region, operation), row in summary.iterrows():
            logger.info(f"{region:<16} {operation:<10} {format_rate(row['throughput_bps'])}")
        if runner.skipped:
            logger.warning(f"Skipped regions: {', '.join(runner.skipped)}")

        return 0

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)
        self._validate(parsed_args)
        configure_logging(parsed_args.debug)

        try:
            return uvloop.run(self.run_benchmark(parsed_args))
        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 1


def main():
    """Main entry point."""
    cli = S3BenchmarkCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
