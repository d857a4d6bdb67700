"""
Common utilities for the S3 benchmark.
"""

from .metrics_utils import calculate_throughput, format_bytes, format_rate, summarize_records

__all__ = ['calculate_throughput', 'format_bytes', 'format_rate', 'summarize_records']
