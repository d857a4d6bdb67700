"""
Shared utilities for benchmark metrics: throughput, human-readable sizes and result summaries.
"""

import logging
from typing import Iterable

import pandas as pd

from persistence.record import ThroughputRecord

logger = logging.getLogger(__name__)

# SI units, as printed by most transfer tools ("5.1 MB")
_SI_UNITS = ["B", "kB", "MB", "GB", "TB", "PB", "EB"]


def calculate_throughput(total_bytes: float, duration_seconds: float) -> float:
    """
    Calculate throughput in bytes per second.

    Args:
        total_bytes: Total bytes transferred
        duration_seconds: Elapsed wall-clock time in seconds

    Returns:
        Bytes per second, or 0.0 when the duration is not positive
    """
    if duration_seconds <= 0:
        return 0.0
    return total_bytes / duration_seconds


def format_bytes(num_bytes: float) -> str:
    """
    Format a byte count with SI units, e.g. 5120000 -> "5.1 MB".

    Values below 10 in a unit keep one decimal, larger values are rounded.
    """
    if num_bytes < 10:
        return f"{int(num_bytes)} B"

    value = float(num_bytes)
    exponent = 0
    while value >= 1000 and exponent < len(_SI_UNITS) - 1:
        value /= 1000
        exponent += 1
    if value < 10:
        return f"{value:.1f} {_SI_UNITS[exponent]}"
    return f"{value:.0f} {_SI_UNITS[exponent]}"


def format_rate(bytes_per_second: float) -> str:
    return f"{format_bytes(bytes_per_second)}/s"


def records_to_dataframe(records: Iterable[ThroughputRecord]) -> pd.DataFrame:
    """Convert throughput records to a DataFrame, one row per record."""
    return pd.DataFrame([record.to_dict() for record in records], columns=ThroughputRecord.FIELDS)


def summarize_records(records: Iterable[ThroughputRecord]) -> pd.DataFrame:
    """
    Summarize throughput per region and operation.

    Returns:
        DataFrame indexed by (region, operation) with total bytes, total
        duration and the resulting throughput in bytes per second
    """
    data = records_to_dataframe(records)
    if data.empty:
        return pd.DataFrame(columns=['bytes', 'duration_s', 'throughput_bps'])

    summary = data.groupby(['region', 'operation'], sort=False).agg(
        bytes=('bytes', 'sum'),
        duration_s=('duration_s', 'sum'),
    )
    summary['throughput_bps'] = [
        calculate_throughput(row.bytes, row.duration_s) for row in summary.itertuples()
    ]
    return summary
