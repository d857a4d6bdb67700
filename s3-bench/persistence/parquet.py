"""
Parquet output for benchmark results.
"""

import os
import logging
from datetime import datetime
from typing import List, Optional

from common.metrics_utils import records_to_dataframe
from configuration import RESULTS_FILENAME_PREFIX
from persistence.record import ThroughputRecord

logger = logging.getLogger(__name__)


class ParquetPersistence:
    """Collects the records of a run and writes them as one Parquet file per save."""

    def __init__(self, output_dir: str = "results"):
        os.makedirs(output_dir, exist_ok=True)
        self.output_dir = output_dir
        self.records: List[ThroughputRecord] = []

    def store_record(self, record: ThroughputRecord) -> None:
        self.records.append(record)

    def save_to_file(self, filename_prefix: str = RESULTS_FILENAME_PREFIX) -> Optional[str]:
        """Write ``<output_dir>/<prefix>_<timestamp>.parquet``; returns its path, or None when empty."""
        if not self.records:
            return None

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(self.output_dir, f"{filename_prefix}_{stamp}.parquet")
        records_to_dataframe(self.records).to_parquet(path, index=False)

        logger.info(f"Wrote {len(self.records)} records to {path}")
        return path
