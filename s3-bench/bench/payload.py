"""
Random payload generation.
"""

import logging
import random

from common.metrics_utils import format_bytes

logger = logging.getLogger(__name__)


def generate_payload(size_bytes: int, seed: int = None) -> bytes:
    """Generate ``size_bytes`` of pseudo-random data.

    The data only needs to defeat compression, not be cryptographically
    random; pass ``seed`` for a reproducible payload.
    """
    if size_bytes < 0:
        raise ValueError(f"size_bytes must not be negative, got {size_bytes}")

    payload = random.Random(seed).randbytes(size_bytes)
    logger.info(f"Generated {format_bytes(len(payload))} of payload")
    return payload
