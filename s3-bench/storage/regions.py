"""
Static catalog of object store regions.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Region:
    """A named deployment of the object store with its own endpoint.

    Attributes:
        name: Region identifier, also used as the signing region
        endpoint: Host (optionally with port) that buckets are addressed under
        location_constraint: Required when creating buckets outside the default region
    """

    name: str
    endpoint: str
    location_constraint: Optional[str] = None


REGIONS: Tuple[Region, ...] = (
    Region("us-east-1", "s3.amazonaws.com"),
    Region("us-west-2", "s3.us-west-2.amazonaws.com", "us-west-2"),
    Region("us-west-1", "s3.us-west-1.amazonaws.com", "us-west-1"),
    Region("eu-west-1", "s3.eu-west-1.amazonaws.com", "eu-west-1"),
    Region("ap-southeast-1", "s3.ap-southeast-1.amazonaws.com", "ap-southeast-1"),
    Region("ap-southeast-2", "s3.ap-southeast-2.amazonaws.com", "ap-southeast-2"),
    Region("ap-northeast-1", "s3.ap-northeast-1.amazonaws.com", "ap-northeast-1"),
    Region("sa-east-1", "s3.sa-east-1.amazonaws.com", "sa-east-1"),
)


def get_region(name: str, catalog: Tuple[Region, ...] = REGIONS) -> Region:
    """Look up a region by name.

    Raises:
        KeyError: If no region has that name
    """
    for region in catalog:
        if region.name == name:
            return region
    raise KeyError(f"Unknown region: {name}")


def filter_regions(pattern: str, catalog: Tuple[Region, ...] = REGIONS) -> Tuple[Region, ...]:
    """Return the regions whose name matches ``pattern`` (regex search), in catalog order."""
    matcher = re.compile(pattern)
    return tuple(region for region in catalog if matcher.search(region.name))
