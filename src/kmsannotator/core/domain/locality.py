"""Disk locality classification (zonal vs regional)."""

import re
from enum import StrEnum


class Locality(StrEnum):
    """Where a persistent disk lives."""

    ZONE = "zone"
    REGION = "region"
    INVALID = "invalid"


# us-central1-a
_ZONE_PATTERN = re.compile(r"[a-z]+-[a-z]+[0-9]-[a-z]")
# us-central1
_REGION_PATTERN = re.compile(r"[a-z]+-[a-z]+[0-9]")


def resolve_locality(token: str) -> Locality:
    """Classify a locality token as zone, region or invalid.

    The zonal shape is tested first. Never raises.
    """
    if _ZONE_PATTERN.fullmatch(token):
        return Locality.ZONE
    if _REGION_PATTERN.fullmatch(token):
        return Locality.REGION
    return Locality.INVALID
