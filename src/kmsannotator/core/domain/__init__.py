"""Domain values for volume-to-key resolution."""

from kmsannotator.core.domain.encryption import (
    EncryptionStatus,
    parse_key_resource_name,
)
from kmsannotator.core.domain.locality import Locality, resolve_locality
from kmsannotator.core.domain.volume_handle import VolumeHandle, decode_volume_handle

__all__ = [
    "EncryptionStatus",
    "Locality",
    "VolumeHandle",
    "decode_volume_handle",
    "parse_key_resource_name",
    "resolve_locality",
]
