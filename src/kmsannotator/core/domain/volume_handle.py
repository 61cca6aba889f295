"""CSI volume handle decoding.

Handle layout (GCE PD CSI driver):
    projects/{project}/zones/{zone}/disks/{disk}
    projects/{project}/regions/{region}/disks/{disk}
"""

from pydantic import BaseModel

from kmsannotator.core.errors import MalformedVolumeHandleError

_MIN_SEGMENTS = 4
_PROJECT_INDEX = 1
_LOCALITY_INDEX = 3


class VolumeHandle(BaseModel):
    """Disk identity decoded from a volume handle.

    Attributes:
        project: Cloud project, taken verbatim from the handle
        locality: Zone or region token, not yet classified
        disk_name: Disk name (the owning PersistentVolume's name)
    """

    project: str
    locality: str
    disk_name: str

    model_config = {"frozen": True}


def decode_volume_handle(handle: str, volume_name: str) -> VolumeHandle | None:
    """Decode a CSI volume handle into a disk identity.

    Args:
        handle: Raw spec.csi.volumeHandle
        volume_name: Name of the PersistentVolume owning the handle

    Returns:
        VolumeHandle, or None if the handle is empty (not a managed disk)

    Raises:
        MalformedVolumeHandleError: handle has fewer than 4 segments
    """
    if not handle:
        return None

    segments = handle.split("/")
    if len(segments) < _MIN_SEGMENTS:
        raise MalformedVolumeHandleError(
            f"Volume handle of {volume_name} has {len(segments)} segments, "
            f"expected at least {_MIN_SEGMENTS}: {handle!r}"
        )

    return VolumeHandle(
        project=segments[_PROJECT_INDEX],
        locality=segments[_LOCALITY_INDEX],
        disk_name=volume_name,
    )
