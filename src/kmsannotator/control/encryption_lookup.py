"""Disk encryption lookup - volume handle to KMS key.

Pipeline:
    decode_volume_handle → resolve_locality → zonal/regional disk read
    → parse_key_resource_name → EncryptionStatus

No retries and no caching: every call re-reads the disk and backend
errors propagate unmodified.
"""

import logging
import time

from kmsannotator.app.metrics.collector import DISK_LOOKUP_DURATION
from kmsannotator.core.domain.encryption import (
    EncryptionStatus,
    parse_key_resource_name,
)
from kmsannotator.core.domain.locality import Locality, resolve_locality
from kmsannotator.core.domain.volume_handle import VolumeHandle, decode_volume_handle
from kmsannotator.core.errors import LocalityResolutionError
from kmsannotator.core.interfaces.disk import DiskBackend, DiskRecord
from kmsannotator.core.logging_schema import Component, LogEvent

logger = logging.getLogger(__name__)


class DiskEncryptionLookup:
    """Resolves the customer-managed key of the disk behind a volume."""

    def __init__(self, backend: DiskBackend) -> None:
        self._backend = backend

    async def fetch_disk(self, handle: VolumeHandle) -> DiskRecord:
        """Read the disk addressed by a decoded volume handle.

        Raises:
            LocalityResolutionError: locality is neither zone nor region
            Exception: backend errors, unmodified
        """
        locality = resolve_locality(handle.locality)
        if locality == Locality.INVALID:
            raise LocalityResolutionError(
                handle.locality,
                f"Cannot determine disk locality of {handle.disk_name}: "
                f"{handle.locality!r} is neither a zone nor a region",
            )

        start = time.monotonic()
        try:
            if locality == Locality.ZONE:
                disk = await self._backend.get_zonal_disk(
                    handle.project, handle.locality, handle.disk_name
                )
            else:
                disk = await self._backend.get_regional_disk(
                    handle.project, handle.locality, handle.disk_name
                )
        except Exception as exc:
            logger.warning(
                "Disk read failed",
                extra={
                    "event": LogEvent.DISK_LOOKUP_FAILED,
                    "component": Component.LOOKUP,
                    "project": handle.project,
                    "locality": locality.value,
                    "disk": handle.disk_name,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            raise
        finally:
            DISK_LOOKUP_DURATION.labels(locality=locality.value).observe(
                time.monotonic() - start
            )

        logger.debug(
            "Disk fetched",
            extra={
                "event": LogEvent.DISK_FETCHED,
                "component": Component.LOOKUP,
                "project": handle.project,
                "locality": locality.value,
                "disk": handle.disk_name,
                "encrypted": disk.kms_key_name is not None,
            },
        )
        return disk

    async def get_encryption_status(
        self, volume_name: str, volume_handle: str
    ) -> EncryptionStatus | None:
        """Resolve the encryption status of a volume's disk.

        Args:
            volume_name: PersistentVolume name (also the disk name)
            volume_handle: Raw spec.csi.volumeHandle

        Returns:
            None if the handle is empty (not a managed disk),
            EncryptionStatus otherwise (unencrypted if the disk has no key)
        """
        handle = decode_volume_handle(volume_handle, volume_name)
        if handle is None:
            return None

        disk = await self.fetch_disk(handle)
        if not disk.kms_key_name:
            return EncryptionStatus.unencrypted()

        return parse_key_resource_name(disk.kms_key_name)
