"""Compute Engine disk backend.

google-cloud-compute clients are blocking; each read runs in a worker
thread so the event loop keeps serving other volumes.
"""

import asyncio

from google.cloud import compute_v1

from kmsannotator.app.config import GcpConfig
from kmsannotator.core.interfaces.disk import DiskBackend, DiskRecord


def _to_record(disk: compute_v1.Disk) -> DiskRecord:
    kms_key_name = None
    if "disk_encryption_key" in disk:
        kms_key_name = disk.disk_encryption_key.kms_key_name or None
    return DiskRecord(name=disk.name, kms_key_name=kms_key_name)


class GcpDiskBackend(DiskBackend):
    """DiskBackend over the Compute Engine REST API."""

    def __init__(
        self,
        zonal: compute_v1.DisksClient,
        regional: compute_v1.RegionDisksClient,
        timeout_s: float = 30.0,
    ) -> None:
        self._zonal = zonal
        self._regional = regional
        self._timeout_s = timeout_s

    @classmethod
    def from_config(cls, config: GcpConfig) -> "GcpDiskBackend":
        """Build clients from a service account file or ADC."""
        if config.credentials_file:
            zonal = compute_v1.DisksClient.from_service_account_file(
                config.credentials_file
            )
            regional = compute_v1.RegionDisksClient.from_service_account_file(
                config.credentials_file
            )
        else:
            zonal = compute_v1.DisksClient()
            regional = compute_v1.RegionDisksClient()
        return cls(zonal, regional, timeout_s=config.timeout_s)

    async def get_zonal_disk(self, project: str, zone: str, name: str) -> DiskRecord:
        # retry=None: retrying is the host framework's job
        disk = await asyncio.to_thread(
            self._zonal.get,
            project=project,
            zone=zone,
            disk=name,
            retry=None,
            timeout=self._timeout_s,
        )
        return _to_record(disk)

    async def get_regional_disk(
        self, project: str, region: str, name: str
    ) -> DiskRecord:
        disk = await asyncio.to_thread(
            self._regional.get,
            project=project,
            region=region,
            disk=name,
            retry=None,
            timeout=self._timeout_s,
        )
        return _to_record(disk)
