"""Cloud disk backend interface for disk encryption lookups."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DiskRecord:
    """Disk read result.

    kms_key_name is None when the disk has no customer-managed key.
    """

    name: str
    kms_key_name: str | None = None


class DiskBackend(ABC):
    """Interface for single-disk reads.

    Implementations: GcpDiskBackend

    Errors (not found, permission denied, network) are raised as-is.
    """

    @abstractmethod
    async def get_zonal_disk(self, project: str, zone: str, name: str) -> DiskRecord:
        """Read a zonal disk.

        Args:
            project: Cloud project
            zone: Zone (e.g., "us-central1-a")
            name: Disk name

        Returns:
            DiskRecord for the disk
        """
        ...

    @abstractmethod
    async def get_regional_disk(
        self, project: str, region: str, name: str
    ) -> DiskRecord:
        """Read a regional (replicated) disk.

        Args:
            project: Cloud project
            region: Region (e.g., "us-central1")
            name: Disk name

        Returns:
            DiskRecord for the disk
        """
        ...
