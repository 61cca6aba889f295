"""Cluster client interface for PersistentVolume objects."""

from abc import ABC, abstractmethod

from kubernetes_asyncio.client import V1PersistentVolume


class VolumeClient(ABC):
    """Interface for reading and persisting PersistentVolumes.

    Implementations: KubernetesVolumeClient
    """

    @abstractmethod
    async def get(self, name: str) -> V1PersistentVolume | None:
        """Fetch a PersistentVolume.

        Args:
            name: PersistentVolume name (cluster scoped)

        Returns:
            The volume, or None if it does not exist
        """
        ...

    @abstractmethod
    async def update(self, pv: V1PersistentVolume) -> V1PersistentVolume:
        """Persist a PersistentVolume.

        Optimistic concurrency: the object's resourceVersion must match
        the stored one; conflicts are raised to the caller.

        Args:
            pv: Modified volume

        Returns:
            The stored volume
        """
        ...
