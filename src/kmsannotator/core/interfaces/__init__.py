"""Core interfaces for external collaborators."""

from kmsannotator.core.interfaces.disk import DiskBackend, DiskRecord
from kmsannotator.core.interfaces.volume import VolumeClient

__all__ = [
    # Cloud disk backend
    "DiskBackend",
    "DiskRecord",
    # Cluster object client
    "VolumeClient",
]
