"""Infrastructure adapters - Compute Engine and Kubernetes clients."""

from kmsannotator.infra.gcp import GcpDiskBackend
from kmsannotator.infra.kubernetes import (
    KubernetesVolumeClient,
    close_kubernetes,
    init_kubernetes,
)

__all__ = [
    "GcpDiskBackend",
    "KubernetesVolumeClient",
    "close_kubernetes",
    "init_kubernetes",
]
