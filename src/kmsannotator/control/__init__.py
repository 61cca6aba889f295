"""Control module - PersistentVolume reconciliation."""

from kmsannotator.control.encryption_lookup import DiskEncryptionLookup
from kmsannotator.control.reconciler import (
    AnnotationKeys,
    PersistentVolumeReconciler,
    ReconcileOutcome,
    has_csi_volume_handle,
)

__all__ = [
    "AnnotationKeys",
    "DiskEncryptionLookup",
    "PersistentVolumeReconciler",
    "ReconcileOutcome",
    "has_csi_volume_handle",
]
