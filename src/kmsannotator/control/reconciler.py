"""PersistentVolumeReconciler - KMS key annotation convergence.

Reconcile pass (one per event, no intermediate state):
1. Load: read the PersistentVolume (gone → done)
2. Guard: CSI-backed with a non-empty volume handle (else → done)
3. Lookup: DiskEncryptionLookup → EncryptionStatus
4. Skip: unencrypted disks are left untouched
5. Persist: set key-name / key-version annotations, single update

Failures propagate to the host framework, which owns retry/backoff.
Annotations are never removed, and the update is issued even when the
values already match (at-least-once write).
"""

import logging
import time
from enum import StrEnum

from kubernetes_asyncio.client import V1PersistentVolume
from pydantic import BaseModel

from kmsannotator.app.logging import clear_trace_context, set_trace_id
from kmsannotator.app.metrics.collector import (
    ANNOTATION_WRITES_TOTAL,
    RECONCILE_DURATION,
    RECONCILE_FAILURES_TOTAL,
    RECONCILE_TOTAL,
)
from kmsannotator.control.encryption_lookup import DiskEncryptionLookup
from kmsannotator.core.domain.encryption import EncryptionStatus
from kmsannotator.core.interfaces.volume import VolumeClient
from kmsannotator.core.logging_schema import Component, LogEvent
from kmsannotator.core.retryable import classify_error, is_retryable

logger = logging.getLogger(__name__)


class AnnotationKeys(BaseModel):
    """Annotation keys written on encrypted volumes."""

    key_name: str
    key_version: str

    model_config = {"frozen": True}

    @classmethod
    def for_group(cls, group: str) -> "AnnotationKeys":
        return cls(
            key_name=f"{group}/kms-key-name",
            key_version=f"{group}/kms-key-version",
        )


class ReconcileOutcome(StrEnum):
    """Result of a successful reconcile pass."""

    NOT_FOUND = "not_found"
    NOT_MANAGED = "not_managed"
    UNENCRYPTED = "unencrypted"
    ANNOTATED = "annotated"


def has_csi_volume_handle(pv: V1PersistentVolume) -> bool:
    """Check if a volume is CSI-backed with a non-empty handle."""
    csi = pv.spec.csi if pv.spec else None
    return csi is not None and bool(csi.volume_handle)


class PersistentVolumeReconciler:
    """Writes a volume's disk KMS key into its annotations."""

    def __init__(
        self,
        volumes: VolumeClient,
        lookup: DiskEncryptionLookup,
        annotations: AnnotationKeys,
    ) -> None:
        self._volumes = volumes
        self._lookup = lookup
        self._annotations = annotations

    async def reconcile(self, name: str) -> ReconcileOutcome:
        """Run one reconcile pass for a PersistentVolume.

        Args:
            name: PersistentVolume name

        Returns:
            ReconcileOutcome of the pass

        Raises:
            Exception: any lookup or persist failure, unmodified
        """
        set_trace_id()
        start = time.monotonic()
        try:
            outcome = await self._reconcile(name)
        except Exception as exc:
            error_class = classify_error(exc)
            RECONCILE_FAILURES_TOTAL.labels(error_class=error_class.value).inc()
            logger.error(
                "Reconcile failed",
                extra={
                    "event": LogEvent.RECONCILE_FAILED,
                    "component": Component.RECONCILER,
                    "volume_name": name,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                    "error_class": error_class.value,
                    "retryable": is_retryable(exc),
                },
            )
            raise
        else:
            RECONCILE_TOTAL.labels(outcome=outcome.value).inc()
            logger.info(
                "Reconcile complete",
                extra={
                    "event": LogEvent.RECONCILE_COMPLETE,
                    "component": Component.RECONCILER,
                    "volume_name": name,
                    "outcome": outcome.value,
                    "duration_ms": round((time.monotonic() - start) * 1000, 1),
                },
            )
            return outcome
        finally:
            RECONCILE_DURATION.observe(time.monotonic() - start)
            clear_trace_context()

    async def _reconcile(self, name: str) -> ReconcileOutcome:
        pv = await self._volumes.get(name)
        if pv is None:
            return ReconcileOutcome.NOT_FOUND

        # Also filtered by the event source; checked again here
        if not has_csi_volume_handle(pv):
            logger.info(
                "Volume has no CSI volume handle - not a managed disk",
                extra={
                    "event": LogEvent.RECONCILE_SKIPPED,
                    "component": Component.RECONCILER,
                    "volume_name": name,
                },
            )
            return ReconcileOutcome.NOT_MANAGED

        status = await self._lookup.get_encryption_status(
            pv.metadata.name, pv.spec.csi.volume_handle
        )
        if status is None:
            return ReconcileOutcome.NOT_MANAGED
        if not status.is_encrypted():
            return ReconcileOutcome.UNENCRYPTED

        await self._apply_annotations(pv, status)
        return ReconcileOutcome.ANNOTATED

    async def _apply_annotations(
        self, pv: V1PersistentVolume, status: EncryptionStatus
    ) -> None:
        annotations = dict(pv.metadata.annotations or {})
        annotations[self._annotations.key_name] = status.key_principal
        annotations[self._annotations.key_version] = status.key_version
        pv.metadata.annotations = annotations

        await self._volumes.update(pv)
        ANNOTATION_WRITES_TOTAL.inc()
        logger.info(
            "Annotated volume with KMS key",
            extra={
                "event": LogEvent.ANNOTATIONS_APPLIED,
                "component": Component.RECONCILER,
                "volume_name": pv.metadata.name,
                "kms_key": status.key_principal,
                "kms_key_version": status.key_version,
            },
        )
