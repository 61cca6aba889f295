"""kopf operator entry point.

Run:
    pv-kms-annotator
    kopf run --all-namespaces -m kmsannotator.app.main
"""

import logging
from typing import Any

import kopf
from kubernetes_asyncio import client

from kmsannotator.app.config import get_settings
from kmsannotator.app.logging import setup_logging
from kmsannotator.app.metrics import setup_metrics
from kmsannotator.control import (
    AnnotationKeys,
    DiskEncryptionLookup,
    PersistentVolumeReconciler,
)
from kmsannotator.core.logging_schema import Component, LogEvent
from kmsannotator.infra import (
    GcpDiskBackend,
    KubernetesVolumeClient,
    close_kubernetes,
    init_kubernetes,
)

logger = logging.getLogger(__name__)

_settings = get_settings()
_operator_config = _settings.operator

RESOURCE = "persistentvolumes"


def has_volume_handle(spec: kopf.Spec, **_: Any) -> bool:
    """Event filter: CSI-backed volume with a non-empty handle."""
    csi = spec.get("csi") or {}
    return bool(csi.get("volumeHandle"))


@kopf.on.startup()
async def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure kopf and build the reconciler."""
    app_settings = get_settings()
    setup_logging()

    group = app_settings.annotation.group
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=group)
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(prefix=group)
    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = _operator_config.request_timeout
    settings.execution.max_workers = _operator_config.max_workers

    if app_settings.metrics.enabled:
        setup_metrics(app_settings.metrics.port)

    api_client = await init_kubernetes(app_settings.kubernetes)
    memo.reconciler = PersistentVolumeReconciler(
        volumes=KubernetesVolumeClient(client.CoreV1Api(api_client)),
        lookup=DiskEncryptionLookup(GcpDiskBackend.from_config(app_settings.gcp)),
        annotations=AnnotationKeys.for_group(group),
    )
    logger.info(
        "Operator started",
        extra={
            "event": LogEvent.APP_STARTED,
            "component": Component.OPERATOR,
            "annotation_group": group,
        },
    )


@kopf.on.cleanup()
async def cleanup(**_: Any) -> None:
    await close_kubernetes()


@kopf.on.resume(RESOURCE, when=has_volume_handle, backoff=_operator_config.backoff)
@kopf.on.create(RESOURCE, when=has_volume_handle, backoff=_operator_config.backoff)
@kopf.on.update(RESOURCE, when=has_volume_handle, backoff=_operator_config.backoff)
async def reconcile_persistent_volume(name: str, memo: kopf.Memo, **_: Any) -> None:
    """Reconcile one PersistentVolume; kopf retries on any exception."""
    await memo.reconciler.reconcile(name)


def main() -> None:
    # PersistentVolumes are cluster scoped
    kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
