"""Kubernetes PersistentVolume client management."""

import logging

from kubernetes_asyncio import client, config
from kubernetes_asyncio.client import V1PersistentVolume
from kubernetes_asyncio.client.exceptions import ApiException

from kmsannotator.app.config import KubernetesConfig
from kmsannotator.core.interfaces.volume import VolumeClient
from kmsannotator.core.logging_schema import LogEvent

logger = logging.getLogger(__name__)

_api_client: client.ApiClient | None = None


async def init_kubernetes(kube_config: KubernetesConfig) -> client.ApiClient:
    """Load cluster credentials and create the shared API client."""
    global _api_client

    if kube_config.in_cluster:
        config.load_incluster_config()
    else:
        await config.load_kube_config(config_file=kube_config.config_file)

    _api_client = client.ApiClient()
    logger.info(
        "Kubernetes client initialized",
        extra={"event": LogEvent.APP_STARTED, "in_cluster": kube_config.in_cluster},
    )
    return _api_client


async def close_kubernetes() -> None:
    global _api_client

    if _api_client is not None:
        await _api_client.close()
        _api_client = None
        logger.info("Kubernetes client closed", extra={"event": LogEvent.APP_STOPPED})


class KubernetesVolumeClient(VolumeClient):
    """VolumeClient over the core/v1 API."""

    def __init__(self, core_v1: client.CoreV1Api) -> None:
        self._core_v1 = core_v1

    async def get(self, name: str) -> V1PersistentVolume | None:
        try:
            return await self._core_v1.read_persistent_volume(name)
        except ApiException as exc:
            if exc.status == 404:
                return None
            raise

    async def update(self, pv: V1PersistentVolume) -> V1PersistentVolume:
        # replace (not patch) so metadata.resourceVersion guards the write
        return await self._core_v1.replace_persistent_volume(pv.metadata.name, pv)
