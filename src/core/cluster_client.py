"""
Thin async wrapper around the Kubernetes CoreV1 API.

The kubernetes client is blocking, so every call is pushed to a worker thread
with ``asyncio.to_thread`` to keep the probe loop responsive.
"""
import asyncio
import logging
from typing import Dict, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

logger = logging.getLogger(__name__)


class ClusterAccessError(Exception):
    """Raised when cluster credentials or the API client cannot be built."""


def build_core_api(kubeconfig: Optional[str] = None) -> client.CoreV1Api:
    """
    Build a CoreV1Api from a kubeconfig file, or from in-cluster credentials.

    Args:
        kubeconfig (Optional[str]): Path to a kubeconfig file. Empty or None
            selects the pod's service account.

    Raises:
        ClusterAccessError: If no usable credentials are found.
    """
    try:
        if kubeconfig:
            logger.info(f"Loading cluster credentials from {kubeconfig}")
            config.load_kube_config(config_file=kubeconfig)
        else:
            logger.info("Loading in-cluster credentials")
            config.load_incluster_config()
        return client.CoreV1Api()
    except (ConfigException, OSError, TypeError, ValueError) as e:
        raise ClusterAccessError(f"Failed to build Kubernetes config: {e}") from e


class ClusterClient:
    """
    Async facade over the cluster operations the watchdog consumes.
    """

    def __init__(self, core_api: client.CoreV1Api):
        self.core_api = core_api

    @classmethod
    def from_kubeconfig(cls, kubeconfig: Optional[str] = None) -> "ClusterClient":
        return cls(build_core_api(kubeconfig))

    async def list_pods(self, namespace: str, label_selector: str):
        return await asyncio.to_thread(
            self.core_api.list_namespaced_pod,
            namespace,
            label_selector=label_selector,
        )

    async def count_nodes(self) -> int:
        nodes = await asyncio.to_thread(self.core_api.list_node)
        return len(nodes.items)

    async def read_config_map(self, name: str, namespace: str) -> Optional[Dict[str, str]]:
        """
        Return the data of a ConfigMap, or None if it does not exist.

        Raises:
            ApiException: For any API error other than 404.
        """
        try:
            cm = await asyncio.to_thread(
                self.core_api.read_namespaced_config_map, name, namespace
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        return dict(cm.data or {})

    async def create_event(self, namespace: str, event: client.CoreV1Event):
        return await asyncio.to_thread(
            self.core_api.create_namespaced_event, namespace, event
        )
