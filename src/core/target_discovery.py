import logging
from typing import List

from abstractions.target_discovery import TargetDiscovery
from contracts.probe_target import ProbeTarget
from core.cluster_client import ClusterClient
from core.profiler import Profiler

logger = logging.getLogger(__name__)


class PodTargetDiscovery(TargetDiscovery):
    """
    Discovers canary pods by label selector within one namespace.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        namespace: str,
        label_selector: str = "app=canarywatch",
        probe_port: int = 8080,
        probe_path: str = "/ping",
    ):
        self.cluster = cluster
        self.namespace = namespace
        self.label_selector = label_selector
        self.probe_port = probe_port
        self.probe_path = probe_path

    @Profiler.profile
    async def discover(self) -> List[ProbeTarget]:
        pods = await self.cluster.list_pods(self.namespace, self.label_selector)
        targets = []
        for pod in pods.items:
            ip = pod.status.pod_ip if pod.status else None
            if not ip:
                # Scheduled but not yet networked; nothing to probe this cycle
                logger.debug(f"Skipping pod {pod.metadata.name} with no IP")
                continue
            targets.append(
                ProbeTarget(
                    name=pod.metadata.name,
                    namespace=pod.metadata.namespace or self.namespace,
                    uid=pod.metadata.uid,
                    ip=ip,
                    port=self.probe_port,
                    path=self.probe_path,
                )
            )
        logger.debug(
            f"Discovered {len(targets)} targets in {self.namespace} matching {self.label_selector}"
        )
        return targets
