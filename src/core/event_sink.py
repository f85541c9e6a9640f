import logging

from kubernetes import client

from abstractions.alert_sink import AlertSink
from contracts.probe_target import ProbeTarget
from core.cluster_client import ClusterClient

logger = logging.getLogger(__name__)

COMPONENT = "canarywatch"
FAILURE_REASON = "CommunicationFailure"
STARTUP_REASON = "Startup"
STARTUP_MESSAGE = "CanaryWatch has started"


class KubeEventSink(AlertSink):
    """
    Records watchdog alerts as Kubernetes Events.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        namespace: str,
        pod_name: str = "",
        pod_uid: str = "",
    ):
        """
        Args:
            cluster (ClusterClient): Client used to create events.
            namespace (str): Namespace of the watchdog pod itself.
            pod_name (str): Watchdog pod name, referenced by the startup event.
            pod_uid (str): Watchdog pod uid, referenced by the startup event.
        """
        self.cluster = cluster
        self.namespace = namespace
        self.pod_name = pod_name
        self.pod_uid = pod_uid

    def build_failure_event(self, target: ProbeTarget, message: str) -> client.CoreV1Event:
        return client.CoreV1Event(
            metadata=client.V1ObjectMeta(
                generate_name=f"{target.name}-", namespace=target.namespace
            ),
            involved_object=client.V1ObjectReference(
                kind="Pod",
                name=target.name,
                namespace=target.namespace,
                uid=target.uid,
            ),
            reason=FAILURE_REASON,
            message=message,
            type="Warning",
            source=client.V1EventSource(component=COMPONENT),
        )

    def build_startup_event(self) -> client.CoreV1Event:
        return client.CoreV1Event(
            metadata=client.V1ObjectMeta(
                generate_name=f"{COMPONENT}-startup-", namespace=self.namespace
            ),
            involved_object=client.V1ObjectReference(
                kind="Pod",
                name=self.pod_name,
                namespace=self.namespace,
                uid=self.pod_uid or None,
            ),
            reason=STARTUP_REASON,
            message=STARTUP_MESSAGE,
            type="Normal",
            source=client.V1EventSource(component=COMPONENT),
        )

    async def record_communication_failure(self, target: ProbeTarget, message: str) -> None:
        await self.cluster.create_event(
            target.namespace, self.build_failure_event(target, message)
        )
        logger.info(f"Created {FAILURE_REASON} event for {target.key}")

    async def record_startup(self) -> None:
        await self.cluster.create_event(self.namespace, self.build_startup_event())
        logger.info(f"Reported startup event in namespace {self.namespace}")
