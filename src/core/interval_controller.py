import logging

from contracts.cadence_config import CadenceConfig
from core.profiler import Profiler

logger = logging.getLogger(__name__)

SMALL_CLUSTER_MAX_NODES = 15
SMALL_CLUSTER_INTERVAL_SECONDS = 1.0
LARGE_CLUSTER_INTERVAL_SECONDS = 5.0


def compute_cadence(node_count: int) -> float:
    """
    Seconds between probe cycles for a cluster of ``node_count`` nodes.
    """
    if node_count <= SMALL_CLUSTER_MAX_NODES:
        return SMALL_CLUSTER_INTERVAL_SECONDS
    return LARGE_CLUSTER_INTERVAL_SECONDS


def parse_positive_int(raw) -> int:
    """
    Parse a ConfigMap value as a strictly positive integer.

    Raises:
        ValueError: If the value is not an integer or is not positive.
    """
    value = int(str(raw).strip())
    if value <= 0:
        raise ValueError(f"must be positive, got {value}")
    return value


class IntervalController:
    """
    Owns the check interval held in a CadenceConfig.
    """

    def __init__(self, cadence: CadenceConfig, cluster=None):
        """
        Args:
            cadence (CadenceConfig): Shared timing values to update.
            cluster: Object exposing ``async count_nodes()``; may be None.
        """
        self.cadence = cadence
        self.cluster = cluster

    @Profiler.profile
    async def adapt_to_cluster_size(self) -> float:
        """
        Set the check interval from the current node count.

        A failed node query keeps the previous interval.

        Returns:
            float: The active check interval.
        """
        if self.cluster is None:
            return self.cadence.check_interval
        try:
            node_count = await self.cluster.count_nodes()
        except Exception as e:
            logger.warning(
                f"Failed to adjust check interval based on node count: {e}; "
                f"keeping {self.cadence.check_interval}s"
            )
            return self.cadence.check_interval
        self.cadence.check_interval = compute_cadence(node_count)
        logger.info(
            f"Cluster has {node_count} nodes; check interval set to {self.cadence.check_interval}s"
        )
        return self.cadence.check_interval

    def apply_override(self, raw) -> bool:
        """
        Apply an explicit ``checkInterval`` override in seconds.

        Returns:
            bool: True if the override was valid and applied.
        """
        try:
            seconds = parse_positive_int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid checkInterval in ConfigMap: {raw!r}")
            return False
        self.cadence.check_interval = float(seconds)
        logger.info(f"Check interval overridden to {seconds}s")
        return True
