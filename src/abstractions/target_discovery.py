from abc import ABC, abstractmethod
from typing import List

from contracts.probe_target import ProbeTarget


class TargetDiscovery(ABC):
    """
    Abstract base class for sources of probe targets.
    """

    @abstractmethod
    async def discover(self) -> List[ProbeTarget]:
        """
        Return the current set of probe targets.

        Returns:
            List[ProbeTarget]: Targets in discovery order.

        Raises:
            Exception: Any failure to query the source. Callers treat it as
                transient.
        """
