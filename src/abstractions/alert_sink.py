from abc import ABC, abstractmethod

from contracts.probe_target import ProbeTarget


class AlertSink(ABC):
    """
    Abstract base class for destinations of watchdog alerts.
    """

    @abstractmethod
    async def record_communication_failure(
        self, target: ProbeTarget, message: str
    ) -> None:
        """
        Record a warning that a target could not be reached.

        Args:
            target (ProbeTarget): The target that exhausted its probe attempts.
            message (str): Human readable description of the failure.
        """

    @abstractmethod
    async def record_startup(self) -> None:
        """
        Record an informational event announcing that the watchdog started.
        """
