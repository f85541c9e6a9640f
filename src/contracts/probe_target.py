from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProbeTarget(BaseModel):
    """
    Snapshot of one canary pod as seen by a single discovery cycle.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    ip: str
    uid: Optional[str] = None
    port: int = 8080
    path: str = "/ping"

    @property
    def key(self) -> str:
        """
        Stable identity used to track a target across cycles.
        """
        return f"{self.namespace}/{self.name}"

    @property
    def url(self) -> str:
        """
        Probe URL derived from the pod address.
        """
        return f"http://{self.ip}:{self.port}{self.path}"

    def __repr__(self):
        return f"ProbeTarget(key={self.key}, ip={self.ip})"
