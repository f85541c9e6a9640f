from pydantic import BaseModel, Field

from config.config import Config


class CadenceConfig(BaseModel):
    """
    Timing values shared by the dispatcher loop and the event limiter.

    Built once at startup, adjusted by the interval controller and the
    ConfigMap overrides, then only read.
    """

    model_config = {"validate_assignment": True}

    check_interval: float = Field(
        default=Config.DEFAULT_CHECK_INTERVAL_SECONDS, gt=0
    )
    event_refill_period: float = Field(
        default=Config.DEFAULT_EVENT_REFILL_SECONDS, gt=0
    )
