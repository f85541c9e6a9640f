import logging

from core.event_limiter import EventLimiter
from core.interval_controller import IntervalController, parse_positive_int

logger = logging.getLogger(__name__)

CHECK_INTERVAL_KEY = "checkInterval"
MAX_EVENT_RATE_KEY = "maxEventRate"


def apply_event_rate_override(limiter: EventLimiter, cadence, raw) -> bool:
    """
    Apply a ``maxEventRate`` override, given in minutes per alert.

    Returns:
        bool: True if the override was valid and applied.
    """
    try:
        minutes = parse_positive_int(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid maxEventRate in ConfigMap: {raw!r}")
        return False
    cadence.event_refill_period = minutes * 60.0
    limiter.set_refill_period(cadence.event_refill_period)
    return True


def apply_overrides(data, interval_controller: IntervalController, limiter: EventLimiter):
    """
    Apply the recognised ConfigMap keys. Unknown keys are ignored.
    """
    if CHECK_INTERVAL_KEY in data:
        interval_controller.apply_override(data[CHECK_INTERVAL_KEY])
    if MAX_EVENT_RATE_KEY in data:
        apply_event_rate_override(
            limiter, interval_controller.cadence, data[MAX_EVENT_RATE_KEY]
        )


async def load_config(
    cluster,
    name: str,
    namespace: str,
    interval_controller: IntervalController,
    limiter: EventLimiter,
) -> bool:
    """
    Read the watchdog ConfigMap and apply its overrides.

    Read failures are logged and leave every value as it was.

    Returns:
        bool: True if a ConfigMap was found and processed.
    """
    try:
        data = await cluster.read_config_map(name, namespace)
    except Exception as e:
        logger.warning(f"Failed to load ConfigMap {namespace}/{name}: {e}")
        return False
    if data is None:
        logger.info(f"ConfigMap {namespace}/{name} not found; using defaults")
        return False
    apply_overrides(data, interval_controller, limiter)
    return True
