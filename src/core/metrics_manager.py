import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge

logger = logging.getLogger(__name__)


class MetricsManager:
    """
    Live Prometheus counters for the watchdog loop.

    Only current counters and gauges are exported; nothing is kept in-process
    beyond what prometheus_client itself tracks.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """
        Initialize the MetricsManager and register its collectors.

        Args:
            registry (CollectorRegistry): Registry to attach collectors to.
                Tests pass a fresh registry to avoid duplicate registration.
        """
        self.registry = registry
        self.CYCLES = Counter(
            "canarywatch_cycles_total",
            "Discovery and dispatch cycles started",
            registry=registry,
        )
        self.DISCOVERY_FAILURES = Counter(
            "canarywatch_discovery_failures_total",
            "Cycles whose target discovery failed",
            registry=registry,
        )
        self.PROBE_ATTEMPTS = Counter(
            "canarywatch_probe_attempts_total",
            "Individual HTTP probe attempts",
            ["result"],
            registry=registry,
        )
        self.PROBE_RUNS = Counter(
            "canarywatch_probe_runs_total",
            "Completed probe runs by outcome",
            ["outcome"],
            registry=registry,
        )
        self.PROBES_SKIPPED = Counter(
            "canarywatch_probes_skipped_total",
            "Targets skipped because a previous probe was still in flight",
            registry=registry,
        )
        self.IN_FLIGHT = Gauge(
            "canarywatch_probes_in_flight",
            "Probe runs currently in flight",
            registry=registry,
        )
        self.ALERTS = Counter(
            "canarywatch_alerts_total",
            "Alert decisions for exhausted targets",
            ["result"],
            registry=registry,
        )
        logger.debug("MetricsManager initialized.")

    def record_attempt(self, ok: bool):
        self.PROBE_ATTEMPTS.labels(result="ok" if ok else "failed").inc()

    def record_outcome(self, outcome):
        self.PROBE_RUNS.labels(outcome=outcome.value).inc()

    def record_alert(self, result: str):
        """
        Count an alert decision.

        Args:
            result (str): One of ``emitted``, ``suppressed`` or ``failed``.
        """
        self.ALERTS.labels(result=result).inc()


_default_metrics = None


def get_default_metrics() -> MetricsManager:
    """
    Return the process-wide MetricsManager bound to the default registry.
    """
    global _default_metrics
    if _default_metrics is None:
        _default_metrics = MetricsManager()
    return _default_metrics
