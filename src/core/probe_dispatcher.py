import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from abstractions.alert_sink import AlertSink
from abstractions.target_discovery import TargetDiscovery
from contracts.cadence_config import CadenceConfig
from contracts.probe_outcome import ProbeOutcome
from contracts.probe_target import ProbeTarget
from core.backoff_probe import BackoffProbe
from core.event_limiter import EventLimiter
from core.metrics_manager import MetricsManager, get_default_metrics
from core.profiler import Profiler

logger = logging.getLogger(__name__)


class ProbeDispatcher:
    """
    Main watchdog loop: discover targets, fan out one probe per target, sleep.

    Probes are started as tasks and never awaited by the loop itself, so a slow
    target cannot delay the next cycle. A target that is still being probed
    when the next cycle starts is skipped for that cycle.
    """

    def __init__(
        self,
        discovery: TargetDiscovery,
        probe: BackoffProbe,
        limiter: EventLimiter,
        alert_sink: AlertSink,
        cadence: CadenceConfig,
        max_concurrent_probes: int = 50,
        alert_after_exhausted_runs: int = 1,
        metrics: Optional[MetricsManager] = None,
        sleep=asyncio.sleep,
    ):
        """
        Initialize the ProbeDispatcher.

        Args:
            discovery (TargetDiscovery): Source of targets for each cycle.
            probe (BackoffProbe): Per-target probe with retries.
            limiter (EventLimiter): Cluster-wide alert gate.
            alert_sink (AlertSink): Destination for communication failure alerts.
            cadence (CadenceConfig): Provides the sleep between cycles.
            max_concurrent_probes (int): Upper bound on probes running at once.
            alert_after_exhausted_runs (int): Consecutive exhausted runs needed
                before a target is alert-eligible.
            metrics (Optional[MetricsManager]): Prometheus counters.
        """
        if max_concurrent_probes <= 0:
            raise ValueError("max_concurrent_probes must be positive")
        self.discovery = discovery
        self.probe = probe
        self.limiter = limiter
        self.alert_sink = alert_sink
        self.cadence = cadence
        self.alert_after_exhausted_runs = max(1, alert_after_exhausted_runs)
        self.metrics = metrics or get_default_metrics()
        self.semaphore = asyncio.Semaphore(max_concurrent_probes)
        self._sleep = sleep
        self._running = False
        # target key -> running probe task
        self._in_flight: Dict[str, asyncio.Task] = {}
        # target key -> (pod uid, consecutive exhausted runs); reset on success,
        # on a uid change, and when a cycle no longer discovers the target
        self._consecutive_exhausted: Dict[str, Tuple[Optional[str], int]] = {}

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def tracked_targets(self) -> int:
        return len(self._consecutive_exhausted)

    def consecutive_exhausted(self, target_key: str) -> int:
        entry = self._consecutive_exhausted.get(target_key)
        return entry[1] if entry else 0

    def _forget_missing(self, targets: List[ProbeTarget]):
        discovered = {t.key for t in targets}
        for key in list(self._consecutive_exhausted):
            if key not in discovered and key not in self._in_flight:
                del self._consecutive_exhausted[key]

    @Profiler.profile
    async def run_cycle(self) -> List[asyncio.Task]:
        """
        Discover targets and start a probe task for each one not already in flight.

        Returns:
            List[asyncio.Task]: Tasks started by this cycle.
        """
        self.metrics.CYCLES.inc()
        try:
            targets = await self.discovery.discover()
        except Exception as e:
            self.metrics.DISCOVERY_FAILURES.inc()
            logger.error(f"Failed to retrieve CanaryWatch pods: {e}")
            return []

        self._forget_missing(targets)
        started = []
        for target in targets:
            if target.key in self._in_flight:
                self.metrics.PROBES_SKIPPED.inc()
                logger.debug(f"Probe for {target.key} still in flight; skipping this cycle")
                continue
            task = asyncio.create_task(
                self._probe_target(target), name=f"probe:{target.key}"
            )
            self._in_flight[target.key] = task
            task.add_done_callback(
                lambda _t, key=target.key: self._in_flight.pop(key, None)
            )
            started.append(task)
        logger.debug(
            f"Dispatched {len(started)} probes for {len(targets)} targets; {self.in_flight} in flight"
        )
        return started

    async def _probe_target(self, target: ProbeTarget):
        async with self.semaphore:
            self.metrics.IN_FLIGHT.inc()
            try:
                outcome = await self.probe.probe(target)
            except Exception as e:
                logger.error(f"Probe for {target.key} failed unexpectedly: {e!r}")
                return
            finally:
                self.metrics.IN_FLIGHT.dec()
        self.metrics.record_outcome(outcome)
        await self._handle_outcome(target, outcome)

    async def _handle_outcome(self, target: ProbeTarget, outcome: ProbeOutcome):
        if outcome is ProbeOutcome.SUCCESS:
            self._consecutive_exhausted.pop(target.key, None)
            return

        previous = self._consecutive_exhausted.get(target.key)
        if previous is not None and previous[0] == target.uid:
            runs = previous[1] + 1
        else:
            # first failure, or the name now belongs to a recreated pod
            runs = 1
        self._consecutive_exhausted[target.key] = (target.uid, runs)
        logger.warning(
            f"Pod {target.name} ({target.ip}) has {runs} consecutive exhausted probe runs"
        )
        if runs < self.alert_after_exhausted_runs:
            return

        if not self.limiter.allow():
            self.metrics.record_alert("suppressed")
            logger.warning(f"Alert for {target.key} suppressed by event rate limit")
            return

        attempts = self.probe.max_attempts
        message = (
            f"CanaryWatch: Failed to communicate with pod {target.name} ({target.ip}) "
            f"after {attempts} attempts ({runs} consecutive exhausted runs)."
        )
        try:
            await self.alert_sink.record_communication_failure(target, message)
        except Exception as e:
            self.metrics.record_alert("failed")
            logger.error(f"Failed to create event for {target.key}: {e}")
            return
        self.metrics.record_alert("emitted")

    async def run(self):
        """
        Run cycles until ``stop()`` is called.
        """
        self._running = True
        logger.info(f"Probe loop started with check interval {self.cadence.check_interval}s")
        while self._running:
            await self.run_cycle()
            await self._sleep(self.cadence.check_interval)
        logger.info("Probe loop stopped.")

    def stop(self):
        self._running = False

    async def drain(self):
        """
        Wait for every in-flight probe to finish.
        """
        tasks = list(self._in_flight.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
