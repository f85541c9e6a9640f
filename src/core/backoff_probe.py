import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Optional

import httpx

from contracts.probe_outcome import ProbeOutcome
from contracts.probe_target import ProbeTarget
from core.metrics_manager import MetricsManager
from core.profiler import Profiler

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 0.5
BACKOFF_FACTOR = 2.0
JITTER = 0.1
MAX_ATTEMPTS = 3


@dataclass
class ProbeAttempt:
    """
    Retry bookkeeping for a single probe run. Discarded when the run ends.
    """

    attempt: int = 0
    delay: float = BASE_DELAY_SECONDS
    max_attempts: int = MAX_ATTEMPTS
    jitter: float = JITTER

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts


class BackoffProbe:
    """
    Probes a target over HTTP, retrying with bounded exponential backoff.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
        base_delay: float = BASE_DELAY_SECONDS,
        factor: float = BACKOFF_FACTOR,
        jitter: float = JITTER,
        max_attempts: int = MAX_ATTEMPTS,
        metrics: Optional[MetricsManager] = None,
        sleep=asyncio.sleep,
        rand=random.random,
    ):
        """
        Initialize the BackoffProbe.

        Args:
            client (Optional[httpx.AsyncClient]): Shared client. When None a
                client is opened for each probe run.
            timeout (float): Deadline in seconds for each HTTP attempt.
            base_delay (float): Delay before the second attempt, before jitter.
            factor (float): Multiplier applied to the delay after each failure.
            jitter (float): Maximum extra fraction of the delay added at random.
            max_attempts (int): Attempts per run before the target is exhausted.
            metrics (Optional[MetricsManager]): Attempt counters.
        """
        self._client = client
        self.timeout = timeout
        self.base_delay = base_delay
        self.factor = factor
        self.jitter = jitter
        self.max_attempts = max_attempts
        self.metrics = metrics
        self._sleep = sleep
        self._rand = rand

    def backoff_delay(self, attempt: int) -> float:
        """
        Delay to wait after failed attempt number ``attempt`` (0-based).
        """
        delay = self.base_delay * (self.factor**attempt)
        return delay * (1 + self.jitter * self._rand())

    async def _attempt(self, client: httpx.AsyncClient, target: ProbeTarget) -> bool:
        try:
            resp = await client.get(target.url, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.debug(f"Probe attempt for {target.key} at {target.url} failed: {e!r}")
            return False
        if 200 <= resp.status_code < 300:
            return True
        logger.debug(
            f"Probe attempt for {target.key} at {target.url} returned status={resp.status_code}"
        )
        return False

    async def _run(self, client: httpx.AsyncClient, target: ProbeTarget) -> ProbeOutcome:
        state = ProbeAttempt(
            delay=self.base_delay, max_attempts=self.max_attempts, jitter=self.jitter
        )
        while not state.exhausted:
            try:
                ok = await self._attempt(client, target)
            except Exception as e:
                # Anything unexpected is still just a failed attempt for this target
                logger.warning(f"Unexpected probe error for {target.key}: {e!r}")
                ok = False
            if self.metrics:
                self.metrics.record_attempt(ok)
            if ok:
                logger.debug(
                    f"Probe success for {target.key} ({target.ip}) on attempt {state.attempt + 1}"
                )
                return ProbeOutcome.SUCCESS
            state.attempt += 1
            if state.exhausted:
                break
            state.delay = self.backoff_delay(state.attempt - 1)
            await self._sleep(state.delay)
        logger.warning(
            f"Failed to communicate with pod {target.name} ({target.ip}) after {state.attempt} attempts"
        )
        return ProbeOutcome.EXHAUSTED

    @Profiler.profile
    async def probe(self, target: ProbeTarget) -> ProbeOutcome:
        """
        Run one probe cycle against a target.

        Args:
            target (ProbeTarget): The target to probe.

        Returns:
            ProbeOutcome: SUCCESS as soon as any attempt gets a 2xx response,
                EXHAUSTED once every attempt has failed.
        """
        if self._client is not None:
            return await self._run(self._client, target)
        async with httpx.AsyncClient() as client:
            return await self._run(client, target)
