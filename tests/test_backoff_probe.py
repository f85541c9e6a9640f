import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from prometheus_client import CollectorRegistry

from contracts.probe_outcome import ProbeOutcome
from contracts.probe_target import ProbeTarget
from core.backoff_probe import BackoffProbe, ProbeAttempt
from core.metrics_manager import MetricsManager


class TestBackoffProbe(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.target = ProbeTarget(name="canary-a", namespace="canarywatch", ip="10.0.0.7")
        self.sleep = AsyncMock()
        self.metrics = MetricsManager(registry=CollectorRegistry())
        self.probe = BackoffProbe(
            timeout=2.0, metrics=self.metrics, sleep=self.sleep, rand=lambda: 0.5
        )

    @patch("core.backoff_probe.httpx.AsyncClient")
    async def test_success_on_first_attempt(self, mock_client):
        client_instance = mock_client.return_value.__aenter__.return_value
        client_instance.get = AsyncMock(return_value=MagicMock(status_code=200))
        outcome = await self.probe.probe(self.target)
        self.assertEqual(outcome, ProbeOutcome.SUCCESS)
        client_instance.get.assert_awaited_once_with("http://10.0.0.7:8080/ping", timeout=2.0)
        self.sleep.assert_not_awaited()

    @patch("core.backoff_probe.httpx.AsyncClient")
    async def test_any_2xx_is_success(self, mock_client):
        client_instance = mock_client.return_value.__aenter__.return_value
        client_instance.get = AsyncMock(return_value=MagicMock(status_code=204))
        self.assertEqual(await self.probe.probe(self.target), ProbeOutcome.SUCCESS)

    @patch("core.backoff_probe.httpx.AsyncClient")
    async def test_success_after_retries(self, mock_client):
        client_instance = mock_client.return_value.__aenter__.return_value
        client_instance.get = AsyncMock(
            side_effect=[
                httpx.ConnectError("refused"),
                MagicMock(status_code=503),
                MagicMock(status_code=200),
            ]
        )
        outcome = await self.probe.probe(self.target)
        self.assertEqual(outcome, ProbeOutcome.SUCCESS)
        self.assertEqual(client_instance.get.await_count, 3)
        delays = [c.args[0] for c in self.sleep.await_args_list]
        self.assertEqual(len(delays), 2)
        self.assertAlmostEqual(delays[0], 0.5 * 1.05)
        self.assertAlmostEqual(delays[1], 1.0 * 1.05)

    @patch("core.backoff_probe.httpx.AsyncClient")
    async def test_three_failures_exhaust(self, mock_client):
        client_instance = mock_client.return_value.__aenter__.return_value
        failures = [
            [httpx.ConnectError("refused")] * 3,
            [MagicMock(status_code=500)] * 3,
            [httpx.ReadTimeout("slow"), MagicMock(status_code=404), Exception("boom")],
        ]
        for side_effect in failures:
            self.sleep.reset_mock()
            client_instance.get = AsyncMock(side_effect=side_effect)
            outcome = await self.probe.probe(self.target)
            self.assertEqual(outcome, ProbeOutcome.EXHAUSTED)
            self.assertEqual(client_instance.get.await_count, 3)
            # no wait after the final attempt
            self.assertEqual(self.sleep.await_count, 2)

    async def test_shared_client_is_used(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=MagicMock(status_code=200))
        probe = BackoffProbe(client=client, sleep=self.sleep)
        self.assertEqual(await probe.probe(self.target), ProbeOutcome.SUCCESS)
        client.get.assert_awaited_once()

    async def test_attempts_are_counted(self):
        client = MagicMock()
        client.get = AsyncMock(
            side_effect=[MagicMock(status_code=500), MagicMock(status_code=200)]
        )
        probe = BackoffProbe(client=client, metrics=self.metrics, sleep=self.sleep)
        await probe.probe(self.target)
        registry = self.metrics.registry
        self.assertEqual(
            registry.get_sample_value("canarywatch_probe_attempts_total", {"result": "failed"}), 1
        )
        self.assertEqual(
            registry.get_sample_value("canarywatch_probe_attempts_total", {"result": "ok"}), 1
        )

    def test_backoff_delay_bounds(self):
        low = BackoffProbe(rand=lambda: 0.0)
        high = BackoffProbe(rand=lambda: 0.999999)
        for attempt, base in enumerate([0.5, 1.0, 2.0]):
            self.assertAlmostEqual(low.backoff_delay(attempt), base)
            self.assertLess(high.backoff_delay(attempt), base * 1.1)

    def test_probe_attempt_exhaustion(self):
        state = ProbeAttempt()
        self.assertFalse(state.exhausted)
        state.attempt = 3
        self.assertTrue(state.exhausted)


if __name__ == "__main__":
    unittest.main()
