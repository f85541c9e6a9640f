import unittest
from unittest.mock import AsyncMock, MagicMock

from contracts.cadence_config import CadenceConfig
from core.config_loader import apply_overrides, load_config
from core.event_limiter import EventLimiter
from core.interval_controller import IntervalController


class TestConfigLoader(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.cadence = CadenceConfig()
        self.controller = IntervalController(self.cadence)
        self.limiter = EventLimiter(self.cadence.event_refill_period)

    def test_apply_both_overrides(self):
        apply_overrides(
            {"checkInterval": "10", "maxEventRate": "2"}, self.controller, self.limiter
        )
        self.assertEqual(self.cadence.check_interval, 10.0)
        self.assertEqual(self.cadence.event_refill_period, 120.0)
        self.assertEqual(self.limiter.refill_period, 120.0)

    def test_invalid_values_keep_previous(self):
        with self.assertLogs("core", level="WARNING") as logs:
            apply_overrides(
                {"checkInterval": "fast", "maxEventRate": "-5"}, self.controller, self.limiter
            )
        joined = "\n".join(logs.output)
        self.assertIn("Invalid checkInterval", joined)
        self.assertIn("Invalid maxEventRate", joined)
        self.assertEqual(self.cadence.check_interval, 1.0)
        self.assertEqual(self.cadence.event_refill_period, 600.0)
        self.assertEqual(self.limiter.refill_period, 600.0)

    def test_missing_keys_change_nothing(self):
        apply_overrides({"unrelated": "x"}, self.controller, self.limiter)
        self.assertEqual(self.cadence.check_interval, 1.0)
        self.assertEqual(self.limiter.refill_period, 600.0)

    async def test_load_config_applies_config_map(self):
        cluster = MagicMock()
        cluster.read_config_map = AsyncMock(return_value={"checkInterval": "3"})
        loaded = await load_config(
            cluster, "canarywatch-config", "canarywatch", self.controller, self.limiter
        )
        self.assertTrue(loaded)
        cluster.read_config_map.assert_awaited_once_with("canarywatch-config", "canarywatch")
        self.assertEqual(self.cadence.check_interval, 3.0)

    async def test_missing_config_map_uses_defaults(self):
        cluster = MagicMock()
        cluster.read_config_map = AsyncMock(return_value=None)
        loaded = await load_config(cluster, "cm", "ns", self.controller, self.limiter)
        self.assertFalse(loaded)
        self.assertEqual(self.cadence.check_interval, 1.0)

    async def test_read_failure_is_recoverable(self):
        cluster = MagicMock()
        cluster.read_config_map = AsyncMock(side_effect=RuntimeError("forbidden"))
        with self.assertLogs("core.config_loader", level="WARNING"):
            loaded = await load_config(cluster, "cm", "ns", self.controller, self.limiter)
        self.assertFalse(loaded)
        self.assertEqual(self.cadence.check_interval, 1.0)


if __name__ == "__main__":
    unittest.main()
