import argparse
import asyncio
import logging
import sys

import httpx
import uvicorn

from config.config import Config
from config.logging_config import setup_logging
from contracts.cadence_config import CadenceConfig
from core.backoff_probe import BackoffProbe
from core.cluster_client import ClusterAccessError, ClusterClient
from core.config_loader import load_config
from core.event_limiter import EventLimiter
from core.event_sink import KubeEventSink
from core.interval_controller import IntervalController
from core.metrics_manager import get_default_metrics
from core.probe_dispatcher import ProbeDispatcher
from core.target_discovery import PodTargetDiscovery
from responder import app as responder_app

logger = logging.getLogger(__name__)


async def configure_cadence(cluster, cadence: CadenceConfig, limiter: EventLimiter):
    """
    Derive the check interval from cluster size, then apply ConfigMap overrides.
    """
    controller = IntervalController(cadence, cluster)
    await controller.adapt_to_cluster_size()
    await load_config(cluster, Config.CONFIGMAP_NAME, Config.NAMESPACE, controller, limiter)
    logger.info(
        f"Cadence: check_interval={cadence.check_interval}s, "
        f"event_refill_period={cadence.event_refill_period}s"
    )


async def report_startup(sink: KubeEventSink):
    try:
        await sink.record_startup()
    except Exception as e:
        logger.error(f"Failed to report startup event: {e}")


def build_responder_server() -> uvicorn.Server:
    uvicorn_cfg = uvicorn.Config(
        app=responder_app,
        host=Config.RESPONDER_HOST,
        port=Config.RESPONDER_PORT,
        log_config=None,
        log_level="warning",
    )
    return uvicorn.Server(uvicorn_cfg)


async def main_async(kubeconfig: str):
    try:
        cluster = ClusterClient.from_kubeconfig(kubeconfig)
    except ClusterAccessError as e:
        logger.critical(str(e))
        sys.exit(1)

    cadence = CadenceConfig()
    limiter = EventLimiter(cadence.event_refill_period)
    await configure_cadence(cluster, cadence, limiter)

    sink = KubeEventSink(cluster, Config.NAMESPACE, Config.POD_NAME, Config.POD_UID)
    await report_startup(sink)

    metrics = get_default_metrics()
    async with httpx.AsyncClient() as http_client:
        dispatcher = ProbeDispatcher(
            discovery=PodTargetDiscovery(
                cluster,
                Config.NAMESPACE,
                label_selector=Config.LABEL_SELECTOR,
                probe_port=Config.PROBE_PORT,
                probe_path=Config.PROBE_PATH,
            ),
            probe=BackoffProbe(
                client=http_client,
                timeout=Config.PROBE_TIMEOUT_SECONDS,
                metrics=metrics,
            ),
            limiter=limiter,
            alert_sink=sink,
            cadence=cadence,
            max_concurrent_probes=Config.MAX_CONCURRENT_PROBES,
            alert_after_exhausted_runs=Config.ALERT_AFTER_EXHAUSTED_RUNS,
            metrics=metrics,
        )
        server = build_responder_server()
        loop_task = asyncio.create_task(dispatcher.run(), name="probe-loop")
        logger.info(
            f"Responder listening on http://{Config.RESPONDER_HOST}:{Config.RESPONDER_PORT}"
        )
        try:
            # Returns once uvicorn handles SIGINT/SIGTERM
            await server.serve()
        finally:
            dispatcher.stop()
            loop_task.cancel()
            try:
                await loop_task
            except asyncio.CancelledError:
                pass
            await dispatcher.drain()
    logger.info("CanaryWatch has shut down.")


def main():
    parser = argparse.ArgumentParser(description="CanaryWatch cluster watchdog")
    parser.add_argument(
        "--kubeconfig",
        default=Config.KUBECONFIG,
        help="Path to a kubeconfig file (default: in-cluster credentials)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: LOG_LEVEL or info)",
    )
    args = parser.parse_args()

    setup_logging(level=args.log_level)
    logger.info(f"CanaryWatch starting in namespace {Config.NAMESPACE}")
    try:
        asyncio.run(main_async(args.kubeconfig))
    except KeyboardInterrupt:
        logger.info("Interrupted.")


if __name__ == "__main__":
    main()
