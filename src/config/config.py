import os


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    NAMESPACE = os.environ.get("NAMESPACE") or "canarywatch"
    POD_NAME = os.environ.get("POD_NAME", "")
    POD_UID = os.environ.get("POD_UID", "")
    # Falls back to in-cluster credentials when empty
    KUBECONFIG = os.environ.get("KUBECONFIG", "")

    LABEL_SELECTOR = os.environ.get("CANARY_LABEL_SELECTOR", "app=canarywatch")
    CONFIGMAP_NAME = os.environ.get("CANARY_CONFIGMAP", "canarywatch-config")

    PROBE_PORT = int(os.environ.get("PROBE_PORT", "8080"))
    PROBE_PATH = os.environ.get("PROBE_PATH", "/ping")
    PROBE_TIMEOUT_SECONDS = float(os.environ.get("PROBE_TIMEOUT_SECONDS", "5"))
    MAX_CONCURRENT_PROBES = int(os.environ.get("MAX_CONCURRENT_PROBES", "50"))
    ALERT_AFTER_EXHAUSTED_RUNS = int(
        os.environ.get("ALERT_AFTER_EXHAUSTED_RUNS", "1")
    )

    RESPONDER_HOST = os.environ.get("RESPONDER_HOST", "0.0.0.0")
    RESPONDER_PORT = int(os.environ.get("RESPONDER_PORT", "8080"))

    DEFAULT_CHECK_INTERVAL_SECONDS = 1.0
    DEFAULT_EVENT_REFILL_SECONDS = 10 * 60.0
