import logging
import logging.config
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
# File logging is opt-in; inside a pod stdout is collected by the runtime.
LOG_FILE = os.getenv("LOG_FILE", "")


def build_logging_config(level=None, log_file=None):
    level = (level or LOG_LEVEL).upper()
    log_file = LOG_FILE if log_file is None else log_file
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": level,
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "formatter": "default",
            "level": level,
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": LOG_FORMAT,
            },
        },
        "handlers": handlers,
        "loggers": {
            # The kubernetes client logs every request body at DEBUG
            "kubernetes": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
            "uvicorn.access": {"level": "WARNING"},
        },
        "root": {
            "handlers": list(handlers),
            "level": level,
        },
    }


def setup_logging(level=None, log_file=None):
    log_file = LOG_FILE if log_file is None else log_file
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    logging.config.dictConfig(build_logging_config(level, log_file))
