import functools
import inspect
import logging
import time

from prometheus_client import Histogram

logger = logging.getLogger(__name__)

CALL_SECONDS = Histogram(
    "canarywatch_call_seconds",
    "Duration of profiled watchdog calls in seconds",
    ["function"],
)


class Profiler:
    """
    Provides a decorator to time synchronous and asynchronous methods.

    Durations go to the ``canarywatch_call_seconds`` histogram, labelled by
    qualified name, and to the debug log.
    """

    @staticmethod
    def _record(name, start):
        elapsed = time.perf_counter() - start
        CALL_SECONDS.labels(function=name).observe(elapsed)
        logger.debug(f"[Profiler] {name} took {elapsed:.4f}s")

    @staticmethod
    def profile(func):
        name = func.__qualname__
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    Profiler._record(name, start)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                Profiler._record(name, start)

        return sync_wrapper
