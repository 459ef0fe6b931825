"""Background sampler thread for slow-to-read OS metrics.

Some readings (I/O wait, per-interface throughput) need two samples spaced in
time, so they are refreshed on a fixed delay by a daemon thread and gauges read
the last published value.
"""

import threading
from typing import Any, Callable, Optional

from sysmetrics.core.logging_config import get_logger

logger = get_logger(__name__)


class PeriodicSampler:
    """Runs ``fetch`` every ``interval`` seconds and hands results to ``publish``.

    ``fetch`` returning None means "no reading this tick"; the previous value
    stays published.
    """

    def __init__(self, name: str, interval: float, fetch: Callable[[], Any], publish: Callable[[Any], None]):
        self.name = name
        self.interval = interval
        self._fetch = fetch
        self._publish = publish
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            logger.warning(f"Sampler {self.name} already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.debug(f"Sampler {self.name} started every {self.interval}s")

    def _run(self) -> None:
        # Fixed delay: the first refresh happens one interval after start
        while not self._stop_event.wait(timeout=self.interval):
            try:
                value = self._fetch()
                if value is not None:
                    self._publish(value)
            except Exception as e:
                logger.error(f"Error in sampler {self.name}: {e}")

        logger.debug(f"Sampler {self.name} stopped")

    def stop(self, timeout: float = 1.0) -> None:
        """Signal the thread to stop and wait up to ``timeout`` seconds for it."""
        self._stop_event.set()

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"Sampler {self.name} did not stop within {timeout}s")
