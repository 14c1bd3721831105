"""Timer-driven sampling loop feeding the metrics store"""
import threading
import time
from typing import Optional

from procfs_exporter.metrics.registry import MetricsRegistry
from procfs_exporter.metrics.store import MetricsStore
from procfs_exporter.logging_config import get_logger, log_metrics_collection, log_error


logger = get_logger(__name__)


class SamplingLoop:
    """Sample every enabled metric once per interval on a dedicated thread.

    All blocking work, including allocator benchmark runs, happens here and
    never on an HTTP-serving context. A failure in one collector is logged
    and does not affect the other collectors of the same tick.
    """

    def __init__(self, registry: MetricsRegistry, store: MetricsStore, interval: float):
        self.registry = registry
        self.store = store
        self.interval = interval

        # Collection state, read by the status endpoints
        self.last_collection_time = 0.0
        self.collection_count = 0
        self.collection_errors = 0

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the sampling thread"""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run_forever, name="sampling_loop", daemon=True)
        self._thread.start()
        logger.info("Sampling loop started", interval=self.interval, event_type="sampler_start")

    def stop(self, timeout: Optional[float] = None):
        """Ask the sampling thread to exit after the current tick"""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Sampling loop stopped", event_type="sampler_stop")

    def run_forever(self):
        """Background sampling loop"""
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self.interval)

    def tick(self) -> int:
        """Sample every enabled metric once, returning the number of gauges published"""
        start_time = time.time()
        self.collection_count += 1
        published = 0
        errors = 0

        for kind, collector in self.registry.collectors.items():
            try:
                logger.debug("Collecting metrics", collector=collector.name, event_type="collection_start")
                metrics = collector.collect()
                if metrics:
                    self.store.set_group(kind, metrics)
                    published += len(metrics)
            except Exception as e:
                errors += 1
                log_error(logger, e, {"component": "sampling_loop", "collector": collector.name})

        if errors:
            self.collection_errors += 1
        self.last_collection_time = time.time()
        log_metrics_collection(logger, published, self.last_collection_time - start_time, errors)
        return published
