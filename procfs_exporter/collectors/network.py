"""Network interface metrics collector"""
from typing import List

from .base import BaseCollector
from .procfs import ProcReader
from procfs_exporter.metrics.models import MetricKind, MetricValue
from procfs_exporter.logging_config import get_logger

logger = get_logger(__name__)


class NetworkCollector(BaseCollector):
    """Collect receive and transmit counters for every interface in /proc/net/dev"""

    kind = MetricKind.NETWORK_USAGE

    # (snapshot field, metric name, help text)
    COUNTER_MAPPINGS = [
        ("rx_bytes", "network_received_bytes", "Bytes received by the interface"),
        ("tx_bytes", "network_transmitted_bytes", "Bytes transmitted by the interface"),
        ("rx_errors", "network_received_errors", "Receive errors on the interface"),
        ("tx_errors", "network_transmitted_errors", "Transmit errors on the interface"),
        ("rx_dropped", "network_received_dropped", "Received packets dropped by the interface"),
        ("tx_dropped", "network_transmitted_dropped", "Transmitted packets dropped by the interface"),
    ]

    def __init__(self, reader: ProcReader):
        super().__init__("Network interface metrics from /proc/net/dev")
        self.reader = reader

    def collect(self) -> List[MetricValue]:
        """Collect one gauge set per interface"""
        result = self.reader.read_network()
        if not result.is_success:
            return self.unavailable(result)

        if result.errors:
            logger.warning("Skipped malformed interfaces", errors=result.errors, event_type="collection_partial")

        metrics = []
        for interface in result.data:
            labels = {"interface": interface.interface}
            for field_name, metric_name, help_text in self.COUNTER_MAPPINGS:
                metrics.append(self.gauge(metric_name, getattr(interface, field_name), help_text, labels))

        logger.debug(
            "Collected network metrics",
            metrics_count=len(metrics),
            interfaces=len(result.data),
            event_type="collection_network"
        )
        return metrics
