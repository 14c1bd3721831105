"""Memory metrics collector"""
from typing import List

from .base import BaseCollector
from .derived import derive_memory_usage
from .procfs import ProcReader
from procfs_exporter.metrics.models import MetricKind, MetricValue, ReadResult


class MemoryCollector(BaseCollector):
    """Collect memory usage metrics from /proc/meminfo"""

    kind = MetricKind.MEMORY_USAGE

    def __init__(self, reader: ProcReader):
        super().__init__("Memory usage metrics from /proc/meminfo")
        self.reader = reader

    def collect(self) -> List[MetricValue]:
        """Collect the memory group from a single meminfo read"""
        result = self.reader.read_meminfo()
        if not result.is_success:
            return self.unavailable(result)

        usage = derive_memory_usage(result.data)
        if usage is None:
            return self.unavailable(ReadResult.unavailable("Total memory is zero"))

        metrics = [
            self.gauge("memory_usage_percentage", usage.percent, "Memory usage percentage"),
            self.gauge("total_memory_mb", usage.total_mb, "Total memory in MB"),
            self.gauge("used_memory_mb", usage.used_mb, "Used memory in MB"),
            self.gauge("available_memory_mb", usage.available_mb, "Available memory in MB"),
        ]
        if usage.fragmentation_percent is not None:
            metrics.append(self.gauge(
                "memory_fragmentation_percentage",
                usage.fragmentation_percent,
                "Share of available memory that is reclaimable rather than free"
            ))
        return metrics
