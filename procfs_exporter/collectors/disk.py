"""Disk I/O metrics collector"""
from typing import List

from .base import BaseCollector
from .procfs import ProcReader
from procfs_exporter.metrics.models import MetricKind, MetricValue


class DiskCollector(BaseCollector):
    """Collect I/O timing counters for one block device from /proc/diskstats"""

    kind = MetricKind.DISK_USAGE

    # (snapshot field, metric name, help text)
    FIELD_MAPPINGS = [
        ("read_time_ms", "disk_read_time_ms", "Time spent reading from the disk in ms"),
        ("write_time_ms", "disk_write_time_ms", "Time spent writing to the disk in ms"),
        ("io_in_progress", "disk_io_in_progress", "I/O operations currently in progress"),
        ("io_time_ms", "disk_io_time_ms", "Time spent doing I/O on the disk in ms"),
    ]

    def __init__(self, reader: ProcReader):
        super().__init__(f"Disk I/O metrics for {reader.disk_device} from /proc/diskstats")
        self.reader = reader

    def collect(self) -> List[MetricValue]:
        result = self.reader.read_disk()
        if not result.is_success:
            return self.unavailable(result)

        disk = result.data
        labels = {"device": disk.device}
        return [
            self.gauge(metric_name, getattr(disk, field_name), help_text, labels)
            for field_name, metric_name, help_text in self.FIELD_MAPPINGS
        ]
