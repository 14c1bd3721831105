"""CPU usage collector"""
from typing import List

from .base import BaseCollector
from .derived import CpuUsageCalculator
from .procfs import ProcReader
from procfs_exporter.metrics.models import MetricKind, MetricValue


class CPUCollector(BaseCollector):
    """Two-sample CPU usage percentage from /proc/stat"""

    kind = MetricKind.CPU_USAGE

    def __init__(self, reader: ProcReader):
        super().__init__("CPU usage percentage from /proc/stat tick deltas")
        self.calculator = CpuUsageCalculator(reader)

    def collect(self) -> List[MetricValue]:
        result = self.calculator.sample()
        if not result.is_success:
            return self.unavailable(result)

        return [
            self.gauge("cpu_usage_percentage", result.data.percent, "CPU usage percentage")
        ]
