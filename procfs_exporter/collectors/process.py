"""Scheduler metrics collectors"""
from typing import List

from .base import BaseCollector
from .procfs import ProcReader
from procfs_exporter.metrics.models import MetricKind, MetricValue


class RunningProcessesCollector(BaseCollector):
    """Collect the number of runnable processes from /proc/stat"""

    kind = MetricKind.RUNNING_PROCESSES

    def __init__(self, reader: ProcReader):
        super().__init__("Running process count from /proc/stat")
        self.reader = reader

    def collect(self) -> List[MetricValue]:
        result = self.reader.read_running_processes()
        if not result.is_success:
            return self.unavailable(result)

        return [
            self.gauge("running_processes", result.data.count, "Number of running processes")
        ]


class ContextSwitchesCollector(BaseCollector):
    """Collect the context switch count from /proc/stat"""

    kind = MetricKind.CONTEXT_SWITCHES

    def __init__(self, reader: ProcReader):
        super().__init__("Context switch count from /proc/stat")
        self.reader = reader

    def collect(self) -> List[MetricValue]:
        result = self.reader.read_context_switches()
        if not result.is_success:
            return self.unavailable(result)

        return [
            self.gauge("context_switches", result.data.count, "Number of context switches since boot")
        ]
