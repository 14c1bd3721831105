"""Allocator benchmark metrics collector"""
from typing import List

from .base import BaseCollector
from procfs_exporter.metrics.models import AllocatorPolicy, MetricKind, MetricValue
from procfs_exporter.utils.allocator_bridge import AllocatorBridge, BridgeError
from procfs_exporter.logging_config import get_logger, log_error

logger = get_logger(__name__)


class AllocatorCollector(BaseCollector):
    """Publish the result record of one allocator benchmark policy.

    Each collect() runs the benchmark synchronously, so sampling intervals
    shorter than a benchmark run are not meaningful for these kinds.
    """

    # (record field, metric suffix, help text)
    FIELD_MAPPINGS = [
        ("iterations", "Iteration", "Benchmark iterations"),
        ("time_taken", "Time_Taken", "Benchmark run time"),
        ("total_allocated", "Total_Allocated", "Total bytes allocated"),
        ("freed_blocks", "Freed_Blocks", "Blocks freed during the run"),
        ("free_blocks", "Free_Blocks", "Free blocks at the end of the run"),
        ("free_size", "Free_Size", "Free bytes at the end of the run"),
        ("avg_fragmentation", "Avg_Fragmentation", "Average fragmentation"),
        ("external_fragmentation", "External_Fragmentation", "External fragmentation"),
    ]

    def __init__(self, bridge: AllocatorBridge, policy: AllocatorPolicy):
        super().__init__(f"{policy.value} allocator benchmark results")
        self.bridge = bridge
        self.policy = policy
        self.kind = MetricKind(policy.value)

    def collect(self) -> List[MetricValue]:
        try:
            record = self.bridge.run(self.policy)
        except BridgeError as e:
            log_error(logger, e, {"component": "allocator_bridge", "policy": self.policy.value})
            return []

        return [
            self.gauge(f"{self.policy.value}_{suffix}", getattr(record, field_name), f"{self.policy.value}: {help_text}")
            for field_name, suffix, help_text in self.FIELD_MAPPINGS
        ]
