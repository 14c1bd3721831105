"""Metrics registry mapping enabled metric kinds to their collectors"""
from typing import Dict, List, Optional

from .models import MetricKind, SAMPLING_ORDER
from procfs_exporter.collectors.allocator import AllocatorCollector
from procfs_exporter.collectors.base import BaseCollector
from procfs_exporter.collectors.cpu import CPUCollector
from procfs_exporter.collectors.disk import DiskCollector
from procfs_exporter.collectors.memory import MemoryCollector
from procfs_exporter.collectors.network import NetworkCollector
from procfs_exporter.collectors.process import ContextSwitchesCollector, RunningProcessesCollector
from procfs_exporter.collectors.procfs import ProcReader
from procfs_exporter.config import MetricsConfig, Settings
from procfs_exporter.utils.allocator_bridge import AllocatorBridge
from procfs_exporter.logging_config import get_logger


logger = get_logger(__name__)

KERNEL_COLLECTORS = {
    MetricKind.CPU_USAGE: CPUCollector,
    MetricKind.MEMORY_USAGE: MemoryCollector,
    MetricKind.DISK_USAGE: DiskCollector,
    MetricKind.NETWORK_USAGE: NetworkCollector,
    MetricKind.RUNNING_PROCESSES: RunningProcessesCollector,
    MetricKind.CONTEXT_SWITCHES: ContextSwitchesCollector,
}


class MetricsRegistry:
    """Collectors for the configured metric kinds, built once at startup"""

    def __init__(self, settings: Settings, metrics_config: MetricsConfig,
                 reader: Optional[ProcReader] = None, bridge: Optional[AllocatorBridge] = None):
        self.settings = settings
        self.metrics_config = metrics_config
        self.reader = reader or ProcReader(settings.proc_root, settings.disk_device)
        self._bridge = bridge
        self.collectors: Dict[MetricKind, BaseCollector] = {}

        for kind in SAMPLING_ORDER:
            if metrics_config.is_enabled(kind):
                self.register_collector(self._build_collector(kind))

    @property
    def bridge(self) -> AllocatorBridge:
        """Allocator bridge, created the first time a policy is enabled"""
        if self._bridge is None:
            self._bridge = AllocatorBridge(
                self.settings.allocator_binary,
                self.settings.allocator_fifo,
                self.settings.allocator_timeout
            )
        return self._bridge

    def _build_collector(self, kind: MetricKind) -> BaseCollector:
        if kind.policy is not None:
            return AllocatorCollector(self.bridge, kind.policy)
        return KERNEL_COLLECTORS[kind](self.reader)

    def register_collector(self, collector: BaseCollector):
        """Register a new collector"""
        if not isinstance(collector, BaseCollector):
            raise ValueError("Collector must inherit from BaseCollector")

        self.collectors[collector.kind] = collector
        logger.info("Registered collector", collector=collector.name, event_type="collector_registered")

    def get_collector(self, kind: MetricKind) -> Optional[BaseCollector]:
        """Get collector by metric kind"""
        return self.collectors.get(kind)

    def list_collectors(self) -> List[str]:
        """List all registered collector names"""
        return [collector.name for collector in self.collectors.values()]

    def get_collector_status(self) -> Dict[str, Dict]:
        """Get status information for all collectors"""
        status = {}

        for kind, collector in self.collectors.items():
            status[kind.value] = {
                "class": collector.__class__.__name__,
                "help": collector.help_text,
                "allocator_policy": kind.policy.value if kind.policy else None
            }

        return status

    def cleanup(self):
        """Release the allocator bridge worker, if one was created"""
        if self._bridge is not None:
            self._bridge.close()
