"""Base collector class and interfaces"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from procfs_exporter.metrics.models import MetricKind, MetricValue, ReadResult
from procfs_exporter.logging_config import get_logger, log_collector_unavailable


logger = get_logger(__name__)


class BaseCollector(ABC):
    """Base class for all metric collectors.

    A collector produces the complete gauge group for one metric kind, or an
    empty list when its source is unavailable. It never touches the store.
    """

    kind: MetricKind

    def __init__(self, help_text: str = ""):
        self._help_text = help_text

    @abstractmethod
    def collect(self) -> List[MetricValue]:
        """Collect metrics and return list of MetricValue objects"""
        pass

    @property
    def name(self) -> str:
        """Collector name, identical to the configured metric name"""
        return self.kind.value

    @property
    def help_text(self) -> str:
        """Help text describing what this collector does"""
        return self._help_text or f"{self.name} metrics collector"

    def unavailable(self, result: ReadResult) -> List[MetricValue]:
        """Log a failed read and publish nothing for this tick"""
        log_collector_unavailable(logger, self.name, result.errors)
        return []

    def gauge(self, name: str, value: float, help_text: str, labels: Optional[Dict[str, str]] = None) -> MetricValue:
        return MetricValue(
            name=name,
            value=float(value),
            labels=dict(labels or {}),
            help_text=help_text
        )
