"""Shared table of current gauge values"""
import threading
import time
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Tuple

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from .models import MetricKind, MetricValue, SAMPLING_ORDER


class MetricsStore(Collector):
    """Latest gauge group per enabled metric kind.

    The sampling thread is the only writer; HTTP scrapes are readers. A
    single lock covers each whole-group write and each snapshot, so a reader
    never sees half of a group. Kinds that were never written successfully
    are absent from the exposition.
    """

    def __init__(self, enabled_kinds: Iterable[MetricKind]):
        self._enabled: FrozenSet[MetricKind] = frozenset(enabled_kinds)
        self._groups: Dict[MetricKind, Tuple[MetricValue, ...]] = {}
        self._updated_at: Dict[MetricKind, float] = {}
        self._lock = threading.Lock()

    @property
    def enabled_kinds(self) -> FrozenSet[MetricKind]:
        return self._enabled

    def set_group(self, kind: MetricKind, values: Sequence[MetricValue]) -> None:
        """Atomically replace every value of one metric group"""
        if kind not in self._enabled:
            raise KeyError(f"Metric {kind.value} is not enabled")
        if not values:
            raise ValueError(f"Refusing to publish an empty group for {kind.value}")

        group = tuple(values)
        with self._lock:
            self._groups[kind] = group
            self._updated_at[kind] = time.time()

    def snapshot_for_export(self) -> Dict[MetricKind, Tuple[MetricValue, ...]]:
        """Consistent copy of every published group"""
        with self._lock:
            return dict(self._groups)

    def has_value(self, kind: MetricKind) -> bool:
        with self._lock:
            return kind in self._groups

    def last_updated(self, kind: MetricKind) -> Optional[float]:
        with self._lock:
            return self._updated_at.get(kind)

    def describe(self):
        return []

    def collect(self):
        """Yield one gauge family per metric name from a single snapshot"""
        snapshot = self.snapshot_for_export()
        families: Dict[str, GaugeMetricFamily] = {}

        for kind in SAMPLING_ORDER:
            for metric in snapshot.get(kind, ()):
                label_names = sorted(metric.labels)
                family = families.get(metric.name)
                if family is None:
                    family = GaugeMetricFamily(metric.name, metric.help_text, labels=label_names)
                    families[metric.name] = family
                family.add_metric([metric.labels[name] for name in label_names], metric.value)

        return list(families.values())
